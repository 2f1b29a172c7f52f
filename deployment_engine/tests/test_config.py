"""Unit tests for environment-driven settings."""

import unittest
from pathlib import Path

from deployment_engine.config import (
    ConfigError,
    load_deployment_settings,
    load_network_config,
    load_private_key,
)


class ConfigTests(unittest.TestCase):
    def test_network_defaults(self) -> None:
        network = load_network_config({})

        self.assertEqual(network.rpc_url, "https://rpc.primordial.bdagscan.com")
        self.assertEqual(network.chain_id, 1043)
        self.assertEqual(network.faucet_url, "https://primordial.bdagscan.com/faucet")
        self.assertEqual(
            network.address_url("0xabc"), "https://primordial.bdagscan.com/address/0xabc"
        )

    def test_network_overrides(self) -> None:
        network = load_network_config(
            {
                "BLOCKDAG_RPC_URL": "http://localhost:8545",
                "BLOCKDAG_CHAIN_ID": "31337",
                "BLOCKDAG_EXPLORER": "http://explorer.local/",
                "BLOCKDAG_NETWORK_NAME": "local",
            }
        )
        self.assertEqual(network.name, "local")
        self.assertEqual(network.chain_id, 31337)
        self.assertEqual(network.address_url("0x1"), "http://explorer.local/address/0x1")

    def test_invalid_integer(self) -> None:
        with self.assertRaises(ConfigError):
            load_network_config({"BLOCKDAG_CHAIN_ID": "mainnet"})

    def test_deployment_settings(self) -> None:
        settings = load_deployment_settings(
            {
                "DEPLOYMENT_MANIFEST": "out/info.json",
                "GAS_PRICE_WEI": "2000000000",
                "RECEIPT_TIMEOUT_SECONDS": "90",
            }
        )
        self.assertEqual(settings.manifest_path, Path("out/info.json"))
        self.assertEqual(settings.artifacts_dir, Path("artifacts"))
        self.assertEqual(settings.gas_limit, 5_000_000)
        self.assertEqual(settings.gas_price_wei, 2_000_000_000)
        self.assertEqual(settings.receipt_timeout, 90.0)

    def test_receipt_timeout_defaults_to_unbounded(self) -> None:
        self.assertIsNone(load_deployment_settings({}).receipt_timeout)
        with self.assertRaises(ConfigError):
            load_deployment_settings({"RECEIPT_TIMEOUT_SECONDS": "0"})

    def test_private_key(self) -> None:
        self.assertEqual(load_private_key({"DEPLOYER_PRIVATE_KEY": "ab" * 32}), "0x" + "ab" * 32)
        self.assertEqual(load_private_key({"DEPLOYER_PRIVATE_KEY": "0x12"}), "0x12")
        with self.assertRaisesRegex(ConfigError, "private key"):
            load_private_key({})


if __name__ == "__main__":
    unittest.main()
