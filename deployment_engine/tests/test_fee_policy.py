"""Unit tests for fee overrides and cost projection."""

import unittest

from deployment_engine.fees import (
    DEFAULT_GAS_LIMIT,
    DEFAULT_GAS_PRICE_WEI,
    FALLBACK_GAS_PRICE_WEI,
    FILLER_GAS_LIMIT,
    FeePolicy,
)
from ledger_client.simulator import SimulatedLedger


class FeePolicyTests(unittest.TestCase):
    def test_defaults(self) -> None:
        override = FeePolicy().override()
        self.assertEqual(override.gas_limit, 5_000_000)
        self.assertEqual(override.gas_price_wei, 100_000_000)
        self.assertEqual((DEFAULT_GAS_LIMIT, DEFAULT_GAS_PRICE_WEI), (5_000_000, 100_000_000))

    def test_override_ignores_network_price(self) -> None:
        policy = FeePolicy()
        before = policy.override()
        policy.estimate_cost(SimulatedLedger(network_gas_price_wei=50 * 10**9), 5)
        self.assertEqual(policy.override(), before)

    def test_estimate_uses_network_price(self) -> None:
        estimate = FeePolicy().estimate_cost(SimulatedLedger(network_gas_price_wei=2 * 10**9), 5)

        self.assertEqual(estimate.per_operation_wei, 3_000_000 * 2 * 10**9)
        self.assertEqual(estimate.total_wei, 5 * 3_000_000 * 2 * 10**9)

    def test_estimate_falls_back_when_price_missing(self) -> None:
        estimate = FeePolicy().estimate_cost(SimulatedLedger(network_gas_price_wei=None), 1)
        self.assertEqual(estimate.network_gas_price_wei, FALLBACK_GAS_PRICE_WEI)

    def test_filler_policy(self) -> None:
        override = FeePolicy.for_filler(7).override()
        self.assertEqual(override.gas_limit, FILLER_GAS_LIMIT)
        self.assertEqual(override.gas_price_wei, 7)

    def test_rejects_non_positive_values(self) -> None:
        with self.assertRaises(ValueError):
            FeePolicy(gas_limit=0)
        with self.assertRaises(ValueError):
            FeePolicy(gas_price_wei=-1)


if __name__ == "__main__":
    unittest.main()
