"""Network and deployment settings read from the environment (and ``.env``)."""

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os

from dotenv import load_dotenv

from .fees import DEFAULT_GAS_LIMIT, DEFAULT_GAS_PRICE_WEI

DEFAULT_NETWORK_NAME = "BlockDAG Primordial Testnet"
DEFAULT_RPC_URL = "https://rpc.primordial.bdagscan.com"
DEFAULT_CHAIN_ID = 1043
DEFAULT_EXPLORER_URL = "https://primordial.bdagscan.com"
DEFAULT_MANIFEST_PATH = "deployment-info.json"
DEFAULT_ARTIFACTS_DIR = "artifacts"


class ConfigError(ValueError):
    """Raised when a setting is missing or malformed."""


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    rpc_url: str
    chain_id: int
    explorer_url: str

    @property
    def faucet_url(self) -> str:
        return f"{self.explorer_url.rstrip('/')}/faucet"

    def address_url(self, address: str) -> str:
        return f"{self.explorer_url.rstrip('/')}/address/{address}"


@dataclass(frozen=True)
class DeploymentSettings:
    manifest_path: Path
    artifacts_dir: Path
    gas_limit: int
    gas_price_wei: int
    receipt_timeout: Optional[float] = None


def load_environment(dotenv_path: Optional[Path] = None) -> None:
    load_dotenv(dotenv_path=dotenv_path, override=False)


def load_network_config(env: Optional[Mapping[str, str]] = None) -> NetworkConfig:
    env = os.environ if env is None else env
    return NetworkConfig(
        name=env.get("BLOCKDAG_NETWORK_NAME") or DEFAULT_NETWORK_NAME,
        rpc_url=env.get("BLOCKDAG_RPC_URL") or DEFAULT_RPC_URL,
        chain_id=_int_setting(env, "BLOCKDAG_CHAIN_ID", DEFAULT_CHAIN_ID),
        explorer_url=env.get("BLOCKDAG_EXPLORER") or DEFAULT_EXPLORER_URL,
    )


def load_deployment_settings(env: Optional[Mapping[str, str]] = None) -> DeploymentSettings:
    env = os.environ if env is None else env
    timeout_raw = env.get("RECEIPT_TIMEOUT_SECONDS")
    receipt_timeout = None
    if timeout_raw:
        try:
            receipt_timeout = float(timeout_raw)
        except ValueError as exc:
            raise ConfigError(f"RECEIPT_TIMEOUT_SECONDS must be a number: {timeout_raw}") from exc
        if receipt_timeout <= 0:
            raise ConfigError("RECEIPT_TIMEOUT_SECONDS must be positive.")

    return DeploymentSettings(
        manifest_path=Path(env.get("DEPLOYMENT_MANIFEST") or DEFAULT_MANIFEST_PATH),
        artifacts_dir=Path(env.get("ARTIFACTS_DIR") or DEFAULT_ARTIFACTS_DIR),
        gas_limit=_int_setting(env, "GAS_LIMIT", DEFAULT_GAS_LIMIT),
        gas_price_wei=_int_setting(env, "GAS_PRICE_WEI", DEFAULT_GAS_PRICE_WEI),
        receipt_timeout=receipt_timeout,
    )


def load_private_key(env: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if env is None else env
    key = (env.get("DEPLOYER_PRIVATE_KEY") or "").strip()
    if not key:
        raise ConfigError("Missing or invalid private key: DEPLOYER_PRIVATE_KEY is not set.")
    return key if key.startswith("0x") else f"0x{key}"


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer: {raw}") from exc
