"""Local-only FastAPI shell exposing health and deployment status."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from deployment_engine.config import (
    DeploymentSettings,
    NetworkConfig,
    load_deployment_settings,
    load_network_config,
)
from deployment_engine.manifest import (
    ManifestError,
    load_manifest,
    missing_manifest_message,
    verify_manifest,
)
from deployment_engine.models import DeploymentManifest
from ledger_client.client import LedgerClient

app = FastAPI(title="BlockDAG Deployer", description="Local-only deployment status")

_CONTEXT: Dict[str, object] = {"network": None, "manifest_path": None, "ledger": None}
_TIME_PROVIDER: Callable[[], str] = lambda: datetime.now(timezone.utc).isoformat()


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    network: str
    chainId: int


class ContractPayload(BaseModel):
    name: str
    address: str
    explorer_url: str


class DeploymentPayload(BaseModel):
    network: str
    chainId: int
    deploymentTime: str
    contracts: List[ContractPayload]


class VerificationPayload(BaseModel):
    name: str
    address: str
    deployed: bool
    code_size: int


@app.middleware("http")
async def _local_only(request: Request, call_next):
    client = request.client
    if client is not None:
        host = client.host
        if host not in {"127.0.0.1", "::1", "testclient"}:
            return JSONResponse({"error": "Remote access disabled."}, status_code=403)
    return await call_next(request)


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    network = _network()
    return HealthResponse(
        status="ok",
        timestamp=_TIME_PROVIDER(),
        network=network.name,
        chainId=network.chain_id,
    )


@app.get("/api/deployment", response_model=DeploymentPayload)
async def deployment() -> DeploymentPayload:
    manifest = _manifest()
    network = _network()
    return DeploymentPayload(
        network=manifest.network,
        chainId=manifest.chain_id,
        deploymentTime=manifest.deployment_time,
        contracts=[
            ContractPayload(
                name=entry.name,
                address=entry.address,
                explorer_url=network.address_url(entry.address),
            )
            for entry in manifest.contracts
        ],
    )


@app.get("/api/deployment/verify", response_model=List[VerificationPayload])
async def deployment_verify() -> List[VerificationPayload]:
    ledger = _CONTEXT.get("ledger")
    if ledger is None:
        raise HTTPException(status_code=503, detail="No ledger connection configured.")
    manifest = _manifest()
    return [
        VerificationPayload(
            name=entry.name,
            address=entry.address,
            deployed=entry.deployed,
            code_size=entry.code_size,
        )
        for entry in verify_manifest(manifest, ledger)
    ]


def configure(
    network: Optional[NetworkConfig] = None,
    manifest_path: Optional[Path] = None,
    ledger: Optional[LedgerClient] = None,
    time_provider: Optional[Callable[[], str]] = None,
) -> None:
    global _TIME_PROVIDER
    _CONTEXT["network"] = network
    _CONTEXT["manifest_path"] = manifest_path
    _CONTEXT["ledger"] = ledger
    if time_provider is not None:
        _TIME_PROVIDER = time_provider


def _reset_state() -> None:
    global _TIME_PROVIDER
    _CONTEXT.update({"network": None, "manifest_path": None, "ledger": None})
    _TIME_PROVIDER = lambda: datetime.now(timezone.utc).isoformat()


def _network() -> NetworkConfig:
    network = _CONTEXT.get("network")
    if network is None:
        network = load_network_config()
        _CONTEXT["network"] = network
    return network


def _settings() -> DeploymentSettings:
    return load_deployment_settings()


def _manifest() -> DeploymentManifest:
    path = _CONTEXT.get("manifest_path") or _settings().manifest_path
    path = Path(path)
    if not path.exists():
        raise HTTPException(status_code=404, detail=missing_manifest_message(path))
    try:
        return load_manifest(path)
    except ManifestError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
