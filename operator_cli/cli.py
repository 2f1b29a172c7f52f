"""Operator CLI for contract deployment and nonce repair."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from web3.exceptions import Web3Exception

from deployment_controller.gate import AutoApproveGate, ConfirmationGate, PromptGate
from deployment_engine.classifier import Diagnosis, diagnose
from deployment_engine.config import (
    DeploymentSettings,
    NetworkConfig,
    load_deployment_settings,
    load_environment,
    load_network_config,
    load_private_key,
)
from deployment_engine.fees import FeePolicy
from deployment_engine.manifest import (
    ContractDetails,
    ManifestWriter,
    load_manifest,
    read_contract_details,
    verify_manifest,
)
from deployment_engine.models import PipelineState
from deployment_engine.pipeline import DeploymentPipeline, render_summary
from deployment_engine.plan import CONTRACT_VIEWS, build_default_plan
from ledger_client.artifacts import ArtifactStore
from ledger_client.client import LedgerClient, Web3LedgerClient
from ledger_client.simulator import SimulatedLedger
from nonce_repair.repair import InvalidTargetNonceError, NonceRepairTool

EXIT_OK = 0
EXIT_FATAL = 1

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_OPERATOR_ERRORS = (LookupError, OSError, RuntimeError, ValueError, Web3Exception)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="bdag-deploy")
    parser.add_argument("--env-file")
    parser.add_argument("--log-level", default="INFO")
    subparsers = parser.add_subparsers(dest="command", required=True)

    deploy_parser = subparsers.add_parser("deploy")
    deploy_parser.add_argument("--yes", action="store_true")
    deploy_parser.add_argument("--dry-run", action="store_true")
    deploy_parser.add_argument("--manifest")
    deploy_parser.add_argument("--artifacts")
    deploy_parser.set_defaults(func=_deploy)

    reset_parser = subparsers.add_parser("reset-nonce")
    reset_parser.add_argument("--target", type=int)
    reset_parser.add_argument("--yes", action="store_true")
    reset_parser.add_argument("--dry-run", action="store_true")
    reset_parser.set_defaults(func=_reset_nonce)

    verify_parser = subparsers.add_parser("verify")
    verify_parser.add_argument("--manifest")
    verify_parser.set_defaults(func=_verify)

    config_parser = subparsers.add_parser("config")
    config_sub = config_parser.add_subparsers(dest="config_command", required=True)
    config_show = config_sub.add_parser("show")
    config_show.set_defaults(func=_config_show)

    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    try:
        load_environment(Path(args.env_file) if args.env_file else None)
        return args.func(args)
    except InvalidTargetNonceError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FATAL
    except _OPERATOR_ERRORS as exc:
        _print_diagnosis(diagnose(exc))
        return EXIT_FATAL


def _deploy(args: argparse.Namespace) -> int:
    network = load_network_config()
    settings = load_deployment_settings()
    manifest_path = _manifest_path(args, settings)
    ledger = _build_ledger(args, network, settings)

    pipeline = DeploymentPipeline(
        plan=build_default_plan(),
        ledger=ledger,
        gate=_build_gate(args),
        manifest_writer=ManifestWriter(manifest_path),
        network_name=network.name,
        fee_policy=FeePolicy(gas_limit=settings.gas_limit, gas_price_wei=settings.gas_price_wei),
        receipt_timeout=settings.receipt_timeout,
    )
    run = pipeline.run()

    if run.state == PipelineState.FAILED:
        _print_diagnosis(run.failure)
        if run.addresses:
            _print_lines(render_summary(run, network.name), file=sys.stderr)
        return EXIT_FATAL

    _print_lines(render_summary(run, network.name))
    if run.state == PipelineState.ABORTED:
        return EXIT_OK

    print(f"Deployment information saved to {run.manifest_path}")
    print("Next steps:")
    print("1. Verify contracts with: bdag-deploy verify")
    print("2. Update the .env file with the deployed contract addresses")
    return EXIT_OK


def _reset_nonce(args: argparse.Namespace) -> int:
    network = load_network_config()
    settings = load_deployment_settings()
    ledger = _build_ledger(args, network, settings)
    tool = NonceRepairTool(
        ledger=ledger,
        fee_override=FeePolicy.for_filler(settings.gas_price_wei).override(),
        gate=_build_gate(args),
        receipt_timeout=settings.receipt_timeout,
    )

    current = tool.current_nonce()
    print(f"Account: {tool.address}")
    print(f"Current nonce: {current}")
    target = args.target
    if target is None:
        target = _prompt_target(current)

    report = tool.run(target)
    if report.declined:
        print("Operation cancelled.")
        return EXIT_OK

    print(f"Confirmed {report.confirmed} of {report.requested} filler transactions.")
    print(f"New nonce: {report.final_nonce}")
    if report.failure is not None:
        _print_diagnosis(report.failure)
        return EXIT_FATAL
    return EXIT_OK


def _verify(args: argparse.Namespace) -> int:
    network = load_network_config()
    settings = load_deployment_settings()
    manifest = load_manifest(_manifest_path(args, settings))
    print(f"Network: {manifest.network} (Chain ID: {manifest.chain_id})")
    print(f"Deployment Time: {manifest.deployment_time}")

    ledger = _build_reader(network, settings)
    entries = verify_manifest(manifest, ledger)
    details = {d.name: d for d in read_contract_details(entries, ledger, CONTRACT_VIEWS)}
    for entry in entries:
        if entry.deployed:
            print(f"{entry.name} is deployed at {entry.address} ({entry.code_size} bytes)")
            _print_details(details.get(entry.name))
        else:
            print(f"{entry.name} is NOT deployed at {entry.address}")
    print("Explorer links (the explorer may lag behind the RPC node):")
    for entry in entries:
        print(f"  {entry.name}: {network.address_url(entry.address)}")
    return EXIT_OK if all(entry.deployed for entry in entries) else EXIT_FATAL


def _print_details(details: Optional[ContractDetails]) -> None:
    if details is None:
        return
    for method, value in details.values:
        print(f"   {method.capitalize()}: {value}")
    if details.error is not None:
        print(f"   Could not read {details.name} details: {details.error}")


def _config_show(args: argparse.Namespace) -> int:
    network = load_network_config()
    settings = load_deployment_settings()
    try:
        load_private_key()
        key_configured = True
    except ValueError:
        key_configured = False
    print(
        json.dumps(
            {
                "network": network.name,
                "rpc_url": network.rpc_url,
                "chain_id": network.chain_id,
                "explorer": network.explorer_url,
                "faucet": network.faucet_url,
                "manifest_path": str(settings.manifest_path),
                "artifacts_dir": str(settings.artifacts_dir),
                "gas_limit": settings.gas_limit,
                "gas_price_wei": settings.gas_price_wei,
                "receipt_timeout": settings.receipt_timeout,
                "deployer_key_configured": key_configured,
            },
            indent=2,
        )
    )
    return EXIT_OK


def _build_ledger(
    args: argparse.Namespace, network: NetworkConfig, settings: DeploymentSettings
) -> LedgerClient:
    if args.dry_run:
        return SimulatedLedger(chain_id=network.chain_id)
    artifacts_dir = getattr(args, "artifacts", None) or settings.artifacts_dir
    return Web3LedgerClient(
        rpc_url=network.rpc_url,
        private_key=load_private_key(),
        artifacts=ArtifactStore(Path(artifacts_dir)),
        chain_id=network.chain_id,
    )


def _build_reader(network: NetworkConfig, settings: DeploymentSettings) -> LedgerClient:
    return Web3LedgerClient(
        rpc_url=network.rpc_url,
        private_key=None,
        artifacts=ArtifactStore(settings.artifacts_dir),
        chain_id=network.chain_id,
    )


def _build_gate(args: argparse.Namespace) -> ConfirmationGate:
    if args.yes:
        return AutoApproveGate()
    return PromptGate(input_fn=_read_line)


def _manifest_path(args: argparse.Namespace, settings: DeploymentSettings) -> Path:
    if args.manifest:
        return Path(args.manifest)
    if getattr(args, "dry_run", False):
        path = settings.manifest_path
        return path.with_name(f"{path.stem}.dry-run{path.suffix}")
    return settings.manifest_path


def _prompt_target(current: int) -> int:
    try:
        raw = _read_line(f"Enter target nonce to reach (greater than {current}): ")
    except EOFError:
        raw = ""
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise InvalidTargetNonceError(
            f"Invalid target nonce {raw.strip()!r}: must be a number greater than {current}"
        ) from exc


def _read_line(prompt: str) -> str:
    return input(prompt)


def _print_diagnosis(diagnosis: Diagnosis) -> None:
    print(f"ERROR [{diagnosis.category.value}]: {diagnosis.message}", file=sys.stderr)
    print(diagnosis.remediation, file=sys.stderr)


def _print_lines(lines: List[str], file=None) -> None:
    for line in lines:
        print(line, file=file or sys.stdout)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=_LOG_FORMAT,
        stream=sys.stderr,
    )


if __name__ == "__main__":
    raise SystemExit(main())
