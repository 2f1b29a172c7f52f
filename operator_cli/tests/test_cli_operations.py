"""Tests for the reset-nonce, verify and config commands."""

import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO
from pathlib import Path
from unittest import mock

from deployment_engine.manifest import ManifestWriter
from deployment_engine.models import DeploymentManifest, ManifestEntry
from ledger_client.simulator import SimulatedLedger
from operator_cli.cli import main

TOKEN = "0x00000000000000000000000000000000000000A1"
ROUTER = "0x00000000000000000000000000000000000000A2"


class CliTestCase(unittest.TestCase):
    def _run(self, args):
        out, err = StringIO(), StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(args)
        return code, out.getvalue(), err.getvalue()


class ResetNonceCommandTests(CliTestCase):
    def test_reaches_target(self) -> None:
        ledger = SimulatedLedger(start_nonce=5)
        with mock.patch("operator_cli.cli._build_ledger", return_value=ledger):
            code, output, _ = self._run(["reset-nonce", "--target", "7", "--yes"])

        self.assertEqual(code, 0)
        self.assertIn("Current nonce: 5", output)
        self.assertIn("Confirmed 2 of 2 filler transactions.", output)
        self.assertIn("New nonce: 7", output)

    def test_prompts_for_target(self) -> None:
        ledger = SimulatedLedger(start_nonce=5)
        with mock.patch("operator_cli.cli._build_ledger", return_value=ledger), mock.patch(
            "operator_cli.cli._read_line", return_value="6"
        ) as prompt:
            code, _, _ = self._run(["reset-nonce", "--yes"])

        self.assertEqual(code, 0)
        prompt.assert_called_once_with("Enter target nonce to reach (greater than 5): ")
        self.assertEqual(ledger.get_nonce(ledger.address), 6)

    def test_invalid_target(self) -> None:
        ledger = SimulatedLedger(start_nonce=5)
        with mock.patch("operator_cli.cli._build_ledger", return_value=ledger):
            code, _, errors = self._run(["reset-nonce", "--target", "5", "--yes"])

        self.assertEqual(code, 1)
        self.assertIn("ERROR: Invalid target nonce 5", errors)
        self.assertEqual(ledger.submissions, ())

    def test_failure_stops_and_exits_nonzero(self) -> None:
        ledger = SimulatedLedger(start_nonce=5)
        ledger.fail_at(6, "could not reach network")
        with mock.patch("operator_cli.cli._build_ledger", return_value=ledger):
            code, output, errors = self._run(["reset-nonce", "--target", "9", "--yes"])

        self.assertEqual(code, 1)
        self.assertIn("Confirmed 1 of 4 filler transactions.", output)
        self.assertIn("ERROR [NetworkUnavailable]", errors)
        self.assertEqual([s.nonce for s in ledger.submissions], [5])

    def test_declined_confirmation(self) -> None:
        ledger = SimulatedLedger(start_nonce=5)
        with mock.patch("operator_cli.cli._build_ledger", return_value=ledger), mock.patch(
            "operator_cli.cli._read_line", return_value="no"
        ):
            code, output, _ = self._run(["reset-nonce", "--target", "7"])

        self.assertEqual(code, 0)
        self.assertIn("Operation cancelled.", output)
        self.assertEqual(ledger.submissions, ())


class VerifyCommandTests(CliTestCase):
    def setUp(self) -> None:
        self.tempdir = tempfile.TemporaryDirectory()
        self.manifest = Path(self.tempdir.name) / "deployment-info.json"
        ManifestWriter(self.manifest).write(
            DeploymentManifest(
                network="BlockDAG Primordial Testnet",
                chain_id=1043,
                contracts=(
                    ManifestEntry(name="TestToken", address=TOKEN),
                    ManifestEntry(name="SimpleRouter", address=ROUTER),
                ),
                deployment_time="2024-01-01T00:00:00+00:00",
            )
        )
        self.ledger = SimulatedLedger()
        self.ledger.set_code(TOKEN, "0x6080")

    def tearDown(self) -> None:
        self.tempdir.cleanup()

    def test_reports_each_contract(self) -> None:
        with mock.patch("operator_cli.cli._build_reader", return_value=self.ledger):
            code, output, _ = self._run(["verify", "--manifest", str(self.manifest)])

        self.assertEqual(code, 1)
        self.assertIn(f"TestToken is deployed at {TOKEN} (2 bytes)", output)
        self.assertIn(f"SimpleRouter is NOT deployed at {ROUTER}", output)
        self.assertIn(f"/address/{ROUTER}", output)

    def test_reads_contract_details(self) -> None:
        self.ledger.set_view(TOKEN, "name", "BlockDAG Test Token")
        self.ledger.set_view(TOKEN, "symbol", "TEST")
        self.ledger.set_view(TOKEN, "decimals", 18)
        with mock.patch("operator_cli.cli._build_reader", return_value=self.ledger):
            _, output, _ = self._run(["verify", "--manifest", str(self.manifest)])

        self.assertIn("   Name: BlockDAG Test Token", output)
        self.assertIn("   Symbol: TEST", output)
        self.assertIn("   Decimals: 18", output)

    def test_failed_detail_read_is_not_fatal(self) -> None:
        self.ledger.set_code(ROUTER, "0x6080")
        self.ledger.set_view(TOKEN, "name", "BlockDAG Test Token")
        with mock.patch("operator_cli.cli._build_reader", return_value=self.ledger):
            code, output, _ = self._run(["verify", "--manifest", str(self.manifest)])

        self.assertEqual(code, 0)
        self.assertIn("   Name: BlockDAG Test Token", output)
        self.assertNotIn("Symbol:", output)
        self.assertIn("Could not read TestToken details: execution reverted", output)
        self.assertIn("Could not read SimpleRouter details: execution reverted", output)

    def test_all_deployed(self) -> None:
        self.ledger.set_code(ROUTER, "0x6080")
        with mock.patch("operator_cli.cli._build_reader", return_value=self.ledger):
            code, _, _ = self._run(["verify", "--manifest", str(self.manifest)])
        self.assertEqual(code, 0)

    def test_missing_manifest(self) -> None:
        code, _, errors = self._run(
            ["verify", "--manifest", str(Path(self.tempdir.name) / "absent.json")]
        )
        self.assertEqual(code, 1)
        self.assertIn("No deployment manifest", errors)

    def test_missing_manifest_points_at_previous(self) -> None:
        self.manifest.rename(self.manifest.with_name("deployment-info.previous.json"))
        code, _, errors = self._run(["verify", "--manifest", str(self.manifest)])

        self.assertEqual(code, 1)
        self.assertIn("deployment-info.previous.json", errors)


class ConfigShowCommandTests(CliTestCase):
    def test_never_prints_private_key(self) -> None:
        secret = "ab" * 32
        with mock.patch.dict(os.environ, {"DEPLOYER_PRIVATE_KEY": secret}):
            code, output, _ = self._run(["config", "show"])

        self.assertEqual(code, 0)
        payload = json.loads(output)
        self.assertTrue(payload["deployer_key_configured"])
        self.assertNotIn(secret, output)


if __name__ == "__main__":
    unittest.main()
