"""Unit tests for manifest persistence and verification."""

import json
import tempfile
import unittest
from pathlib import Path

from deployment_engine.manifest import ManifestError, ManifestWriter, load_manifest, verify_manifest
from deployment_engine.models import DeploymentManifest, ManifestEntry
from ledger_client.simulator import SimulatedLedger

TOKEN = "0x00000000000000000000000000000000000000A1"
ROUTER = "0x00000000000000000000000000000000000000A2"


def _manifest() -> DeploymentManifest:
    return DeploymentManifest(
        network="BlockDAG Primordial Testnet",
        chain_id=1043,
        contracts=(
            ManifestEntry(name="TestToken", address=TOKEN),
            ManifestEntry(name="SimpleRouter", address=ROUTER),
        ),
        deployment_time="2024-01-01T00:00:00+00:00",
    )


class ManifestWriterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tempdir = tempfile.TemporaryDirectory()
        self.path = Path(self.tempdir.name) / "out" / "deployment-info.json"

    def tearDown(self) -> None:
        self.tempdir.cleanup()

    def test_write_then_load(self) -> None:
        writer = ManifestWriter(self.path)
        writer.write(_manifest())

        self.assertTrue(writer.written)
        self.assertFalse(self.path.with_name("deployment-info.json.tmp").exists())
        loaded = load_manifest(self.path)
        self.assertEqual(loaded, _manifest())
        self.assertEqual(loaded.address_of("SimpleRouter"), ROUTER)
        self.assertIsNone(loaded.address_of("Missing"))

    def test_wire_keys(self) -> None:
        ManifestWriter(self.path).write(_manifest())
        payload = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(set(payload), {"network", "chainId", "contracts", "deploymentTime"})

    def test_written_at_most_once(self) -> None:
        writer = ManifestWriter(self.path)
        writer.write(_manifest())
        with self.assertRaises(ManifestError):
            writer.write(_manifest())

    def test_set_aside_stale(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text("old", encoding="utf-8")
        previous = ManifestWriter(self.path).set_aside_stale()

        self.assertEqual(previous.name, "deployment-info.previous.json")
        self.assertEqual(previous.read_text(encoding="utf-8"), "old")
        self.assertFalse(self.path.exists())

    def test_set_aside_without_manifest(self) -> None:
        self.assertIsNone(ManifestWriter(self.path).set_aside_stale())

    def test_load_missing_and_malformed(self) -> None:
        with self.assertRaises(ManifestError):
            load_manifest(self.path)
        self.path.parent.mkdir(parents=True)
        self.path.write_text('{"network": "x"}', encoding="utf-8")
        with self.assertRaises(ManifestError):
            load_manifest(self.path)
        self.path.write_text("[1, 2]", encoding="utf-8")
        with self.assertRaises(ManifestError):
            load_manifest(self.path)


class VerifyManifestTests(unittest.TestCase):
    def test_reports_code_presence(self) -> None:
        ledger = SimulatedLedger()
        ledger.set_code(TOKEN, "0x60806040")
        entries = verify_manifest(_manifest(), ledger)

        self.assertEqual([e.name for e in entries], ["TestToken", "SimpleRouter"])
        self.assertTrue(entries[0].deployed)
        self.assertEqual(entries[0].code_size, 4)
        self.assertFalse(entries[1].deployed)
        self.assertEqual(entries[1].code_size, 0)


if __name__ == "__main__":
    unittest.main()
