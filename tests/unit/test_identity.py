import tempfile
import unittest
import uuid
from pathlib import Path

from helpers import ROOT  # noqa: F401

from sysreport_core.identity import CLIENT_ID_FILE, get_or_create_id


class IdentityTests(unittest.TestCase):
    def test_creates_and_persists_id(self):
        with tempfile.TemporaryDirectory() as tmp:
            storage = Path(tmp) / "nested" / ".cache"
            client_id = get_or_create_id(storage)
            uuid.UUID(client_id)
            self.assertEqual((storage / CLIENT_ID_FILE).read_text(encoding="utf-8"), client_id)

    def test_same_id_across_restarts(self):
        with tempfile.TemporaryDirectory() as tmp:
            first = get_or_create_id(Path(tmp))
            self.assertEqual(get_or_create_id(Path(tmp)), first)

    def test_reads_existing_token(self):
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / CLIENT_ID_FILE).write_text("  existing-token\n", encoding="utf-8")
            self.assertEqual(get_or_create_id(Path(tmp)), "existing-token")

    def test_empty_file_is_regenerated(self):
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / CLIENT_ID_FILE).write_text("", encoding="utf-8")
            client_id = get_or_create_id(Path(tmp))
            self.assertTrue(client_id)
            self.assertEqual((Path(tmp) / CLIENT_ID_FILE).read_text(encoding="utf-8"), client_id)

    def test_undecodable_file_is_regenerated(self):
        with tempfile.TemporaryDirectory() as tmp:
            id_path = Path(tmp) / CLIENT_ID_FILE
            id_path.write_bytes(b"\xff\xfe\x00bad")
            with self.assertLogs("sysreport.identity", level="WARNING"):
                client_id = get_or_create_id(Path(tmp))
            uuid.UUID(client_id)
            self.assertEqual(id_path.read_text(encoding="utf-8"), client_id)
            self.assertEqual(get_or_create_id(Path(tmp)), client_id)

    def test_unwritable_storage_falls_back_to_ephemeral(self):
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "file"
            blocker.write_text("", encoding="utf-8")
            with self.assertLogs("sysreport.identity", level="WARNING"):
                first = get_or_create_id(blocker)
            second = get_or_create_id(blocker)
            uuid.UUID(first)
            self.assertNotEqual(first, second)


if __name__ == "__main__":
    unittest.main()
