import os
import sqlite3
import tempfile
import unittest

from tests.helpers.api_client import ApiSandbox
from tests.helpers.temp_db import TempDbSandbox


class ApiSandboxTest(unittest.TestCase):
    def test_sandbox_initializes_schema_and_cleans_up(self) -> None:
        sandbox = ApiSandbox(prefix="sandbox_sanity")
        db_path = sandbox.temp_db.db_path
        self.assertTrue(db_path.startswith(tempfile.gettempdir()))

        client, user = sandbox.register("vendor", company_name="Acme")
        self.assertEqual(user["role"], "vendor")
        self.assertTrue(client.get("/api/auth/session").get_json()["authenticated"])

        conn = sqlite3.connect(db_path)
        try:
            count = conn.execute("SELECT COUNT(*) FROM profiles").fetchone()[0]
        finally:
            conn.close()
        self.assertEqual(count, 1)

        sandbox.cleanup()
        self.assertFalse(os.path.exists(db_path))
        self.assertFalse(os.path.exists(sandbox.temp_db.temp_dir))

    def test_each_registration_gets_its_own_session(self) -> None:
        sandbox = ApiSandbox(prefix="sandbox_sessions")
        try:
            first, first_user = sandbox.register("client")
            second, second_user = sandbox.register("client")
            self.assertNotEqual(first_user["id"], second_user["id"])
            self.assertEqual(first.get("/api/auth/session").get_json()["user"]["id"], first_user["id"])
            self.assertEqual(second.get("/api/auth/session").get_json()["user"]["id"], second_user["id"])
        finally:
            sandbox.cleanup()

    def test_cleanup_refuses_directories_outside_temp(self) -> None:
        sandbox = TempDbSandbox(prefix="sandbox_guard")
        real_dir = sandbox.temp_dir
        sandbox.temp_dir = os.getcwd()
        try:
            with self.assertRaises(ValueError):
                sandbox.cleanup()
        finally:
            sandbox.temp_dir = real_dir
            sandbox.cleanup()
        self.assertFalse(os.path.exists(real_dir))


if __name__ == "__main__":
    unittest.main()
