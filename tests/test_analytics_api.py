import os
import tempfile
import unittest
from dataclasses import replace
from pathlib import Path
from unittest.mock import patch

os.environ.setdefault("ANALYTICS_ENABLED", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")

from fastapi.testclient import TestClient

from app.analytics import db as analytics_db
from app.core.config import settings
from app.main import app


class AnalyticsDbTests(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        db_path = str(Path(self.tmp_dir.name) / "analytics.db")
        self.settings_patch = patch.object(
            analytics_db,
            "settings",
            replace(settings, analytics_enabled=True, analytics_db_path=db_path),
        )
        self.settings_patch.start()

    def tearDown(self):
        self.settings_patch.stop()
        self.tmp_dir.cleanup()

    def test_summary_counts_runs(self):
        analytics_db.init_db()
        analytics_db.log_ai_analysis_run(
            run_id="r1", tool_slug="resume-analysis", model="m", schema_valid=True, status="success"
        )
        analytics_db.log_resolution_run(
            resume_id="id-1",
            substituted=True,
            status="resolved",
            method_used="filename_patterns_exact",
            attempted_methods=[],
        )
        analytics_db.log_resolution_run(
            resume_id="id-2",
            substituted=False,
            status="failed",
            method_used=None,
            attempted_methods=["direct_url", "url_path_extraction"],
        )

        summary = analytics_db.get_summary()
        self.assertTrue(summary["enabled"])
        self.assertEqual(summary["ai_runs_by_status"], {"success": 1})
        self.assertEqual(summary["resolutions_by_method"], {"filename_patterns_exact": 1, "failed": 1})
        self.assertEqual(summary["substituted_ids"], 1)

    def test_purge_keeps_recent_rows(self):
        analytics_db.log_ai_analysis_run(
            run_id="r1", tool_slug="t", model="m", schema_valid=False, status="error"
        )
        deleted = analytics_db.purge_old_records()
        self.assertEqual(deleted, {"ai_analysis_runs": 0, "resume_resolution_runs": 0})


class AnalyticsApiTests(unittest.TestCase):
    def test_summary_requires_key(self):
        client = TestClient(app)
        with patch("app.core.security.settings", replace(settings, api_key="secret")):
            self.assertEqual(client.get("/v1/analytics/summary").status_code, 401)
            with patch.object(analytics_db, "settings", replace(settings, analytics_enabled=False)):
                response = client.get("/v1/analytics/summary", headers={"X-API-Key": "secret"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"enabled": False})


if __name__ == "__main__":
    unittest.main()
