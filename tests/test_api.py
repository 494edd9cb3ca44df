import sys
import unittest
from dataclasses import replace
from pathlib import Path
from unittest import mock

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from fastapi.testclient import TestClient

from ats_scoring.core.config import settings
from ats_scoring.main import app


class ScoringApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        self.payload = {
            "resume_original_text": "SUMMARY\nPython developer.\n\nEXPERIENCE\nDeveloper at Shopco\n- Wrote services\n",
            "resume_optimized_text": (
                "SUMMARY\nBackend engineer building Python and Docker services.\n\n"
                "EXPERIENCE\nBackend Engineer at Shopco\n- Cut deploy time by 40% with Docker\n"
            ),
            "job_text": "Backend Engineer. Python and Docker required. Design scalable backend services.",
            "job_requirement": {
                "title": "Backend Engineer",
                "must_have": ["Python", "Docker"],
                "responsibilities": ["Design scalable backend services"],
                "seniority": "Senior",
            },
        }

    def test_health(self):
        with TestClient(app) as client:
            response = client.get("/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy"})

    def test_score_contract(self):
        response = self.client.post("/v1/ats/score", json=self.payload)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertGreaterEqual(body["ats_score_optimized"], body["ats_score_original"] + 5)
        self.assertEqual(len(body["subscores"]), 8)
        self.assertEqual(len(body["subscores_original"]), 8)
        self.assertIsInstance(body["suggestions"], list)
        self.assertTrue(0 <= body["confidence"] <= 1)
        self.assertEqual(body["metadata"]["version"], 2)

    def test_performance_stats(self):
        self.client.post("/v1/ats/score", json=self.payload)
        response = self.client.get("/v1/ats/performance")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertGreaterEqual(body["score_resume"]["count"], 1)
        self.assertEqual(
            set(body["score_resume"]), {"count", "min", "max", "avg", "p50", "p95", "p99"}
        )
        self.assertEqual(body["target_ms"], 2000)
        self.assertIsInstance(body["meets_target"], bool)

    def test_invalid_body_is_rejected(self):
        response = self.client.post("/v1/ats/score", json={"job_text": ["not", "a", "string"]})
        self.assertEqual(response.status_code, 422)

    def test_api_key_is_enforced_when_configured(self):
        secured = replace(settings, api_key="test-secret")
        with mock.patch("ats_scoring.core.security.settings", secured):
            missing = self.client.post("/v1/ats/score", json=self.payload)
            wrong = self.client.post("/v1/ats/score", json=self.payload, headers={"X-API-Key": "nope"})
            allowed = self.client.post("/v1/ats/score", json=self.payload, headers={"X-API-Key": "test-secret"})
        self.assertEqual(missing.status_code, 401)
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(allowed.status_code, 200)

    def test_payload_limit(self):
        limited = replace(settings, max_payload_bytes=64)
        with mock.patch("ats_scoring.core.security.settings", limited):
            response = self.client.post("/v1/ats/score", json=self.payload)
        self.assertEqual(response.status_code, 413)


if __name__ == "__main__":
    unittest.main()
