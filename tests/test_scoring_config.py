import os
import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ats_scoring.core.config.scoring import (
    ScoringConfigError,
    get_scoring_config,
    get_scoring_float,
    get_scoring_int,
    get_scoring_value,
    reset_scoring_config_cache,
)


class ScoringConfigTests(unittest.TestCase):
    def tearDown(self):
        os.environ.pop("ATS_SCORING_CONFIG", None)
        reset_scoring_config_cache()

    def test_loader_and_value_lookup(self):
        config = get_scoring_config()
        self.assertIsInstance(config, dict)
        self.assertEqual(get_scoring_value("version"), 2)
        self.assertEqual(get_scoring_int("normalizer.min_improvement", 0), 5)
        self.assertEqual(get_scoring_int("penalties.format_risk.amount", 0), 10)
        self.assertAlmostEqual(get_scoring_float("keywords.phrase_match_threshold", 0.0), 0.7)

    def test_missing_paths_fall_back_to_default(self):
        self.assertEqual(get_scoring_value("does.not.exist", "fallback"), "fallback")
        self.assertEqual(get_scoring_int("keywords.min_keyword_length.nested", 9), 9)
        self.assertEqual(get_scoring_value("", 1), 1)

    def test_env_override_is_honoured(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "scoring.yaml"
            path.write_text("normalizer:\n  min_improvement: 7\n", encoding="utf-8")
            os.environ["ATS_SCORING_CONFIG"] = str(path)
            reset_scoring_config_cache()
            self.assertEqual(get_scoring_int("normalizer.min_improvement", 5), 7)
            self.assertEqual(get_scoring_int("penalties.no_metrics.amount", 5), 5)

    def test_invalid_config_raises(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "scoring.yaml"
            path.write_text("- just\n- a list\n", encoding="utf-8")
            os.environ["ATS_SCORING_CONFIG"] = str(path)
            reset_scoring_config_cache()
            with self.assertRaises(ScoringConfigError):
                get_scoring_config()

            os.environ["ATS_SCORING_CONFIG"] = str(Path(tmp) / "missing.yaml")
            reset_scoring_config_cache()
            with self.assertRaises(ScoringConfigError):
                get_scoring_config()


if __name__ == "__main__":
    unittest.main()
