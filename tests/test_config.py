"""Tests for settings loading and weight table validation."""

from pathlib import Path

import pytest

from site_auditor.config import (
    DEFAULT_CATEGORY_WEIGHTS,
    DEFAULT_CONTACT_PATHS,
    ScoringWeights,
    load_settings,
)
from site_auditor.exceptions import ConfigError
from site_auditor.modules.technical_audit.checks import CHECK_IDS

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _write(tmp_path, text: str) -> str:
    path = tmp_path / "settings.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestLoadSettings:

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_settings(str(tmp_path / "nope.yaml"), env={})
        assert settings.max_batch_size == 10
        assert settings.crawl_max_pages == 6
        assert settings.contact_paths == DEFAULT_CONTACT_PATHS
        assert settings.weights == ScoringWeights.default()
        assert settings.pagespeed_api_key == ""

    def test_yaml_sections_are_applied(self, tmp_path):
        path = _write(tmp_path, (
            "app:\n  max_batch_size: 4\n"
            "http:\n  user_agent: TestBot/2.0\n  timeout_seconds: 7\n"
            "crawl:\n  max_pages: 2\n  contact_paths: ['/', '/kontakt']\n"
            "pagespeed:\n  max_retries: 0\n  backoff_seconds: 1\n"
            "webhook:\n  timeout_seconds: 3\n"
        ))
        settings = load_settings(path, env={})
        assert settings.max_batch_size == 4
        assert settings.user_agent == "TestBot/2.0"
        assert settings.request_timeout == 7.0
        assert settings.crawl_max_pages == 2
        assert settings.contact_paths == ["/", "/kontakt"]
        assert settings.pagespeed_max_retries == 0
        assert settings.pagespeed_backoff_seconds == 1.0
        assert settings.webhook_timeout == 3.0

    def test_secrets_come_from_the_environment(self, tmp_path):
        env = {
            "PSI_API_KEY": "psi",
            "COMPANIES_HOUSE_KEY": "ch",
            "AUDIT_WEBHOOK_URL": "https://hooks.test/x",
        }
        settings = load_settings(str(tmp_path / "nope.yaml"), env=env)
        assert settings.pagespeed_api_key == "psi"
        assert settings.companies_house_key == "ch"
        assert settings.webhook_url == "https://hooks.test/x"

        env["PAGESPEED_API_KEY"] = "preferred"
        assert load_settings(str(tmp_path / "nope.yaml"), env=env).pagespeed_api_key == "preferred"

    def test_shipped_settings_file_matches_defaults(self):
        settings = load_settings(str(PROJECT_ROOT / "config" / "settings.yaml"), env={})
        assert settings.weights == ScoringWeights.default()

    def test_non_mapping_file_is_rejected(self, tmp_path):
        with pytest.raises(ConfigError):
            load_settings(_write(tmp_path, "- just\n- a list\n"), env={})


class TestScoringWeights:

    def test_defaults_cover_every_check_once(self):
        weights = ScoringWeights.default()
        ids = [cid for table in weights.check_weights.values() for cid in table]
        assert sorted(ids) == sorted(CHECK_IDS)
        assert sum(weights.category_weights.values()) == 100

    def test_category_weights_must_sum_to_100(self, tmp_path):
        path = _write(tmp_path, (
            "scoring:\n  category_weights:\n"
            "    technical_seo: 40\n    onpage_seo: 35\n    entity_trust: 20\n    hygiene: 10\n"
        ))
        with pytest.raises(ConfigError, match="sum to 100"):
            load_settings(path, env={})

    def test_unknown_check_id_is_rejected(self):
        with pytest.raises(ConfigError, match="Unknown check id"):
            ScoringWeights.from_mapping(
                {"check_weights": {"hygiene": {"hygiene_robots": 1}}},
                known_checks=set(CHECK_IDS),
            )

    def test_unknown_category_is_rejected(self):
        with pytest.raises(ConfigError):
            ScoringWeights.from_mapping({"check_weights": {"speed": {"title_tag": 1}}})

    def test_negative_weight_is_rejected(self):
        with pytest.raises(ConfigError):
            ScoringWeights.from_mapping({"check_weights": {"hygiene": {"hygiene_favicon": -1}}})

    def test_missing_category_is_rejected(self, tmp_path):
        path = _write(tmp_path, (
            "scoring:\n"
            "  category_weights:\n    technical_seo: 50\n    onpage_seo: 50\n"
            "  check_weights:\n"
            "    technical_seo:\n      viewport_meta: 1\n"
            "    onpage_seo:\n      title_tag: 1\n"
        ))
        with pytest.raises(ConfigError, match="Missing category weights"):
            load_settings(path, env={})

    def test_round_trip_through_to_dict(self):
        weights = ScoringWeights.default()
        assert ScoringWeights.from_mapping(weights.to_dict()) == weights
        assert weights.to_dict()["category_weights"] == DEFAULT_CATEGORY_WEIGHTS
