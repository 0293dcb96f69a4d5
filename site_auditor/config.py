"""Settings and scoring weight tables.

Weights live in ``config/settings.yaml`` under ``scoring`` and are loaded
once at start-up.  The built-in defaults below are used when the file or a
section is missing.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from site_auditor.exceptions import ConfigError
from site_auditor.models.audit import CATEGORIES

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/settings.yaml"

DEFAULT_CATEGORY_WEIGHTS: dict[str, float] = {
    "technical_seo": 35,
    "onpage_seo": 35,
    "entity_trust": 20,
    "hygiene": 10,
}

DEFAULT_CHECK_WEIGHTS: dict[str, dict[str, float]] = {
    "technical_seo": {
        "viewport_meta": 2,
        "meta_robots": 4,
        "canonical_tag": 4,
        "https_mixed_content": 3,
    },
    "onpage_seo": {
        "title_tag": 6,
        "meta_description": 4,
        "h1_tag": 4,
        "heading_hierarchy": 2,
        "image_alt": 3,
        "image_lazy": 2,
        "image_filename": 1,
        "internal_links": 5,
        "word_count": 3,
        "publish_date": 2,
    },
    "entity_trust": {
        "open_graph": 2,
        "entity_schema_org": 4,
        "entity_nap": 3,
        "entity_social_profiles": 1,
    },
    "hygiene": {
        "hygiene_favicon": 1,
        "hygiene_manifest": 1,
        "hygiene_charset": 2,
        "hygiene_html_lang": 2,
        "hygiene_copyright_year": 1,
    },
}

DEFAULT_CONTACT_PATHS: list[str] = [
    "/", "/contact", "/about", "/team", "/company",
    "/leadership", "/press", "/privacy", "/careers",
]


@dataclass(frozen=True)
class ScoringWeights:
    """Category shares (summing to 100) and per-category check weights."""

    category_weights: dict[str, float]
    check_weights: dict[str, dict[str, float]]

    @classmethod
    def default(cls) -> "ScoringWeights":
        return cls(
            category_weights=dict(DEFAULT_CATEGORY_WEIGHTS),
            check_weights={k: dict(v) for k, v in DEFAULT_CHECK_WEIGHTS.items()},
        )

    @classmethod
    def from_mapping(
        cls,
        data: Optional[dict[str, Any]],
        known_checks: Optional[set[str]] = None,
    ) -> "ScoringWeights":
        """Build and validate a weight table from the ``scoring`` section."""
        data = data or {}
        categories = data.get("category_weights") or DEFAULT_CATEGORY_WEIGHTS
        checks = data.get("check_weights") or DEFAULT_CHECK_WEIGHTS
        weights = cls(
            category_weights={str(k): float(v) for k, v in categories.items()},
            check_weights={
                str(cat): {str(cid): float(w) for cid, w in (table or {}).items()}
                for cat, table in checks.items()
            },
        )
        weights.validate(known_checks)
        return weights

    def validate(self, known_checks: Optional[set[str]] = None) -> None:
        total = sum(self.category_weights.values())
        if abs(total - 100) > 1e-9:
            raise ConfigError(f"Category weights must sum to 100, got {total:g}")
        for cat, table in self.check_weights.items():
            if cat not in self.category_weights:
                raise ConfigError(f"Check weights given for unknown category {cat!r}")
            for check_id, weight in table.items():
                if weight < 0:
                    raise ConfigError(f"Negative weight for {cat}.{check_id}")
                if known_checks is not None and check_id not in known_checks:
                    raise ConfigError(f"Unknown check id {check_id!r} in {cat}")
        for cat, weight in self.category_weights.items():
            if weight < 0:
                raise ConfigError(f"Negative category weight for {cat}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "category_weights": dict(self.category_weights),
            "check_weights": {k: dict(v) for k, v in self.check_weights.items()},
        }


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration resolved from YAML and the environment."""

    app_name: str = "Site Audit Engine"
    max_batch_size: int = 10
    user_agent: str = "SiteAuditBot/1.0 (+https://example.com/bot)"
    request_timeout: float = 20.0
    contact_paths: list[str] = field(default_factory=lambda: list(DEFAULT_CONTACT_PATHS))
    crawl_max_pages: int = 6
    pagespeed_api_key: str = ""
    pagespeed_timeout: float = 60.0
    pagespeed_max_retries: int = 2
    pagespeed_backoff_seconds: float = 5.0
    companies_house_key: str = ""
    companies_house_timeout: float = 15.0
    webhook_url: str = ""
    webhook_timeout: float = 10.0
    weights: ScoringWeights = field(default_factory=ScoringWeights.default)


def _load_yaml(config_path: str) -> dict[str, Any]:
    config_file = Path(config_path)
    if not config_file.exists():
        logger.warning("Config file not found: %s, using defaults.", config_path)
        return {}
    with open(config_file, "r", encoding="utf-8") as fh:
        config = yaml.safe_load(fh) or {}
    if not isinstance(config, dict):
        raise ConfigError(f"{config_path} must contain a mapping at top level")
    logger.info("Configuration loaded from %s", config_path)
    return config


def load_settings(
    config_path: str = DEFAULT_CONFIG_PATH,
    env: Optional[dict[str, str]] = None,
) -> Settings:
    """Resolve :class:`Settings` from *config_path* and environment variables.

    API keys and the webhook URL only ever come from the environment so they
    stay out of the YAML file.
    """
    from site_auditor.modules.technical_audit.checks import CHECK_IDS

    env = dict(os.environ) if env is None else env
    config = _load_yaml(config_path)

    app_cfg = config.get("app", {}) or {}
    http_cfg = config.get("http", {}) or {}
    crawl_cfg = config.get("crawl", {}) or {}
    psi_cfg = config.get("pagespeed", {}) or {}
    ch_cfg = config.get("companies_house", {}) or {}
    hook_cfg = config.get("webhook", {}) or {}

    weights = ScoringWeights.from_mapping(config.get("scoring"), known_checks=set(CHECK_IDS))
    missing = [c for c in CATEGORIES if c not in weights.category_weights]
    if missing:
        raise ConfigError("Missing category weights for: " + ", ".join(missing))

    return Settings(
        app_name=app_cfg.get("name", Settings.app_name),
        max_batch_size=int(app_cfg.get("max_batch_size", Settings.max_batch_size)),
        user_agent=http_cfg.get("user_agent", Settings.user_agent),
        request_timeout=float(http_cfg.get("timeout_seconds", Settings.request_timeout)),
        contact_paths=list(crawl_cfg.get("contact_paths", DEFAULT_CONTACT_PATHS)),
        crawl_max_pages=int(crawl_cfg.get("max_pages", Settings.crawl_max_pages)),
        pagespeed_api_key=env.get("PAGESPEED_API_KEY") or env.get("PSI_API_KEY", ""),
        pagespeed_timeout=float(psi_cfg.get("timeout_seconds", Settings.pagespeed_timeout)),
        pagespeed_max_retries=int(psi_cfg.get("max_retries", Settings.pagespeed_max_retries)),
        pagespeed_backoff_seconds=float(
            psi_cfg.get("backoff_seconds", Settings.pagespeed_backoff_seconds)
        ),
        companies_house_key=env.get("COMPANIES_HOUSE_KEY", ""),
        companies_house_timeout=float(
            ch_cfg.get("timeout_seconds", Settings.companies_house_timeout)
        ),
        webhook_url=env.get("AUDIT_WEBHOOK_URL", ""),
        webhook_timeout=float(hook_cfg.get("timeout_seconds", Settings.webhook_timeout)),
        weights=weights,
    )
