"""
Section map, settings and ambient configuration tests.
Covers: entity type resolution, ignored types, exclusion parsing and validation.
"""
from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from tracker.core.config import Settings
from tracker.core.logging import build_logging_config
from tracker.core.sections import SectionMap
from tracker.db.session import engine_options


class TestSectionMap:
    def test_proxy_suffix_is_stripped(self, section_map: SectionMap):
        assert section_map.section_for("Magento\\Catalog\\Model\\Product\\Interceptor") == "products"
        assert section_map.section_for("Magento\\Catalog\\Model\\Product") == "products"

    def test_unmapped_type_has_no_section(self, section_map: SectionMap):
        assert section_map.section_for("Vendor\\Module\\Model\\Thing") is None

    def test_ignored_types(self, section_map: SectionMap):
        assert section_map.is_ignored("Magento\\Framework\\Flag")
        assert section_map.is_ignored("Magento\\Ui\\Model\\Bookmark\\Interceptor")
        assert section_map.is_ignored("Magento\\Config\\Model\\Config\\Backend\\Baseurl")
        assert not section_map.is_ignored("Magento\\Catalog\\Model\\Product")

    def test_load_from_custom_file(self, tmp_path):
        path = tmp_path / "sections.json"
        path.write_text(
            json.dumps(
                {
                    "strip_suffixes": ["\\Proxy"],
                    "sections": {"Acme\\Blog\\Post": "cms"},
                    "ignored_entity_types": ["Acme\\Blog\\Draft"],
                }
            ),
            encoding="utf-8",
        )
        section_map = SectionMap.load(path)
        assert section_map.section_for("Acme\\Blog\\Post\\Proxy") == "cms"
        assert section_map.is_ignored("Acme\\Blog\\Draft")

    def test_load_rejects_non_object(self, tmp_path):
        path = tmp_path / "sections.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError):
            SectionMap.load(path)


class TestSettings:
    def test_excluded_sections_from_comma_string(self):
        settings = Settings(EXCLUDED_SECTIONS="products, orders")
        assert settings.EXCLUDED_SECTIONS == ["products", "orders"]
        assert settings.is_section_excluded("orders")
        assert not settings.is_section_excluded(None)

    def test_excluded_sections_from_json_string(self):
        settings = Settings(EXCLUDED_SECTIONS='["cms"]')
        assert settings.EXCLUDED_SECTIONS == ["cms"]

    def test_unknown_section_rejected(self):
        with pytest.raises(ValidationError):
            Settings(EXCLUDED_SECTIONS=["widgets"])

    def test_retention_must_be_an_option(self):
        assert Settings(DATA_RETENTION_MONTHS=12).DATA_RETENTION_MONTHS == 12
        with pytest.raises(ValidationError):
            Settings(DATA_RETENTION_MONTHS=5)

    def test_cleanup_cron_needs_five_fields(self):
        with pytest.raises(ValidationError):
            Settings(CLEANUP_CRON="0 2 * *")


class TestAmbientConfiguration:
    def test_engine_options_skip_pool_sizing_for_sqlite(self):
        options = engine_options(Settings(DATABASE_URL="sqlite+aiosqlite:///tracker.db"))
        assert "pool_size" not in options
        assert options["pool_pre_ping"] is True

    def test_engine_options_for_postgres(self):
        options = engine_options(
            Settings(DATABASE_URL="postgresql+asyncpg://u:p@db/tracker", DB_POOL_SIZE=4)
        )
        assert options["pool_size"] == 4
        assert options["max_overflow"] == 20

    def test_logging_config_without_file(self):
        config = build_logging_config(Settings(LOG_LEVEL="debug"))
        assert list(config["handlers"]) == ["console"]
        assert config["loggers"]["tracker"]["level"] == "DEBUG"

    def test_logging_config_with_file(self, tmp_path):
        log_file = tmp_path / "activity_tracker.log"
        config = build_logging_config(Settings(LOG_FILE=str(log_file)))
        assert config["handlers"]["activity_file"]["filename"] == str(log_file)
        assert config["loggers"]["tracker"]["handlers"] == ["console", "activity_file"]
