"""
Canonical Model and Configuration Tests

1. TenancyRecord coercion (German decimals, defaults, clamping)
2. AMCode / AssetSummary / normalize_asset_ref
3. Settings from environment variables
"""

import math
from pathlib import Path

import pytest
from pydantic import ValidationError

from core.models import AMCode, AssetSummary, TenancyRecord, normalize_asset_ref
from core.models.canonical import parse_number


class TestParseNumber:
    """Number parsing shared by CSV and RPC boundaries."""

    @pytest.mark.parametrize("raw,expected", [
        ("1234", 1234.0),
        ("1234,5", 1234.5),
        ("1.234,5", 1234.5),
        ("1.234.567", 1234567.0),
        ("1,234.5", 1234.5),
        ("12.5", 12.5),
        ("4.125", 4.125),
        ("12.500", 12.5),
        ("1.234.567,5", 1234567.5),
        (" 42 ", 42.0),
        (7, 7.0),
        (2.5, 2.5),
    ])
    def test_parses(self, raw, expected):
        assert parse_number(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [None, "", "abc", "n/a", float("nan"), True, [1]])
    def test_unparseable(self, raw):
        assert parse_number(raw) is None


class TestTenancyRecord:
    """Record validation at the source boundary."""

    def test_defaults(self):
        record = TenancyRecord(asset_ref="AA1")
        assert record.tenant_name == ""
        assert record.space == 0.0
        assert record.rent == 0.0
        assert record.walt is None
        assert record.city is None
        assert record.am_code == ""

    def test_string_amounts(self):
        record = TenancyRecord(asset_ref="AA1", space="1.234,5", rent="5000", walt="2,5")
        assert record.space == 1234.5
        assert record.rent == 5000.0
        assert record.walt == 2.5

    def test_unparseable_amounts_become_zero(self):
        record = TenancyRecord(asset_ref="AA1", space="abc", rent=float("nan"))
        assert record.space == 0.0
        assert record.rent == 0.0
        assert not math.isnan(record.rent)

    def test_negative_values_clamped(self):
        record = TenancyRecord(asset_ref="AA1", space=-5, rent="-10", walt=-1.5)
        assert record.space == 0.0
        assert record.rent == 0.0
        assert record.walt == 0.0

    def test_unparseable_walt_is_absent(self):
        assert TenancyRecord(asset_ref="AA1", walt="soon").walt is None

    def test_blank_city_is_absent(self):
        assert TenancyRecord(asset_ref="AA1", city="   ").city is None
        assert TenancyRecord(asset_ref="AA1", city=" Berlin ").city == "Berlin"

    def test_am_alias_and_unknown_code(self):
        assert TenancyRecord(asset_ref="AA1", am="cfr").am_code == "CFR"
        assert TenancyRecord(asset_ref="AA1", am_code="BKO").am_code == "BKO"
        assert TenancyRecord(asset_ref="AA1", am="XYZ").am_code == ""
        assert TenancyRecord(asset_ref="AA1", am=None).am_code == ""

    def test_asset_ref_required(self):
        with pytest.raises(ValidationError):
            TenancyRecord(asset_ref="   ")
        with pytest.raises(ValidationError):
            TenancyRecord(tenant_name="Carrefour")

    def test_asset_ref_keeps_display_casing(self):
        record = TenancyRecord(asset_ref=" aa 1 ")
        assert record.asset_ref == "aa 1"
        assert record.asset_key == "AA1"

    def test_json_uses_am_alias(self):
        data = TenancyRecord(asset_ref="AA1", am="MSC").model_dump(by_alias=True)
        assert data["am"] == "MSC"
        assert "am_code" not in data

    def test_frozen(self):
        record = TenancyRecord(asset_ref="AA1")
        with pytest.raises(ValidationError):
            record.rent = 10


class TestSupportingModels:

    def test_am_code_values(self):
        assert AMCode.values() == {"CFR", "BKO", "FKE", "MSC", ""}
        assert AMCode.NONE.value == ""

    def test_asset_summary(self):
        summary = AssetSummary(reference_id=" AA1 ", gla="1.000,5", rent=None, walt="x")
        assert summary.reference_id == "AA1"
        assert summary.gla == 1000.5
        assert summary.rent == 0.0
        assert summary.walt is None

    @pytest.mark.parametrize("raw,expected", [
        ("aa1", "AA1"),
        (" A A 1 ", "AA1"),
        ("bb\t2\n", "BB2"),
        ("", ""),
        (None, ""),
    ])
    def test_normalize_asset_ref(self, raw, expected):
        assert normalize_asset_ref(raw) == expected


class TestSettings:
    """Environment-driven settings."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in [
            "ODOO_URL", "ODOO_DB", "ODOO_USER", "ODOO_API", "ODOO_PWD",
            "TENANCY_DATA_DIR", "TENANCY_COMMENTS_DB", "TENANCY_USERS_JSON",
            "TENANCY_LOG_JSON", "TENANCY_LOG_LEVEL", "TENANCY_RENT_HIGHLIGHT",
        ]:
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setattr("core.config.ENV_PATH", Path("/nonexistent/.env"))

    def test_defaults(self):
        from core.config import Settings, has_odoo_config

        settings = Settings.from_env()
        assert not has_odoo_config(settings)
        assert not settings.auth_enabled
        assert settings.thresholds.rent_highlight == 5.0
        assert settings.tenant_map_path.name == "tenant_map.json"

    def test_odoo_api_key_preferred(self, monkeypatch):
        from core.config import Settings, has_odoo_config

        monkeypatch.setenv("ODOO_URL", "https://odoo.example.com/")
        monkeypatch.setenv("ODOO_DB", "prod")
        monkeypatch.setenv("ODOO_USER", "bot")
        monkeypatch.setenv("ODOO_API", "key")
        monkeypatch.setenv("ODOO_PWD", "password")

        settings = Settings.from_env()
        assert has_odoo_config(settings)
        assert settings.odoo_url == "https://odoo.example.com"
        assert settings.odoo_password == "key"

    def test_users_and_overrides(self, monkeypatch, tmp_path):
        from core.config import Settings

        monkeypatch.setenv("TENANCY_USERS_JSON", '[{"u": "anna", "p": "secret"}, {"u": "no-password"}]')
        monkeypatch.setenv("TENANCY_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("TENANCY_RENT_HIGHLIGHT", "10")

        settings = Settings.from_env()
        assert settings.users == (("anna", "secret"),)
        assert settings.data_dir == tmp_path
        assert settings.thresholds.rent_highlight == 10.0

    def test_invalid_users_json_disables_auth(self):
        from core.config import parse_users

        assert parse_users("{broken") == []
        assert parse_users('{"u": "x"}') == []
        assert parse_users("") == []
