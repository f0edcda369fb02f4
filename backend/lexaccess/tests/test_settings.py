"""
Tests for access policy settings.

Validates:
- Defaults and clamping (grace days, column limits)
- YAML loading through PyYAML
- Environment overrides
- Singleton loader lifecycle
"""

from dataclasses import FrozenInstanceError

import pytest

from lexaccess.config.settings import (
    AccessPolicySettings,
    get_access_policy_loader,
    reset_access_policy_loader,
)


@pytest.fixture(autouse=True)
def _fresh_loader(monkeypatch):
    for var in (
        "REPORT_GRACE_DAYS",
        "LEXACCESS_REPORT_GRACE_DAYS",
        "LEXACCESS_SEAT_CHECKS_ENABLED",
        "LEXACCESS_USAGE_THROTTLE_WINDOW_SECONDS",
        "LEXACCESS_DEFAULT_COUNTRY_CODE",
        "LEXACCESS_INDIVIDUAL_PURCHASE_PURPOSE",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_access_policy_loader()
    yield
    reset_access_policy_loader()


class TestDefaults:

    def test_defaults(self):
        s = AccessPolicySettings()
        assert s.report_grace_days == 0
        assert s.seat_checks_enabled is True
        assert s.usage_throttle_window_seconds == 180
        assert s.usage_ip_max_length == 64
        assert s.usage_user_agent_max_length == 400
        assert s.individual_purchase_purpose == "PublicLegalDocumentPurchase"
        assert s.default_country_code is None

    @pytest.mark.parametrize("raw,expected", [(-5, 0), (0, 0), (14, 14), (365, 365), (1000, 365)])
    def test_grace_days_clamped(self, raw, expected):
        assert AccessPolicySettings(report_grace_days=raw).report_grace_days == expected

    def test_column_limits_capped(self):
        s = AccessPolicySettings(usage_ip_max_length=500, usage_user_agent_max_length=5000)
        assert s.usage_ip_max_length == 64
        assert s.usage_user_agent_max_length == 400

    def test_country_normalized(self):
        assert AccessPolicySettings(default_country_code=" ke ").default_country_code == "KE"
        assert AccessPolicySettings(default_country_code="  ").default_country_code is None

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            AccessPolicySettings().report_grace_days = 3


class TestYaml:

    def test_from_yaml_section(self, make_yaml_config):
        path = make_yaml_config("access_policy.yml", {
            "version": 1,
            "access_policy": {
                "report_grace_days": 7,
                "seat_checks_enabled": False,
                "default_country_code": "ke",
            },
        })
        s = AccessPolicySettings.from_yaml(path)
        assert s.report_grace_days == 7
        assert s.seat_checks_enabled is False
        assert s.default_country_code == "KE"

    def test_unknown_keys_ignored(self, make_yaml_config):
        path = make_yaml_config("access_policy.yml", {"access_policy": {"colour": "blue"}})
        assert AccessPolicySettings.from_yaml(path) == AccessPolicySettings()

    def test_empty_file(self, temp_config_dir):
        path = temp_config_dir / "access_policy.yml"
        path.write_text("")
        assert AccessPolicySettings.from_yaml(path) == AccessPolicySettings()


class TestEnvOverrides:

    def test_report_grace_days_env(self):
        s = AccessPolicySettings().with_env_overrides({"REPORT_GRACE_DAYS": "30"})
        assert s.report_grace_days == 30

    def test_prefixed_grace_days_wins(self):
        s = AccessPolicySettings().with_env_overrides({
            "REPORT_GRACE_DAYS": "30",
            "LEXACCESS_REPORT_GRACE_DAYS": "3",
        })
        assert s.report_grace_days == 3

    def test_env_grace_days_clamped(self):
        s = AccessPolicySettings().with_env_overrides({"REPORT_GRACE_DAYS": "9999"})
        assert s.report_grace_days == 365

    def test_invalid_int_ignored(self):
        s = AccessPolicySettings(report_grace_days=4).with_env_overrides({"REPORT_GRACE_DAYS": "soon"})
        assert s.report_grace_days == 4

    @pytest.mark.parametrize("raw,expected", [("false", False), ("0", False), ("YES", True), ("maybe", True)])
    def test_seat_checks_flag(self, raw, expected):
        s = AccessPolicySettings().with_env_overrides({"LEXACCESS_SEAT_CHECKS_ENABLED": raw})
        assert s.seat_checks_enabled is expected

    def test_other_overrides(self):
        s = AccessPolicySettings().with_env_overrides({
            "LEXACCESS_USAGE_THROTTLE_WINDOW_SECONDS": "60",
            "LEXACCESS_DEFAULT_COUNTRY_CODE": "ug",
            "LEXACCESS_INDIVIDUAL_PURCHASE_PURPOSE": "ReportPurchase",
        })
        assert s.usage_throttle_window_seconds == 60
        assert s.default_country_code == "UG"
        assert s.individual_purchase_purpose == "ReportPurchase"

    def test_no_overrides_returns_same_value(self):
        s = AccessPolicySettings(report_grace_days=2)
        assert s.with_env_overrides({}) is s


class TestLoader:

    def test_loads_file_and_env(self, make_yaml_config, monkeypatch):
        path = make_yaml_config("access_policy.yml", {"access_policy": {"report_grace_days": 10}})
        monkeypatch.setenv("LEXACCESS_SEAT_CHECKS_ENABLED", "off")

        settings = get_access_policy_loader(str(path)).settings
        assert settings.report_grace_days == 10
        assert settings.seat_checks_enabled is False

    def test_singleton(self, make_yaml_config):
        path = make_yaml_config("access_policy.yml", {"access_policy": {}})
        assert get_access_policy_loader(str(path)) is get_access_policy_loader()

    def test_reload_picks_up_changes(self, make_yaml_config, monkeypatch):
        path = make_yaml_config("access_policy.yml", {"access_policy": {"report_grace_days": 1}})
        loader = get_access_policy_loader(str(path))
        assert loader.settings.report_grace_days == 1

        monkeypatch.setenv("REPORT_GRACE_DAYS", "5")
        loader.reload()
        assert loader.settings.report_grace_days == 5

    def test_missing_explicit_path_raises(self, temp_config_dir):
        with pytest.raises(FileNotFoundError):
            get_access_policy_loader(str(temp_config_dir / "nope.yml"))
