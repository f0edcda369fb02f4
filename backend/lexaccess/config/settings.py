"""
Access policy configuration loader.

Loads engine settings from config/access_policy.yml and applies environment
overrides. The resulting AccessPolicySettings value is passed explicitly to
the evaluator and the usage audit logger; nothing in the engine reads
configuration on its own.

Environment overrides (take precedence over the YAML file):
  REPORT_GRACE_DAYS / LEXACCESS_REPORT_GRACE_DAYS
  LEXACCESS_SEAT_CHECKS_ENABLED
  LEXACCESS_USAGE_THROTTLE_WINDOW_SECONDS
  LEXACCESS_DEFAULT_COUNTRY_CODE
  LEXACCESS_INDIVIDUAL_PURCHASE_PURPOSE

Usage:
    from lexaccess.config.settings import get_access_policy_loader

    settings = get_access_policy_loader().settings
    evaluator = AccessPolicyEvaluator(store, tax_calculator, settings)
"""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Mapping, Optional

import yaml

from lexaccess.models.usage import IP_ADDRESS_MAX_LENGTH, USER_AGENT_MAX_LENGTH
from lexaccess.tax.calculator import PUBLIC_DOCUMENT_PURCHASE_PURPOSE

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "access_policy.yml"
MAX_GRACE_DAYS = 365
DEFAULT_THROTTLE_WINDOW_SECONDS = 180

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


@dataclass(frozen=True)
class AccessPolicySettings:
    """
    Engine settings.

    report_grace_days is always within 0..365; column limits never exceed the
    usage_events column sizes.
    """
    report_grace_days: int = 0
    seat_checks_enabled: bool = True
    usage_throttle_window_seconds: int = DEFAULT_THROTTLE_WINDOW_SECONDS
    usage_ip_max_length: int = IP_ADDRESS_MAX_LENGTH
    usage_user_agent_max_length: int = USER_AGENT_MAX_LENGTH
    individual_purchase_purpose: str = PUBLIC_DOCUMENT_PURCHASE_PURPOSE
    default_country_code: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "report_grace_days", _clamp(int(self.report_grace_days), 0, MAX_GRACE_DAYS))
        object.__setattr__(self, "usage_throttle_window_seconds", abs(int(self.usage_throttle_window_seconds)))
        object.__setattr__(
            self, "usage_ip_max_length",
            _clamp(int(self.usage_ip_max_length), 1, IP_ADDRESS_MAX_LENGTH),
        )
        object.__setattr__(
            self, "usage_user_agent_max_length",
            _clamp(int(self.usage_user_agent_max_length), 1, USER_AGENT_MAX_LENGTH),
        )
        if self.default_country_code is not None:
            code = str(self.default_country_code).strip().upper()
            object.__setattr__(self, "default_country_code", code or None)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "AccessPolicySettings":
        """Build from a parsed YAML mapping. Unknown keys are ignored."""
        known = {f for f in cls.__dataclass_fields__}
        values = {k: v for k, v in (raw or {}).items() if k in known and v is not None}
        unknown = sorted(set(raw or {}) - known)
        if unknown:
            logger.warning("config.unknown_keys", extra={"keys": unknown})
        return cls(**values)

    @classmethod
    def from_yaml(cls, path) -> "AccessPolicySettings":
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}
        return cls.from_mapping(raw.get("access_policy", raw))

    def with_env_overrides(self, environ: Optional[Mapping[str, str]] = None) -> "AccessPolicySettings":
        environ = os.environ if environ is None else environ
        changes: Dict[str, Any] = {}

        grace = environ.get("LEXACCESS_REPORT_GRACE_DAYS", environ.get("REPORT_GRACE_DAYS"))
        if grace is not None:
            parsed = _parse_int("REPORT_GRACE_DAYS", grace)
            if parsed is not None:
                changes["report_grace_days"] = parsed

        window = environ.get("LEXACCESS_USAGE_THROTTLE_WINDOW_SECONDS")
        if window is not None:
            parsed = _parse_int("LEXACCESS_USAGE_THROTTLE_WINDOW_SECONDS", window)
            if parsed is not None:
                changes["usage_throttle_window_seconds"] = parsed

        seats = environ.get("LEXACCESS_SEAT_CHECKS_ENABLED")
        if seats is not None:
            flag = seats.strip().lower()
            if flag in _TRUE_VALUES:
                changes["seat_checks_enabled"] = True
            elif flag in _FALSE_VALUES:
                changes["seat_checks_enabled"] = False
            else:
                logger.warning(
                    "config.invalid_env_value",
                    extra={"variable": "LEXACCESS_SEAT_CHECKS_ENABLED", "value": seats},
                )

        country = environ.get("LEXACCESS_DEFAULT_COUNTRY_CODE")
        if country is not None:
            changes["default_country_code"] = country or None

        purpose = environ.get("LEXACCESS_INDIVIDUAL_PURCHASE_PURPOSE")
        if purpose:
            changes["individual_purchase_purpose"] = purpose

        return replace(self, **changes) if changes else self


def _parse_int(variable: str, raw: str) -> Optional[int]:
    try:
        return int(str(raw).strip())
    except ValueError:
        logger.warning("config.invalid_env_value", extra={"variable": variable, "value": raw})
        return None


class AccessPolicyLoader:
    """
    Thread-safe singleton loader for config/access_policy.yml.

    When no file is found the defaults apply (still with env overrides).
    """

    _instance: Optional["AccessPolicyLoader"] = None
    _lock = Lock()

    def __new__(cls, config_path: Optional[str] = None):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None):
        if self._initialized:
            return

        self._config_path = config_path
        self._settings = AccessPolicySettings()
        self._load_lock = Lock()

        self._load()
        self._initialized = True

    def _resolve_path(self) -> Optional[Path]:
        if self._config_path:
            path = Path(self._config_path)
            if not path.exists():
                raise FileNotFoundError(f"{CONFIG_FILENAME} not found at {path}")
            return path

        candidates = [
            # From backend/ directory (typical working dir)
            Path(__file__).parent.parent.parent.parent / "config" / CONFIG_FILENAME,
            Path(os.getcwd()) / "config" / CONFIG_FILENAME,
            Path(os.getcwd()) / ".." / "config" / CONFIG_FILENAME,
        ]
        for p in candidates:
            resolved = p.resolve()
            if resolved.exists():
                return resolved
        return None

    def _load(self) -> None:
        with self._load_lock:
            path = self._resolve_path()
            if path is None:
                logger.info("No %s found, using default access policy settings", CONFIG_FILENAME)
                base = AccessPolicySettings()
            else:
                logger.info("Loading access policy config from %s", path)
                base = AccessPolicySettings.from_yaml(path)
            self._settings = base.with_env_overrides()

    def reload(self) -> None:
        """Re-read the YAML and environment."""
        self._load()

    @property
    def settings(self) -> AccessPolicySettings:
        return self._settings


def get_access_policy_loader(config_path: Optional[str] = None) -> AccessPolicyLoader:
    """Return the singleton AccessPolicyLoader."""
    return AccessPolicyLoader(config_path)


def reset_access_policy_loader() -> None:
    """Reset singleton (for tests only)."""
    AccessPolicyLoader._instance = None
