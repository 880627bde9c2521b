"""
Settings Loader (``charter_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the frozen
``charter_config.schema`` dataclasses. Runtime callers use
``charter_config.get_reconciliation_settings()`` instead of this module.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Sections left out of the file take their documented defaults; keys that
  are present must have the right type.
* ``validate_settings`` builds every engine object once, so a settings
  value that would fail at reconciliation time fails at load time.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  parsed document.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong structure or types  -> ``ConfigurationError``.
* Unknown locale, currency, preset or an out-of-range fraction  ->
  the matching ``ConfigurationError`` subclass.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from charter_config.bridges import (
    build_partial_payment_policy,
    build_presentation,
    resolve_percent_change_preset,
)
from charter_config.schema import (
    PartialPaymentDef,
    PresentationDef,
    ReconciliationSettings,
    RoundingDef,
)
from charter_kernel.exceptions import ConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Preconditions:
        - ``path`` must point to an existing, readable YAML file.
    Postconditions:
        - Returns a ``dict`` (empty if the YAML document is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"settings document must be a mapping, got {type(data).__name__}",
            source=str(path),
        )
    return data


def _section(data: dict[str, Any], key: str, source: str | None) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{key}' must be a mapping", source=source)
    return value


def _string(section: dict[str, Any], key: str, default: str, source: str | None) -> str:
    value = section.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"'{key}' must be a non-empty string", source=source)
    return value.strip()


def parse_presentation(data: dict[str, Any], source: str | None = None) -> PresentationDef:
    """Parse the ``presentation`` section."""
    defaults = PresentationDef()
    return PresentationDef(
        locale=_string(data, "locale", defaults.locale, source),
        currency=_string(data, "currency", defaults.currency, source),
    )


def parse_partial_payment(data: dict[str, Any], source: str | None = None) -> PartialPaymentDef:
    """
    Parse the ``partial_payment`` section.

    The fraction may be written as a quoted string or a YAML number; a
    number is kept as its decimal text, never as a binary float.
    """
    value = data.get("fraction", PartialPaymentDef().fraction)
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ConfigurationError("'fraction' must be a number", source=source)
    return PartialPaymentDef(fraction=str(value).strip())


def parse_rounding(data: dict[str, Any], source: str | None = None) -> RoundingDef:
    """Parse the ``rounding`` section."""
    return RoundingDef(
        percent_change=_string(data, "percent_change", RoundingDef().percent_change, source),
    )


def parse_settings(data: dict[str, Any], source: str | None = None) -> ReconciliationSettings:
    """
    Parse a whole settings document.

    Postconditions:
        - Returns a frozen ``ReconciliationSettings`` whose ``checksum``
          is ``compute_checksum(data)``.
    Raises:
        ConfigurationError: on wrong structure or types.
    """
    defaults = ReconciliationSettings()
    version = data.get("version", defaults.version)
    if isinstance(version, bool) or not isinstance(version, int):
        raise ConfigurationError("'version' must be an integer", source=source)

    return ReconciliationSettings(
        settings_id=_string(data, "settings_id", defaults.settings_id, source),
        version=version,
        presentation=parse_presentation(_section(data, "presentation", source), source),
        partial_payment=parse_partial_payment(_section(data, "partial_payment", source), source),
        rounding=parse_rounding(_section(data, "rounding", source), source),
        checksum=compute_checksum(data),
    )


def validate_settings(settings: ReconciliationSettings) -> ReconciliationSettings:
    """
    Check every value by building the engine objects it configures.

    Returns the settings with the currency code normalized to upper case.
    """
    presentation = build_presentation(settings)
    build_partial_payment_policy(settings)
    resolve_percent_change_preset(settings)
    return replace(
        settings,
        presentation=replace(settings.presentation, currency=presentation.currency),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
