"""
charter_config -- single public entrypoint for reconciliation settings.

Responsibility:
    Provides the one way to obtain settings at runtime through
    ``get_reconciliation_settings()``. Services never read settings files
    themselves; they receive a validated ``ReconciliationSettings``.

Architecture position:
    Configuration -- sits above ``charter_engines`` and below
    ``charter_services``. Engines MUST NEVER import from ``charter_config``;
    ``charter_config.bridges`` translates settings into engine objects.

Invariants enforced:
    - Single entrypoint: all runtime settings flow through
      ``get_reconciliation_settings()``.
    - Load-time validation: locale, currency, preset names and the
      partial-payment fraction are checked before settings are returned.
    - Deterministic checksum: the same YAML always yields the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- the settings file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ConfigurationError`` (and subclasses) -- structure or value errors.

Audit relevance:
    Every successful load emits a ``CHARTER_CONFIG_TRACE`` log entry with
    the settings id, version and checksum, tying each report to the
    settings that shaped it.
"""

from __future__ import annotations

from pathlib import Path

from charter_config.loader import load_yaml_file, parse_settings, validate_settings
from charter_config.schema import ReconciliationSettings
from charter_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "settings" / "default.yaml"


def get_reconciliation_settings(path: Path | str | None = None) -> ReconciliationSettings:
    """The ONLY public settings entrypoint.

    Args:
        path: YAML settings file. Defaults to the packaged
            ``settings/default.yaml``.

    Returns:
        Validated, frozen ReconciliationSettings.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ConfigurationError: If structure or values are invalid.
    """
    settings_path = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
    data = load_yaml_file(settings_path)
    settings = validate_settings(parse_settings(data, source=str(settings_path)))

    _logger.info(
        "CHARTER_CONFIG_TRACE",
        extra={
            "trace_type": "CHARTER_CONFIG_TRACE",
            "settings_id": settings.settings_id,
            "settings_version": settings.version,
            "checksum": settings.checksum,
            "locale": settings.presentation.locale,
            "currency": settings.presentation.currency,
            "partial_payment_fraction": settings.partial_payment.fraction,
            "percent_change_preset": settings.rounding.percent_change,
        },
    )
    return settings


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "ReconciliationSettings",
    "get_reconciliation_settings",
]
