"""
Reconciliation settings schema.

Frozen dataclasses that YAML settings files are parsed into by the
loader. Values are kept as authored (strings for the fraction and preset
names); ``charter_config.bridges`` turns them into engine objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PresentationDef:
    """Locale and ISO 4217 currency used for display strings."""

    locale: str = "en-US"
    currency: str = "EUR"


@dataclass(frozen=True)
class PartialPaymentDef:
    """Fraction of a partially-paid total treated as received."""

    fraction: str = "0.5"


@dataclass(frozen=True)
class RoundingDef:
    percent_change: str = "percent_change_one_place"


@dataclass(frozen=True)
class ReconciliationSettings:
    """Validated settings for one deployment of the reconciliation engine."""

    settings_id: str = "charter-default"
    version: int = 1
    presentation: PresentationDef = field(default_factory=PresentationDef)
    partial_payment: PartialPaymentDef = field(default_factory=PartialPaymentDef)
    rounding: RoundingDef = field(default_factory=RoundingDef)
    checksum: str = ""
