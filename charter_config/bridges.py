"""
Config -> Engine Bridges.

Functions that convert ReconciliationSettings into engine objects. These
live in charter_config (the producer) because the engines must never
import charter_config.

Usage:
    from charter_config.bridges import build_presentation, build_partial_payment_policy

    settings = get_reconciliation_settings()
    presentation = build_presentation(settings)
    policy = build_partial_payment_policy(settings)
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from charter_config.schema import ReconciliationSettings
from charter_engines.formatting import ReportPresentation
from charter_engines.partial_payment import FixedFractionPolicy
from charter_engines.rounding import RoundingPreset, preset_by_name
from charter_kernel.exceptions import InvalidPartialPaymentPolicyError


def build_presentation(settings: ReconciliationSettings) -> ReportPresentation:
    """
    Validated ReportPresentation for the configured locale and currency.

    Raises:
        InvalidLocaleError: If the locale is unknown to CLDR.
        InvalidCurrencyError: If the currency is not ISO 4217.
    """
    return ReportPresentation(
        locale=settings.presentation.locale,
        currency=settings.presentation.currency,
    ).validated()


def build_partial_payment_policy(settings: ReconciliationSettings) -> FixedFractionPolicy:
    """
    Fixed-fraction policy from the configured fraction text.

    Raises:
        InvalidPartialPaymentPolicyError: If the fraction is not a number
            within [0, 1].
    """
    raw = settings.partial_payment.fraction
    try:
        fraction = Decimal(raw)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidPartialPaymentPolicyError(f"fraction is not a number: {raw!r}") from None
    return FixedFractionPolicy(fraction)


def resolve_percent_change_preset(settings: ReconciliationSettings) -> RoundingPreset:
    """
    Raises:
        InvalidRoundingPresetError: If the preset name is not registered.
    """
    return preset_by_name(settings.rounding.percent_change)
