"""
charter_engines.formatting -- Locale- and currency-aware display strings.

Responsibility:
    Render MonetaryAmount values for the dashboard using CLDR data (Babel).
    The locale and ISO currency code travel in an explicit
    ``ReportPresentation`` value; there is no process-wide default state.

Invariants enforced:
    - Formatting reads an already-rounded Decimal; no float is involved.
    - Locale tags are accepted in BCP 47 (``en-US``) or POSIX (``en_US``) form.

Failure modes:
    - InvalidLocaleError / InvalidCurrencyError from
      ``ReportPresentation.validated()`` for unknown locale or currency.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext
from functools import lru_cache

from babel import Locale, UnknownLocaleError
from babel.numbers import UnknownCurrencyError, format_currency as babel_format_currency
from babel.numbers import validate_currency

from charter_kernel.domain.values import MonetaryAmount, exact_context
from charter_kernel.exceptions import InvalidCurrencyError, InvalidLocaleError
from charter_engines.rounding import CURRENCY, RoundingPreset

DEFAULT_LOCALE = "en-US"
DEFAULT_CURRENCY = "EUR"


@lru_cache(maxsize=64)
def _parse_locale(tag: str) -> Locale:
    return Locale.parse(tag.replace("-", "_"))


@dataclass(frozen=True)
class ReportPresentation:
    """Locale and currency used for display strings."""

    locale: str = DEFAULT_LOCALE
    currency: str = DEFAULT_CURRENCY

    def validated(self) -> ReportPresentation:
        """
        Return a copy with a normalized currency code after checking both fields.

        Raises:
            InvalidLocaleError: If the locale is unknown to CLDR.
            InvalidCurrencyError: If the currency is not a known ISO 4217 code.
        """
        if not isinstance(self.locale, str):
            raise InvalidLocaleError(str(self.locale))
        try:
            _parse_locale(self.locale)
        except (UnknownLocaleError, ValueError):
            raise InvalidLocaleError(self.locale) from None

        code = self.currency.strip().upper() if isinstance(self.currency, str) else ""
        try:
            validate_currency(code)
        except UnknownCurrencyError:
            raise InvalidCurrencyError(self.currency) from None

        return ReportPresentation(locale=self.locale, currency=code)


DEFAULT_PRESENTATION = ReportPresentation()


def format_currency(
    amount: MonetaryAmount,
    presentation: ReportPresentation = DEFAULT_PRESENTATION,
    preset: RoundingPreset = CURRENCY,
) -> str:
    """
    Format an amount with the presentation's locale and currency symbol.

    The fractional digits come from ``preset`` rather than the currency's
    own minor unit, so every currency context shows the same precision.
    """
    value = preset.apply(amount).value
    # Babel rounds through the active decimal context
    with localcontext(exact_context(value)):
        return babel_format_currency(
            value,
            presentation.currency,
            locale=_parse_locale(presentation.locale),
            currency_digits=False,
            decimal_quantization=False,
        )


def format_percent(value: Decimal, preset: RoundingPreset) -> str:
    """Fixed-point percentage text such as ``70.00%``."""
    return f"{preset.render(value)}%"
