"""
charter_engines.normalizer -- Canonical parsing of any monetary representation.

Responsibility:
    Turn whatever a source record stores as an amount (absent, empty,
    int, float, Decimal, MonetaryAmount, or a free-form string such as
    "EUR 1.234,56") into one exact MonetaryAmount.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Leaf of the engine graph; every extractor normalizes through here.

Invariants enforced:
    - Totality: ``normalize_amount`` never raises. Absent, empty, NaN,
      infinite and unparseable inputs all yield exact zero.
    - No binary rounding: floats are read through their shortest repr,
      so ``1234.56`` becomes ``Decimal("1234.56")``.
    - String separator rules are fixed, because historically stored
      values were written under them:
        1. strip everything except digits, ``.``, ``,`` and ``-``;
        2. if both ``.`` and ``,`` occur, the later one is the decimal
           separator and the other is dropped as grouping;
        3. if only ``,`` occurs within the last three characters it is
           the decimal separator, otherwise every ``,`` is dropped.

Failure modes:
    - None raised. Unparseable strings log ``amount_unparseable`` at
      WARNING and degrade to zero.

Open question (left unresolved on purpose):
    An explicit zero and "no amount at all" both normalize to exact zero.
    Downstream fallbacks (legacy totals, agreed-price remainder) therefore
    cannot tell a recorded zero payment from missing data.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any

from charter_kernel.domain.values import MonetaryAmount, sum_amounts
from charter_kernel.logging_config import get_logger

logger = get_logger("engines.normalizer")

_NON_NUMERIC = re.compile(r"[^0-9.,\-]")


def clean_amount_text(text: str) -> str:
    """
    Apply the separator rules to a raw amount string.

    Returns the cleaned literal; it may still be unparseable
    (e.g. ``"-"``, ``"1.2.3"``).
    """
    cleaned = _NON_NUMERIC.sub("", text)

    last_dot = cleaned.rfind(".")
    last_comma = cleaned.rfind(",")

    if last_dot > -1 and last_comma > -1:
        if last_dot > last_comma:
            # 1,234.56
            return cleaned.replace(",", "")
        # 1.234,56
        return cleaned.replace(".", "").replace(",", ".", 1)

    if last_comma > -1:
        if last_comma > len(cleaned) - 4:
            return cleaned.replace(",", ".", 1)
        return cleaned.replace(",", "")

    return cleaned


def normalize_amount(raw: Any) -> MonetaryAmount:
    """
    Parse any representation of a monetary value into a MonetaryAmount.

    Postconditions:
        - Always returns a finite MonetaryAmount; exact zero for None,
          "", NaN, infinities, booleans, unsupported types and
          unparseable strings.
    """
    if raw is None:
        return MonetaryAmount.zero()

    if isinstance(raw, MonetaryAmount):
        return raw

    if isinstance(raw, bool):
        return MonetaryAmount.zero()

    if isinstance(raw, int):
        return MonetaryAmount(Decimal(raw))

    if isinstance(raw, float):
        if math.isnan(raw) or math.isinf(raw):
            return MonetaryAmount.zero()
        return MonetaryAmount(Decimal(repr(raw)))

    if isinstance(raw, Decimal):
        if not raw.is_finite():
            return MonetaryAmount.zero()
        return MonetaryAmount(raw)

    if isinstance(raw, str):
        if raw == "":
            return MonetaryAmount.zero()
        cleaned = clean_amount_text(raw)
        try:
            return MonetaryAmount(Decimal(cleaned))
        except (InvalidOperation, ValueError):
            logger.warning("amount_unparseable", extra={
                "raw_amount": raw,
                "cleaned_amount": cleaned,
            })
            return MonetaryAmount.zero()

    logger.debug("amount_unsupported_type", extra={
        "raw_type": type(raw).__name__,
    })
    return MonetaryAmount.zero()


def sum_normalized(*values: Any) -> MonetaryAmount:
    """Normalize each value and sum them exactly."""
    return sum_amounts(normalize_amount(v) for v in values)
