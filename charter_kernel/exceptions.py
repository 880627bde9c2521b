"""
Typed exception hierarchy for the charter reconciliation kernel.

Every error has a typed class (catch by type, not message), a ``code``
class attribute (machine-readable, API-safe) and structured attributes
carrying its context.

Hierarchy:

    CharterKernelError (base)
    |
    +-- InputShapeError
    |
    +-- ConfigurationError
        +-- InvalidCurrencyError
        +-- InvalidLocaleError
        +-- InvalidRoundingPresetError
        +-- InvalidPartialPaymentPolicyError

Code reference:

Category        | Code                           | When Raised
----------------|--------------------------------|----------------------------------------
Input           | INPUT_SHAPE_VIOLATION          | A collection argument is not iterable
----------------|--------------------------------|----------------------------------------
Configuration   | INVALID_CONFIGURATION          | Settings file malformed or incomplete
                | INVALID_CURRENCY               | Not an ISO 4217 code known to CLDR
                | INVALID_LOCALE                 | Locale tag unknown to CLDR
                | INVALID_ROUNDING_PRESET        | Preset name not registered
                | INVALID_PARTIAL_PAYMENT_POLICY | Fraction outside [0, 1] or unknown kind

Malformed monetary data is NOT an error: the normalizer degrades it to
exact zero. Only a broken input-shape contract reaches the caller of a
reconciliation.

Handling pattern:

    try:
        report = service.reconcile(bookings=rows)
    except InputShapeError as e:
        api_response(code=e.code, argument=e.argument)
"""


class CharterKernelError(Exception):
    """
    Base exception for all charter kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "CHARTER_KERNEL_ERROR"


class InputShapeError(CharterKernelError):
    """A collection argument is not an iterable of records."""

    code: str = "INPUT_SHAPE_VIOLATION"

    def __init__(self, argument: str, received_type: str):
        self.argument = argument
        self.received_type = received_type
        super().__init__(
            f"Argument '{argument}' must be an iterable collection of records, "
            f"got {received_type}"
        )


# Configuration exceptions


class ConfigurationError(CharterKernelError):
    """Reconciliation settings could not be loaded or validated."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        super().__init__(message if source is None else f"{source}: {message}")


class InvalidCurrencyError(ConfigurationError):
    """Currency code is not a known ISO 4217 code."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: '{currency}'")


class InvalidLocaleError(ConfigurationError):
    """Locale tag is not known to the CLDR data."""

    code: str = "INVALID_LOCALE"

    def __init__(self, locale: str):
        self.locale = locale
        super().__init__(f"Unknown locale: '{locale}'")


class InvalidRoundingPresetError(ConfigurationError):
    """Rounding preset name is not registered."""

    code: str = "INVALID_ROUNDING_PRESET"

    def __init__(self, preset_name: str, known: tuple[str, ...] = ()):
        self.preset_name = preset_name
        self.known = known
        super().__init__(
            f"Unknown rounding preset '{preset_name}'"
            + (f" (known: {', '.join(known)})" if known else "")
        )


class InvalidPartialPaymentPolicyError(ConfigurationError):
    """Partial-payment estimation policy is misconfigured."""

    code: str = "INVALID_PARTIAL_PAYMENT_POLICY"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid partial payment policy: {reason}")
