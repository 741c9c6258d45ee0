"""Exception hierarchy for vitaltrack.

- NumericError: exact rational parsing and arithmetic failures
- ClientError: rejected user input, always naming the offending key and raw value
- ConfigError: invalid configuration values
- CorruptedDataError: stored data that no longer parses (fatal for the request)

Every exception carries a human-readable ``detail`` and keyword ``context`` that
``to_dict()`` turns into a structured error report.
"""

from typing import Any


class VitalTrackError(Exception):
    """Base exception for all vitaltrack errors."""

    detail: str = "An unexpected error occurred"

    def __init__(self, detail: str | None = None, **kwargs: Any):
        self.detail = detail or self.__class__.detail
        self.context = kwargs
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured reporting."""
        result: dict[str, Any] = {"error": type(self).__name__, "detail": self.detail}
        if self.context:
            result["context"] = {key: str(value) for key, value in self.context.items()}
        return result


# ============== NUMERIC ERRORS ==============


class NumericError(VitalTrackError):
    """Base exception for exact rational failures."""

    detail = "Numeric error"


class MalformedDecimalError(NumericError, ValueError):
    """Raised when a decimal string does not follow the accepted grammar."""

    detail = "Malformed decimal"

    def __init__(self, reason: str, text: str = "", **kwargs: Any):
        self.reason = reason
        self.text = text
        super().__init__(f"malformed decimal {text!r}: {reason}", text=text, **kwargs)


class RationalOverflowError(NumericError, OverflowError):
    """Raised when a result does not fit the bounded numerator/denominator range."""

    detail = "Rational overflow"


class RationalDivisionByZeroError(NumericError, ZeroDivisionError):
    """Raised when dividing by an exact zero."""

    detail = "Division by zero"


# ============== CLIENT ERRORS ==============


class ClientError(VitalTrackError):
    """Raised when submitted input is rejected.

    The caller should re-prompt; these errors are never retried automatically.
    """

    detail = "Invalid input"

    def __init__(self, detail: str, key: str, value: Any = None, **kwargs: Any):
        self.key = key
        self.value = value
        super().__init__(detail, key=key, value=value, **kwargs)


class MissingValueError(ClientError):
    """Raised when a required key is absent."""

    def __init__(self, key: str):
        super().__init__(f"missing value for key: {key}", key=key)


class InvalidIntegerError(ClientError):
    """Raised when a value cannot be parsed as an integer."""

    def __init__(self, key: str, value: str):
        super().__init__(
            f"failed to parse value {value!r} for key {key!r} as integer", key=key, value=value
        )


class InvalidRationalError(ClientError):
    """Raised when a value cannot be parsed or computed as an exact rational."""

    def __init__(self, key: str, value: str, reason: str):
        self.reason = reason
        super().__init__(
            f"failed to parse value {value!r} for key {key!r} as a rational number: {reason}",
            key=key,
            value=value,
        )


class NegativeValueError(ClientError):
    """Raised when a measurement value is negative."""

    def __init__(self, key: str, value: Any):
        super().__init__(f"value {value} for key {key!r} is negative", key=key, value=value)


class ValueTooHighError(ClientError):
    """Raised when a value exceeds its ceiling."""

    def __init__(self, key: str, value: Any, maximum: Any):
        self.maximum = maximum
        super().__init__(
            f"value {value} for key {key!r} is too high (> {maximum})",
            key=key,
            value=value,
            maximum=maximum,
        )


class ValueTooLowError(ClientError):
    """Raised when a value is below its floor."""

    def __init__(self, key: str, value: Any, minimum: Any):
        self.minimum = minimum
        super().__init__(
            f"value {value} for key {key!r} is too low (< {minimum})",
            key=key,
            value=value,
            minimum=minimum,
        )


class InvalidOptionError(ClientError):
    """Raised when a value is not one of the accepted options."""

    def __init__(self, key: str, value: str, valid_options: list[str]):
        self.valid_options = list(valid_options)
        super().__init__(
            f"value {value} for key {key!r} is not a valid option; "
            f"valid options are {self.valid_options}",
            key=key,
            value=value,
            valid_options=", ".join(self.valid_options),
        )


class UnknownReferenceError(ClientError):
    """Raised when a value refers to a row that does not exist."""

    def __init__(self, key: str, value: Any):
        super().__init__(f"value {value} for key {key!r} refers to nothing", key=key, value=value)


class ReferenceInUseError(ClientError):
    """Raised when removing a row that other rows still refer to."""

    def __init__(self, key: str, value: Any):
        super().__init__(
            f"value {value} for key {key!r} is still referred to by measurements",
            key=key,
            value=value,
        )


# ============== CONFIGURATION & STORAGE ==============


class ConfigError(VitalTrackError):
    """Raised when configuration values are invalid."""

    detail = "Invalid configuration"


class CorruptedDataError(VitalTrackError):
    """Raised when stored data cannot be read back as a valid measurement."""

    detail = "Stored data is corrupted"
