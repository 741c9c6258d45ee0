"""Exact rational values for physiological quantities.

Every stored or aggregated quantity (body mass, temperature, blood sugar, averages)
is kept as a fraction in lowest terms so that unit conversions and storage
round-trips never lose precision. Numerator and denominator are bounded to the
signed 32-bit range; arithmetic that would leave that range raises instead of
wrapping around.
"""

from __future__ import annotations

import re
from functools import total_ordering
from math import gcd

from vitaltrack.errors import (
    MalformedDecimalError,
    RationalDivisionByZeroError,
    RationalOverflowError,
)

RATIONAL_MIN = -(2**31)
RATIONAL_MAX = 2**31 - 1

_FRACTION_RE = re.compile(r"^\s*([+-]?\d+)\s*/\s*(\d+)\s*$", re.ASCII)


def _as_pair(value: object) -> tuple[int, int] | None:
    """Numerator/denominator of a Rational or plain int, None for anything else."""
    if isinstance(value, Rational):
        return value.numerator, value.denominator
    if isinstance(value, int) and not isinstance(value, bool):
        return value, 1
    return None


@total_ordering
class Rational:
    """Signed fraction kept in lowest terms with a positive denominator."""

    __slots__ = ("_numerator", "_denominator")

    def __init__(self, numerator: int, denominator: int = 1):
        self._numerator, self._denominator = self._reduce(numerator, denominator, "construction")

    @staticmethod
    def _reduce(numerator: int, denominator: int, operation: str) -> tuple[int, int]:
        if denominator == 0:
            raise RationalDivisionByZeroError(
                f"{operation} produced a zero denominator", numerator=numerator
            )
        if denominator < 0:
            numerator, denominator = -numerator, -denominator
        divisor = gcd(numerator, denominator)
        numerator //= divisor
        denominator //= divisor
        if not RATIONAL_MIN <= numerator <= RATIONAL_MAX or denominator > RATIONAL_MAX:
            raise RationalOverflowError(
                f"{operation} overflows the bounded rational range",
                numerator=numerator,
                denominator=denominator,
            )
        return numerator, denominator

    @classmethod
    def _from_operation(cls, numerator: int, denominator: int, operation: str) -> Rational:
        result = cls.__new__(cls)
        result._numerator, result._denominator = cls._reduce(numerator, denominator, operation)
        return result

    @property
    def numerator(self) -> int:
        return self._numerator

    @property
    def denominator(self) -> int:
        return self._denominator

    # ============== PARSING ==============

    @classmethod
    def parse(cls, text: str) -> Rational:
        """Parse a decimal string such as ``"-12.34"`` without rounding.

        Accepts an optional sign, digits, and at most one decimal point followed
        by more digits. The fractional digits set the scale (10 ** digits).

        Args:
            text: Decimal string

        Returns:
            Value reduced to lowest terms

        Raises:
            MalformedDecimalError: If the text does not follow the grammar or the
                implied scale or value does not fit the bounded range.
        """
        if not text:
            raise MalformedDecimalError("empty string", text=text)

        body = text
        negative = False
        if body[0] in "+-":
            negative = body[0] == "-"
            body = body[1:]

        if body.count(".") > 1:
            raise MalformedDecimalError("more than one decimal point", text=text)

        whole, point, fraction = body.partition(".")
        if not whole and not fraction:
            raise MalformedDecimalError("no digits", text=text)
        for part in (whole, fraction):
            # isdigit() alone would accept superscripts and other non-ASCII digits
            if part and not (part.isascii() and part.isdigit()):
                raise MalformedDecimalError("invalid character", text=text)
        if not whole:
            raise MalformedDecimalError("no digits before decimal point", text=text)
        if point and not fraction:
            raise MalformedDecimalError("no digits after decimal point", text=text)

        scale = 10 ** len(fraction)
        if scale > RATIONAL_MAX:
            raise MalformedDecimalError("too many fractional digits", text=text)

        numerator = int(whole) * scale + int(fraction or "0")
        if negative:
            numerator = -numerator

        try:
            return cls(numerator, scale)
        except RationalOverflowError as e:
            raise MalformedDecimalError("value out of range", text=text) from e

    @classmethod
    def from_string(cls, text: str) -> Rational:
        """Parse either an exact fraction (``"50/9"``) or a decimal string."""
        match = _FRACTION_RE.match(text)
        if match is None:
            return cls.parse(text.strip())
        try:
            return cls(int(match.group(1)), int(match.group(2)))
        except (RationalOverflowError, RationalDivisionByZeroError) as e:
            raise MalformedDecimalError("fraction out of range", text=text) from e

    # ============== FORMATTING ==============

    @property
    def is_terminating(self) -> bool:
        """True if the value has a finite decimal expansion."""
        denominator = self._denominator
        for prime in (2, 5):
            while denominator % prime == 0:
                denominator //= prime
        return denominator == 1

    def to_decimal_string(self, places: int = 3) -> str:
        """Render as a decimal string.

        Exact when the denominator only has the prime factors 2 and 5. Otherwise
        rounded half away from zero to ``places`` digits, which is for display only.
        """
        magnitude = abs(self._numerator)

        if self.is_terminating:
            digits = 0
            while (10**digits) % self._denominator != 0:
                digits += 1
        else:
            digits = places

        scale = 10**digits
        scaled, remainder = divmod(magnitude * scale, self._denominator)
        if remainder * 2 >= self._denominator:
            scaled += 1
        sign = "-" if self._numerator < 0 and scaled != 0 else ""

        whole, fraction = divmod(scaled, scale)
        if digits == 0:
            return f"{sign}{whole}"
        return f"{sign}{whole}.{fraction:0{digits}d}"

    def to_json(self) -> list[int]:
        """Exact ``[numerator, denominator]`` pair for JSON serialization."""
        return [self._numerator, self._denominator]

    def __str__(self) -> str:
        if self._denominator == 1:
            return str(self._numerator)
        return f"{self._numerator}/{self._denominator}"

    def __repr__(self) -> str:
        return f"Rational({self._numerator}, {self._denominator})"

    def __float__(self) -> float:
        return self._numerator / self._denominator

    def __bool__(self) -> bool:
        return self._numerator != 0

    def __hash__(self) -> int:
        if self._denominator == 1:
            return hash(self._numerator)
        return hash((self._numerator, self._denominator))

    # ============== COMPARISON ==============

    def __eq__(self, other: object) -> bool:
        pair = _as_pair(other)
        if pair is None:
            return NotImplemented
        return self._numerator * pair[1] == pair[0] * self._denominator

    def __lt__(self, other: object) -> bool:
        pair = _as_pair(other)
        if pair is None:
            return NotImplemented
        return self._numerator * pair[1] < pair[0] * self._denominator

    # ============== ARITHMETIC ==============

    def __add__(self, other: Rational | int) -> Rational:
        pair = _as_pair(other)
        if pair is None:
            return NotImplemented
        return Rational._from_operation(
            self._numerator * pair[1] + pair[0] * self._denominator,
            self._denominator * pair[1],
            "addition",
        )

    __radd__ = __add__

    def __sub__(self, other: Rational | int) -> Rational:
        pair = _as_pair(other)
        if pair is None:
            return NotImplemented
        return Rational._from_operation(
            self._numerator * pair[1] - pair[0] * self._denominator,
            self._denominator * pair[1],
            "subtraction",
        )

    def __rsub__(self, other: int) -> Rational:
        pair = _as_pair(other)
        if pair is None:
            return NotImplemented
        return Rational._from_operation(
            pair[0] * self._denominator - self._numerator * pair[1],
            self._denominator * pair[1],
            "subtraction",
        )

    def __mul__(self, other: Rational | int) -> Rational:
        pair = _as_pair(other)
        if pair is None:
            return NotImplemented
        return Rational._from_operation(
            self._numerator * pair[0],
            self._denominator * pair[1],
            "multiplication",
        )

    __rmul__ = __mul__

    def __truediv__(self, other: Rational | int) -> Rational:
        pair = _as_pair(other)
        if pair is None:
            return NotImplemented
        if pair[0] == 0:
            raise RationalDivisionByZeroError(f"division of {self} by zero", dividend=str(self))
        return Rational._from_operation(
            self._numerator * pair[1],
            self._denominator * pair[0],
            "division",
        )

    def __rtruediv__(self, other: int) -> Rational:
        pair = _as_pair(other)
        if pair is None:
            return NotImplemented
        if self._numerator == 0:
            raise RationalDivisionByZeroError(f"division of {other} by zero", dividend=str(other))
        return Rational._from_operation(
            pair[0] * self._denominator,
            pair[1] * self._numerator,
            "division",
        )

    def __neg__(self) -> Rational:
        return Rational._from_operation(-self._numerator, self._denominator, "negation")

    def __abs__(self) -> Rational:
        return Rational._from_operation(abs(self._numerator), self._denominator, "absolute value")


ZERO = Rational(0)


def parse_decimal(text: str) -> Rational:
    """Shorthand for :meth:`Rational.parse`."""
    return Rational.parse(text)
