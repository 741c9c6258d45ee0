"""Unit normalization into canonical exact quantities."""

from enum import Enum

from vitaltrack.errors import InvalidOptionError
from vitaltrack.numerism import Rational

# -273.15 degrees Celsius
ABSOLUTE_ZERO_CELSIUS = Rational(-27315, 100)

SUGAR_UNIT_KEY = "sugar_unit_key"


class SugarUnit(Enum):
    """Blood sugar units accepted on input, with their factor to mmol/L."""

    MMOL_PER_L = "mmol-per-l"
    MG_PER_DL = "mg-per-dl"

    @property
    def factor_to_mmol_per_l(self) -> Rational:
        if self is SugarUnit.MG_PER_DL:
            return Rational(1, 18)
        return Rational(1, 1)

    @classmethod
    def from_key(cls, unit_key: str) -> "SugarUnit":
        """Look up a unit by its input key.

        Raises:
            InvalidOptionError: If the key is not one of the known units
        """
        for unit in cls:
            if unit.value == unit_key:
                return unit
        raise InvalidOptionError(SUGAR_UNIT_KEY, unit_key, [unit.value for unit in cls])


def sugar_to_mmol_per_l(value: Rational, unit_key: str) -> Rational:
    """Convert a blood sugar value tagged with ``unit_key`` to mmol/L."""
    return value * SugarUnit.from_key(unit_key).factor_to_mmol_per_l


def squared_height_m2(height_cm: int | None) -> Rational | None:
    """Square of the height in metres, or None if no height is configured."""
    if height_cm is None:
        return None
    height_m = Rational(height_cm, 100)
    return height_m * height_m


def body_mass_index(mass_kg: Rational, height_cm: int | None) -> Rational | None:
    """Body mass index (kg/m²) for the given mass and configured height.

    Returns None when no height is configured; that means "not computable",
    not zero.

    Raises:
        RationalDivisionByZeroError: If the height is zero
        RationalOverflowError: If the result does not fit the bounded range
    """
    square = squared_height_m2(height_cm)
    if square is None:
        return None
    return mass_kg / square
