"""Exact-value tracker for blood pressure, body mass, temperature and blood sugar."""

from vitaltrack.numerism import Rational, parse_decimal

__version__ = "0.1.0"

__all__ = [
    "Rational",
    "parse_decimal",
]
