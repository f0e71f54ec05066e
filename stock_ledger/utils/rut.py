"""
Chilean RUT helpers.

A RUT is a 7-8 digit body plus a check digit computed mod 11 over the body
digits, weighted 2..7 from the rightmost digit and cycling.
"""
import re

from stock_ledger.exceptions import InvalidRutError

RUT_PATTERN = re.compile(r'^(\d{7,8})-([\dK])$')


def compute_check_digit(body: str) -> str:
    """Return the check digit ('0'-'9' or 'K') for a RUT body."""
    total = 0
    weight = 2
    for digit in reversed(body):
        total += int(digit) * weight
        weight = 2 if weight == 7 else weight + 1

    remainder = 11 - (total % 11)
    if remainder == 11:
        return '0'
    if remainder == 10:
        return 'K'
    return str(remainder)


def _clean(rut: str) -> str:
    return rut.replace('.', '').strip().upper()


def validate_rut(rut) -> bool:
    """True when the RUT is well formed and its check digit matches."""
    if not rut or not isinstance(rut, str):
        return False

    match = RUT_PATTERN.match(_clean(rut))
    if not match:
        return False

    body, check_digit = match.groups()
    return compute_check_digit(body) == check_digit


def format_rut(rut: str) -> str:
    """Format as 12.345.678-5 (periods every 3 digits, uppercase K)."""
    clean = _clean(rut).replace('-', '')
    body, check_digit = clean[:-1], clean[-1]
    body = f"{int(body):,}".replace(',', '.')
    return f"{body}-{check_digit}"


def normalize_rut(rut) -> str:
    """Validate and return the canonical stored form, or raise InvalidRutError."""
    if not validate_rut(rut):
        raise InvalidRutError(rut)
    return format_rut(rut)
