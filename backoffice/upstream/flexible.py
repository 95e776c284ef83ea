"""Tolerant scalar decoding for loosely-typed upstream JSON.

The T-Soft API serializes the same logical field as a string in one
response and as a number (or boolean) in the next, sometimes within a
single record, e.g. ``"SellingPrice": "272.72727273"`` next to
``"SellingPriceVatIncluded": 300.00000000299997``. Every upstream scalar is
therefore normalized to an optional string at the deserialization boundary.
"""

from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Optional

from pydantic import BeforeValidator


def decode_scalar(value: Any) -> Optional[str]:
    """
    Decode one JSON value into its canonical string form.

    Args:
        value: A value produced by ``json.loads``

    Returns:
        The string representation, or None for null, objects and arrays
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        # repr is the shortest round-trip form and ignores the locale
        return repr(value)
    # Nested objects/arrays where a scalar was expected are skipped
    return None


def decode_scalar_list(value: Any) -> Optional[list[str]]:
    """Decode a list of scalars, dropping elements that are not scalars."""
    if not isinstance(value, list):
        return None
    decoded = (decode_scalar(item) for item in value)
    return [item for item in decoded if item is not None]


def tolerant_record_list(value: Any) -> Any:
    """Keep only object elements of a nested record list; non-lists become absent."""
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, dict) or hasattr(item, "model_fields")]


# Used for every upstream-sourced scalar field
FlexStr = Annotated[Optional[str], BeforeValidator(decode_scalar)]

FlexStrList = Annotated[Optional[list[str]], BeforeValidator(decode_scalar_list)]


def parse_decimal(value: Optional[str]) -> Optional[Decimal]:
    """Parse a decoded scalar as an invariant-culture decimal ("1234.5")."""
    if value is None:
        return None
    try:
        number = Decimal(value.strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def parse_int(value: Optional[str]) -> Optional[int]:
    """Parse a decoded scalar as an integer; "5.0" counts as 5."""
    number = parse_decimal(value)
    if number is None or number != number.to_integral_value():
        return None
    return int(number)
