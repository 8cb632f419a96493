"""
Input Validation - range and format checks for external inputs.

Every value that crosses the action surface (amounts, durations, addresses)
is checked here before it reaches the state machine, so that arithmetic on
u128 amounts can never silently exceed the protocol's numeric domain.
"""

from typing import Any, Tuple

# =============================================================================
# Constants
# =============================================================================

U128_MAX = 2**128 - 1
U32_MAX = 2**32 - 1

MIN_DURATION_HOURS = 1
MAX_DURATION_HOURS = U32_MAX

IDENTIFIER_SIZE = 20


# =============================================================================
# Validation Functions
# =============================================================================


def validate_integer(
    value: Any,
    name: str,
    min_val: int,
    max_val: int,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    # bool is an int subclass; reject it explicitly
    if not isinstance(value, int) or isinstance(value, bool):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_u128(value: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate an unsigned 128-bit token amount."""
    return validate_integer(value, name, 0, U128_MAX)


def validate_duration_hours(value: Any) -> Tuple[bool, str]:
    """Validate an auction duration in hours."""
    return validate_integer(value, "auction_duration_hours", MIN_DURATION_HOURS, MAX_DURATION_HOURS)


def validate_identifier(data: Any, name: str = "identifier") -> Tuple[bool, str]:
    """Validate a raw 20-byte address identifier."""
    if not isinstance(data, (bytes, bytearray)):
        return False, f"{name} must be bytes, got {type(data).__name__}"

    if len(data) != IDENTIFIER_SIZE:
        return False, f"{name} must be {IDENTIFIER_SIZE} bytes, got {len(data)}"

    return True, ""


__all__ = [
    "validate_integer",
    "validate_u128",
    "validate_duration_hours",
    "validate_identifier",
    "U128_MAX",
    "U32_MAX",
    "MIN_DURATION_HOURS",
    "MAX_DURATION_HOURS",
    "IDENTIFIER_SIZE",
]
