from __future__ import annotations

from typing import Any

from .errors import ValidationError
from .geo import MAX_LATITUDE, MAX_LONGITUDE, MIN_LATITUDE, MIN_LONGITUDE


"""
Input coercion for location payloads.

Integers reject fractional values and scientific notation. Coordinates reject
booleans and NaN. Every failure is a ValidationError.
"""


def coerce_int(value: Any, field: str) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    # Whole-number floats from JSON clients ("150.0") are accepted
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def coerce_float(value: Any, field: str) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            result = float(value.strip())
        except ValueError:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")
    if result != result or result in (float("inf"), float("-inf")):
        raise ValidationError(f"{field} must be a finite number")
    return result


def coerce_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes"}:
            return True
        if lowered in {"false", "0", "no"}:
            return False
    raise ValidationError(f"{field} must be a boolean")


def validate_coordinates(latitude: Any, longitude: Any) -> tuple[float, float]:
    """Coerce and range-check a coordinate pair (lat in [-90,90], lon in [-180,180])."""
    lat = coerce_float(latitude, "latitude")
    lon = coerce_float(longitude, "longitude")
    if not (MIN_LATITUDE <= lat <= MAX_LATITUDE):
        raise ValidationError("latitude must be between -90 and 90")
    if not (MIN_LONGITUDE <= lon <= MAX_LONGITUDE):
        raise ValidationError("longitude must be between -180 and 180")
    return lat, lon


def validate_radius(value: Any, field: str = "radius_meters") -> int:
    radius = coerce_int(value, field)
    if radius <= 0:
        raise ValidationError(f"{field} must be > 0")
    return radius


def validate_choice(value: Any, choices: tuple[str, ...], field: str) -> str:
    if not isinstance(value, str) or value.strip().lower() not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}")
    return value.strip().lower()
