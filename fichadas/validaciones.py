"""Funciones de validación de entrada para el procesador de fichadas."""

from __future__ import annotations

import math
import re
from datetime import date


def validate_input(value: object, expected_type: type | tuple[type, ...]) -> object:
    """Validate input value against the expected type."""
    if not isinstance(value, expected_type):
        if isinstance(expected_type, tuple):
            names = ", ".join(t.__name__ for t in expected_type)
        else:
            names = expected_type.__name__
        raise TypeError(
            f"Expected value of type {names}, but got {type(value).__name__}."
        )
    return value


def validate_non_empty_string(value: object) -> str:
    """Validate that the string is not empty."""
    validate_input(value, str)
    s = str(value).strip()
    if not s:
        raise ValueError("String cannot be empty or just whitespace.")
    return s


def validate_range(value: int | float, min_value: int | float, max_value: int | float) -> int | float:
    """Validate that the value is within the specified range."""
    validate_input(value, (int, float))
    if not (min_value <= value <= max_value):
        raise ValueError(f"Value {value} must be between {min_value} and {max_value}.")
    return value


def validate_non_negative_int(value: object, name: str = "value") -> int:
    """Validate that the value is a non-negative integer (>= 0)."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name}: expected int, got {type(value).__name__}.")
    if value < 0:
        raise ValueError(f"{name}: must be >= 0, got {value}.")
    return value


def validate_non_negative_number(value: object, name: str = "value") -> float:
    """Validate that the value is a finite number >= 0."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise TypeError(f"{name}: expected number, got {type(value).__name__}.")
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise ValueError(f"{name}: must be a finite number >= 0, got {value}.")
    return float(value)


_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_iso_date(value: object, name: str = "fecha") -> str:
    """Validate an ISO date string (YYYY-MM-DD) and return it stripped."""
    s = validate_non_empty_string(value)
    if not _ISO_DATE_RE.fullmatch(s):
        raise ValueError(f"{name}: expected YYYY-MM-DD, got {s!r}.")
    try:
        date.fromisoformat(s)
    except ValueError as exc:
        raise ValueError(f"{name}: invalid calendar date {s!r}.") from exc
    return s


def parse_jornada(value: object) -> float:
    """Parsea la duración de la jornada estándar (horas).

    Acepta números o strings ("9", "8.5", "8,5"). Una jornada no numérica,
    no finita o <= 0 es un error de entrada y lanza `ValueError`.
    """
    if isinstance(value, bool):
        raise ValueError(f"jornada: valor no numérico {value!r}.")
    if isinstance(value, (int, float)):
        horas = float(value)
    else:
        s = "" if value is None else str(value).strip().replace(",", ".")
        try:
            horas = float(s)
        except ValueError as exc:
            raise ValueError(f"jornada: valor no numérico {value!r}.") from exc
    if math.isnan(horas) or math.isinf(horas) or horas <= 0:
        raise ValueError(f"jornada: debe ser un número de horas > 0, se recibió {value!r}.")
    if horas > 24:
        raise ValueError(f"jornada: no puede superar 24 horas, se recibió {value!r}.")
    return horas
