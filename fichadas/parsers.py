"""Normalización de filas del reloj a fichadas.

Principios:
- Tolerante a datos sucios (None/NaN/formatos mixtos/alias de columnas).
- `parse_momento()` acepta seriales de planilla (días desde 1899-12-30) o texto.
- `normalizar_fila()` devuelve `None` si falta el nombre o la hora no es
  parseable: esas filas se descartan sin error.
"""

from __future__ import annotations

import numbers
import re
from datetime import datetime, timedelta
from typing import Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from .config import AppConfig
from .core import Fichada
from .logger import get_logger
from .utils import _guess_column, es_vacio, primer_valor, safe_str

__all__ = ["parse_momento", "verificar_columnas", "normalizar_fila", "normalizar_filas"]

_log = get_logger("parsers")

# Serial 25569 = 1970-01-01 (convención de Excel/Sheets).
EPOCA_PLANILLA = datetime(1899, 12, 30)
_SERIAL_MAX = 2958465  # 9999-12-31

_SERIAL_RE = re.compile(r"^\d+(?:\.\d+)?$")
_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}(?:[ T].*)?$")
_SOLO_HORA_RE = re.compile(r"^\d{1,2}:\d{2}(?::\d{2})?$")


def _desde_serial(serial: float) -> Optional[datetime]:
    if not (0 < serial < _SERIAL_MAX):
        return None
    dt = EPOCA_PLANILLA + timedelta(days=float(serial))
    # Los seriales arrastran ruido de coma flotante (08:00 -> 07:59:59.99998)
    return (dt + timedelta(microseconds=500_000)).replace(microsecond=0)


def parse_momento(value: object, cfg: AppConfig | None = None) -> Optional[datetime]:
    """Parsea un timestamp de fichada a `datetime` naive (hora local del reloj).

    Args:
        value: número serial de planilla, string (ISO o mm/dd/yyyy HH:MM; dd/mm con `cfg.dayfirst`),
            `datetime` o `pd.Timestamp`.

    Returns:
        `datetime` sin tz, o `None` si no es parseable.
    """
    cfg = cfg or AppConfig()
    if es_vacio(value) or isinstance(value, bool):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime().replace(tzinfo=None)
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, numbers.Real):
        return _desde_serial(float(value))

    s = safe_str(value).strip()
    if _SERIAL_RE.fullmatch(s):
        # CSV leído como texto: el serial llega como string
        return _desde_serial(float(s))
    if _SOLO_HORA_RE.fullmatch(s):
        # Sin fecha no hay jornada posible (pandas completaría con el día de hoy)
        return None
    try:
        if _ISO_RE.fullmatch(s):
            dt = pd.to_datetime(s, errors="coerce", dayfirst=False)
        else:
            dt = pd.to_datetime(s, errors="coerce", dayfirst=bool(cfg.dayfirst))
    except (ValueError, OverflowError):
        return None
    if pd.isna(dt):
        return None
    return dt.to_pydatetime().replace(tzinfo=None)


def verificar_columnas(columnas: Iterable[object], cfg: AppConfig | None = None) -> None:
    """Exige al menos una columna de nombre y una de hora entre los alias.

    Raises:
        KeyError: con la lista de columnas encontradas en el archivo.
    """
    cfg = cfg or AppConfig()
    columnas = list(columnas)
    faltan = []
    if _guess_column(columnas, cfg.alias_nombre) is None:
        faltan.append("nombre (" + ", ".join(cfg.alias_nombre) + ")")
    if _guess_column(columnas, cfg.alias_tiempo) is None:
        faltan.append("hora (" + ", ".join(cfg.alias_tiempo) + ")")
    if faltan:
        encontradas = ", ".join(str(c) for c in columnas) or "(ninguna)"
        raise KeyError(f"Faltan columnas: {'; '.join(faltan)}. Columnas encontradas: {encontradas}")


def normalizar_fila(row: Mapping[str, object], cfg: AppConfig | None = None) -> Optional[Fichada]:
    """Convierte una fila cruda en `Fichada` (o `None` si no es utilizable)."""
    cfg = cfg or AppConfig()
    nombre = safe_str(primer_valor(row, cfg.alias_nombre)).strip()
    if not nombre:
        return None
    momento = parse_momento(primer_valor(row, cfg.alias_tiempo), cfg)
    if momento is None:
        return None
    evento = primer_valor(row, cfg.alias_evento)
    return Fichada(nombre=nombre, momento=momento, evento=safe_str(evento).strip().upper())


def normalizar_filas(rows: Iterable[Mapping[str, object]], cfg: AppConfig | None = None) -> Tuple[List[Fichada], int]:
    """Normaliza todas las filas. Devuelve (fichadas, cantidad_descartadas)."""
    cfg = cfg or AppConfig()
    out: List[Fichada] = []
    descartadas = 0
    for row in rows:
        f = normalizar_fila(row, cfg)
        if f is None:
            descartadas += 1
            continue
        out.append(f)
    if descartadas:
        _log.debug("Filas descartadas por nombre/hora faltante: %d", descartadas)
    return out, descartadas
