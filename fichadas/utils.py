"""
Helpers compartidos: valores vacíos, alias de columnas, permisos, backups y formatos.
"""
from __future__ import annotations

import os
import shutil
import tempfile
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

import pandas as pd

_VACIOS_TEXTO = {"", "nan", "nat", "none"}
_DIAS_ES = ("LUN", "MAR", "MIÉ", "JUE", "VIE", "SÁB", "DOM")


def safe_str(v: object) -> str:
    """str() tolerante: None y NaN -> ''."""
    if v is None or (isinstance(v, float) and pd.isna(v)):
        return ""
    return str(v)


def es_vacio(v: object) -> bool:
    """True para None, NaN/NaT y textos vacíos ('', 'nan', 'nat', 'none')."""
    if v is None:
        return True
    try:
        if pd.isna(v):
            return True
    except (TypeError, ValueError):
        # listas/arrays: pd.isna devuelve un arreglo, no es un escalar vacío
        return False
    return str(v).strip().lower() in _VACIOS_TEXTO


def chmod_restringido(path: Path) -> None:
    """Permisos best-effort en POSIX: carpetas 700, archivos 600. En Windows no hace nada."""
    if os.name != "posix":
        return
    path = Path(path)
    try:
        if path.is_dir():
            path.chmod(0o700)
        elif path.exists():
            path.chmod(0o600)
    except OSError:
        # sin permisos sobre el archivo: se deja como está
        return


def backup_file(path: Path, *, suffix: str = ".bak") -> Optional[Path]:
    """Copia `<archivo><suffix>_<timestamp>` junto al original. None si no existe."""
    path = Path(path)
    if not path.exists():
        return None
    sello = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    destino = path.with_name(f"{path.name}{suffix}_{sello}")
    shutil.copy2(path, destino)
    chmod_restringido(destino)
    return destino


def _norm(s: object) -> str:
    return "" if s is None else str(s).strip().lower()


def _guess_column(columns: Iterable[object], candidates: List[str]) -> Optional[str]:
    """Columna que coincide con algún alias (sin mayúsculas/espacios). Gana el primer alias."""
    por_clave = {}
    for c in columns:
        por_clave.setdefault(_norm(c), c)
    for cand in candidates:
        col = por_clave.get(_norm(cand))
        if col is not None:
            return col
    return None


def primer_valor(row: Mapping[str, object], candidates: List[str]) -> object:
    """Primer valor no vacío de la fila bajo alguno de los alias (en orden).

    Un alias presente pero vacío no bloquea a los siguientes.
    """
    for cand in candidates:
        col = _guess_column(row.keys(), [cand])
        if col is not None and not es_vacio(row.get(col)):
            return row.get(col)
    return None


def fmt_hhmm(t: "datetime | None") -> str:
    return "" if t is None else t.strftime("%H:%M")


def fmt_fecha_visual(d: date) -> str:
    """dd/mm/yyyy para reportes."""
    return d.strftime("%d/%m/%Y")


def _dia_abrev_es(weekday: int) -> str:
    # 0=Lun ... 6=Dom
    return _DIAS_ES[int(weekday) % 7]


def default_app_data_dir(appname: str = "fichadas") -> Path:
    """Carpeta de datos de la app (cache de feriados, cierres). Se crea si falta.

    Windows usa %APPDATA%; el resto $XDG_DATA_HOME o ~/.local/share. Si no se
    puede crear, cae al temporal del sistema.
    """
    if os.name == "nt":
        base = Path(os.getenv("APPDATA") or Path.home())
    else:
        base = Path(os.getenv("XDG_DATA_HOME") or Path.home() / ".local" / "share")
    destino = base / appname
    try:
        destino.mkdir(parents=True, exist_ok=True)
    except OSError:
        destino = Path(tempfile.gettempdir()) / appname
        destino.mkdir(parents=True, exist_ok=True)
    chmod_restringido(destino)
    return destino
