"""I/O: lectura del export del reloj y export multi-hoja a Excel."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from .config import AppConfig
from .logger import get_logger
from .utils import chmod_restringido

_log = get_logger("io")

_EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
_CSV_SUFFIXES = {".csv", ".txt"}
_CSV_ENCODINGS = ("utf-8-sig", "utf-8", "latin1")


def _read_csv_flexible(path: Path) -> pd.DataFrame:
    """Lee CSV/TXT de forma tolerante a encodings comunes.
    - Intenta utf-8-sig, utf-8, latin1.
    - Usa sep=None (sniff) con engine=python para tolerar delimitadores.
    """
    last_err: Exception | None = None
    for enc in _CSV_ENCODINGS:
        try:
            return pd.read_csv(path, dtype=str, encoding=enc, sep=None, engine="python")
        except (UnicodeDecodeError, pd.errors.ParserError) as e:
            last_err = e
            continue
    # Si todos fallan, re-lanzar el último error para diagnóstico
    if last_err is None:
        raise ValueError(f"No se pudo leer {path.name}")
    raise last_err


def leer_tabla(path: Path) -> pd.DataFrame:
    """Lee el export del reloj como DataFrame.

    - Excel: primera hoja, sin forzar dtype (los seriales numéricos se conservan).
    - CSV: todo como texto (los seriales llegan como string).
    - Encabezados sin BOM/espacios.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in _EXCEL_SUFFIXES:
        df = pd.read_excel(path, sheet_name=0)
    elif suffix in _CSV_SUFFIXES:
        df = _read_csv_flexible(path)
    else:
        raise ValueError(f"Formato no soportado: {path.name}")
    df.columns = [str(c).replace("\ufeff", "").strip() for c in df.columns]
    _log.info("Leídas %d filas de %s", len(df), path.name)
    return df


def leer_filas(path: Path) -> List[Dict[str, object]]:
    """Lee el export del reloj y devuelve una lista de filas (dict por fila)."""
    return leer_tabla(path).to_dict(orient="records")


# Un texto que empieza con =, +, -, @ se interpreta como fórmula al abrir el XLSX.
_PREFIJOS_FORMULA = ("=", "+", "-", "@")
_NO_SANEAR = {"--:--"}


def _neutralizar(v: object) -> object:
    if isinstance(v, str) and v.startswith(_PREFIJOS_FORMULA) and v not in _NO_SANEAR:
        return "'" + v
    return v


def _sanitize_excel_injection(df: pd.DataFrame) -> pd.DataFrame:
    """Copia del DF con los textos que parecen fórmula prefijados con apóstrofe.

    Solo toca columnas de texto; números, NaN y la marca de salida faltante
    (--:--) quedan igual.
    """
    if df is None or df.empty:
        return df
    out = df.copy()
    texto = [c for c in out.columns if str(out[c].dtype) in ("object", "string")]
    for col in texto:
        out[col] = out[col].map(_neutralizar)
    return out


def backup_if_exists(path: Path) -> Optional[Path]:
    """Si `path` existe, lo copia a <carpeta>/backups/<nombre>_backup_<timestamp>."""
    path = Path(path)
    if not path.exists():
        return None
    carpeta = path.parent / "backups"
    carpeta.mkdir(parents=True, exist_ok=True)
    chmod_restringido(carpeta)
    sello = datetime.now().strftime("%Y%m%d_%H%M%S")
    destino = carpeta / f"{path.stem}_backup_{sello}{path.suffix}"
    destino.write_bytes(path.read_bytes())
    chmod_restringido(destino)
    _log.info("Backup de salida previa: %s", destino.name)
    return destino


def _ancho_columna(header: object, cfg: AppConfig) -> float:
    h = "" if header is None else str(header)
    anchos = cfg.column_widths or {}
    if h in anchos:
        return float(anchos[h])
    return float(min(45, max(10, len(h) + 2)))


def _formatear_hoja(ws, cfg: AppConfig) -> None:
    from openpyxl.styles import Font
    from openpyxl.utils import get_column_letter

    negrita = Font(bold=True)
    ws.freeze_panes = "A2"
    ult = get_column_letter(ws.max_column)
    ws.auto_filter.ref = f"A1:{ult}{ws.max_row}"
    for idx, celda in enumerate(ws[1], start=1):
        celda.font = negrita
        ws.column_dimensions[get_column_letter(idx)].width = _ancho_columna(celda.value, cfg)


def exportar_excel(df: pd.DataFrame, out_path: Path, extra_sheets: Optional[Dict[str, pd.DataFrame]] = None,
                   cfg: "AppConfig | None" = None) -> None:
    """Escribe el detalle en la hoja "Detalle" y cada hoja extra no vacía.

    Todas las hojas quedan con encabezado congelado y en negrita, autofiltro
    y anchos fijos por nombre de columna (config), o por largo del encabezado.
    Los nombres de hoja se cortan a 31 caracteres (límite de Excel).
    """
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    cfg = cfg or AppConfig()

    hojas = {"Detalle": df}
    for nombre, sdf in (extra_sheets or {}).items():
        if sdf is not None and len(sdf) > 0:
            hojas[str(nombre)[:31]] = sdf

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        for nombre, sdf in hojas.items():
            _sanitize_excel_injection(sdf).to_excel(writer, index=False, sheet_name=nombre)
        for ws in writer.sheets.values():
            _formatear_hoja(ws, cfg)

    chmod_restringido(out_path)
