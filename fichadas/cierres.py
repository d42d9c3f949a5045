"""Historial de cierres de liquidación (JSONL append-only).

Contract:
- cierres.jsonl: one JSON object per line (id, fecha_creacion, nombre_periodo,
  total_pagado, cantidad_empleados, datos_snapshot)
- best-effort permissions: file 0600, dir 0700
- input sanitization to avoid control characters / huge payloads
- delete rewrites the file without the removed closure
"""
from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .logger import get_logger
from .utils import chmod_restringido
from .validaciones import validate_non_empty_string

_log = get_logger("cierres")

CONTROL_CHARS = {chr(i) for i in range(0, 32)} - {"\t"}
DEFAULT_FILENAME = "cierres.jsonl"


def _sanitize_text(s: str, max_len: int = 500) -> str:
    s = (s or "").replace("\r", " ").replace("\n", " ")
    s = "".join((" " if ch in CONTROL_CHARS else ch) for ch in s)
    s = " ".join(s.split())
    if len(s) > max_len:
        s = s[: max_len - 3] + "..."
    return s


def sanitize_record(rec: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in (rec or {}).items():
        kk = _sanitize_text(str(k), max_len=80)
        if isinstance(v, str):
            out[kk] = _sanitize_text(v, max_len=1200)
        elif v is None or isinstance(v, (int, float, bool)):
            out[kk] = v
        else:
            # evita objetos complejos o binarios
            out[kk] = _sanitize_text(str(v), max_len=1200)
    return out


def ensure_dir_secure(d: Path) -> None:
    d.mkdir(parents=True, exist_ok=True)
    chmod_restringido(d)


def _path(cierres_dir: Path, filename: str) -> Path:
    return Path(cierres_dir) / filename


def _leer_todos(path: Path) -> List[Dict[str, Any]]:
    if not path.exists():
        return []
    out = []
    with open(path, "r", encoding="utf-8") as f:
        for n, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                out.append(json.loads(line))
            except json.JSONDecodeError:
                _log.warning("Línea %d inválida en %s; se ignora", n, path)
    return out


def guardar_cierre(
    *,
    cierres_dir: Path,
    nombre_periodo: str,
    filas: Iterable[Dict[str, Any]],
    filename: str = DEFAULT_FILENAME,
) -> Dict[str, Any]:
    """Agrega un cierre con el snapshot de filas del detalle. Devuelve el encabezado."""
    nombre_periodo = validate_non_empty_string(nombre_periodo)
    snapshot = [sanitize_record(dict(r)) for r in filas]
    total = sum(float(r.get("Total a Liquidar", 0) or 0) for r in snapshot)
    empleados = {r.get("Nombre", "") for r in snapshot if r.get("Nombre")}

    cierres_dir = Path(cierres_dir)
    ensure_dir_secure(cierres_dir)
    path = _path(cierres_dir, filename)
    previos = _leer_todos(path)
    siguiente_id = max((int(c.get("id", 0)) for c in previos), default=0) + 1

    rec = {
        "id": siguiente_id,
        "fecha_creacion": datetime.now().isoformat(timespec="seconds"),
        "nombre_periodo": _sanitize_text(nombre_periodo, max_len=200),
        "total_pagado": round(total, 2),
        "cantidad_empleados": len(empleados),
        "datos_snapshot": snapshot,
    }
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(rec, ensure_ascii=False) + "\n")
    chmod_restringido(path)
    _log.info("Cierre #%d guardado (%s): %d filas", siguiente_id, rec["nombre_periodo"], len(snapshot))
    return {k: v for k, v in rec.items() if k != "datos_snapshot"}


def listar_cierres(cierres_dir: Path, filename: str = DEFAULT_FILENAME) -> List[Dict[str, Any]]:
    """Cierres más recientes primero, sin el snapshot (liviano)."""
    todos = _leer_todos(_path(cierres_dir, filename))
    livianos = [{k: v for k, v in c.items() if k != "datos_snapshot"} for c in todos]
    return sorted(livianos, key=lambda c: int(c.get("id", 0)), reverse=True)


def obtener_cierre(cierres_dir: Path, cierre_id: int, filename: str = DEFAULT_FILENAME) -> Optional[Dict[str, Any]]:
    for c in _leer_todos(_path(cierres_dir, filename)):
        if int(c.get("id", 0)) == int(cierre_id):
            return c
    return None


def eliminar_cierre(cierres_dir: Path, cierre_id: int, filename: str = DEFAULT_FILENAME) -> bool:
    """Elimina un cierre. Devuelve False si no existía."""
    path = _path(cierres_dir, filename)
    todos = _leer_todos(path)
    restantes = [c for c in todos if int(c.get("id", 0)) != int(cierre_id)]
    if len(restantes) == len(todos):
        return False
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        for c in restantes:
            f.write(json.dumps(c, ensure_ascii=False) + "\n")
    tmp.replace(path)
    chmod_restringido(path)
    _log.info("Cierre #%s eliminado", cierre_id)
    return True
