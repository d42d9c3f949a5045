"""Calendario de feriados: snapshot inmutable + cliente del servicio externo.

El motor solo LEE un snapshot. La edición del calendario (toggle) vive en el
servicio externo; `ClienteFeriados.alternar()` existe para la CLI de RRHH.

Contrato del servicio:
- GET  <url>         -> ["2026-01-01", "2026-12-25", ...]
- POST <url>/toggle  {"fecha": "YYYY-MM-DD"} -> {"action": "added"|"removed"}

Si el GET falla (red, HTTP, JSON inválido) se usa el último snapshot guardado
en cache local; si no hay cache, un calendario vacío. Nunca aborta la corrida.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import FrozenSet, Iterable, Iterator, Optional

import requests

from .logger import get_logger
from .utils import chmod_restringido
from .validaciones import validate_iso_date

_log = get_logger("feriados")


def _fechas_validas(valores: Iterable[object]) -> FrozenSet[str]:
    out = set()
    for v in valores:
        try:
            out.add(validate_iso_date(v if isinstance(v, str) else str(v)))
        except (TypeError, ValueError):
            _log.debug("Feriado ignorado (formato inválido): %r", v)
    return frozenset(out)


@dataclass(frozen=True)
class CalendarioFeriados:
    fechas: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def desde(cls, valores: Iterable[object]) -> "CalendarioFeriados":
        return cls(_fechas_validas(valores))

    def __contains__(self, fecha: object) -> bool:
        if isinstance(fecha, date):
            fecha = fecha.isoformat()
        return fecha in self.fechas

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.fechas))

    def __len__(self) -> int:
        return len(self.fechas)

    def contiene(self, fecha: "date | str") -> bool:
        return fecha in self

    def alternar(self, fecha: "date | str") -> "CalendarioFeriados":
        """Nuevo snapshot con la fecha agregada (o quitada si ya estaba)."""
        iso = fecha.isoformat() if isinstance(fecha, date) else validate_iso_date(fecha)
        if iso in self.fechas:
            return CalendarioFeriados(self.fechas - {iso})
        return CalendarioFeriados(self.fechas | {iso})

    def a_lista(self) -> list[str]:
        return sorted(self.fechas)


def guardar_feriados_archivo(path: Path, calendario: CalendarioFeriados) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(calendario.a_lista(), ensure_ascii=False, indent=2), encoding="utf-8")
    chmod_restringido(path)
    return path


def cargar_feriados_archivo(path: Path) -> Optional[CalendarioFeriados]:
    """Lee un snapshot JSON (lista de fechas ISO). `None` si no existe o es inválido."""
    path = Path(path)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        _log.warning("Snapshot de feriados ilegible: %s", path, exc_info=True)
        return None
    if not isinstance(data, list):
        _log.warning("Snapshot de feriados con formato inesperado: %s", path)
        return None
    return CalendarioFeriados.desde(data)


class ClienteFeriados:
    """Cliente HTTP del calendario de feriados con fallback al último snapshot."""

    def __init__(self, url: str, *, timeout: float = 10.0, cache_path: Optional[Path] = None,
                 session: Optional[requests.Session] = None) -> None:
        self.url = (url or "").rstrip("/")
        self.timeout = timeout
        self.cache_path = Path(cache_path) if cache_path else None
        self._http = session or requests
        self._ultimo: Optional[CalendarioFeriados] = None

    @property
    def ultimo_snapshot(self) -> Optional[CalendarioFeriados]:
        return self._ultimo

    def _fallback(self) -> CalendarioFeriados:
        if self._ultimo is not None:
            return self._ultimo
        if self.cache_path is not None:
            cached = cargar_feriados_archivo(self.cache_path)
            if cached is not None:
                self._ultimo = cached
                return cached
        return CalendarioFeriados()

    def obtener(self) -> CalendarioFeriados:
        """Descarga el calendario vigente; si falla, devuelve el último conocido."""
        if not self.url:
            return self._fallback()
        try:
            resp = self._http.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError):
            _log.warning("No se pudo obtener feriados de %s; se usa el último snapshot", self.url, exc_info=True)
            return self._fallback()

        if not isinstance(data, list):
            _log.warning("Respuesta de feriados inesperada (%s); se usa el último snapshot", type(data).__name__)
            return self._fallback()

        cal = CalendarioFeriados.desde(data)
        self._ultimo = cal
        if self.cache_path is not None:
            try:
                guardar_feriados_archivo(self.cache_path, cal)
            except OSError:
                _log.warning("No se pudo guardar cache de feriados en %s", self.cache_path, exc_info=True)
        _log.info("Feriados cargados: %d fechas", len(cal))
        return cal

    def alternar(self, fecha: "date | str") -> str:
        """POST toggle; devuelve 'added' o 'removed' según el servicio."""
        iso = fecha.isoformat() if isinstance(fecha, date) else validate_iso_date(fecha)
        resp = self._http.post(f"{self.url}/toggle", json={"fecha": iso}, timeout=self.timeout)
        resp.raise_for_status()
        accion = str((resp.json() or {}).get("action", ""))
        if self._ultimo is not None:
            self._ultimo = self._ultimo.alternar(iso)
        return accion
