"""Filtros, totales y armado de reportes (detalle por jornada y por empleado).

Todo es puro: se recalcula desde cero en cada llamada, sin estado incremental.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from .categorias import liquidar
from .config import AppConfig
from .core import DesgloseHoras, Jornada
from .utils import _dia_abrev_es, fmt_fecha_visual, fmt_hhmm
from .validaciones import validate_iso_date

SIN_SALIDA = "--:--"

COLUMNAS_DETALLE = [
    "Nombre",
    "Categoría",
    "Fecha",
    "Día",
    "Feriado",
    "Fin de semana",
    "Entrada",
    "Salida",
    "Hs Normales",
    "Hs Extras",
    "Hs Feriado 100%",
    "Hs Extras 100%",
    "Hs Totales",
    "Nocturna",
    "Estado",
    "Valor hora",
    "Liq. Extras",
    "Liq. Feriado",
    "Liq. Extras 100%",
    "Total a Liquidar",
]


@dataclass(frozen=True)
class Registro:
    jornada: Jornada
    desglose: DesgloseHoras


def _iso(valor: "date | str | None", nombre: str) -> Optional[str]:
    if valor is None or valor == "":
        return None
    if isinstance(valor, date):
        return valor.isoformat()
    return validate_iso_date(valor, nombre)


def filtrar_registros(
    registros: Iterable[Registro],
    *,
    empleado: Optional[str] = None,
    desde: "date | str | None" = None,
    hasta: "date | str | None" = None,
) -> List[Registro]:
    """Filtra por nombre exacto y rango inclusivo sobre la fecha de entrada.

    Devuelve la lista ordenada por nombre y luego fecha.
    """
    d = _iso(desde, "desde")
    h = _iso(hasta, "hasta")
    out = []
    for r in registros:
        j = r.jornada
        if empleado and j.nombre != empleado:
            continue
        if d is not None and j.fecha < d:
            continue
        if h is not None and j.fecha > h:
            continue
        out.append(r)
    return sorted(out, key=lambda r: (r.jornada.nombre, r.jornada.fecha, r.jornada.entrada))


def totalizar(registros: Iterable[Registro]) -> DesgloseHoras:
    total = DesgloseHoras()
    for r in registros:
        total = total + r.desglose
    return total


def consultar(
    registros: Iterable[Registro],
    *,
    empleado: Optional[str] = None,
    desde: "date | str | None" = None,
    hasta: "date | str | None" = None,
) -> Tuple[List[Registro], DesgloseHoras]:
    """Detalle filtrado + suma de los cuatro baldes sobre ese detalle."""
    detalle = filtrar_registros(registros, empleado=empleado, desde=desde, hasta=hasta)
    return detalle, totalizar(detalle)


def construir_fila(registro: Registro, cfg: AppConfig) -> Dict[str, object]:
    """Fila de salida para reportes (horas e importes a 2 decimales)."""
    j, d = registro.jornada, registro.desglose
    liq = liquidar(j.nombre, d, cfg)
    return {
        "Nombre": j.nombre,
        "Categoría": liq.categoria,
        "Fecha": fmt_fecha_visual(j.entrada.date()),
        "Día": _dia_abrev_es(j.entrada.weekday()),
        "Feriado": j.es_feriado,
        "Fin de semana": j.es_fin_de_semana,
        "Entrada": fmt_hhmm(j.entrada),
        "Salida": fmt_hhmm(j.salida) if j.salida is not None else SIN_SALIDA,
        "Hs Normales": round(d.normales, 2),
        "Hs Extras": round(d.extras, 2),
        "Hs Feriado 100%": round(d.feriado, 2),
        "Hs Extras 100%": round(d.extras_feriado, 2),
        "Hs Totales": round(j.horas_totales or 0.0, 2),
        "Nocturna": j.nocturna,
        "Estado": j.estado,
        "Valor hora": liq.valor_hora,
        "Liq. Extras": round(liq.extra, 2),
        "Liq. Feriado": round(liq.feriado, 2),
        "Liq. Extras 100%": round(liq.extra_feriado, 2),
        "Total a Liquidar": round(liq.total, 2),
    }


def construir_detalle(registros: Iterable[Registro], cfg: AppConfig) -> pd.DataFrame:
    filas = [construir_fila(r, cfg) for r in registros]
    return pd.DataFrame(filas, columns=COLUMNAS_DETALLE)


def construir_resumen(registros: Iterable[Registro], cfg: AppConfig) -> pd.DataFrame:
    """Una fila con los totales del detalle filtrado (horas + liquidación)."""
    registros = list(registros)
    tot = totalizar(registros)
    total_liq = sum(liquidar(r.jornada.nombre, r.desglose, cfg).total for r in registros)
    incompletas = sum(1 for r in registros if r.jornada.incompleta)
    return pd.DataFrame(
        [
            {
                "Hs Normales": round(tot.normales, 2),
                "Hs Extras": round(tot.extras, 2),
                "Hs Feriado 100%": round(tot.feriado, 2),
                "Hs Extras 100%": round(tot.extras_feriado, 2),
                "Jornadas": len(registros),
                "Incompletas": incompletas,
                "Total a Liquidar": round(total_liq, 2),
            }
        ]
    )


def resumen_por_empleado(registros: Iterable[Registro], cfg: AppConfig) -> pd.DataFrame:
    """Totales por empleado (base para recibos individuales)."""
    por_emp: Dict[str, List[Registro]] = {}
    for r in registros:
        por_emp.setdefault(r.jornada.nombre, []).append(r)

    filas = []
    for nombre in sorted(por_emp):
        regs = por_emp[nombre]
        tot = totalizar(regs)
        liq = liquidar(nombre, tot, cfg)
        filas.append(
            {
                "Nombre": nombre,
                "Categoría": liq.categoria,
                "Valor hora": liq.valor_hora,
                "Jornadas": len(regs),
                "Incompletas": sum(1 for r in regs if r.jornada.incompleta),
                "Hs Normales": round(tot.normales, 2),
                "Hs Extras": round(tot.extras, 2),
                "Hs Feriado 100%": round(tot.feriado, 2),
                "Hs Extras 100%": round(tot.extras_feriado, 2),
                "Liq. Extras": round(liq.extra, 2),
                "Liq. Feriado": round(liq.feriado, 2),
                "Liq. Extras 100%": round(liq.extra_feriado, 2),
                "Total a Liquidar": round(liq.total, 2),
            }
        )
    return pd.DataFrame(filas)
