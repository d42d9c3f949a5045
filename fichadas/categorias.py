"""Categorías de personal y liquidación de horas.

Cada empleado (por nombre, tal como aparece en el reloj) puede tener una
categoría con valor hora. Sin categoría -> "Sin Categoría" y valor 0: no es
un error, simplemente no liquida importe.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from .config import AppConfig
from .core import DesgloseHoras
from .logger import get_logger
from .validaciones import validate_non_empty_string, validate_non_negative_number

SIN_CATEGORIA = "Sin Categoría"

_log = get_logger("categorias")


@dataclass(frozen=True)
class Liquidacion:
    categoria: str
    valor_hora: float
    extra: float
    feriado: float
    extra_feriado: float

    @property
    def total(self) -> float:
        return self.extra + self.feriado + self.extra_feriado


def categoria_de(nombre: str, cfg: AppConfig) -> str:
    cat = cfg.empleado_a_categoria.get(nombre, "")
    return cat if cat and cat in cfg.categorias else SIN_CATEGORIA


def liquidar(nombre: str, desglose: DesgloseHoras, cfg: AppConfig) -> Liquidacion:
    """Importes por balde. Las horas normales no se liquidan aquí (sueldo base)."""
    valor = cfg.valor_hora_de(nombre)
    return Liquidacion(
        categoria=categoria_de(nombre, cfg),
        valor_hora=valor,
        extra=desglose.extras * valor * cfg.factor_extra,
        feriado=desglose.feriado * valor * cfg.factor_feriado,
        extra_feriado=desglose.extras_feriado * valor * cfg.factor_extra_feriado,
    )


def alta_categoria(cfg: AppConfig, nombre: str, valor_hora: float) -> None:
    """Crea o actualiza una categoría."""
    nombre = validate_non_empty_string(nombre)
    cfg.categorias[nombre] = validate_non_negative_number(valor_hora, "valor_hora")


def baja_categoria(cfg: AppConfig, nombre: str) -> List[str]:
    """Elimina la categoría y libera a sus empleados. Devuelve los liberados."""
    liberados = [emp for emp, cat in cfg.empleado_a_categoria.items() if cat == nombre]
    for emp in liberados:
        del cfg.empleado_a_categoria[emp]
    cfg.categorias.pop(nombre, None)
    if liberados:
        _log.info("Categoría %s eliminada; %d empleados sin categoría", nombre, len(liberados))
    return liberados


def asignar_categoria(cfg: AppConfig, empleado: str, categoria: str) -> None:
    empleado = validate_non_empty_string(empleado)
    if categoria not in cfg.categorias:
        raise KeyError(f"Categoría inexistente: {categoria!r}")
    cfg.empleado_a_categoria[empleado] = categoria


def sin_asignar(cfg: AppConfig, empleados: List[str]) -> List[str]:
    """Empleados detectados en el archivo que aún no tienen categoría válida."""
    return [e for e in empleados if categoria_de(e, cfg) == SIN_CATEGORIA]


def empleados_por_categoria(cfg: AppConfig, empleados: List[str]) -> Dict[str, List[str]]:
    out: Dict[str, List[str]] = {c: [] for c in cfg.categorias}
    for e in empleados:
        cat = categoria_de(e, cfg)
        if cat != SIN_CATEGORIA:
            out[cat].append(e)
    return out
