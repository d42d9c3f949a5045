"""Núcleo de cálculo: depuración de fichadas, armado de jornadas y horas.

Flujo por empleado (siempre hacia adelante, sin mutar la etapa previa):

    fichadas crudas -> deduplicar_fichadas -> emparejar_jornadas -> calcular_horas

Reglas de horas (S = jornada estándar):
  - FERIADO:        feriado = min(total, S); extras_feriado = piso_media_hora(total - S)
  - FIN_DE_SEMANA:  extras = piso_media_hora(total)  (todo el turno es extra)
  - HABIL:          normales = min(total, S); extras = piso_media_hora(total - S)

Solo los baldes de horas extra se redondean (hacia abajo, a la media hora).
Las horas normales y de feriado conservan la precisión completa.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Container, Dict, Iterable, List, Optional, Tuple

__all__ = [
    "TIPO_HABIL",
    "TIPO_FIN_DE_SEMANA",
    "TIPO_FERIADO",
    "ESTADO_OK",
    "ESTADO_INCOMPLETO",
    "Fichada",
    "Jornada",
    "DesgloseHoras",
    "agrupar_por_empleado",
    "deduplicar_fichadas",
    "clasificar_dia",
    "emparejar_jornadas",
    "piso_media_hora",
    "calcular_horas",
]

TIPO_HABIL = "HABIL"
TIPO_FIN_DE_SEMANA = "FIN_DE_SEMANA"
TIPO_FERIADO = "FERIADO"

ESTADO_OK = "OK"
ESTADO_INCOMPLETO = "INCOMPLETO"


@dataclass(frozen=True)
class Fichada:
    nombre: str
    momento: datetime
    evento: str = ""


@dataclass(frozen=True)
class Jornada:
    """Sesión de trabajo reconstruida a partir de una entrada y (opcional) su salida."""

    nombre: str
    fecha: str  # ISO (YYYY-MM-DD) de la entrada
    entrada: datetime
    salida: Optional[datetime]
    horas_totales: Optional[float]
    tipo_dia: str
    nocturna: bool
    incompleta: bool
    evento_entrada: str = ""
    evento_salida: str = ""

    @property
    def estado(self) -> str:
        return ESTADO_INCOMPLETO if self.incompleta else ESTADO_OK

    @property
    def es_feriado(self) -> bool:
        return self.tipo_dia == TIPO_FERIADO

    @property
    def es_fin_de_semana(self) -> bool:
        # Un feriado en sábado/domingo sigue siendo fin de semana para el reporte
        return self.entrada.weekday() >= 5


@dataclass(frozen=True)
class DesgloseHoras:
    normales: float = 0.0
    extras: float = 0.0
    feriado: float = 0.0
    extras_feriado: float = 0.0

    @property
    def total(self) -> float:
        return self.normales + self.extras + self.feriado + self.extras_feriado

    def __add__(self, other: "DesgloseHoras") -> "DesgloseHoras":
        return DesgloseHoras(
            normales=self.normales + other.normales,
            extras=self.extras + other.extras,
            feriado=self.feriado + other.feriado,
            extras_feriado=self.extras_feriado + other.extras_feriado,
        )


def agrupar_por_empleado(fichadas: Iterable[Fichada]) -> Dict[str, List[Fichada]]:
    """Agrupa por nombre y ordena cada lista por momento (orden estable)."""
    out: Dict[str, List[Fichada]] = {}
    for f in fichadas:
        out.setdefault(f.nombre, []).append(f)
    return {k: sorted(v, key=lambda x: x.momento) for k, v in out.items()}


def deduplicar_fichadas(fichadas: List[Fichada], umbral_min: int = 5) -> List[Fichada]:
    """Descarta fichadas repetidas (doble pasada de tarjeta).

    Recorre una sola vez, de izquierda a derecha: conserva la primera y cada
    fichada siguiente solo si dista MÁS de `umbral_min` minutos de la última
    conservada (no de la inmediatamente anterior).

    Espera la lista de un único empleado ordenada por momento.
    """
    limpias: List[Fichada] = []
    umbral_s = umbral_min * 60
    for f in fichadas:
        if not limpias:
            limpias.append(f)
            continue
        gap = (f.momento - limpias[-1].momento).total_seconds()
        if gap > umbral_s:
            limpias.append(f)
    return limpias


def clasificar_dia(fecha: date, feriados: Container[str]) -> str:
    """Tipo de día por fecha de entrada: FERIADO > FIN_DE_SEMANA > HABIL."""
    if fecha.isoformat() in feriados:
        return TIPO_FERIADO
    if fecha.weekday() >= 5:
        return TIPO_FIN_DE_SEMANA
    return TIPO_HABIL


def emparejar_jornadas(
    fichadas: List[Fichada],
    feriados: Container[str],
    max_horas: float = 24,
) -> List[Jornada]:
    """Empareja fichadas limpias de un empleado en jornadas (entrada, salida).

    Algoritmo voraz de a pares:
      - entrada = fichadas[i]
      - si existe fichadas[i+1] a menos de `max_horas` -> salida; i += 2
      - si no -> jornada incompleta; i += 1

    No evalúa emparejamientos alternativos: un día con más de dos fichadas
    (p.ej. salida/regreso de almuerzo) se empareja de a dos tal cual llega.
    """
    jornadas: List[Jornada] = []
    max_s = max_horas * 3600
    i = 0
    n = len(fichadas)
    while i < n:
        entrada = fichadas[i]
        salida: Optional[Fichada] = None
        siguiente = i + 1
        if i + 1 < n:
            posible = fichadas[i + 1]
            if (posible.momento - entrada.momento).total_seconds() < max_s:
                salida = posible
                siguiente = i + 2

        fecha_entrada = entrada.momento.date()
        if salida is not None:
            horas = (salida.momento - entrada.momento).total_seconds() / 3600
            nocturna = salida.momento.date() != fecha_entrada
        else:
            horas = None
            nocturna = False

        jornadas.append(
            Jornada(
                nombre=entrada.nombre,
                fecha=fecha_entrada.isoformat(),
                entrada=entrada.momento,
                salida=salida.momento if salida is not None else None,
                horas_totales=horas,
                tipo_dia=clasificar_dia(fecha_entrada, feriados),
                nocturna=nocturna,
                incompleta=salida is None,
                evento_entrada=entrada.evento,
                evento_salida=salida.evento if salida is not None else "",
            )
        )
        i = siguiente
    return jornadas


def piso_media_hora(horas: float) -> float:
    """Redondea hacia abajo a la media hora (0 si no es positivo)."""
    if horas <= 0:
        return 0.0
    return math.floor(horas * 2) / 2


def _base_y_excedente(total: float, jornada_horas: float) -> Tuple[float, float]:
    base = min(total, jornada_horas)
    excedente = piso_media_hora(total - jornada_horas) if total > jornada_horas else 0.0
    return base, excedente


def calcular_horas(jornada: Jornada, jornada_horas: float) -> DesgloseHoras:
    """Convierte la duración de una jornada completa en los cuatro baldes.

    Las jornadas incompletas devuelven un desglose en cero.
    """
    if jornada.incompleta or jornada.horas_totales is None:
        return DesgloseHoras()
    total = max(0.0, jornada.horas_totales)

    if jornada.tipo_dia == TIPO_FERIADO:
        base, extra = _base_y_excedente(total, jornada_horas)
        return DesgloseHoras(feriado=base, extras_feriado=extra)
    if jornada.tipo_dia == TIPO_FIN_DE_SEMANA:
        return DesgloseHoras(extras=piso_media_hora(total))
    base, extra = _base_y_excedente(total, jornada_horas)
    return DesgloseHoras(normales=base, extras=extra)
