"""Pipeline de procesamiento: filas crudas -> jornadas con horas -> reportes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Container, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from .config import AppConfig
from .core import DesgloseHoras, agrupar_por_empleado, calcular_horas, deduplicar_fichadas, emparejar_jornadas
from .feriados import CalendarioFeriados
from .io import backup_if_exists, exportar_excel, leer_tabla
from .logger import get_logger
from .parsers import normalizar_filas, verificar_columnas
from .summaries import Registro, construir_detalle, construir_resumen, consultar, resumen_por_empleado
from .validaciones import parse_jornada

_log = get_logger("pipeline")


@dataclass(frozen=True)
class Resultado:
    registros: Tuple[Registro, ...]
    jornada_horas: float
    feriados: CalendarioFeriados
    filas_descartadas: int = 0
    fichadas_duplicadas: int = 0

    @property
    def empleados(self) -> List[str]:
        return sorted({r.jornada.nombre for r in self.registros})

    @property
    def incompletas(self) -> int:
        return sum(1 for r in self.registros if r.jornada.incompleta)


def procesar_fichadas(
    filas: Iterable[Mapping[str, object]],
    feriados: Container[str],
    jornada_horas: float,
    cfg: AppConfig | None = None,
) -> Resultado:
    """Corre las cinco etapas sobre filas crudas. Puro: no hace I/O.

    Mismas filas + mismo calendario + misma jornada => mismo resultado.
    """
    cfg = cfg or AppConfig()
    jornada_horas = parse_jornada(jornada_horas)
    if not isinstance(feriados, CalendarioFeriados):
        feriados = CalendarioFeriados.desde(feriados)

    fichadas, descartadas = normalizar_filas(filas, cfg)

    registros: List[Registro] = []
    duplicadas = 0
    for nombre, lista in sorted(agrupar_por_empleado(fichadas).items()):
        limpias = deduplicar_fichadas(lista, cfg.umbral_duplicado_min)
        duplicadas += len(lista) - len(limpias)
        for j in emparejar_jornadas(limpias, feriados, cfg.max_jornada_horas):
            registros.append(Registro(jornada=j, desglose=calcular_horas(j, jornada_horas)))

    res = Resultado(
        registros=tuple(registros),
        jornada_horas=jornada_horas,
        feriados=feriados,
        filas_descartadas=descartadas,
        fichadas_duplicadas=duplicadas,
    )
    _log.info(
        "Procesadas %d fichadas: %d jornadas (%d incompletas), %d duplicadas, %d filas descartadas",
        len(fichadas), len(res.registros), res.incompletas, duplicadas, descartadas,
    )
    return res


class ProcesadorAsistencia:
    """Mantiene el último resultado válido y permite recalcular a demanda.

    `recalcular()` arma el resultado completo en variables locales y recién
    al final lo publica: si algo falla, el resultado previo queda intacto.
    """

    def __init__(self, filas: Iterable[Mapping[str, object]], cfg: AppConfig | None = None,
                 proveedor_feriados=None) -> None:
        self.cfg = cfg or AppConfig()
        self._filas: Tuple[Mapping[str, object], ...] = tuple(filas)
        self._proveedor = proveedor_feriados
        self._feriados = CalendarioFeriados()
        self._resultado: Optional[Resultado] = None

    @property
    def resultado(self) -> Optional[Resultado]:
        return self._resultado

    @property
    def feriados(self) -> CalendarioFeriados:
        return self._feriados

    def recalcular(self, jornada_horas: "float | str | None" = None,
                   feriados: Optional[CalendarioFeriados] = None) -> Resultado:
        jornada = parse_jornada(self.cfg.jornada_horas if jornada_horas is None else jornada_horas)
        if feriados is None:
            feriados = self._proveedor.obtener() if self._proveedor is not None else self._feriados
        res = procesar_fichadas(self._filas, feriados, jornada, self.cfg)
        self._feriados = res.feriados
        self._resultado = res
        return res

    def empleados(self) -> List[str]:
        return self._resultado.empleados if self._resultado is not None else []

    def consultar(self, empleado: Optional[str] = None, desde: "date | str | None" = None,
                  hasta: "date | str | None" = None) -> Tuple[List[Registro], DesgloseHoras]:
        if self._resultado is None:
            return [], DesgloseHoras()
        return consultar(self._resultado.registros, empleado=empleado, desde=desde, hasta=hasta)


@dataclass
class Reporte:
    detalle: pd.DataFrame
    resumen: pd.DataFrame
    empleados: pd.DataFrame
    totales: DesgloseHoras
    resultado: Resultado
    salida: Optional[Path] = None
    filas: List[Dict[str, object]] = field(default_factory=list)


def procesar_archivo(
    in_path: Path,
    *,
    feriados: Container[str] = (),
    jornada_horas: "float | str | None" = None,
    empleado: Optional[str] = None,
    desde: "date | str | None" = None,
    hasta: "date | str | None" = None,
    out_path: Optional[Path] = None,
    dry_run: bool = False,
    cfg: AppConfig | None = None,
) -> Reporte:
    """Lee el export del reloj, calcula, filtra y (salvo dry_run) exporta a Excel.

    Raises:
        ValueError: formato de archivo no soportado o jornada inválida.
        KeyError: el archivo no tiene columna de nombre u hora.
    """
    cfg = cfg or AppConfig()
    in_path = Path(in_path)
    df_in = leer_tabla(in_path)
    verificar_columnas(df_in.columns, cfg)
    filas = df_in.to_dict(orient="records")
    res = procesar_fichadas(filas, feriados, cfg.jornada_horas if jornada_horas is None else jornada_horas, cfg)

    detalle_regs, totales = consultar(res.registros, empleado=empleado, desde=desde, hasta=hasta)
    df_det = construir_detalle(detalle_regs, cfg)
    df_res = construir_resumen(detalle_regs, cfg)
    df_emp = resumen_por_empleado(detalle_regs, cfg)

    salida = Path(out_path) if out_path else in_path.with_name(f"{in_path.stem}_LIQUIDACION.xlsx")
    if dry_run:
        _log.info("dry-run: no se escribe %s", salida.name)
    else:
        backup_if_exists(salida)
        exportar_excel(df_det, salida, extra_sheets={"Resumen": df_res, "Empleados": df_emp}, cfg=cfg)
        _log.info("Exportado: %s", salida)

    return Reporte(
        detalle=df_det,
        resumen=df_res,
        empleados=df_emp,
        totales=totales,
        resultado=res,
        salida=salida,
        filas=df_det.to_dict(orient="records"),
    )
