"""CLI del procesador de fichadas.

Subcomandos:
- process: procesa un export del reloj y exporta <archivo>_LIQUIDACION.xlsx
- feriados: lista o alterna feriados en el servicio externo
- cierres: lista, muestra o elimina cierres de liquidación guardados
- categorias: alta/baja de categorías y asignación de empleados (config)

Compatibilidad:
- Si se invoca sin subcomando pero con --input, se asume "process".
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Optional

import requests

from .categorias import alta_categoria, asignar_categoria, baja_categoria, empleados_por_categoria, sin_asignar
from .cierres import eliminar_cierre, guardar_cierre, listar_cierres, obtener_cierre
from .config import AppConfig, cargar_config, guardar_config
from .feriados import CalendarioFeriados, ClienteFeriados, cargar_feriados_archivo
from .logger import setup_logging
from .pipeline import procesar_archivo
from .utils import default_app_data_dir
from .validaciones import parse_jornada, validate_iso_date


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Procesador de fichadas y liquidación de horas.")
    sub = p.add_subparsers(dest="cmd")

    # ---- process ----
    p_proc = sub.add_parser("process", help="Procesar export del reloj.")
    p_proc.add_argument("--input", "--in", dest="input_path", required=True, help="Archivo Excel/CSV de fichadas.")
    p_proc.add_argument("--jornada", dest="jornada", default=None, help="Horas de la jornada estándar (default: config, 9).")
    p_proc.add_argument("--empleado", dest="empleado", default="", help="Filtrar por nombre exacto.")
    p_proc.add_argument("--desde", dest="desde", default="", help="Fecha inicial inclusiva (YYYY-MM-DD).")
    p_proc.add_argument("--hasta", dest="hasta", default="", help="Fecha final inclusiva (YYYY-MM-DD).")
    g_fer = p_proc.add_mutually_exclusive_group()
    g_fer.add_argument("--feriados-url", dest="feriados_url", default="", help="URL del servicio de feriados (GET).")
    g_fer.add_argument("--feriados-file", dest="feriados_file", default="", help="JSON local con lista de feriados.")
    p_proc.add_argument("--output", dest="output_path", default="", help="Excel de salida (default: <input>_LIQUIDACION.xlsx).")
    p_proc.add_argument("--config-dir", dest="config_dir", default="", help="Directorio de config_fichadas.json.")
    p_proc.add_argument("--cierre", dest="cierre", default="", help="Guardar el detalle como cierre con este nombre de período.")
    p_proc.add_argument("--dry-run", dest="dry_run", action="store_true", help="Calcula sin escribir archivos.")
    p_proc.add_argument("--log-level", dest="log_level", default="INFO", help="DEBUG/INFO/WARNING/ERROR.")

    # ---- feriados ----
    p_fer = sub.add_parser("feriados", help="Consultar o alternar feriados.")
    p_fer.add_argument("accion", choices=["list", "toggle"])
    p_fer.add_argument("--fecha", dest="fecha", default="", help="Fecha a alternar (YYYY-MM-DD).")
    p_fer.add_argument("--feriados-url", dest="feriados_url", default="", help="URL del servicio de feriados.")
    p_fer.add_argument("--config-dir", dest="config_dir", default="", help="Directorio de config_fichadas.json.")
    p_fer.add_argument("--log-level", dest="log_level", default="INFO", help="DEBUG/INFO/WARNING/ERROR.")

    # ---- cierres ----
    p_cie = sub.add_parser("cierres", help="Historial de cierres de liquidación.")
    p_cie.add_argument("accion", choices=["list", "show", "delete"])
    p_cie.add_argument("--dir", dest="cierres_dir", default="", help="Directorio de cierres (default: datos de la app).")
    p_cie.add_argument("--config-dir", dest="config_dir", default="", help="Directorio de config_fichadas.json.")
    p_cie.add_argument("--id", dest="cierre_id", type=int, default=None, help="ID del cierre (show/delete).")
    p_cie.add_argument("--log-level", dest="log_level", default="INFO", help="DEBUG/INFO/WARNING/ERROR.")

    # ---- categorias ----
    p_cat = sub.add_parser("categorias", help="Categorías de personal y asignaciones.")
    p_cat.add_argument("accion", choices=["list", "alta", "baja", "asignar"])
    p_cat.add_argument("--config-dir", dest="config_dir", required=True, help="Directorio de config_fichadas.json.")
    p_cat.add_argument("--nombre", dest="nombre", default="", help="Nombre de la categoría.")
    p_cat.add_argument("--valor", dest="valor", default=None, help="Valor hora (alta).")
    p_cat.add_argument("--empleado", dest="empleado", default="", help="Empleado a asignar (nombre exacto del reloj).")
    p_cat.add_argument("--log-level", dest="log_level", default="INFO", help="DEBUG/INFO/WARNING/ERROR.")

    # Compat legacy: permitir flags de process sin subcomando
    p.add_argument("--input", "--in", dest="legacy_input_path", default="", help=argparse.SUPPRESS)
    p.add_argument("--jornada", dest="legacy_jornada", default=None, help=argparse.SUPPRESS)
    p.add_argument("--log-level", dest="legacy_log_level", default="INFO", help=argparse.SUPPRESS)

    return p


def _cargar_cfg(config_dir: str) -> AppConfig:
    if str(config_dir or "").strip():
        return cargar_config(Path(config_dir))
    return AppConfig()


def _cliente_feriados(url: str, cfg: AppConfig) -> ClienteFeriados:
    cache = default_app_data_dir() / cfg.feriados_cache_filename
    return ClienteFeriados(url or cfg.feriados_url, timeout=cfg.feriados_timeout_s, cache_path=cache)


def _fmt_horas(v: float) -> str:
    return f"{v:.2f}"


def _cmd_process(args: argparse.Namespace) -> int:
    setup_logging(level=str(args.log_level).upper())
    cfg = _cargar_cfg(getattr(args, "config_dir", ""))

    in_path = Path(args.input_path)
    if not in_path.exists():
        print(f"ERROR: archivo de entrada no existe: {in_path}")
        return 2
    if in_path.is_dir():
        print(f"ERROR: se esperaba un archivo, no un directorio: {in_path}")
        return 2

    try:
        jornada = parse_jornada(args.jornada) if args.jornada is not None else cfg.jornada_horas
        desde = validate_iso_date(args.desde, "desde") if str(getattr(args, "desde", "") or "").strip() else None
        hasta = validate_iso_date(args.hasta, "hasta") if str(getattr(args, "hasta", "") or "").strip() else None
    except ValueError as e:
        print(f"ERROR: {e}")
        return 2

    feriados_file = str(getattr(args, "feriados_file", "") or "").strip()
    if feriados_file:
        feriados = cargar_feriados_archivo(Path(feriados_file))
        if feriados is None:
            print(f"ERROR: no se pudo leer el archivo de feriados: {feriados_file}")
            return 2
    else:
        feriados = _cliente_feriados(str(getattr(args, "feriados_url", "") or ""), cfg).obtener()

    out = str(getattr(args, "output_path", "") or "").strip()
    try:
        rep = procesar_archivo(
            in_path,
            feriados=feriados,
            jornada_horas=jornada,
            empleado=str(getattr(args, "empleado", "") or "").strip() or None,
            desde=desde,
            hasta=hasta,
            out_path=Path(out) if out else None,
            dry_run=bool(getattr(args, "dry_run", False)),
            cfg=cfg,
        )
    except KeyError as e:
        print(f"ERROR: {e.args[0] if e.args else e}")
        return 2
    except ValueError as e:
        print(f"ERROR: {e}")
        return 2

    t = rep.totales
    print(f"Jornadas: {len(rep.detalle)} | Incompletas: {rep.resultado.incompletas} | Filas descartadas: {rep.resultado.filas_descartadas}")
    print(
        f"Hs Normales: {_fmt_horas(t.normales)} | Hs Extras: {_fmt_horas(t.extras)} | "
        f"Hs Feriado 100%: {_fmt_horas(t.feriado)} | Hs Extras 100%: {_fmt_horas(t.extras_feriado)}"
    )
    faltantes = sin_asignar(cfg, rep.resultado.empleados)
    if faltantes:
        print(f"AVISO: {len(faltantes)} empleado(s) sin categoría (liquidan 0): {', '.join(faltantes)}")
    if not getattr(args, "dry_run", False):
        print(f"OK: {rep.salida}")

    nombre_cierre = str(getattr(args, "cierre", "") or "").strip()
    if nombre_cierre and not getattr(args, "dry_run", False):
        enc = guardar_cierre(
            cierres_dir=default_app_data_dir(),
            nombre_periodo=nombre_cierre,
            filas=rep.filas,
            filename=cfg.cierres_filename,
        )
        print(f"OK: cierre #{enc['id']} guardado ({enc['nombre_periodo']})")
    return 0


def _cmd_feriados(args: argparse.Namespace) -> int:
    setup_logging(level=str(args.log_level).upper())
    cfg = _cargar_cfg(args.config_dir)
    cliente = _cliente_feriados(args.feriados_url, cfg)

    if args.accion == "list":
        cal: CalendarioFeriados = cliente.obtener()
        for f in cal:
            print(f)
        return 0

    if not cliente.url:
        print("ERROR: toggle requiere --feriados-url (o feriados.url en config)")
        return 2
    try:
        fecha = validate_iso_date(args.fecha, "fecha")
    except ValueError as e:
        print(f"ERROR: {e}")
        return 2
    try:
        accion = cliente.alternar(fecha)
    except requests.RequestException as e:
        print(f"ERROR: no se pudo alternar el feriado: {e}")
        return 2
    print(f"OK: {fecha} {accion}")
    return 0


def _cmd_cierres(args: argparse.Namespace) -> int:
    setup_logging(level=str(args.log_level).upper())
    cfg = _cargar_cfg(getattr(args, "config_dir", ""))
    cdir = Path(args.cierres_dir) if str(args.cierres_dir or "").strip() else default_app_data_dir()
    fname = cfg.cierres_filename

    if args.accion == "list":
        for c in listar_cierres(cdir, filename=fname):
            print(f"#{c['id']} | {c['fecha_creacion']} | {c['nombre_periodo']} | ${c['total_pagado']:.2f} | {c['cantidad_empleados']} empleados")
        return 0

    if args.cierre_id is None:
        print("ERROR: se requiere --id")
        return 2
    if args.accion == "show":
        c = obtener_cierre(cdir, args.cierre_id, filename=fname)
        if c is None:
            print(f"ERROR: cierre no encontrado: {args.cierre_id}")
            return 2
        print(json.dumps(c, ensure_ascii=False, indent=2))
        return 0
    if not eliminar_cierre(cdir, args.cierre_id, filename=fname):
        print(f"ERROR: cierre no encontrado: {args.cierre_id}")
        return 2
    print(f"OK: cierre #{args.cierre_id} eliminado")
    return 0


def _cmd_categorias(args: argparse.Namespace) -> int:
    setup_logging(level=str(args.log_level).upper())
    config_dir = Path(args.config_dir)
    cfg = cargar_config(config_dir)
    nombre = str(args.nombre or "").strip()

    if args.accion == "list":
        asignados = empleados_por_categoria(cfg, sorted(cfg.empleado_a_categoria))
        for cat, valor in sorted(cfg.categorias.items()):
            print(f"{cat} | ${valor:.2f}/h | {', '.join(asignados[cat]) or '-'}")
        return 0

    if not nombre:
        print("ERROR: se requiere --nombre")
        return 2

    if args.accion == "alta":
        try:
            valor = float(str(args.valor).strip().replace(",", "."))
            alta_categoria(cfg, nombre, valor)
        except (TypeError, ValueError) as e:
            print(f"ERROR: valor hora inválido ({args.valor!r}): {e}")
            return 2
        guardar_config(config_dir, cfg)
        print(f"OK: categoría {nombre} = ${cfg.categorias[nombre]:.2f}/h")
        return 0

    if args.accion == "baja":
        if nombre not in cfg.categorias:
            print(f"ERROR: categoría inexistente: {nombre}")
            return 2
        liberados = baja_categoria(cfg, nombre)
        guardar_config(config_dir, cfg)
        print(f"OK: categoría {nombre} eliminada ({len(liberados)} empleado(s) sin categoría)")
        return 0

    try:
        asignar_categoria(cfg, args.empleado, nombre)
    except KeyError as e:
        print(f"ERROR: {e.args[0] if e.args else e}")
        return 2
    except ValueError:
        print("ERROR: se requiere --empleado")
        return 2
    guardar_config(config_dir, cfg)
    print(f"OK: {args.empleado.strip()} -> {nombre}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Compat: si no hay subcomando pero se pasó --input, asumir process
    if not args.cmd and getattr(args, "legacy_input_path", ""):
        a = argparse.Namespace(
            input_path=args.legacy_input_path,
            jornada=args.legacy_jornada,
            log_level=str(args.legacy_log_level),
            empleado="",
            desde="",
            hasta="",
            feriados_url="",
            feriados_file="",
            output_path="",
            config_dir="",
            cierre="",
            dry_run=False,
        )
        return _cmd_process(a)

    if args.cmd == "process":
        return _cmd_process(args)
    if args.cmd == "feriados":
        return _cmd_feriados(args)
    if args.cmd == "cierres":
        return _cmd_cierres(args)
    if args.cmd == "categorias":
        return _cmd_categorias(args)

    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
