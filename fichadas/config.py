"""Configuración: reglas de jornada, alias de columnas, feriados y categorías."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from .logger import log_exception
from .utils import backup_file, chmod_restringido
from .validaciones import parse_jornada, validate_non_negative_int, validate_non_negative_number, validate_range

CONFIG_FILENAME = "config_fichadas.json"


@dataclass
class AppConfig:
    # ---- Reglas de jornada ----
    jornada_horas: float = 9.0
    umbral_duplicado_min: int = 5  # fichadas a <= 5 min de la última conservada se descartan
    max_jornada_horas: int = 24  # una salida a >= 24h de la entrada no se empareja
    dayfirst: bool = False  # "03/05/2024" = 5 de marzo; True para dd/mm/yyyy

    # ---- Alias de columnas del reloj (orden = prioridad) ----
    alias_nombre: List[str] = field(default_factory=lambda: ["Nombre", "Name", "Person Name", "nombre"])
    alias_tiempo: List[str] = field(default_factory=lambda: ["Tiempo", "Time", "tiempo", "Fecha/Hora"])
    alias_evento: List[str] = field(default_factory=lambda: ["Evento de Asistencia", "Estado", "Tipo"])

    # ---- Servicio de feriados ----
    feriados_url: str = ""
    feriados_timeout_s: float = 10.0
    feriados_cache_filename: str = "feriados_cache.json"

    # ---- Categorías de personal / liquidación ----
    # categorias: nombre -> valor hora
    categorias: Dict[str, float] = field(default_factory=dict)
    empleado_a_categoria: Dict[str, str] = field(default_factory=dict)
    factor_extra: float = 1.5
    factor_feriado: float = 2.0
    factor_extra_feriado: float = 2.0

    # ---- Cierres ----
    cierres_filename: str = "cierres.jsonl"

    # Excel export formatting (determinístico / configurable)
    column_widths: Dict[str, float] = field(
        default_factory=lambda: {
            "Nombre": 32,
            "Categoría": 18,
            "Fecha": 12,
            "Día": 8,
            "Entrada": 10,
            "Salida": 10,
            "Hs Normales": 14,
            "Hs Extras": 14,
            "Hs Feriado 100%": 16,
            "Hs Extras 100%": 16,
            "Hs Totales": 12,
            "Estado": 12,
            "Total a Liquidar": 18,
        }
    )

    def valor_hora_de(self, nombre: str) -> float:
        cat = self.empleado_a_categoria.get(nombre, "")
        return float(self.categorias.get(cat, 0.0) or 0.0) if cat else 0.0


def _config_path(config_dir: Path) -> Path:
    return Path(config_dir) / CONFIG_FILENAME


def cargar_config(config_dir: Path) -> AppConfig:
    path = _config_path(config_dir)
    if not path.exists():
        cfg = AppConfig()
        guardar_config(config_dir, cfg)
        return cfg
    data = json.loads(path.read_text(encoding="utf-8"))
    cfg = AppConfig()
    defaults = AppConfig()

    reglas = data.get("reglas", {}) or {}
    try:
        cfg.jornada_horas = parse_jornada(reglas.get("jornada_horas", cfg.jornada_horas))
    except ValueError as exc:
        log_exception(f"Jornada inválida en config, usando default: {exc}", level=logging.WARNING)
        cfg.jornada_horas = defaults.jornada_horas
    cfg.umbral_duplicado_min = reglas.get("umbral_duplicado_min", cfg.umbral_duplicado_min)
    cfg.max_jornada_horas = reglas.get("max_jornada_horas", cfg.max_jornada_horas)
    cfg.dayfirst = bool(reglas.get("dayfirst", cfg.dayfirst))

    alias = data.get("alias", {}) or {}
    cfg.alias_nombre = [str(x) for x in (alias.get("nombre") or cfg.alias_nombre)]
    cfg.alias_tiempo = [str(x) for x in (alias.get("tiempo") or cfg.alias_tiempo)]
    cfg.alias_evento = [str(x) for x in (alias.get("evento") or cfg.alias_evento)]

    fer = data.get("feriados", {}) or {}
    cfg.feriados_url = str(fer.get("url", cfg.feriados_url) or "")
    cfg.feriados_timeout_s = float(fer.get("timeout_s", cfg.feriados_timeout_s) or defaults.feriados_timeout_s)
    cfg.feriados_cache_filename = str(fer.get("cache_filename", cfg.feriados_cache_filename) or defaults.feriados_cache_filename)

    liq = data.get("liquidacion", {}) or {}
    cfg.categorias = {str(k): float(v or 0) for k, v in (liq.get("categorias", {}) or {}).items()}
    cfg.empleado_a_categoria = {str(k): str(v) for k, v in (liq.get("empleado_a_categoria", {}) or {}).items()}
    cfg.factor_extra = float(liq.get("factor_extra", cfg.factor_extra))
    cfg.factor_feriado = float(liq.get("factor_feriado", cfg.factor_feriado))
    cfg.factor_extra_feriado = float(liq.get("factor_extra_feriado", cfg.factor_extra_feriado))
    cfg.cierres_filename = str(liq.get("cierres_filename", cfg.cierres_filename) or defaults.cierres_filename)

    excel = data.get("excel", {}) or {}
    cfg.column_widths = excel.get("column_widths", cfg.column_widths) or cfg.column_widths

    # Validate numeric config bounds
    try:
        validate_non_negative_int(cfg.umbral_duplicado_min, "umbral_duplicado_min")
        validate_non_negative_int(cfg.max_jornada_horas, "max_jornada_horas")
        validate_range(cfg.max_jornada_horas, 1, 24)
        for nombre_cat, valor in cfg.categorias.items():
            validate_non_negative_number(valor, f"categorias[{nombre_cat}]")
    except (TypeError, ValueError) as exc:
        log_exception(f"Valor inválido en config, usando defaults: {exc}", level=logging.WARNING)
        if not isinstance(cfg.umbral_duplicado_min, int) or cfg.umbral_duplicado_min < 0:
            cfg.umbral_duplicado_min = defaults.umbral_duplicado_min
        if not isinstance(cfg.max_jornada_horas, int) or not (1 <= cfg.max_jornada_horas <= 24):
            cfg.max_jornada_horas = defaults.max_jornada_horas
        cfg.categorias = {k: max(0.0, v) for k, v in cfg.categorias.items() if v == v}

    return cfg


def guardar_config(config_dir: Path, cfg: AppConfig) -> None:
    """Guarda configuración en config_fichadas.json.

    Reglas:
    - No sobrescribe si el contenido serializado no cambió (evita backups/spam).
    - Si cambia y existe archivo previo, crea backup timestamped.
    - Endurece permisos best-effort (0600 en POSIX).
    """
    path = _config_path(config_dir)

    data = {
        "reglas": {
            "jornada_horas": cfg.jornada_horas,
            "umbral_duplicado_min": cfg.umbral_duplicado_min,
            "max_jornada_horas": cfg.max_jornada_horas,
            "dayfirst": cfg.dayfirst,
        },
        "alias": {
            "nombre": cfg.alias_nombre,
            "tiempo": cfg.alias_tiempo,
            "evento": cfg.alias_evento,
        },
        "feriados": {
            "url": cfg.feriados_url,
            "timeout_s": cfg.feriados_timeout_s,
            "cache_filename": cfg.feriados_cache_filename,
        },
        "liquidacion": {
            "categorias": cfg.categorias,
            "empleado_a_categoria": cfg.empleado_a_categoria,
            "factor_extra": cfg.factor_extra,
            "factor_feriado": cfg.factor_feriado,
            "factor_extra_feriado": cfg.factor_extra_feriado,
            "cierres_filename": cfg.cierres_filename,
        },
        "excel": {
            "column_widths": cfg.column_widths,
        },
    }

    new_text = json.dumps(data, ensure_ascii=False, indent=2)

    # Si no hay cambios, NO tocar el archivo (ni backups)
    if path.exists():
        try:
            old = path.read_text(encoding="utf-8")
        except OSError:
            old = ""
        if old.strip() == new_text.strip():
            return

    # Backup solo si existe archivo previo
    try:
        backup_file(path, suffix=".bak")
    except OSError:
        log_exception("Fallo best-effort en backup de config", level=logging.WARNING)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(new_text, encoding="utf-8")
    chmod_restringido(path)

