"""Logging central del procesador de fichadas.

Todos los módulos cuelgan del logger "fichadas" (fichadas.core, fichadas.feriados, ...).
La CLI llama a `setup_logging()` una sola vez por comando.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOGGER_NAME = "fichadas"


def get_logger(modulo: str = "") -> logging.Logger:
    """Logger hijo de "fichadas" (p.ej. get_logger("cierres") -> fichadas.cierres)."""
    return logging.getLogger(f"{LOGGER_NAME}.{modulo}" if modulo else LOGGER_NAME)


def _nivel(level: str) -> int:
    return getattr(logging, str(level or "INFO").strip().upper(), logging.INFO)


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """Configura el logger raíz.

    - level: DEBUG/INFO/WARNING/ERROR (desconocido -> INFO)
    - log_file: si se indica, también escribe a archivo (UTF-8, permisos 0600)

    Es idempotente: llamadas repetidas solo ajustan el nivel.
    """
    lvl = _nivel(level)
    root = logging.getLogger()
    root.setLevel(lvl)
    formatter = logging.Formatter(DEFAULT_FMT)

    consola = [h for h in root.handlers if type(h) is logging.StreamHandler]
    if not consola:
        sh = logging.StreamHandler()
        sh.setFormatter(formatter)
        root.addHandler(sh)
        consola = [sh]
    for h in consola:
        h.setLevel(lvl)

    if log_file:
        destino = os.path.abspath(str(log_file))
        Path(destino).parent.mkdir(parents=True, exist_ok=True)
        if not any(getattr(h, "baseFilename", None) == destino for h in root.handlers):
            fh = logging.FileHandler(destino, encoding="utf-8")
            fh.setLevel(lvl)
            fh.setFormatter(formatter)
            root.addHandler(fh)
        try:
            os.chmod(destino, 0o600)
        except OSError:
            get_logger().debug("No se pudieron restringir permisos de %s", destino)

    return get_logger()


def log_exception(msg: str, *, extra: dict | None = None, level: int = logging.WARNING) -> None:
    """Loggea la excepción en curso con contexto clave=valor, sin relanzarla."""
    if extra:
        msg = msg + " | " + " ".join(f"{k}={v!r}" for k, v in extra.items())
    get_logger().log(level, msg, exc_info=True)
