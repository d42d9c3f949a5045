"""Stress test for hours calculation (dedup / pairing / buckets).

This script generates random punch sequences per employee (including midnight
crossing, weekends and holidays) and asserts basic invariants.

Usage:
    python scripts/stress_calc.py
"""

from __future__ import annotations

import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Ensure project root is on sys.path so "python scripts/..." works.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from fichadas.core import Fichada, calcular_horas, deduplicar_fichadas, emparejar_jornadas  # noqa: E402
from fichadas.feriados import CalendarioFeriados  # noqa: E402


def main() -> int:
    random.seed(1337)
    feriados = CalendarioFeriados.desde(["2026-01-01", "2026-01-06", "2026-01-17"])

    # Generate 10k scenarios
    for _ in range(10_000):
        start = datetime(2026, 1, 1) + timedelta(minutes=random.randint(0, 20 * 24 * 60))
        n = random.randint(1, 10)
        fichadas = sorted(
            (Fichada("X", start + timedelta(seconds=random.randint(0, 48 * 3600))) for _k in range(n)),
            key=lambda f: f.momento,
        )
        jornada = random.choice([6, 8, 8.5, 9, 12])

        limpias = deduplicar_fichadas(fichadas)
        if deduplicar_fichadas(limpias) != limpias:
            raise AssertionError("dedup no idempotente")

        jornadas = emparejar_jornadas(limpias, feriados)
        usadas = sum(1 if j.incompleta else 2 for j in jornadas)
        if usadas != len(limpias):
            raise AssertionError(f"fichadas usadas {usadas} != {len(limpias)}")

        for j in jornadas:
            d = calcular_horas(j, jornada)
            for name, v in (("normales", d.normales), ("extras", d.extras),
                            ("feriado", d.feriado), ("extras_feriado", d.extras_feriado)):
                if v < 0:
                    raise AssertionError(f"balde negativo {name}: {v}")
            if j.incompleta:
                if d.total != 0:
                    raise AssertionError("jornada incompleta con horas")
                continue
            perdida = j.horas_totales - d.total
            if not (-1e-9 <= perdida < 0.5):
                raise AssertionError(f"pérdida por redondeo fuera de rango: {perdida}")

    print("[OK] stress_calc: 10,000 escenarios sin violaciones")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
