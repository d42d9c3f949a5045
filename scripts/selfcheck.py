"""Self-check for the punch processor.

Runs:
- compileall
- pytest
- stress_calc.py (random punch sequences)
- smoke run of the CLI (dry-run) on a small generated clock export

Exit code:
- 0 on success
- non-zero on failure

Usage:
    python scripts/selfcheck.py
"""

from __future__ import annotations

import subprocess
import sys
import tempfile
from pathlib import Path

import pandas as pd

ROOT = Path(__file__).resolve().parents[1]


def run(cmd: list[str]) -> None:
    print("\n$", " ".join(cmd))
    subprocess.run(cmd, cwd=str(ROOT), check=True)


def _demo_export(path: Path) -> None:
    pd.DataFrame(
        {
            "Nombre": ["Demo", "Demo", "Demo", "Demo", "Demo"],
            "Tiempo": [
                "2026-01-05 08:00:00",
                "2026-01-05 08:02:00",
                "2026-01-05 19:30:00",
                "2026-01-09 22:00:00",
                "2026-01-10 06:00:00",
            ],
            "Evento de Asistencia": ["Entrada", "Entrada", "Salida", "Entrada", "Salida"],
        }
    ).to_excel(path, index=False)


def main() -> int:
    try:
        run([sys.executable, "-m", "compileall", "-q", "fichadas", "scripts", "tests"])
        run([sys.executable, "-m", "pytest", "-q"])
        run([sys.executable, str(ROOT / "scripts" / "stress_calc.py")])

        with tempfile.TemporaryDirectory() as td:
            demo = Path(td) / "demo_input.xlsx"
            _demo_export(demo)
            run([sys.executable, "-m", "fichadas.cli", "process", "--input", str(demo), "--dry-run", "--jornada", "9"])
        print("\n[OK] selfcheck passed")
        return 0
    except subprocess.CalledProcessError as e:
        print(f"\n[FAIL] selfcheck failed: {e}")
        return int(e.returncode or 1)


if __name__ == "__main__":
    raise SystemExit(main())
