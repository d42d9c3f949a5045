
import random
from datetime import datetime, timedelta

from fichadas.core import Fichada, calcular_horas, deduplicar_fichadas, emparejar_jornadas
from fichadas.feriados import CalendarioFeriados


def test_fuzz_invariants_500_cases():
    rng = random.Random(12345)
    feriados = CalendarioFeriados.desde(["2026-03-02", "2026-03-07", "2026-03-12"])

    for _ in range(500):
        base = datetime(2026, 3, rng.randint(1, 14), rng.randint(0, 23), rng.randint(0, 59))
        n = rng.randint(1, 8)
        offsets = sorted(rng.randint(0, 60 * 40) for __ in range(n))
        fichadas = [Fichada("Emp", base + timedelta(minutes=m, seconds=rng.randint(0, 59))) for m in offsets]
        fichadas.sort(key=lambda f: f.momento)
        jornada_horas = rng.choice([4, 6, 8, 8.5, 9, 12])

        limpias = deduplicar_fichadas(fichadas)
        assert deduplicar_fichadas(limpias) == limpias

        jornadas = emparejar_jornadas(limpias, feriados)
        usadas = sum(1 if j.incompleta else 2 for j in jornadas)
        assert usadas == len(limpias)

        for j in jornadas:
            d = calcular_horas(j, jornada_horas)
            assert d.normales >= 0 and d.extras >= 0 and d.feriado >= 0 and d.extras_feriado >= 0
            if j.incompleta:
                assert d.total == 0
                continue
            total = j.horas_totales
            assert 0 < total < 24
            # solo se pierde lo del redondeo de extras (< media hora)
            assert d.total <= total + 1e-9
            assert total - d.total < 0.5
            assert d.extras * 2 == int(d.extras * 2)
            assert d.extras_feriado * 2 == int(d.extras_feriado * 2)
            if j.tipo_dia == "FERIADO":
                assert d.normales == 0 and d.extras == 0
                assert d.feriado <= jornada_horas
            elif j.tipo_dia == "FIN_DE_SEMANA":
                assert d.normales == 0 and d.feriado == 0 and d.extras_feriado == 0
            else:
                assert d.feriado == 0 and d.extras_feriado == 0
                assert d.normales <= jornada_horas
