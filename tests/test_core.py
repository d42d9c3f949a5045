from datetime import date, datetime

from fichadas.core import (
    TIPO_FERIADO,
    TIPO_FIN_DE_SEMANA,
    TIPO_HABIL,
    DesgloseHoras,
    Fichada,
    agrupar_por_empleado,
    calcular_horas,
    clasificar_dia,
    deduplicar_fichadas,
    emparejar_jornadas,
    piso_media_hora,
)
from fichadas.feriados import CalendarioFeriados

# 2026-01-05 es lunes, 2026-01-10 sábado
LUNES = (2026, 1, 5)
SABADO = (2026, 1, 10)


def _f(nombre, y, m, d, hh, mm, ss=0):
    return Fichada(nombre=nombre, momento=datetime(y, m, d, hh, mm, ss))


def _jornada_unica(a, b, feriados=()):
    jornadas = emparejar_jornadas([a, b], CalendarioFeriados.desde(feriados))
    assert len(jornadas) == 1
    return jornadas[0]


def test_habil_con_extras():
    j = _jornada_unica(_f("Ana", *LUNES, 8, 0), _f("Ana", *LUNES, 19, 30))
    assert j.tipo_dia == TIPO_HABIL
    d = calcular_horas(j, 9)
    assert d.normales == 9.0
    assert d.extras == 2.5
    assert d.feriado == 0 and d.extras_feriado == 0


def test_fin_de_semana_todo_extra_redondeado():
    j = _jornada_unica(_f("Ana", *SABADO, 8, 0), _f("Ana", *SABADO, 14, 15))
    assert j.tipo_dia == TIPO_FIN_DE_SEMANA
    assert j.horas_totales == 6.25
    d = calcular_horas(j, 9)
    assert d.normales == 0
    assert d.extras == 6.0


def test_feriado_con_extras():
    j = _jornada_unica(_f("Ana", *LUNES, 8, 0), _f("Ana", *LUNES, 20, 0), feriados=["2026-01-05"])
    assert j.tipo_dia == TIPO_FERIADO
    d = calcular_horas(j, 9)
    assert d.feriado == 9.0
    assert d.extras_feriado == 3.0
    assert d.normales == 0 and d.extras == 0


def test_jornada_nocturna_usa_fecha_de_entrada():
    j = _jornada_unica(_f("Ana", 2026, 1, 5, 22, 0), _f("Ana", 2026, 1, 6, 6, 0), feriados=["2026-01-06"])
    assert j.nocturna is True
    assert j.fecha == "2026-01-05"
    assert j.tipo_dia == TIPO_HABIL
    d = calcular_horas(j, 9)
    assert d.normales == 8.0
    assert d.extras == 0


def test_nocturna_viernes_a_sabado_es_habil():
    j = _jornada_unica(_f("Ana", 2026, 1, 9, 22, 0), _f("Ana", 2026, 1, 10, 6, 0))
    assert j.tipo_dia == TIPO_HABIL
    assert j.es_fin_de_semana is False


def test_dedup_umbral_estricto():
    a = _f("Ana", *LUNES, 8, 0)
    assert deduplicar_fichadas([a, _f("Ana", *LUNES, 8, 3)]) == [a]
    b = _f("Ana", *LUNES, 8, 10)
    assert deduplicar_fichadas([a, b]) == [a, b]
    # exactamente 5 minutos: duplicado
    assert deduplicar_fichadas([a, _f("Ana", *LUNES, 8, 5)]) == [a]
    # 5 min 1 s: se conserva
    c = _f("Ana", *LUNES, 8, 5, 1)
    assert deduplicar_fichadas([a, c]) == [a, c]


def test_dedup_compara_contra_ultima_conservada():
    fichadas = [_f("Ana", *LUNES, 8, m) for m in (0, 3, 6, 9)]
    # 08:06 dista 6 min de 08:00 (la última conservada) -> se conserva
    limpias = deduplicar_fichadas(fichadas)
    assert [f.momento.minute for f in limpias] == [0, 6]


def test_dedup_idempotente():
    fichadas = [_f("Ana", *LUNES, 8, m) for m in (0, 2, 4, 7, 20, 21, 40)]
    una = deduplicar_fichadas(fichadas)
    assert deduplicar_fichadas(una) == una
    for x, y in zip(una, una[1:]):
        assert (y.momento - x.momento).total_seconds() > 300


def test_fichada_sola_incompleta():
    jornadas = emparejar_jornadas([_f("Ana", *LUNES, 8, 0)], CalendarioFeriados())
    assert len(jornadas) == 1
    j = jornadas[0]
    assert j.incompleta is True
    assert j.salida is None and j.horas_totales is None
    assert j.estado == "INCOMPLETO"
    assert calcular_horas(j, 9) == DesgloseHoras()


def test_salida_a_24h_o_mas_no_se_empareja():
    a = _f("Ana", 2026, 1, 5, 8, 0)
    b = _f("Ana", 2026, 1, 6, 8, 0)
    jornadas = emparejar_jornadas([a, b], CalendarioFeriados())
    assert [j.incompleta for j in jornadas] == [True, True]

    c = _f("Ana", 2026, 1, 6, 7, 59)
    jornadas = emparejar_jornadas([a, c], CalendarioFeriados())
    assert len(jornadas) == 1 and not jornadas[0].incompleta


def test_emparejado_voraz_de_a_dos():
    # almuerzo: 4 fichadas -> 2 jornadas (mañana y tarde)
    fichadas = [_f("Ana", *LUNES, h, m) for h, m in ((8, 0), (12, 0), (13, 0), (17, 0))]
    jornadas = emparejar_jornadas(fichadas, CalendarioFeriados())
    assert [(j.entrada.hour, j.salida.hour) for j in jornadas] == [(8, 12), (13, 17)]

    # tres fichadas: la tercera queda incompleta
    jornadas = emparejar_jornadas(fichadas[:3], CalendarioFeriados())
    assert [j.incompleta for j in jornadas] == [False, True]


def test_cada_fichada_usada_una_sola_vez():
    fichadas = [_f("Ana", 2026, 1, d, h, 0) for d in (5, 6, 7) for h in (8, 17)] + [_f("Ana", 2026, 1, 9, 8, 0)]
    jornadas = emparejar_jornadas(fichadas, CalendarioFeriados())
    usadas = []
    for j in jornadas:
        usadas.append(j.entrada)
        if j.salida is not None:
            usadas.append(j.salida)
    assert sorted(usadas) == [f.momento for f in fichadas]


def test_feriado_en_sabado_prioriza_feriado():
    assert clasificar_dia(date(*SABADO), CalendarioFeriados.desde(["2026-01-10"])) == TIPO_FERIADO
    assert clasificar_dia(date(*SABADO), CalendarioFeriados()) == TIPO_FIN_DE_SEMANA
    assert clasificar_dia(date(*LUNES), ["2026-01-05"]) == TIPO_FERIADO
    assert clasificar_dia(date(*LUNES), []) == TIPO_HABIL


def test_feriado_en_sabado_marca_ambos_flags():
    j = _jornada_unica(_f("Ana", *SABADO, 8, 0), _f("Ana", *SABADO, 12, 0), feriados=["2026-01-10"])
    assert j.es_feriado is True
    assert j.es_fin_de_semana is True
    d = calcular_horas(j, 9)
    assert d.feriado == 4.0 and d.extras == 0


def test_piso_media_hora():
    assert piso_media_hora(0) == 0
    assert piso_media_hora(-1.2) == 0
    assert piso_media_hora(0.49) == 0
    assert piso_media_hora(0.5) == 0.5
    assert piso_media_hora(2.99) == 2.5
    assert piso_media_hora(3.0) == 3.0


def test_normales_sin_redondeo():
    j = _jornada_unica(_f("Ana", *LUNES, 8, 0), _f("Ana", *LUNES, 15, 20))
    d = calcular_horas(j, 9)
    assert abs(d.normales - (7 + 20 / 60)) < 1e-9
    assert d.extras == 0


def test_jornada_fraccionaria():
    j = _jornada_unica(_f("Ana", *LUNES, 8, 0), _f("Ana", *LUNES, 18, 0))
    d = calcular_horas(j, 8.5)
    assert d.normales == 8.5
    assert d.extras == 1.5


def test_agrupar_ordena_por_momento():
    fichadas = [_f("Beto", *LUNES, 9, 0), _f("Ana", *LUNES, 17, 0), _f("Ana", *LUNES, 8, 0)]
    grupos = agrupar_por_empleado(fichadas)
    assert set(grupos) == {"Ana", "Beto"}
    assert [f.momento.hour for f in grupos["Ana"]] == [8, 17]


def test_desglose_suma():
    a = DesgloseHoras(normales=1, extras=2, feriado=3, extras_feriado=4)
    b = DesgloseHoras(normales=0.5, extras=0.5)
    s = a + b
    assert s == DesgloseHoras(normales=1.5, extras=2.5, feriado=3, extras_feriado=4)
    assert s.total == 11.5
