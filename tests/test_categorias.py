import pytest

from fichadas.categorias import (
    SIN_CATEGORIA,
    alta_categoria,
    asignar_categoria,
    baja_categoria,
    categoria_de,
    empleados_por_categoria,
    liquidar,
    sin_asignar,
)
from fichadas.config import AppConfig
from fichadas.core import DesgloseHoras


def _cfg():
    cfg = AppConfig()
    alta_categoria(cfg, "Operario", 1000)
    alta_categoria(cfg, "Supervisor", 2000.5)
    asignar_categoria(cfg, "Ana", "Supervisor")
    asignar_categoria(cfg, "Beto", "Operario")
    return cfg


def test_liquidar_factores():
    cfg = _cfg()
    d = DesgloseHoras(normales=9, extras=2, feriado=9, extras_feriado=1.5)
    liq = liquidar("Beto", d, cfg)
    assert liq.categoria == "Operario"
    assert liq.valor_hora == 1000
    assert liq.extra == 3000  # 2 * 1000 * 1.5
    assert liq.feriado == 18000  # 9 * 1000 * 2
    assert liq.extra_feriado == 3000  # 1.5 * 1000 * 2
    assert liq.total == 24000


def test_sin_categoria_liquida_cero():
    cfg = _cfg()
    liq = liquidar("Carla", DesgloseHoras(extras=5), cfg)
    assert liq.categoria == SIN_CATEGORIA
    assert liq.total == 0


def test_baja_categoria_libera_empleados():
    cfg = _cfg()
    assert baja_categoria(cfg, "Operario") == ["Beto"]
    assert categoria_de("Beto", cfg) == SIN_CATEGORIA
    assert "Operario" not in cfg.categorias
    assert baja_categoria(cfg, "Inexistente") == []


def test_asignar_categoria_inexistente():
    cfg = _cfg()
    with pytest.raises(KeyError):
        asignar_categoria(cfg, "Ana", "Gerente")


def test_alta_categoria_validaciones():
    cfg = AppConfig()
    with pytest.raises(ValueError):
        alta_categoria(cfg, "  ", 10)
    with pytest.raises(ValueError):
        alta_categoria(cfg, "X", -1)
    with pytest.raises(TypeError):
        alta_categoria(cfg, "X", "10")


def test_sin_asignar_y_agrupado():
    cfg = _cfg()
    empleados = ["Ana", "Beto", "Carla"]
    assert sin_asignar(cfg, empleados) == ["Carla"]
    assert empleados_por_categoria(cfg, empleados) == {"Operario": ["Beto"], "Supervisor": ["Ana"]}
