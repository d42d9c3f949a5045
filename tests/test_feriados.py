from datetime import date
from pathlib import Path

import pytest
import requests

from fichadas.feriados import (
    CalendarioFeriados,
    ClienteFeriados,
    cargar_feriados_archivo,
    guardar_feriados_archivo,
)


class _Resp:
    def __init__(self, data=None, status=200, json_error=False):
        self._data = data
        self.status_code = status
        self._json_error = json_error

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        if self._json_error:
            raise ValueError("invalid json")
        return self._data


class _Sesion:
    """Doble de requests.Session: devuelve respuestas en orden."""

    def __init__(self, respuestas):
        self.respuestas = list(respuestas)
        self.llamadas = []

    def _next(self):
        r = self.respuestas.pop(0)
        if isinstance(r, Exception):
            raise r
        return r

    def get(self, url, timeout=None):
        self.llamadas.append(("GET", url, None))
        return self._next()

    def post(self, url, json=None, timeout=None):
        self.llamadas.append(("POST", url, json))
        return self._next()


class TestCalendarioFeriados:
    def test_contiene_str_y_date(self):
        cal = CalendarioFeriados.desde(["2026-01-01", "2026-12-25"])
        assert "2026-01-01" in cal
        assert date(2026, 12, 25) in cal
        assert cal.contiene("2026-12-25")
        assert "2026-05-01" not in cal

    def test_ignora_fechas_invalidas(self):
        cal = CalendarioFeriados.desde(["2026-01-01", "01/05/2026", "2026-02-30", 7])
        assert cal.a_lista() == ["2026-01-01"]

    def test_alternar_es_inmutable(self):
        cal = CalendarioFeriados.desde(["2026-01-01"])
        con = cal.alternar("2026-05-01")
        assert "2026-05-01" in con
        assert "2026-05-01" not in cal
        sin = con.alternar(date(2026, 1, 1))
        assert list(sin) == ["2026-05-01"]

    def test_archivo_ida_y_vuelta(self, tmp_path: Path):
        p = tmp_path / "feriados.json"
        guardar_feriados_archivo(p, CalendarioFeriados.desde(["2026-12-25", "2026-01-01"]))
        assert cargar_feriados_archivo(p).a_lista() == ["2026-01-01", "2026-12-25"]

    def test_archivo_inexistente_o_invalido(self, tmp_path: Path):
        assert cargar_feriados_archivo(tmp_path / "nope.json") is None
        bad = tmp_path / "bad.json"
        bad.write_text("{no json", encoding="utf-8")
        assert cargar_feriados_archivo(bad) is None
        obj = tmp_path / "obj.json"
        obj.write_text('{"a": 1}', encoding="utf-8")
        assert cargar_feriados_archivo(obj) is None


class TestClienteFeriados:
    def test_obtener_ok_guarda_cache(self, tmp_path: Path):
        cache = tmp_path / "cache.json"
        ses = _Sesion([_Resp(["2026-01-01", "2026-07-09"])])
        cli = ClienteFeriados("http://svc/feriados/", cache_path=cache, session=ses)
        cal = cli.obtener()
        assert cal.a_lista() == ["2026-01-01", "2026-07-09"]
        assert ses.llamadas[0][1] == "http://svc/feriados"
        assert cli.ultimo_snapshot == cal
        assert cargar_feriados_archivo(cache) == cal

    def test_fallo_red_usa_ultimo_snapshot(self, tmp_path: Path):
        ses = _Sesion([_Resp(["2026-01-01"]), requests.ConnectionError("down")])
        cli = ClienteFeriados("http://svc/feriados", session=ses)
        primero = cli.obtener()
        assert cli.obtener() == primero

    def test_fallo_usa_cache_en_disco(self, tmp_path: Path):
        cache = tmp_path / "cache.json"
        guardar_feriados_archivo(cache, CalendarioFeriados.desde(["2026-12-25"]))
        ses = _Sesion([_Resp(status=500)])
        cli = ClienteFeriados("http://svc/feriados", cache_path=cache, session=ses)
        assert cli.obtener().a_lista() == ["2026-12-25"]

    def test_json_invalido_o_no_lista(self, tmp_path: Path):
        ses = _Sesion([_Resp(json_error=True), _Resp({"fechas": []})])
        cli = ClienteFeriados("http://svc/feriados", session=ses)
        assert len(cli.obtener()) == 0
        assert len(cli.obtener()) == 0

    def test_sin_url_no_llama(self):
        ses = _Sesion([])
        cli = ClienteFeriados("", session=ses)
        assert len(cli.obtener()) == 0
        assert ses.llamadas == []

    def test_usa_requests_por_defecto(self, monkeypatch):
        llamadas = []

        def _fake_get(url, timeout=None):
            llamadas.append((url, timeout))
            return _Resp(["2026-01-01"])

        monkeypatch.setattr(requests, "get", _fake_get)
        cli = ClienteFeriados("http://svc/feriados", timeout=3)
        assert "2026-01-01" in cli.obtener()
        assert llamadas == [("http://svc/feriados", 3)]

    def test_alternar_post_toggle(self):
        ses = _Sesion([_Resp(["2026-01-01"]), _Resp({"action": "added"}), _Resp({"action": "removed"})])
        cli = ClienteFeriados("http://svc/feriados", session=ses)
        cli.obtener()
        assert cli.alternar("2026-05-01") == "added"
        assert ses.llamadas[1] == ("POST", "http://svc/feriados/toggle", {"fecha": "2026-05-01"})
        assert "2026-05-01" in cli.ultimo_snapshot
        assert cli.alternar(date(2026, 5, 1)) == "removed"
        assert "2026-05-01" not in cli.ultimo_snapshot

    def test_alternar_fecha_invalida(self):
        cli = ClienteFeriados("http://svc/feriados", session=_Sesion([]))
        with pytest.raises(ValueError):
            cli.alternar("1/5/2026")

    def test_alternar_error_http_propaga(self):
        cli = ClienteFeriados("http://svc/feriados", session=_Sesion([_Resp(status=503)]))
        with pytest.raises(requests.HTTPError):
            cli.alternar("2026-05-01")
