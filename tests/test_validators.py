"""
test_validators.py — Tests para slugs y comillas.
"""

import pytest

from scottie.utils.validators import MAX_SLUG_LENGTH, strip_quotes, validate_slug


class TestStripQuotes:
    @pytest.mark.parametrize("entrada,esperado", [
        ('"hola"', "hola"),
        ("'hola'", "hola"),
        ('"hola', '"hola'),
        ("'hola\"", "'hola\""),
        ('"', '"'),
        ("", ""),
        ('""', ""),
    ])
    def test_casos(self, entrada, esperado):
        assert strip_quotes(entrada) == esperado

    def test_solo_un_par(self):
        assert strip_quotes('""doble""') == '"doble"'


class TestValidateSlug:
    @pytest.mark.parametrize("slug", ["king-st-pilot", "2023-budget", "poi_123", "a.b"])
    def test_validos(self, slug):
        assert validate_slug(slug) == (True, "")

    def test_vacio(self):
        valido, error = validate_slug("")
        assert not valido
        assert "vacio" in error

    def test_muy_largo(self):
        valido, error = validate_slug("a" * (MAX_SLUG_LENGTH + 1))
        assert not valido
        assert "largo" in error

    @pytest.mark.parametrize("slug", ["../etc", "a/b", "a\\b", "a..b"])
    def test_rutas(self, slug):
        valido, error = validate_slug(slug)
        assert not valido
        assert "rutas" in error

    def test_caracteres_invalidos(self):
        valido, error = validate_slug("con espacio")
        assert not valido
        assert "invalidos" in error

    def test_empieza_con_guion(self):
        valido, error = validate_slug("-x")
        assert not valido
        assert "empezar" in error

    def test_no_string(self):
        assert validate_slug(None)[0] is False
