"""
test_changeset.py — Tests para el armado del change set.

Verificamos que:
1. Cada artefacto cae en su archivo canónico, en orden de layout
2. Los vacíos no generan archivos (y todo vacío no llama al formateador)
3. locations siempre arrastra su locations.js
4. Un error de formato lleva el contenido ofensivo
5. Las rutas destino limpian comillas y validan el slug
"""

import json

import pytest

from scottie.publishing.changeset import (
    ARTICLE_LAYOUT,
    LAYOUTS,
    LOCATIONS_PLACEHOLDER_JS,
    PLACE_LAYOUT,
    ChangeSetBuilder,
    serialize_structured,
)
from scottie.publishing.errors import (
    FormatError,
    InvalidRequestError,
    UnknownArtifactError,
)
from scottie.publishing.models import Artifact


class RecordingFormatter:
    """Formateador identidad que recuerda cada llamada."""

    def __init__(self):
        self.calls = []

    def format(self, text, path_hint):
        self.calls.append(path_hint)
        return text


class FailingFormatter:
    """Rechaza cualquier archivo cuya ruta termine en `suffix`."""

    def __init__(self, suffix):
        self.suffix = suffix

    def format(self, text, path_hint):
        if path_hint.endswith(self.suffix):
            raise FormatError("SyntaxError: Unexpected token")
        return text


@pytest.fixture
def formatter():
    return RecordingFormatter()


@pytest.fixture
def builder(formatter):
    return ChangeSetBuilder(formatter, ARTICLE_LAYOUT)


class TestArticleLayout:
    """Tests para el layout de artículos."""

    def test_body_html_va_a_article_html(self, builder):
        entries = builder.build("articles/x", [Artifact("body_html", "<p>hola</p>")])
        assert [e.path for e in entries] == ["articles/x/article.html"]
        assert entries[0].content == "<p>hola</p>"

    def test_locations_genera_su_hermano_js(self, builder):
        """locations.geojson siempre viene con locations.js."""
        entries = builder.build("articles/x", [Artifact("locations", '{"type":"FeatureCollection"}')])
        paths = [e.path for e in entries]
        assert paths == ["articles/x/locations.geojson", "articles/x/locations.js"]
        assert entries[1].content == LOCATIONS_PLACEHOLDER_JS

    def test_orden_de_layout_no_de_request(self, builder):
        entries = builder.build("articles/x", [
            Artifact("teaser_js", "t()"),
            Artifact("body_html", "<p/>"),
            Artifact("article", {"title": "X"}),
        ])
        assert [e.path for e in entries] == [
            "articles/x/article.json",
            "articles/x/article.html",
            "articles/x/teaser.js",
        ]

    def test_todos_los_archivos(self, builder):
        entries = builder.build("articles/x", [
            Artifact(name, "{}") for name in ARTICLE_LAYOUT.kind_names
        ])
        nombres = [e.path.rsplit("/", 1)[-1] for e in entries]
        assert nombres == [
            "article.json", "article.html", "article.js",
            "teaser.geojson", "teaser.js", "locations.geojson", "locations.js",
        ]

    def test_artefacto_repetido_gana_el_ultimo(self, builder):
        entries = builder.build("articles/x", [
            Artifact("body_html", "<p>uno</p>"),
            Artifact("body_html", "<p>dos</p>"),
        ])
        assert len(entries) == 1
        assert entries[0].content == "<p>dos</p>"

    def test_modo_blob(self, builder):
        entry = builder.build("articles/x", [Artifact("script", "f()")])[0]
        assert entry.to_api() == {
            "path": "articles/x/article.js",
            "mode": "100644",
            "type": "blob",
            "content": "f()",
        }


class TestEmptyArtifacts:
    """Tests para artefactos vacíos."""

    def test_vacios_se_omiten(self, builder):
        entries = builder.build("articles/x", [
            Artifact("body_html", ""),
            Artifact("script", None),
            Artifact("teaser_js", "t()"),
        ])
        assert [e.path for e in entries] == ["articles/x/teaser.js"]

    def test_todo_vacio_no_llama_al_formateador(self, builder, formatter):
        entries = builder.build("articles/x", [Artifact("body_html", ""), Artifact("locations", "")])
        assert entries == []
        assert formatter.calls == []

    def test_locations_vacio_no_genera_js(self, builder):
        entries = builder.build("articles/x", [Artifact("locations", ""), Artifact("script", "f()")])
        assert [e.path for e in entries] == ["articles/x/article.js"]

    @pytest.mark.parametrize("contenido", [None, "", {}, [], 0])
    def test_is_empty_no_revienta(self, contenido):
        assert Artifact("article", contenido).is_empty()


class TestStructured:
    """Tests para artefactos JSON."""

    def test_dict_se_serializa_con_indent_2(self, builder):
        entry = builder.build("articles/x", [Artifact("article", {"title": "Café", "n": 1})])[0]
        assert entry.content == '{\n  "title": "Café",\n  "n": 1\n}'

    def test_texto_json_se_normaliza(self, builder):
        entry = builder.build("articles/x", [Artifact("article", '{"a":1}')])[0]
        assert entry.content == '{\n  "a": 1\n}'

    def test_ida_y_vuelta(self, builder):
        articulo = {"title": "King St", "geojson_datasets": [{"name": "locations"}]}
        entry = builder.build("articles/x", [Artifact("article", articulo)])[0]
        assert json.loads(entry.content) == articulo

    def test_json_invalido_es_format_error(self):
        with pytest.raises(FormatError) as exc:
            serialize_structured("{no es json", "articles/x/article.json")
        assert exc.value.path == "articles/x/article.json"
        assert exc.value.content == "{no es json"


class TrimmingFormatter:
    """Formateador determinista: recorta espacios y deja un salto final."""

    def format(self, text, path_hint):
        return "\n".join(linea.rstrip() for linea in text.strip().splitlines()) + "\n"


class TestIdempotence:
    """Construir dos veces el mismo request da el mismo change set."""

    def test_formatear_dos_veces_no_cambia_nada(self):
        formatter = TrimmingFormatter()
        texto = "  <p>hola</p>   \n\n<p>adios</p>  "
        una_vez = formatter.format(texto, "articles/x/article.html")
        assert formatter.format(una_vez, "articles/x/article.html") == una_vez

    def test_dos_builds_iguales(self):
        builder = ChangeSetBuilder(TrimmingFormatter(), ARTICLE_LAYOUT)
        artifacts = [
            Artifact("article", {"title": "King St"}),
            Artifact("body_html", "<p>hola</p>   "),
            Artifact("locations", '{"type":"FeatureCollection"}'),
        ]
        primero = builder.build("articles/x", artifacts)
        segundo = builder.build("articles/x", artifacts)
        assert primero == segundo
        assert [e.path for e in primero] == [
            "articles/x/article.json",
            "articles/x/article.html",
            "articles/x/locations.geojson",
            "articles/x/locations.js",
        ]


class TestFormatErrors:
    """Tests para errores del formateador."""

    def test_error_lleva_contenido_ofensivo(self):
        builder = ChangeSetBuilder(FailingFormatter(".js"), ARTICLE_LAYOUT)
        with pytest.raises(FormatError) as exc:
            builder.build("articles/x", [
                Artifact("body_html", "<p/>"),
                Artifact("script", "function ("),
            ])
        assert exc.value.path == "articles/x/article.js"
        assert exc.value.content == "function ("
        assert "function (" in str(exc.value)

    def test_artefacto_desconocido(self, builder):
        with pytest.raises(UnknownArtifactError, match="poi"):
            builder.build("articles/x", [Artifact("poi", "{}")])


class TestPlaceLayout:
    """Tests para el layout de lugares."""

    def test_place_y_body(self, formatter):
        builder = ChangeSetBuilder(formatter, PLACE_LAYOUT)
        entries = builder.build("active_places/cn-tower", [
            Artifact("body_html", "<p>torre</p>"),
            Artifact("place", {"name": "CN Tower"}),
        ])
        assert [e.path for e in entries] == [
            "active_places/cn-tower/poi.json",
            "active_places/cn-tower/body.html",
        ]

    def test_script_no_existe_en_lugares(self, formatter):
        builder = ChangeSetBuilder(formatter, PLACE_LAYOUT)
        with pytest.raises(UnknownArtifactError):
            builder.build("active_places/x", [Artifact("script", "f()")])

    def test_registro_de_layouts(self):
        assert LAYOUTS["article"] is ARTICLE_LAYOUT
        assert LAYOUTS["place"] is PLACE_LAYOUT


class TestTargetPath:
    """Tests para las rutas destino."""

    def test_articulo(self):
        assert ARTICLE_LAYOUT.target_path("king-st-pilot") == "articles/king-st-pilot"

    def test_articulo_archivado(self):
        assert ARTICLE_LAYOUT.target_path("viejo", archived=True) == "archive/articles/viejo"

    def test_lugar(self):
        assert PLACE_LAYOUT.target_path("cn-tower") == "active_places/cn-tower"

    def test_quita_comillas(self):
        assert ARTICLE_LAYOUT.target_path('"king-st-pilot"') == "articles/king-st-pilot"

    def test_slug_con_ruta_es_invalido(self):
        with pytest.raises(InvalidRequestError):
            ARTICLE_LAYOUT.target_path("../secretos")

    def test_invalid_request_es_value_error(self):
        with pytest.raises(ValueError):
            ARTICLE_LAYOUT.target_path("")
