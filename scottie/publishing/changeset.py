"""
changeset.py — Convierte un PublishRequest en entradas de árbol.

Cada tipo de contenido tiene un "layout": qué artefactos acepta y
con qué nombre de archivo quedan dentro de su directorio.

    articles/{slug}/
    ├── article.json       ← "article" (estructurado)
    ├── article.html       ← "body_html"
    ├── article.js         ← "script"
    ├── teaser.geojson     ← "teaser_geojson"
    ├── teaser.js          ← "teaser_js"
    ├── locations.geojson  ← "locations"
    └── locations.js       ← generado: placeholder fijo

    active_places/{slug}/
    ├── poi.json           ← "place" (estructurado)
    └── body.html          ← "body_html"

Reglas:
    - Artefacto vacío o ausente → no genera archivo.
    - Todo pasa por el ContentFormatter; si uno falla, falla todo
      (nunca se commitea un árbol a medias).
    - Los estructurados se serializan con indent=2 para que los
      diffs del PR sean mínimos.
    - "locations" siempre genera su hermano locations.js: el cliente
      lo usa para activar la capa del mapa. Es política, no input.
    - El orden de salida es el del layout, no el del request.

Uso:
    builder = ChangeSetBuilder(formatter, ARTICLE_LAYOUT)
    entries = builder.build("articles/mi-slug", request.artifacts)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Sequence

from scottie.publishing.errors import FormatError, InvalidRequestError, UnknownArtifactError
from scottie.publishing.models import Artifact, ArtifactContent, TreeEntry
from scottie.publishing.prettier import ContentFormatter
from scottie.utils.logger import get_logger
from scottie.utils.validators import strip_quotes, validate_slug

logger = get_logger("scottie.changeset")

LOCATIONS_PLACEHOLDER_JS = "console.debug('locations.js');"


@dataclass(frozen=True)
class ArtifactKind:
    """
    Un tipo de artefacto dentro de un layout.

    Campos:
        name: Nombre lógico ("body_html", "locations", ...).
        filename: Archivo canónico dentro del directorio destino.
        structured: Si el contenido es JSON que hay que (re)serializar.
        sibling: (archivo, contenido) generado junto a este, si aplica.
    """
    name: str
    filename: str
    structured: bool = False
    sibling: tuple[str, str] | None = None


@dataclass(frozen=True)
class ContentLayout:
    """Tipos de artefacto de un tipo de contenido y su carpeta raíz."""
    name: str
    root: str
    kinds: tuple[ArtifactKind, ...]

    def kind(self, name: str) -> ArtifactKind | None:
        for kind in self.kinds:
            if kind.name == name:
                return kind
        return None

    @property
    def kind_names(self) -> list[str]:
        return [k.name for k in self.kinds]

    def target_path(self, slug: str, archived: bool = False) -> str:
        """
        Directorio del contenido dentro del repo.

        Raises:
            InvalidRequestError: Si el slug no es válido (es un ValueError).
        """
        slug = strip_quotes(slug.strip())
        valido, error = validate_slug(slug)
        if not valido:
            raise InvalidRequestError(error)
        prefijo = "archive/" if archived else ""
        return f"{prefijo}{self.root}/{slug}"


ARTICLE_LAYOUT = ContentLayout(
    name="article",
    root="articles",
    kinds=(
        ArtifactKind("article", "article.json", structured=True),
        ArtifactKind("body_html", "article.html"),
        ArtifactKind("script", "article.js"),
        ArtifactKind("teaser_geojson", "teaser.geojson"),
        ArtifactKind("teaser_js", "teaser.js"),
        ArtifactKind(
            "locations",
            "locations.geojson",
            sibling=("locations.js", LOCATIONS_PLACEHOLDER_JS),
        ),
    ),
)

PLACE_LAYOUT = ContentLayout(
    name="place",
    root="active_places",
    kinds=(
        ArtifactKind("place", "poi.json", structured=True),
        ArtifactKind("body_html", "body.html"),
    ),
)

LAYOUTS = {layout.name: layout for layout in (ARTICLE_LAYOUT, PLACE_LAYOUT)}


def serialize_structured(value: ArtifactContent, path: str = "") -> str:
    """
    Serializa un valor JSON con indentación estable.

    Si llega texto, se parsea y se vuelve a serializar para que el
    formato no dependa de quién lo escribió.

    Raises:
        FormatError: Si el texto no es JSON válido.
    """
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise FormatError(f"error parsing json: {e}", path=path, content=value) from e
    return json.dumps(value, indent=2, ensure_ascii=False)


class ChangeSetBuilder:
    """
    Arma la lista ordenada de TreeEntry de una publicación.

    No toca la red: solo serializa y formatea. Por eso el flujo lo
    corre ANTES de crear branches, y un change set vacío o mal
    formateado se rechaza sin efectos remotos.

    Args:
        formatter: ContentFormatter (prettier en producción).
        layout: Layout del tipo de contenido.
    """

    def __init__(self, formatter: ContentFormatter, layout: ContentLayout = ARTICLE_LAYOUT):
        self._formatter = formatter
        self._layout = layout

    @property
    def layout(self) -> ContentLayout:
        return self._layout

    def build(self, target_path: str, artifacts: Sequence[Artifact]) -> list[TreeEntry]:
        """
        Convierte artefactos en entradas de árbol formateadas.

        Returns:
            Entradas en el orden del layout. Vacía si todo venía vacío.

        Raises:
            UnknownArtifactError: Si algún artefacto no existe en el layout.
            FormatError: Si el formateador rechaza algún archivo.
        """
        por_nombre: dict[str, Artifact] = {}
        for artifact in artifacts:
            if self._layout.kind(artifact.name) is None:
                raise UnknownArtifactError(
                    f"artefacto desconocido para {self._layout.name}: "
                    f"'{artifact.name}' (válidos: {', '.join(self._layout.kind_names)})"
                )
            if artifact.name in por_nombre:
                logger.warning(f"Artefacto repetido '{artifact.name}', se usa el último")
            por_nombre[artifact.name] = artifact

        base = target_path.rstrip("/")
        entries: list[TreeEntry] = []
        for kind in self._layout.kinds:
            artifact = por_nombre.get(kind.name)
            if artifact is None or artifact.is_empty():
                continue

            path = f"{base}/{kind.filename}"
            entries.append(self._entry(path, self._raw_text(kind, artifact.content, path)))

            if kind.sibling is not None:
                sibling_name, sibling_content = kind.sibling
                entries.append(self._entry(f"{base}/{sibling_name}", sibling_content))

        if entries:
            logger.info(f"Change set de {len(entries)} archivo(s) en {base}/")
        return entries

    def _raw_text(self, kind: ArtifactKind, content: ArtifactContent, path: str) -> str:
        if kind.structured or not isinstance(content, str):
            return serialize_structured(content, path)
        return content

    def _entry(self, path: str, text: str) -> TreeEntry:
        try:
            formatted = self._formatter.format(text, path)
        except FormatError as e:
            if e.content:
                raise
            raise FormatError(str(e), path=path, content=text) from e
        return TreeEntry(path=path, content=formatted)
