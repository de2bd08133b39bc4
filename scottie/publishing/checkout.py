"""
checkout.py — Lee un artículo o un lugar tal como está en main.

Es el camino inverso de la publicación: el robot del chat pide
"edita el artículo X", se lee el contenido actual desde la punta
de main, se modifica, y se vuelve a publicar con Publisher.

Todas las lecturas usan el MISMO commit (la punta de main al
empezar), así el checkout es consistente aunque main avance en
medio.

Uso:
    checkout = ContentCheckout(host)
    article = checkout.fetch_article("king-st-pilot")
    print(article.article["title"], len(article.body_html))
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from scottie.publishing.branches import BranchResolver
from scottie.publishing.changeset import ARTICLE_LAYOUT, PLACE_LAYOUT
from scottie.publishing.errors import ContentFetchError, HostError
from scottie.publishing.host import RepositoryHost
from scottie.utils.logger import get_logger

logger = get_logger("scottie.checkout")

LOCATIONS_DATASET = "locations"


@dataclass
class ArticleCheckout:
    """
    Contenido actual de un artículo.

    Campos:
        slug: Slug sin comillas.
        article: article.json parseado.
        body_html: article.html.
        script: article.js.
        locations: locations.geojson parseado, si el artículo lo declara.
        commit_sha: Commit de main del que se leyó.
    """
    slug: str
    article: dict[str, Any]
    body_html: str
    script: str
    locations: dict[str, Any] | None = None
    commit_sha: str = ""

    def has_locations_dataset(self) -> bool:
        return _declares_locations(self.article)


@dataclass
class PlaceCheckout:
    """Contenido actual de un lugar (poi.json + body.html)."""
    slug: str
    place: dict[str, Any]
    body_html: str
    commit_sha: str = ""


def _declares_locations(article: dict[str, Any]) -> bool:
    datasets = article.get("geojson_datasets") or []
    return any(
        isinstance(d, dict) and d.get("name") == LOCATIONS_DATASET for d in datasets
    )


class ContentCheckout:
    """
    Lector de contenido publicado.

    Args:
        host: RepositoryHost.
        base_branch: Branch del que se lee.
    """

    def __init__(self, host: RepositoryHost, base_branch: str = "main"):
        self._host = host
        self._resolver = BranchResolver(host, base_branch=base_branch)

    def fetch_article(self, slug: str) -> ArticleCheckout:
        """
        Lee article.json, article.html, article.js y (si aplica)
        locations.geojson.

        Raises:
            InvalidRequestError: Slug inválido.
            ReferenceResolutionError: No se pudo leer la punta de main.
            ContentFetchError: Falta un archivo o no parsea.
        """
        base = ARTICLE_LAYOUT.target_path(slug)
        sha = self._resolver.base_head().base_commit_sha

        article = self._read_json(f"{base}/article.json", sha)
        checkout = ArticleCheckout(
            slug=base.rsplit("/", 1)[-1],
            article=article,
            body_html=self._read(f"{base}/article.html", sha),
            script=self._read(f"{base}/article.js", sha),
            commit_sha=sha,
        )
        if checkout.has_locations_dataset():
            checkout.locations = self._read_json(f"{base}/locations.geojson", sha)

        logger.info(f"Artículo leído: {base} @ {sha[:7]}")
        return checkout

    def fetch_place(self, slug: str) -> PlaceCheckout:
        """
        Lee poi.json y body.html de un lugar.

        Raises:
            InvalidRequestError, ReferenceResolutionError, ContentFetchError.
        """
        base = PLACE_LAYOUT.target_path(slug)
        sha = self._resolver.base_head().base_commit_sha

        checkout = PlaceCheckout(
            slug=base.rsplit("/", 1)[-1],
            place=self._read_json(f"{base}/poi.json", sha),
            body_html=self._read(f"{base}/body.html", sha),
            commit_sha=sha,
        )
        logger.info(f"Lugar leído: {base} @ {sha[:7]}")
        return checkout

    def _read(self, path: str, sha: str) -> str:
        try:
            return self._host.get_file_contents(path, sha)
        except HostError as e:
            raise ContentFetchError(f"error getting file content {path}: {e}") from e

    def _read_json(self, path: str, sha: str) -> dict[str, Any]:
        texto = self._read(path, sha)
        try:
            data = json.loads(texto)
        except json.JSONDecodeError as e:
            raise ContentFetchError(f"error unmarshaling {path}: {e}") from e
        if not isinstance(data, dict):
            raise ContentFetchError(f"{path} no es un objeto JSON")
        return data
