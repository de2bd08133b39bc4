"""
models.py — Datos que viajan por el flujo de publicación.

    PublishRequest ──► TreeEntry[] ──► BranchState ──► commit ──► PullRequestRecord

Todos son dataclasses simples: el estado real vive en GitHub y
siempre se vuelve a leer, nunca se cachea entre llamadas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

DEFAULT_PR_BODY = "This PR was created dynamically."

# Contenido de un artefacto: texto, o un valor estructurado (dict/list)
# que se serializa a JSON antes de formatear.
ArtifactContent = Union[str, dict, list, None]


class PRState(Enum):
    """Estado de un Pull Request en el host."""
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class Artifact:
    """
    Un archivo con nombre lógico dentro de un PublishRequest.

    Campos:
        name: Tipo de artefacto según el layout (ej: "body_html", "locations").
        content: Contenido crudo (texto o estructura JSON).
    """
    name: str
    content: ArtifactContent = None

    def is_empty(self) -> bool:
        return not self.content


@dataclass
class PublishRequest:
    """
    Unidad de trabajo que pide un robot de publicación.

    Campos:
        target_path: Directorio dentro del repo (ej: "articles/mi-slug").
        artifacts: Artefactos a escribir, en orden.
        existing_pr_number: PR abierto a actualizar (0 = ninguno).
        title: Título del PR y mensaje del commit.
        body: Descripción del PR.
        commit_message: Mensaje del commit si debe diferir del título.
    """
    target_path: str
    artifacts: list[Artifact] = field(default_factory=list)
    existing_pr_number: int = 0
    title: str = ""
    body: str = DEFAULT_PR_BODY
    commit_message: str = ""

    @property
    def message(self) -> str:
        return self.commit_message or self.title

    def has_content(self) -> bool:
        return any(not a.is_empty() for a in self.artifacts)


@dataclass(frozen=True)
class Reference:
    """Una referencia git del host: nombre completo + SHA al que apunta."""
    ref: str
    sha: str


@dataclass(frozen=True)
class BranchState:
    """
    Branch donde va a caer el commit.

    Campos:
        ref: Referencia completa (ej: "refs/heads/scottie-20240101-120000").
        base_commit_sha: Commit sobre el que se construye el árbol.
    """
    ref: str
    base_commit_sha: str

    @property
    def branch_name(self) -> str:
        return self.ref.removeprefix("refs/heads/")


@dataclass(frozen=True)
class TreeEntry:
    """Un archivo listo para entrar al árbol del commit."""
    path: str
    content: str
    mode: str = "100644"
    type: str = "blob"

    def to_api(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "mode": self.mode,
            "type": self.type,
            "content": self.content,
        }


@dataclass(frozen=True)
class CommitInfo:
    """Commit del host (solo lo que el flujo necesita)."""
    sha: str
    tree_sha: str = ""
    message: str = ""
    parents: tuple[str, ...] = ()


@dataclass(frozen=True)
class PullRequestRecord:
    """
    Pull Request tal como lo reporta el host.

    Un PR cerrado es terminal: nunca se reutiliza.
    """
    number: int
    html_url: str
    head_ref: str
    state: PRState = PRState.OPEN

    @property
    def is_open(self) -> bool:
        return self.state is PRState.OPEN


@dataclass(frozen=True)
class PublishResult:
    """
    Resultado de create_or_update_pull_request.

    Campos:
        number: Número del PR.
        url: URL html del PR.
        created: True si se creó un PR nuevo, False si se reutilizó.
        commit_sha: Commit que quedó en la punta del branch.
    """
    number: int
    url: str
    created: bool
    commit_sha: str = ""
