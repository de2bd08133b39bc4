"""
host.py — La capacidad mínima que el flujo necesita del host.

El orquestador NO depende de un cliente concreto de GitHub:
depende de este Protocol con solo las operaciones que usa.
Así se puede probar con InMemoryHost y correr contra GitHubHost
en producción sin cambiar una línea del core.

Todas las operaciones lanzan HostError si el host responde con
un error.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from scottie.publishing.cancellation import NEVER, Cancellation
from scottie.publishing.models import (
    CommitInfo,
    PullRequestRecord,
    Reference,
    TreeEntry,
)


class RepositoryHost(Protocol):
    """Operaciones de referencias, objetos git y PRs sobre un repo remoto."""

    def get_ref(self, ref: str) -> Reference: ...

    def create_ref(self, ref: str, sha: str) -> Reference: ...

    def update_ref(self, ref: str, sha: str, force: bool = False) -> Reference: ...

    def get_pull_request(self, number: int) -> PullRequestRecord: ...

    def create_pull_request(
        self, title: str, head: str, base: str, body: str
    ) -> PullRequestRecord: ...

    def request_reviewers(self, number: int, reviewers: Sequence[str]) -> None: ...

    def create_tree(self, base_sha: str, entries: Sequence[TreeEntry]) -> str: ...

    def get_commit(self, sha: str) -> CommitInfo: ...

    def create_commit(
        self, message: str, tree_sha: str, parents: Sequence[str]
    ) -> CommitInfo: ...

    def get_file_contents(self, path: str, ref: str) -> str: ...


class GuardedHost:
    """
    Envuelve un host y revisa la cancelación antes de cada llamada.

    Es un proxy transparente: cualquier atributo se delega al host
    real, pero los métodos se envuelven con cancel.check().
    """

    def __init__(self, host: RepositoryHost, cancel: Cancellation = NEVER):
        self._host = host
        self._cancel = cancel

    @property
    def cancellation(self) -> Cancellation:
        return self._cancel

    def __getattr__(self, name: str):
        attr = getattr(self._host, name)
        if not callable(attr):
            return attr

        def guarded(*args, **kwargs):
            self._cancel.check()
            return attr(*args, **kwargs)

        return guarded
