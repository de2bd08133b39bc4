"""
commits.py — Un commit atómico vía la API de objetos git.

No hay checkout local: el commit se arma directo en el host.

    1. create_tree(base, entries)      ← árbol nuevo sobre el del commit base
    2. get_commit(base)                ← el padre
    3. create_commit(msg, tree, [padre])  ← historia lineal, sin merges
    4. update_ref(ref, nuevo, force=False)

Si algo falla, se corta ahí. Un árbol o commit huérfano en el
host es basura inalcanzable (ninguna ref se movió), así que no
hace falta limpiar nada.

update_ref nunca usa force: si otro proceso movió el branch en
medio, GitHub responde "not a fast forward" y ese error sube.
"""

from __future__ import annotations

from typing import Sequence

from scottie.publishing.errors import CommitError, HostError
from scottie.publishing.host import RepositoryHost
from scottie.publishing.models import BranchState, TreeEntry
from scottie.utils.logger import get_logger

logger = get_logger("scottie.commits")


class CommitOrchestrator:
    """
    Crea un commit con las entradas dadas y (opcionalmente) avanza la ref.

    Args:
        host: RepositoryHost.
    """

    def __init__(self, host: RepositoryHost):
        self._host = host

    def commit(
        self,
        branch: BranchState,
        entries: Sequence[TreeEntry],
        message: str,
        advance: bool = True,
    ) -> str:
        """
        Commitea `entries` sobre branch.base_commit_sha.

        Args:
            branch: Branch destino (ref + commit base).
            entries: Archivos a escribir.
            message: Mensaje del commit.
            advance: Si False, el commit se crea pero la ref no se mueve.

        Returns:
            SHA del commit nuevo.

        Raises:
            CommitError: Con .step indicando el paso que falló.
        """
        base_sha = branch.base_commit_sha

        try:
            tree_sha = self._host.create_tree(base_sha, list(entries))
        except HostError as e:
            raise CommitError(f"error creating tree: {e}", step="tree") from e

        try:
            parent = self._host.get_commit(base_sha)
        except HostError as e:
            raise CommitError(f"error getting commit {base_sha}: {e}", step="parent") from e

        try:
            commit = self._host.create_commit(message, tree_sha, [parent.sha])
        except HostError as e:
            raise CommitError(f"error creating commit: {e}", step="commit") from e

        logger.info(f"Commit creado: {commit.sha[:7]} — {message}")

        if not advance:
            return commit.sha

        try:
            self._host.update_ref(branch.ref, commit.sha, force=False)
        except HostError as e:
            raise CommitError(f"error updating reference {branch.ref}: {e}", step="ref") from e

        logger.success(f"{branch.branch_name} → {commit.sha[:7]}")
        return commit.sha
