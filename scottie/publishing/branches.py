"""
branches.py — Decide en qué branch cae el commit de una publicación.

Casos:
    PR = 0            → branch nuevo desde main
    PR cerrado        → branch nuevo desde main (el PR viejo no se toca)
    PR abierto        → el branch head de ese PR

Convención de nombres:
    {prefix}-{YYYYMMDD-HHMMSS}   ej: scottie-20240315-142501

La resolución es por segundo: dos publicaciones en el mismo
segundo chocarían en create_ref, y ese error sale tal cual.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from scottie.publishing.errors import HostError, ReferenceResolutionError
from scottie.publishing.host import RepositoryHost
from scottie.publishing.models import BranchState, PullRequestRecord
from scottie.utils.logger import get_logger

logger = get_logger("scottie.branches")

BRANCH_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


def heads_ref(branch: str) -> str:
    """'main' → 'refs/heads/main' (idempotente)."""
    if branch.startswith("refs/"):
        return branch
    return f"refs/heads/{branch}"


class BranchResolver:
    """
    Resuelve (o crea) el branch de trabajo de una publicación.

    Args:
        host: RepositoryHost.
        base_branch: Branch principal del repo.
        prefix: Prefijo de los branches nuevos.
        clock: Función que da la hora actual (inyectable para tests).
    """

    def __init__(
        self,
        host: RepositoryHost,
        base_branch: str = "main",
        prefix: str = "scottie",
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._host = host
        self._base_branch = base_branch
        self._prefix = prefix
        self._clock = clock

    def resolve(
        self, existing_pr_number: int = 0
    ) -> tuple[BranchState, PullRequestRecord | None]:
        """
        Devuelve el branch destino y, si aplica, el PR abierto asociado.

        Raises:
            ReferenceResolutionError: Si falla cualquier lectura o creación.
        """
        if not existing_pr_number:
            return self.new_branch(), None

        try:
            pr = self._host.get_pull_request(existing_pr_number)
        except HostError as e:
            raise ReferenceResolutionError(
                f"error getting PR #{existing_pr_number}: {e}"
            ) from e

        if not pr.is_open:
            logger.info(f"PR #{pr.number} está cerrado, se crea un branch nuevo")
            return self.new_branch(), None

        ref = heads_ref(pr.head_ref)
        try:
            actual = self._host.get_ref(ref)
        except HostError as e:
            raise ReferenceResolutionError(f"error getting reference {ref}: {e}") from e

        logger.info(f"Reutilizando {ref} del PR #{pr.number}")
        return BranchState(ref=actual.ref, base_commit_sha=actual.sha), pr

    def new_branch(self) -> BranchState:
        """Crea `{prefix}-{timestamp}` apuntando a la punta de main."""
        base = self.base_head()
        nombre = f"{self._prefix}-{self._clock().strftime(BRANCH_TIMESTAMP_FORMAT)}"
        try:
            creado = self._host.create_ref(heads_ref(nombre), base.base_commit_sha)
        except HostError as e:
            raise ReferenceResolutionError(f"error creating reference {nombre}: {e}") from e

        logger.success(f"Branch creado: {nombre}")
        return BranchState(ref=creado.ref, base_commit_sha=creado.sha)

    def base_head(self) -> BranchState:
        """La punta actual del branch principal."""
        ref = heads_ref(self._base_branch)
        try:
            actual = self._host.get_ref(ref)
        except HostError as e:
            raise ReferenceResolutionError(f"error getting reference {ref}: {e}") from e
        return BranchState(ref=actual.ref, base_commit_sha=actual.sha)
