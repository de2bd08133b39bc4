"""
pr_manager.py — Scottie crea (o reutiliza) Pull Requests.

Dos caminos:
    1. Hay un PR abierto → no se llama a nada. Mover su branch
       (CommitOrchestrator) ya ES la actualización del PR.
    2. No hay PR → create_pull_request + pedir reviewers.

La carrera de GitHub:
    Justo después de mover una ref, GitHub a veces todavía no "ve"
    el commit nuevo y rechaza el PR con:

        422 Validation Failed
        errors: [{"code": "custom",
                  "message": "No commits between main and <head>"}]

    Ese error (y SOLO ese, por firma exacta) se reintenta con
    backoff exponencial:

        delay = min(base_delay * 2**intento, max_delay)
        → 2, 4, 8, 16, 30, 30, 30, 30, 30, 30   (10 intentos)

    Cualquier otro error es fatal de inmediato.

Reviewers:
    Se piden UNA vez, solo cuando el PR se acaba de crear. Si eso
    falla, el PR ya existe: el error lleva su número y URL.

Uso:
    from scottie.publishing.pr_manager import PullRequestManager
    manager = PullRequestManager(host, reviewers=["chrisdinn"])
    number, url = manager.create_or_update(branch, None, "Título", "Body")
"""

from __future__ import annotations

import time
from typing import Callable, Sequence

from scottie.publishing.errors import (
    HostError,
    PullRequestCreationExhaustedError,
    PullRequestError,
    ReviewerAssignmentError,
)
from scottie.publishing.host import RepositoryHost
from scottie.publishing.models import BranchState, PullRequestRecord
from scottie.utils.logger import get_logger

logger = get_logger("scottie.pr_manager")

RACE_ERROR_CODE = "custom"


def retry_delays(max_attempts: int, base_delay: float, max_delay: float) -> list[float]:
    """Delays (segundos) que se duermen tras cada intento fallido por la carrera."""
    return [min(base_delay * 2 ** intento, max_delay) for intento in range(max_attempts)]


def is_no_commits_race(error: HostError, base: str, head: str) -> bool:
    """
    True si `error` es la carrera "No commits between <base> and <head>".

    GitHub reporta el head tal como se lo mandamos; aceptamos también
    el nombre corto del branch por si el host lo normaliza.
    """
    corto = head.removeprefix("refs/heads/")
    firmas = {
        f"No commits between {base} and {head}",
        f"No commits between {base} and {corto}",
    }
    return any(error.has_error(RACE_ERROR_CODE, firma) for firma in firmas)


class PullRequestManager:
    """
    Gestor del ciclo create-or-update de un PR de contenido.

    Args:
        host: RepositoryHost.
        base_branch: Branch contra el que se abren los PRs.
        reviewers: Logins a los que se pide review al crear.
        max_attempts: Tope de intentos contra la carrera.
        base_delay: Delay base del backoff (segundos).
        max_delay: Tope del delay (segundos).
        sleep: Función para esperar (inyectable; respeta cancelación).
    """

    def __init__(
        self,
        host: RepositoryHost,
        base_branch: str = "main",
        reviewers: Sequence[str] = ("chrisdinn",),
        max_attempts: int = 10,
        base_delay: float = 2.0,
        max_delay: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._host = host
        self._base_branch = base_branch
        self._reviewers = list(reviewers)
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._sleep = sleep

    def create_or_update(
        self,
        branch: BranchState,
        existing_pr: PullRequestRecord | None,
        title: str,
        body: str,
    ) -> tuple[int, str]:
        """
        Devuelve (número, url) del PR que ahora apunta a `branch`.

        Raises:
            PullRequestError: Error no transitorio al crear.
            PullRequestCreationExhaustedError: Se agotaron los intentos.
            ReviewerAssignmentError: El PR se creó pero falló el review.
        """
        if existing_pr is not None:
            logger.info(f"PR #{existing_pr.number} actualizado: {existing_pr.html_url}")
            return existing_pr.number, existing_pr.html_url

        pr = self.create_with_retry(title=title, head=branch.ref, body=body)
        logger.success(f"PR creado: #{pr.number} — {title}")
        logger.info(f"URL: {pr.html_url}")

        self._request_reviewers(pr)
        return pr.number, pr.html_url

    def create_with_retry(self, title: str, head: str, body: str) -> PullRequestRecord:
        """Crea el PR reintentando solo la carrera 'No commits between'."""
        delays = retry_delays(self._max_attempts, self._base_delay, self._max_delay)
        for intento, delay in enumerate(delays, start=1):
            try:
                return self._host.create_pull_request(
                    title=title, head=head, base=self._base_branch, body=body
                )
            except HostError as e:
                if not is_no_commits_race(e, self._base_branch, head):
                    raise PullRequestError(f"error creating PR: {e}") from e
                logger.warning(
                    f"Creación de PR falló ({intento}/{self._max_attempts}). "
                    f"Reintentando en {delay:.2f} segundos..."
                )
                self._sleep(delay)

        raise PullRequestCreationExhaustedError(self._max_attempts)

    def _request_reviewers(self, pr: PullRequestRecord) -> None:
        if not self._reviewers:
            return
        try:
            self._host.request_reviewers(pr.number, self._reviewers)
        except HostError as e:
            raise ReviewerAssignmentError(
                f"error requesting reviewers: {e}", number=pr.number, url=pr.html_url
            ) from e
        logger.info(f"Review pedido a: {', '.join(self._reviewers)}")
