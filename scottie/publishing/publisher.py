"""
publisher.py — Punto de entrada del flujo de publicación.

Expone las dos operaciones que usa la capa de chat:

    create_or_update_pull_request(request) → PublishResult(number, url, created)
    create_commit(request)                  → sha

Flujo de create_or_update_pull_request:

    [1/4] ChangeSetBuilder   (local, sin red)
    [2/4] BranchResolver     (PR abierto → su branch; si no, branch nuevo)
    [3/4] CommitOrchestrator (árbol + commit + avanzar ref)
    [4/4] PullRequestManager (reutilizar, o crear con reintentos + reviewers)

Los pasos son estrictamente secuenciales: cada uno depende del
efecto remoto del anterior. El change set se arma primero porque
no toca la red, así un request vacío o con contenido que no
formatea se rechaza sin crear branches huérfanos.

Uso:
    publisher = Publisher(host, PrettierFormatter(), PublishingConfig())
    result = publisher.create_or_update_pull_request(PublishRequest(
        target_path="articles/king-st-pilot",
        artifacts=[Artifact("body_html", "<p>...</p>")],
        title="Update King St pilot",
    ))
    print(result.number, result.url)
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from scottie.config import PublishingConfig
from scottie.publishing.branches import BranchResolver
from scottie.publishing.cancellation import NEVER, Cancellation
from scottie.publishing.changeset import ARTICLE_LAYOUT, ChangeSetBuilder, ContentLayout
from scottie.publishing.commits import CommitOrchestrator
from scottie.publishing.errors import EmptyChangeSetError, InvalidRequestError
from scottie.publishing.host import GuardedHost, RepositoryHost
from scottie.publishing.models import PublishRequest, PublishResult, TreeEntry
from scottie.publishing.pr_manager import PullRequestManager
from scottie.publishing.prettier import ContentFormatter
from scottie.utils.logger import get_logger

logger = get_logger("scottie.publisher")

TOTAL_STEPS = 4


class Publisher:
    """
    Orquesta una publicación completa contra un RepositoryHost.

    No guarda estado entre llamadas: cada publicación vuelve a leer
    refs y PRs del host.

    Args:
        host: RepositoryHost (GitHubHost o InMemoryHost).
        formatter: ContentFormatter.
        settings: Reglas de publicación (branch base, reviewers, backoff).
        layout: Layout del tipo de contenido (artículos por default).
        clock: Hora actual, para nombrar branches.
    """

    def __init__(
        self,
        host: RepositoryHost,
        formatter: ContentFormatter,
        settings: PublishingConfig | None = None,
        layout: ContentLayout = ARTICLE_LAYOUT,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._host = host
        self._settings = settings or PublishingConfig()
        self._builder = ChangeSetBuilder(formatter, layout)
        self._clock = clock

    @property
    def layout(self) -> ContentLayout:
        return self._builder.layout

    def create_or_update_pull_request(
        self,
        request: PublishRequest,
        cancel: Cancellation = NEVER,
    ) -> PublishResult:
        """
        Publica `request` como PR nuevo o como update de un PR abierto.

        Raises:
            InvalidRequestError: Request sin título o sin contenido.
            FormatError, ReferenceResolutionError, CommitError,
            PullRequestError, ReviewerAssignmentError,
            PublishCancelledError.
        """
        if not request.title:
            raise InvalidRequestError("un Pull Request necesita title")
        entries = self._build(request, TOTAL_STEPS)
        host = GuardedHost(self._host, cancel)

        logger.step(2, TOTAL_STEPS, "Resolviendo branch")
        resolver = self._resolver(host)
        branch, existing_pr = resolver.resolve(request.existing_pr_number)

        logger.step(3, TOTAL_STEPS, f"Commit en {branch.branch_name}")
        sha = CommitOrchestrator(host).commit(branch, entries, request.message)

        logger.step(4, TOTAL_STEPS, "Pull Request")
        manager = PullRequestManager(
            host,
            base_branch=self._settings.base_branch,
            reviewers=self._settings.reviewers,
            max_attempts=self._settings.max_attempts,
            base_delay=self._settings.base_delay,
            max_delay=self._settings.max_delay,
            sleep=host.cancellation.sleep,
        )
        body = request.body or self._settings.default_pr_body
        number, url = manager.create_or_update(branch, existing_pr, request.title, body)

        return PublishResult(
            number=number,
            url=url,
            created=existing_pr is None,
            commit_sha=sha,
        )

    def create_commit(
        self,
        request: PublishRequest,
        cancel: Cancellation = NEVER,
        advance: bool = False,
    ) -> str:
        """
        Commit directo (sin PR) sobre la punta del branch principal.

        Por default el commit se crea pero main NO se mueve: el caller
        decide qué hacer con el SHA. Con advance=True se avanza main
        (fast-forward, sin force).

        Returns:
            SHA del commit creado.
        """
        entries = self._build(request, 3)
        host = GuardedHost(self._host, cancel)

        logger.step(2, 3, f"Leyendo punta de {self._settings.base_branch}")
        branch = self._resolver(host).base_head()

        logger.step(3, 3, "Commit directo")
        return CommitOrchestrator(host).commit(
            branch, entries, request.message, advance=advance
        )

    def _build(self, request: PublishRequest, total: int) -> list[TreeEntry]:
        if not request.message:
            raise InvalidRequestError("el request necesita title o commit_message")
        if not request.has_content():
            raise EmptyChangeSetError(f"no hay artefactos con contenido para {request.target_path}")

        logger.step(1, total, f"Armando archivos de {request.target_path}")
        entries = self._builder.build(request.target_path, request.artifacts)
        if not entries:
            raise EmptyChangeSetError(f"no hay archivos que commitear en {request.target_path}")
        return entries

    def _resolver(self, host: RepositoryHost) -> BranchResolver:
        return BranchResolver(
            host,
            base_branch=self._settings.base_branch,
            prefix=self._settings.branch_prefix,
            clock=self._clock,
        )
