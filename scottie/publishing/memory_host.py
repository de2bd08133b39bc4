"""In-memory repository host for deterministic tests and dry runs."""

from __future__ import annotations

import hashlib
from typing import Sequence

from scottie.publishing.errors import HostError
from scottie.publishing.models import (
    CommitInfo,
    PRState,
    PullRequestRecord,
    Reference,
    TreeEntry,
)


class InMemoryHost:
    """
    Fake de GitHub con semántica git mínima pero real.

    - Los commits guardan un snapshot completo {path: contenido}.
    - update_ref sin force exige fast-forward (igual que GitHub).
    - create_pull_request falla con "No commits between" si el head no
      tiene commits nuevos, y además puede simular la carrera de
      réplica con `race_failures`.

    Args:
        owner: Dueño del repo (solo para las URLs).
        repo: Nombre del repo.
        base_branch: Branch principal, se crea con un commit inicial.
        files: Archivos del commit inicial.
    """

    def __init__(
        self,
        owner: str = "geomodulus",
        repo: str = "content",
        base_branch: str = "main",
        files: dict[str, str] | None = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.refs: dict[str, str] = {}
        self.commits: dict[str, CommitInfo] = {}
        self.trees: dict[str, dict[str, str]] = {}
        self.pull_requests: dict[int, PullRequestRecord] = {}
        self.pr_bases: dict[int, str] = {}
        self.reviewers: dict[int, list[str]] = {}
        self.calls: list[str] = []
        self.failures: dict[str, HostError] = {}
        self.race_failures = 0
        self._counter = 0

        tree_sha = self._store_tree(dict(files or {}))
        root = self._store_commit("initial commit", tree_sha, ())
        self.refs[f"refs/heads/{base_branch}"] = root.sha

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    # ============================================================
    # Helpers de test
    # ============================================================

    def fail_on(self, operation: str, error: HostError) -> None:
        """Hace que la próxima llamada a `operation` lance `error`."""
        self.failures[operation] = error

    def close_pull_request(self, number: int) -> None:
        pr = self.pull_requests[number]
        self.pull_requests[number] = PullRequestRecord(
            number=pr.number, html_url=pr.html_url, head_ref=pr.head_ref, state=PRState.CLOSED
        )

    def files_at(self, ref_or_sha: str) -> dict[str, str]:
        return dict(self.trees[self.commits[self._resolve(ref_or_sha)].tree_sha])

    def branch_names(self) -> list[str]:
        return sorted(r.removeprefix("refs/heads/") for r in self.refs)

    # ============================================================
    # RepositoryHost
    # ============================================================

    def get_ref(self, ref: str) -> Reference:
        self._record("get_ref")
        if ref not in self.refs:
            raise HostError("Not Found", status=404)
        return Reference(ref=ref, sha=self.refs[ref])

    def create_ref(self, ref: str, sha: str) -> Reference:
        self._record("create_ref")
        if ref in self.refs:
            raise HostError("Reference already exists", status=422)
        if sha not in self.commits:
            raise HostError("Object does not exist", status=422)
        self.refs[ref] = sha
        return Reference(ref=ref, sha=sha)

    def update_ref(self, ref: str, sha: str, force: bool = False) -> Reference:
        self._record("update_ref")
        if ref not in self.refs:
            raise HostError("Reference does not exist", status=422)
        if sha not in self.commits:
            raise HostError("Object does not exist", status=422)
        if not force and not self._is_ancestor(self.refs[ref], sha):
            raise HostError("Update is not a fast forward", status=422)
        self.refs[ref] = sha
        return Reference(ref=ref, sha=sha)

    def get_pull_request(self, number: int) -> PullRequestRecord:
        self._record("get_pull_request")
        if number not in self.pull_requests:
            raise HostError("Not Found", status=404)
        return self.pull_requests[number]

    def create_pull_request(
        self, title: str, head: str, base: str, body: str
    ) -> PullRequestRecord:
        self._record("create_pull_request")
        head_ref = head if head.startswith("refs/") else f"refs/heads/{head}"
        base_ref = f"refs/heads/{base}"
        if head_ref not in self.refs:
            raise HostError(
                "Validation Failed",
                status=422,
                errors=[{"resource": "PullRequest", "field": "head", "code": "invalid"}],
            )
        no_commits = self.refs[head_ref] == self.refs.get(base_ref)
        if self.race_failures > 0 or no_commits:
            self.race_failures = max(0, self.race_failures - 1)
            raise HostError(
                "Validation Failed",
                status=422,
                errors=[{
                    "resource": "PullRequest",
                    "code": "custom",
                    "message": f"No commits between {base} and {head}",
                }],
            )
        number = max(self.pull_requests, default=0) + 1
        pr = PullRequestRecord(
            number=number,
            html_url=f"https://github.com/{self.full_name}/pull/{number}",
            head_ref=head_ref.removeprefix("refs/heads/"),
            state=PRState.OPEN,
        )
        self.pull_requests[number] = pr
        self.pr_bases[number] = base
        return pr

    def request_reviewers(self, number: int, reviewers: Sequence[str]) -> None:
        self._record("request_reviewers")
        if number not in self.pull_requests:
            raise HostError("Not Found", status=404)
        self.reviewers.setdefault(number, []).extend(reviewers)

    def create_tree(self, base_sha: str, entries: Sequence[TreeEntry]) -> str:
        self._record("create_tree")
        if base_sha not in self.commits:
            raise HostError("Invalid base_tree", status=422)
        files = dict(self.trees[self.commits[base_sha].tree_sha])
        for entry in entries:
            files[entry.path] = entry.content
        return self._store_tree(files)

    def get_commit(self, sha: str) -> CommitInfo:
        self._record("get_commit")
        if sha not in self.commits:
            raise HostError("Not Found", status=404)
        return self.commits[sha]

    def create_commit(
        self, message: str, tree_sha: str, parents: Sequence[str]
    ) -> CommitInfo:
        self._record("create_commit")
        if tree_sha not in self.trees:
            raise HostError("Tree SHA does not exist", status=422)
        for parent in parents:
            if parent not in self.commits:
                raise HostError("Parent SHA does not exist", status=422)
        return self._store_commit(message, tree_sha, tuple(parents))

    def get_file_contents(self, path: str, ref: str) -> str:
        self._record("get_file_contents")
        try:
            files = self.files_at(ref)
        except KeyError:
            raise HostError("No commit found for the ref", status=404) from None
        if path not in files:
            raise HostError("Not Found", status=404)
        return files[path]

    # ============================================================
    # Internos
    # ============================================================

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        error = self.failures.pop(operation, None)
        if error is not None:
            raise error

    def _next_sha(self, payload: str) -> str:
        self._counter += 1
        return hashlib.sha1(f"{self._counter}:{payload}".encode("utf-8")).hexdigest()

    def _store_tree(self, files: dict[str, str]) -> str:
        sha = self._next_sha(repr(sorted(files.items())))
        self.trees[sha] = files
        return sha

    def _store_commit(self, message: str, tree_sha: str, parents: tuple[str, ...]) -> CommitInfo:
        sha = self._next_sha(f"{message}:{tree_sha}:{parents}")
        commit = CommitInfo(sha=sha, tree_sha=tree_sha, message=message, parents=parents)
        self.commits[sha] = commit
        return commit

    def _resolve(self, ref_or_sha: str) -> str:
        if ref_or_sha in self.commits:
            return ref_or_sha
        if ref_or_sha in self.refs:
            return self.refs[ref_or_sha]
        return self.refs[f"refs/heads/{ref_or_sha}"]

    def _is_ancestor(self, ancestor: str, sha: str) -> bool:
        pendientes = [sha]
        vistos: set[str] = set()
        while pendientes:
            actual = pendientes.pop()
            if actual == ancestor:
                return True
            if actual in vistos:
                continue
            vistos.add(actual)
            pendientes.extend(self.commits[actual].parents)
        return False
