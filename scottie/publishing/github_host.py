"""
github_host.py — RepositoryHost contra la API REST de GitHub.

Cada operación del Protocol es una llamada HTTP:

    get_ref             GET   /repos/{o}/{r}/git/ref/heads/{branch}
    create_ref          POST  /repos/{o}/{r}/git/refs
    update_ref          PATCH /repos/{o}/{r}/git/refs/heads/{branch}
    get_pull_request    GET   /repos/{o}/{r}/pulls/{n}
    create_pull_request POST  /repos/{o}/{r}/pulls
    request_reviewers   POST  /repos/{o}/{r}/pulls/{n}/requested_reviewers
    create_tree         POST  /repos/{o}/{r}/git/trees
    get_commit          GET   /repos/{o}/{r}/git/commits/{sha}
    create_commit       POST  /repos/{o}/{r}/git/commits
    get_file_contents   GET   /repos/{o}/{r}/contents/{path}?ref=...

Cualquier respuesta fuera de 2xx se convierte en HostError con el
"message" y el arreglo "errors" del cuerpo: PullRequestManager
necesita ese arreglo para reconocer la carrera "No commits between".

Uso:
    host = GitHubHost("geomodulus", "content", token=os.environ["GITHUB_TOKEN"])
    host.get_ref("refs/heads/main")
"""

from __future__ import annotations

import base64
from typing import Any, Sequence

import requests

from scottie.publishing.errors import HostError
from scottie.publishing.github_app import GitHubApp
from scottie.publishing.models import (
    CommitInfo,
    PRState,
    PullRequestRecord,
    Reference,
    TreeEntry,
)
from scottie.utils.logger import get_logger

logger = get_logger("scottie.github")

API_VERSION = "2022-11-28"


class GitHubHost:
    """
    Cliente REST mínimo para el repo de contenido.

    Args:
        owner: Dueño del repo (org o usuario).
        repo: Nombre del repo.
        token: Token personal (PAT). Se ignora si hay `app`.
        app: GitHubApp que entrega installation tokens.
        api_base: URL base de la API.
        session: requests.Session (inyectable para tests).
        timeout: Timeout por request, en segundos.
        maintainer_can_modify: Valor para los PRs que se crean.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str | None = None,
        app: GitHubApp | None = None,
        api_base: str = "https://api.github.com",
        session: requests.Session | None = None,
        timeout: int = 30,
        maintainer_can_modify: bool = True,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self._token = token
        self._app = app
        self._api_base = api_base.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout
        self._maintainer_can_modify = maintainer_can_modify

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    # ============================================================
    # Referencias
    # ============================================================

    def get_ref(self, ref: str) -> Reference:
        data = self._request("GET", f"/git/ref/{_ref_path(ref)}")
        return Reference(ref=data["ref"], sha=data["object"]["sha"])

    def create_ref(self, ref: str, sha: str) -> Reference:
        data = self._request("POST", "/git/refs", json={"ref": ref, "sha": sha})
        return Reference(ref=data["ref"], sha=data["object"]["sha"])

    def update_ref(self, ref: str, sha: str, force: bool = False) -> Reference:
        data = self._request(
            "PATCH", f"/git/refs/{_ref_path(ref)}", json={"sha": sha, "force": force}
        )
        return Reference(ref=data["ref"], sha=data["object"]["sha"])

    # ============================================================
    # Pull Requests
    # ============================================================

    def get_pull_request(self, number: int) -> PullRequestRecord:
        return _pull_request(self._request("GET", f"/pulls/{number}"))

    def create_pull_request(
        self, title: str, head: str, base: str, body: str
    ) -> PullRequestRecord:
        data = self._request(
            "POST",
            "/pulls",
            json={
                "title": title,
                "head": head,
                "base": base,
                "body": body,
                "maintainer_can_modify": self._maintainer_can_modify,
            },
        )
        return _pull_request(data)

    def request_reviewers(self, number: int, reviewers: Sequence[str]) -> None:
        self._request(
            "POST",
            f"/pulls/{number}/requested_reviewers",
            json={"reviewers": list(reviewers)},
        )

    # ============================================================
    # Objetos git
    # ============================================================

    def create_tree(self, base_sha: str, entries: Sequence[TreeEntry]) -> str:
        # GitHub resuelve un SHA de commit como base_tree
        data = self._request(
            "POST",
            "/git/trees",
            json={"base_tree": base_sha, "tree": [e.to_api() for e in entries]},
        )
        return data["sha"]

    def get_commit(self, sha: str) -> CommitInfo:
        return _commit(self._request("GET", f"/git/commits/{sha}"))

    def create_commit(
        self, message: str, tree_sha: str, parents: Sequence[str]
    ) -> CommitInfo:
        data = self._request(
            "POST",
            "/git/commits",
            json={"message": message, "tree": tree_sha, "parents": list(parents)},
        )
        return _commit(data)

    def get_file_contents(self, path: str, ref: str) -> str:
        data = self._request("GET", f"/contents/{path}", params={"ref": ref})
        if not isinstance(data, dict) or data.get("type", "file") != "file":
            raise HostError(f"{path} no es un archivo", status=422)
        if data.get("encoding") != "base64":
            raise HostError(
                f"encoding no soportado para {path}: {data.get('encoding')!r}", status=422
            )
        return base64.b64decode(data.get("content", "")).decode("utf-8")

    # ============================================================
    # HTTP
    # ============================================================

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }
        token = self._app.get_token() if self._app else self._token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self._api_base}/repos/{self.owner}/{self.repo}{path}"
        try:
            response = self._session.request(
                method=method,
                url=url,
                headers=self._headers(),
                json=json,
                params=params,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise HostError(f"{method} {path}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise _host_error(response)
        if not response.content:
            return {}
        return response.json()


def _ref_path(ref: str) -> str:
    """'refs/heads/main' → 'heads/main' (el formato de las URLs de refs)."""
    return ref.removeprefix("refs/")


def _host_error(response: requests.Response) -> HostError:
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    message = payload.get("message") or response.reason or "GitHub error"
    errors = [e for e in payload.get("errors") or [] if isinstance(e, dict)]
    logger.warning(f"GitHub respondió {response.status_code}: {message}")
    return HostError(message, status=response.status_code, errors=errors)


def _pull_request(data: dict[str, Any]) -> PullRequestRecord:
    state = PRState.OPEN if data.get("state") == "open" else PRState.CLOSED
    return PullRequestRecord(
        number=data["number"],
        html_url=data["html_url"],
        head_ref=data["head"]["ref"],
        state=state,
    )


def _commit(data: dict[str, Any]) -> CommitInfo:
    return CommitInfo(
        sha=data["sha"],
        tree_sha=data.get("tree", {}).get("sha", ""),
        message=data.get("message", ""),
        parents=tuple(p["sha"] for p in data.get("parents", [])),
    )
