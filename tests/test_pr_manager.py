"""
test_pr_manager.py — Tests para la creación de Pull Requests.

Verificamos que:
1. Un PR abierto se reutiliza sin llamar al host
2. La carrera "No commits between" se reintenta con backoff exponencial
3. Cualquier otro error es fatal en el primer intento
4. Los reviewers se piden una sola vez, y su falla no pierde el PR
"""

from unittest.mock import MagicMock

import pytest

from scottie.publishing.errors import (
    HostError,
    PullRequestCreationExhaustedError,
    PullRequestError,
    ReviewerAssignmentError,
)
from scottie.publishing.memory_host import InMemoryHost
from scottie.publishing.models import BranchState, PRState, PullRequestRecord, TreeEntry
from scottie.publishing.pr_manager import (
    PullRequestManager,
    is_no_commits_race,
    retry_delays,
)

HEAD = "refs/heads/scottie-20240315-142501"


def _race_error(head=HEAD):
    return HostError("Validation Failed", status=422, errors=[{
        "resource": "PullRequest",
        "code": "custom",
        "message": f"No commits between main and {head}",
    }])


@pytest.fixture
def host():
    """Host con un branch que ya tiene un commit propio."""
    host = InMemoryHost()
    main_sha = host.refs["refs/heads/main"]
    host.create_ref(HEAD, main_sha)
    tree = host.create_tree(main_sha, [TreeEntry("a.txt", "a")])
    nuevo = host.create_commit("m", tree, [main_sha])
    host.update_ref(HEAD, nuevo.sha)
    host.calls.clear()
    return host


@pytest.fixture
def branch(host):
    return BranchState(HEAD, host.refs[HEAD])


@pytest.fixture
def sleep():
    return MagicMock()


class TestRetryDelays:
    def test_delays_por_default(self):
        assert retry_delays(10, 2.0, 30.0) == [2, 4, 8, 16, 30, 30, 30, 30, 30, 30]

    def test_tope(self):
        assert max(retry_delays(20, 2.0, 30.0)) == 30.0


class TestIsNoCommitsRace:
    def test_firma_exacta(self):
        assert is_no_commits_race(_race_error(), "main", HEAD)

    def test_acepta_nombre_corto(self):
        error = _race_error(head="scottie-20240315-142501")
        assert is_no_commits_race(error, "main", HEAD)

    def test_otro_head_no_es_carrera(self):
        assert not is_no_commits_race(_race_error(head="refs/heads/otro"), "main", HEAD)

    def test_otro_codigo_no_es_carrera(self):
        error = HostError("Validation Failed", status=422, errors=[{
            "code": "invalid", "message": f"No commits between main and {HEAD}",
        }])
        assert not is_no_commits_race(error, "main", HEAD)


class TestCreateOrUpdate:
    """Tests para create_or_update."""

    def test_pr_existente_no_llama_al_host(self, host, branch, sleep):
        pr = PullRequestRecord(7, "https://github.com/geomodulus/content/pull/7", "x")
        manager = PullRequestManager(host, sleep=sleep)
        assert manager.create_or_update(branch, pr, "T", "B") == (7, pr.html_url)
        assert host.calls == []

    def test_crea_pr_y_pide_review(self, host, branch, sleep):
        manager = PullRequestManager(host, sleep=sleep)
        number, url = manager.create_or_update(branch, None, "Título", "Cuerpo")

        assert number == 1
        assert url == "https://github.com/geomodulus/content/pull/1"
        assert host.pull_requests[1].head_ref == "scottie-20240315-142501"
        assert host.pull_requests[1].state is PRState.OPEN
        assert host.pr_bases[1] == "main"
        assert host.reviewers[1] == ["chrisdinn"]
        assert host.calls.count("request_reviewers") == 1
        sleep.assert_not_called()

    def test_sin_reviewers_no_pide_review(self, host, branch, sleep):
        manager = PullRequestManager(host, reviewers=[], sleep=sleep)
        manager.create_or_update(branch, None, "T", "B")
        assert "request_reviewers" not in host.calls

    def test_falla_de_reviewers_lleva_el_pr(self, host, branch, sleep):
        host.fail_on("request_reviewers", HostError("Reviews may only be requested from collaborators", status=422))
        manager = PullRequestManager(host, sleep=sleep)
        with pytest.raises(ReviewerAssignmentError) as exc:
            manager.create_or_update(branch, None, "T", "B")
        assert exc.value.number == 1
        assert exc.value.url == "https://github.com/geomodulus/content/pull/1"
        assert 1 in host.pull_requests


class TestCreateWithRetry:
    """Tests para el reintento de la carrera."""

    def test_carrera_transitoria(self, host, sleep):
        host.race_failures = 2
        manager = PullRequestManager(host, sleep=sleep)
        pr = manager.create_with_retry("T", HEAD, "B")
        assert pr.number == 1
        assert host.calls.count("create_pull_request") == 3
        assert [c.args[0] for c in sleep.call_args_list] == [2.0, 4.0]

    def test_agota_intentos(self, host, sleep):
        host.race_failures = 100
        manager = PullRequestManager(host, sleep=sleep)
        with pytest.raises(PullRequestCreationExhaustedError) as exc:
            manager.create_with_retry("T", HEAD, "B")
        assert exc.value.attempts == 10
        assert str(exc.value) == "unable to create pull request after 10 attempts"
        assert host.calls.count("create_pull_request") == 10
        assert [c.args[0] for c in sleep.call_args_list] == [2, 4, 8, 16, 30, 30, 30, 30, 30, 30]

    def test_error_no_transitorio_es_fatal(self, host, sleep):
        host.fail_on("create_pull_request", HostError("Bad credentials", status=401))
        manager = PullRequestManager(host, sleep=sleep)
        with pytest.raises(PullRequestError, match="error creating PR") as exc:
            manager.create_with_retry("T", HEAD, "B")
        assert not isinstance(exc.value, PullRequestCreationExhaustedError)
        assert host.calls.count("create_pull_request") == 1
        sleep.assert_not_called()

    def test_con_mock_del_host(self, sleep):
        """Solo la firma exacta de la carrera se reintenta."""
        pr = PullRequestRecord(3, "https://example/pull/3", "scottie-x")
        mock_host = MagicMock()
        mock_host.create_pull_request.side_effect = [_race_error(), pr]
        manager = PullRequestManager(mock_host, base_delay=0.5, sleep=sleep)

        assert manager.create_with_retry("T", HEAD, "B") is pr
        sleep.assert_called_once_with(0.5)
        mock_host.create_pull_request.assert_called_with(
            title="T", head=HEAD, base="main", body="B"
        )
