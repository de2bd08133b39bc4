"""
test_notifications.py — Tests para Notifier y SlackChannel.

Verificamos que:
1. Los eventos deshabilitados no se envían
2. Un canal que falla no bloquea a los demás
3. Slack recibe el texto con el formato de advertencia
"""

from unittest.mock import MagicMock, patch

import requests

from scottie.notifications.notifier import Event, NotificationChannel, Notifier
from scottie.notifications.slack import POST_MESSAGE_URL, SlackChannel, error_text


class FakeChannel(NotificationChannel):
    def __init__(self, configured=True, explota=False):
        self.configured = configured
        self.explota = explota
        self.enviados = []

    def send(self, event, data):
        if self.explota:
            raise RuntimeError("canal caído")
        self.enviados.append((event, data))
        return True

    def is_configured(self):
        return self.configured


class TestNotifier:
    def test_envia_a_todos_los_canales(self):
        a, b = FakeChannel(), FakeChannel()
        Notifier(channels=[a, b]).notify(Event.PR_CREATED, {"number": 1})
        assert len(a.enviados) == len(b.enviados) == 1

    def test_evento_deshabilitado(self):
        canal = FakeChannel()
        notifier = Notifier(channels=[canal], enabled_events=["error"])
        notifier.notify(Event.PR_CREATED, {"number": 1})
        assert canal.enviados == []

    def test_canal_sin_configurar_se_salta(self):
        canal = FakeChannel(configured=False)
        Notifier(channels=[canal]).notify(Event.ERROR, {})
        assert canal.enviados == []

    def test_canal_que_falla_no_bloquea(self):
        roto, sano = FakeChannel(explota=True), FakeChannel()
        Notifier(channels=[roto, sano]).notify(Event.ERROR, {"command": "x", "error": "y"})
        assert len(sano.enviados) == 1

    def test_add_channel(self):
        notifier = Notifier()
        notifier.add_channel(FakeChannel())
        assert len(notifier.channels) == 1


class TestSlackChannel:
    def test_error_text(self):
        assert error_text("publish article x", "boom") == ":warning: Error! `publish article x`: boom"

    @patch("scottie.notifications.slack.requests.post")
    def test_envia_error(self, mock_post):
        mock_post.return_value.json.return_value = {"ok": True}
        slack = SlackChannel("xoxb-test", "#robots")

        assert slack.send(Event.ERROR, {"command": "publish article x", "error": "boom"})

        args, kwargs = mock_post.call_args
        assert args[0] == POST_MESSAGE_URL
        assert kwargs["headers"]["Authorization"] == "Bearer xoxb-test"
        assert kwargs["json"]["channel"] == "#robots"
        assert kwargs["json"]["text"] == ":warning: Error! `publish article x`: boom"
        assert kwargs["json"]["blocks"][0]["text"]["type"] == "mrkdwn"

    @patch("scottie.notifications.slack.requests.post")
    def test_pr_creado(self, mock_post):
        mock_post.return_value.json.return_value = {"ok": True}
        slack = SlackChannel("xoxb-test", "#robots")
        slack.send(Event.PR_CREATED, {"number": 4, "url": "https://x/pull/4", "title": "T"})
        assert "PR #4" in mock_post.call_args.kwargs["json"]["text"]

    @patch("scottie.notifications.slack.requests.post")
    def test_hilo(self, mock_post):
        mock_post.return_value.json.return_value = {"ok": True}
        SlackChannel("xoxb", "C1", thread_ts="123.45").send(Event.ERROR, {"command": "c", "error": "e"})
        assert mock_post.call_args.kwargs["json"]["thread_ts"] == "123.45"

    @patch("scottie.notifications.slack.requests.post")
    def test_slack_responde_not_ok(self, mock_post):
        mock_post.return_value.json.return_value = {"ok": False, "error": "channel_not_found"}
        assert not SlackChannel("xoxb", "#nada").send(Event.ERROR, {"command": "c", "error": "e"})

    @patch("scottie.notifications.slack.requests.post", side_effect=requests.ConnectionError("sin red"))
    def test_error_de_red(self, mock_post):
        assert not SlackChannel("xoxb", "#robots").send(Event.ERROR, {"command": "c", "error": "e"})

    def test_dato_faltante_no_explota(self):
        slack = SlackChannel("xoxb", "#robots")
        slack._post_message = MagicMock(return_value=True)
        assert slack.send(Event.PR_CREATED, {"number": 1})
        assert "pr_created" in slack._post_message.call_args.args[0]

    def test_is_configured(self):
        assert SlackChannel("xoxb", "#robots").is_configured()
        assert not SlackChannel("", "#robots").is_configured()
