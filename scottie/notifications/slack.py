"""
slack.py — Canal de Slack para las notificaciones de Scottie.

Publica en un canal vía chat.postMessage (Web API) con un bot
token (xoxb-...). Cada mensaje va como un bloque "section" en
mrkdwn, igual que las respuestas del robot en el chat.

Los errores se muestran como:

    :warning: Error! `<comando>`: <error>

Uso:
    from scottie.notifications.slack import SlackChannel
    slack = SlackChannel(bot_token, "#robots")
    slack.send(Event.ERROR, {"command": "publish article x", "error": "..."})
"""

from __future__ import annotations

from typing import Any

import requests

from scottie.notifications.notifier import Event, NotificationChannel
from scottie.utils.logger import get_logger

logger = get_logger("scottie.slack")

POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"

DEFAULT_TEMPLATES = {
    Event.PR_CREATED.value: ":sparkles: PR #{number} creado: <{url}|{title}>",
    Event.PR_UPDATED.value: ":pencil2: PR #{number} actualizado: <{url}|{title}>",
    Event.COMMIT_CREATED.value: ":white_check_mark: Commit `{sha}` en {path}",
    Event.ERROR.value: ":warning: Error! `{command}`: {error}",
}


def error_text(command: str, error: Any) -> str:
    """El texto de advertencia de un error, tal como lo ve el canal."""
    return DEFAULT_TEMPLATES[Event.ERROR.value].format(command=command, error=error)


def section_block(text: str) -> dict[str, Any]:
    """Un bloque "section" de Block Kit con texto mrkdwn."""
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


class SlackChannel(NotificationChannel):
    """
    Canal de notificación vía Slack Web API.

    Args:
        bot_token: Token del bot (SLACK_BOT_TOKEN).
        channel: Canal destino ("#robots" o un ID "C0123...").
        templates: Templates por evento (default: DEFAULT_TEMPLATES).
        thread_ts: Si se da, los mensajes van como respuesta en ese hilo.
    """

    def __init__(
        self,
        bot_token: str,
        channel: str,
        templates: dict[str, str] | None = None,
        thread_ts: str | None = None,
    ):
        self._bot_token = bot_token
        self._channel = channel
        self._templates = templates or dict(DEFAULT_TEMPLATES)
        self._thread_ts = thread_ts

    def send(self, event: Event, data: dict[str, Any]) -> bool:
        template = self._templates.get(event.value)
        if not template:
            logger.warning(f"No hay template para evento: {event.value}")
            return False

        try:
            texto = template.format(**data)
        except KeyError as e:
            logger.error(f"Falta dato en notificación: {e}")
            texto = f"Evento: {event.value}\n{data}"

        return self._post_message(texto)

    def _post_message(self, text: str) -> bool:
        payload: dict[str, Any] = {
            "channel": self._channel,
            "text": text,
            "blocks": [section_block(text)],
        }
        if self._thread_ts:
            payload["thread_ts"] = self._thread_ts

        try:
            response = requests.post(
                POST_MESSAGE_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self._bot_token}"},
                timeout=10,
            )
            response.raise_for_status()
        except requests.Timeout:
            logger.error("Timeout al enviar mensaje de Slack")
            return False
        except requests.RequestException as e:
            logger.error(f"Error de conexión con Slack: {e}")
            return False

        body = response.json()
        if body.get("ok"):
            logger.success("Mensaje de Slack enviado")
            return True
        logger.error(f"Slack API error: {body.get('error', body)}")
        return False

    def is_configured(self) -> bool:
        return bool(self._bot_token and self._channel)
