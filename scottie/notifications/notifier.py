"""
notifier.py — Notificaciones de Scottie.

El flujo de publicación no sabe a dónde van los avisos: emite un
Event con sus datos y el Notifier lo reparte entre los canales
configurados (hoy Slack).

Eventos:
    PR_CREATED      → se abrió un PR nuevo
    PR_UPDATED      → se empujó un commit a un PR abierto
    COMMIT_CREATED  → commit directo (sin PR)
    ERROR           → algo falló; se muestra como advertencia

Uso:
    from scottie.notifications.notifier import Notifier, Event
    from scottie.notifications.slack import SlackChannel

    notifier = Notifier(channels=[SlackChannel(token, "#robots")])
    notifier.notify(Event.PR_CREATED, {"number": 42, "url": "...", "title": "..."})
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from scottie.utils.logger import get_logger

logger = get_logger("scottie.notifications")


class Event(Enum):
    """Eventos que Scottie puede notificar."""
    PR_CREATED = "pr_created"
    PR_UPDATED = "pr_updated"
    COMMIT_CREATED = "commit_created"
    ERROR = "error"


class NotificationChannel(ABC):
    """Interfaz de un canal de notificación."""

    @abstractmethod
    def send(self, event: Event, data: dict[str, Any]) -> bool:
        """
        Envía una notificación por este canal.

        Returns:
            True si el envío fue exitoso, False si falló.
        """
        ...

    @abstractmethod
    def is_configured(self) -> bool:
        """True si el canal tiene lo necesario para enviar."""
        ...


class Notifier:
    """
    Reparte eventos entre los canales configurados.

    Si un canal falla, los demás siguen: una notificación nunca
    interrumpe una publicación.

    Args:
        channels: Canales de notificación.
        enabled_events: Valores de Event habilitados (default: todos).
    """

    def __init__(
        self,
        channels: list[NotificationChannel] | None = None,
        enabled_events: list[str] | None = None,
    ):
        self._channels = channels or []
        self._enabled_events = set(enabled_events or [e.value for e in Event])

    @property
    def channels(self) -> list[NotificationChannel]:
        return list(self._channels)

    def notify(self, event: Event, data: dict[str, Any]) -> None:
        if event.value not in self._enabled_events:
            logger.info(f"Evento {event.value} no está habilitado, omitiendo notificación")
            return

        for channel in self._channels:
            if not channel.is_configured():
                continue

            try:
                if channel.send(event, data):
                    logger.info(f"Notificación enviada: {event.value}")
                else:
                    logger.warning(f"Notificación falló en {channel.__class__.__name__}")
            except Exception as e:
                logger.error(f"Error en notificación ({channel.__class__.__name__}): {e}")

    def add_channel(self, channel: NotificationChannel) -> None:
        self._channels.append(channel)
