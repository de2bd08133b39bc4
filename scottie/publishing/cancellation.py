"""
cancellation.py — Cancelación cooperativa de una publicación.

Cada llamada de publicación es síncrona y no maneja timeouts
propios. El caller puede pasar una Cancellation (con deadline
opcional) y el flujo la revisa ANTES de cada llamada al host.
Una llamada en vuelo nunca se interrumpe.

Uso:
    cancel = Cancellation(timeout=120)
    publisher.create_or_update_pull_request(request, cancel=cancel)
    # desde otro thread:
    cancel.cancel()
"""

from __future__ import annotations

import threading
import time

from scottie.publishing.errors import PublishCancelledError


class Cancellation:
    """
    Token de cancelación basado en threading.Event.

    Args:
        timeout: Segundos desde ahora hasta el deadline (None = sin deadline).
    """

    def __init__(self, timeout: float | None = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def check(self) -> None:
        """Lanza PublishCancelledError si ya se canceló o venció el deadline."""
        if self._event.is_set():
            raise PublishCancelledError("publicación cancelada")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise PublishCancelledError("se venció el deadline de la publicación")

    def sleep(self, seconds: float) -> None:
        """
        Duerme `seconds`, despertando antes si se cancela.

        Si el deadline cae antes de que termine la espera, no tiene
        caso dormir: se cancela de inmediato.
        """
        self.check()
        if self._deadline is not None and time.monotonic() + seconds >= self._deadline:
            raise PublishCancelledError("el deadline vence durante el backoff")
        if self._event.wait(seconds):
            raise PublishCancelledError("publicación cancelada durante el backoff")


class _NeverCancelled(Cancellation):
    """Cancellation por defecto: nunca se cancela, sleep es time.sleep."""

    def cancel(self) -> None:
        raise RuntimeError("NEVER no se puede cancelar")

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


NEVER = _NeverCancelled()
