"""
errors.py — Taxonomía de errores del flujo de publicación.

Cada paso del flujo (branch → archivos → commit → PR) tiene su
propio tipo de error. Todos heredan de PublishError para que la
capa de chat (o el CLI) pueda atraparlos con un solo except y
mostrarlos como advertencia, sin interpretar el tipo.

Ninguno de estos errores se reintenta, salvo la carrera de
creación de PR que se maneja dentro de PullRequestManager.
"""

from __future__ import annotations


class PublishError(Exception):
    """Error base de cualquier operación de publicación."""


class HostError(PublishError):
    """
    Error reportado por el host del repositorio (GitHub).

    Attributes:
        status: Código HTTP (0 si no hubo respuesta).
        message: Campo "message" del cuerpo de la respuesta.
        errors: Arreglo "errors" de GitHub (dicts con code/message).
    """

    def __init__(
        self,
        message: str,
        status: int = 0,
        errors: list[dict] | None = None,
    ):
        self.message = message
        self.status = status
        self.errors = list(errors or [])
        detalle = f" ({status})" if status else ""
        super().__init__(f"{message}{detalle}")

    def has_error(self, code: str, message: str) -> bool:
        """True si algún elemento de `errors` coincide exactamente."""
        return any(
            e.get("code") == code and e.get("message") == message
            for e in self.errors
        )


class ReferenceResolutionError(PublishError):
    """No se pudo leer o crear la referencia (branch) o el PR de trabajo."""


class FormatError(PublishError):
    """
    El formateador rechazó el contenido de un archivo.

    Guarda el contenido ofensivo para poder diagnosticarlo.
    """

    def __init__(self, message: str, path: str = "", content: str = ""):
        self.path = path
        self.content = content
        texto = message
        if content:
            texto = f"{message}\n\noffending content ({path}):\n{content}"
        super().__init__(texto)


class InvalidRequestError(PublishError, ValueError):
    """El PublishRequest no se puede publicar tal como viene."""


class UnknownArtifactError(InvalidRequestError):
    """El request trae un artefacto que el layout no conoce."""


class EmptyChangeSetError(InvalidRequestError):
    """No hay nada que commitear (todos los artefactos vacíos)."""


class CommitError(PublishError):
    """
    Falló la creación del commit o el avance de la referencia.

    Attributes:
        step: "tree", "parent", "commit" o "ref".
    """

    def __init__(self, message: str, step: str):
        self.step = step
        super().__init__(message)


class PullRequestError(PublishError):
    """Falló la creación del Pull Request (error no transitorio)."""


class PullRequestCreationExhaustedError(PullRequestError):
    """Se agotaron los intentos contra la carrera 'No commits between'."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"unable to create pull request after {attempts} attempts")


class ReviewerAssignmentError(PublishError):
    """
    El PR se creó, pero no se pudo pedir el review.

    El PR YA EXISTE en GitHub: number y url permiten que el caller
    lo reporte en vez de perderlo.
    """

    def __init__(self, message: str, number: int, url: str):
        self.number = number
        self.url = url
        super().__init__(f"{message} (PR #{number} creado: {url})")


class ContentFetchError(PublishError):
    """No se pudo leer o parsear un archivo de contenido del repo."""


class PublishCancelledError(PublishError):
    """La publicación se canceló (o venció el deadline) antes de la siguiente llamada."""
