"""
prettier.py — Normaliza el contenido antes de commitearlo.

Cada archivo pasa por `npx prettier --stdin-filepath <ruta>`.
Prettier decide el parser por la extensión de la ruta (.json,
.html, .js, .geojson), así que la ruta es solo una pista: el
archivo no tiene que existir en disco.

¿Por qué formatear antes de commitear?
    Porque los robots regeneran los archivos completos en cada
    publicación. Si el formato no es estable, cada PR muestra un
    diff gigante aunque solo haya cambiado una línea.

Uso:
    from scottie.publishing.prettier import PrettierFormatter
    formatter = PrettierFormatter()
    html = formatter.format("<p>hola</p>", "articles/x/article.html")
"""

from __future__ import annotations

import subprocess
from typing import Protocol

from scottie.publishing.errors import FormatError
from scottie.utils.logger import get_logger

logger = get_logger("scottie.prettier")


class ContentFormatter(Protocol):
    """Función pura: (texto, ruta) → texto formateado, o FormatError."""

    def format(self, text: str, path_hint: str) -> str: ...


class PrettierFormatter:
    """
    Formateador que delega en prettier vía subprocess.

    Args:
        command: Comando base (default: ["npx", "prettier"]).
        timeout: Segundos máximos por archivo.
        cwd: Directorio donde correr el comando (donde vive node_modules).
    """

    def __init__(
        self,
        command: list[str] | None = None,
        timeout: int = 60,
        cwd: str | None = None,
    ):
        self._command = list(command or ["npx", "prettier"])
        self._timeout = timeout
        self._cwd = cwd

    def format(self, text: str, path_hint: str) -> str:
        """
        Formatea `text` como si fuera el archivo `path_hint`.

        Raises:
            FormatError: Si prettier no está instalado, tarda demasiado
                o rechaza el contenido. El error lleva el contenido.
        """
        cmd = self._command + ["--stdin-filepath", path_hint]
        try:
            resultado = subprocess.run(
                cmd,
                input=text,
                capture_output=True,
                text=True,
                cwd=self._cwd,
                timeout=self._timeout,
            )
        except FileNotFoundError as e:
            raise FormatError(
                f"no se encontró el formateador ({self._command[0]})",
                path=path_hint,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise FormatError(
                f"timeout formateando {path_hint} ({self._timeout}s)",
                path=path_hint,
                content=text,
            ) from e

        if resultado.returncode != 0:
            logger.error(f"prettier falló en {path_hint}")
            raise FormatError(
                f"error formatting {path_hint}: {resultado.stderr.strip()}",
                path=path_hint,
                content=text,
            )

        return resultado.stdout
