"""
github_app.py — Scottie se autentica como GitHub App.

El robot publica en el repo de contenido con su propia identidad
("scottie[bot]"), no con la cuenta de una persona. Con un PAT
(GITHUB_TOKEN) también funciona; la App es lo recomendado.

Flujo (JWT → Installation Token):
    1. Leer la private key (.pem, o el PEM directo desde el entorno)
    2. Firmar un JWT RS256 válido 10 min
    3. Cambiarlo por un Installation Access Token (válido 1 hora)
    4. Cachear el token y renovarlo 5 min antes de que venza

Permisos que necesita la App:
    - contents: write (árboles, commits, refs)
    - pull_requests: write (crear PRs, pedir reviewers)
    - metadata: read

Uso:
    from scottie.publishing.github_app import GitHubApp
    app = GitHubApp(app_id, private_key_path, installation_id)
    host = GitHubHost("geomodulus", "content", app=app)
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable

import jwt
import requests

from scottie.publishing.errors import HostError
from scottie.utils.logger import get_logger

logger = get_logger("scottie.github")

# El token dura 1 hora; se renueva con 5 min de margen
TOKEN_TTL_SECONDS = 55 * 60


class GitHubApp:
    """
    Autenticación como GitHub App.

    Args:
        app_id: ID numérico de la GitHub App.
        private_key_path: Ruta al .pem, o el PEM completo como texto.
        installation_id: ID de la instalación en la organización.
        api_base: URL base de la API.
        clock: Reloj en segundos (inyectable para tests).
    """

    def __init__(
        self,
        app_id: str,
        private_key_path: str,
        installation_id: str,
        api_base: str = "https://api.github.com",
        clock: Callable[[], float] = time.time,
    ):
        self._app_id = app_id
        self._installation_id = installation_id
        self._api_base = api_base.rstrip("/")
        self._clock = clock

        self._token: str | None = None
        self._token_expires_at: float = 0

        self._private_key = self._load_private_key(private_key_path)

    @staticmethod
    def _load_private_key(private_key_path: str) -> str:
        """
        Carga la private key.

        En CI la key llega como variable de entorno con el PEM
        completo, no como ruta.

        Raises:
            FileNotFoundError: Si no es un PEM ni un archivo existente.
        """
        if private_key_path.startswith("-----BEGIN"):
            return private_key_path

        ruta = Path(private_key_path)
        if not ruta.exists():
            raise FileNotFoundError(
                f"No se encontró la private key en: {ruta}\n"
                "Descárgala desde la configuración de la GitHub App."
            )
        return ruta.read_text(encoding="utf-8")

    def _generate_jwt(self) -> str:
        """JWT RS256: iss = app_id, iat con 60s de margen, exp a 10 min."""
        ahora = int(self._clock())
        payload = {
            "iss": self._app_id,
            "iat": ahora - 60,
            "exp": ahora + (10 * 60),
        }
        return jwt.encode(payload, self._private_key, algorithm="RS256")

    def get_token(self) -> str:
        """
        Devuelve un Installation Access Token vigente.

        Raises:
            HostError: Si GitHub rechaza el JWT o no responde.
        """
        if self._token and self._clock() < self._token_expires_at:
            return self._token

        url = f"{self._api_base}/app/installations/{self._installation_id}/access_tokens"
        headers = {
            "Authorization": f"Bearer {self._generate_jwt()}",
            "Accept": "application/vnd.github+json",
        }

        try:
            response = requests.post(url, headers=headers, timeout=30)
            response.raise_for_status()
        except requests.RequestException as e:
            status = e.response.status_code if e.response is not None else 0
            raise HostError(
                f"Error al obtener Installation Token: {e}. "
                "Verifica GITHUB_APP_ID, GITHUB_APP_INSTALLATION_ID y la private key.",
                status=status,
            ) from e

        self._token = response.json()["token"]
        self._token_expires_at = self._clock() + TOKEN_TTL_SECONDS

        logger.success("Autenticación GitHub App exitosa")
        return self._token

    def is_configured(self) -> bool:
        """True si hay app_id, installation_id y private key."""
        return bool(self._app_id and self._installation_id and self._private_key)
