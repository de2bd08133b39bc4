"""
config.py — Carga y gestiona la configuración de Scottie.

Se encarga de:
1. Cargar config.yaml (configuración general, se sube a Git)
2. Cargar .env (secretos: tokens de GitHub y Slack, NUNCA a Git)
3. Resolver ${VARIABLES} de entorno en los valores de config
4. Entregar dataclasses con defaults documentados

Ejemplo de config.yaml:

    publishing:
      base_branch: main
      branch_prefix: scottie
      reviewers: [chrisdinn]
    github:
      owner: geomodulus
      repo: ${CONTENT_REPO}
    formatter:
      command: [npx, prettier]

Uso:
    from scottie.config import load_config
    config = load_config()
    print(config.publishing.reviewers)  # ["chrisdinn"]
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from scottie.publishing.models import DEFAULT_PR_BODY


# ============================================================
# Dataclasses de configuración
# ============================================================

@dataclass
class PublishingConfig:
    """
    Reglas del flujo de publicación.

    Campos:
        base_branch: Branch contra el que se abren los PRs.
        branch_prefix: Prefijo de los branches nuevos ({prefix}-{timestamp}).
        reviewers: Logins a los que se pide review al crear un PR.
        max_attempts: Intentos contra la carrera "No commits between".
        base_delay: Delay base del backoff exponencial (segundos).
        max_delay: Tope del delay (segundos).
        default_pr_body: Descripción del PR si el request no trae una.
        maintainer_can_modify: Si los maintainers pueden empujar al branch del PR.
    """
    base_branch: str = "main"
    branch_prefix: str = "scottie"
    reviewers: list[str] = field(default_factory=lambda: ["chrisdinn"])
    max_attempts: int = 10
    base_delay: float = 2.0
    max_delay: float = 30.0
    default_pr_body: str = DEFAULT_PR_BODY
    maintainer_can_modify: bool = True


@dataclass
class GitHubConfig:
    """Repo de contenido en GitHub."""
    owner: str = "geomodulus"
    repo: str = ""
    api_base: str = "https://api.github.com"
    timeout: int = 30


@dataclass
class FormatterConfig:
    """Cómo se invoca prettier."""
    command: list[str] = field(default_factory=lambda: ["npx", "prettier"])
    timeout: int = 60
    cwd: str = ""


@dataclass
class SlackConfig:
    """Canal de Slack donde se reportan publicaciones y errores."""
    enabled: bool = False
    channel: str = ""
    thread_ts: str = ""  # si se da, todo va como respuesta en ese hilo
    notify_on: list[str] = field(default_factory=lambda: [
        "pr_created", "pr_updated", "commit_created", "error"
    ])


@dataclass
class AppConfig:
    """Configuración completa de la aplicación."""
    publishing: PublishingConfig = field(default_factory=PublishingConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    formatter: FormatterConfig = field(default_factory=FormatterConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)

    # Valores del .env (no están en config.yaml)
    github_token: str = ""
    github_app_id: str = ""
    github_app_private_key_path: str = ""
    github_app_installation_id: str = ""
    slack_bot_token: str = ""


# ============================================================
# Funciones de carga
# ============================================================

def _resolve_env_vars(value: str) -> str:
    """
    Resuelve ${VARIABLE} con el valor del entorno.

    Ejemplo:
        "${CONTENT_REPO}" → "toronto-content"
    Si la variable no existe, el placeholder se deja igual.
    """
    patron = re.compile(r"\$\{(\w+)\}")

    def reemplazar(match: re.Match) -> str:
        return os.environ.get(match.group(1), match.group(0))

    return patron.sub(reemplazar, value)


def _resolve_env_recursive(data: Any) -> Any:
    """Resuelve ${VARIABLES} recursivamente en dicts/lists del YAML."""
    if isinstance(data, str):
        return _resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_recursive(item) for item in data]
    return data


def _dict_to_dataclass(data: dict, cls: type) -> Any:
    """
    Convierte un dict a dataclass ignorando keys desconocidas.

    Si alguien agrega una key al YAML que el código no conoce,
    se ignora en vez de explotar.
    """
    campos_validos = {f.name for f in cls.__dataclass_fields__.values()}
    datos_filtrados = {k: v for k, v in (data or {}).items() if k in campos_validos}
    return cls(**datos_filtrados)


def _find_config_dir() -> Path:
    """Busca config.yaml hacia arriba desde el directorio actual."""
    current = Path.cwd()
    for parent in [current] + list(current.parents):
        if (parent / "config.yaml").exists():
            return parent
    return current


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Carga la configuración completa de Scottie.

    Pasos:
    1. Carga .env para tener las variables de entorno disponibles
    2. Lee config.yaml (si no existe, usa defaults)
    3. Resuelve ${VARIABLES}
    4. Convierte cada sección a su dataclass
    5. Agrega los secretos del entorno

    Args:
        config_path: Ruta al config.yaml. Si es None, busca automáticamente.
    """
    proyecto_dir = config_path.parent if config_path else _find_config_dir()
    env_path = proyecto_dir / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    if config_path is None:
        config_path = proyecto_dir / "config.yaml"

    raw_config: dict = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}

    config_resuelto = _resolve_env_recursive(raw_config)

    app_config = AppConfig(
        publishing=_dict_to_dataclass(config_resuelto.get("publishing", {}), PublishingConfig),
        github=_dict_to_dataclass(config_resuelto.get("github", {}), GitHubConfig),
        formatter=_dict_to_dataclass(config_resuelto.get("formatter", {}), FormatterConfig),
        slack=_dict_to_dataclass(config_resuelto.get("slack", {}), SlackConfig),
    )

    app_config.github_token = os.environ.get("GITHUB_TOKEN", "")
    app_config.github_app_id = os.environ.get("GITHUB_APP_ID", "")
    app_config.github_app_private_key_path = os.environ.get("GITHUB_APP_PRIVATE_KEY_PATH", "")
    app_config.github_app_installation_id = os.environ.get("GITHUB_APP_INSTALLATION_ID", "")
    app_config.slack_bot_token = os.environ.get("SLACK_BOT_TOKEN", "")

    return app_config


def validate_config(config: AppConfig) -> list[str]:
    """
    Revisa que la config alcance para publicar.

    Returns:
        Lista de problemas (vacía si todo está bien).
    """
    problemas = []
    if not config.github.repo or config.github.repo.startswith("$"):
        problemas.append("github.repo no configurado en config.yaml")
    if not config.github_token and not config.github_app_id:
        problemas.append("Falta GITHUB_TOKEN o GITHUB_APP_ID en .env")
    if config.github_app_id and not config.github_app_installation_id:
        problemas.append("GITHUB_APP_ID sin GITHUB_APP_INSTALLATION_ID")
    if config.publishing.max_attempts < 1:
        problemas.append("publishing.max_attempts debe ser >= 1")
    if config.slack.enabled and not (config.slack_bot_token and config.slack.channel):
        problemas.append("Slack habilitado sin SLACK_BOT_TOKEN o slack.channel")
    return problemas
