"""
cli.py — Punto de entrada de Scottie por línea de comandos.

Comandos:
    python -m scottie publish article SLUG [archivos...] --title T [--pr N]
    python -m scottie publish place SLUG [archivos...] --title T [--pr N]
    python -m scottie commit article SLUG [archivos...] --message M
    python -m scottie commit place SLUG [archivos...] --message M
    python -m scottie fetch article SLUG
    python -m scottie fetch place SLUG
    python -m scottie config --show / --validate
    python -m scottie health

Cada archivo se pasa con la opción de su artefacto, ej:

    python -m scottie publish article king-st-pilot \\
        --article article.json --body-html article.html \\
        --title "King St pilot: update"

--dry-run corre el flujo completo contra un host en memoria:
muestra qué archivos quedarían en el branch sin tocar GitHub.

Uso desde código (tests):
    from click.testing import CliRunner
    from scottie.cli import main
    CliRunner().invoke(main, ["fetch", "article", "mi-slug"])
"""

from __future__ import annotations

import json
import sys
from dataclasses import asdict
from pathlib import Path

import click
from rich.panel import Panel
from rich.table import Table

from scottie import __version__
from scottie.config import AppConfig, load_config, validate_config
from scottie.notifications.notifier import Event, Notifier
from scottie.notifications.slack import SlackChannel, error_text
from scottie.publishing.cancellation import NEVER, Cancellation
from scottie.publishing.changeset import ARTICLE_LAYOUT, PLACE_LAYOUT, ContentLayout
from scottie.publishing.checkout import ContentCheckout
from scottie.publishing.errors import PublishError, ReviewerAssignmentError
from scottie.publishing.github_app import GitHubApp
from scottie.publishing.github_host import GitHubHost
from scottie.publishing.host import RepositoryHost
from scottie.publishing.memory_host import InMemoryHost
from scottie.publishing.models import Artifact, PublishRequest
from scottie.publishing.prettier import ContentFormatter, PrettierFormatter
from scottie.publishing.publisher import Publisher
from scottie.utils.logger import console as rich_console
from scottie.utils.logger import get_logger

logger = get_logger("scottie.cli")

BANNER = """
[bold rgb(255,107,53)]
  ╔══════════════════════════════════════╗
  ║  SCOTTIE — robot de publicación      ║
  ╚══════════════════════════════════════╝
[/bold rgb(255,107,53)]"""

# (opción CLI, artefacto del layout)
ARTICLE_FILE_OPTIONS = [
    ("article", "article"),
    ("body_html", "body_html"),
    ("script", "script"),
    ("teaser_geojson", "teaser_geojson"),
    ("teaser_js", "teaser_js"),
    ("locations", "locations"),
]
PLACE_FILE_OPTIONS = [
    ("place", "place"),
    ("body_html", "body_html"),
]


def _file_options(options: list[tuple[str, str]]):
    """Agrega una opción --<artefacto> FILE por cada artefacto del layout."""
    def decorator(func):
        for option, artifact in reversed(options):
            func = click.option(
                f"--{option.replace('_', '-')}",
                option,
                type=click.Path(exists=True, dir_okay=False, path_type=Path),
                default=None,
                help=f"Archivo para el artefacto '{artifact}'",
            )(func)
        return func
    return decorator


def _pr_options(func):
    func = click.option("--title", "-t", required=True, help="Título del PR (y mensaje del commit)")(func)
    func = click.option("--body", "-b", default="", help="Descripción del PR")(func)
    func = click.option("--pr", "pr_number", type=int, default=0, help="PR abierto a actualizar")(func)
    func = click.option("--timeout", type=float, default=None, help="Deadline en segundos")(func)
    func = click.option(
        "--dry-run", is_flag=True, default=False,
        help="Corre el flujo contra un host en memoria, sin tocar GitHub",
    )(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="Scottie")
def main():
    """Scottie — Robot de publicación de contenido."""


# ============================================================
# publish
# ============================================================

@main.group()
def publish():
    """Publica contenido como Pull Request."""


@publish.command("article")
@click.argument("slug")
@_file_options(ARTICLE_FILE_OPTIONS)
@_pr_options
@click.option("--archive", is_flag=True, default=False, help="Publica bajo archive/articles/")
def publish_article(slug: str, archive: bool, **kwargs):
    """Crea o actualiza el PR de un artículo."""
    _run_publish(ARTICLE_LAYOUT, ARTICLE_FILE_OPTIONS, slug, archive, kwargs)


@publish.command("place")
@click.argument("slug")
@_file_options(PLACE_FILE_OPTIONS)
@_pr_options
def publish_place(slug: str, **kwargs):
    """Crea o actualiza el PR de un lugar."""
    _run_publish(PLACE_LAYOUT, PLACE_FILE_OPTIONS, slug, False, kwargs)


# ============================================================
# commit
# ============================================================

@main.group()
def commit():
    """Crea un commit directo sobre main (sin PR)."""


@commit.command("article")
@click.argument("slug")
@_file_options(ARTICLE_FILE_OPTIONS)
@click.option("--message", "-m", required=True, help="Mensaje del commit")
@click.option("--advance", is_flag=True, default=False, help="Avanza main al commit nuevo")
@click.option("--archive", is_flag=True, default=False, help="Escribe bajo archive/articles/")
def commit_article(slug: str, message: str, advance: bool, archive: bool, **kwargs):
    """Commit directo de un artículo."""
    _run_commit(ARTICLE_LAYOUT, ARTICLE_FILE_OPTIONS, slug, archive, message, advance, kwargs)


@commit.command("place")
@click.argument("slug")
@_file_options(PLACE_FILE_OPTIONS)
@click.option("--message", "-m", required=True, help="Mensaje del commit")
@click.option("--advance", is_flag=True, default=False, help="Avanza main al commit nuevo")
def commit_place(slug: str, message: str, advance: bool, **kwargs):
    """Commit directo de un lugar."""
    _run_commit(PLACE_LAYOUT, PLACE_FILE_OPTIONS, slug, False, message, advance, kwargs)


# ============================================================
# fetch
# ============================================================

@main.group()
def fetch():
    """Lee contenido publicado desde la punta de main."""


@fetch.command("article")
@click.argument("slug")
def fetch_article(slug: str):
    """Muestra el contenido actual de un artículo."""
    cfg = _load_ready_config()
    comando = f"fetch article {slug}"
    try:
        checkout = ContentCheckout(_build_host(cfg), cfg.publishing.base_branch)
        resultado = checkout.fetch_article(slug)
    except (PublishError, FileNotFoundError) as e:
        _fail(cfg, comando, e)
    rich_console.print_json(json.dumps(asdict(resultado), ensure_ascii=False))


@fetch.command("place")
@click.argument("slug")
def fetch_place(slug: str):
    """Muestra el contenido actual de un lugar."""
    cfg = _load_ready_config()
    comando = f"fetch place {slug}"
    try:
        checkout = ContentCheckout(_build_host(cfg), cfg.publishing.base_branch)
        resultado = checkout.fetch_place(slug)
    except (PublishError, FileNotFoundError) as e:
        _fail(cfg, comando, e)
    rich_console.print_json(json.dumps(asdict(resultado), ensure_ascii=False))


# ============================================================
# config / health
# ============================================================

@main.command()
@click.option("--show", is_flag=True, help="Muestra la configuración actual")
@click.option("--validate", is_flag=True, help="Valida la configuración")
def config(show: bool, validate: bool):
    """Gestiona la configuración de Scottie."""
    cfg = load_config()

    if show:
        tabla = Table(title="Configuración de Scottie")
        tabla.add_column("Parámetro", style="cyan")
        tabla.add_column("Valor", style="green")

        tabla.add_row("Repo", f"{cfg.github.owner}/{cfg.github.repo or '(no configurado)'}")
        tabla.add_row("Branch base", cfg.publishing.base_branch)
        tabla.add_row("Prefijo de branch", cfg.publishing.branch_prefix)
        tabla.add_row("Reviewers", ", ".join(cfg.publishing.reviewers) or "(ninguno)")
        tabla.add_row("Intentos de PR", str(cfg.publishing.max_attempts))
        tabla.add_row("Formateador", " ".join(cfg.formatter.command))
        tabla.add_row("GitHub token", "✅ Configurado" if cfg.github_token else "❌ Falta")
        tabla.add_row("GitHub App", "✅ Configurada" if cfg.github_app_id else "❌ Falta")
        tabla.add_row("Slack", "✅ Activo" if cfg.slack.enabled else "❌ Inactivo")

        rich_console.print(tabla)

    if validate:
        problemas = validate_config(cfg)
        if problemas:
            for p in problemas:
                logger.error(p)
            sys.exit(1)
        logger.success("Configuración válida")


@main.command()
def health():
    """Verifica configuración y conexión con el repo de contenido."""
    rich_console.print(BANNER)
    cfg = load_config()
    errores = validate_config(cfg)

    if not errores:
        try:
            host = _build_host(cfg)
            head = host.get_ref(f"refs/heads/{cfg.publishing.base_branch}")
            logger.success(
                f"GitHub: {host.full_name} "
                f"{cfg.publishing.base_branch} @ {head.sha[:7]}"
            )
        except (PublishError, FileNotFoundError) as e:
            errores.append(f"GitHub: {e}")

    if cfg.slack.enabled and cfg.slack_bot_token:
        logger.success("Slack: configurado")
    else:
        logger.warning("Slack: NO configurado (opcional)")

    if errores:
        rich_console.print(Panel(
            "\n".join(f"❌ {e}" for e in errores),
            title="Problemas encontrados",
            border_style="red",
        ))
        sys.exit(1)

    rich_console.print(Panel(
        "✅ Todo funcionando correctamente",
        title="Estado de salud",
        border_style="green",
    ))


# ============================================================
# Funciones auxiliares (privadas)
# ============================================================

def _run_publish(
    layout: ContentLayout,
    options: list[tuple[str, str]],
    slug: str,
    archive: bool,
    kwargs: dict,
) -> None:
    dry_run = kwargs.pop("dry_run")
    cfg = load_config() if dry_run else _load_ready_config()
    comando = f"publish {layout.name} {slug}"

    try:
        request = PublishRequest(
            target_path=layout.target_path(slug, archived=archive),
            artifacts=_read_artifacts(options, kwargs),
            existing_pr_number=kwargs["pr_number"],
            title=kwargs["title"],
            body=kwargs["body"],
        )
        host = InMemoryHost(base_branch=cfg.publishing.base_branch) if dry_run else _build_host(cfg)
        publisher = Publisher(host, _build_formatter(cfg), cfg.publishing, layout=layout)
        result = publisher.create_or_update_pull_request(request, cancel=_cancellation(kwargs))
    except ReviewerAssignmentError as e:
        logger.warning(f"PR #{e.number} creado sin reviewers: {e.url}")
        _fail(cfg, comando, e)
    except (PublishError, FileNotFoundError) as e:
        _fail(cfg, comando, e)

    if dry_run:
        _show_dry_run(host, request.target_path)
        return

    evento = Event.PR_CREATED if result.created else Event.PR_UPDATED
    _build_notifier(cfg).notify(evento, {
        "number": result.number,
        "url": result.url,
        "title": request.title,
    })
    rich_console.print(Panel(
        f"[bold]PR:[/bold] #{result.number}\n"
        f"[bold]URL:[/bold] {result.url}\n"
        f"[bold]Commit:[/bold] {result.commit_sha[:7]}\n"
        f"[bold]Estado:[/bold] {'creado' if result.created else 'actualizado'}",
        title=f"{layout.name}: {slug}",
        border_style="green",
    ))


def _run_commit(
    layout: ContentLayout,
    options: list[tuple[str, str]],
    slug: str,
    archive: bool,
    message: str,
    advance: bool,
    kwargs: dict,
) -> None:
    cfg = _load_ready_config()
    comando = f"commit {layout.name} {slug}"

    try:
        request = PublishRequest(
            target_path=layout.target_path(slug, archived=archive),
            artifacts=_read_artifacts(options, kwargs),
            commit_message=message,
        )
        publisher = Publisher(_build_host(cfg), _build_formatter(cfg), cfg.publishing, layout=layout)
        sha = publisher.create_commit(request, advance=advance)
    except (PublishError, FileNotFoundError) as e:
        _fail(cfg, comando, e)

    _build_notifier(cfg).notify(Event.COMMIT_CREATED, {
        "sha": sha[:7],
        "path": request.target_path,
    })
    if not advance:
        logger.info(f"{cfg.publishing.base_branch} no se movió; el commit queda suelto")
    rich_console.print(f"[success]{sha}[/success]")


def _read_artifacts(options: list[tuple[str, str]], kwargs: dict) -> list[Artifact]:
    artifacts = []
    for option, artifact in options:
        ruta: Path | None = kwargs.get(option)
        if ruta is not None:
            artifacts.append(Artifact(artifact, ruta.read_text(encoding="utf-8")))
    return artifacts


def _cancellation(kwargs: dict) -> Cancellation:
    timeout = kwargs.get("timeout")
    return Cancellation(timeout=timeout) if timeout else NEVER


def _show_dry_run(host: InMemoryHost, target_path: str) -> None:
    tabla = Table(title="Dry run: archivos en el branch")
    tabla.add_column("Branch", style="cyan")
    tabla.add_column("Archivo", style="green")
    tabla.add_column("Bytes", justify="right")
    for branch in host.branch_names():
        for path, contenido in sorted(host.files_at(branch).items()):
            if path.startswith(f"{target_path}/"):
                tabla.add_row(branch, path, str(len(contenido.encode("utf-8"))))
    rich_console.print(tabla)


def _load_ready_config() -> AppConfig:
    """Carga la config y corta si no alcanza para hablar con GitHub."""
    cfg = load_config()
    problemas = validate_config(cfg)
    if problemas:
        for p in problemas:
            logger.error(p)
        sys.exit(1)
    return cfg


def _build_host(cfg: AppConfig) -> RepositoryHost:
    app = None
    if cfg.github_app_id:
        app = GitHubApp(
            cfg.github_app_id,
            cfg.github_app_private_key_path,
            cfg.github_app_installation_id,
            api_base=cfg.github.api_base,
        )
    return GitHubHost(
        cfg.github.owner,
        cfg.github.repo,
        token=cfg.github_token or None,
        app=app,
        api_base=cfg.github.api_base,
        timeout=cfg.github.timeout,
        maintainer_can_modify=cfg.publishing.maintainer_can_modify,
    )


def _build_formatter(cfg: AppConfig) -> ContentFormatter:
    return PrettierFormatter(
        command=cfg.formatter.command,
        timeout=cfg.formatter.timeout,
        cwd=cfg.formatter.cwd or None,
    )


def _build_notifier(cfg: AppConfig) -> Notifier:
    channels = []
    if cfg.slack.enabled and cfg.slack_bot_token and cfg.slack.channel:
        channels.append(SlackChannel(
            cfg.slack_bot_token,
            cfg.slack.channel,
            thread_ts=cfg.slack.thread_ts or None,
        ))
    return Notifier(channels=channels, enabled_events=cfg.slack.notify_on)


def _fail(cfg: AppConfig, comando: str, error: Exception) -> None:
    """Reporta el error (consola + Slack) y termina con código 1."""
    logger.warning(error_text(comando, error))
    _build_notifier(cfg).notify(Event.ERROR, {"command": comando, "error": error})
    sys.exit(1)


if __name__ == "__main__":
    main()
