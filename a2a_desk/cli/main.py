"""A2A Desk CLI.

Usage:
    a2a-desk serve             Start the local API server
    a2a-desk models list       List configured model providers
    a2a-desk agents list       List configured A2A servers
    a2a-desk config show       Show resolved configuration
"""

import os
from typing import Optional

import typer
from rich.console import Console
from sqlalchemy.engine import make_url

from a2a_desk.cli.output import format_agent_table, format_model_table
from a2a_desk.config import AppConfig, load_config
from a2a_desk.db.connection import DatabaseHandle, create_db_engine, get_database_url, init_db
from a2a_desk.errors.domain import DomainError
from a2a_desk.errors.registry import get_error
from a2a_desk.services.record_store import AgentServerStore, ModelProviderStore

app = typer.Typer(
    name="a2a-desk",
    help="Local control surface for LLM providers and A2A agent servers",
    no_args_is_help=True,
)
models_app = typer.Typer(help="Manage model providers")
agents_app = typer.Typer(help="Manage A2A agent servers")
config_app = typer.Typer(help="Configuration management")

app.add_typer(models_app, name="models")
app.add_typer(agents_app, name="agents")
app.add_typer(config_app, name="config")

console = Console()

# --- Global state ---
_config_path: str | None = None


@app.callback()
def main(
    config: Optional[str] = typer.Option(
        None, "--config", help="Path to a2a-desk.yaml config file"
    ),
):
    """A2A Desk CLI."""
    global _config_path
    _config_path = config


def _load() -> AppConfig:
    try:
        return load_config(config_path=_config_path)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e


def _report_error(e: DomainError) -> None:
    console.print(f"[red]Error [{e.code}]:[/red] {e.message}")
    entry = get_error(e.code)
    if entry is not None:
        console.print(f"  [dim]{entry.remediation}[/dim]")


def _open_handle(cfg: AppConfig) -> DatabaseHandle:
    engine = create_db_engine(cfg.database.url)
    init_db(engine)
    return DatabaseHandle(engine, lock_timeout=cfg.database.lock_timeout_seconds)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
):
    """Start the local API server."""
    import uvicorn

    cfg = _load()
    final_host = host or cfg.server.host
    final_port = port or cfg.server.port

    # Propagate config path to the API lifespan so it loads the same config
    if _config_path:
        os.environ["A2A_DESK_CONFIG_PATH"] = str(_config_path)

    console.print(f"[bold]Starting A2A Desk API on {final_host}:{final_port}[/bold]")
    uvicorn.run(
        "a2a_desk.api.main:app",
        host=final_host,
        port=final_port,
        workers=1,
        log_level=cfg.server.log_level,
        lifespan="on",
    )


@models_app.command("list")
def models_list(
    enabled_only: bool = typer.Option(False, "--enabled", help="Only enabled providers"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List model providers."""
    handle = _open_handle(_load())
    try:
        store = ModelProviderStore(handle)
        records = store.get_enabled() if enabled_only else store.get_all()
    except DomainError as e:
        _report_error(e)
        raise typer.Exit(1) from e
    finally:
        handle.close()
    console.print(format_model_table(records, as_json=as_json))


@agents_app.command("list")
def agents_list(
    enabled_only: bool = typer.Option(False, "--enabled", help="Only enabled servers"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List A2A agent servers."""
    handle = _open_handle(_load())
    try:
        store = AgentServerStore(handle)
        records = store.get_enabled() if enabled_only else store.get_all()
    except DomainError as e:
        _report_error(e)
        raise typer.Exit(1) from e
    finally:
        handle.close()
    console.print(format_agent_table(records, as_json=as_json))


@config_app.command("show")
def config_show():
    """Display resolved configuration (secrets masked)."""
    cfg = _load()

    console.print("[bold]Server:[/bold]")
    console.print(f"  host: {cfg.server.host}")
    console.print(f"  port: {cfg.server.port}")
    console.print(f"  log_level: {cfg.server.log_level}")

    console.print("\n[bold]Database:[/bold]")
    url = cfg.database.url or get_database_url()
    console.print(f"  url: {make_url(url).render_as_string(hide_password=True)}")
    console.print(f"  lock_timeout: {cfg.database.lock_timeout_seconds:g}s")

    console.print("\n[bold]LLM:[/bold]")
    console.print(f"  base_url: {cfg.llm.base_url}")
    console.print(f"  model: {cfg.llm.model}")
    console.print(f"  max_tokens: {cfg.llm.max_tokens}")
    console.print(f"  temperature: {cfg.llm.temperature}")
    console.print(f"  stream_timeout: {cfg.llm.stream_timeout_seconds:g}s")

    console.print("\n[bold]A2A:[/bold]")
    console.print(f"  request_timeout: {cfg.a2a.request_timeout_seconds:g}s")


if __name__ == "__main__":
    app()
