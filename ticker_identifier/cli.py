from __future__ import annotations

import asyncio
import logging
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ticker_identifier.api.deps import build_services
from ticker_identifier.config import AppConfig
from ticker_identifier.core.errors import TickerIdentifierError
from ticker_identifier.infra.db.session import init_db
from ticker_identifier.modules.resolution.service import TickerResolutionService
from ticker_identifier.services.config_store import ConfigStore
from ticker_identifier.settings import AppSettings

app = typer.Typer(help="Ticker Identifier CLI")
console = Console()

corpus_app = typer.Typer(help="Manage the securities corpus cache")
app.add_typer(corpus_app, name="corpus")


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level, default from settings."
    ),
) -> None:
    level = (log_level or AppSettings().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _store() -> ConfigStore:
    settings = AppSettings()
    return ConfigStore(config_path=settings.config_file)


def _load_config() -> AppConfig:
    config = _store().load()
    init_db(config.database.url)
    return config


def _service() -> TickerResolutionService:
    return build_services(config=_load_config(), settings=AppSettings())


@app.command("init-config")
def init_config() -> None:
    store = _store()
    config = store.load()
    store.save(config)
    init_db(config.database.url)
    console.print(f"[green]Config initialized:[/green] {store.config_path.resolve()}")


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Bind host, default from settings."),
    port: Optional[int] = typer.Option(None, help="Bind port, default from settings."),
    reload: bool = typer.Option(False, help="Enable autoreload mode."),
) -> None:
    settings = AppSettings()
    uvicorn.run(
        "ticker_identifier.api:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
    )


@app.command("resolve")
def resolve(
    query: str = typer.Argument(..., help="Free-text query mentioning companies."),
    geography: Optional[str] = typer.Option(None, help="us|hk|china|global"),
    language: Optional[str] = typer.Option(
        None, help="english|simplified-chinese|traditional-chinese"
    ),
    provider: Optional[str] = typer.Option(None, help="Extraction provider id."),
    debug: bool = typer.Option(False, help="Show candidates and selection reasons."),
) -> None:
    service = _service()
    try:
        result = asyncio.run(
            service.extract_tickers(
                query, geography=geography, language=language, provider_id=provider
            )
        )
    except TickerIdentifierError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    if not result.groups:
        console.print("[yellow]No tickers found.[/yellow]")
        return

    table = Table(title=f"Tickers ({result.geography})")
    table.add_column("Query text")
    table.add_column("Tickers")
    for group in result.groups:
        table.add_row(group.original_text, ", ".join(group.tickers))
    console.print(table)

    if not debug:
        return
    for selection in result.selections:
        info = selection.debug
        detail = Table(title=f"{info.ticker} <- {info.entity} [{info.exchange}]")
        detail.add_column("Symbol")
        detail.add_column("Name")
        detail.add_column("Exchange")
        detail.add_column("Match reason")
        for match in info.all_matches:
            detail.add_row(match.symbol, match.name, match.exchange_short_name, match.match_reason)
        console.print(detail)
        console.print(f"[cyan]Selection:[/cyan] {info.selection_reason}")


@app.command("extract")
def extract(
    query: str = typer.Argument(..., help="Free-text query mentioning companies."),
    provider: Optional[str] = typer.Option(None, help="Extraction provider id."),
) -> None:
    service = _service().extraction_service
    try:
        entities = asyncio.run(service.extract_entities(query, provider_id=provider))
    except TickerIdentifierError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    table = Table(title="Extracted entities")
    table.add_column("Name")
    table.add_column("Symbol")
    table.add_column("Exchange")
    table.add_column("Source text")
    for entity in entities:
        table.add_row(entity.name, entity.symbol or "", entity.exchange or "", entity.source_text)
    console.print(table)


@corpus_app.command("refresh")
def corpus_refresh() -> None:
    service = _service().corpus_service
    try:
        count = asyncio.run(service.refresh())
    except TickerIdentifierError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Corpus refreshed:[/green] {count} securities")


@corpus_app.command("status")
def corpus_status() -> None:
    status = _service().corpus_service.cache_status()
    table = Table(title="Corpus cache")
    table.add_column("Cached")
    table.add_column("Securities")
    table.add_column("Age")
    table.add_column("Memory only")
    table.add_row(
        str(status.is_cached),
        str(status.stock_count or 0),
        status.cache_age or "-",
        str(status.is_memory_only),
    )
    console.print(table)


@corpus_app.command("clear")
def corpus_clear() -> None:
    removed = _service().corpus_service.clear_cache()
    console.print(f"[green]Corpus cache cleared[/green] ({removed} snapshots)")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
