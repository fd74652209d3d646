from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import codec, game, session
from .config import resolve_parameters, rng_from_config
from .errors import BingoError, DecodeError
from .logging_setup import setup_logging
from .models import CENTER_INDEX, Card, GameState
from .storage import JsonCardStore
from .version import __version__

logger = logging.getLogger(__name__)

app = typer.Typer(help="Author, play and share 5x5 bingo cards")


class Settings:
    def __init__(self, resolved: Dict[str, Any]):
        self.resolved = resolved
        self.store = JsonCardStore(resolved["store_path"])

    @property
    def base_url(self) -> str:
        return str(self.resolved.get("base_url", ""))

    @property
    def max_substring_length(self) -> int:
        return int(self.resolved.get("max_substring_length", 50))

    def rng(self):
        return rng_from_config(self.resolved)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj


@contextmanager
def _errors() -> Iterator[None]:
    try:
        yield
    except DecodeError as exc:
        logger.warning("Invalid share link: %s", exc)
        typer.echo(f"Invalid or corrupted share link: {exc}", err=True)
        raise typer.Exit(code=2)
    except BingoError as exc:
        logger.error("%s", exc)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)


def render_board(card: Card, state: Optional[GameState] = None) -> Table:
    marked = state.marked if state else frozenset({CENTER_INDEX})
    winning = game.winning_cells(state) if state else frozenset()
    table = Table(title=escape(card.title), show_header=False, show_lines=True, expand=False)
    for _ in range(5):
        table.add_column(justify="center", max_width=18)
    for r, row in enumerate(card.rows()):
        cells = []
        for c, label in enumerate(row):
            index = r * 5 + c
            text = "FREE" if index == CENTER_INDEX else escape(f"{index}: {label}")
            if index in winning:
                text = f"[bold black on yellow]{text}[/]"
            elif index in marked:
                text = f"[bold green]{text}[/]"
            cells.append(text)
        table.add_row(*cells)
    return table


def _print_board(card: Card, state: Optional[GameState]) -> None:
    console = Console()
    console.print(render_board(card, state))
    if state and state.won_patterns:
        typer.echo(f"Winning lines: {', '.join(sorted(state.won_patterns))}")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(0)


@app.callback()
def common_options(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Show application version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
    config: str = typer.Option(None, "--config", help="Path to config file (YAML/JSON)"),
    store: str = typer.Option(None, "--store", help="Path to the games JSON file"),
    log_level: str = typer.Option(None, "--log-level", help="DEBUG|INFO|WARNING|ERROR"),
    log_file: str = typer.Option(None, "--log-file", help="Log file path"),
) -> None:
    cli_overrides: Dict[str, Any] = {}
    if store:
        cli_overrides["store_path"] = store
    if log_level:
        cli_overrides["log_level"] = log_level
    if log_file:
        cli_overrides["log_file"] = log_file

    resolved, params_hash, _cfg_path = resolve_parameters(
        config_path_str=config, cli_overrides=cli_overrides
    )
    setup_logging(
        level=str(resolved.get("log_level", "WARNING")),
        log_file=resolved.get("log_file"),
        json_format=(str(resolved.get("log_format", "text")) == "json"),
    )
    logger.debug("Resolved settings %s (params %s)", resolved, params_hash)
    ctx.obj = Settings(resolved)


def _read_items(items: Optional[List[str]], items_file: Optional[Path]) -> List[str]:
    collected = list(items or [])
    if items_file is not None:
        lines = items_file.read_text(encoding="utf-8").splitlines()
        collected.extend(line.strip() for line in lines if line.strip())
    return collected


@app.command()
def create(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Card title (max 100 characters)"),
    item: List[str] = typer.Option(None, "--item", "-i", help="One cell label; repeat 25 times"),
    items_file: Path = typer.Option(None, "--items-file", help="File with one label per line"),
) -> None:
    """Create a card from 25 labels; the 13th label is the free center cell."""
    settings = _settings(ctx)
    with _errors():
        card = session.create_card(
            settings.store, title, _read_items(item, items_file), rng=settings.rng()
        )
    typer.echo(card.id)


@app.command("list")
def list_cards(ctx: typer.Context) -> None:
    """List stored cards, most recently played first."""
    with _errors():
        cards = _settings(ctx).store.list_cards()
    if not cards:
        typer.echo("No cards yet.")
        return
    table = Table("title", "plays", "imported")
    table.add_column("id", no_wrap=True)
    for card in sorted(cards, key=lambda c: c.last_played_at, reverse=True):
        table.add_row(escape(card.title), str(card.play_count), "yes" if card.imported else "", card.id)
    Console().print(table)


@app.command()
def show(ctx: typer.Context, card_id: str = typer.Argument(...)) -> None:
    """Print a card with its current marks."""
    store = _settings(ctx).store
    with _errors():
        card = session.load_card(store, card_id)
        state = store.load_state(card_id)
    _print_board(card, state)


@app.command()
def play(
    ctx: typer.Context,
    card_id: str = typer.Argument(None, help="Saved card id"),
    token: str = typer.Option(None, "--token", help="Share token; takes priority over the id"),
    url: str = typer.Option(None, "--url", help="Full share link"),
    fresh: bool = typer.Option(False, "--fresh", help="Discard previous marks"),
) -> None:
    """Start playing a saved card, or import one from a share link first."""
    settings = _settings(ctx)
    with _errors():
        if url and not token:
            token = codec.coerce_token(url)
        card = session.resolve_play(settings.store, card_id=card_id, token=token, rng=settings.rng())
        if token:
            typer.echo(f"Imported as {card.id}")
        card, state = session.start_play(settings.store, card.id, fresh=fresh)
    _print_board(card, state)


@app.command()
def mark(
    ctx: typer.Context,
    card_id: str = typer.Argument(...),
    indices: List[int] = typer.Argument(..., help="Cell indices 0-24 to toggle"),
) -> None:
    """Toggle one or more cells."""
    store = _settings(ctx).store
    with _errors():
        result = None
        for index in indices:
            result = session.mark(store, card_id, index)
            if result.new_win:
                typer.echo("BINGO!")
        card = session.load_card(store, card_id)
    _print_board(card, result.state if result else None)


@app.command()
def reset(ctx: typer.Context, card_id: str = typer.Argument(...)) -> None:
    """Clear all marks except the free cell."""
    store = _settings(ctx).store
    with _errors():
        state = session.reset_play(store, card_id)
        card = session.load_card(store, card_id)
    _print_board(card, state)


@app.command()
def share(
    ctx: typer.Context,
    card_id: str = typer.Argument(...),
    token_only: bool = typer.Option(False, "--token-only", help="Print the bare token"),
) -> None:
    """Print a self-contained share link for a card."""
    settings = _settings(ctx)
    with _errors():
        card = session.load_card(settings.store, card_id)
    kwargs = {"max_substring_length": settings.max_substring_length}
    if token_only:
        typer.echo(codec.encode(card, **kwargs))
    else:
        typer.echo(codec.share_url(card, settings.base_url, **kwargs))


@app.command("import")
def import_(ctx: typer.Context, link: str = typer.Argument(..., help="Share token or link")) -> None:
    """Store a shared card as a new, reshuffled card."""
    settings = _settings(ctx)
    with _errors():
        card = session.import_token(settings.store, link, rng=settings.rng())
    typer.echo(card.id)


@app.command()
def validate(link: str = typer.Argument(..., help="Share token or link")) -> None:
    """Exit 0 when a share token decodes to a playable card, 2 otherwise."""
    try:
        token = codec.coerce_token(link)
    except DecodeError:
        token = ""
    if codec.is_valid(token):
        typer.echo("valid")
        raise typer.Exit(code=0)
    typer.echo("invalid", err=True)
    raise typer.Exit(code=2)


@app.command()
def delete(ctx: typer.Context, card_id: str = typer.Argument(...)) -> None:
    """Delete a card and its marks."""
    with _errors():
        session.delete_card(_settings(ctx).store, card_id)
    typer.echo(f"Deleted {card_id}")


@app.command()
def clear(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", help="Confirm removing every card"),
) -> None:
    """Remove every stored card and game state."""
    if not yes:
        typer.echo("Refusing to clear without --yes", err=True)
        raise typer.Exit(code=1)
    with _errors():
        _settings(ctx).store.clear()
    typer.echo("Cleared")


def main(_argv: list[str] | None = None) -> int:
    try:
        app(standalone_mode=True)
        return 0
    except SystemExit as e:
        return int(e.code) if e.code is not None else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
