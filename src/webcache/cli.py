"""The ``webcache`` command line tool.

Helps when writing rule files: ``check`` validates a config file and shows
the rules as the middleware resolves them, ``key`` shows which rule a URL
falls under and the store keys its response is cached at.

Example::

    $ webcache check rules.yaml
    $ webcache key rules.yaml "/article/42?ref=home"
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from webcache import __version__
from webcache.exceptions import WebCacheError
from webcache.exit_codes import EXIT_NO_MATCH
from webcache.keys import make_cache_key
from webcache.models import WebCacheConfig
from webcache.rules import RuleMatcher
from webcache.stores.disk import DiskStore

app = typer.Typer(
    name="webcache",
    help="Inspect webcache rule configurations.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"webcache {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Inspect webcache rule configurations."""


def _load(path: str) -> WebCacheConfig:
    from webcache.config import load_config

    try:
        return load_config(path)
    except WebCacheError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=exc.exit_code)


def _fmt_ms(ms: Optional[int]) -> str:
    if not ms:
        return "forever"
    if ms % 1000:
        return f"{ms}ms"
    return f"{ms // 1000}s"


@app.command("check")
def check(
    config_path: str = typer.Argument(help="Path to a JSON or YAML config file."),
) -> None:
    """Validate a config file and print its resolved rules."""
    config = _load(config_path)
    matcher = RuleMatcher(config.rules, config.options)

    table = Table(title=f"webcache rules ({config_path})")
    table.add_column("#", justify="right")
    table.add_column("Pattern")
    table.add_column("Max age", justify="right")
    table.add_column("Ignore query")
    table.add_column("Client cache")
    for i, rule in enumerate(matcher.rules, start=1):
        table.add_row(
            str(i),
            escape(rule.match.pattern),
            _fmt_ms(rule.max_age),
            "yes" if rule.ignore_querystring else "no",
            "yes" if rule.client_cache else "no",
        )
    console.print(table)
    console.print(
        f"store: [bold]{config.store.backend}[/bold]  "
        f"version: [bold]{config.options.version or '(none)'}[/bold]"
    )
    if config.store.backend == "disk" and config.store.directory:
        _print_disk_stats(Path(config.store.directory))


def _print_disk_stats(directory: Path) -> None:
    # Only report on an existing cache; opening one would create it.
    if not directory.is_dir():
        console.print(f"disk cache: [dim]{escape(str(directory))} does not exist yet[/dim]")
        return
    store = DiskStore(directory)
    try:
        stats = store.stats()
    finally:
        store.close()
    console.print(
        f"disk cache: [bold]{stats['size']}[/bold] records in {escape(stats['directory'])}"
    )


@app.command("key")
def key(
    config_path: str = typer.Argument(help="Path to a JSON or YAML config file."),
    url: str = typer.Argument(help="Request path with optional query, e.g. '/a?x=1'."),
) -> None:
    """Show the rule matching a GET of URL and the keys it is cached under."""
    config = _load(config_path)
    matcher = RuleMatcher(config.rules, config.options)

    parts = urlsplit(url)
    raw_path = parts.path or "/"
    # Rules see the decoded path, keys use the path as sent.
    path = unquote(raw_path)
    rule = matcher.match("GET", path)
    if rule is None:
        err_console.print(f"No rule matches [bold]{escape(path)}[/bold]; requests pass through uncached.")
        raise typer.Exit(code=EXIT_NO_MATCH)

    cache_key = make_cache_key(raw_path, parts.query, rule, config.options.version)
    console.print(f"rule:         {rule.match.pattern} (max age {_fmt_ms(rule.max_age)})", markup=False)
    console.print(f"body key:     {cache_key.body}", markup=False)
    console.print(f"content type: {cache_key.content_type}", markup=False)


def main() -> None:
    """Console-script entry point."""
    try:
        app()
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)


if __name__ == "__main__":
    main()
