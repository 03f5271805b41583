"""
confidentialcast/cli/_common.py

Shared plumbing for CLI commands: config loading, runtime construction,
exit codes and terminal formatting.

Exit codes:
    0  Success
    1  Invocation rejected by the engine (OnlyOwner, StakeRequired, ...)
    2  Configuration or journal error
"""

import json
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, NoReturn

import click

from confidentialcast.config import EngineConfig, resolve_config_path
from confidentialcast.core.exceptions import (
    ConfidentialCastError,
    ConfigError,
    JournalError,
)
from confidentialcast.ledger.journal import JournalLock
from confidentialcast.runtime.context import RuntimeContext

EXIT_OK       = 0
EXIT_REJECTED = 1
EXIT_ERROR    = 2


# ── ANSI color ────────────────────────────────────────────────

class _Color:
    """Auto-disables when stdout is not a TTY."""
    _on: bool = True

    @classmethod
    def configure(cls, enabled: bool) -> None:
        cls._on = enabled and sys.stdout.isatty()

    @classmethod
    def green(cls, s: str) -> str:
        return f"\033[32m{s}\033[0m" if cls._on else s

    @classmethod
    def red(cls, s: str) -> str:
        return f"\033[31m{s}\033[0m" if cls._on else s

    @classmethod
    def bold(cls, s: str) -> str:
        return f"\033[1m{s}\033[0m" if cls._on else s

    @classmethod
    def dim(cls, s: str) -> str:
        return f"\033[2m{s}\033[0m" if cls._on else s


def row(label: str, value: Any) -> str:
    return f"  {_Color.dim(f'{label:<16}')}  {value}"


# ── Config / runtime ──────────────────────────────────────────

def config_path(ctx: click.Context) -> Path:
    return resolve_config_path(ctx.obj.get("config") if ctx.obj else None)


def load_config(ctx: click.Context) -> EngineConfig:
    try:
        return EngineConfig.from_yaml(config_path(ctx))
    except ConfigError as e:
        fail(e, EXIT_ERROR)


def open_runtime(config: EngineConfig) -> RuntimeContext:
    """Rebuild the engine from its journal."""
    try:
        return RuntimeContext.from_config(config)
    except (ConfigError, JournalError) as e:
        fail(e, EXIT_ERROR)
    except ConfidentialCastError as e:
        fail(e, EXIT_REJECTED)
    except (OSError, ValueError) as e:
        fail(ConfigError(f"Cannot open engine keys: {e}"), EXIT_ERROR)


@contextmanager
def engine_session(config: EngineConfig) -> Iterator[RuntimeContext]:
    """
    Rebuild the engine and hold the journal lock until the block exits.

    Loading, replay and the command's own append all happen against one
    journal that no other process can extend in between.
    """
    lock = JournalLock(config.journal_path)
    try:
        lock.acquire()
    except JournalError as e:
        fail(e, EXIT_ERROR)
    try:
        yield open_runtime(config)
    finally:
        lock.release()


def fail(error: ConfidentialCastError, code: int) -> NoReturn:
    click.echo(f"{_Color.red('error')}: {error.name}: {error}", err=True)
    sys.exit(code)


def run_command(action: Callable[[], Any]) -> Any:
    """Invoke one engine operation and map failures to exit codes."""
    try:
        return action()
    except (ConfigError, JournalError) as e:
        fail(e, EXIT_ERROR)
    except ConfidentialCastError as e:
        fail(e, EXIT_REJECTED)


def emit(data: Dict[str, Any], as_json: bool, title: str) -> None:
    """Print a result either as one JSON object or as aligned rows."""
    if as_json:
        click.echo(json.dumps(data, sort_keys=True))
        return
    click.echo(_Color.bold(f"  {title}"))
    for key, value in data.items():
        click.echo(row(key, value))


json_option = click.option(
    "--json", "as_json",
    is_flag=True,
    default=False,
    help="Print machine-readable JSON instead of text.",
)

account_option = click.option(
    "--account",
    required=True,
    metavar="ADDRESS",
    help="Account invoking the operation.",
)
