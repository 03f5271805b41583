"""
confidentialcast/cli/verify.py

confidentialcast verify: journal integrity check.

Checks hash chaining, sequence numbers and Ed25519 signatures of every
journal entry, and that every entry was signed by the engine's own key.
Does not replay; a journal that verifies but no longer replays is
reported by every other command with exit code 2.

Exit codes:
    0  Journal fully valid
    1  Journal has violations
    2  Error (config missing, journal unreadable)
"""

import json
import sys

import click

from confidentialcast.cli._common import (
    EXIT_ERROR,
    EXIT_OK,
    EXIT_REJECTED,
    _Color,
    fail,
    load_config,
    row,
)
from confidentialcast.core.crypto import Ed25519KeyManager
from confidentialcast.core.exceptions import ConfigError, JournalError
from confidentialcast.ledger.journal import Journal, JournalSummary


@click.command(name="verify")
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress all output. Use exit code only (0=valid, 1=invalid, 2=error).",
)
@click.option("--no-color", is_flag=True, default=False, help="Disable ANSI color output.")
@click.pass_context
def verify_command(ctx: click.Context, fmt: str, quiet: bool, no_color: bool) -> None:
    """Verify the engine journal: chain, sequence, signatures."""
    _Color.configure(not no_color)
    config = load_config(ctx)

    if config.journal_path is None or config.signing_key_path is None:
        fail(ConfigError("journal_path and signing_key_path must be configured"), EXIT_ERROR)
    if not config.journal_path.exists():
        fail(JournalError(f"Journal not found: {config.journal_path}"), EXIT_ERROR)

    try:
        signing_key = Ed25519KeyManager.from_file(config.signing_key_path)
        journal     = Journal(config.journal_path, signing_key)
    except JournalError as e:
        fail(e, EXIT_ERROR)
    except (OSError, ValueError) as e:
        fail(ConfigError(f"Cannot load journal signing key: {e}"), EXIT_ERROR)

    summary = journal.verify(signing_key.public_key_hex)
    code    = EXIT_OK if summary.valid else EXIT_REJECTED

    if quiet:
        sys.exit(code)

    if fmt == "json":
        data = summary.to_dict()
        data["journal"] = str(config.journal_path)
        click.echo(json.dumps(data, indent=2))
    else:
        _output_human(summary, str(config.journal_path))

    sys.exit(code)


def _output_human(summary: JournalSummary, journal_path: str) -> None:
    bar = "═" * 60
    click.echo(_Color.bold(f"  {bar}"))
    click.echo(_Color.bold("  ConfidentialCast  ·  Journal Verification"))
    click.echo(_Color.bold(f"  {bar}"))
    click.echo(row("Journal", journal_path))
    click.echo(row("Entries", summary.total_entries))
    click.echo(row("Head hash", summary.head_hash or "-"))
    for command, count in sorted(summary.command_counts.items()):
        click.echo(row(command, count))

    if summary.valid:
        click.echo(row("Status", _Color.green("VALID")))
        return

    click.echo(row("Status", _Color.red(f"INVALID ({len(summary.violations)} violations)")))
    for v in summary.violations[:20]:
        click.echo(f"    #{v.at_sequence:<6} {v.violation_type:<18} {v.detail}")
