"""
confidentialcast init: create an engine.

Writes the config file, generates the journal signing key and the
capability secret, and journals the deploy transaction with --owner as
the deploying account.

    confidentialcast --config engine.yaml init --owner 0x1111...
"""

import click

from confidentialcast.cli._common import (
    EXIT_ERROR,
    config_path,
    emit,
    engine_session,
    fail,
    json_option,
)
from confidentialcast.config import DEFAULT_ENGINE, EngineConfig
from confidentialcast.core.exceptions import ConfigError
from confidentialcast.core.time import DAY_SECONDS

STATE_DIR = ".confidentialcast"


@click.command(name="init")
@click.option("--owner", required=True, metavar="ADDRESS", help="Deploying account, becomes the owner.")
@click.option(
    "--engine-account",
    default=DEFAULT_ENGINE,
    show_default=True,
    metavar="ADDRESS",
    help="Account the engine itself holds permissions under.",
)
@click.option(
    "--period-length",
    type=int,
    default=DAY_SECONDS,
    show_default=True,
    help="Period length in seconds.",
)
@click.option(
    "--stake-decimals",
    type=int,
    default=18,
    show_default=True,
    help="Decimal places used to parse stake amounts.",
)
@json_option
@click.pass_context
def init_command(
    ctx:            click.Context,
    owner:          str,
    engine_account: str,
    period_length:  int,
    stake_decimals: int,
    as_json:        bool,
) -> None:
    """Create config, keys and journal for a new engine."""
    path = config_path(ctx)
    if path.exists():
        fail(ConfigError(f"Config file already exists: {path}"), EXIT_ERROR)

    base = path.parent
    try:
        config = EngineConfig(
            owner=               owner,
            engine_account=      engine_account,
            period_length=       period_length,
            journal_path=        base / STATE_DIR / "journal.jsonl",
            signing_key_path=    base / STATE_DIR / "journal.key",
            capability_key_path= base / STATE_DIR / "capability.key",
            stake_decimals=      stake_decimals,
        )
    except ConfigError as e:
        fail(e, EXIT_ERROR)

    with engine_session(config) as runtime:
        current_period = runtime.current_period()

    # Stored paths are relative to the config file
    stored = EngineConfig(
        owner=               config.owner,
        engine_account=      config.engine_account,
        period_length=       config.period_length,
        journal_path=        f"{STATE_DIR}/journal.jsonl",
        signing_key_path=    f"{STATE_DIR}/journal.key",
        capability_key_path= f"{STATE_DIR}/capability.key",
        stake_decimals=      config.stake_decimals,
    )
    try:
        stored.to_yaml(path)
    except OSError as e:
        fail(ConfigError(f"Cannot write config file: {e}"), EXIT_ERROR)

    emit(
        {
            "config":         str(path),
            "owner":          runtime.owner,
            "engine_account": runtime.engine_account,
            "period_length":  runtime.period_length,
            "journal":        str(config.journal_path),
            "proof_key":      runtime.capability.proof_public_key_hex,
            "current_period": current_period,
        },
        as_json,
        "Engine initialized",
    )
