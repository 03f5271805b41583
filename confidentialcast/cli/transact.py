"""
confidentialcast/cli/transact.py

State-changing commands. Each one locks the journal, rebuilds the engine
from it, executes exactly one transaction as --account, and on success
appends the transaction before releasing the lock.

    confidentialcast record-reference 63500 --account 0xOWNER
    confidentialcast submit 63000 above 0.05 --account 0xALICE
    confidentialcast confirm 20210 --account 0xALICE
    confidentialcast transfer-ownership 0xNEW --account 0xOWNER
"""

import click

from confidentialcast.cli._common import (
    account_option,
    emit,
    engine_session,
    json_option,
    load_config,
    run_command,
)
from confidentialcast.core.models import Direction
from confidentialcast.core.time import iso_timestamp
from confidentialcast.core.units import parse_units
from confidentialcast.runtime.executor import TransactionResult

_DIRECTIONS = {"above": Direction.ABOVE, "below": Direction.BELOW}


def parse_direction(value: str) -> int:
    """'above', 'below' or a raw uint8 code."""
    text = value.strip().lower()
    if text in _DIRECTIONS:
        return _DIRECTIONS[text]
    try:
        code = int(text)
    except ValueError:
        raise click.BadParameter("expected 'above', 'below' or an integer code")
    if not 0 <= code <= 255:
        raise click.BadParameter("direction code must fit in uint8")
    return code


def _report(result: TransactionResult, as_json: bool) -> None:
    data = {
        "sequence":  result.sequence,
        "timestamp": iso_timestamp(result.timestamp),
        "caller":    result.caller,
        "event":     result.notification.name,
    }
    data.update(result.notification.fields)
    emit(data, as_json, result.notification.name)


@click.command(name="record-reference")
@click.argument("value", type=int)
@account_option
@json_option
@click.pass_context
def record_reference_command(ctx: click.Context, value: int, account: str, as_json: bool) -> None:
    """Record VALUE as the reference for the current period (owner only)."""
    with engine_session(load_config(ctx)) as runtime:
        _report(run_command(lambda: runtime.record_reference(account, value)), as_json)


@click.command(name="submit")
@click.argument("target", type=int)
@click.argument("direction")
@click.argument("stake")
@account_option
@json_option
@click.pass_context
def submit_command(
    ctx:       click.Context,
    target:    int,
    direction: str,
    stake:     str,
    account:   str,
    as_json:   bool,
) -> None:
    """
    Submit an encrypted forecast for the current period.

    TARGET and DIRECTION are encrypted client-side before submission.
    STAKE is a decimal amount, e.g. 0.05.
    """
    code = parse_direction(direction)
    if not 0 <= target < 2 ** 64:
        raise click.BadParameter("target must fit in uint64", param_hint="TARGET")

    config = load_config(ctx)
    try:
        stake_units = parse_units(stake, config.stake_decimals)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="STAKE")

    with engine_session(config) as runtime:
        encrypted = (
            runtime.capability
            .encrypt_input(runtime.engine_account, account)
            .add64(target)
            .add8(code)
            .encrypt()
        )
        result = run_command(lambda: runtime.submit_forecast(
            account, encrypted[0], encrypted[1], encrypted.proof, stake_units,
        ))
    _report(result, as_json)


@click.command(name="confirm")
@click.argument("period", type=int)
@account_option
@json_option
@click.pass_context
def confirm_command(ctx: click.Context, period: int, account: str, as_json: bool) -> None:
    """Settle --account's forecast for PERIOD."""
    with engine_session(load_config(ctx)) as runtime:
        _report(run_command(lambda: runtime.confirm(account, period)), as_json)


@click.command(name="transfer-ownership")
@click.argument("new_owner", metavar="NEW_OWNER")
@account_option
@json_option
@click.pass_context
def transfer_ownership_command(
    ctx:       click.Context,
    new_owner: str,
    account:   str,
    as_json:   bool,
) -> None:
    """Hand the owner role to NEW_OWNER (owner only)."""
    with engine_session(load_config(ctx)) as runtime:
        _report(run_command(lambda: runtime.transfer_ownership(account, new_owner)), as_json)

