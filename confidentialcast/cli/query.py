"""
confidentialcast/cli/query.py

Read-only commands. They rebuild the engine from its journal and
never append to it.

    confidentialcast period
    confidentialcast latest
    confidentialcast reference 20210
    confidentialcast forecast 0xALICE 20210
    confidentialcast decrypt-forecast 0xALICE 20210 --account 0xALICE
    confidentialcast decrypt-points --account 0xALICE
    confidentialcast decrypt-result --account 0xALICE
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
from confidentialcast.core.models import ZERO_HANDLE, Direction
from confidentialcast.core.time import iso_timestamp, period_start
from confidentialcast.core.units import format_units

_DIRECTION_LABELS = {Direction.ABOVE: "above", Direction.BELOW: "below"}


@click.command(name="period")
@json_option
@click.pass_context
def period_command(ctx: click.Context, as_json: bool) -> None:
    """Show the period the next transaction would fall in."""
    with engine_session(load_config(ctx)) as runtime:
        period = runtime.current_period()
    emit(
        {
            "period":        period,
            "starts_at":     iso_timestamp(period_start(period, runtime.period_length)),
            "period_length": runtime.period_length,
        },
        as_json,
        "Current period",
    )


@click.command(name="latest")
@json_option
@click.pass_context
def latest_command(ctx: click.Context, as_json: bool) -> None:
    """Show the most recently recorded reference value."""
    with engine_session(load_config(ctx)) as runtime:
        period, value, recorded_at = runtime.get_latest_reference()
    emit(
        {
            "period":      period,
            "value":       str(value),
            "recorded_at": iso_timestamp(recorded_at) if recorded_at else None,
        },
        as_json,
        "Latest reference",
    )


@click.command(name="reference")
@click.argument("period", type=int)
@json_option
@click.pass_context
def reference_command(ctx: click.Context, period: int, as_json: bool) -> None:
    """Show the reference recorded for PERIOD, if any."""
    with engine_session(load_config(ctx)) as runtime:
        record = runtime.get_reference(period)
    data = {"period": period, "exists": record.exists}
    data.update(record.to_dict())
    emit(data, as_json, "Reference" if record.exists else "Reference (not recorded)")


@click.command(name="forecast")
@click.argument("account")
@click.argument("period", type=int)
@json_option
@click.pass_context
def forecast_command(ctx: click.Context, account: str, period: int, as_json: bool) -> None:
    """Show the public metadata of ACCOUNT's forecast for PERIOD."""
    config = load_config(ctx)
    with engine_session(config) as runtime:
        stake, submitted_at, settled = runtime.get_metadata(account, period)
        target, direction            = runtime.get_encrypted(account, period)
    emit(
        {
            "account":      account,
            "period":       period,
            "exists":       stake > 0,
            "stake":        format_units(stake, config.stake_decimals),
            "submitted_at": iso_timestamp(submitted_at) if submitted_at else None,
            "settled":      settled,
            "target":       target,
            "direction":    direction,
        },
        as_json,
        "Forecast",
    )


@click.command(name="decrypt-forecast")
@click.argument("forecaster", metavar="ACCOUNT")
@click.argument("period", type=int)
@account_option
@json_option
@click.pass_context
def decrypt_forecast_command(
    ctx:        click.Context,
    forecaster: str,
    period:     int,
    account:    str,
    as_json:    bool,
) -> None:
    """
    Decrypt ACCOUNT's forecast for PERIOD as --account.

    Only the forecaster holds permission on the target and direction;
    any other --account is rejected.
    """
    with engine_session(load_config(ctx)) as runtime:
        target_handle, direction_handle = runtime.get_encrypted(forecaster, period)
        if ZERO_HANDLE in (target_handle, direction_handle):
            target, direction = None, None
        else:
            capability = runtime.capability
            target     = run_command(lambda: capability.user_decrypt(target_handle, account))
            direction  = run_command(lambda: capability.user_decrypt(direction_handle, account))

    found = target is not None
    emit(
        {
            "account":   forecaster,
            "period":    period,
            "target":    str(target) if found else None,
            "direction": _DIRECTION_LABELS.get(direction, "unknown") if found else None,
        },
        as_json,
        "Forecast" if found else "Forecast (nothing to decrypt)",
    )


@click.command(name="decrypt-points")
@account_option
@json_option
@click.pass_context
def decrypt_points_command(ctx: click.Context, account: str, as_json: bool) -> None:
    """Decrypt --account's accumulated points."""
    config = load_config(ctx)
    with engine_session(config) as runtime:
        handle = runtime.get_points(account)
        points = run_command(lambda: runtime.capability.user_decrypt(handle, account))
    emit(
        {
            "account": account,
            "handle":  handle,
            "points":  None if points is None else format_units(points, config.stake_decimals),
        },
        as_json,
        "Points" if points is not None else "Points (nothing to decrypt)",
    )


@click.command(name="decrypt-result")
@account_option
@json_option
@click.pass_context
def decrypt_result_command(ctx: click.Context, account: str, as_json: bool) -> None:
    """Decrypt whether --account's last settled forecast won."""
    with engine_session(load_config(ctx)) as runtime:
        handle = runtime.get_last_outcome(account)
        won    = run_command(lambda: runtime.capability.user_decrypt(handle, account))
    emit(
        {"account": account, "handle": handle, "won": won},
        as_json,
        "Last result" if won is not None else "Last result (nothing to decrypt)",
    )
