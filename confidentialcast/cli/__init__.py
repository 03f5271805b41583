"""
confidentialcast/cli/__init__.py

ConfidentialCast CLI: root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    confidentialcast = "confidentialcast.cli:cli"

Every command reads the engine config (--config, then
$CONFIDENTIALCAST_CONFIG, then ./confidentialcast.yaml) and rebuilds
the engine by replaying its journal.
"""

import logging

import click

from confidentialcast.cli.init import init_command
from confidentialcast.cli.query import (
    decrypt_forecast_command,
    decrypt_points_command,
    decrypt_result_command,
    forecast_command,
    latest_command,
    period_command,
    reference_command,
)
from confidentialcast.cli.transact import (
    confirm_command,
    record_reference_command,
    submit_command,
    transfer_ownership_command,
)
from confidentialcast.cli.verify import verify_command


@click.group()
@click.version_option(package_name="confidentialcast")
@click.option(
    "--config",
    type=click.Path(dir_okay=False),
    default=None,
    metavar="PATH",
    help="Engine config file.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
@click.pass_context
def cli(ctx: click.Context, config: str, log_level: str) -> None:
    """
    ConfidentialCast: encrypted forecasts settled against public references.

    \b
    Quick start:
      confidentialcast init --owner 0x1111111111111111111111111111111111111111
      confidentialcast record-reference 63500 --account 0x1111...
      confidentialcast submit 63000 above 0.05 --account 0x2222...
      confidentialcast confirm 20210 --account 0x2222...
      confidentialcast decrypt-forecast 0x2222... 20210 --account 0x2222...
      confidentialcast decrypt-points --account 0x2222...
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


cli.add_command(init_command)
cli.add_command(period_command)
cli.add_command(record_reference_command)
cli.add_command(submit_command)
cli.add_command(confirm_command)
cli.add_command(transfer_ownership_command)
cli.add_command(forecast_command)
cli.add_command(latest_command)
cli.add_command(reference_command)
cli.add_command(decrypt_forecast_command)
cli.add_command(decrypt_points_command)
cli.add_command(decrypt_result_command)
cli.add_command(verify_command)
