"""
cli.py — Click CLI entrypoint for running the writer outside Lambda.

Usage:
    tender-writer consume --budget-seconds 600
    tender-writer init-db
    tender-writer decode SanralTenderScrape ./message.json
"""

from __future__ import annotations

import json
import sys

import click
import structlog

from tender_shared.config import settings
from tender_writer.utils.logging import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Log level",
)
@click.option(
    "--log-format",
    default=settings.log_format,
    type=click.Choice(["json", "console"]),
    help="Log renderer",
)
def main(log_level: str, log_format: str) -> None:
    """Tender queue → database writer."""
    configure_logging(log_level=log_level, log_format=log_format, stream=sys.stderr)


@main.command()
@click.option(
    "--budget-seconds",
    default=840.0,
    show_default=True,
    type=click.FloatRange(min=0),
    help="Stop polling once fewer than the safety margin of these seconds remain.",
)
def consume(budget_seconds: float) -> None:
    """Drain the source queue into the database."""
    from tender_writer.errors import ConfigurationError
    from tender_writer.pipelines.consumer import QueueConsumer, time_budget

    try:
        consumer = QueueConsumer.from_settings(settings)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    result = consumer.run(time_budget(budget_seconds))
    click.echo(result.summary())


@main.command("init-db")
def init_db() -> None:
    """Create the tender tables if they don't exist."""
    from tender_shared.db import init_schema

    try:
        init_schema()
    except RuntimeError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo("Schema ready.")


@main.command()
@click.argument("routing_key")
@click.argument("message_file", type=click.File("r", encoding="utf-8"))
def decode(routing_key: str, message_file) -> None:
    """Decode and map a message body without writing it."""
    from tender_writer.sources import DEFAULT_ADAPTERS, build_registry
    from tender_writer.transforms.mapper import TenderMapper

    result = build_registry().decode(routing_key, message_file.read())
    if not result.ok:
        raise click.ClickException(f"{result.error.category}: {result.error}")

    record = TenderMapper(DEFAULT_ADAPTERS).map(result.message)
    click.echo(json.dumps(record.model_dump(mode="json"), indent=2))
    log.debug("decode_complete", routing_key=routing_key, source=record.source.value)


if __name__ == "__main__":
    main()
