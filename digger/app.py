"""
Client factory and command line entry point.
"""

import asyncio
import errno
import sys

import click

from digger.client import DiggerClient
from digger.core.config import ClientConfig, Settings
from digger.core.exceptions import DiggerClientError
from digger.core.logging import get_logger, setup_logging
from digger.models.status import TriggerState
from digger.services.builds import LogStreamingOptions
from digger.services.jenkins.schemas import QueueReference

logger = get_logger(__name__)


def create_client(settings: Settings) -> DiggerClient:
    """Create a DiggerClient from environment settings."""
    return DiggerClient(ClientConfig.from_settings(settings))


def _parse_params(values: tuple[str, ...]) -> dict[str, str]:
    params = {}
    for value in values:
        key, sep, val = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got '{value}'", param_hint="--param")
        params[key] = val
    return params


def _run(coro):
    try:
        return asyncio.run(coro)
    except DiggerClientError as e:
        click.echo(f"error: {e}", err=True)
        sys.exit(errno.ENOTRECOVERABLE)


class Ctx:
    client: DiggerClient | None
    settings: Settings | None

    def __init__(self) -> None:
        self.client = None
        self.settings = None


pass_ctx = click.make_pass_decorator(Ctx, ensure=True)


def _echo_status(status) -> None:
    click.echo(f"state: {status.state.value}")
    click.echo(f"queue item: {status.queue_reference.url}")
    if status.build_number is not None:
        click.echo(f"build number: {status.build_number}")


@click.group(help="Trigger and follow Jenkins builds")
@click.option("-d", "--debug", is_flag=True, default=False, help="Enable debug logging")
@pass_ctx
def cli(ctx: Ctx, debug: bool) -> None:
    ctx.settings = Settings()
    setup_logging("DEBUG" if debug else ctx.settings.log_level)
    try:
        ctx.client = create_client(ctx.settings)
    except DiggerClientError as e:
        click.echo(f"error: {e}", err=True)
        sys.exit(errno.EINVAL)


@cli.command("trigger", help="Queue a build and print its queue item")
@click.argument("job", type=str)
@click.option("-p", "--param", "param_values", multiple=True, metavar="KEY=VALUE", help="Build parameter")
@pass_ctx
def cmd_trigger(ctx: Ctx, job: str, param_values: tuple[str, ...]) -> None:
    status = _run(ctx.client.trigger_build(job, _parse_params(param_values)))
    _echo_status(status)


@cli.command("build", help="Queue a build and wait for it to start")
@click.argument("job", type=str)
@click.option("-p", "--param", "param_values", multiple=True, metavar="KEY=VALUE", help="Build parameter")
@click.option("-t", "--timeout", type=float, default=None, help="Seconds to wait for the build to start")
@pass_ctx
def cmd_build(ctx: Ctx, job: str, param_values: tuple[str, ...], timeout: float | None) -> None:
    if timeout is None:
        timeout = ctx.settings.build_timeout
    status = _run(ctx.client.build(job, timeout, _parse_params(param_values)))
    _echo_status(status)
    if status.state is not TriggerState.STARTED:
        sys.exit(errno.EAGAIN if status.state is TriggerState.TIMED_OUT else errno.ECANCELED)


@cli.command("poll", help="Wait for a queued build to start")
@click.argument("job", type=str)
@click.argument("queue_url", type=str)
@click.option("-t", "--timeout", type=float, default=None, help="Seconds to wait for the build to start")
@pass_ctx
def cmd_poll(ctx: Ctx, job: str, queue_url: str, timeout: float | None) -> None:
    if timeout is None:
        timeout = ctx.settings.build_timeout
    status = _run(ctx.client.poll_build(job, QueueReference(queue_url), timeout))
    _echo_status(status)
    if status.state is not TriggerState.STARTED:
        sys.exit(errno.EAGAIN if status.state is TriggerState.TIMED_OUT else errno.ECANCELED)


@cli.command("logs", help="Print the console output of a build")
@click.argument("job", type=str)
@click.argument("number", type=int)
@click.option("-f", "--follow", is_flag=True, default=False, help="Follow output until the build ends")
@pass_ctx
def cmd_logs(ctx: Ctx, job: str, number: int, follow: bool) -> None:
    if follow:
        _run(ctx.client.stream_logs(job, number, LogStreamingOptions(output=sys.stdout)))
    else:
        click.echo(_run(ctx.client.get_build_logs(job, number)), nl=False)


@cli.command("history", help="List recent builds of a job")
@click.argument("job", type=str)
@pass_ctx
def cmd_history(ctx: Ctx, job: str) -> None:
    for build in _run(ctx.client.get_build_history(job)):
        result = "BUILDING" if build.building else (build.result or "UNKNOWN")
        click.echo(f"#{build.number}\t{result}\t{build.url}")


def main() -> None:
    cli()
