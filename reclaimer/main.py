"""Reclaimer daemon entry point."""

from __future__ import annotations

import asyncio
import signal
import sys

import structlog
from pydantic import ValidationError

from reclaimer import __version__
from reclaimer.config import Settings, get_settings
from reclaimer.drivers.base import Pruner
from reclaimer.drivers.docker import DockerPruner
from reclaimer.errors import ConfigurationError, ReclaimerError
from reclaimer.log import configure_logging
from reclaimer.services.maintenance import MaintenanceScheduler, create_scheduler

logger = structlog.get_logger()


def load_settings() -> Settings:
    """Load settings, turning validation errors into ConfigurationError."""
    try:
        return get_settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def log_startup(settings: Settings, socket: str) -> None:
    logger.info(
        "reclaimer.startup",
        version=__version__,
        mode=settings.mode.value,
        swarm_global=settings.swarm_global,
        cleanup_interval_hours=settings.cleanup_interval,
        unused_volume_retention_days=settings.unused_volume_retention,
        remove_build_cache=settings.remove_build_cache,
        socket=socket,
    )


def _install_signal_handlers(scheduler: MaintenanceScheduler) -> list[signal.Signals]:
    """Route SIGINT/SIGTERM to a graceful stop. Returns the signals installed."""
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, scheduler.request_stop)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handler support
            continue
        installed.append(sig)
    return installed


def _remove_signal_handlers(signals: list[signal.Signals]) -> None:
    loop = asyncio.get_running_loop()
    for sig in signals:
        loop.remove_signal_handler(sig)


async def run(settings: Settings, pruner: Pruner | None = None) -> int:
    """Run the daemon until stopped or a cycle fails. Returns the exit code."""
    socket = settings.resolved_socket()
    log_startup(settings, socket)

    pruner = pruner or DockerPruner(socket)
    scheduler = create_scheduler(pruner, settings)
    signals = _install_signal_handlers(scheduler)

    try:
        try:
            await pruner.ping()
        except ReclaimerError as e:
            logger.error("reclaimer.engine_unreachable", error=str(e), **e.details)
            return 1

        outcome = await scheduler.run_forever()
    finally:
        _remove_signal_handlers(signals)
        await pruner.close()

    if outcome.error is not None:
        logger.error(
            "reclaimer.terminating",
            exit_code=outcome.exit_code,
            error=str(outcome.error),
            cycles=outcome.cycles_completed,
        )
    return outcome.exit_code


def main() -> None:
    """Console entry point."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(f"reclaimer: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings.log_level)

    try:
        exit_code = asyncio.run(run(settings))
    except KeyboardInterrupt:
        return

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
