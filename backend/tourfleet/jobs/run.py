import argparse
import asyncio
import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import async_sessionmaker

from tourfleet.infra.db import get_session_factory
from tourfleet.infra.logging import clear_log_context, configure_logging, update_log_context
from tourfleet.infra.metrics import configure_metrics, metrics
from tourfleet.jobs import hold_sweeper
from tourfleet.settings import settings

logger = logging.getLogger(__name__)

JOB_RUNNERS: dict[str, Callable[[object], Awaitable[dict[str, int]]]] = {
    "expired-hold-sweep": hold_sweeper.run_expired_hold_sweep,
}


async def _run_job(
    name: str,
    session_factory: async_sessionmaker,
    runner: Callable[[object], Awaitable[dict[str, int]]],
) -> dict[str, int]:
    update_log_context(job=name)
    try:
        async with session_factory() as session:
            result = await runner(session)
        logger.info("job_complete", extra={"extra": {"job": name, **result}})
        metrics.record_job_success(name)
        return result
    finally:
        clear_log_context()


def _job_runner(name: str) -> Callable[[object], Awaitable[dict[str, int]]]:
    try:
        return JOB_RUNNERS[name]
    except KeyError:
        raise ValueError(f"unknown_job:{name}") from None


async def run_jobs_once(session_factory: async_sessionmaker, job_names: list[str]) -> dict[str, bool]:
    """Run each job once; a failing job is logged and counted without stopping the others."""
    outcomes: dict[str, bool] = {}
    for name in job_names:
        runner = _job_runner(name)
        try:
            await _run_job(name, session_factory, runner)
        except Exception as exc:  # noqa: BLE001
            metrics.record_job_error(name, type(exc).__name__)
            logger.warning("job_failed", extra={"extra": {"job": name, "reason": type(exc).__name__}})
            outcomes[name] = False
            continue
        outcomes[name] = True
    return outcomes


async def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run scheduled availability jobs")
    parser.add_argument("--job", action="append", dest="jobs", help="Job name to run")
    parser.add_argument(
        "--interval",
        type=int,
        default=settings.hold_sweep_interval_seconds,
        help="Seconds between loops when not using --once",
    )
    parser.add_argument("--once", action="store_true", help="Run jobs once and exit")
    args = parser.parse_args(argv)

    configure_logging()
    configure_metrics(settings.metrics_enabled)
    session_factory = get_session_factory()

    job_names = args.jobs or list(JOB_RUNNERS)
    for name in job_names:
        _job_runner(name)

    while True:
        await run_jobs_once(session_factory, job_names)
        if args.once:
            break
        await asyncio.sleep(max(args.interval, 1))


if __name__ == "__main__":
    asyncio.run(main())
