from __future__ import annotations

import argparse
import logging
import os
import time

from .config import load_config
from .runner import RunOnceReport, build_runner


logger = logging.getLogger("nrm")


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="nrm", description="Node Release Monitor (upgrade compliance)")
    p.add_argument("--config", required=True, help="Path to JSON config file")
    p.add_argument(
        "--log-level",
        default=None,
        help="Log level (DEBUG/INFO/WARNING/ERROR). Defaults to env NRM_LOG_LEVEL or INFO",
    )
    p.add_argument(
        "--add-node",
        action="append",
        default=[],
        metavar="NAME=VERSION",
        help="Add or refresh a monitored node before the first cycle (repeatable)",
    )

    mode = p.add_mutually_exclusive_group(required=False)
    mode.add_argument("--once", action="store_true", help="Run one cycle and exit")
    mode.add_argument("--daemon", action="store_true", help="Run forever with poll interval")
    return p


def _resolve_log_level(value: str | None) -> int:
    v = (value or "").strip().upper()
    if not v:
        return logging.INFO
    level = logging.getLevelNamesMapping().get(v)
    if isinstance(level, int):
        return level
    return logging.INFO


def parse_node_arg(value: str) -> tuple[str, str]:
    name, sep, version = value.partition("=")
    name = name.strip()
    if not sep or not name:
        raise ValueError(f"expected NAME=VERSION, got {value!r}")
    return name, version.strip()


def _log_report(prefix: str, report: RunOnceReport) -> None:
    ev = report.evaluation
    logger.info(
        "%s: duration_ms=%d resolve=%s latest=%s nodes=%d updated=%d not_updated=%d skipped=%d",
        prefix,
        report.duration_ms,
        report.resolve.status.value,
        ev.latest.name if ev.latest else None,
        ev.nodes,
        ev.reported_updated,
        ev.reported_not_updated,
        ev.skipped,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    log_level = _resolve_log_level(args.log_level or os.environ.get("NRM_LOG_LEVEL"))
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        nodes = [parse_node_arg(v) for v in args.add_node]
    except ValueError as e:
        parser.error(str(e))

    config = load_config(args.config)
    runner = build_runner(config)

    mode = "daemon" if args.daemon else "once"
    logger.info("nrm start: mode=%s config=%s", mode, args.config)
    logger.info(
        "config: project=%s tag_prefix=%s grace_seconds=%d sqlite_path=%s",
        config.github.repo,
        config.monitor.tag_prefix,
        config.monitor.grace_seconds,
        config.sqlite_path,
    )

    runner.state.ensure_schema()
    for name, version in nodes:
        runner.state.upsert_candidate(name, version)
        logger.info("node added: name=%s version=%s", name, version)

    if not args.daemon:
        _log_report("once done", runner.run_once())
        return 0

    sleep_seconds = max(1, config.poll_interval_seconds)
    logger.info("daemon: poll_interval_seconds=%d", sleep_seconds)
    cycle_id = 0
    while True:
        cycle_id += 1
        try:
            _log_report(f"cycle {cycle_id} done", runner.run_once())
        except Exception:  # noqa: BLE001
            logger.exception("cycle crashed: id=%d", cycle_id)
        time.sleep(sleep_seconds)


if __name__ == "__main__":
    raise SystemExit(main())
