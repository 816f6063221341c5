from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from signal import SIGINT, SIGTERM, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from topocollect.adapters.metrics import PrometheusMetrics
from topocollect.app import build_collector, collect_inventory
from topocollect.config import ConfigurationError, configure_logging, get_collector_config

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from topocollect.domain.scheduler import CollectorLoop

log = logging.getLogger(__name__)


def _parse_limit(value: str) -> tuple[str, int]:
    tag, separator, limit = value.partition("=")
    if not separator or not tag.strip():
        raise argparse.ArgumentTypeError(f"Expected TYPE=N, got {value!r}")
    try:
        return tag.strip(), int(limit)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid batch limit in {value!r}") from exc


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Collect Azure inventory into an inventory store")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single pass over all entity types and exit",
    )
    parser.add_argument(
        "--poll-time",
        type=float,
        help="Seconds to sleep between passes (defaults to config)",
    )
    parser.add_argument(
        "--default-limit",
        type=int,
        help="Records per uploaded part unless overridden per type (defaults to config)",
    )
    parser.add_argument(
        "--limit",
        type=_parse_limit,
        action="append",
        default=[],
        metavar="TYPE=N",
        help="Batch limit for one entity type, may be repeated",
    )
    parser.add_argument(
        "--entity-type",
        action="append",
        dest="entity_types",
        metavar="TYPE",
        help="Only refresh the given entity type, may be repeated",
    )
    parser.add_argument(
        "--sink",
        choices=("ingress", "sqlite"),
        default="ingress",
        help="Where to store inventory (default: %(default)s)",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        help="Expose Prometheus metrics on this port",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level (default: %(default)s)",
    )
    return parser.parse_args(list(argv))


def _build(parsed_args: argparse.Namespace) -> CollectorLoop:
    env_config = get_collector_config(
        continuous=not parsed_args.once,
        limits=dict(parsed_args.limit),
    )
    config = replace(
        env_config,
        default_limit=(
            parsed_args.default_limit
            if parsed_args.default_limit is not None
            else env_config.default_limit
        ),
        poll_time=(
            parsed_args.poll_time if parsed_args.poll_time is not None else env_config.poll_time
        ),
    )
    metrics = PrometheusMetrics()
    if parsed_args.metrics_port is not None:
        metrics.serve(parsed_args.metrics_port)
        log.info("Serving metrics on port %s", parsed_args.metrics_port)
    return build_collector(
        config,
        sink_kind=parsed_args.sink,
        metrics=metrics,
        entity_types=parsed_args.entity_types,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=getattr(logging, parsed_args.log_level))

    try:
        collector = _build(parsed_args)
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)

    def stop_handler(signal_received: int, _frame: FrameType | None) -> None:
        log.info("Received signal %s, stopping after the current pass", signal_received)
        collector.stop()

    signal(SIGINT, stop_handler)
    signal(SIGTERM, stop_handler)

    try:
        summary = collect_inventory(collector)
    except Exception:
        log.exception("Fatal error during collection")
        sys.exit(1)

    if not collector.continuous and summary.failures:
        sys.exit(1)


def run() -> None:
    load_dotenv()
    main()


if __name__ == "__main__":
    run()
