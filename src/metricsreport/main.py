from __future__ import annotations

import argparse
from pathlib import Path

from dotenv import load_dotenv

from metricsreport.common.settings import load_settings
from metricsreport.orchestrator.service import ReporterService


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Periodic console metrics reporter")
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--schema",
        default="config/schema.json",
        help="Path to settings JSON schema (default: config/schema.json)",
    )
    parser.add_argument(
        "--period-sec",
        type=int,
        default=None,
        help="Seconds between reports (overrides config)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Print a single report and exit",
    )
    args = parser.parse_args(argv)
    if args.period_sec is not None and args.period_sec < 1:
        raise SystemExit("--period-sec must be >= 1")
    return args


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    load_dotenv()
    settings = load_settings(Path(args.config), Path(args.schema))
    service = ReporterService(settings=settings, period_sec=args.period_sec, once=args.once)
    service.run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
