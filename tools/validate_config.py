import argparse
import re
from pathlib import Path
from zoneinfo import ZoneInfoNotFoundError

import jsonschema
from babel import UnknownLocaleError

from metricsreport.common.settings import ReporterConfig, compute_config_hash, load_settings
from metricsreport.reporting.console import resolve_time_zone
from metricsreport.reporting.formatter import resolve_locale


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate settings.yaml against schema.json")
    parser.add_argument("--config", required=True, help="Path to settings.yaml")
    parser.add_argument("--schema", required=True, help="Path to schema.json")
    args = parser.parse_args()

    try:
        settings = load_settings(Path(args.config), Path(args.schema))
    except FileNotFoundError as exc:
        raise SystemExit(str(exc))
    except jsonschema.ValidationError as exc:
        print(f"status=fail reason=schema error={exc.message}")
        return 1

    config = ReporterConfig.from_settings(settings.raw, env={})
    try:
        locale = resolve_locale(config.locale)
        time_zone = resolve_time_zone(config.time_zone)
        if config.filter.name_pattern:
            re.compile(config.filter.name_pattern)
    except (ValueError, re.error, UnknownLocaleError, ZoneInfoNotFoundError) as exc:
        print(f"status=fail reason=reporter error={exc}")
        return 1

    print(f"config_hash={compute_config_hash(settings.config_path)}")
    print(f"period_sec={config.period_sec}")
    print(f"locale={locale}")
    print(f"time_zone={time_zone if time_zone is not None else 'local'}")
    print("status=ok")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
