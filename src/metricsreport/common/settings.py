from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import jsonschema
import yaml

ENV_LOCALE = "METRICSREPORT_LOCALE"
ENV_TIME_ZONE = "METRICSREPORT_TIME_ZONE"
ENV_LOG_LEVEL = "METRICSREPORT_LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    config_version: str
    environment: str
    app_log_path: Optional[str]
    log_level: str
    config_path: Path
    raw: Dict[str, Any]


@dataclass(frozen=True)
class FilterConfig:
    groups: List[str] = field(default_factory=list)
    types: List[str] = field(default_factory=list)
    name_pattern: Optional[str] = None


@dataclass(frozen=True)
class ReporterConfig:
    period_sec: int = 60
    console_width: int = 80
    locale: Optional[str] = None
    time_zone: Optional[str] = None
    evict_absent_counters: bool = False
    filter: FilterConfig = field(default_factory=FilterConfig)

    @staticmethod
    def from_settings(
        settings: Dict[str, Any], env: Optional[Mapping[str, str]] = None
    ) -> "ReporterConfig":
        env = os.environ if env is None else env
        raw = settings.get("reporter", {}) or {}
        filter_raw = raw.get("filter", {}) or {}
        locale = env.get(ENV_LOCALE) or raw.get("locale")
        time_zone = env.get(ENV_TIME_ZONE) or raw.get("time_zone")
        return ReporterConfig(
            period_sec=int(raw.get("period_sec", 60)),
            console_width=int(raw.get("console_width", 80)),
            locale=str(locale) if locale else None,
            time_zone=str(time_zone) if time_zone else None,
            evict_absent_counters=bool(raw.get("evict_absent_counters", False)),
            filter=FilterConfig(
                groups=[str(item) for item in filter_raw.get("groups", []) or []],
                types=[str(item) for item in filter_raw.get("types", []) or []],
                name_pattern=filter_raw.get("name_pattern") or None,
            ),
        )


def compute_config_hash(config_path: Path) -> str:
    data = config_path.read_bytes()
    return hashlib.sha256(data).hexdigest()


def load_yaml(path: Path) -> Dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    return data or {}


def validate_config(config: Dict[str, Any], schema_path: Path) -> None:
    schema = json.loads(schema_path.read_text(encoding="utf-8"))
    jsonschema.validate(instance=config, schema=schema)


def load_settings(
    config_path: Path, schema_path: Path, env: Optional[Mapping[str, str]] = None
) -> Settings:
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema file not found: {schema_path}")

    env = os.environ if env is None else env
    config = load_yaml(config_path)
    validate_config(config, schema_path)

    app_log_path = config.get("app_log_path")
    return Settings(
        config_version=str(config["config_version"]),
        environment=str(config["environment"]),
        app_log_path=str(app_log_path) if app_log_path else None,
        log_level=str(env.get(ENV_LOG_LEVEL) or config.get("log_level", "INFO")).upper(),
        config_path=config_path,
        raw=config,
    )
