from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml


class ConfigError(RuntimeError):
    pass


def _require(d: Dict[str, Any], key: str, path: str) -> Any:
    if key not in d:
        raise ConfigError(f"Missing required config: {path}.{key}")
    return d[key]


def load_config(path: str | Path = "config.yaml") -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ConfigError(
            f"Config file not found: {p.resolve()}\n\nTip: copy config.example.yaml -> config.yaml"
        )
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {p}")
    validate_config(data)
    return data


def validate_config(cfg: Dict[str, Any]) -> None:
    _require(cfg, "runtime", "")
    runtime = cfg["runtime"]
    _require(runtime, "state_db_path", "runtime")
    runtime.setdefault("log_dir", "logs")
    runtime.setdefault("log_level", "INFO")
    runtime.setdefault("timezone", "UTC")
    runtime.setdefault("user_agent", "jobtrack/0.1")
    runtime.setdefault("http_timeout_sec", 20)
    runtime.setdefault("http_retries", 3)

    cfg.setdefault("capture", {})
    cfg["capture"].setdefault("description_max_chars", 500)
    cfg["capture"].setdefault("generic_main_chars", 2000)

    cfg.setdefault("skills", {})
    cfg["skills"].setdefault("max_results", 15)
    if int(cfg["skills"]["max_results"]) <= 0:
        raise ConfigError("skills.max_results must be positive")

    cfg.setdefault("reminders", {})
    cfg["reminders"].setdefault("stale_after_days", 7)

    cfg.setdefault("settings", {})
    cfg["settings"].setdefault("autoCapture", False)
    cfg["settings"].setdefault("notifications", True)


def default_config(state_db_path: str = "state/jobtrack.db") -> Dict[str, Any]:
    cfg: Dict[str, Any] = {"runtime": {"state_db_path": state_db_path}}
    validate_config(cfg)
    return cfg
