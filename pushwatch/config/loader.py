"""Configuration loading helpers for pushwatch."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .models import AppConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
CONFIG_FILENAME = "config.yaml"
HOME_ENV = "PUSHWATCH_HOME"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Could not parse configuration file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


def apply_env_overrides(payload: dict, environ: Mapping[str, str] | None = None) -> dict:
    """Overlay the deployment environment variables on a config mapping."""

    env = os.environ if environ is None else environ
    merged: dict[str, Any] = {key: (dict(value) if isinstance(value, dict) else value) for key, value in payload.items()}
    feed = merged.setdefault("feed", {})
    push = merged.setdefault("push", {})
    schedule = merged.setdefault("schedule", {})
    if env.get("LATEST_URL"):
        feed["url"] = env["LATEST_URL"]
    if env.get("POLL_MS"):
        try:
            schedule["interval_seconds"] = float(env["POLL_MS"]) / 1000.0
        except ValueError as exc:
            raise ConfigError(f"POLL_MS must be a number of milliseconds: {env['POLL_MS']!r}") from exc
    if env.get("VAPID_SUBJECT"):
        push["vapid_subject"] = env["VAPID_SUBJECT"]
    if env.get("PUSH_ICON_URL"):
        push["icon_url"] = env["PUSH_ICON_URL"]
    return merged


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV)
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def config_path(self) -> Path:
        for suffix in CONFIG_EXTENSIONS:
            candidate = self.project_root / f"config{suffix}"
            if candidate.exists():
                return candidate
        return self.project_root / CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(
        self,
        locator: ConfigLocator | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.locator = locator or ConfigLocator()
        self.environ = environ
        self._cache: AppConfig | None = None

    def load_config(self) -> AppConfig:
        if self._cache is not None:
            return self._cache
        path = self.locator.config_path()
        if path.exists():
            payload = _read_file(path)
        else:
            payload = AppConfig().model_dump(mode="json")
            _write_file(path, payload)
        payload = apply_env_overrides(payload, self.environ)
        try:
            config = AppConfig.model_validate(payload)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration in {path}:\n{exc}") from exc
        self._cache = config
        return config

    def data_dir(self) -> Path:
        config = self.load_config()
        path = config.resolved_data_dir(self.locator.project_root)
        path.mkdir(parents=True, exist_ok=True)
        return path


__all__ = ["CONFIG_EXTENSIONS", "ConfigLocator", "ConfigRepository", "apply_env_overrides"]
