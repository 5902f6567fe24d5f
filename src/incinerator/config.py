from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time
from pathlib import Path
from typing import Mapping, TypeAlias
import tomllib

from incinerator.runtime.env_policy import DEFAULT_PORT, parse_port_text, port_from_env

DEFAULT_CONFIG_NAME = "incinerator.toml"
DEFAULT_HOST = "localhost"
DEFAULT_TRIGGER = "incinerate!"
DEFAULT_EXCLUDE_DIRS: tuple[str, ...] = (
    ".git",
    "__pycache__",
    ".venv",
    "venv",
    "node_modules",
)
DEFAULT_SUFFIXES: tuple[str, ...] = (".py",)

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


@dataclass(frozen=True)
class Settings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    exclude_dirs: tuple[str, ...] = DEFAULT_EXCLUDE_DIRS
    suffixes: tuple[str, ...] = DEFAULT_SUFFIXES
    trigger: str = DEFAULT_TRIGGER


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        if base.is_file():
            base = base.parent
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def incinerator_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get("incinerator", {})
    return section if isinstance(section, dict) else {}


def _normalize_name_list(value: TomlValue) -> list[str]:
    items: list[str] = []
    if value is None:
        return items
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple, set)):
        for item in value:
            if isinstance(item, str):
                items.extend([part.strip() for part in item.split(",") if part.strip()])
    return [item for item in items if item]


def _config_port(value: TomlValue) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return parse_port_text(str(value))
    if isinstance(value, str):
        return parse_port_text(value)
    return None


def settings_from_section(
    section: TomlTable,
    *,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    host = section.get("host")
    trigger = section.get("trigger")
    port = port_from_env(environ=environ)
    if port is None:
        port = _config_port(section.get("port"))
    exclude = (
        tuple(_normalize_name_list(section.get("exclude")))
        if "exclude" in section
        else DEFAULT_EXCLUDE_DIRS
    )
    suffixes = (
        tuple(_normalize_name_list(section.get("suffixes")))
        if "suffixes" in section
        else DEFAULT_SUFFIXES
    )
    return Settings(
        host=host.strip() if isinstance(host, str) and host.strip() else DEFAULT_HOST,
        port=port if port is not None else DEFAULT_PORT,
        exclude_dirs=exclude,
        suffixes=suffixes,
        trigger=(
            trigger.strip().lower()
            if isinstance(trigger, str) and trigger.strip()
            else DEFAULT_TRIGGER
        ),
    )


def resolve_settings(
    root: Path | None = None,
    *,
    config_path: Path | None = None,
    host: str | None = None,
    port: int | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Merge command-line overrides, ``PORT``, the config file and defaults.

    Explicit arguments win over the environment, which wins over
    ``[incinerator]`` in ``incinerator.toml``.
    """
    section = incinerator_defaults(root=root, config_path=config_path)
    settings = settings_from_section(section, environ=environ)
    if host:
        settings = replace(settings, host=host)
    if port is not None:
        settings = replace(settings, port=port)
    return settings
