"""Configuration loading and directory resolution for Talan."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, List, Optional

try:  # pragma: no cover - exercised on Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for Python 3.9/3.10
    import tomli as tomllib  # type: ignore[no-redef]

from talan.craft.types import CraftTimings
from talan.input.system_events import DEFAULT_APP_NAME, DEFAULT_KEY_CODES, DEFAULT_PROCESS_NAME

CONFIG_DIR_NAME = ".talan_config"
CONFIG_FILE_NAME = "config.toml"
LOGS_DIR_NAME = "logs"

DEFAULT_LOGS_ENABLED = True
DEFAULT_LOGS_MAX_FILE_BYTES = 10 * 1024 * 1024
DEFAULT_LOGS_MAX_FILES = 5


class ProjectConfigError(RuntimeError):
    """Raised when project configuration is missing or invalid."""


@dataclass
class ProjectConfig:
    app_name: str = DEFAULT_APP_NAME
    process_name: str = DEFAULT_PROCESS_NAME
    key_codes: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_KEY_CODES))
    timings: CraftTimings = field(default_factory=CraftTimings)
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES


@dataclass
class Settings:
    """Resolved runtime settings for one CLI invocation."""

    project_root: Path
    config_root: Path
    app_name: str = DEFAULT_APP_NAME
    process_name: str = DEFAULT_PROCESS_NAME
    key_codes: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_KEY_CODES))
    timings: CraftTimings = field(default_factory=CraftTimings)
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES

    @property
    def config_file(self) -> Path:
        return self.config_root / CONFIG_FILE_NAME

    @property
    def logs_dir(self) -> Path:
        return self.config_root / LOGS_DIR_NAME


def resolve_project_root(workspace_dir: Optional[Path] = None) -> Path:
    return (workspace_dir or Path.cwd()).resolve()


def resolve_project_config_root(workspace_dir: Optional[Path] = None) -> Path:
    return resolve_project_root(workspace_dir) / CONFIG_DIR_NAME


def project_config_exists(workspace_dir: Optional[Path] = None) -> bool:
    config_root = resolve_project_config_root(workspace_dir)
    return config_root.is_dir() and (config_root / CONFIG_FILE_NAME).is_file()


def _safe_positive_int_or_default(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        converted = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if converted <= 0:
        return default
    return converted


def _safe_non_negative_int(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        converted = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if converted < 0:
        return default
    return converted


def _safe_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default


def _safe_text(value: object, default: str) -> str:
    text = str(value or "").strip()
    return text or default


def _safe_key_codes(data: Dict[str, object]) -> Dict[str, int]:
    codes = dict(DEFAULT_KEY_CODES)
    for key, value in data.items():
        name = str(key or "").strip().lower()
        if name not in DEFAULT_KEY_CODES:
            continue
        codes[name] = _safe_non_negative_int(value, DEFAULT_KEY_CODES[name])
    return codes


def _safe_timings(data: Dict[str, object]) -> CraftTimings:
    defaults = CraftTimings()
    overrides: Dict[str, int] = {}
    for item in fields(CraftTimings):
        if item.name not in data:
            continue
        overrides[item.name] = _safe_non_negative_int(data.get(item.name), getattr(defaults, item.name))
    return replace(defaults, **overrides)


def _section(data: Dict[str, object], name: str) -> Dict[str, object]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def _parse_project_config_data(data: Dict[str, object]) -> ProjectConfig:
    target = _section(data, "target")
    input_section = _section(data, "input")
    keys = _section(input_section, "keys")
    timing = _section(data, "timing")
    runtime = _section(data, "runtime")
    logs = _section(runtime, "logs")

    app_name = _safe_text(target.get("app_name"), DEFAULT_APP_NAME)
    return ProjectConfig(
        app_name=app_name,
        process_name=_safe_text(target.get("process_name"), app_name),
        key_codes=_safe_key_codes(keys),
        timings=_safe_timings(timing),
        logs_enabled=_safe_bool(logs.get("enabled"), DEFAULT_LOGS_ENABLED),
        logs_max_file_bytes=_safe_positive_int_or_default(
            logs.get("max_file_bytes"),
            DEFAULT_LOGS_MAX_FILE_BYTES,
        ),
        logs_max_files=_safe_positive_int_or_default(logs.get("max_files"), DEFAULT_LOGS_MAX_FILES),
    )


def _toml_string(value: str) -> str:
    return '"{0}"'.format(str(value).replace("\\", "\\\\").replace('"', '\\"'))


def _render_project_config(config: ProjectConfig) -> str:
    lines: List[str] = [
        "# Talan project configuration",
        "",
        "[target]",
        "app_name = {0}".format(_toml_string(config.app_name)),
        "process_name = {0}".format(_toml_string(config.process_name)),
        "",
        "# macOS virtual key codes sent through System Events.",
        "[input.keys]",
    ]
    codes = dict(DEFAULT_KEY_CODES)
    codes.update(config.key_codes)
    for name in DEFAULT_KEY_CODES:
        lines.append("{0} = {1}".format(name, int(codes[name])))

    lines.extend(
        [
            "",
            "# Settle windows and action cooldowns in milliseconds.",
            "[timing]",
        ]
    )
    for name in CraftTimings.field_names():
        lines.append("{0} = {1}".format(name, int(getattr(config.timings, name))))

    lines.extend(
        [
            "",
            "[runtime.logs]",
            "enabled = {0}".format(str(bool(config.logs_enabled)).lower()),
            "max_file_bytes = {0}".format(
                _safe_positive_int_or_default(config.logs_max_file_bytes, DEFAULT_LOGS_MAX_FILE_BYTES)
            ),
            "max_files = {0}".format(_safe_positive_int_or_default(config.logs_max_files, DEFAULT_LOGS_MAX_FILES)),
            "",
        ]
    )
    return "\n".join(lines)


def initialize_project_config(workspace_dir: Optional[Path] = None, force: bool = False) -> Path:
    project_root = resolve_project_root(workspace_dir)
    config_root = resolve_project_config_root(project_root)
    config_file = config_root / CONFIG_FILE_NAME

    if config_root.exists():
        if not force:
            raise ProjectConfigError("configuration directory already exists: {0}".format(config_root))
        shutil.rmtree(config_root)

    (config_root / LOGS_DIR_NAME).mkdir(parents=True, exist_ok=True)
    config_file.write_text(_render_project_config(ProjectConfig()), encoding="utf-8")
    return config_root


def load_project_config(config_root: Optional[Path] = None, workspace_dir: Optional[Path] = None) -> ProjectConfig:
    resolved_root = (config_root or resolve_project_config_root(workspace_dir)).resolve()
    config_file = resolved_root / CONFIG_FILE_NAME
    if not resolved_root.is_dir() or not config_file.is_file():
        raise ProjectConfigError(
            "missing project config directory: {0}, run `talan init` first".format(resolved_root)
        )

    try:
        parsed = tomllib.loads(config_file.read_text(encoding="utf-8"))
    except Exception as exc:
        raise ProjectConfigError("invalid config file: {0}".format(config_file)) from exc

    if not isinstance(parsed, dict):
        raise ProjectConfigError("invalid config file: {0}".format(config_file))

    return _parse_project_config_data(parsed)


def load_settings(workspace_dir: Optional[Path] = None) -> Settings:
    """Resolve settings from the project config."""

    project_root = resolve_project_root(workspace_dir)
    config_root = resolve_project_config_root(project_root)
    project_config = load_project_config(config_root=config_root)

    return Settings(
        project_root=project_root,
        config_root=config_root,
        app_name=project_config.app_name,
        process_name=project_config.process_name,
        key_codes=dict(project_config.key_codes),
        timings=project_config.timings,
        logs_enabled=project_config.logs_enabled,
        logs_max_file_bytes=project_config.logs_max_file_bytes,
        logs_max_files=project_config.logs_max_files,
    )
