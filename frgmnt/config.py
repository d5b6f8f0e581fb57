"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for 3.10
    import tomli as tomllib  # type: ignore[no-redef]

from frgmnt.fragmenter import DEFAULT_FRAGMENT_SIZE

DEFAULT_LOG_LEVEL = "info"
DEFAULT_FRAGMENT_SIZE_BYTES = DEFAULT_FRAGMENT_SIZE
DEFAULT_COPY_SHUFFLE = False
DEFAULT_COPY_DUPLICATES = 0
DEFAULT_S3_REGION = ""


class ConfigError(ValueError):
    """Raised when configuration is invalid."""


@dataclass(frozen=True)
class GlobalConfig:
    log_level: str


@dataclass(frozen=True)
class FragmentConfig:
    size_bytes: int


@dataclass(frozen=True)
class CopyConfig:
    shuffle: bool
    duplicates: int
    seed: int | None


@dataclass(frozen=True)
class S3Config:
    region: str


@dataclass(frozen=True)
class Config:
    global_cfg: GlobalConfig
    fragment: FragmentConfig
    copy: CopyConfig
    s3: S3Config

    @staticmethod
    def default() -> "Config":
        return Config.from_dict({})

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Config":
        global_data = _section(data, "global")
        fragment_data = _section(data, "fragment")
        copy_data = _section(data, "copy")
        s3_data = _section(data, "s3")

        seed = copy_data.get("seed")
        config = Config(
            global_cfg=GlobalConfig(
                log_level=str(global_data.get("log_level", DEFAULT_LOG_LEVEL)),
            ),
            fragment=FragmentConfig(
                size_bytes=_to_int(
                    fragment_data.get("size_bytes", DEFAULT_FRAGMENT_SIZE_BYTES),
                    "fragment.size_bytes",
                ),
            ),
            copy=CopyConfig(
                shuffle=bool(copy_data.get("shuffle", DEFAULT_COPY_SHUFFLE)),
                duplicates=_to_int(
                    copy_data.get("duplicates", DEFAULT_COPY_DUPLICATES),
                    "copy.duplicates",
                ),
                seed=_to_int(seed, "copy.seed") if seed is not None else None,
            ),
            s3=S3Config(
                region=str(s3_data.get("region", DEFAULT_S3_REGION)),
            ),
        )
        validate_config(config)
        return config


def load_config(path: Path) -> Config:
    if not path.is_absolute():
        raise ConfigError(f"config path must be absolute: {path}")
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except OSError as exc:
        raise ConfigError(f"failed to read config: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid config syntax: {exc}") from exc
    return Config.from_dict(data)


def validate_config(config: Config) -> None:
    _validate_log_level(config.global_cfg.log_level)
    _validate_positive(config.fragment.size_bytes, "fragment.size_bytes")
    if config.copy.duplicates < 0:
        raise ConfigError("copy.duplicates must be >= 0")


def _validate_positive(value: int, field: str) -> None:
    if value <= 0:
        raise ConfigError(f"{field} must be > 0")


def _validate_log_level(value: str) -> None:
    valid = {"debug", "info", "warning", "error", "critical"}
    if value.lower() not in valid:
        raise ConfigError(
            f"global.log_level must be one of {sorted(valid)}; got {value}"
        )


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a table")
    return section


def _to_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field} must be an integer") from exc
