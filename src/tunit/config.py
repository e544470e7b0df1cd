"""Configuration loader for tunit."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from tunit.errors import ConfigurationError
from tunit.limits import (
    CI_TIMEOUT_MULTIPLIER,
    DEFAULT_SCREEN_SIZE,
    DEFAULT_WAIT_TIMEOUT,
    IS_CI,
    RENDER_INTERVAL,
    RENDER_SETTLE_TIMEOUT,
)

type LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

CONFIG_FILENAME = "tunit.toml"
PYPROJECT_FILENAME = "pyproject.toml"


class WaitConfig(BaseModel):
    """Defaults for the wait helpers."""

    default_timeout: float = Field(
        default=DEFAULT_WAIT_TIMEOUT, description="Seconds to wait when no timeout is given"
    )
    ci_multiplier: float = Field(
        default=CI_TIMEOUT_MULTIPLIER, description="Timeout scale factor on CI runners"
    )
    scale_on_ci: bool = Field(default=True, description="Apply ci_multiplier when CI is set")

    @field_validator("default_timeout", "ci_multiplier")
    @classmethod
    def validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    def effective_timeout(self, timeout: float | None = None) -> float:
        """Return *timeout* as given, or the default scaled for CI runners."""
        if timeout is not None:
            return timeout
        if self.scale_on_ci and IS_CI:
            return self.default_timeout * self.ci_multiplier
        return self.default_timeout


class RenderConfig(BaseModel):
    """Settings for the headless Textual renderer."""

    interval: float = Field(
        default=RENDER_INTERVAL, description="Seconds between render change checks"
    )
    settle_timeout: float = Field(
        default=RENDER_SETTLE_TIMEOUT, description="Seconds to wait for a fragment to mount"
    )
    size: tuple[int, int] = Field(default=DEFAULT_SCREEN_SIZE, description="Terminal size")

    @field_validator("interval", "settle_timeout")
    @classmethod
    def validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value


class DiffConfig(BaseModel):
    """Rules for semantic markup comparison."""

    ignore_comments: bool = Field(default=True)
    ignore_class_order: bool = Field(default=True)
    collapse_whitespace: bool = Field(default=True)
    ignore_attribute: str = Field(
        default="diff:ignore", description="Expected-side attribute that skips an element"
    )


class TunitConfig(BaseModel):
    """Root configuration model."""

    wait: WaitConfig = Field(default_factory=WaitConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)
    log_level: LogLevel = Field(default="WARNING")

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> TunitConfig:
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid tunit configuration: {e}") from e

    @classmethod
    def load(cls, path: Path | None = None) -> TunitConfig:
        """Load configuration from a TOML file or use defaults.

        With no *path*, ``tunit.toml`` in the working directory is used, then
        the ``[tool.tunit]`` table of ``pyproject.toml``.
        """
        if path is None:
            return cls._discover(Path.cwd())

        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        data = _read_toml(path)
        if path.name == PYPROJECT_FILENAME:
            data = data.get("tool", {}).get("tunit", {})
        return cls.from_mapping(data)

    @classmethod
    def _discover(cls, directory: Path) -> TunitConfig:
        config_path = directory / CONFIG_FILENAME
        if config_path.exists():
            return cls.from_mapping(_read_toml(config_path))

        pyproject = directory / PYPROJECT_FILENAME
        if pyproject.exists():
            section = _read_toml(pyproject).get("tool", {}).get("tunit")
            if section:
                return cls.from_mapping(section)

        return cls()


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Malformed TOML in {path}: {e}") from e


__all__ = ["DiffConfig", "RenderConfig", "TunitConfig", "WaitConfig"]
