"""
Configuration models for coverage-lens using Pydantic v2.
"""

import codecs
import re
from pathlib import Path
from typing import Literal, Union

import yaml
from pydantic import BaseModel, Field, field_validator

from coverage_lens.core.errors import ConfigurationError

_XML_NAME = re.compile(r"^[A-Za-z_][\w.-]*$")


class ReportConfig(BaseModel):
    """Where to find the coverage report and how to read it."""

    env_var: str = Field(
        default="COVERAGE_REPORT_FILE_PATH",
        description="Environment variable holding an override report path",
    )
    default_path: str = Field(
        default="coverage/clover.xml",
        description="Report path relative to the working directory",
    )
    encoding: str = Field(default="utf-8", description="Report text encoding")
    errors: str = Field(
        default="replace",
        description="Codec error handler for undecodable bytes in the report",
    )

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {v}") from e
        return v

    @field_validator("errors")
    @classmethod
    def validate_errors(cls, v: str) -> str:
        try:
            codecs.lookup_error(v)
        except LookupError as e:
            raise ValueError(f"Unknown codec error handler: {v}") from e
        return v

    @field_validator("env_var", "default_path")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class MarkerConfig(BaseModel):
    """Record markers in the report."""

    record_tag: str = Field(default="file", description="Element name of one file record")

    @field_validator("record_tag")
    @classmethod
    def validate_record_tag(cls, v: str) -> str:
        """Record tag must be a plain XML element name."""
        if not _XML_NAME.match(v):
            raise ValueError(f"Invalid record tag: {v!r}")
        return v

    @property
    def closing_marker(self) -> str:
        return f"</{self.record_tag}>"


class ServerConfig(BaseModel):
    """Identity advertised by the MCP server."""

    name: str = Field(default="coverage-lens")
    version: str = Field(default="1.0.0")


class LensConfig(BaseModel):
    """Main configuration model for coverage-lens."""

    version: int = Field(default=1, description="Configuration version")
    report: ReportConfig = Field(default_factory=ReportConfig)
    markers: MarkerConfig = Field(default_factory=MarkerConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v


def load_config(config_path: Union[str, Path]) -> LensConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Parsed configuration

    Raises:
        ConfigurationError: If configuration is invalid or missing
    """
    try:
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        with config_file.open("r") as f:
            data = yaml.safe_load(f)

        if not data:
            data = {}

        return LensConfig.model_validate(data)

    except (yaml.YAMLError, ValueError, OSError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def save_config(config: LensConfig, config_path: Union[str, Path]) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration to save
        config_path: Output path
    """
    try:
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with config_file.open("w") as f:
            yaml.safe_dump(
                config.model_dump(),
                f,
                default_flow_style=False,
                sort_keys=True,
            )
    except OSError as e:
        raise ConfigurationError(f"Failed to save configuration: {e}") from e


def get_default_config() -> LensConfig:
    """Get default configuration."""
    return LensConfig()
