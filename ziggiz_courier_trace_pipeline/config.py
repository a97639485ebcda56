# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Configuration module for loading and parsing configuration files
#
# The tracing section is decoded into immutable models. Numeric and enumerated
# fields are deliberately left unconstrained here: the resolver checks them so
# that every problem in a configuration is reported together.

# Standard library imports
import logging
import os
import re

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

# Third-party imports
import yaml

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoggerConfig(BaseModel):
    """
    Configuration for individual loggers.

    Attributes:
        name (str): Logger name.
        level (str): Logging level (default: "INFO").
        propagate (bool): Whether to propagate logs to parent (default: True).
    """

    name: str
    level: str = "INFO"
    propagate: bool = True


class ExporterKind(str, Enum):
    CONSOLE = "console"
    OTLP = "otlp"


class ProcessorKind(str, Enum):
    SIMPLE = "simple"
    BATCH = "batch"


class NameStringValuePair(BaseModel):
    """A single exporter header. Names may repeat."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: Optional[str] = None


class ConsoleExporterConfig(BaseModel):
    """Console exporter. Takes no options."""

    model_config = ConfigDict(frozen=True)


class OTLPExporterConfig(BaseModel):
    """
    Configuration for an OTLP span exporter.

    Attributes:
        protocol (str): "grpc", "http/protobuf" or "http/json" (default when unset: "http/protobuf").
        endpoint (str): Collector URL; a bare "host:port" is accepted.
        compression (str): "gzip" or "none" (default when unset: "none").
        timeout (int): Export timeout in milliseconds.
        headers (List[NameStringValuePair]): Extra request headers, in order.
        certificate (str): Path to a PEM bundle used as trust roots.
    """

    model_config = ConfigDict(frozen=True)

    protocol: Optional[str] = None
    endpoint: Optional[str] = None
    compression: Optional[str] = None
    timeout: Optional[int] = None
    headers: List[NameStringValuePair] = Field(default_factory=list)
    certificate: Optional[str] = None


class SpanExporterConfig(BaseModel):
    """One-of wrapper around the supported exporters."""

    model_config = ConfigDict(frozen=True)

    console: Optional[ConsoleExporterConfig] = None
    otlp: Optional[OTLPExporterConfig] = None

    @field_validator("console", mode="before")
    @classmethod
    def validate_console(cls, v: Any) -> Any:
        """An explicit ``console:`` key with no value still selects the console exporter."""
        return {} if v is None else v

    @property
    def populated(self) -> List[ExporterKind]:
        """The exporter variants that are set, in declaration order."""
        kinds = []
        if self.console is not None:
            kinds.append(ExporterKind.CONSOLE)
        if self.otlp is not None:
            kinds.append(ExporterKind.OTLP)
        return kinds


class SimpleSpanProcessorConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    exporter: SpanExporterConfig = Field(default_factory=SpanExporterConfig)


class BatchSpanProcessorConfig(BaseModel):
    """
    Configuration for a batching span processor.

    Every numeric field is optional; when unset the SDK default applies.

    Attributes:
        max_export_batch_size (int): Maximum spans per export call.
        export_timeout (int): Export timeout in milliseconds.
        max_queue_size (int): Maximum number of queued spans.
        schedule_delay (int): Delay between exports in milliseconds.
        exporter (SpanExporterConfig): Where batches are sent.
    """

    model_config = ConfigDict(frozen=True)

    max_export_batch_size: Optional[int] = None
    export_timeout: Optional[int] = None
    max_queue_size: Optional[int] = None
    schedule_delay: Optional[int] = None
    exporter: SpanExporterConfig = Field(default_factory=SpanExporterConfig)


class SpanProcessorConfig(BaseModel):
    """One-of wrapper around the supported span processors."""

    model_config = ConfigDict(frozen=True)

    simple: Optional[SimpleSpanProcessorConfig] = None
    batch: Optional[BatchSpanProcessorConfig] = None

    @property
    def populated(self) -> List[ProcessorKind]:
        kinds = []
        if self.simple is not None:
            kinds.append(ProcessorKind.SIMPLE)
        if self.batch is not None:
            kinds.append(ProcessorKind.BATCH)
        return kinds


class PipelineConfig(BaseModel):
    """Tracer provider configuration: an ordered list of span processors."""

    model_config = ConfigDict(frozen=True)

    processors: List[SpanProcessorConfig] = Field(default_factory=list)


class ResourceConfig(BaseModel):
    """
    Resource attributes attached to every span.

    Attributes:
        attributes (Dict[str, Any]): Attribute values keyed by name.
        schema_url (str): Optional schema URL for the resource.
    """

    model_config = ConfigDict(frozen=True)

    attributes: Dict[str, Any] = Field(default_factory=dict)
    schema_url: Optional[str] = None


class Config(BaseModel):
    """
    Main configuration class for the trace pipeline.

    Holds the tracing pipeline description, resource attributes and the
    logging options of the process hosting the pipeline.
    """

    # Tracing configuration
    disabled: bool = False
    resource: ResourceConfig = Field(default_factory=ResourceConfig)
    tracer_provider: Optional[PipelineConfig] = None

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "%(asctime)s %(levelname)s %(name)s %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    loggers: List[LoggerConfig] = Field(default_factory=list)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that the log level is a valid Python logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v


# Matches ${VAR}, ${env:VAR} and ${VAR:-default}
_ENV_REFERENCE = re.compile(
    r"\$\{(?:env:)?(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>[^}]*))?\}"
)


def substitute_env_vars(text: str) -> str:
    """
    Replace environment variable references in raw configuration text.

    Unset variables without a default are replaced with an empty string.
    """

    def _replace(match: "re.Match[str]") -> str:
        default = match.group("default")
        return os.environ.get(match.group("name"), default if default else "")

    return _ENV_REFERENCE.sub(_replace, text)


def load_config(config_path: Optional[Union[str, Path]] = None) -> Config:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the configuration file. If None, will look for config.yaml
                   in the current directory and default directories.

    Returns:
        A Config object containing the loaded configuration.

    Raises:
        FileNotFoundError: If the configuration file cannot be found.
        yaml.YAMLError: If the configuration file contains invalid YAML.
    """
    # Default search paths
    search_paths = [
        Path.cwd() / "config.yaml",
        Path.cwd() / "config.yml",
        Path("/etc/ziggiz-courier-trace-pipeline/config.yaml"),
        Path("/etc/ziggiz-courier-trace-pipeline/config.yml"),
    ]

    if config_path:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
    else:
        for path in search_paths:
            if path.exists():
                config_file = path
                break
        else:
            logging.warning("No configuration file found, using default configuration")
            return Config()

    with open(config_file, "r") as f:
        try:
            config_data = yaml.safe_load(substitute_env_vars(f.read()))
            return Config(**(config_data or {}))
        except yaml.YAMLError as e:
            logging.error("Error parsing configuration file", extra={"error": e})
            raise
        except Exception as e:
            logging.error("Error loading configuration", extra={"error": e})
            raise


def configure_logging(config: "Config") -> None:
    """
    Configure logging based on the provided configuration.

    Args:
        config: The loaded configuration object.
    """
    # Reset logging configuration
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    level = getattr(logging, config.log_level, logging.INFO)
    formatter = logging.Formatter(config.log_format, datefmt=config.log_date_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logging.root.setLevel(level)
    logging.root.addHandler(console_handler)

    # Configure additional loggers from config
    for logger_config in config.loggers:
        logger = logging.getLogger(logger_config.name)
        logger.setLevel(getattr(logging, logger_config.level, logging.INFO))
        logger.propagate = logger_config.propagate
