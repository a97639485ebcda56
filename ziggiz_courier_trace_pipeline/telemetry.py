# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# OpenTelemetry setup driven by configuration
#
# new_sdk() resolves the tracing section of a Config into a tracer provider
# and keeps the matching shutdown function. configure_tracing() additionally
# installs the provider as the global OpenTelemetry tracer provider.

# Standard library imports
import logging

from typing import Optional

# Third-party imports
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.trace import Tracer

# Local/package imports
from ziggiz_courier_trace_pipeline.config import Config, ResourceConfig
from ziggiz_courier_trace_pipeline.pipeline import (
    ShutdownFunc,
    noop_shutdown,
    resolve_pipeline,
)

SERVICE_NAME = "ziggiz-courier-trace-pipeline"

logger = logging.getLogger("ziggiz_courier_trace_pipeline.telemetry")


def create_resource(resource_config: Optional[ResourceConfig] = None) -> Resource:
    """
    Create the resource describing this process.

    Configured attributes are merged over the SDK defaults and any
    OTEL_RESOURCE_ATTRIBUTES from the environment.
    """
    if resource_config is None:
        return Resource.create()
    return Resource.create(
        resource_config.attributes, schema_url=resource_config.schema_url
    )


class TelemetrySDK:
    """
    A resolved tracing setup.

    Attributes:
        tracer_provider: The provider spans should be created from
    """

    def __init__(
        self,
        tracer_provider: trace.TracerProvider,
        shutdown: ShutdownFunc = noop_shutdown,
    ):
        self.tracer_provider = tracer_provider
        self._shutdown = shutdown

    def get_tracer(self, name: str = SERVICE_NAME) -> Tracer:
        return self.tracer_provider.get_tracer(name)

    def shutdown(self) -> None:
        """
        Flush and close every span processor and exporter.

        Raises:
            AggregatedError: If one or more processors failed to shut down
        """
        self._shutdown()


def new_sdk(
    config: Optional[Config] = None, resource: Optional[Resource] = None
) -> TelemetrySDK:
    """
    Build a TelemetrySDK from configuration.

    Args:
        config: The loaded configuration; None yields a no-op SDK
        resource: Resource to attach; built from config.resource when omitted

    Returns:
        The resolved SDK

    Raises:
        AggregatedError: If the tracing configuration is invalid
    """
    if config is None or config.disabled:
        logger.debug("Tracing disabled, using no-op SDK")
        return TelemetrySDK(trace.NoOpTracerProvider())

    if resource is None:
        resource = create_resource(config.resource)

    provider, shutdown, error = resolve_pipeline(config.tracer_provider, resource)
    if error is not None:
        raise error
    return TelemetrySDK(provider, shutdown)


def configure_tracing(config: Optional[Config] = None) -> TelemetrySDK:
    """
    Resolve the tracing configuration and install it globally.

    The global tracer provider can only be set once per process; the
    OpenTelemetry API logs a warning and ignores later attempts.
    """
    sdk = new_sdk(config)
    trace.set_tracer_provider(sdk.tracer_provider)
    return sdk


def get_tracer() -> Tracer:
    return trace.get_tracer(SERVICE_NAME)
