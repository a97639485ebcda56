# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Tracer provider assembly from a pipeline configuration

# Standard library imports
import logging
import threading

from typing import Callable, List, NamedTuple, Optional, Sequence

# Third-party imports
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider

# Local/package imports
from ziggiz_courier_trace_pipeline.config import PipelineConfig
from ziggiz_courier_trace_pipeline.errors import AggregatedError, ErrorAggregator
from ziggiz_courier_trace_pipeline.processors import resolve_span_processor

logger = logging.getLogger("ziggiz_courier_trace_pipeline.pipeline")

ShutdownFunc = Callable[[], None]


def noop_shutdown() -> None:
    """Shutdown function for pipelines that own nothing."""


class PipelineShutdown:
    """
    Shuts down the processors of a pipeline, in construction order.

    Only the first call does any work. Every processor is shut down even if
    an earlier one fails; failures are raised together afterwards.
    """

    def __init__(self, processors: Sequence[SpanProcessor]):
        self._processors: List[SpanProcessor] = list(processors)
        self._lock = threading.Lock()
        self._done = False

    def __call__(self) -> None:
        with self._lock:
            if self._done:
                return
            self._done = True
        shutdown_processors(self._processors).raise_if_any()


def shutdown_processors(processors: Sequence[SpanProcessor]) -> ErrorAggregator:
    """Shut down each processor in order, collecting failures instead of stopping."""
    errors = ErrorAggregator()
    for processor in processors:
        try:
            processor.shutdown()
        except Exception as e:
            logger.warning(
                "Span processor failed to shut down",
                extra={"processor": type(processor).__name__, "error": str(e)},
            )
            errors.add(e)
    return errors


class ResolvedPipeline(NamedTuple):
    """
    Result of resolving a pipeline configuration.

    ``provider`` and ``shutdown`` are always usable. When ``error`` is set the
    provider is a no-op provider and nothing was left running.
    """

    provider: trace.TracerProvider
    shutdown: ShutdownFunc
    error: Optional[AggregatedError]


def resolve_pipeline(
    config: Optional[PipelineConfig], resource: Optional[Resource] = None
) -> ResolvedPipeline:
    """
    Build a tracer provider from a pipeline configuration.

    Args:
        config: The pipeline configuration, or None when tracing is not configured
        resource: Resource attached to the provider

    Returns:
        A ResolvedPipeline of (provider, shutdown, error)
    """
    if config is None or not config.processors:
        logger.debug("No span processors configured, using no-op provider")
        return ResolvedPipeline(trace.NoOpTracerProvider(), noop_shutdown, None)

    errors = ErrorAggregator()
    processors: List[SpanProcessor] = []
    for index, processor_config in enumerate(config.processors):
        with errors.capture():
            processors.append(resolve_span_processor(processor_config))
            logger.debug(
                "Resolved span processor",
                extra={"index": index, "processor": type(processors[-1]).__name__},
            )

    if errors:
        # Tear down what sibling entries already built
        errors.extend(shutdown_processors(processors).result() or [])
        error = errors.result()
        logger.warning(
            "Tracer provider configuration is invalid, using no-op provider",
            extra={"errors": error.messages},
        )
        return ResolvedPipeline(trace.NoOpTracerProvider(), noop_shutdown, error)

    provider = TracerProvider(resource=resource, shutdown_on_exit=False)
    for processor in processors:
        provider.add_span_processor(processor)

    logger.info(
        "Tracer provider created", extra={"processor_count": len(processors)}
    )
    return ResolvedPipeline(provider, PipelineShutdown(processors), None)
