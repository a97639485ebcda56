# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Span processor resolution
#
# Every check that applies to a processor entry runs, even after an earlier
# one failed, and all failures are raised together as one AggregatedError.

# Standard library imports
import logging

from typing import Dict, List, Optional, Tuple

# Third-party imports
from opentelemetry.sdk.trace import SpanProcessor
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)

# Local/package imports
from ziggiz_courier_trace_pipeline.config import (
    BatchSpanProcessorConfig,
    ProcessorKind,
    SpanExporterConfig,
    SpanProcessorConfig,
)
from ziggiz_courier_trace_pipeline.errors import (
    ConfigurationError,
    ErrorAggregator,
)
from ziggiz_courier_trace_pipeline.exporters import resolve_span_exporter
from ziggiz_courier_trace_pipeline.validation import validate_non_negative

logger = logging.getLogger("ziggiz_courier_trace_pipeline.processors")

# (message name, config attribute, BatchSpanProcessor argument), in check order
BATCH_SETTINGS: Tuple[Tuple[str, str, str], ...] = (
    ("batch size", "max_export_batch_size", "max_export_batch_size"),
    ("export timeout", "export_timeout", "export_timeout_millis"),
    ("queue size", "max_queue_size", "max_queue_size"),
    ("schedule delay", "schedule_delay", "schedule_delay_millis"),
)


def validate_batch_settings(batch: BatchSpanProcessorConfig) -> List[ConfigurationError]:
    """Check every numeric batch setting and return all failures, in order."""
    failures = []
    for label, attribute, _ in BATCH_SETTINGS:
        error = validate_non_negative(label, getattr(batch, attribute))
        if error:
            failures.append(error)
    return failures


def batch_processor_kwargs(batch: BatchSpanProcessorConfig) -> Dict[str, int]:
    """
    BatchSpanProcessor keyword arguments for the configured settings.

    Unset and zero values are left out so the SDK default (or its
    environment override) applies.
    """
    kwargs = {}
    for _, attribute, argument in BATCH_SETTINGS:
        value = getattr(batch, attribute)
        if value:
            kwargs[argument] = value
    return kwargs


def _build_exporter(
    errors: ErrorAggregator, exporter: SpanExporterConfig
) -> Optional[SpanExporter]:
    with errors.capture():
        return resolve_span_exporter(exporter)
    return None


def _discard(exporter: Optional[SpanExporter]) -> None:
    if exporter is not None:
        exporter.shutdown()


def _create_batch_processor(
    errors: ErrorAggregator, batch: BatchSpanProcessorConfig
) -> Optional[SpanProcessor]:
    errors.extend(validate_batch_settings(batch))
    exporter = _build_exporter(errors, batch.exporter)
    if errors:
        _discard(exporter)
        return None

    kwargs = batch_processor_kwargs(batch)
    try:
        processor = BatchSpanProcessor(exporter, **kwargs)
    except ValueError as e:
        # SDK rejects combinations such as a batch larger than the queue
        _discard(exporter)
        errors.add(ConfigurationError(str(e)))
        return None

    logger.debug(
        "Created batch span processor",
        extra={"exporter": type(exporter).__name__, **kwargs},
    )
    return processor


def _create_simple_processor(
    errors: ErrorAggregator, exporter_config: SpanExporterConfig
) -> Optional[SpanProcessor]:
    exporter = _build_exporter(errors, exporter_config)
    if exporter is None:
        return None
    logger.debug(
        "Created simple span processor",
        extra={"exporter": type(exporter).__name__},
    )
    return SimpleSpanProcessor(exporter)


def _check_all_variants(errors: ErrorAggregator, processor: SpanProcessorConfig) -> None:
    """Run the checks of every populated variant without keeping anything."""
    if processor.simple is not None:
        _discard(_build_exporter(errors, processor.simple.exporter))
    if processor.batch is not None:
        errors.extend(validate_batch_settings(processor.batch))
        _discard(_build_exporter(errors, processor.batch.exporter))


def resolve_span_processor(processor: SpanProcessorConfig) -> SpanProcessor:
    """
    Create the span processor described by a processor configuration.

    Args:
        processor: The processor configuration; exactly one of simple or
            batch must be set

    Returns:
        A live span processor wrapping its exporter

    Raises:
        AggregatedError: Holding every failure found for this entry
    """
    errors = ErrorAggregator()
    kinds = processor.populated

    if len(kinds) > 1:
        errors.add(ConfigurationError("must not specify multiple span processor type"))
        _check_all_variants(errors, processor)
        errors.raise_if_any()

    if not kinds:
        errors.add(
            ConfigurationError(
                "unsupported span processor type, must be one of simple or batch"
            )
        )
        errors.raise_if_any()

    if kinds[0] is ProcessorKind.SIMPLE:
        resolved = _create_simple_processor(errors, processor.simple.exporter)
    else:
        resolved = _create_batch_processor(errors, processor.batch)

    errors.raise_if_any()
    return resolved
