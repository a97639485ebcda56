# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Tests for tracer provider assembly

# Standard library imports
from unittest.mock import MagicMock, call, patch

# Third-party imports
import pytest

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider

# Local/package imports
from ziggiz_courier_trace_pipeline.config import (
    BatchSpanProcessorConfig,
    OTLPExporterConfig,
    PipelineConfig,
    SimpleSpanProcessorConfig,
    SpanExporterConfig,
    SpanProcessorConfig,
)
from ziggiz_courier_trace_pipeline.errors import AggregatedError, ConfigurationError
from ziggiz_courier_trace_pipeline.pipeline import (
    PipelineShutdown,
    ResolvedPipeline,
    noop_shutdown,
    resolve_pipeline,
)

RESOLVE_PROCESSOR = "ziggiz_courier_trace_pipeline.pipeline.resolve_span_processor"

CONSOLE = SpanExporterConfig(console={})

SIMPLE_CONSOLE = SpanProcessorConfig(
    simple=SimpleSpanProcessorConfig(exporter=CONSOLE)
)
BOTH_TYPES = SpanProcessorConfig(
    batch=BatchSpanProcessorConfig(), simple=SimpleSpanProcessorConfig()
)
MULTIPLE_EXPORTERS = SpanProcessorConfig(
    simple=SimpleSpanProcessorConfig(
        exporter=SpanExporterConfig(console={}, otlp=OTLPExporterConfig())
    )
)


@pytest.fixture
def resource() -> Resource:
    return Resource.create({"service.name": "pipeline-test"})


class TestResolvePipeline:
    """Tests for resolve_pipeline."""

    @pytest.mark.unit
    def test_no_tracer_provider_configured(self, resource):
        provider, shutdown, error = resolve_pipeline(None, resource)

        assert isinstance(provider, trace.NoOpTracerProvider)
        assert shutdown is noop_shutdown
        assert error is None
        shutdown()

    @pytest.mark.unit
    def test_no_processors_configured(self, resource):
        provider, shutdown, error = resolve_pipeline(PipelineConfig(), resource)

        assert isinstance(provider, trace.NoOpTracerProvider)
        assert error is None
        shutdown()

    @pytest.mark.unit
    def test_error_in_config(self, resource):
        provider, shutdown, error = resolve_pipeline(
            PipelineConfig(processors=[BOTH_TYPES]), resource
        )

        assert isinstance(provider, trace.NoOpTracerProvider)
        assert isinstance(error, AggregatedError)
        assert error.messages[0] == "must not specify multiple span processor type"
        shutdown()

    @pytest.mark.unit
    def test_multiple_errors_in_config(self, resource):
        provider, shutdown, error = resolve_pipeline(
            PipelineConfig(processors=[BOTH_TYPES, MULTIPLE_EXPORTERS]), resource
        )

        assert isinstance(provider, trace.NoOpTracerProvider)
        assert error.messages == [
            "must not specify multiple span processor type",
            "no valid span exporter",
            "no valid span exporter",
            "must not specify multiple exporters",
        ]
        shutdown()

    @pytest.mark.unit
    def test_sibling_failures_are_all_reported(self, resource):
        config = PipelineConfig(
            processors=[
                SpanProcessorConfig(
                    batch=BatchSpanProcessorConfig(
                        max_export_batch_size=-1,
                        export_timeout=-1,
                        max_queue_size=-1,
                        schedule_delay=-1,
                        exporter=CONSOLE,
                    )
                ),
                SIMPLE_CONSOLE,
                SpanProcessorConfig(
                    simple=SimpleSpanProcessorConfig(
                        exporter=SpanExporterConfig(
                            otlp=OTLPExporterConfig(compression="invalid")
                        )
                    )
                ),
            ]
        )

        _, _, error = resolve_pipeline(config, resource)

        assert error.messages == [
            "invalid batch size -1",
            "invalid export timeout -1",
            "invalid queue size -1",
            "invalid schedule delay -1",
            'unsupported compression "invalid"',
        ]

    @pytest.mark.unit
    def test_same_config_gives_same_errors(self, resource):
        config = PipelineConfig(processors=[BOTH_TYPES, MULTIPLE_EXPORTERS])

        first = resolve_pipeline(config, resource)
        second = resolve_pipeline(config, resource)

        assert first.error == second.error
        assert type(first.provider) is type(second.provider)

    @pytest.mark.unit
    def test_failure_shuts_down_built_siblings(self, resource):
        built = MagicMock()
        with patch(
            RESOLVE_PROCESSOR,
            side_effect=[built, AggregatedError([ConfigurationError("bad")])],
        ):
            provider, _, error = resolve_pipeline(
                PipelineConfig(processors=[SIMPLE_CONSOLE, SIMPLE_CONSOLE]), resource
            )

        built.shutdown.assert_called_once()
        assert isinstance(provider, trace.NoOpTracerProvider)
        assert error.messages == ["bad"]

    @pytest.mark.unit
    def test_cleanup_failures_are_reported(self, resource):
        built = MagicMock()
        built.shutdown.side_effect = RuntimeError("flush failed")
        with patch(
            RESOLVE_PROCESSOR,
            side_effect=[built, AggregatedError([ConfigurationError("bad")])],
        ):
            _, _, error = resolve_pipeline(
                PipelineConfig(processors=[SIMPLE_CONSOLE, SIMPLE_CONSOLE]), resource
            )

        assert error.messages == ["bad", "flush failed"]

    @pytest.mark.unit
    def test_valid_config_builds_provider(self, resource):
        result = resolve_pipeline(
            PipelineConfig(processors=[SIMPLE_CONSOLE]), resource
        )
        try:
            assert isinstance(result, ResolvedPipeline)
            assert isinstance(result.provider, TracerProvider)
            assert result.error is None
            assert result.provider.resource is resource
        finally:
            result.shutdown()

    @pytest.mark.unit
    def test_processors_keep_configured_order(self, resource):
        manager = MagicMock()
        first, second = manager.first, manager.second
        with patch(RESOLVE_PROCESSOR, side_effect=[first, second]):
            provider, shutdown, error = resolve_pipeline(
                PipelineConfig(processors=[SIMPLE_CONSOLE, SIMPLE_CONSOLE]), resource
            )
        assert error is None

        tracer = provider.get_tracer("order-test")
        with tracer.start_as_current_span("span"):
            pass
        shutdown()

        on_start = [c for c in manager.mock_calls if c[0].endswith(".on_start")]
        assert [c[0] for c in on_start] == ["first.on_start", "second.on_start"]
        shutdown_calls = [c for c in manager.mock_calls if c[0].endswith(".shutdown")]
        assert shutdown_calls == [call.first.shutdown(), call.second.shutdown()]


class TestPipelineShutdown:
    """Tests for PipelineShutdown."""

    @pytest.mark.unit
    def test_shuts_down_in_order_once(self):
        manager = MagicMock()
        shutdown = PipelineShutdown([manager.first, manager.second])

        shutdown()
        shutdown()

        assert manager.mock_calls == [call.first.shutdown(), call.second.shutdown()]

    @pytest.mark.unit
    def test_failures_are_aggregated(self):
        failing = MagicMock()
        failing.shutdown.side_effect = RuntimeError("boom")
        healthy = MagicMock()
        shutdown = PipelineShutdown([failing, healthy])

        with pytest.raises(AggregatedError) as excinfo:
            shutdown()

        assert excinfo.value.messages == ["boom"]
        healthy.shutdown.assert_called_once()

    @pytest.mark.unit
    def test_failed_shutdown_is_not_retried(self):
        failing = MagicMock()
        failing.shutdown.side_effect = RuntimeError("boom")
        shutdown = PipelineShutdown([failing])

        with pytest.raises(AggregatedError):
            shutdown()
        shutdown()

        failing.shutdown.assert_called_once()
