# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Span exporter resolution
#
# Turns a SpanExporterConfig into a live SDK span exporter:
#   - console: ConsoleSpanExporter
#   - otlp + grpc: OTLP/gRPC exporter
#   - otlp + http/protobuf or http/json: OTLP/HTTP exporter
#
# OTLP settings are resolved in a fixed order (protocol, compression, timeout,
# endpoint, trust material) and the first failing step stops resolution,
# since later steps depend on the transport picked by the earlier ones.

# Standard library imports
import logging

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import SplitResult, urlsplit, urlunsplit

# Third-party imports
import grpc

from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
    OTLPSpanExporter as GRPCSpanExporter,
)
from opentelemetry.exporter.otlp.proto.http import Compression as HTTPCompression
from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
    OTLPSpanExporter as HTTPSpanExporter,
)
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SpanExporter

# Local/package imports
from ziggiz_courier_trace_pipeline.config import (
    ExporterKind,
    NameStringValuePair,
    OTLPExporterConfig,
    SpanExporterConfig,
)
from ziggiz_courier_trace_pipeline.errors import ConfigurationError, EndpointError
from ziggiz_courier_trace_pipeline.tls import ClientTLSBuilder
from ziggiz_courier_trace_pipeline.validation import (
    validate_choice,
    validate_non_negative,
)

PROTOCOL_GRPC = "grpc"
PROTOCOL_HTTP_PROTOBUF = "http/protobuf"
PROTOCOL_HTTP_JSON = "http/json"
DEFAULT_PROTOCOL = PROTOCOL_HTTP_PROTOBUF

COMPRESSION_GZIP = "gzip"
COMPRESSION_NONE = "none"
DEFAULT_COMPRESSION = COMPRESSION_NONE

logger = logging.getLogger("ziggiz_courier_trace_pipeline.exporters")


def parse_endpoint(endpoint: str, secure: bool) -> SplitResult:
    """
    Parse a configured endpoint into URL components.

    A bare "host:port" is given a scheme first: https when trust material is
    configured, otherwise http.

    Args:
        endpoint: The endpoint as configured
        secure: Whether the exporter has a certificate configured

    Returns:
        The split URL

    Raises:
        EndpointError: If the endpoint is not a usable absolute URL
    """
    if not endpoint or any(c.isspace() for c in endpoint):
        raise EndpointError(endpoint, "invalid URI for request")

    url = endpoint
    if "://" not in url:
        url = f"{'https' if secure else 'http'}://{url}"

    try:
        parts = urlsplit(url)
        # Accessing the port validates it
        parts.port
    except ValueError as e:
        raise EndpointError(endpoint, str(e)) from e

    if not parts.scheme or not parts.hostname:
        raise EndpointError(endpoint, "invalid URI for request")
    return parts


def headers_to_pairs(headers: Sequence[NameStringValuePair]) -> Tuple[Tuple[str, str], ...]:
    """Headers as ordered (name, value) pairs, duplicates kept."""
    return tuple((header.name, header.value or "") for header in headers)


def headers_to_dict(headers: Sequence[NameStringValuePair]) -> Dict[str, str]:
    """
    Headers as a mapping. Values of repeated names are joined with ", ",
    which HTTP treats the same as sending the header several times.
    """
    merged: Dict[str, List[str]] = {}
    for name, value in headers_to_pairs(headers):
        merged.setdefault(name, []).append(value)
    return {name: ", ".join(values) for name, values in merged.items()}


class OTLPTransport:
    """
    Base class for an OTLP transport entry in the exporter registry.

    Each transport owns its compression table, its default endpoint and the
    way it turns a configured endpoint and certificate into exporter
    arguments.
    """

    name: str = ""
    default_endpoint: str = ""
    compressions: Mapping[str, Any] = {}

    def resolve_compression(self, compression: Optional[str]) -> Any:
        value = compression if compression is not None else DEFAULT_COMPRESSION
        error = validate_choice("compression", value, list(self.compressions))
        if error:
            raise error
        return self.compressions[value]

    def create(self, otlp: OTLPExporterConfig) -> SpanExporter:
        raise NotImplementedError


class GRPCTransport(OTLPTransport):
    """OTLP over gRPC. Endpoints are "host:port" targets."""

    name = PROTOCOL_GRPC
    default_endpoint = "localhost:4317"
    compressions = {
        COMPRESSION_GZIP: grpc.Compression.Gzip,
        COMPRESSION_NONE: grpc.Compression.NoCompression,
    }

    def create(self, otlp: OTLPExporterConfig) -> SpanExporter:
        kwargs: Dict[str, Any] = {
            "compression": self.resolve_compression(otlp.compression)
        }
        kwargs.update(resolve_timeout(otlp.timeout))

        if otlp.endpoint is not None:
            parts = parse_endpoint(otlp.endpoint, secure=otlp.certificate is not None)
            kwargs["endpoint"] = parts.netloc
            kwargs["insecure"] = parts.scheme == "http"
        else:
            kwargs["endpoint"] = self.default_endpoint

        if otlp.certificate is not None:
            kwargs["credentials"] = ClientTLSBuilder.load_grpc_credentials(
                otlp.certificate
            )

        if otlp.headers:
            kwargs["headers"] = headers_to_pairs(otlp.headers)

        logger.debug(
            "Creating OTLP gRPC span exporter",
            extra={
                "endpoint": kwargs["endpoint"],
                "insecure": kwargs.get("insecure"),
                "has_certificate": otlp.certificate is not None,
            },
        )
        return GRPCSpanExporter(**kwargs)


class HTTPTransport(OTLPTransport):
    """OTLP over HTTP. Endpoints are full URLs ending in the traces path."""

    default_endpoint = "http://localhost:4318/v1/traces"
    default_path = "/v1/traces"
    compressions = {
        COMPRESSION_GZIP: HTTPCompression.Gzip,
        COMPRESSION_NONE: HTTPCompression.NoCompression,
    }

    def __init__(self, name: str = PROTOCOL_HTTP_PROTOBUF):
        self.name = name

    def resolve_url(self, endpoint: Optional[str], secure: bool) -> str:
        if endpoint is None:
            return self.default_endpoint
        parts = parse_endpoint(endpoint, secure=secure)
        if not parts.path:
            parts = parts._replace(path=self.default_path)
        return urlunsplit(parts)

    def create(self, otlp: OTLPExporterConfig) -> SpanExporter:
        kwargs: Dict[str, Any] = {
            "compression": self.resolve_compression(otlp.compression)
        }
        kwargs.update(resolve_timeout(otlp.timeout))
        kwargs["endpoint"] = self.resolve_url(
            otlp.endpoint, secure=otlp.certificate is not None
        )

        if otlp.certificate is not None:
            kwargs["certificate_file"] = ClientTLSBuilder.load_http_certificate(
                otlp.certificate
            )

        if otlp.headers:
            kwargs["headers"] = headers_to_dict(otlp.headers)

        if self.name == PROTOCOL_HTTP_JSON:
            # TODO: switch to a JSON payload encoder once the OTLP/HTTP exporter ships one
            logger.warning(
                "OTLP/HTTP exporter only encodes protobuf payloads",
                extra={"protocol": self.name, "endpoint": kwargs["endpoint"]},
            )

        logger.debug(
            "Creating OTLP HTTP span exporter",
            extra={
                "protocol": self.name,
                "endpoint": kwargs["endpoint"],
                "has_certificate": otlp.certificate is not None,
            },
        )
        return HTTPSpanExporter(**kwargs)


def resolve_timeout(timeout: Optional[int]) -> Dict[str, float]:
    """
    Exporter timeout argument for a timeout given in milliseconds.

    Zero or unset keeps the exporter default.

    Raises:
        ConfigurationError: If the timeout is negative
    """
    error = validate_non_negative("timeout", timeout)
    if error:
        raise error
    if timeout:
        return {"timeout": timeout / 1000}
    return {}


TRANSPORTS: Dict[str, OTLPTransport] = {
    PROTOCOL_GRPC: GRPCTransport(),
    PROTOCOL_HTTP_PROTOBUF: HTTPTransport(PROTOCOL_HTTP_PROTOBUF),
    PROTOCOL_HTTP_JSON: HTTPTransport(PROTOCOL_HTTP_JSON),
}


def resolve_transport(protocol: Optional[str]) -> OTLPTransport:
    value = protocol if protocol is not None else DEFAULT_PROTOCOL
    error = validate_choice("protocol", value, list(TRANSPORTS))
    if error:
        raise error
    return TRANSPORTS[value]


def resolve_span_exporter(exporter: SpanExporterConfig) -> SpanExporter:
    """
    Create the span exporter described by an exporter configuration.

    Args:
        exporter: The exporter configuration; exactly one variant must be set

    Returns:
        A live span exporter

    Raises:
        ConfigurationError: If zero or several exporters are set, or an OTLP
            setting is unsupported
        EndpointError: If the OTLP endpoint is malformed
        CredentialsError: If the OTLP certificate cannot be loaded
    """
    kinds = exporter.populated
    if len(kinds) > 1:
        raise ConfigurationError("must not specify multiple exporters")
    if not kinds:
        raise ConfigurationError("no valid span exporter")

    if kinds[0] is ExporterKind.CONSOLE:
        logger.debug("Creating console span exporter")
        return ConsoleSpanExporter()

    transport = resolve_transport(exporter.otlp.protocol)
    return transport.create(exporter.otlp)
