# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Client-side TLS trust material for OTLP exporters

# Standard library imports
import logging
import ssl

from pathlib import Path
from typing import Union

# Third-party imports
import grpc

# Local/package imports
from ziggiz_courier_trace_pipeline.errors import CredentialsError

# The gRPC and HTTP transports report an unparsable bundle differently.
GRPC_APPEND_FAILURE = "credentials: failed to append certificates"
HTTP_APPEND_FAILURE = "failed to append certificate to the cert pool"

logger = logging.getLogger("ziggiz_courier_trace_pipeline.tls")


class ClientTLSBuilder:
    """
    Helper class to load trust roots for exporter connections.

    A certificate path is read once and parsed with the ssl module; a file
    that holds no usable certificate is rejected before any transport is
    created.
    """

    @staticmethod
    def create_client_context(cafile: Union[str, Path]) -> ssl.SSLContext:
        """
        Create a client SSL context trusting only the given bundle.

        Args:
            cafile: Path to a PEM encoded certificate bundle

        Returns:
            The configured SSL context

        Raises:
            OSError: If the file cannot be read
            ssl.SSLError: If the file holds no valid certificate
        """
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.load_verify_locations(cafile=str(cafile))
        return context

    @classmethod
    def load_grpc_credentials(cls, cafile: Union[str, Path]) -> grpc.ChannelCredentials:
        """
        Build gRPC channel credentials from a certificate bundle.

        Raises:
            CredentialsError: If the bundle cannot be read or parsed
        """
        try:
            cls.create_client_context(cafile)
            root_certificates = Path(cafile).read_bytes()
        except ssl.SSLError as e:
            logger.debug(
                "Rejected certificate bundle", extra={"path": str(cafile), "error": e}
            )
            raise CredentialsError(GRPC_APPEND_FAILURE) from e
        except OSError as e:
            raise CredentialsError(str(e)) from e
        return grpc.ssl_channel_credentials(root_certificates=root_certificates)

    @classmethod
    def load_http_certificate(cls, cafile: Union[str, Path]) -> str:
        """
        Check a certificate bundle for use by the HTTP transport.

        Returns:
            The bundle path, ready to hand to the HTTP exporter

        Raises:
            CredentialsError: If the bundle cannot be read or parsed
        """
        try:
            cls.create_client_context(cafile)
        except ssl.SSLError as e:
            logger.debug(
                "Rejected certificate bundle", extra={"path": str(cafile), "error": e}
            )
            raise CredentialsError(HTTP_APPEND_FAILURE) from e
        except OSError as e:
            raise CredentialsError(str(e)) from e
        return str(cafile)
