# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Error types and the error aggregator used during pipeline resolution
#
# Resolution reports every violated constraint at once. Individual checks
# raise (or return) a TracePipelineError, and an ErrorAggregator collects them
# into a single AggregatedError whose message lists every failure in the
# order the checks ran.

# Standard library imports
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional


class TracePipelineError(Exception):
    """Base class for all errors raised while resolving a tracing pipeline."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TracePipelineError):
            return NotImplemented
        return type(self) is type(other) and self.messages == other.messages

    def __hash__(self) -> int:
        return hash((type(self).__name__, tuple(self.messages)))

    @property
    def messages(self) -> List[str]:
        """Flattened list of failure messages carried by this error."""
        return [self.message]


class ConfigurationError(TracePipelineError):
    """Raised for structural violations and invalid field values."""


class EndpointError(TracePipelineError):
    """
    Raised when an exporter endpoint cannot be parsed as a URL.

    Attributes:
        url (str): The endpoint string as configured.
        reason (str): Why the endpoint was rejected.
    """

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f'parse "{url}": {reason}')


class CredentialsError(TracePipelineError):
    """
    Raised when TLS trust material cannot be loaded.

    The message always starts with "could not create client tls credentials"
    followed by the underlying cause.
    """

    def __init__(self, cause: str):
        self.cause = cause
        super().__init__(f"could not create client tls credentials: {cause}")


class AggregatedError(TracePipelineError):
    """
    A single error standing for an ordered list of independent failures.

    Two aggregated errors are equal when their flattened messages are equal
    and in the same order. Nested aggregates flatten into their parent's
    message list.
    """

    def __init__(self, errors: Iterable[Exception]):
        self.errors: List[Exception] = list(errors)
        super().__init__("\n".join(str(error) for error in self.errors))

    @property
    def messages(self) -> List[str]:
        flattened: List[str] = []
        for error in self.errors:
            if isinstance(error, TracePipelineError):
                flattened.extend(error.messages)
            else:
                flattened.append(str(error))
        return flattened

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[Exception]:
        return iter(self.errors)

    def __repr__(self) -> str:
        return f"AggregatedError({self.messages!r})"


class ErrorAggregator:
    """
    Accumulates failures from independent checks.

    Failures are kept in the order they were added. ``result()`` returns None
    when nothing was added, otherwise an AggregatedError holding every
    failure.
    """

    def __init__(self) -> None:
        self._errors: List[Exception] = []

    def add(self, error: Optional[Exception]) -> None:
        """Record a failure. None is ignored so check results can be passed directly."""
        if error is not None:
            self._errors.append(error)

    def extend(self, errors: Iterable[Optional[Exception]]) -> None:
        for error in errors:
            self.add(error)

    @contextmanager
    def capture(self) -> Iterator[None]:
        """Record any TracePipelineError raised inside the block instead of propagating it."""
        try:
            yield
        except TracePipelineError as e:
            self.add(e)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def result(self) -> Optional[AggregatedError]:
        if not self._errors:
            return None
        return AggregatedError(self._errors)

    def raise_if_any(self) -> None:
        error = self.result()
        if error is not None:
            raise error
