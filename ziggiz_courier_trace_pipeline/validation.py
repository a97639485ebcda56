# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Stateless validation checks for pipeline configuration values

# Standard library imports
from typing import Optional, Sequence

# Local/package imports
from ziggiz_courier_trace_pipeline.errors import ConfigurationError


def validate_non_negative(
    name: str, value: Optional[int]
) -> Optional[ConfigurationError]:
    """
    Check that an optional numeric field is not negative.

    Args:
        name: Human readable field name used in the failure message
        value: The configured value, or None when the field was not set

    Returns:
        A ConfigurationError such as "invalid batch size -1", or None if the
        value is absent or valid
    """
    if value is not None and value < 0:
        return ConfigurationError(f"invalid {name} {value}")
    return None


def validate_choice(
    kind: str, value: str, choices: Sequence[str]
) -> Optional[ConfigurationError]:
    """
    Check that an enumerated string field holds one of the supported values.

    Returns:
        A ConfigurationError such as 'unsupported protocol "http/invalid"',
        or None if the value is supported
    """
    if value not in choices:
        return ConfigurationError(f'unsupported {kind} "{value}"')
    return None
