# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Pytest configuration file

# Standard library imports
import logging

from pathlib import Path

# Third-party imports
import pytest

TESTDATA = Path(__file__).parent / "testdata"


# Define test categories
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark a test as a unit test")
    config.addinivalue_line(
        "markers", "integration: mark a test as an integration test"
    )


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration after each test."""
    yield
    # Reset root logger after each test
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)  # Default level


@pytest.fixture
def ca_certificate() -> str:
    """Path to a valid PEM encoded CA certificate."""
    return str(TESTDATA / "ca.crt")


@pytest.fixture
def bad_certificate() -> str:
    """Path to a file that looks like PEM but holds no valid certificate."""
    return str(TESTDATA / "bad_cert.crt")


@pytest.fixture
def shutdown_after():
    """Collect processors or exporters created by a test and shut them down afterwards."""
    created = []
    yield created.append
    for item in created:
        if item is not None:
            item.shutdown()
