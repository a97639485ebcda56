# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Tests for the __main__ module

# Standard library imports
import runpy

from unittest.mock import patch

# Third-party imports
import pytest


class TestMainModuleEntry:
    """Tests for running the package with python -m."""

    @pytest.mark.unit
    def test_main_module_calls_main(self):
        with patch("ziggiz_courier_trace_pipeline.main.main") as mock_main:
            runpy.run_module("ziggiz_courier_trace_pipeline", run_name="__main__")
        mock_main.assert_called_once()
