# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Main entry point: validate a trace pipeline configuration and optionally
# send a test span through it

# Standard library imports
import argparse
import logging
import sys

from typing import Optional

# Local/package imports
from ziggiz_courier_trace_pipeline.config import Config, configure_logging, load_config
from ziggiz_courier_trace_pipeline.errors import AggregatedError
from ziggiz_courier_trace_pipeline.telemetry import new_sdk


def setup_logging(log_level: str = "INFO", config: Optional[Config] = None) -> None:
    """
    Configure logging with appropriate formatters and handlers.

    Args:
        log_level: The logging level to set (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        config: Optional configuration object to use for logging setup
    """
    if config:
        configure_logging(config)
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

        formatter = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        # Exporter transports are chatty at DEBUG
        logging.getLogger("grpc").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)


def run_pipeline(config: Config, test_span_name: Optional[str] = None) -> None:
    """
    Resolve the configured pipeline, optionally emit one span, then shut it down.

    Args:
        config: The loaded configuration
        test_span_name: Name of a span to send through the pipeline, if any

    Raises:
        AggregatedError: If the configuration is invalid or shutdown fails
    """
    logger = logging.getLogger("ziggiz_courier_trace_pipeline.main")

    sdk = new_sdk(config)
    try:
        if test_span_name:
            tracer = sdk.get_tracer()
            with tracer.start_as_current_span(test_span_name):
                logger.info("Emitted test span", extra={"span_name": test_span_name})
    finally:
        sdk.shutdown()

    logger.info("Trace pipeline configuration is valid")


def log_configuration_errors(error: AggregatedError) -> None:
    logger = logging.getLogger("ziggiz_courier_trace_pipeline.main")
    logger.error(
        "Invalid trace pipeline configuration",
        extra={"error_count": len(error.messages)},
    )
    for message in error.messages:
        logger.error(message)


def main() -> None:
    """
    Main entry point.
    Parses command-line arguments, sets up logging and resolves the pipeline.
    """
    parser = argparse.ArgumentParser(description="Ziggiz Courier Trace Pipeline")
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (overrides config file)",
    )
    parser.add_argument(
        "--emit-test-span",
        type=str,
        metavar="NAME",
        help="Send a single span with this name through the pipeline",
    )

    args = parser.parse_args()

    try:
        config = load_config(args.config if args.config else None)

        if args.log_level:
            config.log_level = args.log_level

        setup_logging(config=config)
        logger = logging.getLogger("ziggiz_courier_trace_pipeline.main")

        if args.config:
            logger.info(f"Loaded configuration from {args.config}")
        else:
            logger.info("Using default or automatically detected configuration")

        run_pipeline(config, args.emit_test_span)
    except AggregatedError as e:
        if not logging.root.handlers:
            setup_logging("ERROR")
        log_configuration_errors(e)
        sys.exit(1)
    except Exception as e:
        # Setup basic logging if we couldn't load the configuration
        if not logging.root.handlers:
            setup_logging("ERROR")
        logger = logging.getLogger("ziggiz_courier_trace_pipeline.main")
        logger.exception(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
