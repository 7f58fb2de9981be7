#!/usr/bin/env python3
"""
Utility functions for kubesubmit CLI

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from kubesubmit.core.errors import ErrorHandler, set_error_handler
from kubesubmit.deployment.base import DeploymentResult


# Initialize Rich console
console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Setup Rich logging configuration and unified error handler."""
    log_level = logging.DEBUG if verbose else logging.INFO

    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=verbose,
        markup=False,
        rich_tracebacks=True,
    )

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[rich_handler],
    )

    # The kubernetes client logs every request at DEBUG
    if not verbose:
        logging.getLogger("kubernetes").setLevel(logging.WARNING)

    error_handler = ErrorHandler(console=console, verbose=verbose)
    set_error_handler(error_handler)


def build_cli_overrides(
    spark_conf: Dict[str, str],
    namespace: Optional[str] = None,
    kubeconfig: Optional[str] = None,
    image: Optional[str] = None,
    app_name: Optional[str] = None,
    wait: Optional[bool] = None,
    report_interval: Optional[float] = None,
    extra_resources: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Collect CLI options that were actually given into a config overlay."""
    overrides: Dict[str, Any] = {}
    if spark_conf:
        overrides["spark_conf"] = dict(spark_conf)
    for key, value in (
        ("namespace", namespace),
        ("kubeconfig", kubeconfig),
        ("image", image),
        ("app_name", app_name),
        ("wait_for_completion", wait),
        ("report_interval", report_interval),
    ):
        if value is not None:
            overrides[key] = value
    if extra_resources:
        overrides["extra_resources"] = list(extra_resources)
    return overrides


def display_result_table(result: DeploymentResult) -> None:
    """Display created resources in a table."""
    table = Table(title="Submitted Resources", show_header=True, header_style="bold magenta")
    table.add_column("Kind", style="cyan")
    table.add_column("Name")
    table.add_column("UID", style="dim")

    table.add_row(result.primary.kind, result.primary.name, result.primary.uid or "")
    for dependent in result.dependents:
        table.add_row(dependent.kind, dependent.name, dependent.uid or "")

    console.print(table)
