#!/usr/bin/env python3
"""
CLI Package for kubesubmit

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from .app import app, cli_main
from .constants import ExitCode
from .utils import build_cli_overrides, display_result_table, setup_logging

__all__ = [
    "app",
    "cli_main",
    "ExitCode",
    "setup_logging",
    "build_cli_overrides",
    "display_result_table",
]
