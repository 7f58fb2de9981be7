#!/usr/bin/env python3
"""
Constants and configuration for kubesubmit CLI

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""


# Exit codes
class ExitCode:
    """Exit codes for CLI commands."""

    SUCCESS = 0
    FAILURE = 1
    APP_FAILURE = 2
    SUBMIT_FAILURE = 3
    INVALID_ARGS = 4
