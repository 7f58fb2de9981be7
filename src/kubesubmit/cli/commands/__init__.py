#!/usr/bin/env python3
"""
CLI Commands Package for kubesubmit

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from .submit import submit

__all__ = ["submit"]
