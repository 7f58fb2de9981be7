"""
Orchestration layer for kubesubmit workflows.

Sits between the CLI (presentation) and the deployment layer.

Architecture:
- SubmitOrchestrator: Names, resolves and submits one application

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from .submit_orchestrator import SubmitOrchestrator

__all__ = ["SubmitOrchestrator"]
