"""
Deployment layer for driver submission on Kubernetes.

Architecture:
- ConfigArtifactBuilder: Driver config map from system properties
- WorkloadAssembler: Final driver pod from its template
- link: Owner references from dependents to the driver pod
- ResourceSubmitter: Watch, create, link, compensate
- CompletionGate: Blocking wait on driver pod events
- SubmissionClient: deploy(spec, wait_for_completion, progress_interval)

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from .assembler import WorkloadAssembler
from .base import (
    CompletionState,
    ControlPlaneClient,
    DeploymentResult,
    OwnerLink,
    ResolvedWorkloadSpec,
    ResourceIdentity,
    WatchSubscription,
    WorkloadTemplate,
)
from .client import SubmissionClient
from .config_artifact import ConfigArtifact, ConfigArtifactBuilder
from .ownership import link
from .submitter import ResourceSubmitter
from .watcher import CompletionGate

__all__ = [
    "CompletionGate",
    "CompletionState",
    "ConfigArtifact",
    "ConfigArtifactBuilder",
    "ControlPlaneClient",
    "DeploymentResult",
    "OwnerLink",
    "ResolvedWorkloadSpec",
    "ResourceIdentity",
    "ResourceSubmitter",
    "SubmissionClient",
    "WatchSubscription",
    "WorkloadAssembler",
    "WorkloadTemplate",
    "link",
]
