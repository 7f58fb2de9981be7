#!/usr/bin/env python3
"""
Submission client - runs one driver on Kubernetes.

Builds the driver config map, assembles the driver pod, submits both through
``ResourceSubmitter`` and optionally blocks on the driver pod's
``CompletionGate`` until the application terminates.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
from typing import Optional

from .assembler import WorkloadAssembler
from .base import ControlPlaneClient, DeploymentResult, ResolvedWorkloadSpec
from .config_artifact import ConfigArtifactBuilder
from .submitter import ResourceSubmitter
from .watcher import CompletionGate


logger = logging.getLogger(__name__)

DEFAULT_REPORT_INTERVAL = 1.0


class SubmissionClient:
    """
    Submits a resolved driver workload.

    Args:
        control_plane: Client for the Kubernetes API server
        app_id: Generated application id
        app_name: Display name of the application
        resource_prefix: Normalised prefix for resource names
    """

    def __init__(
        self,
        control_plane: ControlPlaneClient,
        app_id: str,
        app_name: str,
        resource_prefix: str,
    ):
        self.control_plane = control_plane
        self.app_id = app_id
        self.app_name = app_name
        self.resource_prefix = resource_prefix

    def deploy(
        self,
        spec: ResolvedWorkloadSpec,
        wait_for_completion: bool = False,
        progress_interval: Optional[float] = None,
    ) -> str:
        """Submit ``spec`` and return the application id."""
        return self.submit(spec, wait_for_completion, progress_interval).app_id

    def submit(
        self,
        spec: ResolvedWorkloadSpec,
        wait_for_completion: bool = False,
        progress_interval: Optional[float] = None,
    ) -> DeploymentResult:
        """
        Submit ``spec``; when ``wait_for_completion`` is set, block until the
        driver pod terminates.

        There is no timeout. A driver that never terminates blocks this call
        until the watch is closed.

        Raises:
            MissingRequiredPropertyError: Before anything is created
            WatchError: Before anything is created
            SubmissionError: With compensation already attempted
        """
        artifact = ConfigArtifactBuilder.build(self.resource_prefix, spec.system_properties)
        assembled = WorkloadAssembler.assemble(
            spec.template, spec.system_properties, artifact.name
        )
        dependents = list(spec.dependent_resources) + [artifact.to_manifest()]
        # One gate per submission; it only ever sees its own pod's events
        gate = CompletionGate(self.app_id)

        result = ResourceSubmitter(self.control_plane).submit(
            assembled.pod, dependents, gate.handle_event, gate.handle_close
        )
        result.app_id = self.app_id

        with result.subscription:
            if wait_for_completion:
                logger.info("Waiting for application %s to finish...", self.app_name)
                result.state = gate.await_terminal(
                    progress_interval or DEFAULT_REPORT_INTERVAL
                )
                logger.info("Application %s finished.", self.app_name)
            else:
                logger.info("Deployed Spark application %s into Kubernetes.", self.app_name)
        return result
