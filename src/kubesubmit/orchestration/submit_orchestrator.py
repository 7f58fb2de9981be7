#!/usr/bin/env python3
"""
Submit Orchestrator - Coordinates one application submission.

Generates the application id and resource prefix, resolves the driver
templates, and hands the resolved workload to ``SubmissionClient``.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
from typing import Any, Dict, Optional, Sequence

from rich.console import Console as RichConsole

from kubesubmit.core.naming import ResourceNamer
from kubesubmit.deployment.base import ControlPlaneClient, DeploymentResult
from kubesubmit.deployment.client import SubmissionClient
from kubesubmit.deployment.template import TemplateResolver
from kubesubmit.request import ClientArguments


logger = logging.getLogger(__name__)


class SubmitOrchestrator:
    """
    Orchestrates the submit workflow.

    Responsibilities:
    - Name the application and its resources
    - Resolve the driver workload from the request and configuration
    - Connect to the cluster (unless a control plane is injected)
    - Delegate submission and waiting to SubmissionClient
    """

    def __init__(
        self,
        config: Dict[str, Any],
        control_plane: Optional[ControlPlaneClient] = None,
        namer: Optional[ResourceNamer] = None,
        resolver: Optional[TemplateResolver] = None,
        console: Optional[RichConsole] = None,
    ):
        """
        Initialize submit orchestrator.

        Args:
            config: Complete configuration from ConfigLoader.load_submit_config
            control_plane: Cluster client; a KubernetesControlPlane is created
                on first use when omitted
            namer: Application id and resource prefix generator
            resolver: Driver template resolver
            console: Rich console for user-facing output
        """
        self.config = config
        self._control_plane = control_plane
        self.namer = namer or ResourceNamer()
        self.resolver = resolver or TemplateResolver()
        self.rich_console = console or RichConsole()

    @property
    def control_plane(self) -> ControlPlaneClient:
        if self._control_plane is None:
            from kubesubmit.deployment.kubernetes import KubernetesControlPlane

            self._control_plane = KubernetesControlPlane(
                namespace=self.config["namespace"],
                kubeconfig=self.config.get("kubeconfig"),
            )
        return self._control_plane

    def start(self, args: Sequence[str]) -> DeploymentResult:
        """Parse ``--flag value`` pairs and submit."""
        return self.execute(ClientArguments.from_command_line_args(args))

    def execute(self, arguments: ClientArguments) -> DeploymentResult:
        """
        Submit one application.

        Returns:
            DeploymentResult with the application id, created resources and,
            when waiting, the terminal state
        """
        app_name = self.config["app_name"]
        app_id = self.namer.app_id()
        resource_prefix = self.namer.resource_name_prefix(app_name)
        wait = bool(self.config.get("wait_for_completion"))

        self.rich_console.print(f"\n[dim]{'=' * 60}[/dim]")
        self.rich_console.print(f"[bold blue]🚀 SUBMIT {app_name}[/bold blue]")
        self.rich_console.print(f"[dim]{'=' * 60}[/dim]\n")
        logger.debug("Application id %s, resource prefix %s", app_id, resource_prefix)

        spec = self.resolver.resolve(arguments, self.config, app_id, resource_prefix)
        client = SubmissionClient(self.control_plane, app_id, app_name, resource_prefix)
        result = client.submit(
            spec,
            wait_for_completion=wait,
            progress_interval=self.config["report_interval"] if wait else None,
        )

        self.rich_console.print(f"[green]✓ Driver pod: {result.primary.name}[/green]")
        for dependent in result.dependents:
            self.rich_console.print(f"  {dependent.kind}: {dependent.name}")
        if result.state is not None:
            style = "green" if result.is_success else "red"
            self.rich_console.print(f"[{style}]Final state: {result.state.value}[/{style}]")
        return result
