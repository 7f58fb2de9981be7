#!/usr/bin/env python3
"""
Resource submission with compensation.

Order matters:
1. Watch the driver pod by name before it exists, so the earliest events are
   not lost.
2. Create the driver pod and read back its uid.
3. Make the driver pod the owner of every dependent.
4. Create the dependents one by one.
5. If a dependent fails, delete the driver pod and raise. Dependents that were
   already created are not deleted individually; they are garbage-collected
   through their owner reference once the driver pod is gone.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from kubesubmit.core.errors import (
    CompensationError,
    SubmissionError,
    WatchError,
    create_error_context,
)

from .base import (
    ControlPlaneClient,
    DeploymentResult,
    Manifest,
    ResourceIdentity,
    WatchEventHandler,
)
from .ownership import link


logger = logging.getLogger(__name__)


@dataclass
class CreationOutcome:
    """What happened while creating the dependents."""

    created: List[ResourceIdentity] = field(default_factory=list)
    failed: Optional[Manifest] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _describe(resource: Manifest) -> str:
    metadata = resource.get("metadata") or {}
    return f"{resource.get('kind')}/{metadata.get('name')}"


class ResourceSubmitter:
    """Creates the driver pod and its dependents on the control plane."""

    def __init__(self, client: ControlPlaneClient):
        self.client = client

    def submit(
        self,
        primary: Manifest,
        dependents: Sequence[Manifest],
        on_event: WatchEventHandler,
        on_close: Callable[[], None],
    ) -> DeploymentResult:
        """
        Submit ``primary`` and ``dependents``.

        Returns:
            DeploymentResult whose ``subscription`` is still open

        Raises:
            WatchError: If the watch cannot be opened; nothing was created
            SubmissionError: If a create call fails; the driver pod has been
                deleted when it was already created
        """
        pod_name = primary["metadata"]["name"]
        context = create_error_context(
            operation="submit",
            component="ResourceSubmitter",
            resource_name=pod_name,
            namespace=self.client.namespace,
        )

        try:
            subscription = self.client.watch_pod(pod_name, on_event, on_close)
        except WatchError:
            raise
        except Exception as e:
            raise WatchError(
                f"Failed to watch driver pod {pod_name}: {e}", context=context, cause=e
            ) from e

        try:
            created = self.client.create_pod(primary)
        except Exception as e:
            subscription.close()
            raise SubmissionError(
                f"Failed to create driver pod {pod_name}: {e}", context=context, cause=e
            ) from e

        owner = ResourceIdentity.from_manifest(created)
        logger.info("Created driver pod %s (uid %s)", owner.name, owner.uid)

        outcome = self._create_dependents(link(owner, dependents))
        if not outcome.ok:
            compensation_error = self._compensate(owner)
            subscription.close()
            raise SubmissionError(
                f"Failed to create {_describe(outcome.failed)}: {outcome.error}",
                compensation_error=compensation_error,
                context=context,
                cause=outcome.error,
            ) from outcome.error

        return DeploymentResult(
            primary=owner,
            dependents=outcome.created,
            subscription=subscription,
        )

    def _create_dependents(self, dependents: Sequence[Manifest]) -> CreationOutcome:
        outcome = CreationOutcome()
        for resource in dependents:
            try:
                created = self.client.create_or_replace(resource)
            except Exception as e:
                logger.error("Failed to create %s: %s", _describe(resource), e)
                outcome.failed = resource
                outcome.error = e
                return outcome
            outcome.created.append(ResourceIdentity.from_manifest(created))
            logger.debug("Created %s", _describe(resource))
        return outcome

    def _compensate(self, owner: ResourceIdentity) -> Optional[CompensationError]:
        """Delete the driver pod; return the failure instead of raising it."""
        logger.warning("Deleting driver pod %s after a failed submission", owner.name)
        try:
            self.client.delete_pod(owner.name)
        except Exception as e:
            logger.error("Failed to delete driver pod %s: %s", owner.name, e)
            return CompensationError(
                f"Failed to delete driver pod {owner.name}: {e}",
                context=create_error_context(
                    operation="compensate",
                    component="ResourceSubmitter",
                    resource_name=owner.name,
                    namespace=owner.namespace,
                ),
                cause=e,
            )
        return None
