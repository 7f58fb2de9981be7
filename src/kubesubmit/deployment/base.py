#!/usr/bin/env python3
"""
Base types for the deployment layer.

Cluster objects are plain manifest dicts, the same shape ``yaml.safe_load``
produces and the kubernetes client accepts as a request body. Transformations
deep-copy their inputs and return new manifests.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple


Manifest = Dict[str, Any]


class CompletionState(Enum):
    """Driver pod completion state."""

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN_TERMINAL = "Unknown (terminal)"
    UNKNOWN = "Unknown"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset(
    {
        CompletionState.SUCCEEDED,
        CompletionState.FAILED,
        CompletionState.UNKNOWN_TERMINAL,
    }
)


@dataclass(frozen=True)
class WorkloadTemplate:
    """A driver pod manifest plus the driver container not yet added to it."""

    pod: Manifest
    container: Manifest

    def copy(self) -> "WorkloadTemplate":
        return WorkloadTemplate(copy.deepcopy(self.pod), copy.deepcopy(self.container))


@dataclass(frozen=True)
class ResolvedWorkloadSpec:
    """Fully resolved driver workload, consumed read-only."""

    template: WorkloadTemplate
    system_properties: Mapping[str, str]
    dependent_resources: Tuple[Manifest, ...] = ()


@dataclass(frozen=True)
class ResourceIdentity:
    """Identity of a created resource, including the server-assigned uid."""

    name: str
    kind: str
    api_version: str
    uid: Optional[str] = None
    namespace: Optional[str] = None

    @classmethod
    def from_manifest(cls, manifest: Manifest) -> "ResourceIdentity":
        metadata = manifest.get("metadata") or {}
        return cls(
            name=metadata.get("name"),
            kind=manifest.get("kind"),
            api_version=manifest.get("apiVersion"),
            uid=metadata.get("uid"),
            namespace=metadata.get("namespace"),
        )


@dataclass(frozen=True)
class OwnerLink:
    """Owner reference pointing a dependent at the driver pod."""

    name: str
    api_version: str
    uid: str
    kind: str
    controller: bool = True

    @classmethod
    def from_identity(cls, owner: ResourceIdentity) -> "OwnerLink":
        return cls(
            name=owner.name,
            api_version=owner.api_version,
            uid=owner.uid,
            kind=owner.kind,
        )

    def to_manifest(self) -> Manifest:
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "name": self.name,
            "uid": self.uid,
            "controller": self.controller,
        }


@dataclass
class DeploymentResult:
    """
    Result of a submission.

    ``subscription`` is the driver pod watch, still open after a successful
    submission so that the caller can wait for completion.
    """

    primary: ResourceIdentity
    dependents: List[ResourceIdentity] = field(default_factory=list)
    state: Optional[CompletionState] = None
    app_id: Optional[str] = None
    subscription: Optional["WatchSubscription"] = field(default=None, repr=False, compare=False)

    @property
    def is_success(self) -> bool:
        return self.state is None or self.state == CompletionState.SUCCEEDED


# Called with the event type (ADDED, MODIFIED, DELETED, ERROR) and the pod manifest
WatchEventHandler = Callable[[str, Manifest], None]


class WatchSubscription(ABC):
    """Live event stream for one named resource."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        """True once the subscription has been closed."""

    @abstractmethod
    def close(self) -> None:
        """Stop delivering events. Idempotent."""

    def __enter__(self) -> "WatchSubscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ControlPlaneClient(ABC):
    """
    Narrow interface to the orchestration control plane.

    Every call may raise a transport-level error; callers treat it as fatal.
    """

    namespace: str = "default"

    @abstractmethod
    def watch_pod(
        self,
        name: str,
        on_event: WatchEventHandler,
        on_close: Callable[[], None],
    ) -> WatchSubscription:
        """
        Subscribe to events of the pod called ``name``, which may not exist yet.

        Must fail synchronously if the subscription cannot be established.
        ``on_close`` is invoked once the stream ends for any reason.
        """

    @abstractmethod
    def create_pod(self, pod: Manifest) -> Manifest:
        """Create a pod and return the manifest stored by the server."""

    @abstractmethod
    def delete_pod(self, name: str) -> None:
        """Delete the pod called ``name``."""

    @abstractmethod
    def create_or_replace(self, resource: Manifest) -> Manifest:
        """Create a resource of any kind, replacing an existing one of that name."""
