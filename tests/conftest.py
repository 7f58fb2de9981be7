"""
Pytest configuration and shared fixtures for kubesubmit tests.

Provides an in-memory control plane with fault injection, sample driver
templates and a ready-made layered configuration.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import itertools
import uuid
from typing import Callable, Dict, List, Optional

import pytest

from kubesubmit.core.errors import WatchError
from kubesubmit.deployment.base import (
    ControlPlaneClient,
    Manifest,
    WatchEventHandler,
    WatchSubscription,
    WorkloadTemplate,
)


# ============================================================================
# Fake control plane
# ============================================================================

class FakeSubscription(WatchSubscription):
    """Subscription whose events are pushed by the test."""

    def __init__(self, name: str, on_event: WatchEventHandler, on_close: Callable[[], None]):
        self.name = name
        self.on_event = on_event
        self.on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event_type: str, phase: Optional[str] = None, **status) -> None:
        if phase is not None:
            status["phase"] = phase
        self.on_event(
            event_type,
            {"metadata": {"name": self.name}, "status": status},
        )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.on_close()


class FakeControlPlane(ControlPlaneClient):
    """
    Records every call in ``calls`` as ``(operation, name)`` tuples.

    Fault injection:
        watch_error: raised by watch_pod
        pod_error: raised by create_pod
        fail_on: resource name whose create_or_replace raises ``create_error``
        delete_error: raised by delete_pod (after recording the call)
    """

    def __init__(self, namespace: str = "default"):
        self.namespace = namespace
        self.calls: List[tuple] = []
        self.created: Dict[str, Manifest] = {}
        self.subscriptions: List[FakeSubscription] = []
        self.watch_error: Optional[Exception] = None
        self.pod_error: Optional[Exception] = None
        self.fail_on: Optional[str] = None
        self.create_error: Exception = RuntimeError("quota exceeded")
        self.delete_error: Optional[Exception] = None
        self._uids = (f"uid-{n}" for n in itertools.count(1))

    @property
    def subscription(self) -> Optional[FakeSubscription]:
        return self.subscriptions[-1] if self.subscriptions else None

    def operations(self) -> List[str]:
        return [operation for operation, _ in self.calls]

    def watch_pod(self, name, on_event, on_close) -> WatchSubscription:
        self.calls.append(("watch_pod", name))
        if self.watch_error is not None:
            raise self.watch_error
        subscription = FakeSubscription(name, on_event, on_close)
        self.subscriptions.append(subscription)
        return subscription

    def _store(self, resource: Manifest) -> Manifest:
        stored = dict(resource)
        stored["metadata"] = dict(resource.get("metadata") or {})
        stored["metadata"].setdefault("namespace", self.namespace)
        stored["metadata"]["uid"] = next(self._uids)
        self.created[stored["metadata"]["name"]] = stored
        return stored

    def create_pod(self, pod: Manifest) -> Manifest:
        name = pod["metadata"]["name"]
        self.calls.append(("create_pod", name))
        if self.pod_error is not None:
            raise self.pod_error
        return self._store(pod)

    def delete_pod(self, name: str) -> None:
        self.calls.append(("delete_pod", name))
        if self.delete_error is not None:
            raise self.delete_error
        self.created.pop(name, None)

    def create_or_replace(self, resource: Manifest) -> Manifest:
        name = resource["metadata"]["name"]
        self.calls.append(("create_or_replace", name))
        if name == self.fail_on:
            raise self.create_error
        return self._store(resource)


@pytest.fixture
def control_plane():
    """In-memory control plane."""
    return FakeControlPlane()


@pytest.fixture
def failing_watch_control_plane():
    """Control plane that refuses the driver pod watch."""
    plane = FakeControlPlane()
    plane.watch_error = WatchError("forbidden: cannot watch pods")
    return plane


# ============================================================================
# Sample manifests
# ============================================================================

def make_pod(name: str = "app-1-driver") -> Manifest:
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": name, "labels": {"spark-role": "driver"}},
        "spec": {"restartPolicy": "Never", "containers": []},
    }


def make_service(name: str = "app-1-driver-svc") -> Manifest:
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": name},
        "spec": {"clusterIP": "None"},
    }


def make_config_map(name: str) -> Manifest:
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": name},
        "data": {"k": "v"},
    }


@pytest.fixture
def driver_template():
    """Driver pod template with an unattached container."""
    return WorkloadTemplate(
        pod=make_pod(),
        container={"name": "spark-kubernetes-driver", "image": "apache/spark:3.5.1"},
    )


@pytest.fixture
def fixed_uuid():
    return uuid.UUID("12345678123456781234567812345678")


@pytest.fixture
def submit_config():
    """Complete configuration as produced by ConfigLoader.load_submit_config."""
    from kubesubmit.deployment.config_loader import ConfigLoader

    return ConfigLoader.load_submit_config(
        {"app_name": "word count", "spark_conf": {"HADOOP_USER_NAME": "spark"}}
    )
