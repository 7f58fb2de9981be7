#!/usr/bin/env python3
"""
Kubernetes control plane - driver submission using the Kubernetes Python client.

Uses the kubernetes Python API:
- client.CoreV1Api(): driver pod create/delete and watch
- dynamic.DynamicClient(): create-or-replace of dependents of any kind
- watch.Watch(): driver pod event stream on a background thread

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
import threading
from typing import Callable, Optional

from kubernetes import client, dynamic, watch
from kubernetes import config as k8s_config
from kubernetes.client.rest import ApiException

from kubesubmit.core.errors import ConfigurationError, WatchError, create_error_context

from .base import ControlPlaneClient, Manifest, WatchEventHandler, WatchSubscription


logger = logging.getLogger(__name__)


def load_kube_config(kubeconfig_path: Optional[str] = None) -> None:
    """
    Load cluster credentials.

    An explicit kubeconfig wins; otherwise in-cluster configuration is tried
    first, then the default kubeconfig.
    """
    try:
        if kubeconfig_path:
            k8s_config.load_kube_config(config_file=kubeconfig_path)
        else:
            try:
                k8s_config.load_incluster_config()
            except (k8s_config.ConfigException, FileNotFoundError):
                k8s_config.load_kube_config()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load Kubernetes config: {e}",
            context=create_error_context(operation="load_kube_config", file_path=kubeconfig_path),
            suggestions=[
                "Check that ~/.kube/config exists or pass --kubeconfig",
                "Run inside a pod with a service account to use in-cluster config",
            ],
            cause=e,
        ) from e


class KubernetesPodWatch(WatchSubscription):
    """
    Streams events for one pod on a daemon thread.

    The stream resumes from the last seen resource version whenever the server
    ends it, until ``close`` is called or the API reports an error.
    """

    def __init__(
        self,
        core_v1: client.CoreV1Api,
        api_client: client.ApiClient,
        namespace: str,
        name: str,
        resource_version: Optional[str],
        on_event: WatchEventHandler,
        on_close: Callable[[], None],
    ):
        self.core_v1 = core_v1
        self.api_client = api_client
        self.namespace = namespace
        self.name = name
        self.resource_version = resource_version
        self.on_event = on_event
        self.on_close = on_close
        self._watch = watch.Watch()
        self._stopped = threading.Event()
        self._close_lock = threading.Lock()
        self._close_notified = False
        self._thread = threading.Thread(
            target=self._run, name=f"watch-{name}", daemon=True
        )

    @property
    def closed(self) -> bool:
        return self._stopped.is_set()

    def start(self) -> "KubernetesPodWatch":
        self._thread.start()
        return self

    def close(self) -> None:
        self._stopped.set()
        self._watch.stop()
        self._notify_close()

    def _notify_close(self) -> None:
        with self._close_lock:
            if self._close_notified:
                return
            self._close_notified = True
        self.on_close()

    def _run(self) -> None:
        try:
            while not self._stopped.is_set():
                for event in self._watch.stream(
                    self.core_v1.list_namespaced_pod,
                    namespace=self.namespace,
                    field_selector=f"metadata.name={self.name}",
                    resource_version=self.resource_version,
                ):
                    if self._stopped.is_set():
                        break
                    pod = self.api_client.sanitize_for_serialization(event["object"])
                    self.resource_version = (pod.get("metadata") or {}).get(
                        "resourceVersion", self.resource_version
                    )
                    self.on_event(event["type"], pod)
        except ApiException as e:
            # Watch.stream raises ERROR events instead of yielding them
            logger.error("Watch on pod %s failed: %s %s", self.name, e.status, e.reason)
            if not self._stopped.is_set():
                self.on_event("ERROR", {"kind": "Status", "code": e.status, "reason": e.reason})
        except Exception as e:
            if not self._stopped.is_set():
                logger.error("Watch on pod %s failed: %s", self.name, e)
        finally:
            self._stopped.set()
            self._notify_close()


class KubernetesControlPlane(ControlPlaneClient):
    """ControlPlaneClient backed by a Kubernetes API server."""

    def __init__(
        self,
        namespace: str = "default",
        kubeconfig: Optional[str] = None,
        api_client: Optional[client.ApiClient] = None,
    ):
        if api_client is None:
            load_kube_config(kubeconfig)
            api_client = client.ApiClient()
        self.namespace = namespace
        self.api_client = api_client
        self.core_v1 = client.CoreV1Api(api_client)
        self._dynamic: Optional[dynamic.DynamicClient] = None

    @property
    def dynamic_client(self) -> dynamic.DynamicClient:
        # Discovery hits the API server, so build it on first use
        if self._dynamic is None:
            self._dynamic = dynamic.DynamicClient(self.api_client)
        return self._dynamic

    def _to_manifest(self, obj) -> Manifest:
        return self.api_client.sanitize_for_serialization(obj)

    def watch_pod(
        self,
        name: str,
        on_event: WatchEventHandler,
        on_close: Callable[[], None],
    ) -> WatchSubscription:
        try:
            pods = self.core_v1.list_namespaced_pod(
                namespace=self.namespace, field_selector=f"metadata.name={name}"
            )
        except ApiException as e:
            raise WatchError(
                f"Cannot watch pod {name} in namespace {self.namespace}: {e.reason}",
                context=create_error_context(
                    operation="watch_pod", resource_name=name, namespace=self.namespace
                ),
                cause=e,
            ) from e
        logger.debug("Watching pod %s from resource version %s", name, pods.metadata.resource_version)
        return KubernetesPodWatch(
            self.core_v1,
            self.api_client,
            self.namespace,
            name,
            pods.metadata.resource_version,
            on_event,
            on_close,
        ).start()

    def create_pod(self, pod: Manifest) -> Manifest:
        created = self._to_manifest(
            self.core_v1.create_namespaced_pod(namespace=self.namespace, body=pod)
        )
        created.setdefault("apiVersion", pod.get("apiVersion", "v1"))
        created.setdefault("kind", pod.get("kind", "Pod"))
        return created

    def delete_pod(self, name: str) -> None:
        self.core_v1.delete_namespaced_pod(name=name, namespace=self.namespace)

    def create_or_replace(self, resource: Manifest) -> Manifest:
        api = self.dynamic_client.resources.get(
            api_version=resource["apiVersion"], kind=resource["kind"]
        )
        namespace = self.namespace if api.namespaced else None
        try:
            return api.create(body=resource, namespace=namespace).to_dict()
        except ApiException as e:
            if e.status != 409:
                raise
        name = resource["metadata"]["name"]
        existing = api.get(name=name, namespace=namespace)
        body = dict(resource)
        body["metadata"] = dict(resource["metadata"])
        body["metadata"]["resourceVersion"] = existing.metadata.resourceVersion
        logger.info("Replacing existing %s/%s", resource["kind"], name)
        return api.replace(body=body, name=name, namespace=namespace).to_dict()
