#!/usr/bin/env python3
"""
Driver pod status watcher.

``CompletionGate`` consumes the driver pod's watch events on the watch thread
and lets the submitting thread block until the application reaches a terminal
state, logging a short status line once per report interval while it waits.

State machine:
    Pending -> Running -> {Succeeded, Failed, Unknown (terminal)}

An ``Unknown`` pod phase, or a phase this module does not recognise, is
absorbed without changing the committed state. DELETED and ERROR events, and
the subscription closing before a terminal phase, commit Unknown (terminal).

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
import threading
from typing import Callable, Optional

from .base import CompletionState, Manifest


logger = logging.getLogger(__name__)

_PHASES = {
    "Pending": CompletionState.PENDING,
    "Running": CompletionState.RUNNING,
    "Succeeded": CompletionState.SUCCEEDED,
    "Failed": CompletionState.FAILED,
}


def phase_to_state(phase: Optional[str]) -> CompletionState:
    return _PHASES.get(phase, CompletionState.UNKNOWN)


def _format_pairs(pairs) -> str:
    return "\n".join(f"\t {key}: {value}" for key, value in pairs)


def format_pod_state(pod: Manifest) -> str:
    """Long multi-line description of a pod, as logged on every phase change."""
    metadata = pod.get("metadata") or {}
    spec = pod.get("spec") or {}
    status = pod.get("status") or {}
    labels = metadata.get("labels") or {}
    volumes = spec.get("volumes") or []
    pairs = [
        ("pod name", metadata.get("name")),
        ("namespace", metadata.get("namespace")),
        ("labels", ", ".join(f"{k} -> {v}" for k, v in labels.items()) or "N/A"),
        ("pod uid", metadata.get("uid")),
        ("creation time", metadata.get("creationTimestamp")),
        ("service account name", spec.get("serviceAccountName")),
        ("volumes", ", ".join(v.get("name", "") for v in volumes) or "N/A"),
        ("node name", spec.get("nodeName") or "N/A"),
        ("start time", status.get("startTime") or "N/A"),
        ("phase", status.get("phase")),
        ("container status", containers_description(pod) or "N/A"),
    ]
    return _format_pairs(pairs)


def containers_description(pod: Manifest) -> str:
    """One block per container status: name, image and current state."""
    statuses = (pod.get("status") or {}).get("containerStatuses") or []
    blocks = []
    for container in statuses:
        state = container.get("state") or {}
        pairs = [
            ("container name", container.get("name")),
            ("container image", container.get("image")),
        ]
        if state.get("running"):
            pairs.append(("container state", "running"))
            pairs.append(("container started at", state["running"].get("startedAt")))
        elif state.get("waiting"):
            pairs.append(("container state", "waiting"))
            pairs.append(("pending reason", state["waiting"].get("reason")))
        elif state.get("terminated"):
            terminated = state["terminated"]
            pairs.append(("container state", "terminated"))
            pairs.append(("container started at", terminated.get("startedAt")))
            pairs.append(("container finished at", terminated.get("finishedAt")))
            pairs.append(("exit code", terminated.get("exitCode")))
            pairs.append(("termination reason", terminated.get("reason")))
        else:
            pairs.append(("container state", "unknown"))
        blocks.append(_format_pairs(pairs))
    return "\n\n".join(blocks)


class CompletionGate:
    """
    Tracks the driver pod's completion state.

    ``handle_event`` and ``handle_close`` are the watch delivery path and run on
    the watch thread; ``await_terminal`` runs on the submitting thread.

    Args:
        app_id: Application id used in progress messages
        on_progress: Called with the current state on every report interval;
            logs a status line by default
    """

    def __init__(
        self,
        app_id: str,
        on_progress: Optional[Callable[[CompletionState], None]] = None,
    ):
        self.app_id = app_id
        self.on_progress = on_progress or self._log_short_status
        self._lock = threading.Lock()
        self._terminal = threading.Event()
        self._state = CompletionState.PENDING
        self._phase: Optional[str] = None
        self._pod: Optional[Manifest] = None

    @property
    def state(self) -> CompletionState:
        with self._lock:
            return self._state

    @property
    def pod(self) -> Optional[Manifest]:
        with self._lock:
            return self._pod

    def handle_event(self, event_type: str, pod: Manifest) -> None:
        """Apply one watch event."""
        with self._lock:
            if self._terminal.is_set():
                return
            self._pod = pod
            phase = (pod.get("status") or {}).get("phase")
            observed = phase_to_state(phase)

            if event_type in ("DELETED", "ERROR"):
                new_state = observed if observed.is_terminal else CompletionState.UNKNOWN_TERMINAL
                logger.info("Driver pod %s event received for application %s", event_type, self.app_id)
            elif observed == CompletionState.UNKNOWN:
                logger.debug("Ignoring pod phase %r for application %s", phase, self.app_id)
                new_state = self._state
            else:
                new_state = observed

            if phase != self._phase:
                self._phase = phase
                logger.info("State changed, new state: \n%s", format_pod_state(pod))
            self._commit(new_state)

    def handle_close(self) -> None:
        """The subscription ended; release any waiter."""
        with self._lock:
            if not self._terminal.is_set():
                logger.info("Watch closed before application %s finished", self.app_id)
                self._commit(CompletionState.UNKNOWN_TERMINAL)

    def _commit(self, new_state: CompletionState) -> None:
        self._state = new_state
        if new_state.is_terminal:
            self._terminal.set()

    def await_terminal(self, progress_interval: Optional[float] = None) -> CompletionState:
        """
        Block until a terminal state is observed.

        With no ``progress_interval`` the current state is returned at once.
        There is no timeout: an application that never terminates blocks
        until the subscription is closed.
        """
        if progress_interval is None:
            return self.state

        while not self._terminal.wait(progress_interval):
            self.on_progress(self.state)

        pod = self.pod
        if pod is not None and containers_description(pod):
            logger.info("Container final statuses:\n\n%s", containers_description(pod))
        else:
            logger.info("No containers were found in the driver pod.")
        return self.state

    def _log_short_status(self, state: CompletionState) -> None:
        with self._lock:
            phase = self._phase
        logger.info("Application status for %s (phase: %s)", self.app_id, phase or state.value)
