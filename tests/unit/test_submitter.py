#!/usr/bin/env python3
"""
Unit tests for resource submission and compensation.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import pytest

from conftest import make_config_map, make_pod, make_service
from kubesubmit.core.errors import CompensationError, SubmissionError, WatchError
from kubesubmit.deployment.base import CompletionState
from kubesubmit.deployment.submitter import ResourceSubmitter
from kubesubmit.deployment.watcher import CompletionGate


def _submit(control_plane, dependents, gate=None):
    gate = gate or CompletionGate("spark-test")
    return ResourceSubmitter(control_plane).submit(
        make_pod(), dependents, gate.handle_event, gate.handle_close
    )


@pytest.mark.unit
class TestSuccessfulSubmission:
    """Happy path ordering and results."""

    def test_watch_opened_before_anything_is_created(self, control_plane):
        _submit(control_plane, [make_service(), make_config_map("conf")])

        assert control_plane.operations() == [
            "watch_pod",
            "create_pod",
            "create_or_replace",
            "create_or_replace",
        ]
        assert control_plane.calls[0] == ("watch_pod", "app-1-driver")

    def test_dependents_owned_by_created_pod(self, control_plane):
        _submit(control_plane, [make_service(), make_config_map("conf")])

        pod_uid = control_plane.created["app-1-driver"]["metadata"]["uid"]
        for name in ("app-1-driver-svc", "conf"):
            [reference] = control_plane.created[name]["metadata"]["ownerReferences"]
            assert reference["uid"] == pod_uid
            assert reference["kind"] == "Pod"
            assert reference["controller"] is True

    def test_result(self, control_plane):
        result = _submit(control_plane, [make_service(), make_config_map("conf")])

        assert result.primary.name == "app-1-driver"
        assert result.primary.uid == "uid-1"
        assert [d.name for d in result.dependents] == ["app-1-driver-svc", "conf"]
        assert result.subscription is control_plane.subscription
        assert not result.subscription.closed

    def test_events_reach_the_gate(self, control_plane):
        gate = CompletionGate("spark-test")
        _submit(control_plane, [], gate=gate)

        control_plane.subscription.emit("MODIFIED", "Running")
        assert gate.state == CompletionState.RUNNING


@pytest.mark.unit
class TestWatchFailure:
    """A watch that cannot be opened aborts before any create."""

    def test_no_resources_created(self, failing_watch_control_plane):
        with pytest.raises(WatchError):
            _submit(failing_watch_control_plane, [make_service()])

        assert failing_watch_control_plane.operations() == ["watch_pod"]

    def test_other_errors_wrapped(self, control_plane):
        control_plane.watch_error = ConnectionRefusedError("connection refused")

        with pytest.raises(WatchError) as exc_info:
            _submit(control_plane, [make_service()])

        assert isinstance(exc_info.value.cause, ConnectionRefusedError)
        assert control_plane.operations() == ["watch_pod"]


@pytest.mark.unit
class TestPodCreationFailure:
    """The driver pod itself cannot be created."""

    def test_nothing_to_compensate(self, control_plane):
        control_plane.pod_error = RuntimeError("admission denied")

        with pytest.raises(SubmissionError) as exc_info:
            _submit(control_plane, [make_service()])

        assert control_plane.operations() == ["watch_pod", "create_pod"]
        assert "admission denied" in str(exc_info.value)
        assert control_plane.subscription.closed


@pytest.mark.unit
class TestDependentFailure:
    """A failing dependent deletes the driver pod and surfaces the creation error."""

    def test_driver_pod_deleted_exactly_once(self, control_plane):
        control_plane.fail_on = "second"

        with pytest.raises(SubmissionError) as exc_info:
            _submit(
                control_plane,
                [make_config_map("first"), make_config_map("second"), make_config_map("third")],
            )

        assert control_plane.calls == [
            ("watch_pod", "app-1-driver"),
            ("create_pod", "app-1-driver"),
            ("create_or_replace", "first"),
            ("create_or_replace", "second"),
            ("delete_pod", "app-1-driver"),
        ]
        assert exc_info.value.cause is control_plane.create_error
        assert exc_info.value.__cause__ is control_plane.create_error
        assert exc_info.value.compensation_error is None

    def test_earlier_dependents_left_for_garbage_collection(self, control_plane):
        control_plane.fail_on = "second"

        with pytest.raises(SubmissionError):
            _submit(control_plane, [make_config_map("first"), make_config_map("second")])

        assert "app-1-driver" not in control_plane.created
        assert "first" in control_plane.created

    def test_subscription_closed_and_gate_released(self, control_plane):
        control_plane.fail_on = "app-1-driver-svc"
        gate = CompletionGate("spark-test")

        with pytest.raises(SubmissionError):
            _submit(control_plane, [make_service()], gate=gate)

        assert control_plane.subscription.closed
        assert gate.state == CompletionState.UNKNOWN_TERMINAL

    def test_compensation_failure_surfaced(self, control_plane):
        control_plane.fail_on = "conf"
        control_plane.delete_error = RuntimeError("delete timed out")

        with pytest.raises(SubmissionError) as exc_info:
            _submit(control_plane, [make_config_map("conf")])

        error = exc_info.value
        assert error.cause is control_plane.create_error
        assert isinstance(error.compensation_error, CompensationError)
        assert error.compensation_error.cause is control_plane.delete_error
        assert "quota exceeded" in str(error)
        assert "delete timed out" in str(error)
        assert control_plane.operations().count("delete_pod") == 1
