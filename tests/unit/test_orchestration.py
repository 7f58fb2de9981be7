#!/usr/bin/env python3
"""
Unit tests for SubmitOrchestrator.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import io

import pytest
from rich.console import Console

from kubesubmit.core.errors import InvalidRequestError
from kubesubmit.core.naming import ResourceNamer
from kubesubmit.orchestration import SubmitOrchestrator


@pytest.fixture
def orchestrator(submit_config, control_plane, fixed_uuid):
    submit_config["wait_for_completion"] = False
    return SubmitOrchestrator(
        submit_config,
        control_plane=control_plane,
        namer=ResourceNamer(clock=lambda: 2.0, id_generator=lambda: fixed_uuid),
        console=Console(file=io.StringIO()),
    )


@pytest.mark.unit
class TestSubmitOrchestrator:
    """Naming, resolution and submission."""

    def test_start(self, orchestrator, control_plane):
        result = orchestrator.start(
            ["--primary-java-resource", "local:///opt/app.jar", "--main-class", "Main"]
        )

        assert result.app_id == "spark-12345678123456781234567812345678"
        assert result.primary.name == "word-count-2000-driver"
        assert [d.kind for d in result.dependents] == ["Service", "ConfigMap"]
        assert [d.name for d in result.dependents] == [
            "word-count-2000-driver-svc",
            "word-count-2000-driver-conf-map",
        ]
        assert control_plane.operations()[0] == "watch_pod"

    def test_labels_carry_app_id(self, orchestrator, control_plane):
        orchestrator.start(["--main-class", "Main"])

        pod = control_plane.created["word-count-2000-driver"]
        assert pod["metadata"]["labels"]["spark-app-selector"] == (
            "spark-12345678123456781234567812345678"
        )

    def test_invalid_request(self, orchestrator, control_plane):
        with pytest.raises(InvalidRequestError):
            orchestrator.start(["--primary-java-resource", "app.jar"])

        assert control_plane.calls == []

    def test_output(self, orchestrator):
        orchestrator.start(["--main-class", "Main"])

        output = orchestrator.rich_console.file.getvalue()
        assert "SUBMIT word count" in output
        assert "Driver pod: word-count-2000-driver" in output
