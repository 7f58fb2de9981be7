#!/usr/bin/env python3
"""
Unit tests for the Typer-based command-line interface.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from kubesubmit import __version__
from kubesubmit.cli import ExitCode, app, build_cli_overrides
from kubesubmit.core.errors import (
    MissingRequiredPropertyError,
    SubmissionError,
    WatchError,
    set_error_handler,
)
from kubesubmit.deployment.base import CompletionState, DeploymentResult, ResourceIdentity


runner = CliRunner()

BASE_ARGS = [
    "submit",
    "--primary-java-resource", "local:///opt/app.jar",
    "--main-class", "org.example.WordCount",
    "--conf", "HADOOP_USER_NAME=spark",
]


def make_result(state=None):
    return DeploymentResult(
        primary=ResourceIdentity(name="wc-1-driver", kind="Pod", api_version="v1", uid="uid-1"),
        dependents=[
            ResourceIdentity(name="wc-1-driver-conf-map", kind="ConfigMap", api_version="v1", uid="uid-2")
        ],
        state=state,
        app_id="spark-abc",
    )


@pytest.fixture(autouse=True)
def reset_error_handler():
    yield
    set_error_handler(None)


@pytest.fixture
def orchestrator_cls():
    with patch("kubesubmit.cli.commands.submit.SubmitOrchestrator") as cls:
        cls.return_value.execute.return_value = make_result()
        yield cls


@pytest.mark.unit
class TestApp:
    """Top-level app behaviour."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == ExitCode.SUCCESS
        assert __version__ in result.stdout

    def test_submit_help(self):
        result = runner.invoke(app, ["submit", "--help"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "--main-class" in result.stdout


@pytest.mark.unit
class TestSubmitCommand:
    """Exit codes and configuration handed to the orchestrator."""

    def test_success(self, orchestrator_cls):
        result = runner.invoke(app, BASE_ARGS + ["--no-wait", "--namespace", "jobs"])

        assert result.exit_code == ExitCode.SUCCESS, result.stdout
        assert "spark-abc" in result.stdout
        config = orchestrator_cls.call_args.args[0]
        assert config["namespace"] == "jobs"
        assert config["wait_for_completion"] is False
        assert config["spark_conf"] == {"HADOOP_USER_NAME": "spark"}

        arguments = orchestrator_cls.return_value.execute.call_args.args[0]
        assert arguments.main_class == "org.example.WordCount"
        assert arguments.main_app_resource.primary_resource == "local:///opt/app.jar"

    def test_driver_args_in_order(self, orchestrator_cls):
        runner.invoke(app, BASE_ARGS + ["--arg", "in.txt", "--arg", "out"])

        arguments = orchestrator_cls.return_value.execute.call_args.args[0]
        assert arguments.driver_args == ("in.txt", "out")

    def test_config_file(self, orchestrator_cls, tmp_path):
        path = tmp_path / "submit.yaml"
        path.write_text("namespace: from-file\nreport_interval: 5\n")

        result = runner.invoke(app, BASE_ARGS + ["--config-file", str(path)])

        assert result.exit_code == ExitCode.SUCCESS, result.stdout
        config = orchestrator_cls.call_args.args[0]
        assert config["namespace"] == "from-file"
        assert config["report_interval"] == 5

    def test_missing_main_class(self, orchestrator_cls):
        result = runner.invoke(app, ["submit", "--primary-py-file", "job.py"])

        assert result.exit_code == ExitCode.INVALID_ARGS
        orchestrator_cls.assert_not_called()

    def test_invalid_conf_pair(self, orchestrator_cls):
        result = runner.invoke(app, BASE_ARGS + ["--conf", "novalue"])

        assert result.exit_code == ExitCode.INVALID_ARGS
        orchestrator_cls.assert_not_called()

    def test_invalid_report_interval(self, orchestrator_cls):
        result = runner.invoke(app, BASE_ARGS + ["--report-interval", "0"])

        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_missing_required_property(self, orchestrator_cls):
        orchestrator_cls.return_value.execute.side_effect = MissingRequiredPropertyError(
            "HADOOP_USER_NAME"
        )

        result = runner.invoke(app, BASE_ARGS)

        assert result.exit_code == ExitCode.INVALID_ARGS

    @pytest.mark.parametrize("error", [SubmissionError("create failed"), WatchError("forbidden")])
    def test_submission_failure(self, orchestrator_cls, error):
        orchestrator_cls.return_value.execute.side_effect = error

        result = runner.invoke(app, BASE_ARGS)

        assert result.exit_code == ExitCode.SUBMIT_FAILURE

    @pytest.mark.parametrize("state", [CompletionState.FAILED, CompletionState.UNKNOWN_TERMINAL])
    def test_application_failure(self, orchestrator_cls, state):
        orchestrator_cls.return_value.execute.return_value = make_result(state)

        result = runner.invoke(app, BASE_ARGS + ["--wait"])

        assert result.exit_code == ExitCode.APP_FAILURE

    def test_application_success_after_wait(self, orchestrator_cls):
        orchestrator_cls.return_value.execute.return_value = make_result(CompletionState.SUCCEEDED)

        result = runner.invoke(app, BASE_ARGS + ["--wait"])

        assert result.exit_code == ExitCode.SUCCESS

    def test_unexpected_error(self, orchestrator_cls):
        orchestrator_cls.return_value.execute.side_effect = RuntimeError("boom")

        result = runner.invoke(app, BASE_ARGS)

        assert result.exit_code == ExitCode.FAILURE


@pytest.mark.unit
class TestBuildCliOverrides:
    """Only options that were given end up in the overlay."""

    def test_empty(self):
        assert build_cli_overrides({}) == {}

    def test_given_options(self):
        overrides = build_cli_overrides(
            {"a": "1"}, namespace="jobs", wait=False, extra_resources=["x.yaml"]
        )

        assert overrides == {
            "spark_conf": {"a": "1"},
            "namespace": "jobs",
            "wait_for_completion": False,
            "extra_resources": ["x.yaml"],
        }
