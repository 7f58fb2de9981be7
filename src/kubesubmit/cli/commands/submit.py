#!/usr/bin/env python3
"""
Submit command for kubesubmit CLI

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from typing import Annotated, List, Optional

import typer
from rich.panel import Panel

from kubesubmit.core.errors import (
    ConfigurationError,
    InvalidRequestError,
    KubeSubmitError,
    MissingRequiredPropertyError,
    SubmissionError,
    WatchError,
    create_error_context,
    handle_error,
)
from kubesubmit.deployment.config_loader import ConfigLoader
from kubesubmit.orchestration import SubmitOrchestrator
from kubesubmit.request import ClientArguments

from ..constants import ExitCode
from ..utils import build_cli_overrides, console, display_result_table, setup_logging


def _request_args(
    main_class: Optional[str],
    primary_java_resource: Optional[str],
    primary_py_file: Optional[str],
    primary_r_file: Optional[str],
    other_py_files: Optional[str],
    driver_args: List[str],
) -> List[str]:
    """Rebuild the ``--flag value`` pairs understood by ClientArguments."""
    args: List[str] = []
    for flag, value in (
        ("--primary-java-resource", primary_java_resource),
        ("--primary-py-file", primary_py_file),
        ("--primary-r-file", primary_r_file),
        ("--other-py-files", other_py_files),
        ("--main-class", main_class),
    ):
        if value is not None:
            args.extend([flag, value])
    for arg in driver_args:
        args.extend(["--arg", arg])
    return args


def submit(
    main_class: Annotated[
        Optional[str], typer.Option("--main-class", help="Main class of the application")
    ] = None,
    primary_java_resource: Annotated[
        Optional[str], typer.Option("--primary-java-resource", help="Application jar")
    ] = None,
    primary_py_file: Annotated[
        Optional[str], typer.Option("--primary-py-file", help="Application Python file")
    ] = None,
    primary_r_file: Annotated[
        Optional[str], typer.Option("--primary-r-file", help="Application R file")
    ] = None,
    other_py_files: Annotated[
        Optional[str],
        typer.Option("--other-py-files", help="Comma separated extra Python files"),
    ] = None,
    driver_args: Annotated[
        List[str], typer.Option("--arg", help="Driver argument (can specify multiple)")
    ] = [],
    conf: Annotated[
        List[str],
        typer.Option("--conf", "-c", help="System property key=value (can specify multiple)"),
    ] = [],
    config_file: Annotated[
        Optional[str],
        typer.Option("--config-file", "-f", help="JSON or YAML configuration file"),
    ] = None,
    namespace: Annotated[
        Optional[str], typer.Option("--namespace", "-n", help="Kubernetes namespace")
    ] = None,
    kubeconfig: Annotated[
        Optional[str], typer.Option("--kubeconfig", help="Path to kubeconfig")
    ] = None,
    image: Annotated[
        Optional[str], typer.Option("--image", help="Driver container image")
    ] = None,
    name: Annotated[
        Optional[str], typer.Option("--name", help="Application display name")
    ] = None,
    wait: Annotated[
        Optional[bool],
        typer.Option("--wait/--no-wait", help="Wait for the application to finish"),
    ] = None,
    report_interval: Annotated[
        Optional[float],
        typer.Option("--report-interval", help="Seconds between status lines while waiting"),
    ] = None,
    extra_resources: Annotated[
        List[str],
        typer.Option("--extra-resource", help="YAML manifest created alongside the driver"),
    ] = [],
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable verbose logging")
    ] = False,
) -> None:
    """
    🚀 Submit an application driver to Kubernetes.

    Creates the driver pod, its config map and dependent resources, and
    optionally waits for the driver to finish.
    """
    setup_logging(verbose)

    try:
        arguments = ClientArguments.from_command_line_args(
            _request_args(
                main_class,
                primary_java_resource,
                primary_py_file,
                primary_r_file,
                other_py_files,
                driver_args,
            )
        )
        overrides = build_cli_overrides(
            ConfigLoader.parse_conf_pairs(conf),
            namespace=namespace,
            kubeconfig=kubeconfig,
            image=image,
            app_name=name,
            wait=wait,
            report_interval=report_interval,
            extra_resources=extra_resources,
        )
        config = ConfigLoader.load_submit_config(overrides, config_file=config_file)

        console.print(
            Panel(
                f"🚀 [bold cyan]Submitting {config['app_name']}[/bold cyan]\n"
                f"Namespace: [yellow]{config['namespace']}[/yellow]\n"
                f"Image: [yellow]{config['image']}[/yellow]\n"
                f"Wait: [yellow]{config['wait_for_completion']}[/yellow]",
                title="Submission Configuration",
                border_style="green",
            )
        )

        result = SubmitOrchestrator(config, console=console).execute(arguments)
        display_result_table(result)
        console.print(f"🆔 Application id: [bold cyan]{result.app_id}[/bold cyan]")

        if not result.is_success:
            console.print(
                f"💥 [bold red]Application finished in state {result.state.value}[/bold red]"
            )
            raise typer.Exit(ExitCode.APP_FAILURE)

    except typer.Exit:
        raise
    except (InvalidRequestError, ConfigurationError, MissingRequiredPropertyError) as e:
        handle_error(e)
        raise typer.Exit(ExitCode.INVALID_ARGS)
    except (WatchError, SubmissionError) as e:
        handle_error(e)
        raise typer.Exit(ExitCode.SUBMIT_FAILURE)
    except KubeSubmitError as e:
        handle_error(e)
        raise typer.Exit(ExitCode.FAILURE)
    except KeyboardInterrupt:
        console.print("\n🛑 [yellow]Submission interrupted; the driver keeps running[/yellow]")
        raise typer.Exit(ExitCode.FAILURE)
    except Exception as e:
        context = create_error_context(operation="submit", component="submit_command")
        handle_error(e, context=context)
        raise typer.Exit(ExitCode.FAILURE)
