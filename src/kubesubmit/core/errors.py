#!/usr/bin/env python3
"""
Unified error handling for kubesubmit.

Every failure raised by the submission core is a ``KubeSubmitError`` carrying a
category, an optional ``ErrorContext`` describing where it happened, a list of
suggestions for the user and the underlying cause. ``ErrorHandler`` renders
those errors as Rich panels for the CLI.

Taxonomy:
- InvalidRequestError: malformed or missing submission arguments
- MissingRequiredPropertyError: a required system property is absent
- SubmissionError: a control-plane create/delete call failed
- CompensationError: the compensating deletion of the driver pod failed
- WatchError: subscribing to driver pod events failed
- ConfigurationError: layered configuration is invalid

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.traceback import Traceback


class ErrorCategory(Enum):
    """Error category enumeration."""

    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    SUBMISSION = "submission"
    COMPENSATION = "compensation"
    WATCH = "watch"


@dataclass
class ErrorContext:
    """Where an error happened."""

    operation: str
    phase: Optional[str] = None
    component: Optional[str] = None
    app_id: Optional[str] = None
    resource_name: Optional[str] = None
    namespace: Optional[str] = None
    additional_info: Optional[Dict[str, Any]] = None


def create_error_context(
    operation: str,
    phase: Optional[str] = None,
    component: Optional[str] = None,
    app_id: Optional[str] = None,
    resource_name: Optional[str] = None,
    namespace: Optional[str] = None,
    **additional_info,
) -> ErrorContext:
    """Convenience constructor for ErrorContext."""
    return ErrorContext(
        operation=operation,
        phase=phase,
        component=component,
        app_id=app_id,
        resource_name=resource_name,
        namespace=namespace,
        additional_info=additional_info or None,
    )


class KubeSubmitError(Exception):
    """Base class for all kubesubmit errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        context: Optional[ErrorContext] = None,
        recoverable: bool = False,
        suggestions: Optional[List[str]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.context = context
        self.recoverable = recoverable
        self.suggestions = suggestions or []
        self.cause = cause


class InvalidRequestError(KubeSubmitError):
    """Submission arguments are malformed or incomplete."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, ErrorCategory.VALIDATION, **kwargs)


class ConfigurationError(KubeSubmitError):
    """Layered configuration is invalid."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, ErrorCategory.CONFIGURATION, **kwargs)


class MissingRequiredPropertyError(KubeSubmitError):
    """A required key is absent from the resolved system properties."""

    def __init__(self, property_name: str, **kwargs):
        kwargs.setdefault(
            "suggestions",
            [f"Set it with --conf {property_name}=<value>"],
        )
        super().__init__(
            f"Required system property '{property_name}' is not set",
            ErrorCategory.VALIDATION,
            **kwargs,
        )
        self.property_name = property_name


class WatchError(KubeSubmitError):
    """Subscribing to driver pod events failed; nothing was created."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.WATCH, **kwargs)


class CompensationError(KubeSubmitError):
    """Deleting the driver pod after a dependent creation failure failed."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.COMPENSATION, **kwargs)


class SubmissionError(KubeSubmitError):
    """A control-plane create or delete call failed.

    When the compensating deletion also failed, ``compensation_error`` holds it
    and the message names both failures.
    """

    def __init__(
        self,
        message: str,
        compensation_error: Optional[CompensationError] = None,
        **kwargs,
    ):
        if compensation_error is not None:
            message = f"{message}; compensation also failed: {compensation_error.message}"
        super().__init__(message, ErrorCategory.SUBMISSION, **kwargs)
        self.compensation_error = compensation_error


_CATEGORY_STYLE = {
    ErrorCategory.VALIDATION: ("⚠️", "Validation Error", "yellow"),
    ErrorCategory.CONFIGURATION: ("⚙️", "Configuration Error", "yellow"),
    ErrorCategory.SUBMISSION: ("🚀", "Submission Error", "red"),
    ErrorCategory.COMPENSATION: ("♻️", "Compensation Error", "red"),
    ErrorCategory.WATCH: ("👀", "Watch Error", "red"),
}


class ErrorHandler:
    """Renders errors to a Rich console."""

    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        self.console = console or Console()
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)

    def handle_error(
        self,
        error: BaseException,
        context: Optional[ErrorContext] = None,
        show_traceback: Optional[bool] = None,
    ) -> None:
        """Print an error panel, with suggestions and cause chain."""
        if isinstance(error, KubeSubmitError):
            emoji, title, style = _CATEGORY_STYLE[error.category]
            context = error.context or context
            body = Text(error.message)
            if error.cause is not None:
                body.append(f"\nCaused by: {type(error.cause).__name__}: {error.cause}", style="dim")
            if error.suggestions:
                body.append("\n\nSuggestions:", style="bold")
                for suggestion in error.suggestions:
                    body.append(f"\n  • {suggestion}")
        else:
            emoji, title, style = "💥", type(error).__name__, "red"
            body = Text(str(error))

        if context is not None:
            details = ", ".join(
                f"{key}={value}"
                for key, value in vars(context).items()
                if value is not None and key != "additional_info"
            )
            body.append(f"\n\nContext: {details}", style="dim")

        self.console.print(
            Panel(body, title=f"{emoji} {title}", border_style=style, expand=False)
        )
        self.logger.debug("Handled %s: %s", type(error).__name__, error)

        if show_traceback is None:
            show_traceback = self.verbose
        if show_traceback and error.__traceback__ is not None:
            self.console.print(
                Traceback.from_exception(type(error), error, error.__traceback__)
            )


_error_handler: Optional[ErrorHandler] = None


def set_error_handler(handler: Optional[ErrorHandler]) -> None:
    """Install the process-wide error handler."""
    global _error_handler
    _error_handler = handler


def get_error_handler() -> Optional[ErrorHandler]:
    return _error_handler


def handle_error(
    error: BaseException,
    context: Optional[ErrorContext] = None,
    show_traceback: Optional[bool] = None,
) -> None:
    """Route an error to the global handler, or to logging if none is set."""
    if _error_handler is None:
        logging.error("%s: %s", type(error).__name__, error)
        return
    _error_handler.handle_error(error, context=context, show_traceback=show_traceback)
