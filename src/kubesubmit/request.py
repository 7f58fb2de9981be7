#!/usr/bin/env python3
"""
Submission request model.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from kubesubmit.core.errors import InvalidRequestError


@dataclass(frozen=True)
class JavaMainAppResource:
    primary_resource: str
    resource_type: str = field(default="java", init=False)


@dataclass(frozen=True)
class PythonMainAppResource:
    primary_resource: str
    resource_type: str = field(default="python", init=False)


@dataclass(frozen=True)
class RMainAppResource:
    primary_resource: str
    resource_type: str = field(default="r", init=False)


MainAppResource = Union[JavaMainAppResource, PythonMainAppResource, RMainAppResource]

_RESOURCE_FLAGS = {
    "--primary-java-resource": JavaMainAppResource,
    "--primary-py-file": PythonMainAppResource,
    "--primary-r-file": RMainAppResource,
}


@dataclass(frozen=True)
class ClientArguments:
    """
    Arguments of one submission.

    Attributes:
        main_app_resource: The main application resource, if any
        main_class: Main class of the application to run
        driver_args: Arguments passed to the driver
        py_files: Additional Python files (comma separated), if any
    """

    main_class: str
    main_app_resource: Optional[MainAppResource] = None
    driver_args: Tuple[str, ...] = ()
    py_files: Optional[str] = None

    @classmethod
    def from_command_line_args(cls, args: Sequence[str]) -> "ClientArguments":
        """
        Parse ``--flag value`` pairs.

        Raises:
            InvalidRequestError: On an unknown or incomplete pair, or when
                ``--main-class`` is missing
        """
        main_app_resource: Optional[MainAppResource] = None
        main_class: Optional[str] = None
        driver_args: List[str] = []
        py_files: Optional[str] = None

        for i in range(0, len(args), 2):
            pair = list(args[i : i + 2])
            flag = pair[0]
            if len(pair) != 2:
                raise InvalidRequestError(f"Unknown arguments: {' '.join(pair)}")
            value = pair[1]
            if flag in _RESOURCE_FLAGS:
                main_app_resource = _RESOURCE_FLAGS[flag](value)
            elif flag == "--other-py-files":
                py_files = value
            elif flag == "--main-class":
                main_class = value
            elif flag == "--arg":
                driver_args.append(value)
            else:
                raise InvalidRequestError(f"Unknown arguments: {' '.join(pair)}")

        if main_class is None:
            raise InvalidRequestError(
                "Main class must be specified via --main-class",
                suggestions=["Pass --main-class <fully.qualified.Class>"],
            )
        return cls(
            main_class=main_class,
            main_app_resource=main_app_resource,
            driver_args=tuple(driver_args),
            py_files=py_files,
        )


def resource_type(resource: Optional[MainAppResource]) -> Optional[str]:
    """``java``, ``python`` or ``r``; None when there is no main resource."""
    if resource is None:
        return None
    if isinstance(resource, (JavaMainAppResource, PythonMainAppResource, RMainAppResource)):
        return resource.resource_type
    raise TypeError(f"Unsupported main application resource: {resource!r}")
