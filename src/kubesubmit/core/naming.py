#!/usr/bin/env python3
"""
Resource naming for submitted applications.

The application id is added as a label to every resource of an application,
and label values are restricted (at most 63 characters), so it is generated
rather than derived from the display name. Resource names are prefixed with a
normalised form of the display name plus the launch time.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import re
import time
import uuid
from typing import Callable


APP_ID_PREFIX = "spark"


def normalize_resource_name(name: str) -> str:
    """Lower-case ``name`` and reduce it to ``[a-z0-9-]`` with single hyphens."""
    normalized = name.strip().lower()
    normalized = re.sub(r"\s+", "-", normalized)
    normalized = normalized.replace(".", "-")
    normalized = re.sub(r"[^a-z0-9\-]", "", normalized)
    return re.sub(r"-+", "-", normalized)


class ResourceNamer:
    """
    Generates application ids and resource-name prefixes.

    Args:
        clock: Returns the current time in seconds since the epoch
        id_generator: Returns a fresh ``uuid.UUID``
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        id_generator: Callable[[], uuid.UUID] = uuid.uuid4,
    ):
        self.clock = clock
        self.id_generator = id_generator

    def app_id(self) -> str:
        """Return ``spark-`` followed by 32 hex digits."""
        return f"{APP_ID_PREFIX}-{self.id_generator().hex}"

    def resource_name_prefix(self, app_name: str) -> str:
        """Return ``<app-name>-<launch millis>`` normalised for resource names."""
        launch_time = int(self.clock() * 1000)
        return normalize_resource_name(f"{app_name}-{launch_time}")
