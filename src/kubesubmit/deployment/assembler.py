#!/usr/bin/env python3
"""
Driver workload assembly.

Folds the config map into the driver template: points the driver's
configuration-directory lookup at the mounted config map, passes the Hadoop
user and SFTP settings through as environment variables, and mounts the config
map volume.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
from typing import List, Mapping

from kubesubmit.core.errors import MissingRequiredPropertyError, create_error_context

from .base import Manifest, WorkloadTemplate


logger = logging.getLogger(__name__)

ENV_SPARK_CONF_DIR = "SPARK_CONF_DIR"
SPARK_CONF_DIR_INTERNAL = "/opt/spark/conf"
SPARK_CONF_VOLUME = "spark-conf-volume"
HADOOP_USER_NAME_KEY = "HADOOP_USER_NAME"


def is_sftp_key(key: str) -> bool:
    """Case-sensitive substring match on ``sftp``."""
    return "sftp" in key


def sftp_env(properties: Mapping[str, str]) -> List[Manifest]:
    """Environment entries for every SFTP property, in iteration order."""
    return [{"name": k, "value": v} for k, v in properties.items() if is_sftp_key(k)]


class WorkloadAssembler:
    """
    Builds the final driver pod from a template.

    ``assemble`` never mutates its input. It is not idempotent: applying it to
    its own output adds a second config volume and mount.
    """

    @staticmethod
    def assemble(
        template: WorkloadTemplate,
        properties: Mapping[str, str],
        config_artifact_ref: str,
    ) -> WorkloadTemplate:
        if HADOOP_USER_NAME_KEY not in properties:
            raise MissingRequiredPropertyError(
                HADOOP_USER_NAME_KEY,
                context=create_error_context(
                    operation="assemble",
                    component="WorkloadAssembler",
                    resource_name=template.pod.get("metadata", {}).get("name"),
                ),
            )

        result = template.copy()
        pod, container = result.pod, result.container

        env = container.setdefault("env", [])
        env.append({"name": ENV_SPARK_CONF_DIR, "value": SPARK_CONF_DIR_INTERNAL})
        env.append({"name": HADOOP_USER_NAME_KEY, "value": properties[HADOOP_USER_NAME_KEY]})
        extra_env = sftp_env(properties)
        env.extend(extra_env)
        logger.debug("Injected %d sftp environment variables", len(extra_env))

        container.setdefault("volumeMounts", []).append(
            {"name": SPARK_CONF_VOLUME, "mountPath": SPARK_CONF_DIR_INTERNAL}
        )

        spec = pod.setdefault("spec", {})
        spec.setdefault("containers", []).append(container)
        spec.setdefault("volumes", []).append(
            {"name": SPARK_CONF_VOLUME, "configMap": {"name": config_artifact_ref}}
        )
        return result
