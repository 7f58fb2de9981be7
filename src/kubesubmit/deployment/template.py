#!/usr/bin/env python3
"""
Driver template resolution - Jinja2 templates rendered into manifests.

Produces the ``ResolvedWorkloadSpec`` consumed by the submission client: the
driver pod and container templates, the system properties that end up in the
driver config map, and the dependent resources (headless driver service plus
any extra manifests listed in the configuration).

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import logging
import re
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Tuple

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from kubesubmit.core.errors import ConfigurationError, create_error_context
from kubesubmit.request import (
    ClientArguments,
    JavaMainAppResource,
    PythonMainAppResource,
    RMainAppResource,
    resource_type,
)

from .assembler import SPARK_CONF_DIR_INTERNAL
from .base import Manifest, ResolvedWorkloadSpec, WorkloadTemplate
from .config_artifact import PROPERTIES_FILE_NAME


logger = logging.getLogger(__name__)

SPARK_INTERNAL_RESOURCE = "spark-internal"
MEMORY_OVERHEAD_FACTOR = 0.1
MEMORY_OVERHEAD_MIN_MIB = 384

_MEMORY_UNITS = {"k": 1 / 1024, "m": 1, "g": 1024, "t": 1024 * 1024}


def memory_with_overhead_mib(memory: str) -> int:
    """Driver memory plus overhead, in MiB (``1g`` -> 1408)."""
    match = re.fullmatch(r"\s*(\d+)\s*([kmgt]?)b?\s*", str(memory).lower())
    if not match:
        raise ConfigurationError(
            f"Invalid driver memory '{memory}'",
            context=create_error_context(operation="resolve_template", component="TemplateResolver"),
            suggestions=["Use a size such as 512m or 2g"],
        )
    amount, unit = match.groups()
    mib = int(int(amount) * _MEMORY_UNITS[unit or "m"])
    return mib + max(int(mib * MEMORY_OVERHEAD_FACTOR), MEMORY_OVERHEAD_MIN_MIB)


def driver_command(arguments: ClientArguments) -> Tuple[List[str], List[Manifest]]:
    """Container args and extra environment for the main resource kind."""
    resource = arguments.main_app_resource
    properties_file = f"{SPARK_CONF_DIR_INTERNAL}/{PROPERTIES_FILE_NAME}"
    env: List[Manifest] = []

    if resource is None:
        primary = SPARK_INTERNAL_RESOURCE
    elif isinstance(resource, JavaMainAppResource):
        primary = resource.primary_resource
    elif isinstance(resource, PythonMainAppResource):
        primary = resource.primary_resource
        if arguments.py_files:
            env.append({"name": "PYSPARK_FILES", "value": arguments.py_files})
    elif isinstance(resource, RMainAppResource):
        primary = resource.primary_resource
    else:
        raise TypeError(f"Unsupported main application resource: {resource!r}")

    args = [
        "driver",
        "--properties-file",
        properties_file,
        "--class",
        arguments.main_class,
        primary,
        *arguments.driver_args,
    ]
    return args, env


class TemplateResolver:
    """Renders the driver templates for one submission."""

    TEMPLATE_DIR = Path(__file__).parent / "templates" / "kubernetes"

    def __init__(self, template_dir: Optional[Path] = None):
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(template_dir or self.TEMPLATE_DIR)),
            undefined=StrictUndefined,
        )

    def _render(self, template_name: str, **context) -> Any:
        return yaml.safe_load(self.jinja_env.get_template(template_name).render(**context))

    def system_properties(
        self,
        arguments: ClientArguments,
        config: Dict[str, Any],
        app_id: str,
        resource_prefix: str,
    ) -> Dict[str, str]:
        """User ``spark_conf`` plus the properties derived from this submission."""
        namespace = config["namespace"]
        driver = config["driver"]
        properties = {str(k): str(v) for k, v in config.get("spark_conf", {}).items()}
        properties.update(
            {
                "spark.app.name": config["app_name"],
                "spark.app.id": app_id,
                "spark.kubernetes.namespace": namespace,
                "spark.kubernetes.driver.pod.name": f"{resource_prefix}-driver",
                "spark.kubernetes.executor.podNamePrefix": resource_prefix,
                "spark.kubernetes.container.image": config["image"],
                "spark.driver.host": f"{resource_prefix}-driver-svc.{namespace}.svc",
                "spark.driver.port": str(driver["port"]),
                "spark.driver.blockManager.port": str(driver["block_manager_port"]),
                "spark.kubernetes.submit.pyFiles": arguments.py_files or "",
            }
        )
        kind = resource_type(arguments.main_app_resource)
        if kind is not None:
            properties["spark.kubernetes.resource.type"] = kind
        return properties

    def load_extra_resources(self, paths: List[str]) -> List[Manifest]:
        """Load every YAML document in ``paths`` as a dependent manifest."""
        resources = []
        for path in paths:
            try:
                with open(path, "r") as f:
                    docs = [doc for doc in yaml.safe_load_all(f) if doc]
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(
                    f"Cannot load extra resource file {path}: {e}",
                    context=create_error_context(operation="load_extra_resources", file_path=path),
                    cause=e,
                ) from e
            logger.debug("Loaded %d extra resources from %s", len(docs), path)
            resources.extend(docs)
        return resources

    def resolve(
        self,
        arguments: ClientArguments,
        config: Dict[str, Any],
        app_id: str,
        resource_prefix: str,
    ) -> ResolvedWorkloadSpec:
        driver = config["driver"]
        args, env = driver_command(arguments)
        context = {
            "app_id": app_id,
            "namespace": config["namespace"],
            "pod_name": f"{resource_prefix}-driver",
            "service_name": f"{resource_prefix}-driver-svc",
            "labels": config.get("labels", {}),
            "service_account": config["service_account"],
            "image": config["image"],
            "image_pull_policy": config["image_pull_policy"],
            "args": args,
            "env": env,
            "driver_port": int(driver["port"]),
            "block_manager_port": int(driver["block_manager_port"]),
            "driver_cores": driver["cores"],
            "driver_memory": f"{memory_with_overhead_mib(driver['memory'])}Mi",
        }

        template = WorkloadTemplate(
            pod=self._render("driver_pod.yaml.j2", **context),
            container=self._render("driver_container.yaml.j2", **context),
        )
        dependents = [self._render("driver_service.yaml.j2", **context)]
        dependents.extend(self.load_extra_resources(config.get("extra_resources", [])))

        return ResolvedWorkloadSpec(
            template=template,
            system_properties=MappingProxyType(
                self.system_properties(arguments, config, app_id, resource_prefix)
            ),
            dependent_resources=tuple(dependents),
        )
