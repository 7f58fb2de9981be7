#!/usr/bin/env python3
"""
Configuration loader with multi-layer merging for submissions.

Layers (low to high priority):
1. System defaults (built-in presets)
2. User file (--config-file)
3. User CLI (--conf, --namespace, --no-wait, ...)

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from kubesubmit.core.errors import ConfigurationError, create_error_context


logger = logging.getLogger(__name__)


class ConfigLoader:
    """Configuration loader with preset support."""

    PRESET_DIR = Path(__file__).parent / "presets"

    @classmethod
    def load_preset(cls, preset_path: str) -> Dict[str, Any]:
        """
        Load a preset JSON file.

        Args:
            preset_path: Relative path to preset file from PRESET_DIR

        Returns:
            Dict containing preset configuration, or empty dict if not found
        """
        full_path = cls.PRESET_DIR / preset_path
        if not full_path.exists():
            return {}

        try:
            with open(full_path, "r") as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Could not load preset %s: %s", preset_path, e)
            return {}

    @classmethod
    def deep_merge(cls, base: Dict, override: Dict) -> Dict:
        """
        Deep merge two dictionaries. Override wins conflicts.
        Nested dicts are merged, lists/primitives are replaced.
        """
        result = deepcopy(base)

        for key, value in override.items():
            if key.startswith("_"):
                result[key] = deepcopy(value)
                continue

            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = cls.deep_merge(result[key], value)
            else:
                result[key] = deepcopy(value)

        return result

    @classmethod
    def load_file(cls, path: str) -> Dict[str, Any]:
        """
        Load a user configuration file (JSON, or YAML by extension).

        Raises:
            ConfigurationError: If the file is missing or not a mapping
        """
        file_path = Path(path)
        context = create_error_context(operation="load_config_file", file_path=str(file_path))
        if not file_path.exists():
            raise ConfigurationError(f"Config file not found: {path}", context=context)

        try:
            with open(file_path, "r") as f:
                if file_path.suffix in (".yaml", ".yml"):
                    loaded = yaml.safe_load(f) or {}
                else:
                    loaded = json.load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Invalid config file {path}: {e}", context=context, cause=e
            ) from e

        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Config file {path} must contain a mapping", context=context
            )
        return loaded

    @staticmethod
    def parse_conf_pairs(pairs: List[str]) -> Dict[str, str]:
        """
        Parse ``key=value`` strings as given to ``--conf``.

        Raises:
            ConfigurationError: If an entry has no ``=`` or an empty key
        """
        conf = {}
        for pair in pairs:
            key, sep, value = pair.partition("=")
            if not sep or not key.strip():
                raise ConfigurationError(
                    f"Invalid --conf entry '{pair}', expected key=value",
                    context=create_error_context(operation="parse_conf_pairs"),
                )
            conf[key.strip()] = value
        return conf

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Raises:
            ConfigurationError: On a non-positive report interval or empty namespace
        """
        context = create_error_context(operation="validate_config", component="ConfigLoader")
        interval = config.get("report_interval")
        if not isinstance(interval, (int, float)) or isinstance(interval, bool) or interval <= 0:
            raise ConfigurationError(
                f"report_interval must be a positive number of seconds, got {interval!r}",
                context=context,
            )
        if not config.get("namespace"):
            raise ConfigurationError("namespace must not be empty", context=context)
        if not config.get("image"):
            raise ConfigurationError(
                "image must be set",
                context=context,
                suggestions=["Pass --image or set 'image' in the config file"],
            )

    @classmethod
    def load_submit_config(
        cls,
        user_config: Optional[Dict[str, Any]] = None,
        config_file: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Load the complete submission configuration.

        Layers:
        1. Built-in defaults (presets/k8s/defaults.json)
        2. ``config_file``, if given
        3. ``user_config`` (CLI overrides)

        Returns:
            Complete, validated configuration
        """
        config = cls.load_preset("k8s/defaults.json")
        if config_file:
            config = cls.deep_merge(config, cls.load_file(config_file))
        if user_config:
            config = cls.deep_merge(config, user_config)
        cls.validate(config)
        return config
