#!/usr/bin/env python3
"""
Driver config map builder.

System properties are split in two: keys naming Hadoop-style XML files
(``core-site.xml``, ``hdfs-site.xml``...) become files of their own in the
config map, and everything else is written as a single Java properties file
under ``spark.properties``. The config map is mounted at the driver's
configuration directory.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Set, Tuple

from .base import Manifest


PROPERTIES_FILE_NAME = "spark.properties"
CONFIG_MAP_SUFFIX = "driver-conf-map"

# Properties lines end at \n, \r or \r\n only
_LINE_BREAK = re.compile(r"\r\n|\r|\n")

_SPECIAL_CHARS = {
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
    "\f": "\\f",
    "=": "\\=",
    ":": "\\:",
    "#": "\\#",
    "!": "\\!",
}


def is_file_entry(key: str) -> bool:
    """Keys containing ``.xml`` anywhere are shipped as files."""
    return ".xml" in key


def config_map_name(resource_prefix: str) -> str:
    return f"{resource_prefix}-{CONFIG_MAP_SUFFIX}"


def _escape(text: str, escape_space: bool) -> str:
    out = []
    for index, char in enumerate(text):
        if char == "\\":
            out.append("\\\\")
        elif char == " ":
            out.append("\\ " if index == 0 or escape_space else " ")
        elif char in _SPECIAL_CHARS:
            out.append(_SPECIAL_CHARS[char])
        else:
            out.append(char)
    return "".join(out)


def dump_properties(properties: Mapping[str, str], comment: str = "") -> str:
    """
    Serialise ``properties`` as ``java.util.Properties.store`` does through a
    Writer: separators and leading spaces escaped, other characters written as
    is. Keys are sorted.
    """
    lines = []
    if comment:
        lines.append("#" + comment)
    for key in sorted(properties):
        lines.append(f"{_escape(key, True)}={_escape(properties[key], False)}")
    return "".join(line + "\n" for line in lines)


def _logical_lines(text: str) -> Iterable[str]:
    pending = ""
    for raw in _LINE_BREAK.split(text):
        line = raw.lstrip(" \t\f")
        if not pending and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending += line[:-1]
            continue
        yield pending + line
        pending = ""
    if pending:
        yield pending


def _unescape(text: str) -> str:
    out = []
    index = 0
    while index < len(text):
        char = text[index]
        if char != "\\" or index + 1 == len(text):
            out.append(char)
            index += 1
            continue
        nxt = text[index + 1]
        if nxt == "u" and index + 6 <= len(text):
            out.append(chr(int(text[index + 2 : index + 6], 16)))
            index += 6
            continue
        out.append({"t": "\t", "n": "\n", "r": "\r", "f": "\f"}.get(nxt, nxt))
        index += 2
    # Recombine surrogate pairs given as \u escapes
    return "".join(out).encode("utf-16", "surrogatepass").decode("utf-16")


def _split_entry(line: str) -> Tuple[str, str]:
    index = 0
    while index < len(line):
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char in "=: \t\f":
            break
        index += 1
    key, rest = line[:index], line[index:]
    rest = rest.lstrip(" \t\f")
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(" \t\f")
    return _unescape(key), _unescape(rest)


def load_properties(text: str) -> Dict[str, str]:
    """Parse Java properties text written by ``dump_properties``."""
    return dict(_split_entry(line) for line in _logical_lines(text))


@dataclass(frozen=True)
class ConfigArtifact:
    """Config map content derived from system properties."""

    name: str
    file_entries: Dict[str, str] = field(default_factory=dict)
    properties_blob: str = ""

    @property
    def data(self) -> Dict[str, str]:
        data = dict(self.file_entries)
        data[PROPERTIES_FILE_NAME] = self.properties_blob
        return data

    def keys(self) -> Set[str]:
        """Every system property key carried by this artifact."""
        return set(self.file_entries) | set(load_properties(self.properties_blob))

    def to_manifest(self) -> Manifest:
        return {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {"name": self.name},
            "data": self.data,
        }


class ConfigArtifactBuilder:
    """Builds the driver config map from system properties."""

    @staticmethod
    def build(name_prefix: str, properties: Mapping[str, str]) -> ConfigArtifact:
        name = config_map_name(name_prefix)
        file_entries = {k: v for k, v in properties.items() if is_file_entry(k)}
        blob_entries = {k: v for k, v in properties.items() if not is_file_entry(k)}
        if not properties:
            return ConfigArtifact(name=name)
        blob = dump_properties(
            blob_entries,
            comment=f"Java properties built from Kubernetes config map with name: {name}",
        )
        return ConfigArtifact(name=name, file_entries=file_entries, properties_blob=blob)
