# vim: ts=4:sw=4:sts=4:et:ft=python
# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; -*-
#
# GNU General Public License v3.0+
# SPDX-License-Identifier: GPL-3.0-or-later
# (see COPYING or https://www.gnu.org/licenses/gpl-3.0.txt)
#
# Copyright (c) 2025 oØ.o (@o0-o)
#
# This file is part of the o0_o.hostfacts Ansible Collection.

"""
Resolvers for external facts.

External facts come from files dropped into a facts directory rather
than from built-in logic: ``key=value`` text files, JSON or YAML
documents, and executables (including PowerShell scripts) that print
``key=value`` lines. Keys are lower-cased; text values are kept
verbatim after the first ``=``.
"""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING, Any, Mapping, Optional, Tuple

import yaml
from ansible.module_utils.common.text.converters import to_text
from ansible.utils.display import Display

from ansible_collections.o0_o.hostfacts.plugins.facts_utils import execution
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.errors import (
    ExecutableNotFoundError,
    ExecutionFailureError,
    ExternalFactError,
    ExternalFactExecutionError,
    ExternalFactInvocationError,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.value import (
    make_value,
)

if TYPE_CHECKING:
    from ansible_collections.o0_o.hostfacts.plugins.facts_utils.collection import (  # noqa: E501
        Collection,
    )

display = Display()

POWERSHELL_ARGS = (
    "-NoProfile",
    "-NonInteractive",
    "-NoLogo",
    "-ExecutionPolicy",
    "Bypass",
    "-File",
)

WINDOWS_EXECUTABLE_EXTENSIONS = (".bat", ".cmd", ".com", ".exe")


def add_line(facts: "Collection", line: str, source: str) -> bool:
    """
    Add a fact from a ``key=value`` line.

    Lines without ``=`` are skipped.

    :param Collection facts: Collection to add the fact to
    :param str line: Line of output
    :param str source: File the line came from, for logging
    :returns bool: Always True so it can be used as a line callback
    """
    key, sep, value = line.partition("=")
    if not sep or not key:
        display.vvvv(f"{source}: ignoring line in output: {line}")
        return True
    facts.add(key.lower(), make_value(value, "string"))
    return True


class ExternalResolver:
    """Base class for resolvers of external fact files."""

    extensions: Tuple[str, ...] = ()

    def can_resolve(self, path: str) -> bool:
        """Whether ``path`` is a file this resolver understands."""
        return path.lower().endswith(self.extensions) and os.path.isfile(
            path
        )

    def resolve(self, path: str, facts: "Collection") -> None:
        raise NotImplementedError

    def _read(self, path: str) -> str:
        try:
            with open(path, "rb") as f:
                return to_text(f.read(), errors="surrogate_or_replace")
        except OSError as e:
            raise ExternalFactError(f"{path}: {e.strerror or e}")

    def _add_mapping(
        self, path: str, data: Any, facts: "Collection"
    ) -> None:
        """Add every top-level key of a parsed document as a fact."""
        if data is None:
            return
        if not isinstance(data, Mapping):
            raise ExternalFactError(
                f"{path}: expected a mapping at the top level, got "
                f"{type(data).__name__}"
            )

        for key, value in data.items():
            if value is None:
                continue
            try:
                fact = make_value(value)
            except TypeError as e:
                display.vvvv(f"{path}: skipping fact {key}: {e}")
                continue
            facts.add(str(key).lower(), fact)


class TextResolver(ExternalResolver):
    """Resolves ``key=value`` text files."""

    extensions = (".txt",)

    def resolve(self, path: str, facts: "Collection") -> None:
        display.vvv(f'resolving facts from text file "{path}"')
        for line in self._read(path).splitlines():
            add_line(facts, line, path)


class JsonResolver(ExternalResolver):
    """Resolves JSON documents."""

    extensions = (".json",)

    def resolve(self, path: str, facts: "Collection") -> None:
        display.vvv(f'resolving facts from JSON file "{path}"')
        try:
            data = json.loads(self._read(path))
        except ValueError as e:
            raise ExternalFactError(f"{path}: invalid JSON: {e}")
        self._add_mapping(path, data, facts)


class YamlResolver(ExternalResolver):
    """Resolves YAML documents."""

    extensions = (".yaml", ".yml")

    def resolve(self, path: str, facts: "Collection") -> None:
        display.vvv(f'resolving facts from YAML file "{path}"')
        try:
            data = yaml.safe_load(self._read(path))
        except yaml.YAMLError as e:
            raise ExternalFactError(f"{path}: invalid YAML: {e}")
        self._add_mapping(path, data, facts)


class ExecutionResolver(ExternalResolver):
    """Resolves executables that print ``key=value`` lines."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    def can_resolve(self, path: str) -> bool:
        if not os.path.isfile(path):
            return False
        if os.name == "nt":
            return path.lower().endswith(WINDOWS_EXECUTABLE_EXTENSIONS)
        return os.access(path, os.X_OK)

    def resolve(self, path: str, facts: "Collection") -> None:
        display.vvv(f'resolving facts from executable "{path}"')
        self._run(path, (), path, facts)

    def _run(
        self,
        command: str,
        args: Tuple[str, ...],
        source: str,
        facts: "Collection",
    ) -> None:
        try:
            execution.each_line(
                command,
                args,
                lambda line: add_line(facts, line, source),
                throw_on_failure=True,
                timeout=self.timeout,
            )
        except ExecutableNotFoundError as e:
            raise ExternalFactInvocationError(str(e))
        except ExecutionFailureError as e:
            raise ExternalFactExecutionError(str(e))


class PowershellResolver(ExecutionResolver):
    """Resolves PowerShell scripts."""

    extensions = (".ps1",)

    def can_resolve(self, path: str) -> bool:
        return ExternalResolver.can_resolve(self, path)

    def resolve(self, path: str, facts: "Collection") -> None:
        display.vvv(f'resolving facts from powershell script "{path}"')
        self._run(self._powershell(), POWERSHELL_ARGS + (path,), path, facts)

    def _powershell(self) -> str:
        # Prefer the 64-bit PowerShell when running as a 32-bit process
        system_root = os.environ.get("SYSTEMROOT")
        if system_root:
            sysnative = os.path.join(
                system_root,
                "sysnative",
                "WindowsPowerShell",
                "v1.0",
                "powershell.exe",
            )
            if execution.which(sysnative):
                return sysnative
        return "powershell"


def default_external_resolvers(
    timeout: Optional[float] = None,
) -> Tuple[ExternalResolver, ...]:
    """External resolvers in the order they are tried."""
    return (
        TextResolver(),
        JsonResolver(),
        YamlResolver(),
        PowershellResolver(timeout=timeout),
        ExecutionResolver(timeout=timeout),
    )
