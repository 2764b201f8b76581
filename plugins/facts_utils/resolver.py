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
Base class for fact resolvers.

A resolver owns a fixed set of fact names for one domain (kernel,
operating system, networking...) and computes them in a single pass.
Its algorithm is split into named steps held in a step table. The
generic POSIX behaviour is the class-level ``STEPS`` table; a platform
variant is the same resolver class constructed with a table of
overrides for only the steps that differ on that platform.

Resolvers never fail the run because a source is missing: the I/O
helpers below log at high verbosity and return None or False, and the
resolver simply omits the fact.
"""

from __future__ import annotations

import os
import re
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    Mapping,
    Optional,
    Pattern,
    Tuple,
)

from ansible.module_utils.common.text.converters import to_text
from ansible.utils.display import Display

from ansible_collections.o0_o.hostfacts.plugins.facts_utils import execution
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.errors import (
    FactParseError,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.jc_base import (
    JCBase,
    Output,
)

if TYPE_CHECKING:
    from ansible_collections.o0_o.hostfacts.plugins.facts_utils.collection import (  # noqa: E501
        Collection,
    )

display = Display()

Step = Callable[..., Any]

DEFAULT_TIMEOUT = 30.0


class Resolver(JCBase):
    """
    Base class for all built-in fact resolvers.

    Subclasses set ``name``, ``fact_names`` (and optionally
    ``fact_patterns`` for dynamic names such as ``mtu_eth0``), define
    their default ``STEPS`` and implement :meth:`resolve_facts`.

    Usage:
        class KernelResolver(Resolver):
            name = "kernel"
            fact_names = ("kernel",)
            STEPS = {"uname": _uname}

            def resolve_facts(self, facts):
                uname = self.step("uname")
                ...
    """

    name: str = ""
    fact_names: Tuple[str, ...] = ()
    fact_patterns: Tuple[str, ...] = ()
    STEPS: Mapping[str, Step] = {}

    def __init__(
        self,
        steps: Optional[Mapping[str, Step]] = None,
        root: str = "/",
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize the resolver with optional platform step overrides.

        :param Optional[Mapping[str, Step]] steps: Step overrides for a
            platform variant
        :param str root: Filesystem root that absolute paths are
            resolved against
        :param Optional[float] timeout: Default timeout in seconds for
            commands run by this resolver
        :raises ValueError: If an override names an unknown step
        """
        overrides = dict(steps or {})
        unknown = sorted(set(overrides) - set(self.STEPS))
        if unknown:
            raise ValueError(
                f"{type(self).__name__} has no step(s) named: "
                f"{', '.join(unknown)}"
            )

        self._steps: Dict[str, Step] = {**self.STEPS, **overrides}
        self.root = root
        self.timeout = timeout
        self.names: FrozenSet[str] = frozenset(self.fact_names)
        self.patterns: Tuple[Pattern[str], ...] = tuple(
            re.compile(p) for p in self.fact_patterns
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    def step(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Run the named step of this resolver's pipeline."""
        return self._steps[name](self, *args, **kwargs)

    def handles(self, fact_name: str) -> bool:
        """Whether this resolver can produce ``fact_name``."""
        if fact_name in self.names:
            return True
        return any(p.match(fact_name) for p in self.patterns)

    def resolve(self, facts: "Collection") -> None:
        """
        Resolve every fact this resolver is responsible for.

        :param Collection facts: Collection to read dependencies from
            and add facts to
        """
        display.vvv(f"resolving {self.name} facts")
        self.resolve_facts(facts)

    def resolve_facts(self, facts: "Collection") -> None:
        raise NotImplementedError

    # File helpers

    def path(self, *parts: str) -> str:
        """Map an absolute path onto the configured root."""
        joined = os.path.join(*parts)
        if self.root in ("", "/"):
            return joined
        return os.path.join(self.root, joined.lstrip("/"))

    def exists(self, path: str) -> bool:
        return os.path.exists(self.path(path))

    def is_file(self, path: str) -> bool:
        return os.path.isfile(self.path(path))

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(self.path(path))

    def read_file(self, path: str) -> Optional[str]:
        """
        Read a whole text file.

        :param str path: Absolute path, relative to the root
        :returns Optional[str]: File contents, or None if it can not be
            read
        """
        try:
            with open(self.path(path), "rb") as f:
                return to_text(f.read(), errors="surrogate_or_replace")
        except OSError as e:
            display.vvvv(f"{path}: {e.strerror or e}")
            return None

    def each_file_line(
        self, path: str, callback: Callable[[str], bool]
    ) -> bool:
        """
        Feed each line of a text file to ``callback``.

        The callback returns True to continue or False to stop.

        :returns bool: False if the file could not be read
        """
        contents = self.read_file(path)
        if contents is None:
            return False
        for line in contents.splitlines():
            if not callback(line):
                break
        return True

    # Command helpers

    def execute(
        self, command: str, args: Iterable[str] = (), **kwargs: Any
    ) -> execution.ExecutionResult:
        kwargs.setdefault("timeout", self.timeout)
        return execution.execute(command, args, **kwargs)

    def each_line(
        self,
        command: str,
        args: Iterable[str] = (),
        callback: Optional[Callable[[str], bool]] = None,
        **kwargs: Any,
    ) -> bool:
        kwargs.setdefault("timeout", self.timeout)
        return execution.each_line(command, args, callback, **kwargs)

    def parse(
        self, data: Output, parser: str
    ) -> Any:
        """
        Parse output with jc, returning None when it can not be parsed.
        """
        if not data:
            return None
        try:
            return self.jc(data, parser)
        except FactParseError as e:
            display.vvvv(f"{self.name}: {e}")
            return None
