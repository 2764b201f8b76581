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
The fact collection.

The collection owns every resolved fact and the registered resolvers.
Looking up a fact that is not cached yet runs its owning resolver once,
for the lifetime of the collection; resolvers may look up facts owned
by other resolvers while they run. Output of a resolver is staged and
committed when its pass ends, so no reader ever sees half of a pass.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Set,
    Tuple,
)

from ansible.utils.display import Display

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.errors import (
    CircularResolutionError,
    ExternalFactError,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.external import (
    ExternalResolver,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.resolver import (
    Resolver,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.value import (
    Value,
    dump_document,
    dump_markup,
    dump_text,
    make_value,
)

display = Display()

EXTERNAL = "external"


@dataclass(frozen=True)
class FactsConfig:
    """
    Everything a collection needs, decided once at startup.

    :ivar resolvers: Built-in resolvers in registration order, with the
        platform variant already chosen for each domain
    :ivar external_resolvers: Resolvers for external fact files, tried
        in order
    :ivar external_dirs: Directories scanned for external facts
    """

    resolvers: Tuple[Resolver, ...] = ()
    external_resolvers: Tuple[ExternalResolver, ...] = ()
    external_dirs: Tuple[str, ...] = ()


@dataclass
class _Frame:
    """A resolver pass in progress and the facts it has produced."""

    resolver: Resolver
    staged: Dict[str, Optional[Value]] = field(default_factory=dict)


class Collection:
    """
    Resolved facts plus the bookkeeping of which resolvers have run.

    Usage:
        facts = Collection(build_config())
        facts.get("kernel")
        facts.resolve_all().to_markup()
    """

    def __init__(self, config: Optional[FactsConfig] = None) -> None:
        """
        :param Optional[FactsConfig] config: Registered resolvers and
            external fact sources
        :raises ValueError: If two resolvers claim the same fact name
        """
        self.config = config or FactsConfig()
        self._facts: Dict[str, Value] = {}
        self._origins: Dict[str, str] = {}
        self._pinned: Set[str] = set()
        self._resolved: Set[Resolver] = set()
        self._frames: List[_Frame] = []
        self._owners: Dict[str, Resolver] = {}

        for resolver in self.config.resolvers:
            for name in resolver.names:
                owner = self._owners.get(name)
                if owner is not None:
                    raise ValueError(
                        f"Fact '{name}' is claimed by both {owner!r} and "
                        f"{resolver!r}"
                    )
                self._owners[name] = resolver

    def __contains__(self, name: object) -> bool:
        return name in self._facts

    def __iter__(self) -> Iterator[str]:
        return iter(self._facts)

    def __len__(self) -> int:
        return len(self._facts)

    def items(self) -> Iterable[Tuple[str, Value]]:
        return self._facts.items()

    @property
    def resolvers(self) -> Tuple[Resolver, ...]:
        return self.config.resolvers

    def origin(self, name: str) -> Optional[str]:
        """Domain of the resolver that produced ``name``, if resolved."""
        return self._origins.get(name)

    def add(self, name: str, value: Any) -> None:
        """
        Add or replace a fact.

        While a resolver runs, its facts are staged and committed when
        the pass ends. Facts added outside of resolution (external or
        embedded facts) take precedence over resolver output.

        :param str name: Fact name
        :param Any value: A fact value, a plain Python payload, or None
            to remove the fact
        """
        fact = None if value is None else make_value(value).adopt()

        if self._frames:
            self._frames[-1].staged[name] = fact
            return

        self._pinned.add(name)
        self._store(name, fact, EXTERNAL)

    def get(self, name: str) -> Optional[Value]:
        """
        Look up a fact, resolving its owner first if needed.

        :param str name: Fact name
        :returns Optional[Value]: The value, or None if it is absent
        :raises CircularResolutionError: If the owner is already running
            further up the resolution stack
        """
        if self._frames:
            staged = self._frames[-1].staged
            if name in staged:
                return staged[name]

        if name in self._facts:
            return self._facts[name]

        resolver = self._owner(name)
        if resolver is not None:
            self._resolve(resolver)
        return self._facts.get(name)

    def value(self, name: str) -> Any:
        """Look up a fact and return its plain payload, or None."""
        fact = self.get(name)
        return None if fact is None else fact.value

    def resolve_all(
        self, domains: Optional[Iterable[str]] = None
    ) -> "Collection":
        """
        Run every resolver that has not run yet, in registration order.

        :param Optional[Iterable[str]] domains: Only run resolvers with
            these names
        :returns Collection: This collection
        """
        selected = None if domains is None else set(domains)
        for resolver in self.config.resolvers:
            if selected is None or resolver.name in selected:
                self._resolve(resolver)
        return self

    def add_external_facts(
        self, directories: Optional[Iterable[str]] = None
    ) -> None:
        """
        Resolve external facts from every file in ``directories``.

        Files are visited in name order and handled by the first
        external resolver that accepts them. A failing file is logged
        and skipped.

        :param Optional[Iterable[str]] directories: Directories to scan,
            defaulting to the configured ones
        """
        if directories is None:
            directories = self.config.external_dirs

        for directory in directories:
            if not os.path.isdir(directory):
                display.vvvv(
                    f"skipping external facts directory {directory}: "
                    "not a directory"
                )
                continue

            display.vvv(f"searching {directory} for external facts")
            for entry in sorted(os.listdir(directory)):
                path = os.path.join(directory, entry)
                resolver = next(
                    (
                        r
                        for r in self.config.external_resolvers
                        if r.can_resolve(path)
                    ),
                    None,
                )
                if resolver is None:
                    display.vvvv(f"no external resolver for {path}")
                    continue

                try:
                    resolver.resolve(path, self)
                except ExternalFactError as e:
                    display.error(
                        f'error while processing "{path}" for external '
                        f"facts: {e}"
                    )

    def to_document(
        self, names: Optional[Iterable[str]] = None, indent: int = 2
    ) -> str:
        return dump_document(self._select(names), indent=indent)

    def to_markup(self, names: Optional[Iterable[str]] = None) -> str:
        return dump_markup(self._select(names))

    def to_text(self, names: Optional[Iterable[str]] = None) -> str:
        return dump_text(self._select(names))

    def _select(
        self, names: Optional[Iterable[str]]
    ) -> List[Tuple[str, Value]]:
        """Pairs to render: the named facts, or everything sorted."""
        if names is None:
            self.resolve_all()
            return sorted(self._facts.items())

        selected = []
        for name in names:
            fact = self.get(name)
            if fact is not None:
                selected.append((name, fact))
        return selected

    def _owner(self, name: str) -> Optional[Resolver]:
        resolver = self._owners.get(name)
        if resolver is not None:
            return resolver
        for candidate in self.config.resolvers:
            if candidate.handles(name):
                return candidate
        return None

    def _store(
        self, name: str, fact: Optional[Value], origin: str
    ) -> None:
        if fact is None:
            self._facts.pop(name, None)
            self._origins.pop(name, None)
            return
        self._facts[name] = fact
        self._origins[name] = origin

    def _resolve(self, resolver: Resolver) -> None:
        """Run ``resolver`` unless it already ran, isolating failures."""
        running = [frame.resolver for frame in self._frames]
        if resolver in running:
            if running[-1] is resolver:
                # A resolver looking up one of its own unset facts
                return
            chain = " -> ".join(r.name for r in running + [resolver])
            raise CircularResolutionError(
                f"Circular fact resolution: {chain}"
            )

        if resolver in self._resolved:
            return
        self._resolved.add(resolver)

        frame = _Frame(resolver)
        self._frames.append(frame)
        try:
            resolver.resolve(self)
        except CircularResolutionError:
            raise
        except Exception as e:
            display.warning(
                f"Error resolving {resolver.name} facts: "
                f"{type(e).__name__}: {e}"
            )
        finally:
            self._frames.pop()
            self._commit(frame)

    def _commit(self, frame: _Frame) -> None:
        for name, fact in frame.staged.items():
            if name in self._pinned:
                display.vvvv(
                    f"keeping {name} from external facts over "
                    f"{frame.resolver.name} resolver"
                )
                continue
            self._store(name, fact, frame.resolver.name)
