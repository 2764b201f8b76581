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

"""System memory and swap facts."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, NamedTuple, Optional

import psutil
from ansible.utils.display import Display

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.resolver import (
    Resolver,
)

if TYPE_CHECKING:
    from ansible_collections.o0_o.hostfacts.plugins.facts_utils.collection import (  # noqa: E501
        Collection,
    )

display = Display()

MEBIBYTE = 1024 * 1024


class Usage(NamedTuple):
    total: int
    available: int


def _usage(resolver: "MemoryResolver") -> Dict[str, Usage]:
    """Memory and swap totals from psutil."""
    usage = {}
    try:
        memory = psutil.virtual_memory()
        usage["system"] = Usage(memory.total, memory.available)
    except (OSError, psutil.Error) as e:
        display.vvvv(f"memory: unable to read system memory: {e}")
    try:
        swap = psutil.swap_memory()
        usage["swap"] = Usage(swap.total, swap.free)
    except (OSError, psutil.Error) as e:
        display.vvvv(f"memory: unable to read swap: {e}")
    return usage


def _linux_usage(resolver: "MemoryResolver") -> Dict[str, Usage]:
    """Memory and swap totals from /proc/meminfo, parsed with jc."""
    contents = resolver.read_file("/proc/meminfo")
    meminfo = resolver.parse(contents, "proc_meminfo")
    if not isinstance(meminfo, dict) or "MemTotal" not in meminfo:
        return _usage(resolver)

    # jc reports kB
    usage = {}
    available = meminfo.get("MemAvailable")
    if available is None:
        available = (
            meminfo.get("MemFree", 0)
            + meminfo.get("Buffers", 0)
            + meminfo.get("Cached", 0)
        )
    usage["system"] = Usage(meminfo["MemTotal"] * 1024, available * 1024)
    if "SwapTotal" in meminfo:
        usage["swap"] = Usage(
            meminfo["SwapTotal"] * 1024, meminfo.get("SwapFree", 0) * 1024
        )
    return usage


def capacity(usage: Usage) -> str:
    """Percentage in use, e.g. "42.17%"."""
    if not usage.total:
        return "0.00%"
    used = usage.total - usage.available
    return "%.2f%%" % (used * 100.0 / usage.total)


def megabytes(size: int) -> float:
    return round(size / MEBIBYTE, 2)


def _describe(usage: Usage) -> Dict[str, Any]:
    return {
        "total_bytes": usage.total,
        "available_bytes": usage.available,
        "used_bytes": usage.total - usage.available,
        "capacity": capacity(usage),
    }


class MemoryResolver(Resolver):
    """Resolves memory and swap size facts, in MiB and as a map."""

    name = "memory"
    fact_names = (
        "memorysize_mb",
        "memoryfree_mb",
        "swapsize_mb",
        "swapfree_mb",
        "memory",
    )
    STEPS = {"usage": _usage}

    def resolve_facts(self, facts: "Collection") -> None:
        usage = self.step("usage")
        memory: Dict[str, Any] = {}

        system: Optional[Usage] = usage.get("system")
        if system:
            facts.add("memorysize_mb", megabytes(system.total))
            facts.add("memoryfree_mb", megabytes(system.available))
            memory["system"] = _describe(system)

        swap: Optional[Usage] = usage.get("swap")
        if swap and swap.total:
            facts.add("swapsize_mb", megabytes(swap.total))
            facts.add("swapfree_mb", megabytes(swap.available))
            memory["swap"] = _describe(swap)

        if memory:
            facts.add("memory", memory)


LINUX_STEPS = {"usage": _linux_usage}
