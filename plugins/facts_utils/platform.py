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
Platform detection and resolver registration.

Each domain has one resolver class; a platform picks the step overrides
each resolver runs with. Domains without overrides for a platform fall
back to the generic POSIX steps.
"""

from __future__ import annotations

import platform
from typing import Dict, Iterable, Mapping, Optional, Tuple, Type

from ansible.utils.display import Display

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.collection import (
    FactsConfig,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.external import (
    default_external_resolvers,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.resolver import (
    DEFAULT_TIMEOUT,
    Resolver,
    Step,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.resolvers import (
    dmi,
    kernel,
    memory,
    networking,
    operating_system,
    virtualization,
)

display = Display()

LINUX = "linux"
BSD = "bsd"
POSIX = "posix"

DEFAULT_EXTERNAL_DIRS = ("/etc/o0_o/facts.d", "/etc/facter/facts.d")

BSD_SYSTEMS = ("FreeBSD", "OpenBSD", "NetBSD", "DragonFly", "Darwin")

# Registration order; later domains read facts of earlier ones
RESOLVERS: Tuple[Type[Resolver], ...] = (
    kernel.KernelResolver,
    operating_system.OperatingSystemResolver,
    dmi.DmiResolver,
    virtualization.VirtualizationResolver,
    networking.NetworkingResolver,
    memory.MemoryResolver,
)

# Platform -> resolver name -> step overrides
VARIANTS: Dict[str, Dict[str, Mapping[str, Step]]] = {
    LINUX: {
        "kernel": kernel.LINUX_STEPS,
        "os": operating_system.LINUX_STEPS,
        "dmi": dmi.LINUX_STEPS,
        "virtual": virtualization.LINUX_STEPS,
        "networking": networking.LINUX_STEPS,
        "memory": memory.LINUX_STEPS,
    },
    BSD: {
        "dmi": dmi.BSD_STEPS,
        "virtual": virtualization.BSD_STEPS,
        "networking": networking.BSD_STEPS,
    },
    POSIX: {},
}

DOMAINS = tuple(r.name for r in RESOLVERS)


def detect_platform(system: Optional[str] = None) -> str:
    """
    Name the platform variant for this machine.

    :param Optional[str] system: Value of ``platform.system()``, looked
        up when omitted
    :returns str: ``linux``, ``bsd`` or ``posix``
    """
    system = system if system is not None else platform.system()
    if system == "Linux":
        return LINUX
    if system in BSD_SYSTEMS:
        return BSD
    return POSIX


def build_config(
    platform_name: Optional[str] = None,
    root: str = "/",
    external_dirs: Optional[Iterable[str]] = None,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
) -> FactsConfig:
    """
    Build the resolver registry for a platform.

    :param Optional[str] platform_name: Platform variant, detected when
        omitted
    :param str root: Filesystem root for resolvers that read files
    :param Optional[Iterable[str]] external_dirs: Directories scanned
        for external facts
    :param Optional[float] timeout: Command timeout in seconds
    :returns FactsConfig: Configuration for a :class:`Collection`
    :raises ValueError: If ``platform_name`` is not a known platform
    """
    platform_name = platform_name or detect_platform()
    if platform_name not in VARIANTS:
        raise ValueError(
            f"Unknown platform '{platform_name}', expected one of: "
            f"{', '.join(sorted(VARIANTS))}"
        )
    display.vvv(f"building {platform_name} fact resolvers")

    overrides = VARIANTS[platform_name]
    resolvers = tuple(
        cls(overrides.get(cls.name), root=root, timeout=timeout)
        for cls in RESOLVERS
    )

    if external_dirs is None:
        external_dirs = DEFAULT_EXTERNAL_DIRS

    return FactsConfig(
        resolvers=resolvers,
        external_resolvers=default_external_resolvers(timeout),
        external_dirs=tuple(external_dirs),
    )
