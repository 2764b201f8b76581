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
Virtualization detection.

The hypervisor is found by an ordered chain of independent checks, each
looking at a different subsystem; the first check that returns a name
wins. A check that finds nothing, or whose file or command is missing,
returns None and the chain moves on. When every check comes up empty the
machine is reported as ``physical``.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Callable, Optional, Tuple

from ansible.utils.display import Display

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.resolver import (
    Resolver,
)

if TYPE_CHECKING:
    from ansible_collections.o0_o.hostfacts.plugins.facts_utils.collection import (  # noqa: E501
        Collection,
    )

display = Display()

PHYSICAL = "physical"
DOCKER = "docker"
LXC = "lxc"
GCE = "gce"
JAIL = "jail"
XEN_HARDWARE = "xenhvm"
XEN_PRIVILEGED = "xen0"
XEN_UNPRIVILEGED = "xenu"
ZLINUX = "zlinux"
VSERVER = "vserver"
VSERVER_HOST = "vserver_host"
OPENVZ_HN = "openvzhn"
OPENVZ_VE = "openvzve"
VMWARE = "vmware"
VMWARE_SERVER = "vmware_server"
VMWARE_WORKSTATION = "vmware_workstation"
VIRTUALBOX = "virtualbox"
PARALLELS = "parallels"
KVM = "kvm"
HYPERV = "hyperv"
REDHAT_EV = "rhev"
OVIRT = "ovirt"

# Hypervisor names that describe the host side rather than a guest
NOT_VIRTUAL = frozenset(
    (
        PHYSICAL,
        XEN_PRIVILEGED,
        VMWARE_SERVER,
        VMWARE_WORKSTATION,
        OPENVZ_HN,
        VSERVER_HOST,
    )
)

# Ordered: the first substring found in the product name wins
PRODUCT_NAMES = (
    ("VMware", VMWARE),
    ("VirtualBox", VIRTUALBOX),
    ("Parallels", PARALLELS),
    ("KVM", KVM),
    ("Virtual Machine", HYPERV),
    ("RHEV Hypervisor", REDHAT_EV),
    ("oVirt Node", OVIRT),
    ("HVM domU", XEN_HARDWARE),
)

# virt-what output -> hypervisor name
VIRT_WHAT_ALIASES = {
    "xen-hvm": XEN_HARDWARE,
    "xen-dom0": XEN_PRIVILEGED,
    "xen-domu": XEN_UNPRIVILEGED,
    "ibm_systemz": ZLINUX,
}

CGROUP_MARKERS = (
    ("/docker/", DOCKER),
    ("/lxc/", LXC),
)

XEN_PATHS = ("/proc/sys/xen", "/sys/bus/xen", "/proc/xen")

Check = Callable[["VirtualizationResolver", "Collection"], Optional[str]]


def _status_field(
    resolver: "VirtualizationResolver", *keys: str
) -> Optional[str]:
    """First value of ``keys`` in /proc/self/status."""
    found = []

    def match(line: str) -> bool:
        parts = line.split(":")
        if len(parts) != 2:
            return True
        if parts[0].strip() in keys:
            found.append(parts[1].strip())
            return False
        return True

    resolver.each_file_line("/proc/self/status", match)
    return found[0] if found else None


def check_cgroup(
    resolver: "VirtualizationResolver", facts: "Collection"
) -> Optional[str]:
    """Container markers in the control group paths of PID 1."""
    found = []

    def match(line: str) -> bool:
        parts = line.split(":", 2)
        if len(parts) < 3:
            return True
        for marker, name in CGROUP_MARKERS:
            if parts[2].startswith(marker):
                found.append(name)
                return False
        return True

    resolver.each_file_line("/proc/1/cgroup", match)
    return found[0] if found else None


def check_gce(
    resolver: "VirtualizationResolver", facts: "Collection"
) -> Optional[str]:
    """Google Compute Engine BIOS vendor."""
    vendor = facts.value("bios_vendor")
    if vendor and "Google" in vendor:
        return GCE
    return None


def check_virt_what(
    resolver: "VirtualizationResolver", facts: "Collection"
) -> Optional[str]:
    """
    Output of the virt-what utility.

    Some versions print warnings to stdout, prefixed with
    ``virt-what:``; the first other line is the answer.
    """
    found = []

    def first(line: str) -> bool:
        if line.startswith("virt-what:"):
            return True
        found.append(line)
        return False

    resolver.each_line("virt-what", (), first)
    if not found:
        return None

    value = found[0].lower()
    if value == "linux_vserver":
        return check_vserver(resolver, facts)
    return VIRT_WHAT_ALIASES.get(value, value)


def check_vmware(
    resolver: "VirtualizationResolver", facts: "Collection"
) -> Optional[str]:
    """VMware host product from ``vmware -v``, e.g. vmware_workstation."""
    result = resolver.execute("vmware", ["-v"])
    parts = result.output.split() if result.success else []
    if len(parts) < 2:
        return None
    return f"{parts[0]}_{parts[1]}".lower()


def check_openvz(
    resolver: "VirtualizationResolver", facts: "Collection"
) -> Optional[str]:
    """OpenVZ hardware node or container, excluding CloudLinux LVE."""
    if not resolver.is_dir("/proc/vz") or resolver.is_file("/proc/lve/list"):
        return None
    try:
        if not os.listdir(resolver.path("/proc/vz")):
            return None
    except OSError as e:
        display.vvvv(f"/proc/vz: {e.strerror or e}")
        return None

    env_id = _status_field(resolver, "envID")
    if env_id is None:
        return None
    return OPENVZ_HN if env_id == "0" else OPENVZ_VE


def check_vserver(
    resolver: "VirtualizationResolver", facts: "Collection"
) -> Optional[str]:
    """Linux-VServer context of the current process."""
    context = _status_field(resolver, "s_context", "VxID")
    if context is None:
        return None
    return VSERVER_HOST if context == "0" else VSERVER


def check_xen(
    resolver: "VirtualizationResolver", facts: "Collection"
) -> Optional[str]:
    """Xen dom0 or domU from the presence of Xen interfaces."""
    if not any(resolver.exists(path) for path in XEN_PATHS):
        return None
    if resolver.exists("/dev/xen/evtchn"):
        return XEN_PRIVILEGED
    if resolver.exists("/proc/xen"):
        return XEN_UNPRIVILEGED
    return None


def check_jail(
    resolver: "VirtualizationResolver", facts: "Collection"
) -> Optional[str]:
    """FreeBSD jail."""
    result = resolver.execute("sysctl", ["-n", "security.jail.jailed"])
    if result.success and result.output == "1":
        return JAIL
    return None


def check_product_name(
    resolver: "VirtualizationResolver", facts: "Collection"
) -> Optional[str]:
    """Known virtual machine product names from DMI."""
    product_name = facts.value("productname")
    if not product_name:
        return None
    for needle, name in PRODUCT_NAMES:
        if needle in product_name:
            return name
    return None


POSIX_CHAIN: Tuple[Check, ...] = (check_product_name,)

LINUX_CHAIN: Tuple[Check, ...] = (
    check_cgroup,
    check_gce,
    check_virt_what,
    check_vmware,
    check_openvz,
    check_vserver,
    check_xen,
    check_product_name,
)

BSD_CHAIN: Tuple[Check, ...] = (check_jail, check_product_name)


def _run_chain(
    resolver: "VirtualizationResolver",
    facts: "Collection",
    chain: Tuple[Check, ...],
) -> Optional[str]:
    for check in chain:
        value = check(resolver, facts)
        if value:
            display.vvv(f"virtualization: {check.__name__} found {value}")
            return value
    return None


def _hypervisor(
    resolver: "VirtualizationResolver", facts: "Collection"
) -> Optional[str]:
    return _run_chain(resolver, facts, POSIX_CHAIN)


def _linux_hypervisor(
    resolver: "VirtualizationResolver", facts: "Collection"
) -> Optional[str]:
    return _run_chain(resolver, facts, LINUX_CHAIN)


def _bsd_hypervisor(
    resolver: "VirtualizationResolver", facts: "Collection"
) -> Optional[str]:
    return _run_chain(resolver, facts, BSD_CHAIN)


def is_virtual(hypervisor: str) -> bool:
    """Whether ``hypervisor`` names a guest rather than a host."""
    return hypervisor not in NOT_VIRTUAL


class VirtualizationResolver(Resolver):
    """Resolves the ``virtual`` and ``is_virtual`` facts."""

    name = "virtual"
    fact_names = ("virtual", "is_virtual")
    STEPS = {"hypervisor": _hypervisor}

    def resolve_facts(self, facts: "Collection") -> None:
        hypervisor = self.step("hypervisor", facts) or PHYSICAL
        facts.add("virtual", hypervisor)
        facts.add("is_virtual", is_virtual(hypervisor))


LINUX_STEPS = {"hypervisor": _linux_hypervisor}
BSD_STEPS = {"hypervisor": _bsd_hypervisor}
