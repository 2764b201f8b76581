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
Operating system identification.

On generic POSIX systems the operating system is the kernel. On Linux
the distribution is identified by walking a fixed sequence of release
file checks, the first match wins, with ``/etc/os-release`` as the
final fallback.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Dict, Optional

from ansible.utils.display import Display

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.resolver import (
    Resolver,
)

if TYPE_CHECKING:
    from ansible_collections.o0_o.hostfacts.plugins.facts_utils.collection import (  # noqa: E501
        Collection,
    )

display = Display()

OS_FAMILIES = {
    "RedHat": "RedHat",
    "Fedora": "RedHat",
    "CentOS": "RedHat",
    "Scientific": "RedHat",
    "SLC": "RedHat",
    "Ascendos": "RedHat",
    "CloudLinux": "RedHat",
    "PSBM": "RedHat",
    "OracleLinux": "RedHat",
    "OVS": "RedHat",
    "OEL": "RedHat",
    "Amazon": "RedHat",
    "XenServer": "RedHat",
    "Rocky": "RedHat",
    "AlmaLinux": "RedHat",
    "Ubuntu": "Debian",
    "Debian": "Debian",
    "LinuxMint": "Debian",
    "CumulusLinux": "Debian",
    "SLES": "Suse",
    "SLED": "Suse",
    "OpenSuSE": "Suse",
    "SuSE": "Suse",
    "Gentoo": "Gentoo",
    "Archlinux": "Archlinux",
    "Mandriva": "Mandrake",
    "Mandrake": "Mandrake",
}

# Ordered: the first pattern found in /etc/redhat-release wins
REDHAT_VARIANTS = (
    (re.compile(r"centos", re.I), "CentOS"),
    (re.compile(r"scientific linux cern", re.I), "SLC"),
    (re.compile(r"scientific", re.I), "Scientific"),
    (re.compile(r"^cloudlinux", re.I), "CloudLinux"),
    (re.compile(r"^parallels server bare metal", re.I), "PSBM"),
    (re.compile(r"ascendos", re.I), "Ascendos"),
    (re.compile(r"^xenserver", re.I), "XenServer"),
    (re.compile(r"fedora", re.I), "Fedora"),
    (re.compile(r"rocky", re.I), "Rocky"),
    (re.compile(r"almalinux", re.I), "AlmaLinux"),
)

SUSE_VARIANTS = (
    (re.compile(r"enterprise server", re.I), "SLES"),
    (re.compile(r"enterprise desktop", re.I), "SLED"),
    (re.compile(r"opensuse", re.I), "OpenSuSE"),
)

# Ordered: release file -> operating system
OTHER_RELEASE_FILES = (
    ("/etc/arch-release", "Archlinux"),
    ("/etc/gentoo-release", "Gentoo"),
    ("/etc/alpine-release", "Alpine"),
    ("/etc/mageia-release", "Mageia"),
    ("/etc/mandriva-release", "Mandriva"),
    ("/etc/mandrake-release", "Mandrake"),
    ("/etc/meego-release", "MeeGo"),
    ("/etc/slackware-version", "Slackware"),
    ("/etc/vmware-release", "VMWareESX"),
)

# os-release ID -> operating system
OS_RELEASE_IDS = {
    "amzn": "Amazon",
    "alpine": "Alpine",
    "arch": "Archlinux",
    "centos": "CentOS",
    "debian": "Debian",
    "fedora": "Fedora",
    "gentoo": "Gentoo",
    "linuxmint": "LinuxMint",
    "ol": "OracleLinux",
    "opensuse": "OpenSuSE",
    "opensuse-leap": "OpenSuSE",
    "rhel": "RedHat",
    "rocky": "Rocky",
    "almalinux": "AlmaLinux",
    "sles": "SLES",
    "sled": "SLED",
    "ubuntu": "Ubuntu",
}

RELEASE_PATTERN = re.compile(r"release (\d[\d.]*)")


def _split_major(release: str) -> str:
    return release.split(".", 1)[0]


# Generic POSIX steps: the operating system is the kernel


def _name(
    resolver: "OperatingSystemResolver", facts: "Collection"
) -> Optional[str]:
    return facts.value("kernel")


def _release(
    resolver: "OperatingSystemResolver", facts: "Collection", name: str
) -> Optional[str]:
    return facts.value("kernelrelease")


def _major_release(
    resolver: "OperatingSystemResolver", name: str, release: str
) -> Optional[str]:
    return _split_major(release)


# Linux steps


def _check_cumulus(resolver: "OperatingSystemResolver") -> Optional[str]:
    if resolver.os_release().get("NAME") == "Cumulus Linux":
        return "CumulusLinux"
    return None


def _check_debian(resolver: "OperatingSystemResolver") -> Optional[str]:
    distro_id = resolver.os_release().get("ID")
    if distro_id in ("ubuntu", "linuxmint"):
        return OS_RELEASE_IDS[distro_id]
    if resolver.is_file("/etc/debian_version"):
        return "Debian"
    return None


def _check_oracle(resolver: "OperatingSystemResolver") -> Optional[str]:
    if resolver.is_file("/etc/oracle-release"):
        return "OracleLinux"
    if resolver.is_file("/etc/enterprise-release"):
        if resolver.is_file("/etc/ovs-release"):
            return "OVS"
        return "OEL"
    return None


def _check_redhat(resolver: "OperatingSystemResolver") -> Optional[str]:
    contents = resolver.read_file("/etc/redhat-release")
    if contents is None:
        return None
    for pattern, name in REDHAT_VARIANTS:
        if pattern.search(contents):
            return name
    return "RedHat"


def _check_suse(resolver: "OperatingSystemResolver") -> Optional[str]:
    contents = resolver.read_file("/etc/SuSE-release")
    if contents is None:
        return None
    for pattern, name in SUSE_VARIANTS:
        if pattern.search(contents):
            return name
    return "SuSE"


def _check_other(resolver: "OperatingSystemResolver") -> Optional[str]:
    for path, name in OTHER_RELEASE_FILES:
        if resolver.is_file(path):
            return name

    contents = resolver.read_file("/etc/system-release")
    if contents and "Amazon Linux" in contents:
        return "Amazon"

    os_release = resolver.os_release()
    distro_id = os_release.get("ID")
    if distro_id:
        return OS_RELEASE_IDS.get(distro_id, os_release.get("NAME"))
    return None


LINUX_CHECKS = (
    _check_cumulus,
    _check_debian,
    _check_oracle,
    _check_redhat,
    _check_suse,
    _check_other,
)


def _linux_name(
    resolver: "OperatingSystemResolver", facts: "Collection"
) -> Optional[str]:
    for check in LINUX_CHECKS:
        name = check(resolver)
        if name:
            display.vvv(f"{check.__name__.lstrip('_')}: {name}")
            return name
    return _name(resolver, facts)


def _release_from_file(
    resolver: "OperatingSystemResolver", path: str
) -> Optional[str]:
    contents = resolver.read_file(path)
    if contents is None:
        return None
    match = RELEASE_PATTERN.search(contents)
    return match.group(1) if match else None


def _suse_release(resolver: "OperatingSystemResolver") -> Optional[str]:
    contents = resolver.read_file("/etc/SuSE-release")
    if contents is None:
        return None
    fields = {}
    for line in contents.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            fields[key.strip()] = value.strip()
    version = fields.get("VERSION")
    if not version:
        return None
    patchlevel = fields.get("PATCHLEVEL")
    return f"{version}.{patchlevel}" if patchlevel else version


def _linux_release(
    resolver: "OperatingSystemResolver", facts: "Collection", name: str
) -> Optional[str]:
    release = None
    if name == "OracleLinux":
        release = _release_from_file(resolver, "/etc/oracle-release")
    elif name in ("OEL", "OVS"):
        release = _release_from_file(resolver, "/etc/enterprise-release")
    elif OS_FAMILIES.get(name) == "RedHat" and name != "Amazon":
        release = _release_from_file(resolver, "/etc/redhat-release")
    elif name == "Debian":
        contents = resolver.read_file("/etc/debian_version")
        release = contents.strip() if contents else None
    elif name == "Alpine":
        contents = resolver.read_file("/etc/alpine-release")
        release = contents.strip() if contents else None
    elif OS_FAMILIES.get(name) == "Suse":
        release = _suse_release(resolver)

    if not release:
        release = resolver.os_release().get("VERSION_ID")
    if not release:
        release = _release(resolver, facts, name)
    return release


def _linux_major_release(
    resolver: "OperatingSystemResolver", name: str, release: str
) -> Optional[str]:
    if name == "Ubuntu":
        # Ubuntu releases are year.month, e.g. 22.04
        return ".".join(release.split(".")[:2])
    return _split_major(release)


class OperatingSystemResolver(Resolver):
    """Resolves operating system name, family and release facts."""

    name = "os"
    fact_names = (
        "operatingsystem",
        "osfamily",
        "operatingsystemrelease",
        "operatingsystemmajrelease",
        "architecture",
        "os",
    )
    STEPS = {
        "name": _name,
        "release": _release,
        "major_release": _major_release,
    }

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._os_release: Optional[Dict[str, str]] = None

    def os_release(self) -> Dict[str, str]:
        """Fields of ``/etc/os-release``, parsed once with jc."""
        if self._os_release is None:
            contents = self.read_file("/etc/os-release")
            parsed = self.parse(contents, "os_release")
            self._os_release = parsed if isinstance(parsed, dict) else {}
        return self._os_release

    def resolve_facts(self, facts: "Collection") -> None:
        name = self.step("name", facts)
        if not name:
            return

        family = OS_FAMILIES.get(name) or facts.value("kernel")
        facts.add("operatingsystem", name)
        if family:
            facts.add("osfamily", family)

        os_map: Dict[str, Any] = {"name": name}
        if family:
            os_map["family"] = family

        release = self.step("release", facts, name)
        if release:
            facts.add("operatingsystemrelease", release)
            release_map = {"full": release}
            major = self.step("major_release", name, release)
            if major:
                facts.add("operatingsystemmajrelease", major)
                release_map["major"] = major
            parts = release.split(".")
            if len(parts) > 1:
                release_map["minor"] = parts[1]
            os_map["release"] = release_map

        architecture = self._architecture(facts, family)
        if architecture:
            facts.add("architecture", architecture)
            os_map["architecture"] = architecture

        facts.add("os", os_map)

    def _architecture(
        self, facts: "Collection", family: Optional[str]
    ) -> Optional[str]:
        hardware = facts.value("hardwaremodel")
        if hardware == "x86_64" and family in ("Debian", "Gentoo"):
            return "amd64"
        return hardware


LINUX_STEPS = {
    "name": _linux_name,
    "release": _linux_release,
    "major_release": _linux_major_release,
}
