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

"""Kernel facts from uname."""

from __future__ import annotations

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

# uname flag -> key in jc's uname output
UNAME_FLAGS = {
    "-s": "kernel_name",
    "-r": "kernel_release",
    "-m": "machine",
}


def _uname(resolver: "KernelResolver") -> Dict[str, Any]:
    """
    Collect uname fields.

    ``uname -a`` is parsed with jc; if that output can not be parsed,
    the fields are read one flag at a time instead.
    """
    result = resolver.execute("uname", ["-a"])
    if result.success:
        parsed = resolver.parse(result.output, "uname")
        if parsed and parsed.get("kernel_name"):
            return parsed

    uname = {}
    for flag, key in UNAME_FLAGS.items():
        result = resolver.execute("uname", [flag])
        if result.success and result.output:
            uname[key] = result.output.splitlines()[0]
    return uname


def _release(
    resolver: "KernelResolver", uname: Dict[str, Any]
) -> Optional[str]:
    return uname.get("kernel_release")


def _version(resolver: "KernelResolver", release: str) -> str:
    """Release up to the first dash, e.g. 13.2-RELEASE -> 13.2."""
    return release.split("-", 1)[0]


def _major_version(resolver: "KernelResolver", version: str) -> str:
    return version.split(".", 1)[0]


def _linux_major_version(resolver: "KernelResolver", version: str) -> str:
    """Major and minor components, e.g. 5.15.0 -> 5.15."""
    return ".".join(version.split(".")[:2])


class KernelResolver(Resolver):
    """Resolves the kernel name, release and version facts."""

    name = "kernel"
    fact_names = (
        "kernel",
        "kernelrelease",
        "kernelversion",
        "kernelmajversion",
        "hardwaremodel",
    )
    STEPS = {
        "uname": _uname,
        "release": _release,
        "version": _version,
        "major_version": _major_version,
    }

    def resolve_facts(self, facts: "Collection") -> None:
        uname = self.step("uname")

        kernel_name = uname.get("kernel_name")
        if kernel_name:
            display.vvv(f"Kernel name: {kernel_name}")
            facts.add("kernel", kernel_name)

        machine = uname.get("machine")
        if machine:
            display.vvv(f"Architecture: {machine}")
            facts.add("hardwaremodel", machine)

        release = self.step("release", uname)
        if not release:
            return
        display.vvv(f"Kernel release: {release}")
        facts.add("kernelrelease", release)

        version = self.step("version", release)
        if not version:
            return
        facts.add("kernelversion", version)

        major_version = self.step("major_version", version)
        if major_version:
            facts.add("kernelmajversion", major_version)


LINUX_STEPS = {"major_version": _linux_major_version}
