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

from __future__ import annotations

from typing import Dict, Optional

import pytest

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.collection import (
    Collection,
    FactsConfig,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.resolvers import (
    dmi,
    virtualization,
)


def linux(
    root: str,
    fake_commands,
    commands: Optional[Dict[str, str]] = None,
) -> virtualization.VirtualizationResolver:
    resolver = virtualization.VirtualizationResolver(
        virtualization.LINUX_STEPS, root=root
    )
    fake_commands(resolver, commands or {})
    return resolver


def resolve(
    resolver: virtualization.VirtualizationResolver, **pinned: str
) -> Collection:
    facts = Collection(FactsConfig(resolvers=(resolver,)))
    for name, value in pinned.items():
        facts.add(name, value)
    return facts.resolve_all()


def test_docker_cgroup_wins(root, fake_commands) -> None:
    """Test that a container marker beats every later check."""
    resolver = linux(
        root({"/proc/1/cgroup": "12:cpuset:/docker/3f2a9c\n0::/\n"}),
        fake_commands,
        {"virt-what": "kvm"},
    )

    facts = resolve(resolver, productname="VMware Virtual Platform")

    assert facts.value("virtual") == "docker"
    assert facts.value("is_virtual") is True


def test_lxc_cgroup(root, fake_commands) -> None:
    """Test LXC detection from the cgroup of PID 1."""
    resolver = linux(
        root({"/proc/1/cgroup": "1:name=systemd:/lxc/web01\n"}),
        fake_commands,
    )

    assert resolve(resolver).value("virtual") == "lxc"


def test_gce_bios_vendor(root, fake_commands) -> None:
    """Test Google Compute Engine detection."""
    resolver = linux(root({}), fake_commands)

    assert resolve(resolver, bios_vendor="Google").value("virtual") == "gce"


@pytest.mark.parametrize(
    "output,expected",
    [
        ("virt-what: warning: no dmidecode\nxen-hvm\n", "xenhvm"),
        ("xen-dom0\n", "xen0"),
        ("xen-domU\n", "xenu"),
        ("ibm_systemz\n", "zlinux"),
        ("kvm\n", "kvm"),
    ],
)
def test_virt_what(root, fake_commands, output: str, expected: str) -> None:
    """Test normalisation of virt-what output."""
    resolver = linux(root({}), fake_commands, {"virt-what": output})

    assert resolve(resolver).value("virtual") == expected


def test_virt_what_linux_vserver(root, fake_commands) -> None:
    """Test that a Linux-VServer answer defers to the process context."""
    resolver = linux(
        root({"/proc/self/status": "Name:\tbash\nVxID:\t0\n"}),
        fake_commands,
        {"virt-what": "linux_vserver\n"},
    )

    facts = resolve(resolver)

    assert facts.value("virtual") == "vserver_host"
    assert facts.value("is_virtual") is False


def test_vmware_version(root, fake_commands) -> None:
    """Test VMware host products from ``vmware -v``."""
    resolver = linux(
        root({}),
        fake_commands,
        {"vmware -v": "VMware Workstation 17.5.0 build-22583795"},
    )

    facts = resolve(resolver)

    assert facts.value("virtual") == "vmware_workstation"
    assert facts.value("is_virtual") is False


@pytest.mark.parametrize(
    "env_id,expected",
    [("0", "openvzhn"), ("101", "openvzve")],
)
def test_openvz(root, fake_commands, env_id: str, expected: str) -> None:
    """Test OpenVZ hardware nodes and containers."""
    resolver = linux(
        root(
            {
                "/proc/vz/veinfo": "",
                "/proc/self/status": f"Name:\tbash\nenvID:\t{env_id}\n",
            }
        ),
        fake_commands,
    )

    assert resolve(resolver).value("virtual") == expected


def test_openvz_ignores_cloudlinux(root, fake_commands) -> None:
    """Test that CloudLinux LVE is not mistaken for OpenVZ."""
    resolver = linux(
        root(
            {
                "/proc/vz/veinfo": "",
                "/proc/lve/list": "",
                "/proc/self/status": "envID:\t101\n",
            }
        ),
        fake_commands,
    )

    assert resolve(resolver).value("virtual") == "physical"


@pytest.mark.parametrize(
    "files,expected",
    [
        (
            {"/proc/xen/capabilities": "control_d\n", "/dev/xen/evtchn": ""},
            "xen0",
        ),
        ({"/proc/xen/capabilities": ""}, "xenu"),
    ],
)
def test_xen(
    root, fake_commands, files: Dict[str, str], expected: str
) -> None:
    """Test Xen privileged and unprivileged domains."""
    resolver = linux(root(files), fake_commands)

    assert resolve(resolver).value("virtual") == expected


def test_vserver_guest(root, fake_commands) -> None:
    """Test a Linux-VServer guest context."""
    resolver = linux(
        root({"/proc/self/status": "s_context:\t42\n"}), fake_commands
    )

    facts = resolve(resolver)

    assert facts.value("virtual") == "vserver"
    assert facts.value("is_virtual") is True


def test_physical(root, fake_commands) -> None:
    """Test that a machine with no markers is physical."""
    resolver = linux(root({}), fake_commands)

    facts = resolve(resolver)

    assert facts.value("virtual") == "physical"
    assert facts.value("is_virtual") is False


def test_product_name_from_dmi(root, fake_commands) -> None:
    """Test that the DMI resolver is run to get the product name."""
    image = root(
        {"/sys/class/dmi/id/product_name": "VirtualBox\n"}
    )
    resolver = linux(image, fake_commands)
    facts = Collection(
        FactsConfig(
            resolvers=(resolver, dmi.DmiResolver(dmi.LINUX_STEPS, root=image))
        )
    )

    assert facts.value("virtual") == "virtualbox"
    assert facts.origin("productname") == "dmi"


@pytest.mark.parametrize(
    "product_name,expected",
    [
        ("VMware Virtual Platform", "vmware"),
        ("KVM", "kvm"),
        ("Virtual Machine", "hyperv"),
        ("RHEV Hypervisor", "rhev"),
        ("oVirt Node", "ovirt"),
        ("HVM domU", "xenhvm"),
        ("Parallels Virtual Platform", "parallels"),
        ("PowerEdge R740", "physical"),
    ],
)
def test_generic_product_names(product_name: str, expected: str) -> None:
    """Test the generic chain, which only looks at the product name."""
    resolver = virtualization.VirtualizationResolver()

    facts = resolve(resolver, productname=product_name)

    assert facts.value("virtual") == expected


def test_bsd_jail(fake_commands) -> None:
    """Test FreeBSD jail detection."""
    resolver = virtualization.VirtualizationResolver(
        virtualization.BSD_STEPS
    )
    fake_commands(resolver, {"sysctl -n security.jail.jailed": "1"})

    facts = resolve(resolver)

    assert facts.value("virtual") == "jail"
    assert facts.value("is_virtual") is True


@pytest.mark.parametrize(
    "hypervisor,expected",
    [
        ("physical", False),
        ("xen0", False),
        ("vmware_server", False),
        ("openvzhn", False),
        ("xenu", True),
        ("docker", True),
        ("kvm", True),
    ],
)
def test_is_virtual(hypervisor: str, expected: bool) -> None:
    """Test which hypervisor names describe a guest."""
    assert virtualization.is_virtual(hypervisor) is expected
