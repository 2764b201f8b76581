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

import pytest

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.collection import (
    Collection,
    FactsConfig,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.resolvers import (
    dmi,
)


def resolve(resolver: dmi.DmiResolver) -> Collection:
    return Collection(FactsConfig(resolvers=(resolver,))).resolve_all()


@pytest.mark.parametrize(
    "code,description",
    [
        ("1", "Other"),
        ("3", "Desktop"),
        ("9", "Laptop"),
        ("10", "Notebook"),
        ("23", "Rack Mount Chassis"),
        ("24", "Sealed-Case PC"),
        ("2", "Unknown"),
        ("97", "Unknown"),
        (" 9\n", "Laptop"),
    ],
)
def test_chassis_description(code: str, description: str) -> None:
    """Test SMBIOS chassis type code mapping."""
    assert dmi.chassis_description(code) == description


def test_linux_dmi(root) -> None:
    """Test DMI attributes read from sysfs."""
    resolver = dmi.DmiResolver(
        dmi.LINUX_STEPS,
        root=root(
            {
                "/sys/class/dmi/id/sys_vendor": "QEMU\n",
                "/sys/class/dmi/id/product_name": "Standard PC (Q35 + ICH9)\n",
                "/sys/class/dmi/id/bios_vendor": "SeaBIOS\n",
                "/sys/class/dmi/id/bios_date": "04/01/2014\n",
                "/sys/class/dmi/id/chassis_type": "1\n",
            }
        ),
    )

    facts = resolve(resolver)

    assert facts.value("manufacturer") == "QEMU"
    assert facts.value("productname") == "Standard PC (Q35 + ICH9)"
    assert facts.value("bios_vendor") == "SeaBIOS"
    assert facts.value("bios_release_date") == "04/01/2014"
    assert facts.value("chassistype") == "Other"
    assert "serialnumber" not in facts


def test_linux_dmi_missing_sysfs(root) -> None:
    """Test that a machine without DMI data has no hardware facts."""
    resolver = dmi.DmiResolver(dmi.LINUX_STEPS, root=root({}))

    assert len(resolve(resolver)) == 0


def test_bsd_dmi(fake_commands) -> None:
    """Test SMBIOS attributes read from the kernel environment."""
    resolver = dmi.DmiResolver(dmi.BSD_STEPS)
    fake_commands(
        resolver,
        {
            "kenv -q smbios.system.maker": "innotek GmbH",
            "kenv -q smbios.system.product": "VirtualBox",
            "kenv -q smbios.chassis.type": "Notebook",
        },
    )

    facts = resolve(resolver)

    assert facts.value("manufacturer") == "innotek GmbH"
    assert facts.value("productname") == "VirtualBox"
    assert facts.value("chassistype") == "Notebook"


def test_generic_dmi() -> None:
    """Test that generic systems have no DMI source."""
    assert len(resolve(dmi.DmiResolver())) == 0
