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

"""Hardware (DMI/SMBIOS) facts."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

from ansible.utils.display import Display

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.resolver import (
    Resolver,
)

if TYPE_CHECKING:
    from ansible_collections.o0_o.hostfacts.plugins.facts_utils.collection import (  # noqa: E501
        Collection,
    )

display = Display()

SYSFS_DMI = "/sys/class/dmi/id"

# Fact name -> file under /sys/class/dmi/id
LINUX_DMI_FILES = {
    "bios_vendor": "bios_vendor",
    "bios_version": "bios_version",
    "bios_release_date": "bios_date",
    "boardassettag": "board_asset_tag",
    "boardmanufacturer": "board_vendor",
    "boardproductname": "board_name",
    "boardserialnumber": "board_serial",
    "chassisassettag": "chassis_asset_tag",
    "manufacturer": "sys_vendor",
    "productname": "product_name",
    "serialnumber": "product_serial",
    "uuid": "product_uuid",
    "chassistype": "chassis_type",
}

# Fact name -> kenv variable
BSD_KENV_VARIABLES = {
    "bios_vendor": "smbios.bios.vendor",
    "bios_version": "smbios.bios.version",
    "bios_release_date": "smbios.bios.reldate",
    "boardassettag": "smbios.planar.tag",
    "boardmanufacturer": "smbios.planar.maker",
    "boardproductname": "smbios.planar.product",
    "boardserialnumber": "smbios.planar.serial",
    "chassisassettag": "smbios.chassis.tag",
    "manufacturer": "smbios.system.maker",
    "productname": "smbios.system.product",
    "serialnumber": "smbios.system.serial",
    "uuid": "smbios.system.uuid",
    "chassistype": "smbios.chassis.type",
}

# SMBIOS chassis type codes (2 is "Unknown", the default)
CHASSIS_TYPES = {
    "1": "Other",
    "3": "Desktop",
    "4": "Low Profile Desktop",
    "5": "Pizza Box",
    "6": "Mini Tower",
    "7": "Tower",
    "8": "Portable",
    "9": "Laptop",
    "10": "Notebook",
    "11": "Hand Held",
    "12": "Docking Station",
    "13": "All in One",
    "14": "Sub Notebook",
    "15": "Space-Saving",
    "16": "Lunch Box",
    "17": "Main System Chassis",
    "18": "Expansion Chassis",
    "19": "SubChassis",
    "20": "Bus Expansion Chassis",
    "21": "Peripheral Chassis",
    "22": "Storage Chassis",
    "23": "Rack Mount Chassis",
    "24": "Sealed-Case PC",
}


def chassis_description(code: str) -> str:
    """
    Map an SMBIOS chassis type code to its description.

    :param str code: Numeric code as read from firmware, e.g. "9"
    :returns str: Description, or "Unknown" for unmapped codes
    """
    return CHASSIS_TYPES.get(code.strip(), "Unknown")


def _no_dmi(resolver: "DmiResolver") -> Dict[str, str]:
    return {}


def _linux_dmi(resolver: "DmiResolver") -> Dict[str, str]:
    """Read DMI attributes from sysfs."""
    values = {}
    for fact_name, filename in LINUX_DMI_FILES.items():
        path = f"{SYSFS_DMI}/{filename}"
        if not resolver.is_file(path):
            display.vvvv(f"{path}: {fact_name} fact is unavailable")
            continue
        contents = resolver.read_file(path)
        if contents is None:
            display.vvvv(
                f"{path}: permission denied: {fact_name} fact is unavailable"
            )
            continue
        values[fact_name] = contents.strip()
    return values


def _bsd_dmi(resolver: "DmiResolver") -> Dict[str, str]:
    """Read SMBIOS attributes from the kernel environment."""
    values = {}
    for fact_name, variable in BSD_KENV_VARIABLES.items():
        result = resolver.execute("kenv", ["-q", variable])
        if result.success and result.output:
            values[fact_name] = result.output
    return values


class DmiResolver(Resolver):
    """
    Resolves hardware identity from DMI/SMBIOS tables.

    The ``read`` step returns raw strings keyed by fact name; a numeric
    chassis type code is then mapped to its description.
    """

    name = "dmi"
    fact_names = tuple(LINUX_DMI_FILES)
    STEPS = {"read": _no_dmi}

    def resolve_facts(self, facts: "Collection") -> None:
        values = self.step("read")
        for fact_name, value in values.items():
            if fact_name == "chassistype" and value.isdigit():
                value = chassis_description(value)
            facts.add(fact_name, value)


LINUX_STEPS = {"read": _linux_dmi}
BSD_STEPS = {"read": _bsd_dmi}
