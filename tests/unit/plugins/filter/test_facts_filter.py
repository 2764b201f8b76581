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

from typing import Any

import pytest
import yaml
from ansible.errors import AnsibleFilterError

from ansible_collections.o0_o.hostfacts.plugins.filter.facts import (
    FilterModule,
)


@pytest.fixture
def filter_module() -> FilterModule:
    """Create a FilterModule instance for testing."""
    return FilterModule()


def test_filters(filter_module: FilterModule) -> None:
    """Test that both renderers are exported."""
    filters = filter_module.filters()

    assert set(filters) == {"facts_yaml", "facts_text"}
    assert filters["facts_yaml"] == filter_module.facts_yaml


def test_facts_yaml_quotes_numeric_strings(
    filter_module: FilterModule,
) -> None:
    """Test that a string holding a number stays a string."""
    result = filter_module.facts_yaml({"operatingsystemmajrelease": "2"})

    assert result == 'operatingsystemmajrelease: "2"\n'


def test_facts_yaml_sorted(filter_module: FilterModule) -> None:
    """Test that facts are rendered by name and None is dropped."""
    data = {
        "virtual": "kvm",
        "is_virtual": True,
        "memorysize_mb": 2048.0,
        "domain": None,
        "os": {"name": "Debian", "release": {"major": "12"}},
    }

    result = filter_module.facts_yaml(data)

    assert [line.split(":")[0] for line in result.splitlines()][:2] == [
        "is_virtual",
        "memorysize_mb",
    ]
    assert yaml.safe_load(result) == {
        "is_virtual": True,
        "memorysize_mb": 2048.0,
        "os": {"name": "Debian", "release": {"major": "12"}},
        "virtual": "kvm",
    }


def test_facts_text_single_fact(filter_module: FilterModule) -> None:
    """Test that one fact renders as its bare value."""
    assert filter_module.facts_text({"kernel": "Linux"}) == "Linux\n"


def test_facts_text_lines(filter_module: FilterModule) -> None:
    """Test ``name => value`` lines for several facts."""
    result = filter_module.facts_text(
        {"kernelrelease": "6.1.0", "kernel": "Linux", "is_virtual": False}
    )

    assert result == (
        "is_virtual => false\n"
        "kernel => Linux\n"
        "kernelrelease => 6.1.0\n"
    )


@pytest.mark.parametrize(
    "data",
    [
        "kernel: Linux",
        ["kernel", "Linux"],
        {"kernel": object()},
        {"os": {"name": None}},
    ],
)
def test_invalid_input(filter_module: FilterModule, data: Any) -> None:
    """Test that non-fact input is rejected."""
    with pytest.raises(AnsibleFilterError):
        filter_module.facts_yaml(data)
    with pytest.raises(AnsibleFilterError):
        filter_module.facts_text(data)
