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

from typing import Any, Dict, List, Mapping, Tuple

from ansible.errors import AnsibleFilterError

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.value import (
    Value,
    dump_markup,
    dump_text,
    make_value,
)

DOCUMENTATION = r"""
---
name: facts_yaml
short_description: Render a fact dictionary as YAML
version_added: "1.0.0"
description:
  - Render facts, such as C(ansible_facts.o0_facts), as a block-style
    YAML document.
  - Strings that look like numbers or booleans are quoted so they read
    back as strings.
  - The companion C(facts_text) filter renders C(name => value) lines,
    or the bare value when the dictionary holds a single fact.
options:
  _input:
    description: Mapping of fact name to value.
    type: dict
    required: true
author:
  - oØ.o (@o0-o)
"""

EXAMPLES = r"""
- name: Gather facts
  o0_o.hostfacts.facts:

- name: Show facts as YAML
  ansible.builtin.debug:
    msg: "{{ ansible_facts.o0_facts | o0_o.hostfacts.facts_yaml }}"

- name: Show one fact as text
  ansible.builtin.debug:
    msg: "{{ {'kernel': ansible_facts.o0_facts.kernel}
              | o0_o.hostfacts.facts_text }}"
"""

RETURN = r"""
_value:
  description: Rendered facts.
  type: str
"""


class FilterModule:
    """Filters for rendering gathered facts."""

    def filters(self) -> Dict[str, Any]:
        """Return the filter functions."""
        return {
            "facts_yaml": self.facts_yaml,
            "facts_text": self.facts_text,
        }

    def _pairs(self, data: Mapping[str, Any]) -> List[Tuple[str, Value]]:
        """Convert a fact mapping to sorted ``(name, value)`` pairs.

        None values are dropped, absent facts are not rendered.

        :raises AnsibleFilterError: If the input is not a mapping or
            holds values that can not be facts
        """
        if not isinstance(data, Mapping):
            raise AnsibleFilterError(
                f"Expected a dictionary of facts, got {type(data).__name__}"
            )
        try:
            return [
                (str(name), make_value(value))
                for name, value in sorted(data.items())
                if value is not None
            ]
        except (TypeError, ValueError) as e:
            raise AnsibleFilterError(f"Unable to render facts: {e}") from e

    def facts_yaml(self, data: Mapping[str, Any]) -> str:
        return dump_markup(self._pairs(data))

    def facts_text(self, data: Mapping[str, Any]) -> str:
        return dump_text(self._pairs(data))
