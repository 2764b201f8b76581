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

import json
from typing import Any, Dict, List, Optional, Set

from ansible.errors import AnsibleActionFail
from ansible.plugins.action import ActionBase

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.collection import (
    EXTERNAL,
    Collection,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.errors import (
    CircularResolutionError,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.platform import (
    DOMAINS,
    build_config,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.resolver import (
    DEFAULT_TIMEOUT,
)

SUBSETS = DOMAINS + (EXTERNAL,)

LOCAL_TRANSPORTS = ("local", "ansible.builtin.local")


def select_subsets(gather_subset: List[str]) -> Set[str]:
    """
    Expand ``gather_subset`` into the set of fact domains to gather.

    A list made only of negations starts from every domain.

    :param List[str] gather_subset: Subset names, ``all``, or either
        prefixed with ``!``
    :returns Set[str]: Selected domain names
    :raises AnsibleActionFail: On an unknown subset
    """
    all_subsets = set(SUBSETS)
    if all(s.startswith("!") for s in gather_subset):
        selected = set(all_subsets)
    else:
        selected = set()

    for s in gather_subset:
        if s == "all":
            selected = set(all_subsets)
        elif s == "!all":
            selected.clear()
        elif s.startswith("!") and s[1:] in all_subsets:
            selected.discard(s[1:])
        elif s in all_subsets:
            selected.add(s)
        else:
            raise AnsibleActionFail(f"Invalid gather_subset: {s}")
    return selected


class ActionModule(ActionBase):
    """
    Gather facts about the Ansible controller.

    Facts are produced by the platform's resolvers (kernel, operating
    system, DMI, virtualization, networking and memory) plus external
    fact files, and returned under the ``o0_facts`` namespace as plain
    data.

    .. note::
       Action plugins run on the controller and the resolvers inspect
       the local machine, so only tasks using the local connection are
       accepted. Any other connection would label controller data as
       the remote host's facts.
    """

    TRANSFERS_FILES = False
    _requires_connection = False
    _supports_check_mode = True
    _supports_async = False
    _supports_diff = False

    def _collect(
        self,
        selected: Set[str],
        external_dirs: Optional[List[str]],
        timeout: float,
    ) -> Dict[str, Any]:
        """
        Resolve the selected domains and return their facts.

        :param Set[str] selected: Domains to gather, including
            ``external`` for external fact files
        :param Optional[List[str]] external_dirs: Directories scanned
            for external facts, or None for the defaults
        :param float timeout: Command timeout in seconds
        :returns Dict[str, Any]: Fact name to plain value
        :raises AnsibleActionFail: If the resolvers are misconfigured
            or depend on each other in a cycle
        """
        try:
            facts = Collection(
                build_config(external_dirs=external_dirs, timeout=timeout)
            )
            facts.resolve_all(selected - {EXTERNAL})
        except (ValueError, CircularResolutionError) as e:
            raise AnsibleActionFail(f"Unable to resolve facts: {e}") from e

        if EXTERNAL in selected:
            facts.add_external_facts()

        names = [n for n in sorted(facts) if facts.origin(n) in selected]
        self._display.vvv(f"Gathered {len(names)} fact(s)")
        return json.loads(facts.to_document(names))

    def run(
        self,
        tmp: Optional[str] = None,
        task_vars: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Main entry point for the action plugin.

        :param Optional[str] tmp: Temporary directory path (unused in
            modern Ansible)
        :param Optional[Dict[str, Any]] task_vars: Task variables
            dictionary
        :returns Dict[str, Any]: Standard Ansible result dictionary

        :raises AnsibleActionFail: When invalid gather_subset values are
            provided or the task does not use the local connection
        """
        task_vars = task_vars or {}
        tmp = None  # unused in modern Ansible

        argument_spec = {
            "gather_subset": {
                "type": "list",
                "elements": "str",
                "default": ["all"],
                "choices": ["all", "!all"]
                + list(SUBSETS)
                + [f"!{s}" for s in SUBSETS],
            },
            "external_dirs": {
                "type": "list",
                "elements": "path",
            },
            "timeout": {
                "type": "float",
                "default": DEFAULT_TIMEOUT,
            },
        }

        validation_result, new_module_args = self.validate_argument_spec(
            argument_spec=argument_spec
        )
        timeout = new_module_args["timeout"]
        if timeout <= 0:
            raise AnsibleActionFail("timeout must be greater than zero")

        transport = getattr(self._connection, "transport", None)
        if transport not in LOCAL_TRANSPORTS:
            raise AnsibleActionFail(
                "o0_o.hostfacts.facts describes the controller and requires "
                f"the local connection, not {transport}"
            )

        result = super().run(tmp, task_vars)

        selected = select_subsets(new_module_args["gather_subset"])
        gathered = self._collect(
            selected, new_module_args["external_dirs"], timeout
        )

        # Pull in existing facts to extend
        ansible_facts = task_vars.get("ansible_facts", {})
        facts = dict(ansible_facts.get("o0_facts", {}))
        facts.update(gathered)

        result.update({"changed": False, "ansible_facts": {"o0_facts": facts}})
        return result
