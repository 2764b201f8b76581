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

from unittest.mock import MagicMock

import pytest

from ansible_collections.o0_o.hostfacts.plugins.action.facts import (
    ActionModule,
)


@pytest.fixture
def plugin() -> ActionModule:
    """Create a facts ActionModule with mocked Ansible dependencies.

    :returns ActionModule: Plugin whose task has
        no arguments and a local connection, ready for ``run``
    """
    task = MagicMock()
    task.async_val = False
    task.action = "facts"
    task.args = {}

    connection = MagicMock()
    connection.transport = "local"

    plugin = ActionModule(
        task=task,
        connection=connection,
        play_context=MagicMock(),
        loader=MagicMock(),
        templar=MagicMock(),
        shared_loader_obj=MagicMock(),
    )
    plugin._display = MagicMock()
    return plugin
