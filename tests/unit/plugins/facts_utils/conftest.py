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

from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

import pytest

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.execution import (
    ExecutionResult,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.resolver import (
    Resolver,
)


@pytest.fixture
def root(tmp_path: Path) -> Callable[[Dict[str, str]], str]:
    """Build a filesystem image under a temporary directory.

    :returns Callable: Function taking a mapping of absolute path to
        file contents and returning the image root
    """

    def build(files: Dict[str, str]) -> str:
        for name, contents in files.items():
            path = tmp_path / name.lstrip("/")
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(contents)
        return str(tmp_path)

    return build


@pytest.fixture
def fake_commands(monkeypatch: pytest.MonkeyPatch) -> Callable[..., None]:
    """Replace a resolver's command helpers with canned output.

    Commands are keyed by the command line joined with spaces; any
    other command behaves as if it were not installed.
    """

    def install(resolver: Resolver, outputs: Dict[str, str]) -> None:
        def execute(
            command: str, args: Iterable[str] = (), **kwargs
        ) -> ExecutionResult:
            line = " ".join([command, *args])
            if line not in outputs:
                return ExecutionResult(False, None, "")
            return ExecutionResult(True, 0, outputs[line].strip())

        def each_line(
            command: str,
            args: Iterable[str] = (),
            callback: Optional[Callable[[str], bool]] = None,
            **kwargs,
        ) -> bool:
            line = " ".join([command, *args])
            if line not in outputs:
                return False
            for output_line in outputs[line].splitlines():
                if output_line.strip() and not callback(output_line.strip()):
                    break
            return True

        monkeypatch.setattr(resolver, "execute", execute)
        monkeypatch.setattr(resolver, "each_line", each_line)

    return install
