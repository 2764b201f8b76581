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

"""JC base class for resolvers that parse command and file output."""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, List, Optional, Union

import jc

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.errors import (
    FactParseError,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.execution import (
    ExecutionResult,
)

Parsed = Union[List[Dict[str, Any]], Dict[str, Any]]
Output = Union[str, List[str], ExecutionResult, None]

_PARSERS: Optional[FrozenSet[str]] = None


def jc_parsers() -> FrozenSet[str]:
    """Names of every parser jc provides, hidden ones included."""
    global _PARSERS
    if _PARSERS is None:
        # proc_* parsers are hidden from the default listing
        _PARSERS = frozenset(jc.parser_mod_list(show_hidden=True))
    return _PARSERS


class JCBase:
    """Mixin for components that use the jc library for parsing."""

    def jc(self, data: Output, parser: str, raw: bool = False) -> Parsed:
        """Parse command or file output with a jc parser.

        :param data: File contents, a list of lines, or the result of
            a command run by :func:`execution.execute`
        :param parser: Name of the jc parser to use (e.g., 'uname',
            'os_release', 'proc_meminfo', 'ifconfig')
        :param raw: If True, return raw parsed output without
            post-processing
        :returns: Parsed data structure (list or dict depending on
            parser)
        :raises FactParseError: If the parser is unknown or parsing
            fails
        """
        if parser not in jc_parsers():
            raise FactParseError(f"jc parser '{parser}' not found")

        if isinstance(data, ExecutionResult):
            text = data.output
        elif isinstance(data, list):
            text = "\n".join(data)
        else:
            text = data or ""

        try:
            return jc.parse(parser, text, raw=raw, quiet=True)
        except Exception as e:
            # jc raises various exceptions, catch them all
            raise FactParseError(f"Error parsing {parser}: {e}") from e
