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

"""Exception hierarchy for the fact engine."""

from __future__ import annotations

from typing import Optional

from ansible.errors import AnsibleError


class FactError(AnsibleError):
    """Base class for all fact engine errors."""


class ExecutionError(FactError):
    """Base class for external command errors."""


class ExecutableNotFoundError(ExecutionError):
    """The command could not be found or could not be started."""


class ExecutionFailureError(ExecutionError):
    """The command ran but did not succeed."""

    def __init__(
        self,
        message: str,
        exit_code: Optional[int] = None,
        output: str = "",
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output


class ExecutionTimeoutError(ExecutionFailureError):
    """The command was killed after exceeding its timeout."""


class FactParseError(FactError):
    """Command or file output could not be parsed."""


class CircularResolutionError(FactError):
    """A resolver was re-entered while it was still resolving."""


class ExternalFactError(FactError):
    """An external fact source could not be resolved."""


class ExternalFactExecutionError(ExternalFactError):
    """An external fact script ran and failed."""


class ExternalFactInvocationError(ExternalFactError):
    """An external fact script could not be invoked at all."""
