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

"""
Local command execution for fact resolvers.

Commands are always started from an argv list, never through a shell,
so fact or path content can not be word-split or injected. Output is
captured either in full (:func:`execute`) or streamed line by line to a
callback (:func:`each_line`). Missing executables, non-zero exit codes
and timeouts are reported as failures, and only raise when the caller
asks for it with ``throw_on_failure``.
"""

from __future__ import annotations

import os
import shlex
import signal
import subprocess
import tempfile
import threading
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional

from ansible.module_utils.common.process import get_bin_path
from ansible.module_utils.common.text.converters import to_native, to_text
from ansible.utils.display import Display

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.errors import (
    ExecutableNotFoundError,
    ExecutionFailureError,
    ExecutionTimeoutError,
)

display = Display()

LineCallback = Callable[[str], bool]


class ExecutionResult(NamedTuple):
    """Outcome of a command run by :func:`execute`."""

    success: bool
    exit_code: Optional[int]
    output: str


def which(
    command: str, paths: Optional[Iterable[str]] = None
) -> Optional[str]:
    """
    Locate an executable.

    Absolute paths are returned as-is when they name an executable
    file. Bare names are searched for on ``PATH`` plus the usual sbin
    directories and any extra ``paths``.

    :param str command: Command name or absolute path
    :param Optional[Iterable[str]] paths: Additional directories to
        search
    :returns Optional[str]: Absolute path to the executable, or None
    """
    if os.path.isabs(command):
        if os.path.isfile(command) and os.access(command, os.X_OK):
            return command
        return None

    try:
        return get_bin_path(command, opt_dirs=list(paths or []))
    except ValueError:
        return None


def _environment(env: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Build the child environment with a stable locale."""
    environment = dict(os.environ)
    environment.update({"LC_ALL": "C", "LANG": "C"})
    if env:
        environment.update(env)
    return environment


def _signal_group(process: subprocess.Popen, sig: int) -> None:
    """Send ``sig`` to the process group led by ``process``."""
    try:
        os.killpg(process.pid, sig)
    except OSError:
        pass


def _kill(process: subprocess.Popen, timed_out: threading.Event) -> None:
    """Timer callback that kills a process which overran its timeout.

    The whole process group is killed, so children left by a script do
    not keep the output pipe open.
    """
    timed_out.set()
    _signal_group(process, signal.SIGKILL)


def _run(
    command: str,
    args: Iterable[str],
    callback: LineCallback,
    trim_lines: bool,
    throw_on_failure: bool,
    merge_stderr: bool,
    timeout: Optional[float],
    env: Optional[Dict[str, str]],
) -> ExecutionResult:
    """
    Run a command and feed its standard output to ``callback``.

    :returns ExecutionResult: Result with an empty ``output``; callers
        accumulate output through the callback
    :raises ExecutableNotFoundError: If the command can not be started
        and ``throw_on_failure`` is set
    :raises ExecutionFailureError: If the command exits non-zero or
        times out and ``throw_on_failure`` is set
    """
    executable = which(command)
    if executable is None:
        msg = f"command not found: {command}"
        display.vvvv(msg)
        if throw_on_failure:
            raise ExecutableNotFoundError(msg)
        return ExecutionResult(False, None, "")

    argv = [executable] + [
        to_native(arg, nonstring="simplerepr") for arg in args
    ]
    display.debug(f"executing command: {shlex.join(argv)}")

    timed_out = threading.Event()
    stopped = False

    with tempfile.TemporaryFile() as errfile:
        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_stderr else errfile,
                env=_environment(env),
                start_new_session=True,
            )
        except OSError as e:
            msg = f"failed to execute {command}: {e}"
            display.vvvv(msg)
            if throw_on_failure:
                raise ExecutableNotFoundError(msg)
            return ExecutionResult(False, None, "")

        timer = None
        if timeout:
            timer = threading.Timer(timeout, _kill, (process, timed_out))
            timer.daemon = True
            timer.start()

        drained = False
        try:
            for raw_line in process.stdout:
                line = to_text(raw_line, errors="surrogate_or_replace")
                line = line.rstrip("\r\n")
                if trim_lines:
                    line = line.strip()
                    if not line:
                        continue
                if not callback(line):
                    stopped = True
                    break
            else:
                drained = True
        finally:
            if not drained:
                _signal_group(process, signal.SIGTERM)
            process.stdout.close()
            exit_code = process.wait()
            if timer is not None:
                timer.cancel()

        errfile.seek(0)
        errors = to_text(errfile.read(), errors="surrogate_or_replace").strip()

    if errors:
        display.debug(f"stderr of {command}: {errors}")

    if timed_out.is_set():
        msg = f"command timed out after {timeout} seconds: {command}"
        display.vvv(msg)
        if throw_on_failure:
            raise ExecutionTimeoutError(msg, exit_code=exit_code)
        return ExecutionResult(False, exit_code, "")

    if stopped:
        return ExecutionResult(True, exit_code, "")

    if exit_code != 0:
        msg = f"command {command} returned exit code {exit_code}"
        if errors:
            msg = f"{msg}: {errors}"
        display.vvvv(msg)
        if throw_on_failure:
            raise ExecutionFailureError(msg, exit_code=exit_code)
        return ExecutionResult(False, exit_code, "")

    return ExecutionResult(True, exit_code, "")


def execute(
    command: str,
    args: Iterable[str] = (),
    *,
    throw_on_failure: bool = False,
    merge_stderr: bool = False,
    trim_output: bool = True,
    timeout: Optional[float] = None,
    env: Optional[Dict[str, str]] = None,
) -> ExecutionResult:
    """
    Run a command and capture its whole standard output.

    :param str command: Command name or absolute path
    :param Iterable[str] args: Arguments passed verbatim, without shell
        interpretation
    :param bool throw_on_failure: Raise instead of returning a failed
        result
    :param bool merge_stderr: Capture standard error into the output
    :param bool trim_output: Strip leading and trailing whitespace from
        the captured output
    :param Optional[float] timeout: Seconds before the process is
        killed
    :param Optional[Dict[str, str]] env: Extra environment variables
    :returns ExecutionResult: Success flag, exit code and output
    """
    lines: List[str] = []

    def collect(line: str) -> bool:
        lines.append(line)
        return True

    try:
        result = _run(
            command,
            args,
            collect,
            trim_lines=False,
            throw_on_failure=throw_on_failure,
            merge_stderr=merge_stderr,
            timeout=timeout,
            env=env,
        )
    except ExecutionFailureError as e:
        e.output = "\n".join(lines)
        raise

    output = "\n".join(lines)
    if trim_output:
        output = output.strip()

    return result._replace(output=output)


def each_line(
    command: str,
    args: Iterable[str] = (),
    callback: Optional[LineCallback] = None,
    *,
    throw_on_failure: bool = False,
    merge_stderr: bool = False,
    trim_output: bool = True,
    timeout: Optional[float] = None,
    env: Optional[Dict[str, str]] = None,
) -> bool:
    """
    Run a command and stream its standard output line by line.

    The callback returns True to continue or False to stop early, in
    which case the process is terminated and the run still counts as
    successful. With ``trim_output`` each line is stripped and blank
    lines are skipped.

    :param str command: Command name or absolute path
    :param Iterable[str] args: Arguments passed verbatim
    :param Optional[LineCallback] callback: Called with each line
    :returns bool: True if the command succeeded or was stopped early
    """
    if callback is None:
        raise TypeError("each_line() requires a callback")

    result = _run(
        command,
        args,
        callback,
        trim_lines=trim_output,
        throw_on_failure=throw_on_failure,
        merge_stderr=merge_stderr,
        timeout=timeout,
        env=env,
    )
    return result.success
