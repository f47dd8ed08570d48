"""Single entry point for running external tools.

Every command the pipeline issues (git, xcrun, meson, ninja, pkg-config, cc)
goes through a ``CommandRunner``. ``SubprocessRunner`` blocks until the child
exits, echoes its stderr line by line while it runs, and raises
``CommandError`` on a non-zero exit.
"""

from __future__ import annotations

import os
import subprocess
import sys
import tempfile
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from dav1d_sys.errors import CommandError


class CommandRunner(Protocol):
    def run(self, argv: Sequence[str], *, cwd: Path | None = None) -> str:
        """Run *argv* to completion and return its standard output."""


@dataclass(slots=True)
class SubprocessRunner:
    env: Mapping[str, str] = field(default_factory=dict)
    forward_stderr: bool = True

    def run(self, argv: Sequence[str], *, cwd: Path | None = None) -> str:
        command = [str(arg) for arg in argv]
        try:
            if self.forward_stderr:
                returncode, stdout, stderr = self._run_streaming(command, cwd)
            else:
                completed = subprocess.run(
                    command,
                    cwd=str(cwd) if cwd is not None else None,
                    env=self._child_env(),
                    check=False,
                    text=True,
                    capture_output=True,
                )
                returncode, stdout, stderr = completed.returncode, completed.stdout, completed.stderr
        except FileNotFoundError as exc:
            raise CommandError(
                f"`{command[0]}` is not installed or not in PATH.",
                argv=command,
                hint=f"Install {command[0]} and ensure it is available before building.",
            ) from exc

        if returncode != 0:
            raise CommandError(
                f"`{command[0]}` exited with status {returncode}.",
                argv=command,
                returncode=returncode,
                stderr=stderr or "",
                hint="Check the command output above for details.",
            )
        return stdout

    def _run_streaming(self, command: list[str], cwd: Path | None) -> tuple[int, str, str]:
        # stdout goes to a file so a chatty child cannot block on a full pipe
        # while stderr is being drained.
        with tempfile.TemporaryFile(mode="w+", encoding="utf-8", errors="replace") as stdout_file:
            with subprocess.Popen(
                command,
                cwd=str(cwd) if cwd is not None else None,
                env=self._child_env(),
                stdout=stdout_file,
                stderr=subprocess.PIPE,
                text=True,
            ) as process:
                assert process.stderr is not None
                collected: list[str] = []
                for line in process.stderr:
                    collected.append(line)
                    sys.stderr.write(line)
                    sys.stderr.flush()
                returncode = process.wait()
            stdout_file.seek(0)
            return returncode, stdout_file.read(), "".join(collected)

    def _child_env(self) -> dict[str, str] | None:
        if not self.env:
            return None
        merged = dict(os.environ)
        merged.update(self.env)
        return merged


__all__ = ["CommandRunner", "SubprocessRunner"]
