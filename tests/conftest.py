"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from dav1d_sys.errors import CommandError

Output = str | Callable[[tuple[str, ...]], str]


@dataclass(slots=True)
class FakeRunner:
    """Records every command and answers from prefix-matched canned handlers."""

    calls: list[tuple[str, ...]] = field(default_factory=list)
    handlers: list[tuple[tuple[str, ...], Output, int]] = field(default_factory=list)

    def on(self, *prefix: str, output: Output = "", returncode: int = 0) -> FakeRunner:
        self.handlers.append((prefix, output, returncode))
        return self

    def run(self, argv: Sequence[str], *, cwd: Path | None = None) -> str:
        command = tuple(str(arg) for arg in argv)
        self.calls.append(command)
        for prefix, output, returncode in self.handlers:
            if command[: len(prefix)] != prefix:
                continue
            if returncode != 0:
                raise CommandError(
                    f"`{command[0]}` exited with status {returncode}.",
                    argv=command,
                    returncode=returncode,
                    stderr="simulated failure",
                )
            return output(command) if callable(output) else output
        return ""

    def commands(self, program: str) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] == program]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


PC_TEMPLATE = """\
prefix={prefix}
includedir=${{prefix}}/include
libdir=${{prefix}}/lib

Name: libdav1d
Description: AV1 decoding library
Version: {version}
Libs: -L${{libdir}} -ldav1d
Libs.private: -lpthread -ldl -lm
Cflags: -I${{includedir}}
"""


def write_pc(directory: Path, *, prefix: Path, version: str = "1.0.0", name: str = "dav1d") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}.pc"
    path.write_text(PC_TEMPLATE.format(prefix=prefix, version=version), encoding="utf-8")
    return path


def fake_checkout(path: Path) -> None:
    """Lay out the parts of a dav1d checkout the pipeline looks at."""
    (path / ".git").mkdir(parents=True, exist_ok=True)
    crossfiles = path / "package" / "crossfiles"
    crossfiles.mkdir(parents=True, exist_ok=True)
    for name in (
        "aarch64-android.meson",
        "arm-android.meson",
        "x86_64-w64-mingw32.meson",
        "i686-w64-mingw32.meson",
    ):
        (crossfiles / name).write_text("[binaries]\n", encoding="utf-8")


def simulate_dav1d(runner: FakeRunner, *, version: str = "1.0.0") -> FakeRunner:
    """Make git clone/meson install behave like a successful dav1d build."""

    def clone(command: tuple[str, ...]) -> str:
        fake_checkout(Path(command[-1]))
        return ""

    def install(command: tuple[str, ...]) -> str:
        build_path = Path(command[-1])
        release = build_path.parent / "release"
        (release / "include" / "dav1d").mkdir(parents=True, exist_ok=True)
        (release / "include" / "dav1d" / "dav1d.h").write_text(
            "/** Decoder API */\nint dav1d_version_api(void);\n",
            encoding="utf-8",
        )
        write_pc(build_path / "meson-private", prefix=release, version=version)
        return ""

    return runner.on("git", "clone", output=clone).on("meson", "install", output=install)


@pytest.fixture
def dav1d_runner(fake_runner: FakeRunner) -> FakeRunner:
    return simulate_dav1d(fake_runner)
