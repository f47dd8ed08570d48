"""meson/ninja builder: setup, compile, install."""

from __future__ import annotations

from dataclasses import dataclass, field

from dav1d_sys.builders.base import BuildSpec
from dav1d_sys.models import BuildArtifacts
from dav1d_sys.observability import StructuredLogger
from dav1d_sys.process import CommandRunner, SubprocessRunner


@dataclass(slots=True)
class MesonBuilder:
    meson: str = "meson"
    ninja: str = "ninja"
    runner: CommandRunner = field(default_factory=SubprocessRunner)
    logger: StructuredLogger | None = None

    def build(self, spec: BuildSpec) -> BuildArtifacts:
        # Each step raises on failure, so later steps never run after a broken one.
        for step, command in (
            ("configure", self.configure_command(spec)),
            ("compile", self.compile_command(spec)),
            ("install", self.install_command(spec)),
        ):
            self._log(spec, step, command)
            self.runner.run(command)
        return spec.artifacts

    def configure_command(self, spec: BuildSpec) -> tuple[str, ...]:
        command: list[str] = [self.meson, "setup"]
        if spec.descriptor is not None:
            command.append(spec.descriptor.flag)
        if (spec.artifacts.pkg_config_dir / "coredata.dat").exists():
            # A previous run left a configured build directory behind.
            command.append("--reconfigure")
        command.extend(spec.options)
        command.extend(
            [
                "--prefix",
                str(spec.artifacts.release_path),
                str(spec.artifacts.build_path),
                str(spec.source.path),
            ]
        )
        return tuple(command)

    def compile_command(self, spec: BuildSpec) -> tuple[str, ...]:
        return (self.ninja, "-C", str(spec.artifacts.build_path))

    def install_command(self, spec: BuildSpec) -> tuple[str, ...]:
        return (self.meson, "install", "-C", str(spec.artifacts.build_path))

    def _log(self, spec: BuildSpec, step: str, command: tuple[str, ...]) -> None:
        if self.logger is not None:
            self.logger.log(
                operation="build",
                stage=step,
                message=f"Running {step} step for {spec.name}.",
                extra={"library": spec.name, "command": " ".join(command)},
            )
