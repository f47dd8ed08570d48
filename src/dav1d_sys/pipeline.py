"""End-to-end orchestration: probe, fetch, cross file, build, resolve, bindings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from dav1d_sys.bindings import generate_bindings
from dav1d_sys.builders import Builder, BuildSpec, MesonBuilder
from dav1d_sys.config import BuildConfig
from dav1d_sys.crossfiles import generate_descriptor
from dav1d_sys.errors import CommandError, MetadataResolutionError
from dav1d_sys.fetch import ensure_source_tree
from dav1d_sys.models import BuildArtifacts, CrossDescriptor, LibraryMetadata, SourceTree
from dav1d_sys.observability import StructuredLogger
from dav1d_sys.pkgconfig import resolve_library, system_library
from dav1d_sys.process import CommandRunner, SubprocessRunner

BINDINGS_NAME = "dav1d_cdef.h"
METADATA_NAME = "dav1d.json"
REPORT_NAME = "dav1d.cbor"
LOG_NAME = "build-log.jsonl"


@dataclass(frozen=True, slots=True)
class SourceBuild:
    source: SourceTree
    descriptor: CrossDescriptor | None
    artifacts: BuildArtifacts
    metadata: LibraryMetadata


@dataclass(frozen=True, slots=True)
class PipelineResult:
    metadata: LibraryMetadata
    bindings_path: Path
    metadata_path: Path
    report_path: Path
    build: SourceBuild | None = None

    @property
    def built_from_source(self) -> bool:
        return self.build is not None


def build_from_source(
    config: BuildConfig,
    *,
    runner: CommandRunner | None = None,
    logger: StructuredLogger | None = None,
    builder: Builder | None = None,
) -> SourceBuild:
    runner = runner or SubprocessRunner(env=config.env())
    logger = logger or StructuredLogger()
    builder = builder or MesonBuilder(runner=runner, logger=logger)

    source = ensure_source_tree(config.source_dir, repo=config.repo, runner=runner, logger=logger)
    descriptor = generate_descriptor(config.target, source, runner=runner, logger=logger)
    if descriptor is not None:
        logger.log(
            operation="build_from_source",
            stage="crossfile",
            message=f"cross file: {descriptor.flag}",
        )

    artifacts = builder.build(
        BuildSpec(
            name=config.library,
            source=source,
            artifacts=BuildArtifacts.under(source.path),
            descriptor=descriptor,
        )
    )

    metadata = resolve_library(artifacts.pkg_config_dir, config.library, config.version)
    logger.log(
        operation="build_from_source",
        stage="metadata",
        message=f"Resolved {metadata.name} {metadata.version}.",
        extra={"include_paths": [str(path) for path in metadata.include_paths]},
    )
    return SourceBuild(
        source=source,
        descriptor=descriptor,
        artifacts=artifacts,
        metadata=metadata,
    )


def probe_system(
    config: BuildConfig,
    *,
    runner: CommandRunner | None = None,
) -> LibraryMetadata:
    if config.is_cross and not config.allow_cross:
        raise MetadataResolutionError(
            "System pkg-config lookups are disabled when cross-compiling.",
            hint="Set PKG_CONFIG_ALLOW_CROSS=1 or build from source.",
            context={"operation": "probe", "target": str(config.target)},
        )
    return system_library(config.library, config.version, runner=runner)


def probe(
    config: BuildConfig,
    *,
    runner: CommandRunner | None = None,
    logger: StructuredLogger | None = None,
) -> tuple[LibraryMetadata, SourceBuild | None]:
    """Find dav1d according to ``config.build_internal``.

    ``always`` builds from source, ``never`` only consults the system, and
    ``auto`` falls back to a source build when the system lookup fails.
    """
    logger = logger or StructuredLogger()
    if config.build_internal == "always":
        build = build_from_source(config, runner=runner, logger=logger)
        return build.metadata, build

    try:
        metadata = probe_system(config, runner=runner)
    except (MetadataResolutionError, CommandError) as exc:
        if config.build_internal == "never":
            raise
        logger.log(
            operation="probe",
            stage="probe",
            level="warning",
            message="System library unavailable; building from source.",
            extra={"error": exc.code},
        )
        build = build_from_source(config, runner=runner, logger=logger)
        return build.metadata, build

    logger.log(
        operation="probe",
        stage="probe",
        message=f"Using system {metadata.name} {metadata.version}.",
    )
    return metadata, None


def run(
    config: BuildConfig,
    *,
    runner: CommandRunner | None = None,
    logger: StructuredLogger | None = None,
) -> PipelineResult:
    runner = runner or SubprocessRunner(env=config.env())
    logger = logger or StructuredLogger()

    metadata, build = probe(config, runner=runner, logger=logger)
    bindings_path = generate_bindings(
        metadata.include_paths,
        out_path=config.out_dir / BINDINGS_NAME,
        runner=runner,
    )
    logger.log(
        operation="run",
        stage="bindings",
        message="Generated binding declarations.",
        extra={"path": str(bindings_path)},
    )
    metadata_path = config.out_dir / METADATA_NAME
    metadata.to_json(metadata_path)
    report_path = config.out_dir / REPORT_NAME
    metadata.to_cbor(report_path)
    logger.to_json_lines(config.out_dir / LOG_NAME)
    return PipelineResult(
        metadata=metadata,
        bindings_path=bindings_path,
        metadata_path=metadata_path,
        report_path=report_path,
        build=build,
    )


__all__ = [
    "PipelineResult",
    "SourceBuild",
    "build_from_source",
    "probe",
    "probe_system",
    "run",
]
