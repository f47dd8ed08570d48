"""Resolve include paths and link flags from pkg-config metadata.

``resolve_library`` reads the ``.pc`` file meson writes into
``<build>/meson-private`` and answers the same questions ``pkg-config --static
--cflags --libs`` would. ``system_library`` asks the installed ``pkg-config``
binary instead.
"""

from __future__ import annotations

import re
import shlex
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from dav1d_sys.errors import MetadataResolutionError
from dav1d_sys.models import LibraryMetadata
from dav1d_sys.process import CommandRunner, SubprocessRunner

_VARIABLE_REF = re.compile(r"\$\{([A-Za-z0-9_.]+)\}")
_VERSION_SEGMENT = re.compile(r"[0-9]+|[A-Za-z]+")
_CLAUSE = re.compile(r"^\s*(>=|<=|==|!=|=|>|<)?\s*(\S+)\s*$")


@dataclass(frozen=True, slots=True)
class PcFile:
    path: Path
    variables: dict[str, str]
    fields: dict[str, str]

    @property
    def version(self) -> str:
        return self.fields.get("version", "")

    def tokens(self, field: str) -> list[str]:
        raw = self.fields.get(field.lower(), "")
        return shlex.split(raw) if raw else []


def parse_pc(path: Path) -> PcFile:
    text = path.read_text(encoding="utf-8")
    variables: dict[str, str] = {}
    fields: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue
        colon = line.find(":")
        equals = line.find("=")
        if equals != -1 and (colon == -1 or equals < colon):
            key, value = line.split("=", 1)
            variables[key.strip()] = _expand(value.strip(), variables)
        elif colon != -1:
            key, value = line.split(":", 1)
            fields[key.strip().lower()] = _expand(value.strip(), variables)
    return PcFile(path=path, variables=variables, fields=fields)


def compare_versions(left: str, right: str) -> int:
    """Compare two versions the way pkg-config does; returns -1, 0 or 1."""
    left_parts = _VERSION_SEGMENT.findall(left)
    right_parts = _VERSION_SEGMENT.findall(right)
    for a, b in zip(left_parts, right_parts):
        if a.isdigit() and b.isdigit():
            if int(a) != int(b):
                return 1 if int(a) > int(b) else -1
        elif a.isdigit() != b.isdigit():
            # Numeric segments are newer than alphabetic ones.
            return 1 if a.isdigit() else -1
        elif a != b:
            return 1 if a > b else -1
    if len(left_parts) == len(right_parts):
        return 0
    return 1 if len(left_parts) > len(right_parts) else -1


def parse_constraint(constraint: str) -> list[tuple[str, str]]:
    """Parse ``"1.0"`` / ``">= 1.0, < 2"`` into (operator, version) clauses.

    A bare version means "at least this version".
    """
    clauses: list[tuple[str, str]] = []
    for part in constraint.split(","):
        if not part.strip():
            continue
        match = _CLAUSE.match(part)
        if match is None:
            raise MetadataResolutionError(
                "Invalid version constraint.",
                context={"operation": "resolve_library", "constraint": constraint},
            )
        operator = match.group(1) or ">="
        clauses.append(("==" if operator == "=" else operator, match.group(2)))
    return clauses


def satisfies(version: str, constraint: str) -> bool:
    for operator, wanted in parse_constraint(constraint):
        cmp = compare_versions(version, wanted)
        ok = {
            ">=": cmp >= 0,
            ">": cmp > 0,
            "<=": cmp <= 0,
            "<": cmp < 0,
            "==": cmp == 0,
            "!=": cmp != 0,
        }[operator]
        if not ok:
            return False
    return True


def metadata_from_flags(
    name: str,
    version: str,
    cflags: Sequence[str],
    libs: Sequence[str],
) -> LibraryMetadata:
    include_paths: list[Path] = []
    defines: list[str] = []
    for flag, value in _pair_flags(cflags, ("-I", "-D")):
        if flag == "-I":
            path = Path(value)
            if path not in include_paths:
                include_paths.append(path)
        elif flag == "-D":
            defines.append(value)

    link_flags: list[str] = []
    for flag, value in _pair_flags(libs, ("-L", "-l")):
        token = f"{flag}{value}"
        if flag == "-L" and token in link_flags:
            continue
        link_flags.append(token)
    return LibraryMetadata(
        name=name,
        version=version,
        include_paths=tuple(include_paths),
        link_flags=tuple(link_flags),
        defines=tuple(defines),
    )


def resolve_library(pkg_config_dir: str | Path, name: str, version: str) -> LibraryMetadata:
    """Resolve *name* from the ``.pc`` files in *pkg_config_dir*.

    Raises ``MetadataResolutionError`` when the library is absent or its
    version does not satisfy *version*.
    """
    pc_path = Path(pkg_config_dir) / f"{name}.pc"
    if not pc_path.is_file():
        raise MetadataResolutionError(
            f"Package `{name}` was not found in the build metadata.",
            hint="The install step finished but did not produce the expected package.",
            context={"operation": "resolve_library", "path": str(pc_path)},
        )
    pc = parse_pc(pc_path)
    _check_version(name, pc.version, version, source=str(pc_path))
    return metadata_from_flags(
        name,
        pc.version,
        pc.tokens("Cflags"),
        [*pc.tokens("Libs"), *pc.tokens("Libs.private")],
    )


def system_library(
    name: str,
    version: str,
    *,
    runner: CommandRunner | None = None,
    pkg_config: str = "pkg-config",
) -> LibraryMetadata:
    """Resolve *name* through the system ``pkg-config``.

    pkg-config drops system directories such as ``/usr/include`` from
    ``--cflags``. When no ``-I`` flag survives, the package's ``includedir``
    variable is used so the headers stay reachable.
    """
    runner = runner or SubprocessRunner(forward_stderr=False)
    found = runner.run([pkg_config, "--modversion", name]).strip()
    _check_version(name, found, version, source=pkg_config)
    cflags = shlex.split(runner.run([pkg_config, "--cflags", name]))
    libs = shlex.split(runner.run([pkg_config, "--libs", name]))
    metadata = metadata_from_flags(name, found, cflags, libs)
    if metadata.include_paths:
        return metadata
    includedir = runner.run([pkg_config, "--variable=includedir", name]).strip()
    if not includedir:
        return metadata
    return metadata_from_flags(name, found, [*cflags, f"-I{includedir}"], libs)


def _check_version(name: str, found: str, constraint: str, *, source: str) -> None:
    if not found or not satisfies(found, constraint):
        raise MetadataResolutionError(
            f"Package `{name}` version `{found or 'unknown'}` does not satisfy `{constraint}`.",
            hint="Update the requested version or the upstream checkout.",
            context={
                "operation": "resolve_library",
                "source": source,
                "found": found,
                "requested": constraint,
            },
        )


def _expand(value: str, variables: dict[str, str]) -> str:
    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in variables:
            raise MetadataResolutionError(
                f"Undefined variable `{key}` in pkg-config file.",
                context={"operation": "parse_pc", "variable": key},
            )
        return variables[key]

    return _VARIABLE_REF.sub(replace, value)


def _pair_flags(tokens: Iterable[str], prefixes: tuple[str, ...]) -> Iterable[tuple[str, str]]:
    """Yield (prefix, value) pairs, joining ``-I path`` style split flags."""
    pending: str | None = None
    for token in tokens:
        if pending is not None:
            yield pending, token
            pending = None
            continue
        if token in prefixes:
            pending = token
            continue
        for prefix in prefixes:
            if token.startswith(prefix):
                yield prefix, token[len(prefix):]
                break
        else:
            yield "", token


__all__ = [
    "PcFile",
    "compare_versions",
    "metadata_from_flags",
    "parse_constraint",
    "parse_pc",
    "resolve_library",
    "satisfies",
    "system_library",
]
