"""Declaration file generation for the cffi binding layer.

The umbrella header is run through the C preprocessor with the resolved
include paths, declarations that come from outside the dav1d headers are
dropped, and doc-comment openers are rewritten so documentation tooling does
not pick them up.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Sequence
from pathlib import Path

from cffi import FFI

from dav1d_sys.errors import FilesystemError
from dav1d_sys.models import LibraryMetadata
from dav1d_sys.process import CommandRunner, SubprocessRunner

UMBRELLA_HEADER = Path(__file__).parent / "data" / "dav1d.h"
CFFI_MODULE = "dav1d_sys._dav1d_cffi"
BLOCKLIST = ("max_align_t",)

_INCLUDE = re.compile(r'^\s*#\s*include\s*([<"])([^>"]+)[>"]', re.MULTILINE)
_LINE_MARKER = re.compile(r'^#\s*(?:line\s+)?\d+\s+"([^"]*)"')
_ATTRIBUTE = re.compile(r"__attribute__\s*\(\((?:[^()]|\([^()]*\))*\)\)")


def resolve_includes(header: Path, include_paths: Sequence[Path]) -> list[Path]:
    """Locate every header *header* includes; the first include path wins."""
    try:
        text = header.read_text(encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(
            "Unable to read umbrella header.",
            context={"operation": "bindings", "path": str(header), "error": str(exc)},
        ) from exc

    resolved: list[Path] = []
    for delimiter, name in _INCLUDE.findall(text):
        search = [header.parent, *include_paths] if delimiter == '"' else list(include_paths)
        for directory in search:
            candidate = Path(directory) / name
            if candidate.is_file():
                resolved.append(candidate)
                break
        else:
            raise FilesystemError(
                f"Header `{name}` is not reachable from the include paths.",
                hint="The library metadata must list the directory that holds the installed headers.",
                context={
                    "operation": "bindings",
                    "header": str(header),
                    "include_paths": os.pathsep.join(str(path) for path in include_paths),
                },
            )
    return resolved


def preprocess_command(
    header: Path,
    include_paths: Sequence[Path],
    *,
    cc: str = "cc",
) -> list[str]:
    command = [cc, "-E", "-C"]
    for path in include_paths:
        command.extend(["-I", str(path)])
    command.append(str(header))
    return command


def own_declarations(preprocessed: str, roots: Iterable[Path]) -> str:
    """Keep only the text that the preprocessor attributes to files under *roots*."""
    root_prefixes = tuple(str(Path(root)) + os.sep for root in roots)
    keep = False
    lines: list[str] = []
    for line in preprocessed.splitlines():
        marker = _LINE_MARKER.match(line)
        if marker is not None:
            keep = marker.group(1).startswith(root_prefixes)
            continue
        if keep and line.strip():
            lines.append(line)
    return "\n".join(lines) + "\n" if lines else ""


def drop_blocklisted(text: str, names: Iterable[str] = BLOCKLIST) -> str:
    for name in names:
        pattern = re.compile(
            rf"typedef\s+(?:struct\s*\{{[^{{}}]*\}}|[^;{{}}]*?)\s*\b{re.escape(name)}\s*;\n?"
        )
        text = pattern.sub("", text)
    return text


def rewrite_doc_comments(text: str) -> str:
    return text.replace("/**", "/*").replace("/*!", "/*")


def generate_bindings(
    include_paths: Sequence[Path],
    *,
    out_path: str | Path,
    header: Path = UMBRELLA_HEADER,
    runner: CommandRunner | None = None,
    cc: str | None = None,
) -> Path:
    """Write the declaration file for *header* and return its path."""
    runner = runner or SubprocessRunner()
    resolved = resolve_includes(header, include_paths)
    roots = {path.parent for path in resolved}

    preprocessed = runner.run(
        preprocess_command(header, include_paths, cc=cc or os.environ.get("CC", "cc"))
    )
    declarations = own_declarations(preprocessed, roots)
    declarations = _ATTRIBUTE.sub("", declarations)
    declarations = drop_blocklisted(declarations)
    declarations = rewrite_doc_comments(declarations)

    output = Path(out_path)
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(declarations, encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(
            "Unable to write generated bindings.",
            context={"operation": "bindings", "path": str(output), "error": str(exc)},
        ) from exc
    return output


def ffi_builder(metadata: LibraryMetadata, cdef_path: str | Path) -> FFI:
    """Return a ``cffi.FFI`` builder for the generated declarations."""
    try:
        cdef_content = Path(cdef_path).read_text(encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(
            "Unable to read generated bindings.",
            context={"operation": "ffi_builder", "path": str(cdef_path), "error": str(exc)},
        ) from exc

    ffibuilder = FFI()
    ffibuilder.cdef(cdef_content)
    ffibuilder.set_source(
        CFFI_MODULE,
        UMBRELLA_HEADER.read_text(encoding="utf-8"),
        include_dirs=[str(path) for path in metadata.include_paths],
        library_dirs=[str(path) for path in metadata.link_paths],
        libraries=list(metadata.libs),
        extra_link_args=[
            flag for flag in metadata.link_flags if not flag.startswith(("-L", "-l"))
        ],
        define_macros=[_macro(define) for define in metadata.defines],
    )
    return ffibuilder


def _macro(define: str) -> tuple[str, str | None]:
    name, _, value = define.partition("=")
    return name, value or None


__all__ = [
    "BLOCKLIST",
    "CFFI_MODULE",
    "UMBRELLA_HEADER",
    "drop_blocklisted",
    "ffi_builder",
    "generate_bindings",
    "own_declarations",
    "preprocess_command",
    "resolve_includes",
    "rewrite_doc_comments",
]
