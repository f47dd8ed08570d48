"""Source acquisition for the upstream dav1d tree."""

from __future__ import annotations

from .git import ensure_source_tree

__all__ = ["ensure_source_tree"]
