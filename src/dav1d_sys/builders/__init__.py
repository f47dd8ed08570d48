"""Builders that drive the external configure/compile/install toolchain."""

from __future__ import annotations

from .base import Builder, BuildSpec
from .meson import MesonBuilder

__all__ = ["BuildSpec", "Builder", "MesonBuilder"]
