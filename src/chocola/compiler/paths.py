"""Helpers for chocola project paths."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from chocola.compiler.config import ChocolaConfig


@dataclass(frozen=True)
class ProjectPaths:
    root: Path
    src: Path
    components: Path
    out_dir: Path


def resolve_paths(root_dir: Path, config: ChocolaConfig) -> ProjectPaths:
    """Resolve source, component library and output directories."""
    root = root_dir.resolve()
    src = root / config.bundle.src_dir
    return ProjectPaths(
        root=root,
        src=src,
        components=src / config.bundle.lib_dir,
        out_dir=root / config.bundle.out_dir,
    )


def prepare_out_dir(out_dir: Path, empty: bool) -> Path:
    """Ensure the output directory exists, emptying it first if asked to."""
    if empty and out_dir.exists():
        shutil.rmtree(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir
