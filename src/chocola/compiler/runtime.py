"""Runtime script and scoped style sheet output files."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Optional

from chocola.compiler.exceptions import ChocolaError


def content_id(content: str, length: int = 8) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:length]


def wrap_runtime_script(body: str) -> str:
    """Run ``body`` once the initial page content is ready."""
    return f'document.addEventListener("DOMContentLoaded", () => {{\n{body}\n}});\n'


def write_output(out_dir: Path, filename: str, content: str) -> Path:
    path = out_dir / filename
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ChocolaError(f"Could not write output file: {e}", str(path)) from e
    return path


def generate_runtime_script(body: str, out_dir: Path) -> Optional[str]:
    """Write ``run-<id>.js`` and return its filename, or None when empty."""
    if not body.strip():
        return None
    contents = wrap_runtime_script(body)
    filename = f"run-{content_id(contents)}.js"
    write_output(out_dir, filename, contents)
    return filename


def generate_stylesheet(css: str, out_dir: Path) -> Optional[str]:
    """Write ``chocola-<id>.css`` and return its filename, or None when empty."""
    if not css.strip():
        return None
    contents = css if css.endswith("\n") else css + "\n"
    filename = f"chocola-{content_id(contents)}.css"
    write_output(out_dir, filename, contents)
    return filename
