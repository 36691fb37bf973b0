"""Copying of local static assets referenced by the page."""

from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path
from typing import Iterable, List, Optional, Set
from urllib.parse import urlsplit

from lxml.html import HtmlElement

from chocola.compiler.exceptions import AssetError
from chocola.compiler.runtime import content_id, write_output

logger = logging.getLogger(__name__)

URL_RE = re.compile(r"url\(([^)]+)\)", re.IGNORECASE)
IMPORT_STRING_RE = re.compile(r"""@import\s+["']([^"']+)["']""", re.IGNORECASE)

# Elements whose references are handled elsewhere
_SKIPPED_TAGS = ("link", "script")


def local_reference(value: Optional[str]) -> Optional[str]:
    """Return the file part of a local reference, or None for anything else."""
    if not value:
        return None
    value = value.strip()
    if not value or value.startswith(("#", "//")):
        return None
    parts = urlsplit(value)
    if parts.scheme or parts.netloc:
        return None
    path = parts.path.lstrip("/")
    if path.startswith("./"):
        path = path[2:]
    return path or None


def _clean(raw: str) -> Optional[str]:
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1]
    if value.startswith("data:"):
        return None
    return value


def css_asset_refs(css: str) -> List[str]:
    """Files referenced by ``url(...)`` and ``@import`` in a style sheet."""
    refs: List[str] = []
    for pattern in (URL_RE, IMPORT_STRING_RE):
        for match in pattern.finditer(css):
            value = _clean(match.group(1))
            if value and value not in refs:
                refs.append(value)
    return refs


def copy_asset(src_dir: Path, out_dir: Path, reference: str) -> Optional[Path]:
    rel = local_reference(reference)
    if rel is None:
        return None

    source = src_dir / rel
    dest = out_dir / rel
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, dest)
    except OSError as e:
        raise AssetError(f"Could not copy asset '{reference}': {e}", str(source)) from e
    return dest


def process_stylesheet(link: HtmlElement, src_dir: Path, out_dir: Path) -> Optional[str]:
    """Copy a linked local style sheet under a content hashed name."""
    rel = local_reference(link.get("href"))
    if rel is None:
        return None

    path = src_dir / rel
    try:
        css = path.read_text(encoding="utf-8")
    except OSError as e:
        raise AssetError(f"Could not read stylesheet: {e}", str(path)) from e

    filename = f"css-{content_id(css)}.css"
    write_output(out_dir, filename, css)
    link.set("href", f"./{filename}")
    return css


def process_icon(link: HtmlElement, src_dir: Path, out_dir: Path) -> None:
    copy_asset(src_dir, out_dir, link.get("href") or "")


def process_asset_links(doc: HtmlElement, src_dir: Path, out_dir: Path) -> List[str]:
    """Handle ``<link rel=stylesheet|icon>``; returns the copied CSS texts."""
    sheets: List[str] = []
    for link in list(doc.iter("link")):
        rel = (link.get("rel") or "").lower().split()
        if "stylesheet" in rel:
            css = process_stylesheet(link, src_dir, out_dir)
            if css is not None:
                sheets.append(css)
        elif "icon" in rel:
            process_icon(link, src_dir, out_dir)
    return sheets


def _element_refs(doc: HtmlElement) -> Iterable[tuple[str, str, bool]]:
    for element in doc.iter():
        if not isinstance(element.tag, str) or element.tag in _SKIPPED_TAGS:
            continue
        src = element.get("src")
        if src:
            yield element.tag, src, True
        href = element.get("href")
        if href:
            # Anchors usually point at pages rather than files
            yield element.tag, href, element.tag != "a"
        style = element.get("style")
        if style:
            for match in URL_RE.finditer(style):
                value = _clean(match.group(1))
                if value:
                    yield element.tag, value, True


def copy_resources(
    doc: HtmlElement, src_dir: Path, out_dir: Path, style_sheets: Iterable[str] = ()
) -> List[Path]:
    """Copy every local file the final page and its style sheets refer to."""
    copied: List[Path] = []
    seen: Set[str] = set()

    def copy(reference: str, required: bool) -> None:
        rel = local_reference(reference)
        if rel is None or rel in seen:
            return
        seen.add(rel)
        if not required and not (src_dir / rel).is_file():
            logger.debug("Skipping link to %s: not a file", reference)
            return
        dest = copy_asset(src_dir, out_dir, reference)
        if dest is not None:
            copied.append(dest)

    for _tag, reference, required in _element_refs(doc):
        copy(reference, required)

    for css in style_sheets:
        for reference in css_asset_refs(css):
            copy(reference, True)

    return copied
