"""Static build of a chocola project."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from chocola.compiler.assets import copy_resources, process_asset_links
from chocola.compiler.components import ComponentLibrary, load_components
from chocola.compiler.config import ChocolaConfig, load_config
from chocola.compiler.dom import (
    append_runtime_script,
    append_stylesheet_link,
    find_container,
    parse_document,
    serialize_document,
)
from chocola.compiler.exceptions import SourceIndexError
from chocola.compiler.expander import BuildContext, ComponentExpander
from chocola.compiler.paths import ProjectPaths, prepare_out_dir, resolve_paths
from chocola.compiler.runtime import (
    generate_runtime_script,
    generate_stylesheet,
    write_output,
)

logger = logging.getLogger(__name__)

INDEX_HTML = "index.html"
INDEX_CHOCO = "index.choco"


@dataclass
class BuildSummary:
    components: int
    usages: int
    out_dir: Path
    index_path: Path
    runtime_file: Optional[str] = None
    stylesheet_file: Optional[str] = None
    unknown_tags: List[str] = field(default_factory=list)
    not_defined: List[str] = field(default_factory=list)


def get_src_index(src_dir: Path) -> str:
    """Read the project index page from the source directory."""
    html_path = src_dir / INDEX_HTML
    choco_path = src_dir / INDEX_CHOCO

    if html_path.exists() and choco_path.exists():
        raise SourceIndexError(
            "Can't have both .choco and .html source index files at a time: "
            "please remove one of the two",
            str(src_dir),
        )
    if choco_path.exists():
        raise SourceIndexError(".choco files are not supported yet", str(choco_path))
    if not html_path.exists():
        raise SourceIndexError("No index.html found in the source directory", str(src_dir))

    try:
        return html_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SourceIndexError(
            f"Got an error trying to read the file: {e}", str(html_path)
        ) from e


class SiteBuilder:
    def __init__(
        self,
        root_dir: Path,
        config: Optional[ChocolaConfig] = None,
        strict: bool = False,
        recursive: bool = False,
        extra_scripts: Sequence[str] = (),
        seed: Optional[int] = None,
    ) -> None:
        self.root_dir = root_dir
        self.config = config or load_config(root_dir)
        self.paths: ProjectPaths = resolve_paths(root_dir, self.config)
        self.strict = strict
        self.recursive = recursive
        self.extra_scripts = list(extra_scripts)
        self.seed = seed

    def _new_context(self) -> BuildContext:
        if self.seed is None:
            return BuildContext()
        return BuildContext.seeded(self.seed)

    def load_library(self) -> tuple[ComponentLibrary, List[str]]:
        result = load_components(self.paths.components)
        logger.info(
            "Components found in %s: %s",
            self.paths.components,
            ", ".join(result.found) or "(none)",
        )
        if result.not_defined:
            logger.warning(
                "The following components don't define a component() factory: %s",
                ", ".join(result.not_defined),
            )
        return result.library, result.not_defined

    def build(self) -> BuildSummary:
        out_dir = prepare_out_dir(self.paths.out_dir, self.config.bundle.empty_out_dir)

        source = get_src_index(self.paths.src)
        library, not_defined = self.load_library()

        doc = parse_document(source, str(self.paths.src / INDEX_HTML))
        container = find_container(doc)

        context = self._new_context()
        expander = ComponentExpander(library, context=context, strict=self.strict)
        expansion = expander.expand(container, recursive=self.recursive)

        runtime_file = generate_runtime_script(context.runtime_script(), out_dir)
        scoped_css = context.stylesheet()
        stylesheet_file = generate_stylesheet(scoped_css, out_dir)

        linked_css = process_asset_links(doc, self.paths.src, out_dir)

        if stylesheet_file:
            append_stylesheet_link(doc, stylesheet_file)
        if runtime_file:
            append_runtime_script(doc, runtime_file)
        for src in self.extra_scripts:
            script = append_runtime_script(doc, src)
            script.set("src", src)

        index_path = write_output(out_dir, INDEX_HTML, serialize_document(doc))

        copy_resources(doc, self.paths.src, out_dir, [*linked_css, scoped_css])

        return BuildSummary(
            components=len(library),
            usages=expansion.expanded,
            out_dir=out_dir,
            index_path=index_path,
            runtime_file=runtime_file,
            stylesheet_file=stylesheet_file,
            unknown_tags=list(context.unknown_tags),
            not_defined=not_defined,
        )


def build_project(
    root_dir: Path,
    strict: bool = False,
    recursive: bool = False,
    extra_scripts: Sequence[str] = (),
) -> BuildSummary:
    """Build the project rooted at ``root_dir``."""
    builder = SiteBuilder(
        root_dir, strict=strict, recursive=recursive, extra_scripts=extra_scripts
    )
    return builder.build()
