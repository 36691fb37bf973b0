"""Component expansion: replaces custom elements with their rendered bodies."""

from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from lxml.html import HtmlElement

from chocola.compiler.allocators import (
    BindingIdAllocator,
    CssScopeAllocator,
    RuntimeLetterAllocator,
)
from chocola.compiler.components import ComponentDefinition, ComponentLibrary
from chocola.compiler.css import scope_css
from chocola.compiler.dom import (
    add_class,
    first_element,
    is_attached,
    is_custom_tag,
    iter_elements,
    unwrap,
)
from chocola.compiler.script import (
    RuntimeScriptTransformer,
    ScriptTransformer,
    activation_call,
)
from chocola.compiler.slots import capture_light_dom, project_slots
from chocola.compiler.template import render_body

logger = logging.getLogger(__name__)

BINDING_ATTR = "chid"


@dataclass
class BuildContext:
    """Mutable state of one build. Never reuse across builds."""

    letters: RuntimeLetterAllocator = field(default_factory=RuntimeLetterAllocator)
    scopes: CssScopeAllocator = field(default_factory=CssScopeAllocator)
    bindings: BindingIdAllocator = field(default_factory=BindingIdAllocator)
    script_chunks: List[str] = field(default_factory=list)
    style_blocks: List[str] = field(default_factory=list)
    emitted_scripts: Set[str] = field(default_factory=set)
    emitted_styles: Set[str] = field(default_factory=set)
    unknown_tags: List[str] = field(default_factory=list)

    @classmethod
    def seeded(cls, seed: int) -> "BuildContext":
        return cls(bindings=BindingIdAllocator(rng=random.Random(seed)))

    def runtime_script(self) -> str:
        return "\n".join(self.script_chunks)

    def stylesheet(self) -> str:
        return "\n".join(self.style_blocks)


@dataclass
class ExpansionResult:
    definition: ComponentDefinition
    nodes: List[HtmlElement]
    root: Optional[HtmlElement] = None
    binding_id: Optional[str] = None
    script_lines: List[str] = field(default_factory=list)
    style_block: Optional[str] = None
    slotted_sites: List[HtmlElement] = field(default_factory=list)


@dataclass
class ExpansionSummary:
    expanded: int = 0
    unknown: int = 0
    passes: int = 0
    usages: Dict[str, int] = field(default_factory=dict)


class ComponentExpander:
    """Expands component usage sites inside a container element."""

    def __init__(
        self,
        library: ComponentLibrary,
        context: Optional[BuildContext] = None,
        strict: bool = False,
        script_transformer: Optional[ScriptTransformer] = None,
    ) -> None:
        self.library = library
        self.context = context or BuildContext()
        self.strict = strict
        self.transformer = script_transformer or RuntimeScriptTransformer()

    def usage_sites(self, container: HtmlElement) -> List[HtmlElement]:
        return [el for el in iter_elements(container) if is_custom_tag(el.tag)]

    def expand(
        self, container: HtmlElement, recursive: bool = False, max_depth: int = 8
    ) -> ExpansionSummary:
        """Expand every usage site below ``container`` in document order.

        Only one level is expanded unless ``recursive`` is set, in which case
        the markup produced by each pass is scanned again until nothing is
        left to expand or ``max_depth`` passes have run.
        """
        summary = ExpansionSummary()
        sites = self.usage_sites(container)
        while True:
            produced = self._run_pass(container, sites, summary)
            summary.passes += 1
            if not recursive or not produced:
                break
            sites = self._sites_within(produced)
            if not sites:
                break
            if summary.passes >= max_depth:
                logger.warning(
                    "Stopped expanding nested components after %d passes", max_depth
                )
                break
        return summary

    def _sites_within(self, nodes: List[HtmlElement]) -> List[HtmlElement]:
        sites: List[HtmlElement] = []
        seen: Set[HtmlElement] = set()
        for node in nodes:
            candidates = [node] if is_custom_tag(node.tag) else []
            candidates.extend(self.usage_sites(node))
            for site in candidates:
                if site not in seen:
                    seen.add(site)
                    sites.append(site)
        return sites

    def _run_pass(
        self,
        container: HtmlElement,
        sites: List[HtmlElement],
        summary: ExpansionSummary,
    ) -> List[HtmlElement]:
        produced: List[HtmlElement] = []
        pending = deque(sites)
        while pending:
            element = pending.popleft()
            # Sites inside an already replaced element are gone from the tree
            if not is_attached(element, container):
                continue

            result = self.expand_element(element)
            if result is None:
                summary.unknown += 1
                continue

            summary.expanded += 1
            produced.extend(result.nodes)
            key = result.definition.key
            summary.usages[key] = summary.usages.get(key, 0) + 1

            # Usage sites authored inside this one now live in the projected copies
            pending.extendleft(reversed(result.slotted_sites))

        return produced

    def _take_inherited(self, element: HtmlElement) -> Tuple[Optional[str], List[str]]:
        """Pop the binding id and scope classes an earlier pass put on ``element``."""
        binding_id = element.get(BINDING_ATTR)
        if binding_id is not None and self.context.bindings.is_issued(binding_id):
            del element.attrib[BINDING_ATTR]
        else:
            binding_id = None

        classes = (element.get("class") or "").split()
        scoped = [c for c in classes if self.context.scopes.is_issued(c)]
        if scoped:
            rest = [c for c in classes if c not in scoped]
            if rest:
                element.set("class", " ".join(rest))
            else:
                del element.attrib["class"]
        return binding_id, scoped

    def expand_element(self, element: HtmlElement) -> Optional[ExpansionResult]:
        tag = element.tag
        definition = self.library.lookup(tag)
        if definition is None:
            self._report_unknown(element)
            return None

        binding_id, scope_classes = self._take_inherited(element)
        context = dict(element.attrib)
        light_dom = capture_light_dom(element)

        fragment = render_body(definition.body, context)
        projected = project_slots(fragment, light_dom)

        root = first_element(fragment)
        result = ExpansionResult(definition=definition, nodes=[], root=root)
        result.slotted_sites = self._sites_within(projected)

        if root is None:
            if definition.has_behavior or definition.has_styles or binding_id:
                logger.warning(
                    "<%s> renders no root element; script and styles skipped", tag
                )
        else:
            if binding_id is not None:
                root.set(BINDING_ATTR, binding_id)
            for scope_class in scope_classes:
                add_class(root, scope_class)
            if definition.has_styles:
                self._apply_styles(definition, root, result)
            if definition.has_behavior:
                self._apply_behavior(definition, root, context, result)

        result.nodes = unwrap(fragment, element)
        return result

    def _report_unknown(self, element: HtmlElement) -> None:
        tag = element.tag
        self.context.unknown_tags.append(tag)
        if self.strict:
            logger.warning("<%s> component could not be loaded; removed", tag)
            element.drop_tree()
        else:
            logger.warning("<%s> component could not be loaded", tag)

    def _apply_styles(
        self, definition: ComponentDefinition, root: HtmlElement, result: ExpansionResult
    ) -> None:
        scope_class = self.context.scopes.class_for(definition.key)
        add_class(root, scope_class)

        if definition.key in self.context.emitted_styles:
            return
        block = scope_css(definition.styles or "", scope_class)
        self.context.emitted_styles.add(definition.key)
        self.context.style_blocks.append(block)
        result.style_block = block

    def _apply_behavior(
        self,
        definition: ComponentDefinition,
        root: HtmlElement,
        context: Dict[str, str],
        result: ExpansionResult,
    ) -> None:
        # A root that already carries a binding is shared with the outer instance
        binding_id = root.get(BINDING_ATTR)
        if binding_id is None or not self.context.bindings.is_issued(binding_id):
            binding_id = self.context.bindings.next_id()
        root.set(BINDING_ATTR, binding_id)
        result.binding_id = binding_id

        source = definition.script_source()
        if source is None:
            return

        runtime_id = self.context.letters.label_for(definition.key)
        if definition.key not in self.context.emitted_scripts:
            self.context.emitted_scripts.add(definition.key)
            result.script_lines.append(self.transformer.transform(source, runtime_id))

        result.script_lines.append(
            activation_call(
                self.transformer, runtime_id, binding_id, context, BINDING_ATTR
            )
        )
        self.context.script_chunks.extend(result.script_lines)


def expand_components(
    container: HtmlElement,
    library: ComponentLibrary,
    context: Optional[BuildContext] = None,
    strict: bool = False,
    recursive: bool = False,
) -> BuildContext:
    """Expand ``container`` with a fresh build context and return it."""
    expander = ComponentExpander(library, context=context, strict=strict)
    expander.expand(container, recursive=recursive)
    return expander.context
