"""Component definitions and the component library loader."""

from __future__ import annotations

import hashlib
import importlib.util
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Union

from chocola.compiler.exceptions import ComponentLoadError
from chocola.compiler.script import script_text

logger = logging.getLogger(__name__)

COMPONENT_EXT = ".html"
COMPONENT_FACTORY = "component"

ScriptSource = Union[str, Callable[[], str]]


def component_key(name: str) -> str:
    """Normalized lookup key: lowercased tag name plus ``.html``."""
    return f"{name.lower()}{COMPONENT_EXT}"


@dataclass(frozen=True)
class ComponentDefinition:
    name: str
    body: str
    styles: Optional[str] = None
    script: Optional[ScriptSource] = None
    effects: Any = None
    source: Optional[Path] = None

    @property
    def key(self) -> str:
        return component_key(self.name)

    @property
    def has_styles(self) -> bool:
        return bool(self.styles and self.styles.strip())

    @property
    def has_behavior(self) -> bool:
        return self.script is not None or self.effects is not None

    def script_source(self) -> Optional[str]:
        try:
            return script_text(self.script)
        except Exception as e:
            raise ComponentLoadError(
                f"Script of component '{self.name}' raised {type(e).__name__}: {e}",
                str(self.source or ""),
            ) from e

    @classmethod
    def from_mapping(
        cls, name: str, data: Mapping[str, Any], source: Optional[Path] = None
    ) -> "ComponentDefinition":
        body = data.get("body")
        if body is None:
            raise ComponentLoadError(f"Component '{name}' has no body", str(source or ""))
        return cls(
            name=name,
            body=str(body),
            styles=data.get("styles"),
            script=data.get("script"),
            effects=data.get("effects"),
            source=source,
        )


class ComponentLibrary(Mapping[str, ComponentDefinition]):
    """Read-only lookup table of component definitions."""

    def __init__(self, definitions: Optional[Dict[str, ComponentDefinition]] = None) -> None:
        self._definitions = MappingProxyType(dict(definitions or {}))

    @classmethod
    def of(cls, *definitions: ComponentDefinition) -> "ComponentLibrary":
        return cls({d.key: d for d in definitions})

    def lookup(self, tag: str) -> Optional[ComponentDefinition]:
        return self._definitions.get(component_key(tag))

    def __getitem__(self, key: str) -> ComponentDefinition:
        return self._definitions[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)


@dataclass
class LoadResult:
    library: ComponentLibrary
    found: List[str] = field(default_factory=list)
    not_defined: List[str] = field(default_factory=list)


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ComponentLoadError(f"Could not read component file: {e}", str(path)) from e


def _load_module(path: Path) -> Any:
    digest = hashlib.md5(str(path.resolve()).encode("utf-8")).hexdigest()[:8]
    module_name = f"chocola_component_{path.stem.lower()}_{digest}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ComponentLoadError("Could not load component module", str(path))

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise ComponentLoadError(
            f"Component module raised {type(e).__name__}: {e}", str(path)
        ) from e
    return module


def _load_python_component(path: Path) -> Optional[ComponentDefinition]:
    module = _load_module(path)
    factory = getattr(module, COMPONENT_FACTORY, None)
    if not callable(factory):
        return None

    try:
        data = factory()
    except Exception as e:
        raise ComponentLoadError(
            f"{COMPONENT_FACTORY}() raised {type(e).__name__}: {e}", str(path)
        ) from e
    if not isinstance(data, Mapping):
        raise ComponentLoadError(
            f"{COMPONENT_FACTORY}() must return a mapping, got {type(data).__name__}",
            str(path),
        )
    return ComponentDefinition.from_mapping(path.stem, data, source=path)


def _load_markup_component(path: Path) -> ComponentDefinition:
    css_path = path.with_suffix(".css")
    js_path = path.with_suffix(".js")
    return ComponentDefinition(
        name=path.stem,
        body=_read(path),
        styles=_read(css_path) if css_path.exists() else None,
        script=_read(js_path) if js_path.exists() else None,
        source=path,
    )


def load_components(lib_dir: Path) -> LoadResult:
    """Load every component in ``lib_dir``.

    Component files start with an uppercase letter and are either Python
    modules exposing ``component()`` or ``.html`` bodies with optional
    ``.css`` / ``.js`` sidecars of the same stem.
    """
    if not lib_dir.is_dir():
        raise ComponentLoadError(
            "The specified components folder could not be found", str(lib_dir)
        )

    definitions: Dict[str, ComponentDefinition] = {}
    found: List[str] = []
    not_defined: List[str] = []

    for entry in sorted(lib_dir.iterdir()):
        if not entry.is_file() or not entry.name[:1].isupper():
            continue

        if entry.suffix == ".py":
            found.append(entry.name)
            definition = _load_python_component(entry)
            if definition is None:
                not_defined.append(entry.name)
                continue
        elif entry.suffix == COMPONENT_EXT:
            found.append(entry.name)
            if entry.with_suffix(".py").exists():
                logger.warning(
                    "%s shadowed by %s", entry.name, entry.with_suffix(".py").name
                )
                continue
            definition = _load_markup_component(entry)
        else:
            continue

        definitions[definition.key] = definition

    return LoadResult(
        library=ComponentLibrary(definitions),
        found=found,
        not_defined=not_defined,
    )
