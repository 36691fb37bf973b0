from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("chocola")
except PackageNotFoundError:
    __version__ = "unknown"

from chocola.compiler.build import BuildSummary, SiteBuilder, build_project
from chocola.compiler.components import (
    ComponentDefinition,
    ComponentLibrary,
    load_components,
)
from chocola.compiler.exceptions import ChocolaError, MissingContainerError
from chocola.compiler.expander import BuildContext, ComponentExpander, expand_components

__all__ = [
    "BuildContext",
    "BuildSummary",
    "ChocolaError",
    "ComponentDefinition",
    "ComponentExpander",
    "ComponentLibrary",
    "MissingContainerError",
    "SiteBuilder",
    "build_project",
    "expand_components",
    "load_components",
]
