"""HTML pages the dev server shows instead of the site."""

from typing import Any, Dict, Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from chocola.compiler.exceptions import ChocolaError

BUILD_ERROR_TEMPLATE = "build_error.html"

_env = Environment(
    loader=PackageLoader("chocola", "templates"),
    autoescape=select_autoescape(["html", "xml"]),
)


def render_template(template_name: str, context: Dict[str, Any]) -> str:
    """Render a template from src/chocola/templates/ with ``context``."""
    template = _env.get_template(template_name)
    return template.render(**context)


def render_build_error(
    error: ChocolaError, version: int, reload_client: Optional[str] = None
) -> str:
    """Page shown while the last build of the project is broken."""
    return render_template(
        BUILD_ERROR_TEMPLATE,
        {
            "message": error.message,
            "path": error.path,
            "version": version,
            "reload_client": reload_client or "",
        },
    )
