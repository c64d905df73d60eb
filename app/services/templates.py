"""
Template rendering

Jinja2 environment for the XML feeds and the printable license documents.
Templates live in app/templates; .html and .xml are autoescaped.
"""
import logging
from typing import Any

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

logger = logging.getLogger(__name__)

_env = Environment(
    loader=PackageLoader("app", "templates"),
    autoescape=select_autoescape(["html", "xml"]),
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
)


def _money(value: Any) -> str:
    return f"{float(value or 0):.2f}"


def _date(value: Any, fmt: str = "%B %d, %Y") -> str:
    return value.strftime(fmt) if value else ""


_env.filters["money"] = _money
_env.filters["date"] = _date


def render(template_name: str, **context: Any) -> str:
    template = _env.get_template(template_name)
    return template.render(**context)
