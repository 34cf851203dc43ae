"""site_binder.report: Markdown output assembly (combined document or file set) and JSON summaries."""

from __future__ import annotations

from functools import lru_cache

from jinja2 import Environment, PackageLoader, StrictUndefined


def md_cell(value: object) -> str:
    """Make *value* safe inside a Markdown table cell."""
    text = "" if value is None else str(value)
    return " ".join(text.split()).replace("|", "\\|")


def md_text(value: object) -> str:
    """Escape brackets so *value* can be used as link text."""
    text = "" if value is None else " ".join(str(value).split())
    return text.replace("[", "\\[").replace("]", "\\]")


@lru_cache(maxsize=1)
def get_environment() -> Environment:
    """Jinja2 environment for the packaged ``*.md.j2`` templates."""
    env = Environment(
        loader=PackageLoader("site_binder", "templates"),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["cell"] = md_cell
    env.filters["linktext"] = md_text
    return env


__all__ = ["get_environment", "md_cell", "md_text"]
