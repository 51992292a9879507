"""
HTML emission for runtime values.
"""

from typing import Optional

from .values import (
    Value, Text, Int, ListValue, Record,
    HtmlFragment, RawHtml, Tag, TagWithAttrs,
)
from ..errors import error_wrong_kind


_ENTITIES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
}


def escape(s: str) -> str:
    """Escape `& < > "` in a single pass. Single quotes are left alone."""
    return "".join(_ENTITIES.get(ch, ch) for ch in s)


def attribute_text(v: Value) -> str:
    """Coerce an attribute value to text."""
    if isinstance(v, Text):
        return v.text
    elif isinstance(v, Int):
        return str(v.value)
    raise error_wrong_kind("text", v, "html attribute")


def emit_attrs(attrs: Record) -> str:
    """Serialize attributes in record order, space-separated."""
    return " ".join(
        f'{name}="{escape(attribute_text(value))}"' for name, value in attrs.items()
    )


def element(name: str, body: str, attrs: Optional[Record] = None) -> str:
    """A two-sided element with already-emitted body markup."""
    if attrs is not None and attrs.fields:
        return f"<{name} {emit_attrs(attrs)}>{body}</{name}>"
    return f"<{name}>{body}</{name}>"


def emit_fragment(fragment: HtmlFragment) -> str:
    if isinstance(fragment, RawHtml):
        return fragment.text
    elif isinstance(fragment, Tag):
        return element(fragment.name, "")
    elif isinstance(fragment, TagWithAttrs):
        return element(fragment.name, "", fragment.attrs)
    raise error_wrong_kind("html fragment", fragment, "html emission")


def emit(v: Value) -> str:
    """Render a value as HTML text."""
    if isinstance(v, HtmlFragment):
        return emit_fragment(v)
    elif isinstance(v, Text):
        return escape(v.text)
    elif isinstance(v, Int):
        return str(v.value)
    elif isinstance(v, ListValue):
        return "".join(emit(item) for item in v.items)
    raise error_wrong_kind("html, text, int or list", v, "html emission")
