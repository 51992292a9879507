"""
Standard library bindings and HTML tag names.

Every standard library entry carries its Kuljet type so the front end's
type checker can share the same table.
"""

import time
from dataclasses import dataclass
from typing import Dict, Tuple

from .values import Value, Action, Builtin, Int, ResponseValue, value_as_text
from ..types import Type, FunctionType, INT, TEXT, RESPONSE


HTML_TAGS: Tuple[str, ...] = (
    "html", "head", "title", "meta", "link", "style", "script", "body",
    "header", "footer", "nav", "main", "section", "article", "aside",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "div", "span", "p", "a", "em", "strong", "small", "code", "pre",
    "blockquote", "br", "hr", "img",
    "ul", "ol", "li", "dl", "dt", "dd",
    "table", "thead", "tbody", "tr", "th", "td",
    "form", "label", "input", "textarea", "button", "select", "option",
)


@dataclass(frozen=True)
class StdlibEntry:
    value: Value
    type: Type


def _now(store) -> Value:
    return Int(int(time.time()))


def _redirect(target: Value) -> Value:
    location = value_as_text(target, "redirect")
    return ResponseValue(status=303, headers=(("Location", location),), body=b"")


STDLIB: Dict[str, StdlibEntry] = {
    "now": StdlibEntry(Action("now", _now), INT),
    "redirect": StdlibEntry(Builtin("redirect", _redirect), FunctionType(TEXT, RESPONSE)),
}


def stdlib_values() -> Dict[str, Value]:
    return {name: entry.value for name, entry in STDLIB.items()}


def stdlib_types() -> Dict[str, Type]:
    return {name: entry.type for name, entry in STDLIB.items()}
