"""
HTTP responses built from evaluation results.
"""

from dataclasses import dataclass
from typing import Tuple

from .values import Value, ResponseValue
from .html import emit
from ..errors import FormInputError


@dataclass(frozen=True)
class Response:
    """Status, ordered headers and byte body sent back to the client."""
    status: int
    headers: Tuple[Tuple[str, str], ...] = ()
    body: bytes = b""

    def header(self, name: str) -> str:
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        raise KeyError(name)


def value_to_response(value: Value) -> Response:
    """Pass explicit responses through; render anything else as HTML."""
    if isinstance(value, ResponseValue):
        return Response(value.status, value.headers, value.body)
    return Response(status=200, headers=(), body=emit(value).encode("utf-8"))


def form_error_response(error: FormInputError) -> Response:
    body = f"Invalid form input: {error.diagnostic.message}"
    return Response(status=400, headers=(), body=body.encode("utf-8"))
