"""
POST form marshalling.

Turns submitted form pairs into the record an endpoint's body function
expects. Every submitted value stays text.
"""

from typing import Iterable, Optional, Sequence, Tuple

from .values import Record, Text, record_val
from ..errors import error_missing_form_field
from ..program import Endpoint
from ..types import Type, record_argument_fields


def form_fields(endpoint: Endpoint) -> Optional[Sequence[Tuple[str, Type]]]:
    """
    The record fields to decode for `endpoint`, or None when form
    marshalling does not apply (not POST, or body not a record function).
    """
    if endpoint.method != "POST":
        return None
    return record_argument_fields(endpoint.type)


def params_to_record(
    fields: Sequence[Tuple[str, Type]],
    params: Iterable[Tuple[str, str]],
) -> Record:
    """
    Build a record with exactly `fields`, in declared order.

    Raises FormInputError naming the first declared field that was not
    submitted. Undeclared submissions are dropped; a repeated name keeps its
    last value.
    """
    submitted = dict(params)
    values = []
    for name, _ in fields:
        if name not in submitted:
            raise error_missing_form_field(name)
        values.append((name, Text(submitted[name])))
    return record_val(values)
