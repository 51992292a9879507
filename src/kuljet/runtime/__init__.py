"""
Kuljet Runtime - Tree-walking interpreter for endpoint bodies.

This module provides:
- Value: Runtime value variants (text, int, records, closures, HTML, ...)
- Environment: Immutable layered variable bindings
- Interpreter: Evaluates type-checked expressions against a store
- HTML emission, query execution, form marshalling and responses
- InterpretedRoute: An endpoint bound to a request handler
"""

from .values import (
    Value,
    Text,
    Int,
    Bool,
    ListValue,
    Record,
    Closure,
    Builtin,
    Action,
    QueryValue,
    HtmlFragment,
    RawHtml,
    Tag,
    TagWithAttrs,
    ResponseValue,
    text_val,
    int_val,
    bool_val,
    list_val,
    record_val,
)

from .environment import (
    Environment,
    EvalContext,
    build_environment,
)

from .stdlib import (
    HTML_TAGS,
    STDLIB,
    stdlib_values,
    stdlib_types,
)

from .html import (
    emit,
    escape,
)

from .query import (
    execute,
    decode_value,
    insert,
)

from .interpreter import (
    Interpreter,
    evaluate,
)

from .forms import (
    params_to_record,
)

from .response import (
    Response,
    value_to_response,
)

from .endpoint import (
    InterpretedRoute,
    interpret_endpoint,
    interpret_module,
)

__all__ = [
    # Values
    'Value',
    'Text',
    'Int',
    'Bool',
    'ListValue',
    'Record',
    'Closure',
    'Builtin',
    'Action',
    'QueryValue',
    'HtmlFragment',
    'RawHtml',
    'Tag',
    'TagWithAttrs',
    'ResponseValue',
    'text_val',
    'int_val',
    'bool_val',
    'list_val',
    'record_val',

    # Environment
    'Environment',
    'EvalContext',
    'build_environment',

    # Standard library
    'HTML_TAGS',
    'STDLIB',
    'stdlib_values',
    'stdlib_types',

    # HTML
    'emit',
    'escape',

    # Store access
    'execute',
    'decode_value',
    'insert',

    # Interpreter
    'Interpreter',
    'evaluate',

    # Requests
    'params_to_record',
    'Response',
    'value_to_response',
    'InterpretedRoute',
    'interpret_endpoint',
    'interpret_module',
]
