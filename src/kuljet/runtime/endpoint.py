"""
Binding endpoints to request handlers.

Each request gets a fresh environment; the body is evaluated, applied to the
decoded form for record-typed POST endpoints, and turned into a Response.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Sequence, Tuple

from .environment import EvalContext, build_environment
from .forms import form_fields, params_to_record
from .interpreter import Interpreter
from .response import Response, form_error_response, value_to_response
from ..errors import ContractViolation, EvaluationError, FormInputError
from ..program import Endpoint, Module, PathPattern, Table

logger = logging.getLogger(__name__)


@dataclass
class InterpretedRoute:
    """An endpoint ready to serve requests."""
    endpoint: Endpoint
    tables: Tuple[Table, ...]
    interpreter: Interpreter = field(default_factory=Interpreter)

    @property
    def method(self) -> str:
        return self.endpoint.method

    @property
    def path(self) -> PathPattern:
        return self.endpoint.path

    def run(
        self,
        store: sqlite3.Connection,
        path_vars: Mapping[str, str],
        form: Sequence[Tuple[str, str]] = (),
    ) -> Response:
        """
        Serve one request.

        Contract violations and evaluation faults are logged and re-raised;
        the request is aborted.
        """
        logger.debug("%s %s %s", self.method, self.path, dict(path_vars))
        ctx = EvalContext(store, build_environment(self.tables, path_vars))
        try:
            value = self.interpreter.evaluate(self.endpoint.body, ctx)
            fields = form_fields(self.endpoint)
            if fields is not None:
                try:
                    record = params_to_record(fields, form)
                except FormInputError as e:
                    logger.info("%s %s: invalid form input: %s",
                                self.method, self.path, e.diagnostic.message)
                    return form_error_response(e)
                value = self.interpreter.apply(value, record, ctx)
            return value_to_response(value)
        except ContractViolation as e:
            logger.critical("%s %s: the type checker has failed - this is a bug: %s [%s]",
                            self.method, self.path, e.diagnostic.message, e.code)
            raise
        except EvaluationError as e:
            logger.error("%s %s: %s [%s]", self.method, self.path, e.diagnostic.message, e.code)
            raise


def interpret_endpoint(tables: Iterable[Table], endpoint: Endpoint) -> InterpretedRoute:
    return InterpretedRoute(endpoint=endpoint, tables=tuple(tables))


def interpret_module(module: Module) -> List[InterpretedRoute]:
    """One InterpretedRoute per endpoint, in declaration order."""
    return [interpret_endpoint(module.tables, endpoint) for endpoint in module.endpoints]
