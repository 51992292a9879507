# -*- coding: utf-8 -*-
"""
Kuljet runtime: evaluates type-checked Kuljet programs as HTTP endpoints.

Usage:
    from kuljet import Module, Table, Endpoint, create_app

    app = create_app(module)
"""

from importlib.metadata import PackageNotFoundError, version

from .errors import (
    ErrorSeverity,
    Diagnostic,
    KuljetError,
    ContractViolation,
    RowDecodeError,
    EvaluationError,
    FormInputError,
)

from .program import (
    Table,
    Endpoint,
    Module,
    PathPattern,
)

from .config import (
    ServerConfig,
    load_config,
    configure_logging,
)

from .server import create_app


try:
    __version__ = version("kuljet")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"


__all__ = [
    # Errors
    'ErrorSeverity',
    'Diagnostic',
    'KuljetError',
    'ContractViolation',
    'RowDecodeError',
    'EvaluationError',
    'FormInputError',

    # Program
    'Table',
    'Endpoint',
    'Module',
    'PathPattern',

    # Configuration
    'ServerConfig',
    'load_config',
    'configure_logging',

    # Web
    'create_app',
]
