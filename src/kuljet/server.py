"""Kuljet web layer - FastAPI application serving a program's endpoints."""

import logging
import sqlite3
from typing import List, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response as HttpResponse

from .config import ServerConfig
from .program import Module
from .runtime.endpoint import InterpretedRoute, interpret_module
from .store import create_tables, open_store

logger = logging.getLogger(__name__)


async def read_form(request: Request) -> List[Tuple[str, str]]:
    """Text fields of a POST body, in submission order. Uploaded files are ignored."""
    form = await request.form()
    return [(name, value) for name, value in form.multi_items() if isinstance(value, str)]


def route_handler(route: InterpretedRoute, store: sqlite3.Connection):
    """Wrap an interpreted route as an ASGI endpoint."""

    async def handle(request: Request) -> HttpResponse:
        path_vars = {k: str(v) for k, v in request.path_params.items()}
        form = await read_form(request) if request.method == "POST" else []
        # Evaluation blocks on the store; keep it off the event loop
        result = await run_in_threadpool(route.run, store, path_vars, form)
        response = HttpResponse(content=result.body, status_code=result.status)
        for name, value in result.headers:
            response.headers.append(name, value)
        return response

    return handle


def create_app(
    module: Module,
    store: Optional[sqlite3.Connection] = None,
    config: Optional[ServerConfig] = None,
) -> FastAPI:
    """
    Build a FastAPI app with one route per endpoint.

    Opens the configured database when no store is given and, unless
    disabled, creates the program's tables.
    """
    config = config or ServerConfig()
    if store is None:
        store = open_store(config.database)
    if config.create_tables:
        create_tables(store, module.tables)

    app = FastAPI(title="Kuljet")
    app.state.store = store
    for route in interpret_module(module):
        path = route.path.to_route_path()
        logger.info("serving %s %s", route.method, path)
        app.add_route(
            path,
            route_handler(route, store),
            methods=[route.method],
            include_in_schema=False,
        )
    return app
