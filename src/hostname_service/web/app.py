# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Starlette applications served by the app and health listeners.

| Listener | Route           | Response                                   |
|----------|-----------------|--------------------------------------------|
| app      | `GET /`         | The embedded HTML page                     |
| app      | `GET /ping`     | `{"message": "pong"}`                      |
| app      | `GET /hostname` | `{"hostname": ...}`, recorded in the store |
| app      | `GET /health`   | Health payload                             |
| health   | `GET /health`   | Health payload                             |
| health   | `GET /ping`     | `{"message": "pong"}`                      |

Failures inside a handler are answered with
`500 {"error": "Internal Server Error"}` and never affect the listener.
"""

from __future__ import annotations

import socket
import time
from collections.abc import Callable
from importlib import resources
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse
from starlette.routing import Route

from hostname_service.store import HostnameStore

from .middleware import AccessLogMiddleware, ExceptionMiddleware

logger = structlog.get_logger(__name__)

INTERNAL_ERROR = 'Internal Server Error'


def load_index_page() -> str:
    """Return the embedded index page."""
    return resources.files('hostname_service.web').joinpath('templates/index.html').read_text(encoding='utf-8')


def get_health_info(start_time: float) -> dict[str, Any]:
    """Get health information.

    Args:
        start_time: When the application was created, as `time.time()`.

    Returns:
        A dictionary containing health information.
    """
    now = time.time()
    return {
        'status': 'ok',
        'timestamp': now,
        'uptime_seconds': round(now - start_time, 2),
    }


def _internal_error() -> JSONResponse:
    return JSONResponse({'error': INTERNAL_ERROR}, status_code=500)


def _middleware(listener: str) -> list[Middleware]:
    return [
        Middleware(AccessLogMiddleware, listener=listener),
        Middleware(ExceptionMiddleware),
    ]


def create_app(
    store: HostnameStore | None = None,
    *,
    get_hostname: Callable[[], str] = socket.gethostname,
    debug: bool = False,
) -> Starlette:
    """Create the application listener's app.

    Args:
        store: Where `/hostname` records names; when None, names are only
            reported.
        get_hostname: Returns the machine's host name.
        debug: Starlette debug mode.

    Returns:
        The Starlette application.
    """
    index_page = load_index_page()
    start_time = time.time()

    async def index(request: Request) -> HTMLResponse:
        return HTMLResponse(index_page)

    async def ping(request: Request) -> JSONResponse:
        return JSONResponse({'message': 'pong'})

    async def health(request: Request) -> JSONResponse:
        return JSONResponse(get_health_info(start_time))

    async def hostname(request: Request) -> JSONResponse:
        """Report the host name and record it in the store."""
        try:
            name = get_hostname()
        except OSError as e:
            await logger.aerror('Could not determine host name', error=str(e))
            return _internal_error()

        if store is not None:
            try:
                await store.record(name)
            except (SQLAlchemyError, OSError) as e:
                await logger.aerror('Could not record host name', name=name, error=str(e))
                return _internal_error()

        return JSONResponse({'hostname': name})

    routes = [
        Route('/', endpoint=index, methods=['GET']),
        Route('/ping', endpoint=ping, methods=['GET']),
        Route('/health', endpoint=health, methods=['GET']),
        Route('/hostname', endpoint=hostname, methods=['GET']),
    ]
    return Starlette(debug=debug, routes=routes, middleware=_middleware('app'))


def create_health_app(*, debug: bool = False) -> Starlette:
    """Create the health listener's app.

    Args:
        debug: Starlette debug mode.

    Returns:
        The Starlette application.
    """
    start_time = time.time()

    async def health(request: Request) -> JSONResponse:
        return JSONResponse(get_health_info(start_time))

    async def ping(request: Request) -> JSONResponse:
        return JSONResponse({'message': 'pong'})

    routes = [
        Route('/health', endpoint=health, methods=['GET']),
        Route('/ping', endpoint=ping, methods=['GET']),
    ]
    return Starlette(debug=debug, routes=routes, middleware=_middleware('health'))
