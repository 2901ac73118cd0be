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

"""Pure ASGI middleware for the service's listeners.

- **RequestDeadlineMiddleware** bounds how long a request may take to
  produce its response (the listener's write timeout). Expired requests get
  a ``504`` JSON error if nothing has been sent yet.
- **ExceptionMiddleware** turns unhandled exceptions into a ``500`` JSON error
  instead of a dropped connection.
- **AccessLogMiddleware** logs method, path, status and duration.
"""

import asyncio
import json
import time

import structlog

from .typing import Application, Message, Receive, Scope, Send

logger = structlog.get_logger(__name__)


async def send_json_error(send: Send, status: int, error: str) -> None:
    """Send a complete JSON error response.

    Args:
        send: The ASGI send callable.
        status: The HTTP status code.
        error: The error message placed under the ``error`` key.
    """
    body = json.dumps({'error': error}).encode('utf-8')
    await send({
        'type': 'http.response.start',
        'status': status,
        'headers': [
            (b'content-type', b'application/json'),
            (b'content-length', str(len(body)).encode('ascii')),
        ],
    })
    await send({'type': 'http.response.body', 'body': body})


class RequestDeadlineMiddleware:
    """Enforces a per-request deadline.

    Args:
        app: The ASGI application to wrap.
        timeout: Maximum request duration in seconds.
    """

    def __init__(self, app: Application, *, timeout: float) -> None:
        """Wrap *app* with a per-request deadline of *timeout* seconds."""
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the request with a deadline guard."""
        if scope['type'] != 'http':
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_tracking_start(message: Message) -> None:
            nonlocal response_started
            if message['type'] == 'http.response.start':
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(self.app(scope, receive, send_tracking_start), timeout=self.timeout)
        except TimeoutError:
            await logger.awarning(
                'Request exceeded write timeout',
                timeout_seconds=self.timeout,
                path=scope.get('path', '?'),
            )
            if response_started:
                # Headers are out; the server will close the connection.
                raise
            await send_json_error(send, 504, 'Gateway Timeout')


class ExceptionMiddleware:
    """Catches unhandled exceptions and answers with a JSON ``500``.

    The traceback is logged server-side; the client only sees a generic
    message.
    """

    def __init__(self, app: Application) -> None:
        """Wrap *app* with a catch-all exception handler."""
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Forward the request and catch any unhandled exception."""
        if scope['type'] != 'http':
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_tracking_start(message: Message) -> None:
            nonlocal response_started
            if message['type'] == 'http.response.start':
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_tracking_start)
        except Exception:
            await logger.aexception('Unhandled exception', path=scope.get('path', '?'))
            if response_started:
                raise
            await send_json_error(send, 500, 'Internal Server Error')


class AccessLogMiddleware:
    """Logs every HTTP request with timing.

    Args:
        app: The ASGI application to wrap.
        listener: Name of the listener serving the request.
    """

    def __init__(self, app: Application, *, listener: str) -> None:
        """Wrap *app* with HTTP access logging."""
        self.app = app
        self.listener = listener

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Log the request method, path, status, and duration."""
        if scope['type'] != 'http':
            await self.app(scope, receive, send)
            return

        start = time.monotonic()
        status_code = 500

        async def send_capturing_status(message: Message) -> None:
            nonlocal status_code
            if message['type'] == 'http.response.start':
                status_code = message.get('status', 500)
            await send(message)

        try:
            await self.app(scope, receive, send_capturing_status)
        finally:
            await logger.ainfo(
                'http_request',
                listener=self.listener,
                method=scope.get('method', '?'),
                path=scope.get('path', '?'),
                status=status_code,
                duration_ms=round((time.monotonic() - start) * 1000, 1),
            )
