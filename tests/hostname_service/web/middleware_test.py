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

"""Tests for the ASGI middleware."""

import asyncio
from unittest import mock

import pytest
from httpx import ASGITransport, AsyncClient

from hostname_service.web.middleware import (
    AccessLogMiddleware,
    ExceptionMiddleware,
    RequestDeadlineMiddleware,
    send_json_error,
)


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url='http://test')


async def _ok(scope, receive, send) -> None:
    await send({'type': 'http.response.start', 'status': 204, 'headers': []})
    await send({'type': 'http.response.body', 'body': b''})


async def _slow(scope, receive, send) -> None:
    await asyncio.sleep(5)


async def _slow_after_headers(scope, receive, send) -> None:
    await send({'type': 'http.response.start', 'status': 200, 'headers': []})
    await asyncio.sleep(5)


async def _boom(scope, receive, send) -> None:
    raise ValueError('boom')


@pytest.mark.asyncio
async def test_send_json_error() -> None:
    """The error body is JSON with a matching content length."""
    send = mock.AsyncMock()

    await send_json_error(send, 504, 'Gateway Timeout')

    start, body = (call.args[0] for call in send.await_args_list)
    assert start['status'] == 504
    assert (b'content-type', b'application/json') in start['headers']
    assert body['body'] == b'{"error": "Gateway Timeout"}'
    assert (b'content-length', str(len(body['body'])).encode()) in start['headers']


@pytest.mark.asyncio
async def test_deadline_passes_fast_requests() -> None:
    """Requests inside the deadline are untouched."""
    async with _client(RequestDeadlineMiddleware(_ok, timeout=1.0)) as client:
        response = await client.get('/')

    assert response.status_code == 204


@pytest.mark.asyncio
async def test_deadline_expired_is_504() -> None:
    """A request that outlives the deadline gets a 504."""
    async with _client(RequestDeadlineMiddleware(_slow, timeout=0.05)) as client:
        response = await client.get('/slow')

    assert response.status_code == 504
    assert response.json() == {'error': 'Gateway Timeout'}


@pytest.mark.asyncio
async def test_deadline_after_headers_reraises() -> None:
    """Once headers are sent the timeout propagates to the server."""
    app = RequestDeadlineMiddleware(_slow_after_headers, timeout=0.05)
    send = mock.AsyncMock()
    receive = mock.AsyncMock(return_value={'type': 'http.disconnect'})

    with pytest.raises(TimeoutError):
        await app({'type': 'http', 'path': '/'}, receive, send)

    assert send.await_count == 1


@pytest.mark.asyncio
async def test_deadline_ignores_lifespan() -> None:
    """Non-HTTP scopes are passed straight through."""
    inner = mock.AsyncMock()
    app = RequestDeadlineMiddleware(inner, timeout=0.01)
    scope = {'type': 'lifespan'}

    await app(scope, mock.AsyncMock(), mock.AsyncMock())

    inner.assert_awaited_once()


@pytest.mark.asyncio
async def test_exception_middleware_returns_500() -> None:
    """Unhandled exceptions become a JSON 500."""
    async with _client(ExceptionMiddleware(_boom)) as client:
        response = await client.get('/')

    assert response.status_code == 500
    assert response.json() == {'error': 'Internal Server Error'}


@pytest.mark.asyncio
async def test_exception_after_headers_reraises() -> None:
    """A failure after the response started cannot be turned into a 500."""

    async def fail_midway(scope, receive, send) -> None:
        await send({'type': 'http.response.start', 'status': 200, 'headers': []})
        raise ValueError('midway')

    send = mock.AsyncMock()
    with pytest.raises(ValueError, match='midway'):
        await ExceptionMiddleware(fail_midway)({'type': 'http', 'path': '/'}, mock.AsyncMock(), send)


@pytest.mark.asyncio
async def test_access_log() -> None:
    """Each request is logged with listener, status and duration."""
    with mock.patch('hostname_service.web.middleware.logger') as mock_logger:
        mock_logger.ainfo = mock.AsyncMock()
        async with _client(AccessLogMiddleware(_ok, listener='health')) as client:
            await client.get('/ping')

    mock_logger.ainfo.assert_awaited_once()
    args, kwargs = mock_logger.ainfo.await_args
    assert args == ('http_request',)
    assert kwargs['listener'] == 'health'
    assert kwargs['method'] == 'GET'
    assert kwargs['path'] == '/ping'
    assert kwargs['status'] == 204
    assert kwargs['duration_ms'] >= 0


@pytest.mark.asyncio
async def test_access_log_on_exception() -> None:
    """Failed requests are logged as 500 and the error propagates."""
    with mock.patch('hostname_service.web.middleware.logger') as mock_logger:
        mock_logger.ainfo = mock.AsyncMock()
        with pytest.raises(ValueError):
            await AccessLogMiddleware(_boom, listener='app')(
                {'type': 'http', 'method': 'GET', 'path': '/'}, mock.AsyncMock(), mock.AsyncMock()
            )

    assert mock_logger.ainfo.await_args.kwargs['status'] == 500
