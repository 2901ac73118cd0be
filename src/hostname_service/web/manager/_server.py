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

"""uvicorn server wrapper used by the ListenerRunner.

Each listener is served by one `ListenerServer` on a socket that the runner
has already bound. The wrapper differs from a stock `uvicorn.Server` in two
ways:

1. It never installs signal handlers. Signals are owned by the runner, which
   turns them into a single coordinated `shutdown()` across every listener.
2. It reports readiness through a callback once startup completes, so the
   runner can tell when a listener is accepting connections.
"""

from __future__ import annotations

import contextlib
import math
import socket
from collections.abc import Callable, Generator

import structlog
import uvicorn

from ._listener import ListenerSpec
from ..middleware import RequestDeadlineMiddleware

logger = structlog.get_logger(__name__)


class ListenerServer(uvicorn.Server):
    """A uvicorn server that leaves signal handling to its owner."""

    def __init__(self, config: uvicorn.Config, on_started: Callable[[], None] | None = None) -> None:
        """Initialize the server.

        Args:
            config: The uvicorn configuration.
            on_started: Called once the server is accepting connections.
        """
        super().__init__(config)
        self._on_started = on_started

    @contextlib.contextmanager
    def capture_signals(self) -> Generator[None, None, None]:
        """Leave process signal handlers untouched."""
        yield

    async def startup(self, sockets: list[socket.socket] | None = None) -> None:
        """Start serving and report readiness.

        Args:
            sockets: Pre-bound listening sockets.
        """
        await super().startup(sockets=sockets)
        if self.started and self._on_started is not None:
            self._on_started()

    def request_exit(self, timeout: float) -> None:
        """Ask the server to stop accepting and drain within `timeout`.

        Args:
            timeout: Seconds in-flight requests get before being cancelled.
        """
        self.config.timeout_graceful_shutdown = timeout
        self.should_exit = True


def create_server(
    spec: ListenerSpec,
    sock: socket.socket,
    on_started: Callable[[], None] | None = None,
    log_level: str = 'info',
) -> ListenerServer:
    """Create the server for a listener.

    The listener's read timeout becomes uvicorn's keep-alive timeout and its
    write timeout becomes a per-request deadline around the handler.

    Args:
        spec: The listener definition.
        sock: The bound, listening socket to serve on.
        on_started: Called once the server is accepting connections.
        log_level: uvicorn log level.

    Returns:
        The configured server.
    """
    host, port = sock.getsockname()[:2]
    config = uvicorn.Config(
        RequestDeadlineMiddleware(spec.handler, timeout=spec.write_timeout),
        host=host,
        port=port,
        log_level=log_level,
        # Route uvicorn's records through our structlog configuration.
        log_config=None,
        access_log=False,
        timeout_keep_alive=max(1, math.ceil(spec.read_timeout)),
    )
    return ListenerServer(config, on_started=on_started)
