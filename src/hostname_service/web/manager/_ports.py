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

"""Utility functions to work with listening sockets."""

import contextlib
import socket

DEFAULT_BACKLOG = 2048


def bind_socket(host: str, port: int, backlog: int = DEFAULT_BACKLOG) -> socket.socket:
    """Bind and listen on a TCP socket.

    The socket is listening when this returns, so a conflicting address is
    reported here rather than later inside the server.

    Args:
        host: The host address to bind to.
        port: The port to bind to, or 0 for an ephemeral port.
        backlog: The listen backlog.

    Returns:
        The listening socket.

    Raises:
        OSError: If the address cannot be bound.
    """
    family = socket.AF_INET6 if ':' in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        # Allow quick restarts while old connections sit in TIME_WAIT.
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(backlog)
    except OSError:
        with contextlib.suppress(OSError):
            sock.close()
        raise
    sock.set_inheritable(True)
    return sock


def format_address(host: str, port: int) -> str:
    """Format a host and port as a `host:port` bind address.

    Args:
        host: The host address.
        port: The port.

    Returns:
        The address, with IPv6 hosts bracketed.
    """
    if ':' in host:
        return f'[{host}]:{port}'
    return f'{host}:{port}'
