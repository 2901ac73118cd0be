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

"""Listener definitions and results for the ListenerRunner."""

from __future__ import annotations

from dataclasses import dataclass, field

from hostname_service.errors import ConfigError, ListenerError
from hostname_service.web.typing import Application

DEFAULT_READ_TIMEOUT = 5.0
DEFAULT_WRITE_TIMEOUT = 10.0
ALL_INTERFACES = '0.0.0.0'


def parse_bind_address(address: str) -> tuple[str, int]:
    """Split a `host:port` bind address.

    An empty host (`:8080`) binds all interfaces. IPv6 hosts must be
    bracketed (`[::1]:8080`).

    Args:
        address: The bind address.

    Returns:
        A `(host, port)` tuple.

    Raises:
        ConfigError: If the address is empty or malformed.
    """
    if not address or not address.strip():
        raise ConfigError('bind address must not be empty')

    host, sep, port_text = address.strip().rpartition(':')
    if not sep:
        raise ConfigError(f'bind address {address!r} must have the form host:port')
    if host.startswith('['):
        if not host.endswith(']'):
            raise ConfigError(f'bind address {address!r} has an unterminated IPv6 host')
        host = host[1:-1]
    elif ':' in host:
        raise ConfigError(f'bind address {address!r}: IPv6 hosts must be bracketed')

    try:
        port = int(port_text)
    except ValueError:
        raise ConfigError(f'bind address {address!r} has an invalid port {port_text!r}') from None
    if not 0 <= port <= 65535:
        raise ConfigError(f'bind address {address!r} has an out of range port {port}')

    return host or ALL_INTERFACES, port


@dataclass(frozen=True)
class ListenerSpec:
    """Configuration for a single listener.

    Attributes:
        name: A unique identifier for the listener.
        bind_address: Where to listen, as `host:port`.
        handler: The ASGI application that handles requests.
        read_timeout: Seconds an idle connection may wait for its next
            request before it is closed.
        write_timeout: Seconds a request may take to produce its response.
    """

    name: str
    bind_address: str
    handler: Application = field(repr=False)
    read_timeout: float = DEFAULT_READ_TIMEOUT
    write_timeout: float = DEFAULT_WRITE_TIMEOUT

    @property
    def host(self) -> str:
        """The host part of the bind address."""
        return parse_bind_address(self.bind_address)[0]

    @property
    def port(self) -> int:
        """The port part of the bind address."""
        return parse_bind_address(self.bind_address)[1]


@dataclass(frozen=True)
class RunResult:
    """The terminal outcome of one listener.

    Attributes:
        name: Name of the listener.
        error: None when the listener stopped because of a shutdown request,
            otherwise the failure that stopped it.
    """

    name: str
    error: ListenerError | None = None

    @property
    def ok(self) -> bool:
        """Whether the listener stopped gracefully."""
        return self.error is None
