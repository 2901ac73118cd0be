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

"""Tests for the hostname service error classes."""

import errno

from hostname_service.errors import (
    BindError,
    ConfigError,
    HostnameServiceError,
    ListenerError,
    RunError,
    ServingError,
)
from hostname_service.web.manager import RunResult


def test_hierarchy() -> None:
    """Every error derives from HostnameServiceError."""
    for cls in (ConfigError, ListenerError, BindError, ServingError, RunError):
        assert issubclass(cls, HostnameServiceError)
    assert issubclass(BindError, ListenerError)
    assert issubclass(ServingError, ListenerError)


def test_listener_error_names_listener() -> None:
    """The message is prefixed with the listener name."""
    cause = ValueError('bad')
    error = ServingError('api', 'server error', cause)

    assert str(error) == 'api: server error'
    assert error.listener == 'api'
    assert error.cause is cause


def test_bind_error_uses_strerror() -> None:
    """BindError reports the address and the OS reason."""
    cause = OSError(errno.EADDRINUSE, 'Address already in use')
    error = BindError('api', '127.0.0.1:8080', cause)

    assert str(error) == 'api: cannot bind 127.0.0.1:8080: Address already in use'
    assert error.address == '127.0.0.1:8080'
    assert error.cause is cause


def test_run_error_wraps_first_failure() -> None:
    """RunError exposes the first failure and every result."""
    failure = ServingError('api', 'server stopped without a shutdown request')
    results = [RunResult('api', failure), RunResult('health')]

    error = RunError(failure, results)

    assert error.failure is failure
    assert error.listener == 'api'
    assert error.results == results
    assert "listener 'api' failed (1 of 2 failed)" in str(error)


def test_run_result_ok() -> None:
    """A result without an error is Ok."""
    assert RunResult('health').ok
    assert not RunResult('api', ServingError('api', 'boom')).ok
