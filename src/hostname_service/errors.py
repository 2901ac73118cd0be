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

"""Error classes for the hostname service.

| Error          | Raised when                                             |
|----------------|---------------------------------------------------------|
| `ConfigError`  | Startup configuration is missing or invalid             |
| `BindError`    | A listener cannot acquire its network endpoint          |
| `ServingError` | A listener stops unexpectedly while serving             |
| `RunError`     | At least one listener failed during `run_all()`         |

A listener stopping because `shutdown()` was requested is not an error.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hostname_service.web.manager import RunResult


class HostnameServiceError(Exception):
    """Base error class for the hostname service."""


class ConfigError(HostnameServiceError):
    """Invalid or incomplete startup configuration."""


class ListenerError(HostnameServiceError):
    """Base class for failures that belong to a single listener.

    Attributes:
        listener: Name of the listener that failed.
        cause: The underlying exception, if any.
    """

    def __init__(self, listener: str, message: str, cause: BaseException | None = None) -> None:
        """Initialize the error.

        Args:
            listener: Name of the listener that failed.
            message: Human readable description.
            cause: The underlying exception, if any.
        """
        super().__init__(f'{listener}: {message}')
        self.listener = listener
        self.cause = cause


class BindError(ListenerError):
    """A listener could not bind its address."""

    def __init__(self, listener: str, address: str, cause: OSError) -> None:
        """Initialize the error.

        Args:
            listener: Name of the listener that failed.
            address: The bind address that could not be acquired.
            cause: The OS error raised while binding.
        """
        super().__init__(listener, f'cannot bind {address}: {cause.strerror or cause}', cause)
        self.address = address


class ServingError(ListenerError):
    """A listener terminated while serving without a shutdown request."""


class RunError(HostnameServiceError):
    """One or more listeners failed.

    Attributes:
        failure: The first failure, in the order the listeners stopped.
        results: Every listener's result.
    """

    def __init__(self, failure: ListenerError, results: Sequence[RunResult]) -> None:
        """Initialize the error.

        Args:
            failure: The first listener failure.
            results: Every listener's result.
        """
        failed = sum(1 for r in results if not r.ok)
        super().__init__(f'listener {failure.listener!r} failed ({failed} of {len(results)} failed): {failure}')
        self.failure = failure
        self.results = list(results)

    @property
    def listener(self) -> str:
        """Name of the listener that failed first."""
        return self.failure.listener
