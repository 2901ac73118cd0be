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

"""Signal handling for the ListenerRunner.

`SignalHandler` bridges process signals (SIGINT, SIGTERM and, where
available, SIGHUP) to plain callbacks. The runner registers its `shutdown()`
so that a single Ctrl+C or container stop drains every listener together.

Typical usage:

    ```python
    signal_handler = SignalHandler()
    signal_handler.add_handler(signal.SIGTERM, runner.shutdown)
    signal_handler.setup_signal_handlers(asyncio.get_running_loop())
    try:
        ...
    finally:
        signal_handler.restore_signal_handlers()
    ```

The installed handler never runs callbacks itself. It schedules them on the
event loop with `call_soon_threadsafe`, so a callback that takes a lock
cannot deadlock against code the signal interrupted while holding it.
"""

import asyncio
import signal
from collections.abc import Callable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

SHUTDOWN_SIGNALS: tuple[int, ...] = tuple(
    sig for sig in (signal.SIGINT, signal.SIGTERM, getattr(signal, 'SIGHUP', None)) if sig is not None
)


class SignalHandler:
    """Handles system signals and dispatches them to callbacks.

    ### Key operations

    | Operation                   | Description                                        |
    |-----------------------------|----------------------------------------------------|
    | `add_handler()`             | Register a callback function for a specific signal |
    | `remove_handler()`          | Remove a previously registered callback            |
    | `setup_signal_handlers()`   | Install handlers for the shutdown signals          |
    | `restore_signal_handlers()` | Put back the handlers that were replaced           |
    | `handle_signal()`           | Run a signal's callbacks                           |
    """

    def __init__(self) -> None:
        """Initialize the signal handler."""
        self.signal_handlers: dict[int, list[Callable[[], Any]]] = {}
        self._previous: dict[int, Any] = {}

    def add_handler(self, sig: int, callback: Callable[[], Any]) -> None:
        """Add a callback for a specific signal.

        Args:
            sig: Signal number (e.g., signal.SIGINT, signal.SIGTERM)
            callback: Function to call when the signal is received
        """
        callbacks = self.signal_handlers.setdefault(sig, [])
        if callback not in callbacks:
            callbacks.append(callback)

    def remove_handler(self, sig: int, callback: Callable[[], Any]) -> None:
        """Remove a callback for a specific signal.

        Args:
            sig: Signal number (e.g., signal.SIGINT, signal.SIGTERM)
            callback: Function to remove
        """
        if sig in self.signal_handlers and callback in self.signal_handlers[sig]:
            self.signal_handlers[sig].remove(callback)

    def setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> bool:
        """Install handlers for the shutdown signals.

        Args:
            loop: The event loop the callbacks run on.

        Returns:
            True if the handlers were installed. Handlers can only be
            installed from the main thread; elsewhere this logs and returns
            False.
        """

        def _handle_signal(sig: int, frame: Any) -> None:
            loop.call_soon_threadsafe(self.handle_signal, sig)

        try:
            for sig in SHUTDOWN_SIGNALS:
                self._previous[sig] = signal.signal(sig, _handle_signal)
        except ValueError as e:
            # Not in the main thread.
            logger.warning('Could not set up signal handlers', error=e)
            self.restore_signal_handlers()
            return False
        return True

    def restore_signal_handlers(self) -> None:
        """Restore the handlers that `setup_signal_handlers()` replaced."""
        for sig, previous in self._previous.items():
            try:
                signal.signal(sig, previous)
            except (ValueError, TypeError) as e:
                logger.warning('Could not restore signal handler', signal=sig, error=e)
        self._previous.clear()

    def handle_signal(self, sig: int) -> None:
        """Run the callbacks registered for a received signal.

        Args:
            sig: Signal number (e.g., signal.SIGINT, signal.SIGTERM)
        """
        logger.info('Received signal', signal=signal.Signals(sig).name)

        for callback in list(self.signal_handlers.get(sig, [])):
            try:
                callback()
            except Exception as e:
                logger.error('Error in signal handler callback', error=e)
