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

"""Run several HTTP listeners concurrently with coordinated shutdown.

### Example

```python
import asyncio

from hostname_service.web.manager import ListenerRunner, ListenerSpec

runner = ListenerRunner()
runner.register(ListenerSpec(name='api', bind_address=':8080', handler=api_app))
runner.register(ListenerSpec(name='health', bind_address=':8081', handler=health_app))

# Blocks until every listener has stopped. SIGINT/SIGTERM trigger
# runner.shutdown(); a listener failure surfaces as RunError.
asyncio.run(runner.run_all())
```

Each listener runs as its own asyncio task on a socket the runner binds
itself, so a bind failure is reported for that listener alone instead of
taking the process down. Listeners are independent by default: one failing
does not stop its siblings, but the failure is always reflected in the
outcome of `run_all()`.
"""

from __future__ import annotations

import asyncio
import threading

import structlog

from hostname_service.errors import BindError, ConfigError, ListenerError, RunError, ServingError

from ._listener import ListenerSpec, RunResult, parse_bind_address
from ._ports import bind_socket, format_address
from ._server import ListenerServer, create_server
from .signals import SHUTDOWN_SIGNALS, SignalHandler

logger = structlog.get_logger(__name__)

DEFAULT_SHUTDOWN_TIMEOUT = 10.0


class _Listener:
    """Runtime state of one registered listener."""

    def __init__(self, spec: ListenerSpec) -> None:
        self.spec = spec
        self.server: ListenerServer | None = None
        self.address: tuple[str, int] | None = None
        self.serving = False
        self.stopped = False
        # Set once the listener is accepting connections or has stopped.
        self.ready = asyncio.Event()

    def mark_started(self) -> None:
        self.serving = True
        self.ready.set()

    def mark_stopped(self) -> None:
        self.serving = False
        self.stopped = True
        self.ready.set()


class ListenerRunner:
    """Starts registered listeners concurrently and joins on all of them.

    ### Key operations

    | Method            | Description                                            |
    |-------------------|--------------------------------------------------------|
    | `register()`      | Add a listener before the run starts                   |
    | `run_all()`       | Start every listener and wait until all have stopped   |
    | `shutdown()`      | Gracefully stop every listener (thread-safe, once)     |
    | `wait_started()`  | Wait until listeners are accepting connections         |
    | `bound_address()` | The address a listener actually bound                  |

    Outcomes are classified per listener. A listener that stops after
    `shutdown()` was requested is Ok. A listener that cannot bind fails with
    `BindError`. A listener whose server raises, or stops on its own
    without a shutdown request, fails with `ServingError`. Failed listeners
    are never restarted.
    """

    def __init__(
        self,
        *,
        handle_signals: bool = True,
        fail_fast: bool = False,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
        log_level: str = 'info',
    ) -> None:
        """Initialize the runner.

        Args:
            handle_signals: Whether `run_all()` should turn SIGINT, SIGTERM
                and SIGHUP into `shutdown()`. Only effective in the main
                thread.
            fail_fast: When True, the first listener failure shuts down the
                remaining listeners. When False, siblings keep serving.
            shutdown_timeout: Grace period used by signal-triggered and
                fail-fast shutdowns, and by `shutdown()` without a timeout.
            log_level: Log level handed to each uvicorn server.
        """
        self._handle_signals = handle_signals
        self._fail_fast = fail_fast
        self._shutdown_timeout = shutdown_timeout
        self._log_level = log_level
        self._listeners: dict[str, _Listener] = {}
        self._addresses: dict[tuple[str, int], str] = {}
        self._results: list[RunResult] = []
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._running = False
        self._shutdown_requested = False
        self._signal_handler = SignalHandler()

    @property
    def listeners(self) -> list[str]:
        """Names of the registered listeners, in registration order."""
        return list(self._listeners)

    @property
    def results(self) -> list[RunResult]:
        """Results reported so far, in the order listeners stopped."""
        return list(self._results)

    @property
    def active(self) -> list[str]:
        """Names of the listeners currently accepting connections."""
        return [name for name, listener in self._listeners.items() if listener.serving]

    @property
    def shutdown_requested(self) -> bool:
        """Whether `shutdown()` has been called."""
        return self._shutdown_requested

    def register(self, spec: ListenerSpec) -> None:
        """Add a listener to the run set.

        Args:
            spec: The listener definition.

        Raises:
            ConfigError: If the name is empty or already registered, the
                bind address is empty, malformed or already registered, or
                `run_all()` has already started.
        """
        if not spec.name or not spec.name.strip():
            raise ConfigError('listener name must not be empty')
        host, port = parse_bind_address(spec.bind_address)

        with self._lock:
            if self._running:
                raise ConfigError(f'cannot register listener {spec.name!r}: run_all() has already started')
            if spec.name in self._listeners:
                raise ConfigError(f'duplicate listener name {spec.name!r}')
            # Port 0 asks for an ephemeral port, so such addresses never collide.
            if port != 0 and (host, port) in self._addresses:
                raise ConfigError(
                    f'listener {spec.name!r} bind address {spec.bind_address!r} is already used by '
                    f'{self._addresses[(host, port)]!r}'
                )
            self._listeners[spec.name] = _Listener(spec)
            if port != 0:
                self._addresses[(host, port)] = spec.name

        logger.info('Registering listener', name=spec.name, address=format_address(host, port))

    def bound_address(self, name: str) -> tuple[str, int] | None:
        """Return the `(host, port)` a listener bound, or None if not bound.

        Args:
            name: The listener name.

        Raises:
            KeyError: If no listener has that name.
        """
        return self._listeners[name].address

    async def wait_started(self, name: str | None = None) -> None:
        """Wait until listeners are accepting connections.

        Also returns for listeners that stopped without ever starting, so
        a bind failure cannot block the caller forever.

        Args:
            name: A single listener to wait for; all listeners if None.

        Raises:
            KeyError: If no listener has that name.
        """
        listeners = [self._listeners[name]] if name is not None else list(self._listeners.values())
        for listener in listeners:
            await listener.ready.wait()

    async def run_all(self) -> list[RunResult]:
        """Start all registered listeners and wait until every one has stopped.

        Listeners start in registration order, each in its own task. The
        registered set is frozen from this point on.

        Returns:
            One result per listener, in the order they stopped. Every result
            is Ok.

        Raises:
            RunError: If any listener failed; it wraps the failure of the
                listener that stopped first and carries all results.
            ConfigError: If called more than once.
        """
        with self._lock:
            if self._running:
                raise ConfigError('run_all() may only be called once per runner')
            self._running = True
            loop = asyncio.get_running_loop()
            self._loop = loop
            listeners = list(self._listeners.values())
            shutdown_requested = self._shutdown_requested

        if shutdown_requested:
            await logger.ainfo('Shutdown already requested, listeners will stop immediately')

        signals_installed = self._handle_signals and self._install_signal_handlers(loop)
        try:
            tasks = [
                asyncio.create_task(self._run_listener(listener), name=f'listener-{listener.spec.name}')
                for listener in listeners
            ]
            await logger.ainfo('Started listeners', names=[listener.spec.name for listener in listeners])
            if tasks:
                await asyncio.gather(*tasks)
        finally:
            if signals_installed:
                self._signal_handler.restore_signal_handlers()
            self._remove_signal_callbacks()

        failures = [result.error for result in self._results if result.error is not None]
        if failures:
            first = failures[0]
            await logger.aerror(
                'Listeners stopped with failures',
                failed=[error.listener for error in failures],
                first=first.listener,
            )
            raise RunError(first, self._results)

        await logger.ainfo('All listeners stopped')
        return list(self._results)

    def shutdown(self, timeout: float | None = None) -> None:
        """Gracefully stop every listener.

        Each listener stops accepting new connections and gives in-flight
        requests up to `timeout` seconds to finish before closing. Safe to
        call from any thread; signals reach it through the event loop, never
        from inside a signal handler. Only the first call
        has an effect. When called before `run_all()`, listeners start in
        the shutting-down state and stop without binding.

        Args:
            timeout: Grace period in seconds; defaults to the runner's
                shutdown timeout.
        """
        with self._lock:
            if self._shutdown_requested:
                return
            self._shutdown_requested = True
            if timeout is not None:
                self._shutdown_timeout = timeout
            loop = self._loop

        logger.info('Shutdown requested', timeout=self._shutdown_timeout)
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self._stop_listeners)
        except RuntimeError:
            # The loop closed between the check and the call; nothing is running.
            logger.debug('Event loop closed before shutdown could be delivered')

    def _stop_listeners(self) -> None:
        """Ask every running server to exit. Runs on the event loop."""
        for listener in self._listeners.values():
            if listener.server is not None and not listener.stopped:
                listener.server.request_exit(self._shutdown_timeout)

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> bool:
        for sig in SHUTDOWN_SIGNALS:
            self._signal_handler.add_handler(sig, self.shutdown)
        return self._signal_handler.setup_signal_handlers(loop)

    def _remove_signal_callbacks(self) -> None:
        for sig in SHUTDOWN_SIGNALS:
            self._signal_handler.remove_handler(sig, self.shutdown)

    async def _run_listener(self, listener: _Listener) -> RunResult:
        """Run one listener to completion and record its result."""
        try:
            error = await self._serve(listener)
        finally:
            listener.mark_stopped()

        result = RunResult(name=listener.spec.name, error=error)
        self._results.append(result)

        if error is None:
            await logger.ainfo('Listener stopped', name=listener.spec.name)
        else:
            await logger.aerror(
                'Listener failed',
                name=listener.spec.name,
                error=str(error),
                error_type=type(error).__name__,
            )
            if self._fail_fast:
                self.shutdown()
        return result

    async def _serve(self, listener: _Listener) -> ListenerError | None:
        """Bind and serve one listener.

        Returns:
            None for a graceful stop, otherwise the listener's failure.
        """
        spec = listener.spec
        if self._shutdown_requested:
            await logger.ainfo('Listener not started, shutdown already requested', name=spec.name)
            return None

        try:
            sock = bind_socket(spec.host, spec.port)
        except OSError as e:
            return BindError(spec.name, spec.bind_address, e)

        listener.address = sock.getsockname()[:2]
        server = create_server(spec, sock, on_started=listener.mark_started, log_level=self._log_level)
        # No await since the shutdown check above, so a concurrent shutdown()
        # either was seen there or will find this server in _stop_listeners().
        listener.server = server

        try:
            await logger.ainfo(
                'Listener bound',
                name=spec.name,
                address=format_address(*listener.address),
            )
            await server.serve(sockets=[sock])
        except (Exception, SystemExit) as e:
            # uvicorn reports some startup failures with sys.exit().
            return ServingError(spec.name, f'server error: {e!r}', e)
        finally:
            for srv in getattr(server, 'servers', []):
                srv.close()
            sock.close()

        if not self._shutdown_requested:
            return ServingError(spec.name, 'server stopped without a shutdown request')
        return None
