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

"""Hostname service entry point.

Two listeners run side by side in one process:

    ┌──────────────────────────────────────────┐
    │              ListenerRunner              │
    │  (coordinates lifecycle + shutdown)      │
    └──────────────────────────────────────────┘
             │                    │
             ▼                    ▼
        ┌─────────┐          ┌─────────┐
        │   app   │          │ health  │
        │  :8080  │          │  :8081  │
        └─────────┘          └─────────┘
       /, /ping, /hostname    /health, /ping

CLI Usage::

    python -m hostname_service
    python -m hostname_service --env staging          # load .staging.env
    python -m hostname_service --app-address 127.0.0.1:9090 --log-format console

Exit codes: 0 after a graceful shutdown (SIGINT/SIGTERM), 1 on invalid
configuration, store initialisation failure or any listener failure.
"""

import sys

import structlog
from sqlalchemy.exc import SQLAlchemyError

from .config import Settings, load_settings, parse_args
from .errors import ConfigError, RunError
from .log_config import setup_logging
from .store import HostnameStore
from .web import create_app, create_health_app
from .web.manager import ListenerRunner, ListenerSpec, run_loop

logger = structlog.get_logger(__name__)


def build_runner(
    settings: Settings,
    store: HostnameStore | None,
    *,
    handle_signals: bool = True,
) -> ListenerRunner:
    """Create a runner with the app and health listeners registered.

    Args:
        settings: Service settings.
        store: Where host names are recorded, if anywhere.
        handle_signals: Whether the runner should handle SIGINT/SIGTERM.

    Raises:
        ConfigError: If a listener address is invalid or duplicated.
    """
    runner = ListenerRunner(
        handle_signals=handle_signals,
        fail_fast=settings.fail_fast,
        shutdown_timeout=settings.shutdown_grace,
        log_level=settings.log_level,
    )
    runner.register(
        ListenerSpec(
            name='app',
            bind_address=settings.app_address,
            handler=create_app(store),
            read_timeout=settings.read_timeout,
            write_timeout=settings.write_timeout,
        )
    )
    runner.register(
        ListenerSpec(
            name='health',
            bind_address=settings.health_address,
            handler=create_health_app(),
            read_timeout=settings.read_timeout,
            write_timeout=settings.write_timeout,
        )
    )
    return runner


async def serve(settings: Settings) -> None:
    """Open the store, run both listeners until shutdown, then clean up.

    Raises:
        ConfigError: If the settings are invalid.
        RunError: If any listener failed.
    """
    database_url = settings.resolved_database_url()
    store: HostnameStore | None = None
    if database_url:
        store = HostnameStore(database_url)
    else:
        await logger.awarning('No database configured, host names will not be recorded')

    try:
        runner = build_runner(settings, store)
        if store is not None:
            await store.init()
        await runner.run_all()
    finally:
        if store is not None:
            await store.close()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse args, configure, and run the listeners."""
    args = parse_args(argv)

    try:
        settings = load_settings(args)
    except ConfigError as e:
        setup_logging()
        logger.critical('FATAL: invalid configuration', error=str(e))
        sys.exit(1)

    setup_logging(settings.log_level, settings.log_format)
    logger.info(
        'Starting hostname service',
        app_address=settings.app_address,
        health_address=settings.health_address,
        fail_fast=settings.fail_fast,
    )

    try:
        run_loop(serve(settings))
    except ConfigError as e:
        logger.critical('FATAL: invalid configuration', error=str(e))
        sys.exit(1)
    except (SQLAlchemyError, OSError) as e:
        logger.critical('FATAL: could not initialise the store', error=str(e), error_type=type(e).__name__)
        sys.exit(1)
    except RunError as e:
        logger.critical('FATAL: listener failed', listener=e.listener, error=str(e.failure))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info('Stopped by user before listeners started')
        sys.exit(0)

    logger.info('Shutdown complete')


if __name__ == '__main__':
    main()
