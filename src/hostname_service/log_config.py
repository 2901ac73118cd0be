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

"""Logging setup for development and production.

Configures structlog on top of stdlib logging, so records from uvicorn and
SQLAlchemy go through the same renderer as the service's own. Two formats:

- **json** (default): one JSON object per line for log aggregators.
- **console**: colored, human-readable output with Rich tracebacks.

Usage::

    from hostname_service.log_config import setup_logging

    setup_logging('info', 'console')  # Call once at startup.
"""

import logging
import os
import re
import sys

import structlog
import structlog.types
from rich.traceback import install as _install_rich_traceback

_SECRET_PATTERN = re.compile(r'(?i)(password|passwd|secret|token|credential|database_url|dsn)')

# Matches the password part of a URL such as mysql://user:pw@host/db.
_URL_PASSWORD = re.compile(r'(?P<prefix>://[^:/@\s]+:)[^@\s]+@')


def _mask_value(value: str) -> str:
    """Mask a secret value, keeping the first 2 characters."""
    if len(value) <= 6:
        return '****'
    return f'{value[:2]}{"*" * (len(value) - 2)}'


def _redact_secrets(
    _logger: structlog.types.WrappedLogger,
    _method: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Structlog processor that redacts secrets from log events.

    Values under secret-looking keys are masked, and passwords embedded in
    URLs are replaced wherever they appear.
    """
    for key, value in list(event_dict.items()):
        if not isinstance(value, str):
            continue
        if key != 'event' and _SECRET_PATTERN.search(key):
            event_dict[key] = _mask_value(value)
        else:
            event_dict[key] = _URL_PASSWORD.sub(r'\g<prefix>***@', value)
    return event_dict


def _want_colors() -> bool:
    """Color is on unless suppressed with ``NO_COLOR`` (https://no-color.org)."""
    return not os.environ.get('NO_COLOR', '')


def setup_logging(log_level: str = 'info', log_format: str = 'json') -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Minimum level name, e.g. ``'info'``.
        log_format: ``'json'`` or ``'console'``.
    """
    use_json = log_format == 'json'
    if not use_json:
        _install_rich_traceback(show_locals=False, width=120, extra_lines=3)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt='iso'),
        _redact_secrets,
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        final_processors: list[structlog.types.Processor] = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ]
    else:
        final_processors = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=_want_colors()),
        ]

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=final_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    # uvicorn attaches no handlers when log_config is None; let its records
    # propagate to the root handler.
    for name in ('uvicorn', 'uvicorn.error', 'uvicorn.access'):
        logging.getLogger(name).handlers.clear()
        logging.getLogger(name).propagate = True
