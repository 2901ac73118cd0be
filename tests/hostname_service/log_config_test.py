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

"""Tests for log configuration and secret masking.

Covers _mask_value, _redact_secrets, _want_colors, and setup_logging for
both JSON and console modes.
"""

import json
import logging

import pytest
import structlog

from hostname_service.log_config import (
    _mask_value,  # noqa: PLC2701 - testing private function
    _redact_secrets,  # noqa: PLC2701 - testing private function
    _want_colors,  # noqa: PLC2701 - testing private function
    setup_logging,
)


@pytest.fixture
def restore_logging():
    """Put the root logger and structlog back after a test reconfigures them."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestMaskValue:
    """Tests for _mask_value."""

    def test_short_value_fully_masked(self) -> None:
        """Values of 6 chars or fewer are fully masked."""
        assert _mask_value('123456') == '****'
        assert _mask_value('abc') == '****'
        assert _mask_value('') == '****'

    def test_long_value_keeps_prefix(self) -> None:
        """Longer values keep the first 2 chars and hide the rest."""
        assert _mask_value('hunter22') == 'hu******'

    def test_preserves_length(self) -> None:
        """Masked output has the original length."""
        value = 'correct-horse-battery'
        assert len(_mask_value(value)) == len(value)


class TestRedactSecrets:
    """Tests for _redact_secrets structlog processor."""

    def test_redacts_password_field(self) -> None:
        """Secret-looking keys are masked."""
        event = {'event': 'test', 'db_password': 'hunter2abcdef'}
        result = _redact_secrets(None, 'info', event)
        assert result['db_password'] == 'hu***********'

    def test_redacts_database_url_field(self) -> None:
        """The database URL key is masked entirely."""
        event = {'event': 'test', 'database_url': 'mysql+aiomysql://u:p@db/hosts'}
        result = _redact_secrets(None, 'info', event)
        assert 'db/hosts' not in result['database_url']

    def test_strips_url_passwords_anywhere(self) -> None:
        """Passwords embedded in URLs are replaced under any key."""
        event = {'event': 'connecting to mysql://admin:s3cret@db:3306/hosts', 'target': 'mysql://admin:s3cret@db/x'}
        result = _redact_secrets(None, 'info', event)
        assert result['event'] == 'connecting to mysql://admin:***@db:3306/hosts'
        assert result['target'] == 'mysql://admin:***@db/x'

    def test_event_key_never_masked(self) -> None:
        """The event message itself is not treated as a secret."""
        event = {'event': 'password rotated'}
        assert _redact_secrets(None, 'info', event)['event'] == 'password rotated'

    def test_preserves_non_secret_fields(self) -> None:
        """Non-secret fields are left untouched."""
        event = {'event': 'test', 'method': 'GET', 'path': '/hostname', 'listener': 'app'}
        result = _redact_secrets(None, 'info', event)
        assert result == {'event': 'test', 'method': 'GET', 'path': '/hostname', 'listener': 'app'}

    def test_skips_non_string_values(self) -> None:
        """Non-string values are left untouched."""
        event = {'event': 'test', 'token': None, 'password': 12345}
        result = _redact_secrets(None, 'info', event)
        assert result['token'] is None
        assert result['password'] == 12345


class TestWantColors:
    """Tests for _want_colors."""

    def test_colors_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Colors are on without NO_COLOR."""
        monkeypatch.delenv('NO_COLOR', raising=False)
        assert _want_colors() is True

    def test_no_color(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """NO_COLOR turns colors off."""
        monkeypatch.setenv('NO_COLOR', '1')
        assert _want_colors() is False


@pytest.mark.usefixtures('restore_logging')
class TestSetupLogging:
    """Tests for setup_logging."""

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        """JSON mode writes one JSON object per line with secrets redacted."""
        setup_logging('info', 'json')
        structlog.get_logger('test').info('hello', listener='app', password='hunter2abcdef')

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record['event'] == 'hello'
        assert record['listener'] == 'app'
        assert record['level'] == 'info'
        assert record['password'] == 'hu***********'
        assert 'timestamp' in record

    def test_level_filters(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Records below the configured level are dropped."""
        setup_logging('warning', 'json')
        structlog.get_logger('test').info('quiet')

        assert 'quiet' not in capsys.readouterr().out
        assert logging.getLogger().level == logging.WARNING

    def test_stdlib_records_are_rendered(self, capsys: pytest.CaptureFixture[str]) -> None:
        """uvicorn's stdlib records go through the same renderer."""
        setup_logging('info', 'json')
        logging.getLogger('uvicorn.error').info('Started server process')

        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record['event'] == 'Started server process'
        assert record['logger'] == 'uvicorn.error'
        assert logging.getLogger('uvicorn').propagate is True
        assert logging.getLogger('uvicorn.access').handlers == []

    def test_console_output(self, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
        """Console mode writes human-readable lines."""
        monkeypatch.setenv('NO_COLOR', '1')
        setup_logging('debug', 'console')
        structlog.get_logger('test').debug('readable', listener='health')

        out = capsys.readouterr().out
        assert 'readable' in out
        assert 'listener=health' in out
        assert len(logging.getLogger().handlers) == 1
