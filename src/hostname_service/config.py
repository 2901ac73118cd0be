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

"""Service settings and CLI argument parsing.

Configuration is loaded with the following priority (highest wins):

1. CLI arguments          (``--app-address``, ``--log-format``, ...)
2. Environment variables  (``export APP_ADDRESS=:9090``)
3. ``.<env>.env`` file    (e.g. ``.staging.env``)
4. ``.env`` file          (shared defaults)
5. ``~/.env`` file        (per-user defaults)
6. Defaults defined in :class:`Settings`

The database can be given either as a full ``DATABASE_URL`` or as its parts.
The parts also accept the variable names used by older deployments
(``Username``, ``Password``, ``RDSEndpoint``, ``DatabaseName``). Credentials
have no defaults; without a database the service still runs and only
reports host names.

The resulting :class:`Settings` is immutable and is passed explicitly to the
components that need it.
"""

import argparse
import os
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

from .errors import ConfigError


def _build_env_files(env: str | None) -> tuple[str, ...]:
    """Build the list of .env files to load, most specific last.

    ``~/.env`` comes first so existing deployments that keep their
    credentials in the home directory still work.
    """
    files: list[str] = [os.path.expanduser('~/.env'), '.env']
    if env:
        files.append(f'.{env}.env')
    return tuple(files)


class Settings(BaseSettings):
    """Service settings loaded from env vars and .env files."""

    model_config = SettingsConfigDict(
        env_file_encoding='utf-8',
        extra='ignore',
        frozen=True,
        populate_by_name=True,
    )

    app_address: str = ':8080'
    health_address: str = ':8081'

    # Idle keep-alive limit and per-request deadline, in seconds.
    read_timeout: float = Field(default=5.0, gt=0)
    write_timeout: float = Field(default=10.0, gt=0)
    shutdown_grace: float = Field(default=10.0, ge=0)

    # Stop every listener as soon as one fails, so the process exits non-zero.
    fail_fast: bool = True

    log_level: Literal['critical', 'error', 'warning', 'info', 'debug'] = 'info'
    log_format: Literal['json', 'console'] = 'json'

    database_url: SecretStr | None = None
    db_username: str = Field(default='', validation_alias=AliasChoices('db_username', 'Username'))
    db_password: SecretStr = Field(default=SecretStr(''), validation_alias=AliasChoices('db_password', 'Password'))
    db_endpoint: str = Field(default='', validation_alias=AliasChoices('db_endpoint', 'RDSEndpoint'))
    db_name: str = Field(default='', validation_alias=AliasChoices('db_name', 'DatabaseName'))

    def resolved_database_url(self) -> str | None:
        """Return the database URL, or None when no database is configured.

        ``DATABASE_URL`` wins over the individual parts. The parts describe
        a MySQL server and require both an endpoint and a database name.

        Raises:
            ConfigError: If an endpoint is set without a database name, or
                the endpoint port is not a number.
        """
        if self.database_url is not None and self.database_url.get_secret_value():
            return self.database_url.get_secret_value()
        if not self.db_endpoint and not self.db_name:
            return None
        if not self.db_endpoint:
            raise ConfigError('RDSEndpoint (DB_ENDPOINT) is not set')
        if not self.db_name:
            raise ConfigError('DatabaseName (DB_NAME) is not set')

        host, sep, port_text = self.db_endpoint.rpartition(':')
        if not sep:
            host, port_text = self.db_endpoint, ''
        try:
            port = int(port_text) if port_text else None
        except ValueError:
            raise ConfigError(f'invalid database endpoint {self.db_endpoint!r}') from None

        url = URL.create(
            'mysql+aiomysql',
            username=self.db_username or None,
            password=self.db_password.get_secret_value() or None,
            host=host,
            port=port,
            database=self.db_name,
        )
        return url.render_as_string(hide_password=False)


def make_settings(env: str | None = None) -> Settings:
    """Create Settings with the appropriate .env files for the environment.

    Raises:
        ConfigError: If a value fails validation.
    """
    try:
        return Settings(_env_file=_build_env_files(env))  # type: ignore[call-arg]
    except ValidationError as e:
        raise ConfigError(f'invalid settings: {e}') from e


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Arguments to parse; ``sys.argv[1:]`` when None.
    """
    parser = argparse.ArgumentParser(description='Hostname service (app + health listeners)')
    parser.add_argument(
        '--env',
        default=None,
        metavar='ENV',
        help='Environment name; loads .<ENV>.env on top of .env',
    )
    parser.add_argument(
        '--app-address',
        default=None,
        metavar='HOST:PORT',
        help='Application listener address (default from settings: :8080)',
    )
    parser.add_argument(
        '--health-address',
        default=None,
        metavar='HOST:PORT',
        help='Health listener address (default from settings: :8081)',
    )
    parser.add_argument(
        '--log-format',
        choices=['json', 'console'],
        default=None,
        help='Log output format (default from settings: json)',
    )
    parser.add_argument(
        '--log-level',
        choices=['critical', 'error', 'warning', 'info', 'debug'],
        default=None,
        help='Minimum log level (default from settings: info)',
    )
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    """Load settings and apply CLI overrides.

    Args:
        args: Parsed command-line arguments.

    Raises:
        ConfigError: If the settings are invalid.
    """
    settings = make_settings(env=args.env)
    overrides = {
        key: value
        for key, value in {
            'app_address': args.app_address,
            'health_address': args.health_address,
            'log_format': args.log_format,
            'log_level': args.log_level,
        }.items()
        if value is not None
    }
    return settings.model_copy(update=overrides) if overrides else settings
