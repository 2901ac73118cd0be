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

"""Append-only store of recorded host names.

The store is a single table::

    items(id INT AUTO_INCREMENT PRIMARY KEY, name VARCHAR(255) NOT NULL)

It is reached through a SQLAlchemy async engine, so any async driver works:
``mysql+aiomysql://`` in production and ``sqlite+aiosqlite://`` locally and
in tests. The engine pools connections and is safe to share across every
listener's request handlers.

Usage::

    store = HostnameStore('sqlite+aiosqlite:///hosts.db')
    await store.init()
    item_id = await store.record('web-1')
    await store.close()
"""

from __future__ import annotations

import structlog
from sqlalchemy import Column, Integer, MetaData, String, Table, func, select
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

logger = structlog.get_logger(__name__)

metadata = MetaData()

items = Table(
    'items',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('name', String(255), nullable=False),
)


class HostnameStore:
    """Records host names in the ``items`` table."""

    def __init__(self, url: str, *, engine: AsyncEngine | None = None) -> None:
        """Initialize the store.

        Args:
            url: SQLAlchemy database URL using an async driver.
            engine: An existing engine to use instead of creating one.
        """
        self.url = url
        self._engine = engine or create_async_engine(url, pool_pre_ping=True)

    @property
    def engine(self) -> AsyncEngine:
        """The underlying SQLAlchemy engine."""
        return self._engine

    async def init(self) -> None:
        """Create the ``items`` table if it does not exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(metadata.create_all, checkfirst=True)
        await logger.ainfo(
            "Table 'items' is ready",
            database=make_url(self.url).render_as_string(hide_password=True),
            rows=await self.count(),
        )

    async def record(self, name: str) -> int:
        """Insert a host name.

        Args:
            name: The host name to record.

        Returns:
            The generated row id.
        """
        async with self._engine.begin() as conn:
            result = await conn.execute(items.insert().values(name=name))
            item_id = result.inserted_primary_key[0]
        await logger.adebug('Recorded host name', name=name, id=item_id)
        return int(item_id)

    async def count(self, name: str | None = None) -> int:
        """Count recorded rows, optionally only those for `name`."""
        query = select(func.count()).select_from(items)
        if name is not None:
            query = query.where(items.c.name == name)
        async with self._engine.connect() as conn:
            return int((await conn.execute(query)).scalar_one())

    async def close(self) -> None:
        """Dispose of the engine's connection pool."""
        await self._engine.dispose()
