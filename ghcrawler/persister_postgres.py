"""Stores repository metadata in a PostgreSQL database."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from ghcrawler.entities import Repository
from ghcrawler.interfaces import RepositoryPersister

logger = logging.getLogger(__name__)

UPSERT_QUERY = text(
    """
WITH upserted AS (
    INSERT INTO github.repository (repository_name, organization_name, total_stars)
    VALUES (:repository_name, :organization_name, :total_stars)
    ON CONFLICT (repository_name, organization_name) DO UPDATE
    SET total_stars = EXCLUDED.total_stars
    WHERE github.repository.repository_name IS DISTINCT FROM EXCLUDED.repository_name
    RETURNING xmax = 0 AS inserted
)
SELECT COUNT(*) AS total_inserted
FROM upserted
WHERE inserted = true;
"""
)


class PostgresSqlPersister(RepositoryPersister):
    """Upserts repositories one transaction at a time over a single connection.

    Accepts either a connection URL or a ready SQLAlchemy engine.
    """

    def __init__(self, connection: Union[str, Engine]) -> None:
        if isinstance(connection, str):
            self._engine = create_engine(connection, pool_size=1, max_overflow=0)
        else:
            self._engine = connection

    def _persist_repository(self, repository: Repository) -> int:
        params = {
            "repository_name": repository.repository_name,
            "organization_name": repository.organization_name,
            "total_stars": repository.total_stars,
        }
        with self._engine.begin() as connection:
            inserted = connection.execute(UPSERT_QUERY, params).scalar_one()
        return int(inserted)

    async def persist(self, repositories: Sequence[Repository]) -> int:
        total_inserted = 0
        for repository in repositories:
            inserted = await asyncio.to_thread(self._persist_repository, repository)
            if inserted == 0:
                logger.info("Updated %s", repository)
            else:
                logger.info("Inserted %s", repository)
            total_inserted += inserted
        return total_inserted

    def close(self) -> None:
        """Release the database connections."""
        self._engine.dispose()