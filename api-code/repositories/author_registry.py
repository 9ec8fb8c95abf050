from __future__ import annotations

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from db.mongo import get_database
from models.deploy import AuthorEntry, utc_now


class AuthorRegistry:
    """MongoDB-backed branch -> deploy requester map (deploy_authors collection).

    One document per branch, keyed by the branch name. Writes are upserts, so
    the most recent requester of a branch always wins.
    """

    backend = "mongo"

    def __init__(self, database: Optional[AsyncIOMotorDatabase] = None):
        self._db = database if database is not None else get_database()
        self._authors: AsyncIOMotorCollection = self._db["deploy_authors"]

    async def ensure_indexes(self) -> None:
        await self._authors.create_index("updated_at")

    async def ping(self) -> bool:
        try:
            await self._db.command("ping")
        except Exception:  # pylint: disable=broad-except
            return False
        return True

    async def record_author(self, branch: str, author: str) -> AuthorEntry:
        entry = AuthorEntry(_id=branch, author=author, updated_at=utc_now())
        document = entry.to_mongo()
        await self._authors.replace_one({"_id": branch}, document, upsert=True)
        return entry

    async def get_author(self, branch: str) -> Optional[str]:
        document = await self._authors.find_one({"_id": branch})
        if not document:
            return None
        return AuthorEntry.from_mongo(document).author
