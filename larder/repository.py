import asyncio
import contextlib
from datetime import datetime, timezone
import json
import logging
import sqlite3
from typing import Any, AsyncIterator, Protocol, Sequence

from databases import Database

from larder.errors import StorageUnavailable
from larder.models import FavoriteSnapshot, Ingredient, Recipe


logger = logging.getLogger(__name__)


CREATE_FAVORITES_TABLE = """
CREATE TABLE IF NOT EXISTS Favorites (
    id VARCHAR(64) PRIMARY KEY,
    title VARCHAR(256),
    thumbnail_url VARCHAR(1024),
    instructions TEXT,
    ingredients TEXT,
    saved_at REAL
)
"""


SAVE_FAVORITE = """
INSERT OR REPLACE INTO Favorites(id, title, thumbnail_url, instructions, ingredients, saved_at)
VALUES (:id, :title, :thumbnail_url, :instructions, :ingredients, :saved_at)
"""


FAVORITE_COLUMNS = "id, title, thumbnail_url, instructions, ingredients, saved_at"


GET_FAVORITE = f"SELECT {FAVORITE_COLUMNS} FROM Favorites WHERE id = :id"


LIST_FAVORITES = f"SELECT {FAVORITE_COLUMNS} FROM Favorites ORDER BY saved_at DESC"


LIST_FAVORITE_IDS = "SELECT id FROM Favorites"


COUNT_FAVORITES = "SELECT COUNT(*) FROM Favorites"


DELETE_FAVORITE = "DELETE FROM Favorites WHERE id = :id"


CLEAR_FAVORITES = "DELETE FROM Favorites"


class OfflineStore(Protocol):
    async def save(self, snapshot: FavoriteSnapshot) -> None:
        ...

    async def delete(self, id: str) -> None:
        ...

    async def get(self, id: str) -> FavoriteSnapshot | None:
        ...

    async def list_all(self) -> list[FavoriteSnapshot]:
        ...

    async def count(self) -> int:
        ...

    async def clear(self) -> None:
        ...

    async def ids(self) -> set[str]:
        ...


def _snapshot_values(snapshot: FavoriteSnapshot) -> dict[str, Any]:
    recipe = snapshot.recipe
    return {
        "id": recipe.id,
        "title": recipe.title,
        "thumbnail_url": recipe.thumbnail_url,
        "instructions": recipe.instructions,
        "ingredients": json.dumps([i.to_dict() for i in recipe.ingredients]),
        "saved_at": snapshot.saved_at.timestamp(),
    }


def _snapshot_from_row(row: Sequence[Any]) -> FavoriteSnapshot:
    # Rows come back positionally, in FAVORITE_COLUMNS order.
    id, title, thumbnail_url, instructions, ingredients, saved_at = (
        row[i] for i in range(6)
    )
    recipe = Recipe(
        id=id,
        title=title or "",
        instructions=instructions or "",
        thumbnail_url=thumbnail_url or "",
        ingredients=tuple(
            Ingredient(name=i["name"], measure=i["measure"])
            for i in json.loads(ingredients or "[]")
        ),
    )
    return FavoriteSnapshot(
        recipe=recipe,
        saved_at=datetime.fromtimestamp(saved_at, tz=timezone.utc),
    )


class SQLiteOfflineStore:
    """Favorites repository. One row per recipe, written whole."""

    def __init__(self, db: Database) -> None:
        self.db = db
        self._lock = asyncio.Lock()

    @contextlib.asynccontextmanager
    async def _exclusive(self) -> AsyncIterator[None]:
        async with self._lock:
            if not self.db.is_connected:
                raise StorageUnavailable("Favorites database is not connected.")
            try:
                yield
            except (sqlite3.Error, OSError) as e:
                logger.error("Favorites database error: %s", e)
                raise StorageUnavailable(str(e)) from e

    async def create(self) -> None:
        async with self._exclusive():
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                query=CREATE_FAVORITES_TABLE
            )

    async def save(self, snapshot: FavoriteSnapshot) -> None:
        async with self._exclusive():
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                SAVE_FAVORITE, values=_snapshot_values(snapshot)
            )
        logger.info("Saved favorite %s", snapshot.id)

    async def delete(self, id: str) -> None:
        async with self._exclusive():
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                DELETE_FAVORITE, values={"id": id}
            )
        logger.info("Deleted favorite %s", id)

    async def get(self, id: str) -> FavoriteSnapshot | None:
        async with self._exclusive():
            row = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
                GET_FAVORITE, values={"id": id}
            )
        return None if row is None else _snapshot_from_row(row)

    async def list_all(self) -> list[FavoriteSnapshot]:
        async with self._exclusive():
            rows = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
                LIST_FAVORITES
            )
        return [_snapshot_from_row(row) for row in rows]

    async def count(self) -> int:
        async with self._exclusive():
            n = await self.db.fetch_val(  # pyright: ignore[reportUnknownMemberType]
                COUNT_FAVORITES
            )
        return int(n or 0)

    async def clear(self) -> None:
        async with self._exclusive():
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                CLEAR_FAVORITES
            )
        logger.warning("Cleared all favorites")

    async def ids(self) -> set[str]:
        async with self._exclusive():
            rows = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
                LIST_FAVORITE_IDS
            )
        return {row[0] for row in rows}


class InMemoryOfflineStore:
    """Same contract as `SQLiteOfflineStore`, kept in a dict.

    Flip `available` off to behave like a store whose disk went away.
    """

    def __init__(self, snapshots: Sequence[FavoriteSnapshot] = ()) -> None:
        self.snapshots = {s.id: s for s in snapshots}
        self.available = True
        self._lock = asyncio.Lock()

    @contextlib.asynccontextmanager
    async def _exclusive(self) -> AsyncIterator[None]:
        async with self._lock:
            if not self.available:
                raise StorageUnavailable("In-memory store is switched off.")
            # Suspend like real I/O would.
            await asyncio.sleep(0)
            yield

    async def save(self, snapshot: FavoriteSnapshot) -> None:
        async with self._exclusive():
            self.snapshots[snapshot.id] = snapshot

    async def delete(self, id: str) -> None:
        async with self._exclusive():
            self.snapshots.pop(id, None)

    async def get(self, id: str) -> FavoriteSnapshot | None:
        async with self._exclusive():
            return self.snapshots.get(id)

    async def list_all(self) -> list[FavoriteSnapshot]:
        async with self._exclusive():
            return sorted(
                self.snapshots.values(), key=lambda s: s.saved_at, reverse=True
            )

    async def count(self) -> int:
        async with self._exclusive():
            return len(self.snapshots)

    async def clear(self) -> None:
        async with self._exclusive():
            self.snapshots.clear()

    async def ids(self) -> set[str]:
        async with self._exclusive():
            return set(self.snapshots)
