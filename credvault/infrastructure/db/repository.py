"""
Store repositories: SQL for websites, technologies and credentials.

All database interactions go through this module. Every mutating call
runs inside one ``SQLiteStore.transaction`` so it either applies fully
or not at all.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from credvault.core.exceptions import InvalidSearchFieldError, StoreError
from credvault.core.logging import get_logger
from credvault.domain.models import (
    CredentialEntry,
    SanitizedRecord,
    StoreStats,
    WebsiteTechnologies,
)
from credvault.infrastructure.db.sqlite import CREDENTIAL_TABLE, SQLiteStore

logger = get_logger(__name__)

TECH_SEPARATOR = "\x1f"

SEARCH_FIELDS = ("url", "username", "password", "notes", "id")


def like_pattern(query: str) -> str:
    """Build a LIKE pattern matching ``query`` as a literal substring."""
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class WebsiteRepository:
    """Many-to-many website ↔ technology records."""

    _SELECT_WEBSITES = """
        SELECT w.url AS url, GROUP_CONCAT(t.name, char(31)) AS technologies
        FROM websites w
        LEFT JOIN website_technologies wt ON w.id = wt.website_id
        LEFT JOIN technologies t ON t.id = wt.technology_id
        {where}
        GROUP BY w.id
        ORDER BY w.url
    """

    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    def insert_website_technologies(self, items: Iterable[WebsiteTechnologies]) -> bool:
        """
        Insert websites, technologies and their links, ignoring existing rows.

        Returns:
            True if the whole batch was committed, False if it was rolled back.
        """
        items = list(items)
        try:
            with self._store.transaction("insert_website_technologies") as cursor:
                for item in items:
                    cursor.execute("INSERT OR IGNORE INTO websites (url) VALUES (?)", (item.url,))
                    website_id = cursor.execute(
                        "SELECT id FROM websites WHERE url = ?", (item.url,)
                    ).fetchone()[0]

                    for name in item.technologies:
                        cursor.execute(
                            "INSERT OR IGNORE INTO technologies (name) VALUES (?)", (name,)
                        )
                        technology_id = cursor.execute(
                            "SELECT id FROM technologies WHERE name = ?", (name,)
                        ).fetchone()[0]
                        cursor.execute(
                            "INSERT OR IGNORE INTO website_technologies "
                            "(website_id, technology_id) VALUES (?, ?)",
                            (website_id, technology_id),
                        )
        except StoreError as exc:
            logger.error("Website insert failed: %s", exc.message)
            return False

        logger.info("Inserted %d website records", len(items))
        return True

    def delete_website(self, url: str) -> bool:
        """
        Delete one website (exact url match) and its technology links.

        Returns:
            False when no such website exists or the delete was rolled back.
        """
        try:
            if not self._store.query("SELECT 1 FROM websites WHERE url = ?", (url,)):
                logger.debug("No website with url=%s to delete", url)
                return False
            with self._store.transaction("delete_website") as cursor:
                row = cursor.execute("SELECT id FROM websites WHERE url = ?", (url,)).fetchone()
                if row is None:
                    logger.debug("No website with url=%s to delete", url)
                    return False
                cursor.execute("DELETE FROM website_technologies WHERE website_id = ?", (row[0],))
                cursor.execute("DELETE FROM websites WHERE id = ?", (row[0],))
        except StoreError as exc:
            logger.error("Website delete failed for url=%s: %s", url, exc.message)
            return False

        logger.info("Deleted website url=%s", url)
        return True

    def delete_all_website_technology_data(self) -> bool:
        """Remove every website and link. Technologies are kept for reuse."""
        try:
            with self._store.transaction("delete_all_website_technology_data") as cursor:
                cursor.execute("DELETE FROM website_technologies")
                cursor.execute("DELETE FROM websites")
        except StoreError as exc:
            logger.error("Website wipe failed: %s", exc.message)
            return False

        logger.info("Deleted all websites and technology links")
        return True

    def _select(self, where: str = "", params: tuple = ()) -> list[WebsiteTechnologies]:
        rows = self._store.query(self._SELECT_WEBSITES.format(where=where), params)
        return [
            WebsiteTechnologies(
                url=row["url"],
                technologies=sorted(
                    name for name in (row["technologies"] or "").split(TECH_SEPARATOR) if name
                ),
            )
            for row in rows
        ]

    def search_websites(self, query: str, by_technology: bool = False) -> list[WebsiteTechnologies]:
        """
        Substring search on website url, or on the names of linked technologies.

        Each matching website appears once, with all of its technologies.
        An empty query returns every website.
        """
        if not query:
            return self.get_all_websites()

        if by_technology:
            where = """
                WHERE w.id IN (
                    SELECT wt2.website_id
                    FROM website_technologies wt2
                    JOIN technologies t2 ON t2.id = wt2.technology_id
                    WHERE t2.name LIKE ? ESCAPE '\\'
                )
            """
        else:
            where = "WHERE w.url LIKE ? ESCAPE '\\'"
        return self._select(where, (like_pattern(query),))

    def get_all_websites(self) -> list[WebsiteTechnologies]:
        return self._select()

    def get_all_technologies(self) -> list[str]:
        rows = self._store.query("SELECT name FROM technologies ORDER BY name")
        return [row["name"] for row in rows]

    def counts(self) -> dict[str, int]:
        """Row counts per table."""
        return {
            table: self._store.query(f"SELECT COUNT(*) FROM {table}")[0][0]
            for table in ("websites", "technologies", "website_technologies")
        }


class CredentialRepository:
    """The flat credential table."""

    _ORDER = "ORDER BY created_at DESC, id DESC"

    def __init__(self, store: SQLiteStore, search_limit: Optional[int] = None) -> None:
        self._store = store
        self._search_limit = search_limit

    @staticmethod
    def _to_entry(row) -> CredentialEntry:
        return CredentialEntry(
            id=row["id"],
            url=row["url"],
            username=row["username"],
            password=row["password"],
            notes=row["notes"] or "",
            created_at=row["created_at"],
        )

    def add_entries(self, batch: Iterable[SanitizedRecord]) -> int:
        """
        Bulk-insert credentials in one transaction.

        Returns:
            The number of rows actually stored. With unique entries
            enabled, rows that already exist are skipped and not counted.

        Raises:
            StoreError: If the batch was rolled back.
        """
        verb = "INSERT OR IGNORE" if self._store.unique_entries else "INSERT"
        sql = (
            f"{verb} INTO {CREDENTIAL_TABLE} (url, username, password, notes, created_at) "
            "VALUES (?, ?, ?, ?, ?)"
        )
        added = 0
        with self._store.transaction("add_entries") as cursor:
            created_at = datetime.now(timezone.utc).isoformat()
            for record in batch:
                cursor.execute(
                    sql,
                    (record.url, record.username, record.password, record.notes, created_at),
                )
                added += cursor.rowcount

        logger.info("Stored %d credential entries", added)
        return added

    def get_all_entries(self) -> list[CredentialEntry]:
        rows = self._store.query(f"SELECT * FROM {CREDENTIAL_TABLE} {self._ORDER}")
        return [self._to_entry(row) for row in rows]

    def search_entries(self, query: str, field: str = "all") -> list[CredentialEntry]:
        """
        Case-insensitive substring search, newest first.

        ``field`` is one of ``all``, ``url``, ``username``, ``password``,
        ``notes`` or ``id``. Every match is returned unless the repository
        was built with a ``search_limit``. An empty query returns every entry.
        """
        if field != "all" and field not in SEARCH_FIELDS:
            raise InvalidSearchFieldError(field)
        if not query:
            return self.get_all_entries()

        columns = ("url", "username", "password", "notes") if field == "all" else (field,)
        condition = " OR ".join(
            f"CAST({column} AS TEXT) LIKE ? ESCAPE '\\'" for column in columns
        )
        sql = f"SELECT * FROM {CREDENTIAL_TABLE} WHERE {condition} {self._ORDER}"
        params: tuple = tuple(like_pattern(query) for _ in columns)
        if self._search_limit is not None:
            sql += " LIMIT ?"
            params += (self._search_limit,)
        rows = self._store.query(sql, params)
        logger.debug("Search field=%s matched %d entries", field, len(rows))
        return [self._to_entry(row) for row in rows]

    def delete_entries_by_url(self, url: str) -> bool:
        """Delete every entry whose url equals ``url``. False if none matched."""
        with self._store.transaction("delete_entries_by_url") as cursor:
            cursor.execute(f"DELETE FROM {CREDENTIAL_TABLE} WHERE url = ?", (url,))
            deleted = cursor.rowcount

        logger.info("Deleted %d entries for url=%s", deleted, url)
        return deleted > 0

    def delete_all_entries(self) -> bool:
        """Drop and recreate the table so ids restart at 1."""
        with self._store.transaction("delete_all_entries") as cursor:
            cursor.execute(f"DROP TABLE IF EXISTS {CREDENTIAL_TABLE}")
            for statement in self._store.credential_schema():
                cursor.execute(statement)

        logger.info("Deleted all credential entries")
        return True

    def get_stats(self) -> StoreStats:
        row = self._store.query(
            f"SELECT COUNT(*) AS total, MAX(created_at) AS last_update, "
            f"COUNT(DISTINCT username) AS unique_users FROM {CREDENTIAL_TABLE}"
        )[0]
        return StoreStats(
            total=row["total"],
            last_update=row["last_update"],
            unique_users=row["unique_users"],
        )
