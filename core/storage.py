# core/storage.py
import datetime
import json
import os
import sqlite3
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Sequence

import pytz

from .errors import InvalidPayload, StoreError
from .logger import get_logger
from .models import LinkRecord
from .platforms import empty_links, get_platform_keys, sanitize_links

logger = get_logger(__name__)

DB_PATH = os.getenv("DB_PATH", "/data/catalog_links.sqlite3")


def now_utc_iso() -> str:
    return datetime.datetime.now(tz=pytz.UTC).isoformat()


class LinkStore(ABC):
    """
    Overlay of reseller links keyed by product id.

    Subclasses only implement raw reads and a per-key atomic write; the
    sanitizing and bulk semantics live here so every backend behaves the same.
    """

    def __init__(self, platform_keys: Sequence[str] | None = None):
        self.platform_keys = tuple(platform_keys or get_platform_keys())

    @abstractmethod
    def _read_all(self) -> Dict[str, tuple[Dict[str, Any], str]]:
        ...

    @abstractmethod
    def _read_one(self, product_id: str) -> tuple[Dict[str, Any], str] | None:
        ...

    @abstractmethod
    def _write(self, product_id: str, links: Dict[str, str], updated_at: str) -> None:
        ...

    @abstractmethod
    def ping(self) -> bool:
        ...

    def _record(self, product_id: str, links: Mapping[str, Any], updated_at: str) -> LinkRecord:
        # Stored rows may predate a key-set change; normalize on the way out too.
        return LinkRecord(
            product_id=product_id,
            links=sanitize_links(links, self.platform_keys),
            updated_at=updated_at or "",
        )

    def get_all(self) -> Dict[str, LinkRecord]:
        return {
            pid: self._record(pid, links, ts)
            for pid, (links, ts) in self._read_all().items()
        }

    def get_one(self, product_id: Any) -> LinkRecord:
        pid = str(product_id)
        row = self._read_one(pid)
        if row is None:
            return LinkRecord(product_id=pid, links=empty_links(self.platform_keys))
        links, ts = row
        return self._record(pid, links, ts)

    def upsert_one(self, product_id: Any, raw_fields: Mapping[str, Any]) -> LinkRecord:
        pid = str(product_id)
        links = sanitize_links(raw_fields, self.platform_keys)
        ts = now_utc_iso()
        self._write(pid, links, ts)
        logger.info("Stored platform links for product %s.", pid)
        return LinkRecord(product_id=pid, links=links, updated_at=ts)

    def upsert_bulk(self, entries: Any) -> int:
        if not isinstance(entries, Mapping):
            raise InvalidPayload("Invalid data format: expected a mapping of product id to links")

        updated = 0
        for product_id, raw_fields in entries.items():
            if not isinstance(raw_fields, Mapping):
                logger.debug("Skipping bulk entry %s: value is not a mapping.", product_id)
                continue
            try:
                self.upsert_one(product_id, raw_fields)
            except StoreError as e:
                logger.warning("Bulk upsert failed for product %s: %s", product_id, e)
                continue
            updated += 1

        logger.info("Bulk upsert wrote %d of %d entries.", updated, len(entries))
        return updated


class SqliteLinkStore(LinkStore):
    def __init__(self, db_path: str | None = None, platform_keys: Sequence[str] | None = None):
        super().__init__(platform_keys)
        self.db_path = db_path or DB_PATH
        self._lock = threading.Lock()
        self._ready = False

    def _connect(self):
        try:
            dirname = os.path.dirname(self.db_path)
            if dirname:
                os.makedirs(dirname, exist_ok=True)
            con = sqlite3.connect(self.db_path)
            if not self._ready:
                self._ensure_db(con)
            return con
        except (OSError, sqlite3.Error) as e:
            raise StoreError(f"Cannot open link store at {self.db_path}: {e}") from e

    def _ensure_db(self, con: sqlite3.Connection) -> None:
        con.execute(
            """
            CREATE TABLE IF NOT EXISTS platform_links (
                product_id TEXT PRIMARY KEY,
                links TEXT NOT NULL,   -- JSON object, shape depends on key set
                updated_at TEXT
            )
        """
        )
        con.commit()
        self._ready = True

    def _query(self, sql: str, params: tuple = ()) -> list:
        con = self._connect()
        try:
            with con:
                return con.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Link store query failed: {e}") from e
        finally:
            con.close()

    @staticmethod
    def _decode(raw: str) -> Dict[str, Any]:
        try:
            links = json.loads(raw or "{}")
        except ValueError:
            return {}
        return links if isinstance(links, dict) else {}

    def _read_all(self) -> Dict[str, tuple[Dict[str, Any], str]]:
        rows = self._query("SELECT product_id, links, updated_at FROM platform_links")
        return {pid: (self._decode(links), ts) for pid, links, ts in rows}

    def _read_one(self, product_id: str) -> tuple[Dict[str, Any], str] | None:
        rows = self._query(
            "SELECT links, updated_at FROM platform_links WHERE product_id=?",
            (product_id,),
        )
        if not rows:
            return None
        links, ts = rows[0]
        return self._decode(links), ts

    def _write(self, product_id: str, links: Dict[str, str], updated_at: str) -> None:
        with self._lock:
            self._query(
                """
                INSERT INTO platform_links (product_id, links, updated_at)
                VALUES (?,?,?)
                ON CONFLICT(product_id) DO UPDATE SET
                    links=excluded.links,
                    updated_at=excluded.updated_at
            """,
                (product_id, json.dumps(links, sort_keys=True), updated_at),
            )

    def ping(self) -> bool:
        try:
            self._query("SELECT 1")
        except StoreError as e:
            logger.warning("Link store ping failed: %s", e)
            return False
        return True


class MemoryLinkStore(LinkStore):
    """Process-local store; data lives only as long as the instance."""

    def __init__(self, platform_keys: Sequence[str] | None = None):
        super().__init__(platform_keys)
        self._rows: Dict[str, tuple[Dict[str, Any], str]] = {}
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, tuple[Dict[str, Any], str]]:
        with self._lock:
            return {pid: (dict(links), ts) for pid, (links, ts) in self._rows.items()}

    def _read_one(self, product_id: str) -> tuple[Dict[str, Any], str] | None:
        with self._lock:
            row = self._rows.get(product_id)
        if row is None:
            return None
        return dict(row[0]), row[1]

    def _write(self, product_id: str, links: Dict[str, str], updated_at: str) -> None:
        with self._lock:
            self._rows[product_id] = (dict(links), updated_at)

    def ping(self) -> bool:
        return True
