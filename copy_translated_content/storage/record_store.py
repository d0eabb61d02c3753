"""
SQLite-backed record store for pages, backend users and content elements.

The store is the only component that touches the database. Every public
method opens its own connection; writes are serialized with a module lock.
Reads apply the soft-delete restriction, and optionally the workspace
restriction (live records plus the given workspace's records).
"""

import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..errors import InvalidArgument, RecordNotFound
from ..models import CONTAINER_PARENT_FIELD, CONTENT_TABLE

logger = logging.getLogger(__name__)

_lock = threading.Lock()

# Gap between sort keys of neighbouring records.
SORTING_STEP = 256

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS pages (
        uid INTEGER PRIMARY KEY AUTOINCREMENT,
        pid INTEGER NOT NULL DEFAULT 0,
        title TEXT NOT NULL DEFAULT '',
        sorting INTEGER NOT NULL DEFAULT 0,
        deleted INTEGER NOT NULL DEFAULT 0,
        hidden INTEGER NOT NULL DEFAULT 0,
        perms_userid INTEGER NOT NULL DEFAULT 0,
        perms_groupid INTEGER NOT NULL DEFAULT 0,
        perms_user INTEGER NOT NULL DEFAULT 0,
        perms_group INTEGER NOT NULL DEFAULT 0,
        perms_everybody INTEGER NOT NULL DEFAULT 0,
        tstamp REAL NOT NULL DEFAULT 0,
        crdate REAL NOT NULL DEFAULT 0
    );

    CREATE TABLE IF NOT EXISTS be_users (
        uid INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL,
        admin INTEGER NOT NULL DEFAULT 0,
        usergroup TEXT NOT NULL DEFAULT '',
        workspace_id INTEGER NOT NULL DEFAULT 0,
        deleted INTEGER NOT NULL DEFAULT 0
    );

    CREATE TABLE IF NOT EXISTS tt_content (
        uid INTEGER PRIMARY KEY AUTOINCREMENT,
        pid INTEGER NOT NULL,
        sys_language_uid INTEGER NOT NULL DEFAULT 0,
        l18n_parent INTEGER NOT NULL DEFAULT 0,
        colPos INTEGER NOT NULL DEFAULT 0,
        CType TEXT NOT NULL DEFAULT '',
        header TEXT NOT NULL DEFAULT '',
        bodytext TEXT,
        sorting INTEGER NOT NULL DEFAULT 0,
        hidden INTEGER NOT NULL DEFAULT 0,
        deleted INTEGER NOT NULL DEFAULT 0,
        t3ver_wsid INTEGER NOT NULL DEFAULT 0,
        tstamp REAL NOT NULL DEFAULT 0,
        crdate REAL NOT NULL DEFAULT 0
    );

    CREATE INDEX IF NOT EXISTS idx_content_pid_lang ON tt_content (pid, sys_language_uid);
    CREATE INDEX IF NOT EXISTS idx_content_sorting ON tt_content (pid, sorting);
"""


class RecordStore:
    """Generic table access on top of SQLite.

    Args:
        db_path: SQLite database file.
        container_support: Add the container-parent column to ``tt_content``.
            Callers detect the feature with ``has_column``.
    """

    def __init__(self, db_path: str, container_support: bool = True):
        self.db_path = Path(db_path)
        self.container_support = container_support
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._columns: Dict[str, Tuple[str, ...]] = {}
        self._init_db()

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA)
            if (
                self.container_support
                and CONTAINER_PARENT_FIELD not in self._table_columns(conn, CONTENT_TABLE)
            ):
                conn.execute(
                    f"ALTER TABLE {CONTENT_TABLE} "
                    f"ADD COLUMN {CONTAINER_PARENT_FIELD} INTEGER NOT NULL DEFAULT 0"
                )
            conn.commit()
            for table in ("pages", "be_users", CONTENT_TABLE):
                self._columns[table] = self._table_columns(conn, table)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @staticmethod
    def _table_columns(conn: sqlite3.Connection, table: str) -> Tuple[str, ...]:
        rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
        return tuple(row["name"] for row in rows)

    # ------------------------------------------------------------------
    # Schema helpers
    # ------------------------------------------------------------------

    def columns(self, table: str) -> Tuple[str, ...]:
        try:
            return self._columns[table]
        except KeyError:
            raise InvalidArgument(f"Unknown table: {table}") from None

    def has_column(self, table: str, column: str) -> bool:
        return column in self._columns.get(table, ())

    def _check_columns(self, table: str, names: Iterable[str]) -> None:
        known = self.columns(table)
        for name in names:
            if name not in known:
                raise InvalidArgument(f"Unknown column {table}.{name}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order: Sequence[Tuple[str, str]] = (),
        workspace: Optional[int] = None,
        fields: Optional[Sequence[str]] = None,
    ) -> List[dict]:
        """Select rows matching all ``filters``.

        Filter values that are lists, tuples or sets become ``IN`` clauses;
        an empty collection matches nothing. ``order`` is a sequence of
        ``(column, "ASC"|"DESC")`` pairs.
        """
        filters = dict(filters or {})
        self._check_columns(table, filters)
        self._check_columns(table, [col for col, _ in order])
        if fields:
            self._check_columns(table, fields)

        select = ", ".join(fields) if fields else "*"
        sql = f"SELECT {select} FROM {table} WHERE 1=1"
        params: List[Any] = []

        if self.has_column(table, "deleted"):
            sql += " AND deleted = 0"
        if workspace is not None and self.has_column(table, "t3ver_wsid"):
            sql += " AND t3ver_wsid IN (0, ?)"
            params.append(int(workspace))

        for column, value in filters.items():
            if isinstance(value, (list, tuple, set, frozenset)):
                values = list(value)
                if not values:
                    return []
                placeholders = ",".join("?" * len(values))
                sql += f" AND {column} IN ({placeholders})"
                params.extend(values)
            else:
                sql += f" AND {column} = ?"
                params.append(value)

        if order:
            clauses = []
            for column, direction in order:
                direction = direction.upper()
                if direction not in ("ASC", "DESC"):
                    raise InvalidArgument(f"Invalid sort direction: {direction}")
                clauses.append(f"{column} {direction}")
            sql += " ORDER BY " + ", ".join(clauses)

        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [dict(row) for row in rows]

    def get_record(self, table: str, uid: int) -> Optional[dict]:
        """Fetch a non-deleted record by uid, or None."""
        rows = self.query(table, {"uid": int(uid)})
        return rows[0] if rows else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, table: str, values: Mapping[str, Any]) -> int:
        """Insert a row and return its uid (explicit uids are kept)."""
        values = dict(values)
        self._check_columns(table, values)
        now = time.time()
        if self.has_column(table, "crdate"):
            values.setdefault("crdate", now)
        if self.has_column(table, "tstamp"):
            values.setdefault("tstamp", now)

        columns = ", ".join(values)
        placeholders = ", ".join("?" * len(values))
        with _lock:
            with self._connect() as conn:
                cursor = conn.execute(
                    f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
                    list(values.values()),
                )
                conn.commit()
                return int(cursor.lastrowid)

    def copy_record(
        self,
        table: str,
        source_uid: int,
        target_pid: int,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> int:
        """Duplicate a record into ``target_pid`` and return the new uid.

        The copy is placed at the top of the target page: its sort key is
        below every existing record there. ``overrides`` replace fields of
        the duplicated row.
        """
        overrides = dict(overrides or {})
        self._check_columns(table, overrides)

        source = self.get_record(table, source_uid)
        if source is None:
            raise RecordNotFound(table, source_uid)

        row = dict(source)
        row.pop("uid", None)
        row["pid"] = int(target_pid)
        now = time.time()
        if "crdate" in row:
            row["crdate"] = now
        if "tstamp" in row:
            row["tstamp"] = now

        with _lock:
            with self._connect() as conn:
                if "sorting" in row:
                    lowest = conn.execute(
                        f"SELECT MIN(sorting) FROM {table} WHERE pid = ? AND deleted = 0",
                        (int(target_pid),),
                    ).fetchone()[0]
                    row["sorting"] = SORTING_STEP if lowest is None else int(lowest) - SORTING_STEP
                row.update(overrides)

                columns = ", ".join(row)
                placeholders = ", ".join("?" * len(row))
                cursor = conn.execute(
                    f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
                    list(row.values()),
                )
                conn.commit()
                new_uid = int(cursor.lastrowid)

        logger.debug("Copied %s:%d to pid %d as uid %d", table, source_uid, target_pid, new_uid)
        return new_uid

    def update_field(self, table: str, uid: int, field: str, value: Any) -> None:
        """Write a single field of an existing record."""
        self._check_columns(table, [field])
        with _lock:
            with self._connect() as conn:
                assignments = f"{field} = ?"
                params: List[Any] = [value]
                if self.has_column(table, "tstamp") and field != "tstamp":
                    assignments += ", tstamp = ?"
                    params.append(time.time())
                params.append(int(uid))
                cursor = conn.execute(
                    f"UPDATE {table} SET {assignments} WHERE uid = ?", params
                )
                conn.commit()
                if cursor.rowcount == 0:
                    raise RecordNotFound(table, uid)
