"""Price store: SQLite-backed repository of catalog entities.

One table per entity kind, keyed by ``(node, code)``. The import engine only
needs ``find_all`` and ``save``; the listing helpers serve the CLI.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

from pricefold.models import ENTITY_TYPES, DEFAULT_NODE, Entity, InstancePrice

E = TypeVar("E", bound=Entity)

SCHEMA = """
CREATE TABLE IF NOT EXISTS regions (
    node TEXT NOT NULL,
    code TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    continent_m49 INTEGER,
    region_m49 INTEGER,
    subregion TEXT,
    latitude REAL,
    longitude REAL,
    PRIMARY KEY (node, code)
);

CREATE TABLE IF NOT EXISTS instance_types (
    node TEXT NOT NULL,
    code TEXT NOT NULL,
    name TEXT NOT NULL DEFAULT '',
    description TEXT,
    cpu REAL NOT NULL DEFAULT 0,
    ram INTEGER NOT NULL DEFAULT 0,
    baseline REAL,
    auto_scale INTEGER NOT NULL DEFAULT 0,
    processor TEXT,
    cpu_rate TEXT,
    ram_rate TEXT,
    network_rate TEXT,
    storage_rate TEXT,
    PRIMARY KEY (node, code)
);

CREATE TABLE IF NOT EXISTS storage_types (
    node TEXT NOT NULL,
    code TEXT NOT NULL,
    name TEXT NOT NULL DEFAULT '',
    latency TEXT,
    optimized TEXT,
    iops INTEGER NOT NULL DEFAULT 0,
    throughput INTEGER NOT NULL DEFAULT 0,
    durability9 INTEGER,
    availability REAL,
    minimal REAL NOT NULL DEFAULT 1,
    maximal REAL,
    increment REAL,
    instance_type TEXT,
    PRIMARY KEY (node, code)
);

CREATE TABLE IF NOT EXISTS price_terms (
    node TEXT NOT NULL,
    code TEXT NOT NULL,
    name TEXT NOT NULL DEFAULT '',
    period INTEGER NOT NULL DEFAULT 0,
    reservation INTEGER NOT NULL DEFAULT 0,
    convertible_family INTEGER NOT NULL DEFAULT 0,
    convertible_type INTEGER NOT NULL DEFAULT 0,
    convertible_location INTEGER NOT NULL DEFAULT 0,
    convertible_os INTEGER NOT NULL DEFAULT 1,
    ephemeral INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (node, code)
);

CREATE TABLE IF NOT EXISTS instance_prices (
    node TEXT NOT NULL,
    code TEXT NOT NULL,
    location TEXT,
    term TEXT,
    type TEXT,
    os TEXT,
    tenancy TEXT NOT NULL DEFAULT 'SHARED',
    software TEXT,
    period INTEGER NOT NULL DEFAULT 0,
    min_cpu REAL NOT NULL DEFAULT 0,
    increment_cpu REAL NOT NULL DEFAULT 1,
    cost REAL,
    cost_cpu REAL,
    cost_ram REAL,
    cost_period REAL,
    PRIMARY KEY (node, code)
);

CREATE TABLE IF NOT EXISTS storage_prices (
    node TEXT NOT NULL,
    code TEXT NOT NULL,
    location TEXT,
    type TEXT,
    cost_gb REAL,
    PRIMARY KEY (node, code)
);

CREATE TABLE IF NOT EXISTS support_types (
    node TEXT NOT NULL,
    code TEXT NOT NULL,
    name TEXT NOT NULL DEFAULT '',
    description TEXT,
    access_api TEXT,
    access_chat TEXT,
    access_email TEXT,
    access_phone TEXT,
    sla_start_time INTEGER,
    sla_end_time INTEGER,
    sla_week_end INTEGER NOT NULL DEFAULT 0,
    sla_business_critical_system_down INTEGER,
    sla_production_system_down INTEGER,
    sla_production_system_impaired INTEGER,
    sla_system_impaired INTEGER,
    sla_general_guidance INTEGER,
    commitment INTEGER,
    seats INTEGER,
    level TEXT,
    PRIMARY KEY (node, code)
);

CREATE TABLE IF NOT EXISTS support_prices (
    node TEXT NOT NULL,
    code TEXT NOT NULL,
    type TEXT,
    "limit" REAL,
    min REAL,
    rate TEXT,
    cost REAL,
    PRIMARY KEY (node, code)
);

CREATE INDEX IF NOT EXISTS idx_instance_price_location ON instance_prices(node, location);
CREATE INDEX IF NOT EXISTS idx_instance_price_term ON instance_prices(node, term);
CREATE INDEX IF NOT EXISTS idx_storage_price_location ON storage_prices(node, location);
"""

_TABLES = {cls.table for cls in ENTITY_TYPES}


def _quote(column: str) -> str:
    return f'"{column}"'


class PriceStore:
    """SQLite-backed entity repository.

    Each call opens its own connection unless it runs inside ``transaction()``,
    which keeps one connection (and one commit) for a whole import.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: sqlite3.Connection | None = None
        self._ensure_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        if self._conn is not None:
            yield self._conn
            return
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[PriceStore]:
        """Group every store call of the block into one transaction."""
        if self._conn is not None:
            yield self
            return
        with self._connect() as conn:
            self._conn = conn
            try:
                yield self
            finally:
                self._conn = None

    def _ensure_db(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA)

    def find_all(self, kind: type[E], node: str = DEFAULT_NODE) -> list[E]:
        """Every stored entity of a kind within a node."""
        if kind.table not in _TABLES:
            raise ValueError(f"Unknown entity kind: {kind.__name__}")
        # The table name comes from the model class, never from user input.
        sql = f"SELECT * FROM {kind.table} WHERE node = ?"  # noqa: S608
        with self._connect() as conn:
            rows = conn.execute(sql, (node,)).fetchall()
        entities = []
        for row in rows:
            entity = kind(**dict(row))
            entity._stored = True
            entities.append(entity)
        return entities

    def find_by_code(self, kind: type[E], code: str, node: str = DEFAULT_NODE) -> E | None:
        sql = f"SELECT * FROM {kind.table} WHERE node = ? AND code = ?"  # noqa: S608
        with self._connect() as conn:
            row = conn.execute(sql, (node, code)).fetchone()
        if row is None:
            return None
        entity = kind(**dict(row))
        entity._stored = True
        return entity

    def save(self, entity: Entity) -> None:
        """Insert or update an entity by (node, code)."""
        data = entity.model_dump(mode="json")
        columns = list(data)
        updates = ", ".join(f"{_quote(c)} = excluded.{_quote(c)}" for c in columns if c not in ("node", "code"))
        sql = (  # noqa: S608
            f"INSERT INTO {entity.table} ({', '.join(_quote(c) for c in columns)})"
            f" VALUES ({', '.join('?' for _ in columns)})"
            f" ON CONFLICT(node, code) DO UPDATE SET {updates}"
        )
        with self._connect() as conn:
            conn.execute(sql, [data[c] for c in columns])

    def find_instance_prices(
        self,
        node: str = DEFAULT_NODE,
        location: str | None = None,
        term: str | None = None,
        os: str | None = None,
        type_: str | None = None,
        software: str | None = None,
        limit: int = 50,
    ) -> list[InstancePrice]:
        """Stored instance prices matching the given dimensions, cheapest CPU first."""
        conditions = ["node = ?"]
        params: list[Any] = [node]
        for column, value in (("location", location), ("term", term), ("type", type_)):
            if value:
                conditions.append(f"{column} = ?")
                params.append(value)
        if os:
            conditions.append("os = ?")
            params.append(os.upper())
        if software:
            conditions.append("UPPER(software) = ?")
            params.append(software.upper())

        # Conditions are built from hardcoded strings; values go through placeholders.
        sql = (  # noqa: S608
            "SELECT * FROM instance_prices WHERE "
            + " AND ".join(conditions)
            + " ORDER BY COALESCE(cost_cpu, 0) + COALESCE(cost, 0) ASC, code ASC LIMIT ?"
        )
        params.append(limit)
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [InstancePrice(**dict(r)) for r in rows]

    def get_stats(self, node: str = DEFAULT_NODE) -> dict[str, int]:
        stats = {}
        with self._connect() as conn:
            for kind in ENTITY_TYPES:
                sql = f"SELECT COUNT(*) FROM {kind.table} WHERE node = ?"  # noqa: S608
                stats[kind.table] = conn.execute(sql, (node,)).fetchone()[0]
        return stats
