"""
DuckDB storage implementation for marina operations.

One DuckDB connection per storage instance, with a cursor per thread, so the
same class serves both the on-disk database and the in-memory demo store
(``db_path=":memory:"``).

Key features:
- Automatic, idempotent schema creation
- Relation loading with the portal's detail scoping
- Owner/boat/berth references resolved with LEFT JOINs
- Structured logging and ``StorageError`` on every failure
"""

import json
import os
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional

import duckdb
import structlog
from pydantic import BaseModel

from marinaops.models.entities import (
    Berth,
    Boat,
    Booking,
    Contract,
    Invoice,
    Marina,
    MarinaGroup,
    MarinaOverview,
    Owner,
    Payment,
    RelationCounts,
    User,
    WorkOrder,
)

from .base import StorageBackend

logger = structlog.get_logger(__name__)

MEMORY_PATH = ":memory:"


class StorageError(Exception):
    """Base exception for all storage operation failures."""

    pass


# Column order per table; also the field names read from entity models.
TABLE_COLUMNS: dict[str, list[str]] = {
    "marina_groups": ["id", "name", "description"],
    "marinas": ["id", "name", "code", "is_active", "is_online", "last_sync_at", "marina_group_id"],
    "users": [
        "id", "email", "first_name", "last_name", "roles", "is_active",
        "last_login_at", "marina_id", "password_hash",
    ],
    "owners": [
        "id", "first_name", "last_name", "email", "phone", "is_active", "marina_id", "created_at",
    ],
    "boats": [
        "id", "name", "registration", "length", "beam", "draft", "is_active",
        "owner_id", "berth_id", "marina_id",
    ],
    "berths": ["id", "berth_number", "length", "beam", "is_available", "is_active", "marina_id"],
    "contracts": [
        "id", "contract_number", "status", "start_date", "end_date", "monthly_rate",
        "owner_id", "boat_id", "berth_id", "marina_id", "created_at",
    ],
    "invoices": [
        "id", "invoice_number", "status", "total", "due_date", "created_at",
        "contract_id", "owner_id", "marina_id",
    ],
    "payments": [
        "id", "amount", "status", "gateway", "created_at", "invoice_id", "owner_id", "marina_id",
    ],
    "bookings": [
        "id", "booking_number", "status", "start_date", "end_date", "total_amount",
        "owner_id", "boat_id", "berth_id", "marina_id", "created_at",
    ],
    "work_orders": [
        "id", "title", "status", "priority", "total_cost", "requested_date", "completed_date",
        "owner_id", "boat_id", "berth_id", "marina_id", "created_at",
    ],
}

# Write order respects references between tables.
DATASET_TABLES = list(TABLE_COLUMNS)

# LEFT JOINs that resolve lightweight references, keyed by table.
REFERENCE_JOINS: dict[str, list[tuple[str, str, str, list[str]]]] = {
    "boats": [
        ("owner", "owners", "owner_id", ["id", "first_name", "last_name", "email"]),
        ("berth", "berths", "berth_id", ["id", "berth_number"]),
    ],
}
for _table in ("contracts", "bookings", "work_orders"):
    REFERENCE_JOINS[_table] = [
        ("owner", "owners", "owner_id", ["id", "first_name", "last_name", "email"]),
        ("boat", "boats", "boat_id", ["id", "name", "registration"]),
        ("berth", "berths", "berth_id", ["id", "berth_number"]),
    ]

SCHEMA = """
    CREATE TABLE IF NOT EXISTS marina_groups (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        description VARCHAR
    );
    CREATE TABLE IF NOT EXISTS marinas (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        code VARCHAR,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        is_online BOOLEAN NOT NULL DEFAULT TRUE,
        last_sync_at TIMESTAMP,
        marina_group_id VARCHAR
    );
    CREATE TABLE IF NOT EXISTS users (
        id VARCHAR PRIMARY KEY,
        email VARCHAR NOT NULL,
        first_name VARCHAR,
        last_name VARCHAR,
        roles VARCHAR NOT NULL DEFAULT '[]',
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        last_login_at TIMESTAMP,
        marina_id VARCHAR,
        password_hash VARCHAR
    );
    CREATE TABLE IF NOT EXISTS owners (
        id VARCHAR PRIMARY KEY,
        first_name VARCHAR NOT NULL,
        last_name VARCHAR NOT NULL,
        email VARCHAR,
        phone VARCHAR,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        marina_id VARCHAR,
        created_at TIMESTAMP
    );
    CREATE TABLE IF NOT EXISTS boats (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        registration VARCHAR,
        length DOUBLE,
        beam DOUBLE,
        draft DOUBLE,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        owner_id VARCHAR,
        berth_id VARCHAR,
        marina_id VARCHAR
    );
    CREATE TABLE IF NOT EXISTS berths (
        id VARCHAR PRIMARY KEY,
        berth_number VARCHAR NOT NULL,
        length DOUBLE,
        beam DOUBLE,
        is_available BOOLEAN NOT NULL DEFAULT TRUE,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        marina_id VARCHAR
    );
    CREATE TABLE IF NOT EXISTS contracts (
        id VARCHAR PRIMARY KEY,
        contract_number VARCHAR,
        status VARCHAR NOT NULL,
        start_date TIMESTAMP,
        end_date TIMESTAMP,
        monthly_rate DOUBLE,
        owner_id VARCHAR,
        boat_id VARCHAR,
        berth_id VARCHAR,
        marina_id VARCHAR,
        created_at TIMESTAMP
    );
    CREATE TABLE IF NOT EXISTS invoices (
        id VARCHAR PRIMARY KEY,
        invoice_number VARCHAR,
        status VARCHAR NOT NULL,
        total DOUBLE NOT NULL DEFAULT 0,
        due_date TIMESTAMP,
        created_at TIMESTAMP,
        contract_id VARCHAR,
        owner_id VARCHAR,
        marina_id VARCHAR
    );
    CREATE TABLE IF NOT EXISTS payments (
        id VARCHAR PRIMARY KEY,
        amount DOUBLE NOT NULL DEFAULT 0,
        status VARCHAR NOT NULL,
        gateway VARCHAR,
        created_at TIMESTAMP,
        invoice_id VARCHAR,
        owner_id VARCHAR,
        marina_id VARCHAR
    );
    CREATE TABLE IF NOT EXISTS bookings (
        id VARCHAR PRIMARY KEY,
        booking_number VARCHAR,
        status VARCHAR NOT NULL,
        start_date TIMESTAMP,
        end_date TIMESTAMP,
        total_amount DOUBLE NOT NULL DEFAULT 0,
        owner_id VARCHAR,
        boat_id VARCHAR,
        berth_id VARCHAR,
        marina_id VARCHAR,
        created_at TIMESTAMP
    );
    CREATE TABLE IF NOT EXISTS work_orders (
        id VARCHAR PRIMARY KEY,
        title VARCHAR,
        status VARCHAR NOT NULL,
        priority VARCHAR,
        total_cost DOUBLE NOT NULL DEFAULT 0,
        requested_date TIMESTAMP,
        completed_date TIMESTAMP,
        owner_id VARCHAR,
        boat_id VARCHAR,
        berth_id VARCHAR,
        marina_id VARCHAR,
        created_at TIMESTAMP
    );
    CREATE TABLE IF NOT EXISTS app_settings (
        setting_key VARCHAR PRIMARY KEY,
        setting_value VARCHAR NOT NULL,
        updated_at TIMESTAMP NOT NULL
    );
"""


def _to_db_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    if isinstance(value, list):
        return json.dumps([_to_db_value(item) for item in value])
    return value


def _nest_references(row: dict[str, Any]) -> dict[str, Any]:
    """Fold ``owner__first_name`` style columns into ``{"owner": {...}}``."""
    nested: dict[str, Any] = {}
    refs: dict[str, dict[str, Any]] = {}
    for key, value in row.items():
        if "__" in key:
            name, field = key.split("__", 1)
            refs.setdefault(name, {})[field] = value
        else:
            nested[key] = value
    for name, ref in refs.items():
        nested[name] = ref if ref.get("id") is not None else None
    return nested


class DuckDBStorage(StorageBackend):
    """
    DuckDB implementation of the storage backend.

    Attributes:
        db_path: Database file path, or ":memory:"
        recent_payment_days: Window for payments loaded with aggregate roots
    """

    def __init__(self, db_path: str = "./data/marina.duckdb", recent_payment_days: int = 30):
        self.db_path = db_path
        self.recent_payment_days = recent_payment_days
        if db_path != MEMORY_PATH:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self._local = threading.local()
        self._lock = threading.Lock()
        self._initialized = False

        try:
            self._connection = duckdb.connect(db_path)
        except duckdb.Error as e:
            logger.error("duckdb_connection_failed", db_path=db_path, error=str(e))
            raise StorageError(f"Failed to connect to DuckDB: {e}") from e

        logger.info("duckdb_storage_initialized", db_path=db_path)
        self._initialize_schema()

    @contextmanager
    def _get_connection(self):
        """
        Yield the calling thread's cursor on the shared connection.
        """
        if not hasattr(self._local, "cursor"):
            self._local.cursor = self._connection.cursor()
            logger.debug("duckdb_cursor_created", thread_id=threading.get_ident())
        yield self._local.cursor

    @contextmanager
    def _transaction(self):
        with self._get_connection() as conn:
            conn.begin()
            try:
                yield conn
            except Exception:
                conn.rollback()
                raise
            conn.commit()

    def _initialize_schema(self) -> None:
        """
        Create all tables. Idempotent.

        Raises:
            StorageError: If schema creation fails
        """
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return
            try:
                with self._get_connection() as conn:
                    for statement in SCHEMA.split(";"):
                        if statement.strip():
                            conn.execute(statement)
                self._initialized = True
                logger.info("duckdb_schema_initialized")
            except duckdb.Error as e:
                logger.error("duckdb_schema_initialization_failed", error=str(e))
                raise StorageError(f"Failed to initialize schema: {e}") from e

    def close(self) -> None:
        self._connection.close()

    def clear_for_testing(self) -> None:
        """
        Delete all rows. For testing only; a no-op unless TESTING is set.
        """
        if os.environ.get("TESTING", "").lower() not in ("1", "true", "yes"):
            return
        try:
            with self._transaction() as conn:
                for table in [*TABLE_COLUMNS, "app_settings"]:
                    conn.execute(f"DELETE FROM {table}")
        except duckdb.Error as e:
            logger.error("clear_for_testing_failed", error=str(e))
            raise StorageError(f"Failed to clear tables: {e}") from e

    # =========================================================================
    # Query helpers
    # =========================================================================

    @staticmethod
    def _check_table(table: str) -> list[str]:
        try:
            return TABLE_COLUMNS[table]
        except KeyError:
            raise StorageError(f"Unknown table: {table}") from None

    def _select(
        self,
        table: str,
        where: Optional[list[str]] = None,
        params: Optional[list[Any]] = None,
        order_by: str = "t.id",
    ) -> list[dict[str, Any]]:
        """
        Select rows of ``table`` (aliased ``t``) with references resolved.

        Returns:
            Row dicts with reference columns nested under their relation name
        """
        columns = [f"t.{c}" for c in self._check_table(table)]
        joins = []
        for index, (name, ref_table, fk, ref_columns) in enumerate(REFERENCE_JOINS.get(table, [])):
            alias = f"r{index}"
            joins.append(f"LEFT JOIN {ref_table} {alias} ON {alias}.id = t.{fk}")
            columns.extend(f"{alias}.{c} AS {name}__{c}" for c in ref_columns)

        query = f"SELECT {', '.join(columns)} FROM {table} t {' '.join(joins)}"
        if where:
            query += " WHERE " + " AND ".join(where)
        query += f" ORDER BY {order_by}"

        with self._get_connection() as conn:
            cursor = conn.execute(query, params or [])
            names = [d[0] for d in cursor.description]
            rows = cursor.fetchall()
        return [_nest_references(dict(zip(names, row))) for row in rows]

    def _relation_scope(self, table: str, now: datetime) -> tuple[list[str], list[Any]]:
        if table == "contracts":
            return ["t.status IN ('active', 'pending')"], []
        if table == "invoices":
            return ["t.status IN ('pending', 'overdue')"], []
        if table == "payments":
            cutoff = now - timedelta(days=self.recent_payment_days)
            return ["t.status = 'completed'", "t.created_at >= ?"], [cutoff]
        if table == "work_orders":
            return ["t.status IN ('pending', 'in_progress')"], []
        if table == "bookings":
            return ["t.status IN ('confirmed', 'active')"], []
        return [], []

    def _children(
        self,
        table: str,
        foreign_key: str,
        parent_ids: list[str],
        now: Optional[datetime],
        scoped: bool = True,
    ) -> dict[str, list[dict[str, Any]]]:
        """Rows of ``table`` grouped by ``foreign_key``, restricted to ``parent_ids``."""
        grouped: dict[str, list[dict[str, Any]]] = {pid: [] for pid in parent_ids}
        if not parent_ids:
            return grouped
        where = [f"t.{foreign_key} IN ({', '.join('?' for _ in parent_ids)})"]
        params: list[Any] = list(parent_ids)
        if scoped:
            scope, scope_params = self._relation_scope(table, self._now(now))
            where.extend(scope)
            params.extend(scope_params)
        for row in self._select(table, where, params):
            grouped.setdefault(row[foreign_key], []).append(row)
        return grouped

    @staticmethod
    def _now(now: Optional[datetime]) -> datetime:
        now = now or datetime.utcnow()
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc).replace(tzinfo=None)
        return now

    @staticmethod
    def _marina_filter(marina_id: Optional[str]) -> tuple[list[str], list[Any]]:
        if marina_id is None:
            return [], []
        return ["t.marina_id = ?"], [marina_id]

    def _with_relations(
        self,
        table: str,
        foreign_key: str,
        relations: dict[str, str],
        where: list[str],
        params: list[Any],
        now: Optional[datetime],
        scoped: bool = True,
    ) -> list[dict[str, Any]]:
        """Select roots of ``table`` and attach each relation list by foreign key."""
        roots = self._select(table, where, params)
        ids = [row["id"] for row in roots]
        for relation, child_table in relations.items():
            children = self._children(child_table, foreign_key, ids, now, scoped=scoped)
            for row in roots:
                row[relation] = children.get(row["id"], [])
        return roots

    # =========================================================================
    # Writes
    # =========================================================================

    def write_records(self, table: str, records: Iterable[BaseModel]) -> int:
        """Insert or replace records in ``table``."""
        columns = self._check_table(table)
        rows = [[_to_db_value(getattr(record, c, None)) for c in columns] for record in records]
        if not rows:
            return 0
        query = (
            f"INSERT OR REPLACE INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})"
        )
        try:
            with self._get_connection() as conn:
                conn.executemany(query, rows)
            logger.info("records_written", table=table, count=len(rows))
            return len(rows)
        except duckdb.Error as e:
            logger.error("write_records_failed", table=table, error=str(e))
            raise StorageError(f"Failed to write {table}: {e}") from e

    def load_dataset(self, dataset) -> dict[str, int]:
        """Write a ``SampleDataset`` atomically."""
        written: dict[str, int] = {}
        try:
            with self._transaction() as conn:
                for table in DATASET_TABLES:
                    columns = TABLE_COLUMNS[table]
                    rows = [
                        [_to_db_value(getattr(record, c, None)) for c in columns]
                        for record in getattr(dataset, table)
                    ]
                    if rows:
                        conn.executemany(
                            f"INSERT OR REPLACE INTO {table} ({', '.join(columns)}) "
                            f"VALUES ({', '.join('?' for _ in columns)})",
                            rows,
                        )
                    written[table] = len(rows)
        except duckdb.Error as e:
            logger.error("load_dataset_failed", error=str(e))
            raise StorageError(f"Failed to load dataset: {e}") from e

        logger.info("dataset_loaded", db_path=self.db_path, **written)
        return written

    # =========================================================================
    # Marinas and groups
    # =========================================================================

    _MARINA_RELATIONS = {
        "berths": "berths",
        "users": "users",
        "boats": "boats",
        "owners": "owners",
        "contracts": "contracts",
        "invoices": "invoices",
        "payments": "payments",
        "work_orders": "work_orders",
        "bookings": "bookings",
    }

    def _load_marinas(
        self, where: list[str], params: list[Any], now: Optional[datetime]
    ) -> list[Marina]:
        try:
            rows = self._with_relations(
                "marinas", "marina_id", self._MARINA_RELATIONS, where, params, now
            )
            for row in rows:
                for user in row["users"]:
                    user["roles"] = json.loads(user["roles"] or "[]")
            return [Marina.model_validate(row) for row in rows]
        except duckdb.Error as e:
            logger.error("read_marinas_failed", error=str(e))
            raise StorageError(f"Failed to read marinas: {e}") from e

    def list_marinas(
        self, marina_id: Optional[str] = None, now: Optional[datetime] = None
    ) -> list[Marina]:
        where, params = (["t.id = ?"], [marina_id]) if marina_id else ([], [])
        marinas = self._load_marinas(where, params, now)
        logger.debug("marinas_read", count=len(marinas))
        return marinas

    def read_marina(self, marina_id: str, now: Optional[datetime] = None) -> Optional[Marina]:
        marinas = self._load_marinas(["t.id = ?"], [marina_id], now)
        return marinas[0] if marinas else None

    def _relation_counts(self, marina_ids: list[str], now: datetime) -> dict[str, dict[str, Any]]:
        """Scoped relation counts and monthly revenue per marina."""
        counts: dict[str, dict[str, Any]] = {mid: {} for mid in marina_ids}
        if not marina_ids:
            return counts
        placeholders = ", ".join("?" for _ in marina_ids)

        def grouped(table: str, extra: list[str], extra_params: list[Any], select: str = "COUNT(*)"):
            where = [f"t.marina_id IN ({placeholders})", *extra]
            query = (
                f"SELECT t.marina_id, {select} FROM {table} t "
                f"WHERE {' AND '.join(where)} GROUP BY t.marina_id"
            )
            with self._get_connection() as conn:
                return dict(conn.execute(query, [*marina_ids, *extra_params]).fetchall())

        for relation, table in (
            ("berths", "berths"),
            ("boats", "boats"),
            ("owners", "owners"),
            ("users", "users"),
            ("contracts", "contracts"),
            ("bookings", "bookings"),
            ("work_orders", "work_orders"),
            ("invoices", "invoices"),
            ("payments", "payments"),
        ):
            if table == "contracts":
                # Active contracts only for the group roll-up
                scope, scope_params = ["t.status = 'active'"], []
            else:
                scope, scope_params = self._relation_scope(table, now)
            for mid, value in grouped(table, scope, scope_params).items():
                counts[mid][relation] = value

        for mid, value in grouped("work_orders", ["t.status = 'pending'"], []).items():
            counts[mid]["pending_work_orders"] = value
        for mid, value in grouped("work_orders", ["t.status = 'in_progress'"], []).items():
            counts[mid]["in_progress_work_orders"] = value

        revenue = grouped(
            "contracts",
            ["t.status = 'active'"],
            [],
            select="SUM(COALESCE(t.monthly_rate, 0))",
        )
        for mid, value in revenue.items():
            counts[mid]["monthly_revenue"] = float(value or 0.0)
        return counts

    def _load_groups(
        self, where: list[str], params: list[Any], now: Optional[datetime]
    ) -> list[MarinaGroup]:
        now = self._now(now)
        try:
            groups = self._select("marina_groups", where, params)
            group_ids = [g["id"] for g in groups]
            marinas = self._children("marinas", "marina_group_id", group_ids, now, scoped=False)
            all_marina_ids = [m["id"] for rows in marinas.values() for m in rows]
            counts = self._relation_counts(all_marina_ids, now)
        except duckdb.Error as e:
            logger.error("read_marina_groups_failed", error=str(e))
            raise StorageError(f"Failed to read marina groups: {e}") from e

        result = []
        for group in groups:
            overviews = []
            for marina in marinas.get(group["id"], []):
                marina_counts = dict(counts.get(marina["id"], {}))
                revenue = marina_counts.pop("monthly_revenue", 0.0)
                overviews.append(
                    MarinaOverview(
                        id=marina["id"],
                        name=marina["name"],
                        code=marina["code"],
                        is_active=marina["is_active"],
                        is_online=marina["is_online"],
                        monthly_revenue=revenue,
                        counts=RelationCounts(**marina_counts),
                    )
                )
            result.append(MarinaGroup(**group, marinas=overviews))
        logger.debug("marina_groups_read", count=len(result))
        return result

    def list_marina_groups(self, now: Optional[datetime] = None) -> list[MarinaGroup]:
        return self._load_groups([], [], now)

    def read_marina_group(
        self, group_id: str, now: Optional[datetime] = None
    ) -> Optional[MarinaGroup]:
        groups = self._load_groups(["t.id = ?"], [group_id], now)
        return groups[0] if groups else None

    # =========================================================================
    # Owners and berths
    # =========================================================================

    _OWNER_RELATIONS = {
        "boats": "boats",
        "contracts": "contracts",
        "invoices": "invoices",
        "payments": "payments",
        "work_orders": "work_orders",
        "bookings": "bookings",
    }
    _BERTH_RELATIONS = {
        "contracts": "contracts",
        "bookings": "bookings",
        "work_orders": "work_orders",
    }

    def list_owners(
        self, marina_id: Optional[str] = None, now: Optional[datetime] = None
    ) -> list[Owner]:
        where, params = self._marina_filter(marina_id)
        try:
            rows = self._with_relations(
                "owners", "owner_id", self._OWNER_RELATIONS, where, params, now
            )
        except duckdb.Error as e:
            logger.error("read_owners_failed", error=str(e))
            raise StorageError(f"Failed to read owners: {e}") from e
        logger.debug("owners_read", count=len(rows))
        return [Owner.model_validate(row) for row in rows]

    def read_owner(self, owner_id: str, now: Optional[datetime] = None) -> Optional[Owner]:
        try:
            rows = self._with_relations(
                "owners", "owner_id", self._OWNER_RELATIONS, ["t.id = ?"], [owner_id], now
            )
        except duckdb.Error as e:
            logger.error("read_owner_failed", owner_id=owner_id, error=str(e))
            raise StorageError(f"Failed to read owner: {e}") from e
        return Owner.model_validate(rows[0]) if rows else None

    def list_berths(
        self, marina_id: Optional[str] = None, now: Optional[datetime] = None
    ) -> list[Berth]:
        where, params = self._marina_filter(marina_id)
        try:
            rows = self._with_relations(
                "berths", "berth_id", self._BERTH_RELATIONS, where, params, now
            )
        except duckdb.Error as e:
            logger.error("read_berths_failed", error=str(e))
            raise StorageError(f"Failed to read berths: {e}") from e
        logger.debug("berths_read", count=len(rows))
        return [Berth.model_validate(row) for row in rows]

    def read_berth(self, berth_id: str, now: Optional[datetime] = None) -> Optional[Berth]:
        try:
            rows = self._with_relations(
                "berths", "berth_id", self._BERTH_RELATIONS, ["t.id = ?"], [berth_id], now
            )
        except duckdb.Error as e:
            logger.error("read_berth_failed", berth_id=berth_id, error=str(e))
            raise StorageError(f"Failed to read berth: {e}") from e
        return Berth.model_validate(rows[0]) if rows else None

    # =========================================================================
    # Flat records
    # =========================================================================

    def _list(self, table: str, model: type[BaseModel], marina_id: Optional[str]) -> list:
        where, params = self._marina_filter(marina_id)
        try:
            rows = self._select(table, where, params)
        except duckdb.Error as e:
            logger.error("read_records_failed", table=table, error=str(e))
            raise StorageError(f"Failed to read {table}: {e}") from e
        logger.debug("records_read", table=table, count=len(rows))
        return [model.model_validate(row) for row in rows]

    def _read(self, table: str, model: type[BaseModel], record_id: str):
        try:
            rows = self._select(table, ["t.id = ?"], [record_id])
        except duckdb.Error as e:
            logger.error("read_record_failed", table=table, record_id=record_id, error=str(e))
            raise StorageError(f"Failed to read {table}: {e}") from e
        return model.model_validate(rows[0]) if rows else None

    _CONTRACT_RELATIONS = {"invoices": "invoices"}

    def list_contracts(self, marina_id: Optional[str] = None) -> list[Contract]:
        where, params = self._marina_filter(marina_id)
        try:
            rows = self._with_relations(
                "contracts", "contract_id", self._CONTRACT_RELATIONS,
                where, params, None, scoped=False,
            )
        except duckdb.Error as e:
            logger.error("read_contracts_failed", error=str(e))
            raise StorageError(f"Failed to read contracts: {e}") from e
        logger.debug("contracts_read", count=len(rows))
        return [Contract.model_validate(row) for row in rows]

    def read_contract(self, contract_id: str) -> Optional[Contract]:
        try:
            rows = self._with_relations(
                "contracts", "contract_id", self._CONTRACT_RELATIONS,
                ["t.id = ?"], [contract_id], None, scoped=False,
            )
        except duckdb.Error as e:
            logger.error("read_contract_failed", contract_id=contract_id, error=str(e))
            raise StorageError(f"Failed to read contract: {e}") from e
        return Contract.model_validate(rows[0]) if rows else None

    def list_bookings(self, marina_id: Optional[str] = None) -> list[Booking]:
        return self._list("bookings", Booking, marina_id)

    def read_booking(self, booking_id: str) -> Optional[Booking]:
        return self._read("bookings", Booking, booking_id)

    def list_invoices(self, marina_id: Optional[str] = None) -> list[Invoice]:
        return self._list("invoices", Invoice, marina_id)

    def read_invoice(self, invoice_id: str) -> Optional[Invoice]:
        return self._read("invoices", Invoice, invoice_id)

    def list_payments(self, marina_id: Optional[str] = None) -> list[Payment]:
        return self._list("payments", Payment, marina_id)

    def read_payment(self, payment_id: str) -> Optional[Payment]:
        return self._read("payments", Payment, payment_id)

    def list_boats(self, marina_id: Optional[str] = None) -> list[Boat]:
        return self._list("boats", Boat, marina_id)

    def read_boat(self, boat_id: str) -> Optional[Boat]:
        return self._read("boats", Boat, boat_id)

    def list_work_orders(self, marina_id: Optional[str] = None) -> list[WorkOrder]:
        return self._list("work_orders", WorkOrder, marina_id)

    def read_work_order(self, work_order_id: str) -> Optional[WorkOrder]:
        return self._read("work_orders", WorkOrder, work_order_id)

    # =========================================================================
    # Users
    # =========================================================================

    @staticmethod
    def _user(row: dict[str, Any]) -> User:
        return User.model_validate({**row, "roles": json.loads(row["roles"] or "[]")})

    def list_users(self, marina_id: Optional[str] = None) -> list[User]:
        where, params = self._marina_filter(marina_id)
        try:
            rows = self._select("users", where, params)
        except duckdb.Error as e:
            logger.error("read_users_failed", error=str(e))
            raise StorageError(f"Failed to read users: {e}") from e
        return [self._user(row) for row in rows]

    def read_user(self, user_id: str) -> Optional[User]:
        try:
            rows = self._select("users", ["t.id = ?"], [user_id])
        except duckdb.Error as e:
            logger.error("read_user_failed", user_id=user_id, error=str(e))
            raise StorageError(f"Failed to read user: {e}") from e
        return self._user(rows[0]) if rows else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        try:
            rows = self._select("users", ["lower(t.email) = lower(?)"], [email])
        except duckdb.Error as e:
            logger.error("read_user_failed", error=str(e))
            raise StorageError(f"Failed to read user: {e}") from e
        return self._user(rows[0]) if rows else None

    # =========================================================================
    # Settings and diagnostics
    # =========================================================================

    def read_setting(self, key: str) -> Optional[str]:
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT setting_value FROM app_settings WHERE setting_key = ?", [key]
                ).fetchone()
        except duckdb.Error as e:
            logger.error("read_setting_failed", key=key, error=str(e))
            raise StorageError(f"Failed to read setting: {e}") from e
        return row[0] if row else None

    def write_setting(self, key: str, value: str) -> None:
        try:
            with self._get_connection() as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO app_settings (setting_key, setting_value, updated_at) "
                    "VALUES (?, ?, ?)",
                    [key, value, datetime.utcnow()],
                )
            logger.debug("setting_written", key=key)
        except duckdb.Error as e:
            logger.error("write_setting_failed", key=key, error=str(e))
            raise StorageError(f"Failed to write setting: {e}") from e

    def count_records(self, table: str, marina_id: Optional[str] = None) -> int:
        self._check_table(table)
        where, params = self._marina_filter(marina_id)
        query = f"SELECT COUNT(*) FROM {table} t"
        if where:
            query += " WHERE " + " AND ".join(where)
        try:
            with self._get_connection() as conn:
                return conn.execute(query, params).fetchone()[0]
        except duckdb.Error as e:
            logger.error("count_records_failed", table=table, error=str(e))
            raise StorageError(f"Failed to count {table}: {e}") from e

    def table_counts(self) -> dict[str, int]:
        return {table: self.count_records(table) for table in TABLE_COLUMNS}

    def health_check(self) -> bool:
        try:
            with self._get_connection() as conn:
                conn.execute("SELECT 1").fetchone()
            return True
        except duckdb.Error as e:
            logger.warning("duckdb_health_check_failed", error=str(e))
            return False
