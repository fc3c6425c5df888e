"""
repositories/base.py
--------------------
Generic data access engine shared by every entity repository.

An `EntityRepository` is bound to an `EntityDescriptor` and builds all of
its SQL from that descriptor: column and table names are never taken
from caller-supplied keys, and every value travels as a statement
parameter.
"""

from typing import Any, Iterable, Optional

from psycopg2 import extras

from db.connection import get_connection, release_connection
from models.entity import EntityDescriptor
from models.errors import PersistenceError, ValidationError
from models.result import Err, NOT_FOUND, Ok, Result
from utils.logger import get_logger

logger = get_logger(__name__)


def _escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term is matched literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class EntityRepository:
    """
    Create/read/update/delete operations for one table.

    Args:
        entity: Table binding (name, columns, key, soft delete flag...).
        get_conn: Returns a DB-API connection; defaults to the shared pool.
        release_conn: Gives the connection back; defaults to the shared pool.
    """

    def __init__(
        self,
        entity: EntityDescriptor,
        get_conn=get_connection,
        release_conn=release_connection,
    ):
        self.entity = entity
        self._get_conn = get_conn
        self._release_conn = release_conn

    # ── CREATE ────────────────────────────────────────────

    def create(self, data: dict) -> Result:
        """
        Insert a new row.

        Args:
            data: Column -> value mapping. Undeclared columns are ignored.

        Returns:
            Ok(new primary key), or Err(ValidationError) when a required
            field is missing/blank or an explicit key is invalid, or
            Err(PersistenceError) when the insert fails.
        """
        entity = self.entity
        table = entity.table

        missing = entity.missing_required(data)
        if missing:
            logger.warning(f"Rejected {table} insert, missing required fields: {missing}")
            return Err(ValidationError(f"Missing required fields: {', '.join(missing)}", missing))

        unknown = sorted(k for k in data if k not in entity.columns)
        if unknown:
            logger.warning(f"Ignoring undeclared {table} columns on insert: {unknown}")

        values = {f: data[f] for f in entity.mutable_fields if f in data}
        try:
            key = self._resolve_key(data)
        except ValidationError as e:
            logger.warning(f"Rejected {table} insert: {e}")
            return Err(e)
        if key is not None:
            values = {entity.primary_key: key, **values}

        if values:
            columns = ", ".join(values)
            placeholders = ", ".join(["%s"] * len(values))
            sql = f"INSERT INTO {table} ({columns}) VALUES ({placeholders}) RETURNING {entity.primary_key};"
        else:
            sql = f"INSERT INTO {table} DEFAULT VALUES RETURNING {entity.primary_key};"

        conn = self._get_conn()
        try:
            with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                cur.execute(sql, list(values.values()))
                row = cur.fetchone()
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to insert into {table}: {e}")
            error = PersistenceError(f"Failed to insert into {table}: {e}")
            error.__cause__ = e
            return Err(error)
        finally:
            self._release_conn(conn)

        new_key = row[entity.primary_key]
        logger.info(f"Created {table} #{new_key}")
        return Ok(new_key)

    # ── READ ──────────────────────────────────────────────

    def get_by_id(self, record_id: Any) -> Result:
        """
        Fetch a single row by primary key.

        Returns:
            Ok(record dict), NOT_FOUND, or Err(PersistenceError).
        """
        sql = f"SELECT {self._select_list} FROM {self.entity.table} WHERE {self.entity.primary_key} = %s LIMIT 1;"
        try:
            rows = self._fetch_all(sql, (record_id,))
        except PersistenceError as e:
            return Err(e)
        return Ok(rows[0]) if rows else NOT_FOUND

    def get_by_ids(self, ids: Iterable[Any]) -> dict:
        """
        Fetch several rows at once, keyed by primary key.

        Missing ids are simply absent from the result. Soft-deleted rows
        are included. An empty id list returns {} without touching the
        database.
        """
        ids = list(dict.fromkeys(ids))
        if not ids:
            return {}
        pk = self.entity.primary_key
        placeholders = ", ".join(["%s"] * len(ids))
        sql = f"SELECT {self._select_list} FROM {self.entity.table} WHERE {pk} IN ({placeholders}) ORDER BY {pk} ASC;"
        return {row[pk]: row for row in self._fetch_all(sql, ids)}

    def get_all(
        self,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        include_soft_deleted: bool = False,
        filters: Optional[dict] = None,
    ) -> list[dict]:
        """
        List rows, optionally filtered and paginated.

        Args:
            search: Case-insensitive substring matched against the
                entity's searchable columns (any of them may match).
            limit: Maximum number of rows; None means no limit.
            offset: Rows to skip.
            include_soft_deleted: Also return rows flagged deleted.
            filters: Column -> value equality predicates (declared columns only).

        Returns:
            List of record dicts in the entity's default order.
        """
        where, params = self._where(search, include_soft_deleted, filters)
        order = ", ".join(f"{c} ASC" for c in dict.fromkeys((*self.entity.order_by, self.entity.primary_key)))
        sql = f"SELECT {self._select_list} FROM {self.entity.table}{where} ORDER BY {order}"
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params += [limit, offset]
        elif offset:
            sql += " OFFSET %s"
            params.append(offset)
        return self._fetch_all(sql + ";", params)

    def get_count(
        self,
        search: Optional[str] = None,
        include_soft_deleted: bool = False,
        filters: Optional[dict] = None,
    ) -> int:
        """Count rows matching the same predicate as get_all(), ignoring paging."""
        where, params = self._where(search, include_soft_deleted, filters)
        rows = self._fetch_all(f"SELECT COUNT(*) AS total FROM {self.entity.table}{where};", params)
        return int(rows[0]["total"])

    # ── UPDATE ────────────────────────────────────────────

    def update(self, record_id: Any, changes: dict) -> bool:
        """
        Apply a changeset to one row.

        Only declared, non-key columns are written. If nothing is left
        after filtering, no statement is issued and False is returned.

        Returns:
            True if a row was updated.
        """
        entity = self.entity
        values = {k: v for k, v in changes.items() if k in entity.mutable_fields}
        dropped = [k for k in changes if k not in values]
        if dropped:
            logger.debug(f"Dropped non-updatable {entity.table} columns: {dropped}")
        if not values:
            logger.debug(f"No updatable fields for {entity.table} #{record_id}, skipping.")
            return False

        assignments = [f"{c} = %s" for c in values]
        if entity.touch_field and entity.touch_field not in values:
            assignments.append(f"{entity.touch_field} = CURRENT_TIMESTAMP")
        sql = f"UPDATE {entity.table} SET {', '.join(assignments)} WHERE {entity.primary_key} = %s;"
        affected = self._execute(sql, [*values.values(), record_id], f"update {entity.table} #{record_id}")
        return bool(affected)

    def soft_delete(self, record_id: Any) -> bool:
        """Flag a row as deleted. Other columns are left untouched."""
        return self._set_deleted(record_id, True)

    def restore(self, record_id: Any) -> bool:
        """Clear the deleted flag of a soft-deleted row."""
        return self._set_deleted(record_id, False)

    # ── DELETE ────────────────────────────────────────────

    def hard_delete(self, record_id: Any) -> bool:
        """Remove a row permanently, whatever its soft delete flag says."""
        table = self.entity.table
        sql = f"DELETE FROM {table} WHERE {self.entity.primary_key} = %s;"
        deleted = bool(self._execute(sql, (record_id,), f"delete {table} #{record_id}"))
        if deleted:
            logger.info(f"Deleted {table} #{record_id}")
        return deleted

    def delete(self, record_id: Any) -> bool:
        """Delete according to entity policy: soft if it has a flag column, hard otherwise."""
        if self.entity.has_soft_delete:
            return self.soft_delete(record_id)
        return self.hard_delete(record_id)

    def delete_where(self, filters: dict) -> bool:
        """
        Hard-delete every row matching the equality filters.

        Returns:
            True if the statement ran (even when nothing matched).
        """
        if not filters:
            raise ValueError("delete_where() needs at least one filter")
        table = self.entity.table
        where, params = self._where(None, True, filters)
        affected = self._execute(f"DELETE FROM {table}{where};", params, f"bulk delete from {table}")
        if affected:
            logger.info(f"Deleted {affected} row(s) from {table}")
        return affected is not None

    # ── HELPERS ───────────────────────────────────────────

    @property
    def _select_list(self) -> str:
        return ", ".join(self.entity.columns)

    def _resolve_key(self, data: dict) -> Any:
        """Pick the primary key to insert, or None to let the database assign it."""
        entity = self.entity
        supplied = data.get(entity.primary_key)
        if supplied is not None:
            if entity.allow_explicit_key:
                if not self._is_valid_key(supplied):
                    raise ValidationError(
                        f"Invalid explicit {entity.primary_key} {supplied!r}", [entity.primary_key]
                    )
                return supplied
            logger.warning(f"Ignoring caller-supplied {entity.table}.{entity.primary_key}")
        if entity.key_generator is not None:
            return entity.key_generator()
        return None

    def _is_valid_key(self, value: Any) -> bool:
        if self.entity.key_validator is not None:
            return self.entity.key_validator(value)
        if self.entity.key_type is int:
            return isinstance(value, int) and not isinstance(value, bool) and value > 0
        return isinstance(value, str) and bool(value.strip())

    def _set_deleted(self, record_id: Any, deleted: bool) -> bool:
        entity = self.entity
        if not entity.has_soft_delete:
            raise ValueError(f"{entity.table} does not support soft delete")
        sql = f"UPDATE {entity.table} SET {entity.soft_delete_field} = %s WHERE {entity.primary_key} = %s;"
        action = "soft delete" if deleted else "restore"
        return bool(self._execute(sql, (deleted, record_id), f"{action} {entity.table} #{record_id}"))

    def _where(
        self,
        search: Optional[str],
        include_soft_deleted: bool,
        filters: Optional[dict],
    ) -> tuple[str, list]:
        """Build the WHERE clause shared by listing, counting and bulk deletes."""
        entity = self.entity
        clauses: list[str] = []
        params: list = []

        for column, value in (filters or {}).items():
            if column not in entity.columns:
                raise ValidationError(f"Unknown {entity.table} filter column {column!r}", [column])
            if value is None:
                clauses.append(f"{column} IS NULL")
            else:
                clauses.append(f"{column} = %s")
                params.append(value)

        if entity.has_soft_delete and not include_soft_deleted:
            clauses.append(f"{entity.soft_delete_field} = %s")
            params.append(False)

        if search:
            if not entity.searchable_fields:
                raise ValueError(f"{entity.table} has no searchable columns")
            pattern = f"%{_escape_like(search.lower())}%"
            matches = [f"LOWER({c}) LIKE %s ESCAPE '\\'" for c in entity.searchable_fields]
            clauses.append(f"({' OR '.join(matches)})")
            params.extend([pattern] * len(matches))

        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params

    def _fetch_all(self, sql: str, params=()) -> list[dict]:
        conn = self._get_conn()
        try:
            with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                cur.execute(sql, params)
                return [dict(r) for r in cur.fetchall()]
        except Exception as e:
            conn.rollback()
            logger.error(f"Query on {self.entity.table} failed: {e}")
            raise PersistenceError(f"Query on {self.entity.table} failed: {e}") from e
        finally:
            self._release_conn(conn)

    def _execute(self, sql: str, params, action: str) -> Optional[int]:
        """Run a write statement; return the affected row count, or None if it failed."""
        conn = self._get_conn()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                affected = cur.rowcount
            conn.commit()
            return affected
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to {action}: {e}")
            return None
        finally:
            self._release_conn(conn)
