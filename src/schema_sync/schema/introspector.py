"""PostgreSQL live schema introspection via information_schema and pg_catalog.

Reads one table at a time into the canonical ``Table`` model:

- columns: type, length, numeric precision/scale, nullability, default,
  serial/identity/uuid generation, generated expressions, comments, arrays
- primary key, unique, check, foreign key and exclusion constraints
- indices that do not back a constraint
- row-level security state and ``pg_policies``
- table comment

Values are normalized to the spelling desired tables use, so a schema that
was just synchronized compares equal to its metadata.

Uses psycopg (v3) async connections.

Usage:
    async with PostgresIntrospector(database_url) as introspector:
        table = await introspector.get_table("public.tenant")
        names = await introspector.list_tables()
"""

import logging
import re

import psycopg
from psycopg import AsyncConnection

from schema_sync.metadata.types import RowLevelSecurityOptions
from schema_sync.schema.dialect import PostgresDialect
from schema_sync.schema.models import (
    Table,
    TableCheck,
    TableColumn,
    TableExclusion,
    TableForeignKey,
    TableIndex,
    TableRowLevelSecurityPolicy,
    TableUnique,
)

logger = logging.getLogger(__name__)

_FK_ACTIONS = {
    "a": "NO ACTION",
    "r": "RESTRICT",
    "c": "CASCADE",
    "n": "SET NULL",
    "d": "SET DEFAULT",
}
_UUID_DEFAULTS = ("gen_random_uuid()", "uuid_generate_v4()")
_LITERAL_CAST = re.compile(r"^('(?:[^']|'')*')::[\w\s\[\]\"]+$")
_NUMERIC_CAST = re.compile(r"^\(?(-?[\d.]+)\)?::[\w\s]+$")
_ENUM_VALUE = re.compile(r"'((?:[^']|'')*)'")


def normalize_default(default: str | None) -> str | None:
    """Strip the type casts postgres adds to literal defaults.

    Examples:
        >>> normalize_default("'active'::character varying")
        "'active'"
        >>> normalize_default("(-1)::integer")
        '-1'
        >>> normalize_default("now()")
        'now()'
    """
    if default is None:
        return None
    default = default.strip()
    match = _LITERAL_CAST.match(default)
    if match:
        return match.group(1)
    match = _NUMERIC_CAST.match(default)
    if match:
        return match.group(1)
    return default


def strip_constraint_keyword(definition: str, keyword: str) -> str:
    """``CHECK ((x > 0))`` -> ``(x > 0)``; ``EXCLUDE USING gist (...)`` -> ``USING gist (...)``."""
    definition = definition.strip()
    if definition.upper().startswith(keyword):
        definition = definition[len(keyword):].strip()
    return definition


class PostgresIntrospector:
    """Introspects PostgreSQL tables into ``Table`` models.

    Implements the ``LiveSchemaIntrospector`` protocol.

    Args:
        database_url: PostgreSQL connection URL.
        default_schema: Schema used for unqualified table paths.
        qualify_default_schema: Report tables of the default schema as
            ``schema.table`` (set when entities declare their schema).
        excluded_tables: Tables never reported by ``list_tables``.
        connect_timeout: Connection timeout in seconds.

    Usage:
        async with PostgresIntrospector(url, excluded_tables={"migrations"}) as introspector:
            table = await introspector.get_table("tenant")
    """

    # Tables to exclude from introspection (system tables)
    DEFAULT_EXCLUDED_TABLES = frozenset({
        "schema_migrations",
        "pg_stat_statements",
        "spatial_ref_sys",
    })

    def __init__(
        self,
        database_url: str,
        default_schema: str = "public",
        qualify_default_schema: bool = False,
        excluded_tables: set[str] | frozenset[str] | None = None,
        connect_timeout: int = 10,
    ) -> None:
        self._database_url = database_url
        self.default_schema = default_schema
        self.qualify_default_schema = qualify_default_schema
        self.excluded_tables = (
            frozenset(excluded_tables) if excluded_tables is not None else self.DEFAULT_EXCLUDED_TABLES
        )
        self._connect_timeout = connect_timeout
        self._conn: AsyncConnection | None = None
        self._dialect = PostgresDialect()

    async def __aenter__(self) -> "PostgresIntrospector":
        """Async context manager entry - opens connection."""
        self._conn = await psycopg.AsyncConnection.connect(
            self._database_url,
            connect_timeout=self._connect_timeout,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - closes connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def test_connection(self) -> bool:
        """Run ``SELECT 1``.

        Raises:
            ConnectionError: If the query fails.
        """
        try:
            async with self._connection().cursor() as cur:
                await cur.execute("SELECT 1")
                await cur.fetchone()
        except psycopg.Error as e:
            raise ConnectionError(f"Connection test failed: {e}") from e
        return True

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def _connection(self) -> AsyncConnection:
        if not self._conn:
            raise RuntimeError("Introspector not connected. Use async with statement.")
        return self._conn

    def split_path(self, path: str) -> tuple[str, str]:
        """``schema.table`` -> (schema, table); a bare name uses the default schema."""
        if "." in path:
            schema_name, table_name = path.rsplit(".", 1)
            return schema_name, table_name
        return self.default_schema, path

    def build_path(self, schema_name: str, table_name: str) -> str:
        if schema_name == self.default_schema and not self.qualify_default_schema:
            return table_name
        return f"{schema_name}.{table_name}"

    async def _fetchall(self, query: str, params: tuple) -> list[tuple]:
        async with self._connection().cursor() as cur:
            await cur.execute(query, params)
            return await cur.fetchall()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def list_tables(self) -> list[str]:
        """Paths of the base tables in the default schema."""
        query = """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = %s
              AND table_type = 'BASE TABLE'
            ORDER BY table_name
        """
        rows = await self._fetchall(query, (self.default_schema,))
        return [
            self.build_path(self.default_schema, row[0])
            for row in rows
            if row[0] not in self.excluded_tables
        ]

    async def get_table(self, path: str) -> Table | None:
        """Read the table at *path*; ``None`` if it does not exist."""
        schema_name, table_name = self.split_path(path)
        info = await self._get_table_info(schema_name, table_name)
        if info is None:
            return None
        oid, rls_enabled, rls_forced, comment = info

        table = Table(
            name=path,
            schema_name=schema_name if "." in path else None,
            columns=await self._get_columns(schema_name, table_name, oid),
            comment=comment,
        )
        if rls_enabled:
            table.row_level_security = RowLevelSecurityOptions(force=bool(rls_forced))
        await self._read_constraints(table, oid)
        table.indices = await self._get_indices(oid)
        table.row_level_security_policies = await self._get_policies(schema_name, table_name)
        logger.debug(f"Introspected {path}: {len(table.columns)} columns")
        return table

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def _get_table_info(self, schema_name: str, table_name: str) -> tuple | None:
        query = """
            SELECT c.oid, c.relrowsecurity, c.relforcerowsecurity,
                   obj_description(c.oid, 'pg_class')
            FROM pg_class c
            JOIN pg_namespace n ON n.oid = c.relnamespace
            WHERE n.nspname = %s
              AND c.relname = %s
              AND c.relkind IN ('r', 'p')
        """
        rows = await self._fetchall(query, (schema_name, table_name))
        return rows[0] if rows else None

    async def _get_columns(self, schema_name: str, table_name: str, oid: int) -> list[TableColumn]:
        query = """
            SELECT
                c.column_name,
                c.data_type,
                c.udt_name,
                c.character_maximum_length,
                c.numeric_precision,
                c.numeric_scale,
                c.is_nullable,
                c.column_default,
                c.is_identity,
                c.is_generated,
                c.generation_expression,
                col_description(%s, c.ordinal_position::int)
            FROM information_schema.columns c
            WHERE c.table_schema = %s
              AND c.table_name = %s
            ORDER BY c.ordinal_position
        """
        columns = []
        for row in await self._fetchall(query, (oid, schema_name, table_name)):
            (
                name,
                data_type,
                udt_name,
                length,
                precision,
                scale,
                is_nullable,
                default,
                is_identity,
                is_generated,
                expression,
                comment,
            ) = row

            is_array = data_type == "ARRAY"
            if is_array or data_type == "USER-DEFINED":
                type = self._dialect.normalize_type(udt_name)
            else:
                type = self._dialect.normalize_type(data_type)

            column = TableColumn(
                name=name,
                type=type,
                length=length,
                is_nullable=is_nullable == "YES",
                default=normalize_default(default),
                comment=comment,
                is_array=is_array,
            )
            if type == "numeric":
                column.precision = precision
                column.scale = scale
            if is_identity == "YES":
                column.is_generated = True
                column.generation_strategy = "identity"
            elif default and default.startswith("nextval("):
                column.is_generated = True
                column.generation_strategy = "increment"
                column.default = None
            elif type == "uuid" and default in _UUID_DEFAULTS:
                column.is_generated = True
                column.generation_strategy = "uuid"
                column.default = None
            if is_generated == "ALWAYS" and expression:
                column.as_expression = expression
                column.generated_type = "STORED"
                column.default = None
            columns.append(column)
        return columns

    async def _read_constraints(self, table: Table, oid: int) -> None:
        """Primary key, uniques, checks, foreign keys and exclusions of *table*."""
        query = """
            SELECT
                con.conname,
                con.contype,
                ARRAY(
                    SELECT a.attname
                    FROM unnest(con.conkey) WITH ORDINALITY AS k(attnum, ord)
                    JOIN pg_attribute a ON a.attrelid = con.conrelid AND a.attnum = k.attnum
                    ORDER BY k.ord
                ),
                pg_get_constraintdef(con.oid),
                rn.nspname,
                rc.relname,
                ARRAY(
                    SELECT a.attname
                    FROM unnest(con.confkey) WITH ORDINALITY AS k(attnum, ord)
                    JOIN pg_attribute a ON a.attrelid = con.confrelid AND a.attnum = k.attnum
                    ORDER BY k.ord
                ),
                con.confdeltype,
                con.confupdtype,
                con.condeferrable,
                con.condeferred
            FROM pg_constraint con
            LEFT JOIN pg_class rc ON rc.oid = con.confrelid
            LEFT JOIN pg_namespace rn ON rn.oid = rc.relnamespace
            WHERE con.conrelid = %s
            ORDER BY con.conname
        """
        for row in await self._fetchall(query, (oid,)):
            (
                name,
                kind,
                columns,
                definition,
                ref_schema,
                ref_table,
                ref_columns,
                on_delete,
                on_update,
                deferrable,
                deferred,
            ) = row
            columns = list(columns or [])

            if kind == "p":
                table.primary_key_name = name
                for column in table.columns:
                    if column.name in columns:
                        column.is_primary = True
            elif kind == "u":
                table.uniques.append(TableUnique(name=name, column_names=columns))
            elif kind == "c":
                table.checks.append(self._check(table, name, columns, definition))
            elif kind == "f":
                table.foreign_keys.append(
                    TableForeignKey(
                        name=name,
                        column_names=columns,
                        referenced_table_path=self.build_path(ref_schema, ref_table),
                        referenced_column_names=list(ref_columns or []),
                        on_delete=_FK_ACTIONS.get(on_delete, "NO ACTION"),
                        on_update=_FK_ACTIONS.get(on_update, "NO ACTION"),
                        deferrable=(
                            ("INITIALLY DEFERRED" if deferred else "INITIALLY IMMEDIATE")
                            if deferrable
                            else None
                        ),
                    )
                )
            elif kind == "x":
                table.exclusions.append(
                    TableExclusion(name=name, expression=strip_constraint_keyword(definition, "EXCLUDE"))
                )

    def _check(self, table: Table, name: str, columns: list[str], definition: str) -> TableCheck:
        """A check constraint; enum checks also restore the column's ``enum`` values."""
        expression = strip_constraint_keyword(definition, "CHECK")
        if not name.endswith("_ENUM") or len(columns) != 1:
            return TableCheck(name=name, expression=expression)

        values = [value.replace("''", "'") for value in _ENUM_VALUE.findall(expression)]
        column = table.find_column_by_name(columns[0])
        if column is not None:
            column.enum = values
        literals = ", ".join(self._dialect.quote_literal(value) for value in values)
        return TableCheck(name=name, expression=f"{self._dialect.quote(columns[0])} IN ({literals})")

    async def _get_indices(self, oid: int) -> list[TableIndex]:
        """Indices of the table, except the ones backing a constraint."""
        query = """
            SELECT
                ic.relname,
                ix.indisunique,
                am.amname,
                pg_get_expr(ix.indpred, ix.indrelid),
                ARRAY(
                    SELECT a.attname
                    FROM unnest(ix.indkey) WITH ORDINALITY AS k(attnum, ord)
                    JOIN pg_attribute a ON a.attrelid = ix.indrelid AND a.attnum = k.attnum
                    ORDER BY k.ord
                )
            FROM pg_index ix
            JOIN pg_class ic ON ic.oid = ix.indexrelid
            JOIN pg_am am ON am.oid = ic.relam
            WHERE ix.indrelid = %s
              AND NOT EXISTS (
                  SELECT 1 FROM pg_constraint con
                  WHERE con.conrelid = ix.indrelid AND con.conindid = ix.indexrelid
              )
            ORDER BY ic.relname
        """
        return [
            TableIndex(
                name=name,
                column_names=list(columns or []),
                is_unique=bool(is_unique),
                where=where,
                is_spatial=method == "gist",
            )
            for name, is_unique, method, where, columns in await self._fetchall(query, (oid,))
        ]

    async def _get_policies(self, schema_name: str, table_name: str) -> list[TableRowLevelSecurityPolicy]:
        query = """
            SELECT policyname, permissive, roles, qual
            FROM pg_policies
            WHERE schemaname = %s
              AND tablename = %s
            ORDER BY policyname
        """
        policies = []
        for name, permissive, roles, qual in await self._fetchall(query, (schema_name, table_name)):
            roles = list(roles or ["public"])
            policies.append(
                TableRowLevelSecurityPolicy(
                    name=name,
                    expression=qual or "",
                    role=roles[0],
                    type=(permissive or "PERMISSIVE").lower(),
                )
            )
        return policies
