"""SQL dialects: identifier rules, type normalization and literal rendering.

A dialect answers the database-specific questions the rest of the package
asks: how long identifiers may be, how table paths and identifiers are
written, which canonical spelling a column type has, and which features
(row-level security, exclusion constraints, ``IF EXISTS``) exist.

Usage:
    from schema_sync.schema.dialect import get_dialect

    dialect = get_dialect("postgres")
    dialect.build_table_name("tenant", "public")
    # 'public.tenant'
    dialect.normalize_type("int4")
    # 'integer'
"""

from typing import Any

from schema_sync.metadata.types import RawSql


class Dialect:
    """Base dialect; subclasses override the class attributes and hooks."""

    name: str = "generic"
    max_identifier_length: int = 0  # 0 means unlimited
    supports_row_level_security: bool = False
    supports_exclusions: bool = False
    supports_if_exists: bool = True  # DROP TABLE IF EXISTS / CREATE TABLE IF NOT EXISTS
    supports_constraint_if_exists: bool = False  # the same for columns, constraints, indices
    supports_comments: bool = False
    supports_alter_column: bool = True

    identifier_quote: tuple[str, str] = ('"', '"')

    type_aliases: dict[str, str] = {}
    default_varchar_length: int | None = None

    def quote(self, identifier: str) -> str:
        """Quote one identifier (a dotted path is quoted segment by segment)."""
        start, end = self.identifier_quote
        return ".".join(f"{start}{part}{end}" for part in identifier.split("."))

    def build_table_name(
        self, table_name: str, schema: str | None = None, database: str | None = None
    ) -> str:
        return ".".join(part for part in (schema, table_name) if part)

    def normalize_type(
        self,
        type: str | None,
        generation_strategy: str | None = None,
        is_array: bool = False,
    ) -> str:
        """Canonical spelling of *type*; infers one when *type* is ``None``."""
        if type is None:
            type = self.infer_type(generation_strategy)
        type = type.lower().strip()
        return self.type_aliases.get(type, type)

    def infer_type(self, generation_strategy: str | None) -> str:
        if generation_strategy == "uuid":
            return "uuid"
        if generation_strategy in ("increment", "identity", "rowid"):
            return "integer"
        return "varchar"

    def normalize_length(self, type: str, length: int | None) -> int | None:
        if length is None and type in ("character varying", "varchar"):
            return self.default_varchar_length
        return length

    def normalize_default(self, value: Any) -> str | None:
        """Render a default value as the SQL text the database reports back."""
        if value is None:
            return None
        if isinstance(value, RawSql):
            return value.sql
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return self.quote_literal(str(value))

    def quote_literal(self, value: str) -> str:
        escaped = value.replace("'", "''")
        return f"'{escaped}'"

    def column_type_sql(
        self,
        type: str,
        length: int | None = None,
        precision: int | None = None,
        scale: int | None = None,
        is_array: bool = False,
    ) -> str:
        sql = type
        if length is not None:
            sql = f"{sql}({length})"
        elif precision is not None and scale is not None:
            sql = f"{sql}({precision},{scale})"
        elif precision is not None:
            sql = f"{sql}({precision})"
        return sql

    def generated_column_sql(self, type: str, generation_strategy: str) -> tuple[str, str | None]:
        """Type SQL and default for a database-generated column."""
        return type, None


class PostgresDialect(Dialect):
    name = "postgres"
    max_identifier_length = 63
    supports_row_level_security = True
    supports_exclusions = True
    supports_constraint_if_exists = True
    supports_comments = True

    type_aliases = {
        "int": "integer",
        "int4": "integer",
        "int2": "smallint",
        "int8": "bigint",
        "varchar": "character varying",
        "char": "character",
        "bool": "boolean",
        "float4": "real",
        "float8": "double precision",
        "float": "double precision",
        "decimal": "numeric",
        "timestamptz": "timestamp with time zone",
        "timestamp": "timestamp without time zone",
        "timetz": "time with time zone",
        "time": "time without time zone",
    }

    def normalize_type(
        self,
        type: str | None,
        generation_strategy: str | None = None,
        is_array: bool = False,
    ) -> str:
        type = super().normalize_type(type, generation_strategy, is_array)
        # information_schema reports arrays as "ARRAY" and the element as udt "_int4"
        if type.startswith("_"):
            type = self.type_aliases.get(type[1:], type[1:])
        return type

    def column_type_sql(
        self,
        type: str,
        length: int | None = None,
        precision: int | None = None,
        scale: int | None = None,
        is_array: bool = False,
    ) -> str:
        sql = super().column_type_sql(type, length, precision, scale)
        return f"{sql}[]" if is_array else sql

    def generated_column_sql(self, type: str, generation_strategy: str) -> tuple[str, str | None]:
        if generation_strategy == "increment":
            serial = {"smallint": "SMALLSERIAL", "bigint": "BIGSERIAL"}.get(type, "SERIAL")
            return serial, None
        if generation_strategy == "identity":
            return f"{type} GENERATED BY DEFAULT AS IDENTITY", None
        if generation_strategy == "uuid":
            return type, "gen_random_uuid()"
        return type, None


class MysqlDialect(Dialect):
    name = "mysql"
    max_identifier_length = 64
    identifier_quote = ("`", "`")
    supports_comments = True
    default_varchar_length = 255

    type_aliases = {
        "integer": "int",
        "bool": "tinyint",
        "boolean": "tinyint",
        "character varying": "varchar",
        "double precision": "double",
        "numeric": "decimal",
    }

    def build_table_name(
        self, table_name: str, schema: str | None = None, database: str | None = None
    ) -> str:
        return ".".join(part for part in (database, table_name) if part)

    def infer_type(self, generation_strategy: str | None) -> str:
        if generation_strategy == "uuid":
            return "varchar"
        return super().infer_type(generation_strategy)

    def normalize_length(self, type: str, length: int | None) -> int | None:
        if length is None and type == "varchar":
            return self.default_varchar_length
        return length

    def generated_column_sql(self, type: str, generation_strategy: str) -> tuple[str, str | None]:
        if generation_strategy in ("increment", "identity"):
            return f"{type} AUTO_INCREMENT", None
        return type, None


class SqliteDialect(Dialect):
    name = "sqlite"
    max_identifier_length = 0
    supports_alter_column = False

    type_aliases = {
        "int": "integer",
        "character varying": "varchar",
        "bool": "boolean",
    }

    def build_table_name(
        self, table_name: str, schema: str | None = None, database: str | None = None
    ) -> str:
        return table_name

    def infer_type(self, generation_strategy: str | None) -> str:
        if generation_strategy == "uuid":
            return "varchar"
        return super().infer_type(generation_strategy)

    def generated_column_sql(self, type: str, generation_strategy: str) -> tuple[str, str | None]:
        if generation_strategy in ("increment", "rowid"):
            return "integer", None
        return type, None


class MssqlDialect(Dialect):
    name = "mssql"
    max_identifier_length = 128
    identifier_quote = ("[", "]")
    supports_if_exists = False
    default_varchar_length = 255

    type_aliases = {
        "integer": "int",
        "character varying": "varchar",
        "boolean": "bit",
        "bool": "bit",
        "uuid": "uniqueidentifier",
        "double precision": "float",
    }

    def build_table_name(
        self, table_name: str, schema: str | None = None, database: str | None = None
    ) -> str:
        return ".".join(part for part in (database, schema, table_name) if part)

    def infer_type(self, generation_strategy: str | None) -> str:
        if generation_strategy == "uuid":
            return "uniqueidentifier"
        return super().infer_type(generation_strategy)

    def normalize_length(self, type: str, length: int | None) -> int | None:
        if length is None and type in ("varchar", "nvarchar"):
            return self.default_varchar_length
        return length

    def generated_column_sql(self, type: str, generation_strategy: str) -> tuple[str, str | None]:
        if generation_strategy in ("increment", "identity"):
            return f"{type} IDENTITY(1,1)", None
        if generation_strategy == "uuid":
            return type, "NEWSEQUENTIALID()"
        return type, None


_DIALECTS: dict[str, type[Dialect]] = {
    "postgres": PostgresDialect,
    "postgresql": PostgresDialect,
    "mysql": MysqlDialect,
    "mariadb": MysqlDialect,
    "sqlite": SqliteDialect,
    "mssql": MssqlDialect,
}


def get_dialect(name: str) -> Dialect:
    """Return a dialect instance by name.

    Raises:
        ValueError: If the dialect is unknown.
    """
    try:
        return _DIALECTS[name.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown dialect '{name}'. Available: {', '.join(sorted(_DIALECTS))}"
        ) from None
