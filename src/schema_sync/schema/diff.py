"""Structural comparison of a desired table against its live counterpart.

Pure logic: no I/O, no database connections.  Objects are matched by
identifier (columns by name, constraints by name); a constraint whose body
changed shows up as dropped *and* added under the same name.

Usage:
    from schema_sync.schema.diff import diff_tables

    table_diff = diff_tables(desired, live)   # live may be None
    if not table_diff.is_empty:
        print(table_diff.summary())
"""

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from schema_sync.errors import DuplicateConstraintNameError
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

if TYPE_CHECKING:
    from schema_sync.schema.dialect import Dialect

# Column attributes compared by the differ; changing one of the first group
# needs the column to be dropped and added again.
RECREATE_ATTRIBUTES = (
    "type",
    "length",
    "precision",
    "scale",
    "is_array",
    "is_generated",
    "generation_strategy",
    "as_expression",
    "generated_type",
)
ALTER_ATTRIBUTES = ("is_nullable", "default", "comment", "enum")

_WHITESPACE = re.compile(r"\s+")
_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
_LITERAL_PLACEHOLDER = re.compile(r"\x00(\d+)\x00")
# ``::text``, ``::character varying(20)``, ``::timestamp with time zone``, ``::int[]``
_CAST = re.compile(
    r"\s*::\s*(?:[a-z_][a-z0-9_]*(?:\s+(?:varying|precision|with(?:out)?\s+time\s+zone))?)"
    r"(?:\s*\(\s*\d+(?:\s*,\s*\d+)?\s*\))?(?:\[\])*"
)
_COMPARISON = re.compile(r"\s*(?<![-<>=!~#@|&])(<>|!=|<=|>=|=|<|>)(?![<>=~#@|&])\s*")
# keywords whose parentheses belong to the construct, not to grouping
_CALL_KEYWORD = re.compile(r"\b(in|any|all|some|exists|array)\s*\($")
_SPACED_CALL_KEYWORD = re.compile(r"\b(in|any|all|some|exists)\s*\(")
_TOP_LEVEL_KEYWORD = re.compile(r"\b(and|or|select)\b")


def normalize_expression(expression: str | None) -> str | None:
    """Canonical spelling of a SQL expression, for comparison only.

    Databases store expressions rewritten: PostgreSQL adds ``::type`` casts to
    literals, wraps every operand in parentheses and folds identifiers.  Both
    sides are reduced to the same form: whitespace collapsed, casts and
    grouping parentheses around single operands removed, comparison operators
    spaced, identifiers lowercased and unquoted.  String literals are kept
    verbatim.

    Example:
        >>> normalize_expression("((tenant_id  = 1))")
        'tenant_id = 1'
        >>> normalize_expression("((tenant_id <> 'x'::text))")
        "tenant_id <> 'x'"
    """
    if expression is None:
        return None
    literals: list[str] = []

    def mask(match: re.Match) -> str:
        literals.append(match.group(0))
        return f"\x00{len(literals) - 1}\x00"

    text = _STRING_LITERAL.sub(mask, expression)
    text = _WHITESPACE.sub(" ", text.lower()).replace('"', "")
    text = _CAST.sub("", text)
    text = _COMPARISON.sub(lambda m: " <> " if m.group(1) == "!=" else f" {m.group(1)} ", text)
    text = _SPACED_CALL_KEYWORD.sub(r"\1 (", text)
    text = _strip_grouping_parentheses(text.strip())
    text = re.sub(r"\(\s+", "(", text)
    text = re.sub(r"\s+\)", ")", text)
    text = _WHITESPACE.sub(" ", text).strip()
    return _LITERAL_PLACEHOLDER.sub(lambda m: literals[int(m.group(1))], text)


def _parenthesis_pairs(text: str) -> list[tuple[int, int]] | None:
    """(open, close) positions of every parenthesis pair; None if unbalanced."""
    pairs = []
    stack = []
    for position, char in enumerate(text):
        if char == "(":
            stack.append(position)
        elif char == ")":
            if not stack:
                return None
            pairs.append((stack.pop(), position))
    return pairs if not stack else None


def _is_single_operand(inner: str) -> bool:
    """True if *inner* has no top-level comma, AND, OR or subquery."""
    depth = 0
    top_level = []
    for char in inner:
        if char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        elif depth == 0:
            if char == ",":
                return False
            top_level.append(char)
    return not _TOP_LEVEL_KEYWORD.search("".join(top_level))


def _strip_grouping_parentheses(text: str) -> str:
    """Remove parentheses that only group: doubled ones, ones around the whole
    expression and ones around a single operand."""
    while True:
        pairs = _parenthesis_pairs(text)
        if not pairs:
            return text
        removed: set[int] = set()
        for start, end in pairs:
            if start > 0 and (text[start - 1].isalnum() or text[start - 1] in "_\x00"):
                continue
            if _CALL_KEYWORD.search(text[: start + 1]):
                continue
            inner = text[start + 1:end].strip()
            whole = start == 0 and end == len(text) - 1
            doubled = inner.startswith("(") and _wraps(inner)
            if whole or doubled or _is_single_operand(inner):
                removed.update((start, end))
        if not removed:
            return text
        text = "".join(" " if i in removed else char for i, char in enumerate(text))
        text = _WHITESPACE.sub(" ", text).strip()


def _wraps(expression: str) -> bool:
    """True if the first parenthesis closes at the very end."""
    depth = 0
    for position, char in enumerate(expression):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0 and position != len(expression) - 1:
                return False
    return depth == 0


# ------------------------------------------------------------------
# Diff data classes
# ------------------------------------------------------------------


@dataclass
class ColumnChange:
    """A column present on both sides with differing attributes."""

    old: TableColumn
    new: TableColumn
    changed: list[str]

    @property
    def requires_recreate(self) -> bool:
        return any(attribute in RECREATE_ATTRIBUTES for attribute in self.changed)


@dataclass
class TableDiff:
    """Everything that differs between one desired table and the live one.

    ``live`` is ``None`` when the table does not exist yet; then
    ``create_table`` is set and the constraint lists hold what the new
    table needs beyond its columns and primary key.
    """

    table_name: str
    desired: Table
    live: Table | None = None
    create_table: bool = False
    added_columns: list[TableColumn] = field(default_factory=list)
    dropped_columns: list[TableColumn] = field(default_factory=list)
    changed_columns: list[ColumnChange] = field(default_factory=list)
    primary_key_changed: bool = False
    added_indices: list[TableIndex] = field(default_factory=list)
    dropped_indices: list[TableIndex] = field(default_factory=list)
    added_uniques: list[TableUnique] = field(default_factory=list)
    dropped_uniques: list[TableUnique] = field(default_factory=list)
    added_checks: list[TableCheck] = field(default_factory=list)
    dropped_checks: list[TableCheck] = field(default_factory=list)
    added_exclusions: list[TableExclusion] = field(default_factory=list)
    dropped_exclusions: list[TableExclusion] = field(default_factory=list)
    added_foreign_keys: list[TableForeignKey] = field(default_factory=list)
    dropped_foreign_keys: list[TableForeignKey] = field(default_factory=list)
    added_policies: list[TableRowLevelSecurityPolicy] = field(default_factory=list)
    dropped_policies: list[TableRowLevelSecurityPolicy] = field(default_factory=list)
    row_level_security_changed: bool = False
    comment_changed: bool = False

    @property
    def recreated_columns(self) -> list[ColumnChange]:
        return [change for change in self.changed_columns if change.requires_recreate]

    @property
    def altered_columns(self) -> list[ColumnChange]:
        return [change for change in self.changed_columns if not change.requires_recreate]

    @property
    def is_empty(self) -> bool:
        return not (
            self.create_table
            or self.added_columns
            or self.dropped_columns
            or self.changed_columns
            or self.primary_key_changed
            or self.added_indices
            or self.dropped_indices
            or self.added_uniques
            or self.dropped_uniques
            or self.added_checks
            or self.dropped_checks
            or self.added_exclusions
            or self.dropped_exclusions
            or self.added_foreign_keys
            or self.dropped_foreign_keys
            or self.added_policies
            or self.dropped_policies
            or self.row_level_security_changed
            or self.comment_changed
        )

    def summary(self) -> str:
        """One-line human readable summary."""
        if self.create_table:
            return f"{self.table_name}: create table"
        if self.is_empty:
            return f"{self.table_name}: in sync"
        parts = []
        for label, items in (
            ("+col", self.added_columns),
            ("-col", self.dropped_columns),
            ("~col", self.changed_columns),
            ("+idx", self.added_indices),
            ("-idx", self.dropped_indices),
            ("+uq", self.added_uniques),
            ("-uq", self.dropped_uniques),
            ("+chk", self.added_checks),
            ("-chk", self.dropped_checks),
            ("+xcl", self.added_exclusions),
            ("-xcl", self.dropped_exclusions),
            ("+fk", self.added_foreign_keys),
            ("-fk", self.dropped_foreign_keys),
            ("+policy", self.added_policies),
            ("-policy", self.dropped_policies),
        ):
            if items:
                parts.append(f"{label} {len(items)}")
        if self.primary_key_changed:
            parts.append("primary key")
        if self.row_level_security_changed:
            parts.append("row level security")
        if self.comment_changed:
            parts.append("comment")
        return f"{self.table_name}: {', '.join(parts)}"


# ------------------------------------------------------------------
# Comparison helpers
# ------------------------------------------------------------------


def _column_changes(old: TableColumn, new: TableColumn) -> list[str]:
    changed = []
    for attribute in RECREATE_ATTRIBUTES + ALTER_ATTRIBUTES:
        old_value = getattr(old, attribute)
        new_value = getattr(new, attribute)
        if attribute == "as_expression":
            old_value, new_value = normalize_expression(old_value), normalize_expression(new_value)
        if old_value != new_value:
            changed.append(attribute)
    return changed


def _body(item: BaseModel) -> Any:
    """The defining attributes of a constraint (everything except its name)."""
    if isinstance(item, TableIndex):
        return (
            tuple(item.column_names),
            item.is_unique,
            normalize_expression(item.where),
            item.is_spatial,
            item.is_fulltext,
        )
    if isinstance(item, TableUnique):
        return tuple(sorted(item.column_names))
    if isinstance(item, (TableCheck, TableExclusion)):
        return normalize_expression(item.expression)
    if isinstance(item, TableForeignKey):
        return (
            tuple(item.column_names),
            item.referenced_table_path,
            tuple(item.referenced_column_names),
            item.on_delete.upper(),
            item.on_update.upper(),
            item.deferrable,
        )
    if isinstance(item, TableRowLevelSecurityPolicy):
        return (normalize_expression(item.expression), item.role, item.type)
    raise TypeError(f"Not a constraint: {type(item).__name__}")


def _kind(item: BaseModel) -> str:
    return {
        TableIndex: "index",
        TableUnique: "unique",
        TableCheck: "check",
        TableExclusion: "exclusion",
        TableForeignKey: "foreign key",
        TableRowLevelSecurityPolicy: "policy",
    }[type(item)]


def check_duplicate_names(table: Table) -> None:
    """Raise if two different constraints of *table* share one name.

    Raises:
        DuplicateConstraintNameError: On the first conflicting pair.
    """
    seen: dict[str, BaseModel] = {}
    constraints: list[BaseModel] = [
        *table.indices,
        *table.uniques,
        *table.checks,
        *table.exclusions,
        *table.foreign_keys,
        *table.row_level_security_policies,
    ]
    for item in constraints:
        name = item.name
        previous = seen.get(name)
        if previous is None:
            seen[name] = item
            continue
        if type(previous) is not type(item) or _body(previous) != _body(item):
            raise DuplicateConstraintNameError(table.name, name, (_kind(previous), _kind(item)))


def _match(
    desired: list, live: list, rebuilt_columns: set[str]
) -> tuple[list, list]:
    """Added and dropped constraints between *desired* and *live*.

    Constraints on a rebuilt column are dropped and added again.
    """
    def touches(item: Any) -> bool:
        return bool(rebuilt_columns & set(getattr(item, "column_names", [])))

    live_by_name = {item.name: item for item in live}
    desired_by_name = {item.name: item for item in desired}

    added = []
    for item in desired:
        current = live_by_name.get(item.name)
        if current is None or _body(current) != _body(item) or touches(item):
            added.append(item)
    dropped = []
    for item in live:
        wanted = desired_by_name.get(item.name)
        if wanted is None or _body(wanted) != _body(item) or touches(item):
            dropped.append(item)
    return added, dropped


# ------------------------------------------------------------------
# Diff
# ------------------------------------------------------------------


def diff_tables(desired: Table, live: Table | None, dialect: "Dialect | None" = None) -> TableDiff:
    """Compare *desired* against *live* (``None`` when the table is missing).

    Args:
        desired: Table built from entity metadata.
        live: Introspected table, or ``None``.
        dialect: Target dialect.  Without ALTER COLUMN support every changed
            column is dropped and added again, so constraints on it are
            re-created as well.

    Returns:
        ``TableDiff`` describing every difference.

    Raises:
        DuplicateConstraintNameError: If *desired* reuses a constraint name
            for two different definitions.

    Examples:
        >>> desired = Table(name="t", columns=[TableColumn(name="id", type="integer")])
        >>> diff_tables(desired, None).create_table
        True
        >>> diff_tables(desired, desired.clone()).is_empty
        True
    """
    check_duplicate_names(desired)
    table_diff = TableDiff(table_name=desired.name, desired=desired, live=live)
    managed_indices = [index for index in desired.indices if index.synchronize]

    if live is None:
        table_diff.create_table = True
        table_diff.added_indices = managed_indices
        table_diff.added_uniques = list(desired.uniques)
        table_diff.added_checks = list(desired.checks)
        table_diff.added_exclusions = list(desired.exclusions)
        table_diff.added_foreign_keys = list(desired.foreign_keys)
        table_diff.added_policies = list(desired.row_level_security_policies)
        table_diff.row_level_security_changed = desired.row_level_security is not None
        return table_diff

    desired_columns = {c.name: c for c in desired.columns}
    live_columns = {c.name: c for c in live.columns}

    table_diff.added_columns = [c for c in desired.columns if c.name not in live_columns]
    table_diff.dropped_columns = [c for c in live.columns if c.name not in desired_columns]
    for column in desired.columns:
        current = live_columns.get(column.name)
        if current is None:
            continue
        changed = _column_changes(current, column)
        if changed:
            table_diff.changed_columns.append(ColumnChange(old=current, new=column, changed=changed))

    rebuilt_changes = table_diff.recreated_columns
    if dialect is not None and not dialect.supports_alter_column:
        rebuilt_changes = table_diff.changed_columns
    rebuilt = {change.new.name for change in rebuilt_changes}

    desired_pk = sorted(c.name for c in desired.primary_columns)
    live_pk = sorted(c.name for c in live.primary_columns)
    pk_name_differs = (
        live.primary_key_name is not None
        and desired.primary_key_name is not None
        and live.primary_key_name != desired.primary_key_name
    )
    table_diff.primary_key_changed = (
        desired_pk != live_pk or pk_name_differs or bool(rebuilt & set(desired_pk))
    )

    # indices that are not synchronized are neither created nor dropped
    unmanaged = {index.name for index in desired.indices if not index.synchronize}
    live_indices = [index for index in live.indices if index.name not in unmanaged]
    table_diff.added_indices, table_diff.dropped_indices = _match(managed_indices, live_indices, rebuilt)
    table_diff.added_uniques, table_diff.dropped_uniques = _match(desired.uniques, live.uniques, rebuilt)
    table_diff.added_checks, table_diff.dropped_checks = _match(desired.checks, live.checks, set())
    table_diff.added_exclusions, table_diff.dropped_exclusions = _match(
        desired.exclusions, live.exclusions, set()
    )
    table_diff.added_foreign_keys, table_diff.dropped_foreign_keys = _match(
        desired.foreign_keys, live.foreign_keys, rebuilt
    )
    table_diff.added_policies, table_diff.dropped_policies = _match(
        desired.row_level_security_policies, live.row_level_security_policies, set()
    )
    table_diff.row_level_security_changed = desired.row_level_security != live.row_level_security
    table_diff.comment_changed = (desired.comment or None) != (live.comment or None)
    return table_diff
