"""Naming strategies: deterministic database identifiers.

A naming strategy turns structural input (table identity, column names,
expressions) into final identifiers.  Strategies are stateless: identical
input always yields the identical name, and the order of column names never
matters because they are sorted before hashing.

Usage:
    from schema_sync.naming import DefaultNamingStrategy

    naming = DefaultNamingStrategy()
    naming.table_name("UserProfile", None)
    # 'user_profile'
    naming.unique_constraint_name("user_profile", ["email", "tenant_id"])
    # 'UQ_...' (27 hex characters after the tag)
"""

from typing import TYPE_CHECKING, Protocol, Union

from schema_sync.naming.strings import camel_case, sha1, snake_case, title_case

if TYPE_CHECKING:
    from schema_sync.schema.models import Table

TableOrName = Union["Table", str]

DEFAULT_POLICY_ROLE = "public"
DEFAULT_POLICY_TYPE = "permissive"


class NamingStrategy(Protocol):
    """Interface every naming strategy implements."""

    nested_set_column_names: dict[str, str]
    materialized_path_column_name: str

    def table_name(self, target_name: str, user_specified_name: str | None) -> str: ...

    def closure_junction_table_name(self, original_closure_table_name: str) -> str: ...

    def column_name(
        self, property_name: str, custom_name: str | None, embedded_prefixes: list[str]
    ) -> str: ...

    def relation_name(self, property_name: str) -> str: ...

    def primary_key_name(self, table_or_name: TableOrName, column_names: list[str]) -> str: ...

    def unique_constraint_name(
        self, table_or_name: TableOrName, column_names: list[str]
    ) -> str: ...

    def relation_constraint_name(
        self, table_or_name: TableOrName, column_names: list[str], where: str | None = None
    ) -> str: ...

    def default_constraint_name(self, table_or_name: TableOrName, column_name: str) -> str: ...

    def foreign_key_name(
        self,
        table_or_name: TableOrName,
        column_names: list[str],
        referenced_table_path: str | None = None,
        referenced_column_names: list[str] | None = None,
    ) -> str: ...

    def index_name(
        self, table_or_name: TableOrName, column_names: list[str], where: str | None = None
    ) -> str: ...

    def check_constraint_name(
        self, table_or_name: TableOrName, expression: str, is_enum: bool = False
    ) -> str: ...

    def row_level_security_policy_name(
        self,
        table_or_name: TableOrName,
        expression: str,
        role: str | None = None,
        type: str | None = None,
    ) -> str: ...

    def exclusion_constraint_name(self, table_or_name: TableOrName, expression: str) -> str: ...

    def join_column_name(self, relation_name: str, referenced_column_name: str) -> str: ...

    def join_table_name(
        self,
        first_table_name: str,
        second_table_name: str,
        first_property_name: str,
        second_property_name: str,
    ) -> str: ...

    def join_table_column_duplication_prefix(self, column_name: str, index: int) -> str: ...

    def join_table_column_name(
        self, table_name: str, property_name: str, column_name: str | None = None
    ) -> str: ...

    def join_table_inverse_column_name(
        self, table_name: str, property_name: str, column_name: str | None = None
    ) -> str: ...

    def prefix_table_name(self, prefix: str, table_name: str) -> str: ...


class DefaultNamingStrategy:
    """Naming strategy used when none is configured.

    Constraint names are ``<TAG>`` + a fixed-length prefix of the sha1 of
    ``{table}_{sorted columns}[_{extra}]``, so every generated constraint
    name stays within 30 characters.
    """

    nested_set_column_names = {"left": "nsleft", "right": "nsright"}
    materialized_path_column_name = "mpath"

    def _get_table_name(self, table_or_name: TableOrName) -> str:
        if not isinstance(table_or_name, str):
            table_or_name = table_or_name.name
        return table_or_name.split(".")[-1]

    def _columns_key(self, table_or_name: TableOrName, column_names: list[str]) -> str:
        # sorted so ["id", "name"] and ["name", "id"] give the same name
        table_name = self._get_table_name(table_or_name).replace(".", "_")
        return f"{table_name}_{'_'.join(sorted(column_names))}"

    def table_name(self, target_name: str, user_specified_name: str | None) -> str:
        """Explicit name wins, otherwise the snake-cased target name."""
        return user_specified_name if user_specified_name else snake_case(target_name)

    def closure_junction_table_name(self, original_closure_table_name: str) -> str:
        return original_closure_table_name + "_closure"

    def column_name(
        self, property_name: str, custom_name: str | None, embedded_prefixes: list[str]
    ) -> str:
        name = custom_name or property_name
        prefixes = [prefix for prefix in embedded_prefixes if prefix]
        if prefixes:
            return camel_case("_".join(prefixes)) + title_case(name)
        return name

    def relation_name(self, property_name: str) -> str:
        return property_name

    def primary_key_name(self, table_or_name: TableOrName, column_names: list[str]) -> str:
        key = self._columns_key(table_or_name, column_names)
        return "PK_" + sha1(key)[:27]

    def unique_constraint_name(self, table_or_name: TableOrName, column_names: list[str]) -> str:
        key = self._columns_key(table_or_name, column_names)
        return "UQ_" + sha1(key)[:27]

    def relation_constraint_name(
        self, table_or_name: TableOrName, column_names: list[str], where: str | None = None
    ) -> str:
        key = self._columns_key(table_or_name, column_names)
        if where:
            key += f"_{where}"
        return "REL_" + sha1(key)[:26]

    def default_constraint_name(self, table_or_name: TableOrName, column_name: str) -> str:
        table_name = self._get_table_name(table_or_name).replace(".", "_")
        key = f"{table_name}_{column_name}"
        return "DF_" + sha1(key)[:27]

    def foreign_key_name(
        self,
        table_or_name: TableOrName,
        column_names: list[str],
        referenced_table_path: str | None = None,
        referenced_column_names: list[str] | None = None,
    ) -> str:
        key = self._columns_key(table_or_name, column_names)
        return "FK_" + sha1(key)[:27]

    def index_name(
        self, table_or_name: TableOrName, column_names: list[str], where: str | None = None
    ) -> str:
        key = self._columns_key(table_or_name, column_names)
        if where:
            key += f"_{where}"
        return "IDX_" + sha1(key)[:26]

    def check_constraint_name(
        self, table_or_name: TableOrName, expression: str, is_enum: bool = False
    ) -> str:
        table_name = self._get_table_name(table_or_name).replace(".", "_")
        name = "CHK_" + sha1(f"{table_name}_{expression}")[:26]
        return f"{name}_ENUM" if is_enum else name

    def row_level_security_policy_name(
        self,
        table_or_name: TableOrName,
        expression: str,
        role: str | None = None,
        type: str | None = None,
    ) -> str:
        """Name a policy from its table, role, type and expression.

        A missing role or type is hashed as its database default
        (``public`` / ``permissive``), so spelling out the default does not
        rename the policy.
        """
        table_name = self._get_table_name(table_or_name).replace(".", "_")
        role = role or DEFAULT_POLICY_ROLE
        type = type or DEFAULT_POLICY_TYPE
        key = f"{table_name}_{role}_{type}_{expression}"
        return "RLSP_" + sha1(key)[:26]

    def exclusion_constraint_name(self, table_or_name: TableOrName, expression: str) -> str:
        table_name = self._get_table_name(table_or_name).replace(".", "_")
        return "XCL_" + sha1(f"{table_name}_{expression}")[:26]

    def join_column_name(self, relation_name: str, referenced_column_name: str) -> str:
        return camel_case(relation_name + "_" + referenced_column_name)

    def join_table_name(
        self,
        first_table_name: str,
        second_table_name: str,
        first_property_name: str,
        second_property_name: str,
    ) -> str:
        return snake_case(
            first_table_name
            + "_"
            + first_property_name.replace(".", "_")
            + "_"
            + second_table_name
        )

    def join_table_column_duplication_prefix(self, column_name: str, index: int) -> str:
        return f"{column_name}_{index}"

    def join_table_column_name(
        self, table_name: str, property_name: str, column_name: str | None = None
    ) -> str:
        return camel_case(table_name + "_" + (column_name if column_name else property_name))

    def join_table_inverse_column_name(
        self, table_name: str, property_name: str, column_name: str | None = None
    ) -> str:
        return self.join_table_column_name(table_name, property_name, column_name)

    def prefix_table_name(self, prefix: str, table_name: str) -> str:
        """Apply the globally configured table prefix (runs for every table)."""
        return prefix + table_name
