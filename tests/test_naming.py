"""Tests for naming: string helpers and the default naming strategy.

Verifies that generated identifiers are deterministic, independent of column
order, and keep their fixed lengths:
- PK_/UQ_/FK_ names are 30 characters, IDX_/REL_/CHK_/XCL_/RLSP_ as well
- enum checks carry an _ENUM suffix
- policy names hash role and type with public/permissive defaults
"""

import pytest

from schema_sync.naming import DefaultNamingStrategy
from schema_sync.naming.strings import (
    camel_case,
    sha1,
    shorten,
    shorten_identifier,
    snake_case,
    title_case,
)


@pytest.fixture
def naming() -> DefaultNamingStrategy:
    return DefaultNamingStrategy()


# ============================================================
# Test: String helpers
# ============================================================


class TestStringHelpers:
    """Verify case conversion and shortening helpers."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("PostCategory", "post_category"),
            ("postCategory", "post_category"),
            ("HTMLPage", "html_page"),
            ("tenant", "tenant"),
        ],
    )
    def test_snake_case(self, value: str, expected: str) -> None:
        """snake_case splits camel case words with underscores."""
        assert snake_case(value) == expected

    def test_camel_case(self) -> None:
        """camel_case joins underscore-separated words."""
        assert camel_case("user_id") == "userId"
        assert camel_case("post_category_id") == "postCategoryId"
        assert camel_case("profile") == "profile"

    def test_camel_case_lowers_leading_capital(self) -> None:
        """A leading capital is lowered."""
        assert camel_case("User_id") == "userId"

    def test_title_case(self) -> None:
        """title_case capitalizes the first letter and lowers the rest."""
        assert title_case("street") == "Street"
        assert title_case("streetName") == "Streetname"

    def test_sha1_is_hex(self) -> None:
        """sha1 returns a 40 character hex digest."""
        digest = sha1("tenant_id")
        assert len(digest) == 40
        int(digest, 16)

    def test_shorten_camel_case_segments(self) -> None:
        """Camel-cased segments keep two characters per term."""
        assert shorten("OrderItemList") == "OrItLi"
        assert shorten("company__OrderItem") == "comp__OrIt"

    def test_shorten_identifier_keeps_short_names(self) -> None:
        """Names within the limit are returned unchanged."""
        assert shorten_identifier("tenant", 63) == "tenant"

    def test_shorten_identifier_zero_means_unlimited(self) -> None:
        """A limit of zero disables shortening."""
        name = "x" * 200
        assert shorten_identifier(name, 0) == name

    def test_shorten_identifier_fits_limit(self) -> None:
        """Long names are cut to the limit with a stable hash suffix."""
        name = "customer_order_line_item"
        short = shorten_identifier(name, 10)
        assert len(short) <= 10
        assert short == shorten_identifier(name, 10)
        assert short.endswith(sha1(name)[:8])

    def test_shorten_identifier_shortens_segments_first(self) -> None:
        """Segment shortening is used when it already fits."""
        assert shorten_identifier("customer_order_line_item", 20) == "cus_ord_lin_ite"


# ============================================================
# Test: Table and column names
# ============================================================


class TestTableAndColumnNames:
    """Verify table, column and join names."""

    def test_table_name_from_target(self, naming: DefaultNamingStrategy) -> None:
        """Table names default to the snake-cased target name."""
        assert naming.table_name("UserProfile", None) == "user_profile"

    def test_explicit_table_name_wins(self, naming: DefaultNamingStrategy) -> None:
        """An explicit table name is used as-is."""
        assert naming.table_name("UserProfile", "profiles") == "profiles"

    def test_closure_junction_table_name(self, naming: DefaultNamingStrategy) -> None:
        assert naming.closure_junction_table_name("category") == "category_closure"

    def test_column_name_without_prefix(self, naming: DefaultNamingStrategy) -> None:
        """Plain columns keep their custom name or property name."""
        assert naming.column_name("email", None, []) == "email"
        assert naming.column_name("email", "email_address", []) == "email_address"

    def test_column_name_with_embedded_prefix(self, naming: DefaultNamingStrategy) -> None:
        """Embedded columns are prefixed in camel case."""
        assert naming.column_name("street", None, ["address"]) == "addressStreet"
        assert naming.column_name("street", None, ["home", "address"]) == "homeAddressStreet"

    def test_empty_prefixes_ignored(self, naming: DefaultNamingStrategy) -> None:
        """Empty prefixes (prefix disabled) do not change the name."""
        assert naming.column_name("street", None, [""]) == "street"

    def test_join_column_name(self, naming: DefaultNamingStrategy) -> None:
        assert naming.join_column_name("owner", "id") == "ownerId"

    def test_join_table_name(self, naming: DefaultNamingStrategy) -> None:
        """Junction tables are named from the owner, its property and the inverse table."""
        assert naming.join_table_name("post", "category", "categories", "posts") == "post_categories_category"

    def test_join_table_name_with_embedded_property(self, naming: DefaultNamingStrategy) -> None:
        """Dots of embedded property paths become underscores."""
        assert naming.join_table_name("user", "tag", "profile.tags", "") == "user_profile_tags_tag"

    def test_join_table_column_names(self, naming: DefaultNamingStrategy) -> None:
        assert naming.join_table_column_name("post", "id") == "postId"
        assert naming.join_table_inverse_column_name("category", "id", "uuid") == "categoryUuid"

    def test_duplication_prefix(self, naming: DefaultNamingStrategy) -> None:
        assert naming.join_table_column_duplication_prefix("userId", 2) == "userId_2"

    def test_prefix_table_name(self, naming: DefaultNamingStrategy) -> None:
        assert naming.prefix_table_name("app_", "tenant") == "app_tenant"


# ============================================================
# Test: Constraint names
# ============================================================


class TestConstraintNames:
    """Verify hashed constraint names."""

    def test_primary_key_name_shape(self, naming: DefaultNamingStrategy) -> None:
        """PK names are PK_ plus 27 hex characters."""
        name = naming.primary_key_name("tenant", ["id"])
        assert name.startswith("PK_")
        assert len(name) == 30

    def test_column_order_does_not_matter(self, naming: DefaultNamingStrategy) -> None:
        """Column names are sorted before hashing."""
        assert naming.unique_constraint_name("t", ["a", "b"]) == naming.unique_constraint_name("t", ["b", "a"])
        assert naming.index_name("t", ["a", "b"]) == naming.index_name("t", ["b", "a"])

    def test_schema_is_ignored(self, naming: DefaultNamingStrategy) -> None:
        """Only the last path segment of the table contributes to the name."""
        assert naming.primary_key_name("public.tenant", ["id"]) == naming.primary_key_name("tenant", ["id"])

    def test_tags_and_lengths(self, naming: DefaultNamingStrategy) -> None:
        """Each constraint kind has its own tag and a fixed length."""
        names = {
            "UQ_": naming.unique_constraint_name("t", ["a"]),
            "FK_": naming.foreign_key_name("t", ["a"], "u", ["id"]),
            "REL_": naming.relation_constraint_name("t", ["a"]),
            "IDX_": naming.index_name("t", ["a"]),
            "CHK_": naming.check_constraint_name("t", "a > 0"),
            "XCL_": naming.exclusion_constraint_name("t", "USING gist (a WITH =)"),
            "RLSP_": naming.row_level_security_policy_name("t", "a = 1"),
            "DF_": naming.default_constraint_name("t", "a"),
        }
        for tag, name in names.items():
            assert name.startswith(tag)
            assert len(name) == 30 or (tag == "RLSP_" and len(name) == 31)

    def test_index_where_changes_name(self, naming: DefaultNamingStrategy) -> None:
        """A partial index is named differently from a full one."""
        assert naming.index_name("t", ["a"]) != naming.index_name("t", ["a"], "a IS NOT NULL")

    def test_enum_check_suffix(self, naming: DefaultNamingStrategy) -> None:
        """Enum checks end in _ENUM and otherwise match the plain check name."""
        plain = naming.check_constraint_name("t", "x IN ('a')")
        enum = naming.check_constraint_name("t", "x IN ('a')", is_enum=True)
        assert enum == plain + "_ENUM"

    def test_names_are_deterministic(self, naming: DefaultNamingStrategy) -> None:
        """A fresh strategy instance yields identical names."""
        other = DefaultNamingStrategy()
        assert naming.foreign_key_name("order", ["customerId"]) == other.foreign_key_name("order", ["customerId"])


# ============================================================
# Test: Row level security policy names
# ============================================================


class TestPolicyNames:
    """Verify policy names depend on role, type and expression."""

    def test_defaults_equal_explicit_defaults(self, naming: DefaultNamingStrategy) -> None:
        """Omitting role/type is the same as spelling out public/permissive."""
        implicit = naming.row_level_security_policy_name("tenant", "tenant_id = 1")
        explicit = naming.row_level_security_policy_name("tenant", "tenant_id = 1", "public", "permissive")
        assert implicit == explicit

    def test_role_and_type_give_distinct_names(self, naming: DefaultNamingStrategy) -> None:
        """The same expression under four role/type combinations gives four names."""
        names = {
            naming.row_level_security_policy_name("tenant", "tenant_id = 1", role, type)
            for role in (None, "admin")
            for type in (None, "restrictive")
        }
        assert len(names) == 4

    def test_expression_changes_name(self, naming: DefaultNamingStrategy) -> None:
        a = naming.row_level_security_policy_name("tenant", "tenant_id = 1")
        b = naming.row_level_security_policy_name("tenant", "tenant_id = 2")
        assert a != b
