import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sqlsynth.clauses import (  # noqa: E402
    column_definition,
    column_definitions,
    columns_clause,
    join_clause,
    limit_clause,
    order_by_clause,
    set_clause,
    values_clause,
    where_clause,
)
from sqlsynth.errors import (  # noqa: E402
    InvalidClauseInput,
    InvalidColumnSpec,
    InvalidJoinSpec,
    InvalidLimitSpec,
    InvalidOrderBySpec,
)
from sqlsynth.values import OrGroup, RawExpression  # noqa: E402


def render(fragment) -> str | None:
    if fragment is None:
        return None
    return fragment.as_string(None)


JOIN = {"users": "id", "posts": "user_id"}


class TestAbsentInput(unittest.TestCase):
    def test_formatters_return_none(self):
        self.assertIsNone(columns_clause(None))
        self.assertIsNone(values_clause(None))
        self.assertIsNone(set_clause(None))
        self.assertIsNone(where_clause(None))
        self.assertIsNone(where_clause({}, contains={}))
        self.assertIsNone(join_clause(None, "users"))
        self.assertIsNone(order_by_clause(None))
        self.assertIsNone(limit_clause(None))


class TestColumnsAndValues(unittest.TestCase):
    def test_columns_and_placeholders_share_order(self):
        values = {"b": 1, "a": 2, "c": 3}
        self.assertEqual(render(columns_clause(values)), "(b, a, c)")
        self.assertEqual(render(values_clause(values)), "values(:b, :a, :c)")

    def test_multi_row_uses_first_row(self):
        rows = [{"name": "a", "age": 1}, {"name": "b", "age": 2}]
        self.assertEqual(render(columns_clause(rows)), "(name, age)")
        self.assertEqual(render(values_clause(rows)), "values(:name, :age)")

    def test_pyformat_placeholders(self):
        values = {"name": "Bob", "age": 3}
        self.assertEqual(render(values_clause(values, "pyformat")), "values(%(name)s, %(age)s)")

    def test_raw_expression_is_inlined(self):
        values = {"id": 1, "created": RawExpression("date('now')")}
        self.assertEqual(render(values_clause(values)), "values(:id, date('now'))")

    def test_unknown_paramstyle(self):
        with self.assertRaises(InvalidClauseInput):
            values_clause({"a": 1}, "qmark")


class TestSetClause(unittest.TestCase):
    def test_literal_pairs(self):
        self.assertEqual(
            render(set_clause({"age": 30, "name": "Bob", "active": False, "note": None})),
            "set age = 30, name = 'Bob', active = 0, note = null",
        )

    def test_bound_pairs(self):
        self.assertEqual(
            render(set_clause({"age": 30, "seen": RawExpression("now()")}, bound=True)),
            "set age = :age, seen = now()",
        )


class TestWhereClause(unittest.TestCase):
    def test_scalars_are_conjoined(self):
        self.assertEqual(
            render(where_clause({"id": 1, "name": "Bob"})),
            "where id = 1 and name = 'Bob'",
        )

    def test_groups_are_disjoined(self):
        cases = [
            ({"id": [1, 2]}, "where (id = 1 or id = 2)"),
            ({"name": {"first": "a", "second": "b"}}, "where (name = 'a' or name = 'b')"),
            ({"id": OrGroup((3,)), "age": 4}, "where (id = 3) and age = 4"),
        ]
        for where, expected in cases:
            with self.subTest(where=where):
                self.assertEqual(render(where_clause(where)), expected)

    def test_none_value(self):
        self.assertEqual(render(where_clause({"deleted": None})), "where deleted is null")

    def test_qualified_only_with_join(self):
        self.assertEqual(render(where_clause({"id": 1}, "users")), "where id = 1")
        self.assertEqual(render(where_clause({"id": 1}, "users", JOIN)), "where users.id = 1")

    def test_contains(self):
        self.assertEqual(render(where_clause(None, contains={"name": "a*"})), "where name glob 'a*'")
        self.assertEqual(
            render(where_clause({"id": 1}, contains={"name": "a*", "title": ["x*", "y*"]})),
            "where id = 1 and name glob 'a*' and (title glob 'x*' or title glob 'y*')",
        )

    def test_empty_group_rejected(self):
        with self.assertRaises(InvalidClauseInput):
            where_clause({"id": []})
        with self.assertRaises(InvalidClauseInput):
            where_clause(None, contains={"name": []})


class TestJoinClause(unittest.TestCase):
    def test_inner_join(self):
        self.assertEqual(
            render(join_clause(JOIN, "users")),
            "inner join posts on users.id = posts.user_id",
        )
        reversed_join = {"posts": "user_id", "users": "id"}
        self.assertEqual(
            render(join_clause(reversed_join, "users")),
            "inner join posts on users.id = posts.user_id",
        )

    def test_invalid_join_specs(self):
        bad = [
            {"users": "id"},
            {"posts": "user_id", "tags": "post_id"},
            {"users": "id", "posts": "user_id", "tags": "post_id"},
            ["users", "posts"],
        ]
        for spec in bad:
            with self.subTest(spec=spec):
                with self.assertRaises(InvalidJoinSpec):
                    join_clause(spec, "users")


class TestOrderByAndLimit(unittest.TestCase):
    def test_order_by_groups(self):
        self.assertEqual(
            render(order_by_clause({"asc": ["a", "b"], "DESC": "c"})),
            "order by a asc, b asc, c desc",
        )

    def test_order_by_invalid(self):
        with self.assertRaises(InvalidOrderBySpec):
            order_by_clause({"sideways": "a"})
        with self.assertRaises(InvalidOrderBySpec):
            order_by_clause(["a"])

    def test_limit(self):
        self.assertEqual(render(limit_clause(10)), "limit 10")
        self.assertEqual(render(limit_clause([10, 20])), "limit 10 offset 20")
        self.assertEqual(render(limit_clause((5,))), "limit 5")
        self.assertEqual(render(limit_clause(0)), "limit 0")

    def test_limit_invalid(self):
        for spec in ("10", [1, 2, 3], [], -1, True, [1, "x"], 1.5):
            with self.subTest(spec=spec):
                with self.assertRaises(InvalidLimitSpec):
                    limit_clause(spec)


class TestColumnDefinitions(unittest.TestCase):
    def test_shorthands(self):
        self.assertEqual(render(column_definition("id", True)), "id integer not null primary key")
        self.assertEqual(render(column_definition("name", "text")), "name text")

    def test_fragment_order(self):
        spec = {
            "on_delete": "null",
            "on_update": "cascade",
            "reference": "users.id",
            "default": 0,
            "pk": False,
            "nullable": False,
            "unique": True,
            "type": "integer",
        }
        self.assertEqual(
            render(column_definition("user_id", spec)),
            "user_id integer unique not null default 0 references users(id) "
            "on update cascade on delete set null",
        )

    def test_nullable_defaults_to_true(self):
        self.assertEqual(render(column_definition("bio", {"type": "text"})), "bio text")
        self.assertEqual(render(column_definition("bio", {"type": "text", "nullable": True})), "bio text")

    def test_actions_and_defaults(self):
        cases = [
            ({"type": "int", "on_delete": "default"}, "c int on delete set default"),
            ({"type": "int", "on_delete": "set null"}, "c int on delete set null"),
            ({"type": "int", "on_update": "restrict"}, "c int on update restrict"),
            ({"type": "int", "default": True}, "c int default 1"),
            ({"type": "text", "default": RawExpression("(date('now'))")}, "c text default (date('now'))"),
            ({"type": "integer", "pk": True}, "c integer primary key"),
            ({}, "c"),
        ]
        for spec, expected in cases:
            with self.subTest(spec=spec):
                self.assertEqual(render(column_definition("c", spec)), expected)

    def test_invalid_definitions(self):
        with self.assertRaises(InvalidColumnSpec):
            column_definition("c", {"type": "int", "reference": "users"})
        with self.assertRaises(InvalidColumnSpec):
            column_definition("c", 3)
        with self.assertRaises(InvalidColumnSpec):
            column_definition("c", False)
        with self.assertRaises(InvalidColumnSpec):
            column_definitions({})

    def test_column_definitions_keep_order(self):
        self.assertEqual(
            render(column_definitions({"id": True, "name": "text", "age": "integer"})),
            "id integer not null primary key, name text, age integer",
        )


if __name__ == "__main__":
    unittest.main()
