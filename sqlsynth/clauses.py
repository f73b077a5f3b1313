from collections.abc import Mapping, Sequence

from psycopg2 import sql

from sqlsynth.errors import (
	InvalidClauseInput,
	InvalidColumnSpec,
	InvalidJoinSpec,
	InvalidLimitSpec,
	InvalidOrderBySpec,
)
from sqlsynth.values import (
	OrGroup,
	RawExpression,
	first_row,
	is_group_value,
	render_literal,
	to_storage,
)

PARAMSTYLES = ("named", "pyformat")
ORDER_DIRECTIONS = ("asc", "desc")
_ACTION_SET_WORDS = ("default", "null")


# ---------- Small composition helpers ----------
def _raw(text) -> sql.SQL:
	# Table and column names are trusted caller input and used verbatim.
	return sql.SQL(str(text))


def _qualify(column: str, table: str | None) -> str:
	return f"{table}.{column}" if table else str(column)


def placeholder(name: str, paramstyle: str = "named") -> sql.Composable:
	"""
	Bound-parameter marker for a column: ':name' (sqlite named style) or '%(name)s' (psycopg2 pyformat).
	"""
	if paramstyle == "named":
		return _raw(f":{name}")
	if paramstyle == "pyformat":
		return sql.Placeholder(str(name))
	raise InvalidClauseInput(f"Unsupported paramstyle {paramstyle!r}; expected one of {PARAMSTYLES}.")


# ---------- INSERT column / value lists ----------
def columns_clause(values) -> sql.Composable | None:
	if not values:
		return None
	row = first_row(values)
	return sql.SQL("({})").format(sql.SQL(", ").join(_raw(k) for k in row))


def values_clause(values, paramstyle: str = "named") -> sql.Composable | None:
	if not values:
		return None
	row = first_row(values)
	items = [
		_raw(v.expression) if isinstance(v, RawExpression) else placeholder(k, paramstyle)
		for k, v in row.items()
	]
	return sql.SQL("values({})").format(sql.SQL(", ").join(items))


# ---------- UPDATE set list ----------
def set_clause(values, *, bound: bool = False, paramstyle: str = "named") -> sql.Composable | None:
	"""
	Literal pairs by default; bound=True swaps each value for a named placeholder.
	"""
	if not values:
		return None
	pairs = []
	for k, v in values.items():
		if bound and not isinstance(v, RawExpression):
			value_sql = placeholder(k, paramstyle)
		else:
			value_sql = _raw(render_literal(v))
		pairs.append(sql.SQL("{} = {}").format(_raw(k), value_sql))
	return sql.SQL("set ") + sql.SQL(", ").join(pairs)


# ---------- WHERE ----------
def _equality(column: str, value) -> sql.Composable:
	if value is None:
		return sql.SQL("{} is null").format(_raw(column))
	return sql.SQL("{} = {}").format(_raw(column), _raw(render_literal(value)))


def _any_of(fragments: list[sql.Composable]) -> sql.Composable:
	if len(fragments) == 1:
		return fragments[0]
	return sql.SQL("({})").format(sql.SQL(" or ").join(fragments))


def _contains_fragments(contains: Mapping, table: str | None) -> list[sql.Composable]:
	fragments = []
	for column, patterns in contains.items():
		key = _qualify(column, table)
		patterns = OrGroup.coerce(patterns).values if is_group_value(patterns) else (patterns,)
		if not patterns:
			raise InvalidClauseInput(f"contains for column '{column}' has no patterns.")
		fragments.append(_any_of([
			sql.SQL("{} glob {}").format(_raw(key), _raw(render_literal(p)))
			for p in patterns
		]))
	return fragments


def where_clause(
	where: Mapping | None,
	table: str | None = None,
	join: Mapping | None = None,
	contains: Mapping | None = None,
) -> sql.Composable | None:
	"""
	Build the WHERE clause.

	Scalars become equality tests joined with AND. Group values (OrGroup, list, or
	alias -> scalar mapping) become one parenthesised OR group per column. `contains`
	adds glob tests per column. Columns are prefixed with the table name only when a
	join is in effect.
	"""
	if not where and not contains:
		return None
	qualifier = table if join else None
	parts: list[sql.Composable] = []

	for column, value in (where or {}).items():
		key = _qualify(column, qualifier)
		if is_group_value(value):
			group = OrGroup.coerce(value)
			if not group.values:
				raise InvalidClauseInput(f"where group for column '{column}' is empty.")
			parts.append(sql.SQL("({})").format(
				sql.SQL(" or ").join(_equality(key, v) for v in group.values)
			))
		else:
			parts.append(_equality(key, value))

	if contains:
		parts.extend(_contains_fragments(contains, qualifier))

	return sql.SQL("where ") + sql.SQL(" and ").join(parts)


# ---------- JOIN ----------
def join_clause(join: Mapping | None, table: str | None) -> sql.Composable | None:
	"""
	Two-table inner join from {table: column, other: other_column}.
	"""
	if not join or not table:
		return None
	if not isinstance(join, Mapping) or len(join) != 2:
		raise InvalidJoinSpec("join must map exactly two tables to their join columns.")
	if table not in join:
		raise InvalidJoinSpec(f"join must include the primary table '{table}'.")

	target = next(k for k in join if k != table)
	return sql.SQL("inner join {target} on {left} = {right}").format(
		target=_raw(target),
		left=_raw(_qualify(join[table], table)),
		right=_raw(_qualify(join[target], target)),
	)


# ---------- ORDER BY ----------
def order_by_clause(order_by: Mapping | None) -> sql.Composable | None:
	if not order_by:
		return None
	if not isinstance(order_by, Mapping):
		raise InvalidOrderBySpec("order_by must map a direction to a column or list of columns.")

	items = []
	for direction, columns in order_by.items():
		dir_low = str(direction).lower()
		if dir_low not in ORDER_DIRECTIONS:
			raise InvalidOrderBySpec(f"order_by direction must be 'asc' or 'desc', got {direction!r}")
		if isinstance(columns, str):
			columns = [columns]
		items.extend(sql.SQL("{} {}").format(_raw(c), sql.SQL(dir_low)) for c in columns)

	return sql.SQL("order by ") + sql.SQL(", ").join(items)


# ---------- LIMIT / OFFSET ----------
def _check_count(value, label: str) -> int:
	if isinstance(value, bool) or not isinstance(value, int) or value < 0:
		raise InvalidLimitSpec(f"{label} must be a non-negative integer, got {value!r}")
	return value


def limit_clause(limit) -> sql.Composable | None:
	"""
	`N` -> 'limit N'; `[N, M]` -> 'limit N offset M'.
	"""
	if limit is None:
		return None
	if isinstance(limit, Sequence) and not isinstance(limit, (str, bytes)):
		if len(limit) not in (1, 2):
			raise InvalidLimitSpec("limit sequence must be [count] or [count, offset].")
		count = _check_count(limit[0], "limit")
		offset = _check_count(limit[1], "offset") if len(limit) == 2 else None
	else:
		count = _check_count(limit, "limit")
		offset = None

	if offset is None:
		return sql.SQL("limit {}").format(_raw(count))
	return sql.SQL("limit {} offset {}").format(_raw(count), _raw(offset))


# ---------- CREATE TABLE column definitions ----------
def _format_action(value: str, *, update: bool) -> str:
	head = "on update" if update else "on delete"
	value = str(value).strip()
	if value.lower().startswith("set "):
		return f"{head} {value}"
	if any(word in value.lower() for word in _ACTION_SET_WORDS):
		return f"{head} set {value}"
	return f"{head} {value}"


def _format_reference(name: str, reference) -> str:
	ref_table, sep, ref_column = str(reference).partition(".")
	if not sep or not ref_table or not ref_column or "." in ref_column:
		raise InvalidColumnSpec(f"reference for column '{name}' must look like 'table.column', got {reference!r}")
	return f"references {ref_table}({ref_column})"


def _format_default(value) -> str:
	if isinstance(value, RawExpression):
		return f"default {value.expression}"
	return f"default {to_storage(value)}"


def column_definition(name: str, spec) -> sql.Composable:
	"""
	Render one column of a CREATE TABLE statement.

	`True` is shorthand for an integer primary key, a string is a bare type, and a
	mapping emits its constraint fragments in a fixed order: type, unique, not null,
	primary key, default, references, on update, on delete.
	"""
	if spec is True:
		return sql.SQL("{} integer not null primary key").format(_raw(name))
	if isinstance(spec, str):
		return sql.SQL("{} {}").format(_raw(name), _raw(spec))
	if not isinstance(spec, Mapping):
		raise InvalidColumnSpec(f"Unsupported definition for column '{name}': {spec!r}")

	bits: list[str] = []
	if spec.get("type"):
		bits.append(str(spec["type"]))
	if spec.get("unique", False):
		bits.append("unique")
	if spec.get("nullable", True) is False:
		bits.append("not null")
	if spec.get("pk", False):
		bits.append("primary key")
	if spec.get("default") is not None:
		bits.append(_format_default(spec["default"]))
	if spec.get("reference"):
		bits.append(_format_reference(name, spec["reference"]))
	if spec.get("on_update"):
		bits.append(_format_action(spec["on_update"], update=True))
	if spec.get("on_delete"):
		bits.append(_format_action(spec["on_delete"], update=False))

	if not bits:
		return _raw(name)
	return sql.SQL("{} {}").format(_raw(name), _raw(" ".join(bits)))


def column_definitions(columns: Mapping) -> sql.Composable:
	if not columns:
		raise InvalidColumnSpec("create requires at least one column definition.")
	return sql.SQL(", ").join(column_definition(name, spec) for name, spec in columns.items())
