import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from psycopg2 import sql

from sqlsynth.clauses import (
	column_definitions,
	columns_clause,
	join_clause,
	limit_clause,
	order_by_clause,
	set_clause,
	values_clause,
	where_clause,
)
from sqlsynth.errors import InvalidClauseInput, InvalidColumnSpec, UnknownOperation
from sqlsynth.rows import TableSchema, pre_insert
from sqlsynth.values import RawExpression, as_rows, is_multi_row, to_param

logger = logging.getLogger(__name__)

OPTION_KEYS = frozenset({
	"select", "unique", "join", "values", "set", "where", "contains",
	"order_by", "limit", "paramstyle", "bound",
})


@dataclass(frozen=True)
class Statement:
	"""
	A generated statement plus the parameters the caller must bind before executing it.

	`params` is a dict for single-row statements and a list of dicts for multi-row
	inserts (suitable for executemany).
	"""
	query: str
	params: dict | list[dict] = field(default_factory=dict)


# ---------- Assembly helpers ----------
def _render(parts) -> str:
	"""Join the non-empty clause fragments with single spaces."""
	return sql.SQL(" ").join(p for p in parts if p is not None).as_string(None)


def _options(options: Optional[Mapping]) -> Mapping:
	opts = options or {}
	unknown = sorted(set(opts) - OPTION_KEYS)
	if unknown:
		logger.warning("Ignoring unknown statement options: %s", unknown)
	return opts


def _partial(prefix: sql.Composable, table: str, opts: Mapping) -> str:
	"""
	Shared pipeline for select/insert/update: the prefix followed by columns, values,
	set, where, order by and limit, each only when present.
	"""
	paramstyle = opts.get("paramstyle", "named")
	values = opts.get("values")
	query = _render([
		prefix,
		columns_clause(values),
		values_clause(values, paramstyle),
		set_clause(opts.get("set"), bound=bool(opts.get("bound")), paramstyle=paramstyle),
		where_clause(opts.get("where"), table, opts.get("join"), opts.get("contains")),
		order_by_clause(opts.get("order_by")),
		limit_clause(opts.get("limit")),
	])
	logger.debug("Built statement: %s", query)
	return query


# ---------- Statements ----------
def select(table: str, options: Optional[Mapping] = None) -> str:
	"""
	Options: select (column or list of columns, default *), unique, join, where,
	contains, order_by, limit.
	"""
	opts = _options(options)
	columns = opts.get("select")
	if isinstance(columns, str):
		projection = columns
	elif columns:
		projection = ", ".join(str(c) for c in columns)
	else:
		projection = "*"

	prefix = sql.SQL("{keyword} {columns} from {tbl}").format(
		keyword=sql.SQL("select distinct" if opts.get("unique") else "select"),
		columns=sql.SQL(projection),
		tbl=sql.SQL(str(table)),
	)
	join = join_clause(opts.get("join"), table)
	if join is not None:
		prefix = prefix + sql.SQL(" ") + join
	return _partial(prefix, table, opts)


def insert(table: str, options: Optional[Mapping] = None) -> str:
	"""Options: values (one record or a list of records), paramstyle."""
	opts = _options(options)
	if not opts.get("values"):
		raise InvalidClauseInput(f"insert into {table} requires values.")
	return _partial(sql.SQL("insert into {}").format(sql.SQL(str(table))), table, opts)


def update(table: str, options: Optional[Mapping] = None) -> str:
	"""Options: set, where, contains, bound, paramstyle."""
	opts = _options(options)
	return _partial(sql.SQL("update {}").format(sql.SQL(str(table))), table, opts)


def delete(table: str, options: Optional[Mapping] = None) -> str:
	"""Only where/contains apply; with neither, every row is targeted."""
	opts = _options(options)
	query = _render([
		sql.SQL("delete from {}").format(sql.SQL(str(table))),
		where_clause(opts.get("where"), contains=opts.get("contains")),
	])
	logger.debug("Built statement: %s", query)
	return query


def create(table: str, columns: Mapping[str, Any], *, if_not_exists: bool = False) -> str:
	"""
	CREATE TABLE from ordered column definitions (see clauses.column_definition).
	"""
	if isinstance(columns.get("ensure"), bool):
		raise InvalidColumnSpec("'ensure' is not a column flag; pass if_not_exists=True to create().")
	query = sql.SQL("create table {ine}{tbl}({defs})").format(
		ine=sql.SQL("if not exists ") if if_not_exists else sql.SQL(""),
		tbl=sql.SQL(str(table)),
		defs=column_definitions(columns),
	).as_string(None)
	logger.debug("Built statement: %s", query)
	return query


def drop(table: str) -> str:
	return f"drop table {table}"


# ---------- Statement + bound parameters ----------
def _bindable(row: Mapping) -> dict:
	return {k: v for k, v in row.items() if not isinstance(v, RawExpression)}


def _compile_select(table, opts, schema):
	return Statement(select(table, opts))


def _compile_insert(table, opts, schema):
	values = opts.get("values")
	if not values:
		raise InvalidClauseInput(f"insert into {table} requires values.")
	if schema is not None:
		rows = pre_insert(values, schema)
	else:
		rows = [{k: to_param(v) for k, v in row.items()} for row in as_rows(values)]
	params = [_bindable(r) for r in rows]
	query = insert(table, opts)
	if is_multi_row(values):
		return Statement(query, params)
	return Statement(query, params[0] if params else {})


def _compile_update(table, opts, schema):
	params = {}
	if opts.get("bound") and opts.get("set"):
		params = {k: to_param(v) for k, v in _bindable(opts["set"]).items()}
	return Statement(update(table, opts), params)


def _compile_delete(table, opts, schema):
	return Statement(delete(table, opts))


def _compile_create(table, opts, schema):
	return Statement(create(table, opts.get("columns") or {}, if_not_exists=bool(opts.get("if_not_exists"))))


def _compile_drop(table, opts, schema):
	return Statement(drop(table))


_COMPILERS = {
	"select": _compile_select,
	"insert": _compile_insert,
	"update": _compile_update,
	"delete": _compile_delete,
	"create": _compile_create,
	"drop": _compile_drop,
}


def compile_statement(
	operation: str,
	table: str,
	options: Optional[Mapping] = None,
	schema: TableSchema | Mapping | None = None,
) -> Statement:
	"""
	Build the statement for `operation` together with its bound parameters.

	For "create", options are {"columns": {...}, "if_not_exists": bool}. When a schema
	is given, insert values run through the row pipeline (required columns, boolean
	and JSON coercion) before being returned as parameters.
	"""
	compiler = _COMPILERS.get(str(operation).lower())
	if compiler is None:
		raise UnknownOperation(f"Unknown operation {operation!r}; expected one of {sorted(_COMPILERS)}.")
	return compiler(table, options or {}, schema)
