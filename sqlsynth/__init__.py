"""Generate SQL statements from declarative options and coerce row values to and from storage."""

from sqlsynth.errors import (
	InvalidClauseInput,
	InvalidColumnSpec,
	InvalidJoinSpec,
	InvalidLimitSpec,
	InvalidOrderBySpec,
	MissingRequiredColumn,
	SQLSynthError,
	TableConfigError,
	UnknownOperation,
	UnsupportedValue,
)
from sqlsynth.rows import TableSchema, post_select, pre_insert
from sqlsynth.statements import Statement, compile_statement, create, delete, drop, insert, select, update
from sqlsynth.table_config import TableConfigLoader, TableDefinition, load_table_definitions
from sqlsynth.values import OrGroup, RawExpression, to_host, to_storage

__all__ = [
	"InvalidClauseInput",
	"InvalidColumnSpec",
	"InvalidJoinSpec",
	"InvalidLimitSpec",
	"InvalidOrderBySpec",
	"MissingRequiredColumn",
	"OrGroup",
	"RawExpression",
	"SQLSynthError",
	"Statement",
	"TableConfigError",
	"TableConfigLoader",
	"TableDefinition",
	"TableSchema",
	"UnknownOperation",
	"UnsupportedValue",
	"compile_statement",
	"create",
	"delete",
	"drop",
	"insert",
	"load_table_definitions",
	"post_select",
	"pre_insert",
	"select",
	"to_host",
	"to_storage",
	"update",
]
