class SQLSynthError(Exception):
	"""Base class for all sqlsynth errors."""


class MissingRequiredColumn(SQLSynthError, KeyError):
	"""
	Raised by the row pipeline when a record lacks a column the schema marks required.
	"""
	def __init__(self, column: str):
		self.column = column
		super().__init__(column)

	def __str__(self) -> str:
		return f"Missing required key: {self.column}"


class InvalidClauseInput(SQLSynthError, ValueError):
	"""Structurally invalid input handed to a clause formatter."""


class InvalidJoinSpec(InvalidClauseInput):
	pass


class InvalidLimitSpec(InvalidClauseInput):
	pass


class InvalidOrderBySpec(InvalidClauseInput):
	pass


class InvalidColumnSpec(InvalidClauseInput):
	pass


class UnsupportedValue(InvalidClauseInput):
	pass


class UnknownOperation(SQLSynthError, ValueError):
	pass


class TableConfigError(SQLSynthError, ValueError):
	pass
