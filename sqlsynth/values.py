import json
import numbers
from collections.abc import Mapping, Sequence, Set
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlsynth.errors import UnsupportedValue

STRUCTURED_TYPES = frozenset({"json", "structured"})
BOOLEAN_TYPE = "boolean"


@dataclass(frozen=True)
class RawExpression:
	"""
	SQL expression inlined verbatim instead of bound or quoted, e.g. RawExpression("date('now')").
	"""
	expression: str

	def __str__(self) -> str:
		return self.expression


@dataclass(frozen=True)
class OrGroup:
	"""
	Where-clause value matching any of several scalars for one column.
	"""
	values: tuple[Any, ...]

	@classmethod
	def coerce(cls, value) -> "OrGroup":
		if isinstance(value, OrGroup):
			return value
		if isinstance(value, Mapping):
			# Keys are caller-side aliases only.
			return cls(tuple(value.values()))
		return cls(tuple(value))


def is_structured_type(type_tag: str | None) -> bool:
	return type_tag is not None and str(type_tag).lower() in STRUCTURED_TYPES


def is_boolean_type(type_tag: str | None) -> bool:
	return type_tag is not None and str(type_tag).lower() == BOOLEAN_TYPE


def is_group_value(value) -> bool:
	"""True for values the where clause treats as an OR group."""
	if isinstance(value, (OrGroup, Mapping, Set)):
		return True
	return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


# ---------- Multi-row detection ----------
def is_multi_row(values) -> bool:
	"""
	A mapping is one row; a non-string sequence whose first item is a mapping is many rows.
	"""
	if values is None or isinstance(values, Mapping):
		return False
	if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
		return False
	return len(values) > 0 and isinstance(values[0], Mapping)


def as_rows(values) -> list[Mapping]:
	if is_multi_row(values):
		return list(values)
	if isinstance(values, Sequence) and not isinstance(values, (str, bytes)) and not values:
		return []
	return [values]


def first_row(values) -> Mapping:
	return values[0] if is_multi_row(values) else values


# ---------- Host <-> storage coercion ----------
def to_storage(value):
	"""Boolean -> 1/0, None -> the literal text null, everything else unchanged."""
	if isinstance(value, bool):
		return 1 if value else 0
	if value is None:
		return "null"
	return value


def to_param(value):
	"""Coercion for bound parameters; None is kept so the driver binds SQL NULL."""
	if isinstance(value, bool):
		return 1 if value else 0
	return value


def to_host(value, type_tag: str | None = None):
	if value is None:
		return None
	if is_structured_type(type_tag):
		if isinstance(value, (str, bytes, bytearray)):
			return json.loads(value)
		return value
	if is_boolean_type(type_tag):
		return value != 0
	return value


# ---------- Literal rendering ----------
def _is_integral(value) -> bool:
	if isinstance(value, numbers.Integral):
		return True
	try:
		return float(value).is_integer()
	except (OverflowError, ValueError):
		return False


def literal_format(value) -> str:
	"""
	Pick the format used when a value is inlined as a literal.

	Quoting is best-effort: a string holding a single quote is wrapped in double quotes
	and nothing is escaped. Never inline untrusted strings; bind them instead.
	"""
	if isinstance(value, (numbers.Real, Decimal)) and not isinstance(value, bool):
		return "%d" if _is_integral(value) else "%f"
	if isinstance(value, str):
		return '"%s"' if "'" in value else "'%s'"
	raise UnsupportedValue(f"Cannot render {type(value).__name__} value as a SQL literal: {value!r}")


def render_literal(value) -> str:
	if isinstance(value, RawExpression):
		return value.expression
	if value is None:
		return "null"
	value = to_storage(value)
	return literal_format(value) % value
