"""Date and time helpers for the formats the diary API uses."""

from datetime import date, datetime, timezone
from typing import Optional, Union

from .const import DIARY_DATETIME_FORMAT, HOMEWORK_DATE_FORMAT, QUERY_DATE_FORMAT

DateLike = Union[date, datetime]


def as_date(value: DateLike) -> date:
	"""Drop the time of day, keeping the calendar date."""
	if isinstance(value, datetime):
		return value.date()
	return value


def format_query_date(value: DateLike) -> str:
	"""Format a day the way schedule and visits endpoints expect (ISO)."""
	return as_date(value).strftime(QUERY_DATE_FORMAT)


def format_homework_date(value: DateLike) -> str:
	"""Format a day the way homework endpoints expect (day.month.year)."""
	return as_date(value).strftime(HOMEWORK_DATE_FORMAT)


def parse_diary_datetime(value: str) -> datetime:
	"""Parse a ``DD.MM.YYYY HH:MM`` timestamp.

	Args:
		value: Timestamp string from the API

	Returns:
		naive datetime object

	Raises:
		ValueError: If the string does not match the format
	"""
	if not isinstance(value, str):
		raise ValueError(f"Expected a datetime string, got {type(value).__name__}")
	try:
		return datetime.strptime(value, DIARY_DATETIME_FORMAT)
	except ValueError as e:
		raise ValueError(f"Parse error {e} for {value}") from e


def parse_optional_diary_datetime(value: Optional[str]) -> Optional[datetime]:
	"""Same as parse_diary_datetime but ``None`` passes through."""
	if value is None:
		return None
	return parse_diary_datetime(value)


def format_diary_datetime(value: datetime) -> str:
	"""Inverse of parse_diary_datetime."""
	return value.strftime(DIARY_DATETIME_FORMAT)


def parse_epoch_datetime(value: Union[int, float]) -> datetime:
	"""Parse epoch seconds into an aware UTC datetime."""
	if isinstance(value, bool) or not isinstance(value, (int, float)):
		raise ValueError(f"Expected epoch seconds, got {value!r}")
	try:
		return datetime.fromtimestamp(value, tz=timezone.utc)
	except (OverflowError, OSError) as e:
		raise ValueError(f"Epoch seconds out of range: {value!r}") from e


def parse_iso_date(value: str) -> date:
	"""Parse an ISO calendar date (``YYYY-MM-DD``) or the date part of an ISO timestamp."""
	if not isinstance(value, str):
		raise ValueError(f"Expected a date string, got {value!r}")
	if len(value) == 10:
		return date.fromisoformat(value)
	return parse_iso_datetime(value).date()


def parse_iso_datetime(value: str) -> datetime:
	"""Parse an ISO 8601 timestamp, tolerating a trailing ``Z``."""
	if not isinstance(value, str):
		raise ValueError(f"Expected a datetime string, got {value!r}")
	if value.endswith("Z"):
		value = value[:-1] + "+00:00"
	return datetime.fromisoformat(value)
