"""Custom exceptions for the dnevnik.mos.ru client."""

from typing import Optional


class DiaryError(Exception):
	"""Base exception for diary errors."""
	pass


class DiaryTransportError(DiaryError):
	"""HTTP request failed or returned a non-success status."""

	def __init__(self, message: str, status: Optional[int] = None, url: Optional[str] = None):
		super().__init__(message)
		self.status = status
		self.url = url


class DiaryConnectionError(DiaryTransportError):
	"""Connection to the diary service failed or timed out."""
	pass


class DiaryAuthError(DiaryTransportError):
	"""The service rejected the auth token."""
	pass


class DiaryDecodeError(DiaryError):
	"""Response body did not match the expected shape."""

	def __init__(self, message: str, field: Optional[str] = None):
		super().__init__(message)
		self.field = field


class DiaryMissingPrerequisiteError(DiaryError):
	"""A value required to build the request is not available."""
	pass


class DiaryNotAuthenticatedError(DiaryMissingPrerequisiteError):
	"""Client used before authenticate() succeeded."""
	pass


class DiaryAlreadyAuthenticatedError(DiaryError):
	"""authenticate() called on a client that already holds a student."""
	pass


class DiaryEmptyResultError(DiaryError):
	"""A list expected to hold at least one element came back empty."""
	pass


class DiarySizeMismatchError(DiaryError):
	"""Downloaded attachment is smaller than the size declared by the server."""

	def __init__(self, copied: int, expected: int):
		super().__init__(
			f"Could not download file, size of file downloaded is less than "
			f"size of file provided by the attachment ({copied} < {expected})"
		)
		self.copied = copied
		self.expected = expected
