"""Authenticated HTTP transport for the diary API."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import aiohttp

from .const import (
	AUTH_TOKEN_HEADER, DEFAULT_TIMEOUT, DOWNLOAD_CHUNK_SIZE, DOWNLOAD_TIMEOUT,
	REFERER, USER_AGENT,
)
from .exceptions import DiaryAuthError, DiaryConnectionError, DiaryDecodeError, DiaryTransportError

_LOGGER = logging.getLogger(__name__)

QueryParams = Mapping[str, Union[str, int, float]]


def build_default_headers(token: str) -> Dict[str, str]:
	"""Headers sent with every request.

	The token goes into both ``Auth-Token`` and ``Authorization`` because
	different endpoints check different ones.
	"""
	return {
		"User-Agent": USER_AGENT,
		"Referer": REFERER,
		AUTH_TOKEN_HEADER: token,
		"Authorization": token,
	}


class DiaryTransport:
	"""Issues authenticated requests over a shared aiohttp session.

	Holds no per-request state, so one instance can serve any number of
	concurrent requests.
	"""

	def __init__(self, session: aiohttp.ClientSession, token: str, timeout: float = DEFAULT_TIMEOUT,
			download_timeout: float = DOWNLOAD_TIMEOUT):
		"""Initialise transport.

		Args:
			session: aiohttp session used for every request
			token: Auth token, sent as is
			timeout: Total timeout for ordinary calls, in seconds
			download_timeout: Total timeout for attachment downloads, in seconds
		"""
		self._session = session
		self._headers = build_default_headers(token)
		self._timeout = aiohttp.ClientTimeout(total=timeout)
		self._download_timeout = aiohttp.ClientTimeout(total=download_timeout)

	@property
	def headers(self) -> Dict[str, str]:
		return dict(self._headers)

	def _merge_headers(self, extra: Optional[Mapping[str, str]]) -> Dict[str, str]:
		headers = dict(self._headers)
		if extra:
			headers.update(extra)
		return headers

	@staticmethod
	def _check_status(resp: aiohttp.ClientResponse, method: str, url: str) -> None:
		if 200 <= resp.status < 300:
			return
		if resp.status in (401, 403):
			raise DiaryAuthError(f"{method} {url} rejected the auth token: HTTP {resp.status}", status=resp.status, url=url)
		raise DiaryTransportError(f"{method} {url} failed: HTTP {resp.status}", status=resp.status, url=url)

	async def get_json(self, url: str, params: Optional[QueryParams] = None,
			headers: Optional[Mapping[str, str]] = None) -> Any:
		"""GET a resource and return its decoded JSON body."""
		_LOGGER.debug(f"GET {url} params={dict(params) if params else {}}")
		return await self._read_json(
			"GET", url,
			self._session.get(url, params=params, headers=self._merge_headers(headers), timeout=self._timeout),
		)

	async def post_json(self, url: str, payload: Any, headers: Optional[Mapping[str, str]] = None) -> Any:
		"""POST a JSON body and return the decoded JSON response."""
		_LOGGER.debug(f"POST {url}")
		return await self._read_json(
			"POST", url,
			self._session.post(url, json=payload, headers=self._merge_headers(headers), timeout=self._timeout),
		)

	async def _read_json(self, method: str, url: str, request) -> Any:
		try:
			async with request as resp:
				self._check_status(resp, method, url)
				try:
					# the provider does not always label JSON correctly
					return await resp.json(content_type=None)
				except (aiohttp.ContentTypeError, json.JSONDecodeError, ValueError) as e:
					_LOGGER.error(f"Invalid JSON from {method} {url}: {e}")
					raise DiaryDecodeError(f"Invalid JSON response from {url}: {e}") from e
		except aiohttp.InvalidURL as e:
			raise DiaryTransportError(f"Invalid URL {url}: {e}", url=url) from e
		except (aiohttp.ClientError, asyncio.TimeoutError) as e:
			raise DiaryConnectionError(f"Connection error on {method} {url}: {e}", url=url) from e

	async def download(self, url: str, destination: Union[str, Path],
			chunk_size: int = DOWNLOAD_CHUNK_SIZE) -> int:
		"""Stream a binary resource into a file.

		The file handle is closed on every exit path; a partially written file
		is left in place when the transfer fails.

		Args:
			url: Absolute URL of the resource
			destination: File path to create or overwrite
			chunk_size: Read size for the response stream

		Returns:
			Number of bytes written
		"""
		_LOGGER.debug(f"GET {url} -> {destination}")
		copied = 0
		try:
			async with self._session.get(url, headers=self._headers, timeout=self._download_timeout) as resp:
				self._check_status(resp, "GET", url)
				# file IO runs off the event loop
				file = await asyncio.to_thread(open, destination, "wb")
				try:
					async for chunk in resp.content.iter_chunked(chunk_size):
						await asyncio.to_thread(file.write, chunk)
						copied += len(chunk)
				finally:
					await asyncio.to_thread(file.close)
		except aiohttp.InvalidURL as e:
			raise DiaryTransportError(f"Invalid URL {url}: {e}", url=url) from e
		except (aiohttp.ClientError, asyncio.TimeoutError) as e:
			raise DiaryConnectionError(f"Connection error while downloading {url}: {e}", url=url) from e
		return copied
