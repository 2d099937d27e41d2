"""Shared fixtures: a fake aiohttp session and sample API payloads."""

import copy
from typing import Any, Dict, List, Optional, Union
from unittest.mock import MagicMock

import pytest

from dnevnik.client import Diary
from dnevnik.const import DiaryEndpoints

ENDPOINTS = DiaryEndpoints.for_host()
TOKEN = "test-token"


class MockContent:
	"""Stand-in for aiohttp's StreamReader."""

	def __init__(self, chunks: List[bytes], error: Optional[BaseException] = None):
		self._chunks = chunks
		self._error = error

	async def iter_chunked(self, size):
		for chunk in self._chunks:
			yield chunk
		if self._error is not None:
			raise self._error


class MockResponse:
	"""Simple mock response usable as ``async with session.get(...) as resp``."""

	def __init__(self, status=200, json_data=None, chunks=None, json_error=None,
			enter_error=None, stream_error=None):
		self.status = status
		self._json_data = json_data
		self._json_error = json_error
		self._enter_error = enter_error
		self.headers = {}
		self.content = MockContent(chunks or [], stream_error)

	async def json(self, content_type="application/json"):
		if self._json_error is not None:
			raise self._json_error
		return copy.deepcopy(self._json_data)

	async def __aenter__(self):
		if self._enter_error is not None:
			raise self._enter_error
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb):
		pass


class MockSession:
	"""Routes GET/POST calls by URL to canned responses and records them."""

	def __init__(self, routes: Optional[Dict[str, Union[MockResponse, List[MockResponse]]]] = None):
		self.routes = dict(routes or {})
		self.get = MagicMock(side_effect=lambda url, **kwargs: self._respond(url))
		self.post = MagicMock(side_effect=lambda url, **kwargs: self._respond(url))
		self.closed = False

	def _respond(self, url: str) -> MockResponse:
		if url not in self.routes:
			raise AssertionError(f"Unexpected request to {url}")
		response = self.routes[url]
		if isinstance(response, list):
			return response.pop(0)
		return response

	def calls_to(self, url: str) -> List[Any]:
		return [c for c in self.get.call_args_list + self.post.call_args_list if c.args[0] == url]

	@property
	def request_count(self) -> int:
		return self.get.call_count + self.post.call_count

	async def close(self):
		self.closed = True


def account_payload(**overrides) -> Dict[str, Any]:
	data = {
		"id": 42,
		"last_name": "Ivanov",
		"first_name": "Ivan",
		"middle_name": "Ivanovich",
		"birth_date": "2008-05-01",
		"sex": "male",
		"user_id": 7001,
		"phone": "9990001122",
		"email": "ivan@example.com",
		"snils": "000-000-000 00",
		"type": "student",
	}
	data.update(overrides)
	return data


def profile_payload(contract_id: Optional[int] = 777) -> Dict[str, Any]:
	child = account_payload(type=None)
	child.update({
		"school": {
			"id": 1000,
			"name": "GBOU School No. 1",
			"short_name": "School No. 1",
			"county": "CAO",
			"principal": "Petrov P.P.",
			"phone": "4950000000",
		},
		"class_name": "10-A",
		"class_level_id": 10,
		"class_unit_id": 555,
		"groups": [
			{"id": 1, "name": "Algebra 10-A", "subject_id": 33, "is_fake": False},
		],
		"representatives": [
			account_payload(id=43, first_name="Maria", middle_name="Petrovna", sex="female", type=None),
		],
		"sections": [
			{"id": 9, "name": "Chess", "subject_id": None, "is_fake": False},
		],
		"is_legal_representative": False,
		"contingent_guid": "0f8fad5b-d9cb-469f-a165-70867728950e",
		"contract_id": contract_id,
	})
	return {
		"hash": "c0ffee",
		"profile": account_payload(),
		"children": [child],
	}


def mark_payload(**overrides) -> Dict[str, Any]:
	data = {
		"id": 9001,
		"value": "5",
		"values": [
			{
				"name": "five-point",
				"nmax": 5.0,
				"grade_system_type": "five",
				"grade": {"origin": "5", "five": 5.0, "hundred": 100.0},
			},
		],
		"weight": 2,
		"comment": None,
		"control_form_name": "Test",
		"is_exam": False,
		"is_point": False,
		"created_at": "2023-02-10T11:16:21",
		"updated_at": "2023-02-10T11:20:00",
	}
	data.update(overrides)
	return data


def lesson_activity_payload(**overrides) -> Dict[str, Any]:
	data = {
		"type": "LESSON",
		"info": "Algebra",
		"begin_utc": 1676012400,
		"end_utc": 1676015100,
		"begin_time": "10:00",
		"end_time": "10:45",
		"room_number": "204",
		"room_name": "Room 204",
		"building_name": "Main building",
		"lesson": {
			"schedule_item_id": 123456,
			"subject_id": 33,
			"subject_name": "Algebra",
			"teacher": {"id": 5, "last_name": "Sidorova", "first_name": "Anna", "middle_name": "Olegovna"},
			"marks": [mark_payload()],
			"homework": {"descriptions": ["No. 101", "No. 102"]},
			"is_cancelled": False,
			"is_missed_lesson": False,
			"is_virtual": False,
			"lesson_type": "NORMAL",
		},
	}
	data.update(overrides)
	return data


def break_activity_payload(**overrides) -> Dict[str, Any]:
	data = {
		"type": "BREAK",
		"info": "Break 10 minutes",
		"begin_utc": 1676015100,
		"end_utc": 1676015700,
		"begin_time": "10:45",
		"end_time": "10:55",
		"duration": 600,
	}
	data.update(overrides)
	return data


def schedule_payload() -> Dict[str, Any]:
	return {
		"date": "2023-02-10",
		"summary": "2 lessons",
		"activities": [lesson_activity_payload(), break_activity_payload()],
	}


def attachment_payload(**overrides) -> Dict[str, Any]:
	data = {
		"id": 77,
		"created_at": "09.02.2023 18:30",
		"file_file_name": "task.pdf",
		"file_file_size": 10,
		"file_content_type": "application/pdf",
		"path": "/system/attachments/77/task.pdf",
	}
	data.update(overrides)
	return data


def homework_payload(**overrides) -> Dict[str, Any]:
	data = {
		"id": 3001,
		"student_id": 42,
		"is_ready": False,
		"homework_entry": {
			"id": 4001,
			"created_at": "09.02.2023 18:30",
			"updated_at": "09.02.2023 19:05",
			"deleted_at": None,
			"description": "Read chapter 3",
			"duration": 30,
			"attachments": [attachment_payload()],
			"homework": {"subject": {"id": 33, "name": "Algebra"}},
		},
	}
	data.update(overrides)
	return data


def academic_years_payload() -> List[Dict[str, Any]]:
	return [
		{"id": 10, "name": "2021-2022", "begin_date": "2021-09-01", "end_date": "2022-08-31", "current_year": False},
		{"id": 11, "name": "2022-2023", "begin_date": "2022-09-01", "end_date": "2023-08-31", "current_year": True},
		{"id": 12, "name": "2023-2024", "begin_date": "2023-09-01", "end_date": "2024-08-31", "current_year": False},
	]


def visits_payload() -> Dict[str, Any]:
	return {
		"payload": [
			{
				"date": "2023-02-10",
				"visits": [
					{
						"in": "08:21",
						"out": "14:02",
						"duration": "5 h 41 min",
						"address": "Moscow, Lenina st. 1",
						"type": "COMMON",
						"is_warning": False,
						"short_name": "Building 1",
					},
				],
			},
		],
	}


def progress_payload() -> List[Dict[str, Any]]:
	return [
		{
			"subject_name": "Algebra",
			"avg_five": "4.67",
			"avg_hundred": "93.33",
			"periods": [
				{
					"name": "1 trimester",
					"start_iso": "2022-09-01",
					"end_iso": "2022-11-30",
					"avg_five": "4.67",
					"avg_hundred": "93.33",
					"marks": [mark_payload()],
				},
			],
		},
	]


@pytest.fixture
def session():
	return MockSession({ENDPOINTS.profile: MockResponse(json_data=profile_payload())})


@pytest.fixture
async def diary(session):
	"""Authenticated client on top of the mock session."""
	client = Diary(session=session)
	async with client:
		await client.authenticate(TOKEN)
		yield client
