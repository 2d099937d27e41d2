"""Tests for the Diary facade: request building, lifecycle and prerequisites."""

from datetime import date, datetime

import pytest

from dnevnik.client import Diary, select_progress_year
from dnevnik.exceptions import (
	DiaryAlreadyAuthenticatedError, DiaryAuthError, DiaryDecodeError, DiaryEmptyResultError,
	DiaryMissingPrerequisiteError, DiaryNotAuthenticatedError,
)
from dnevnik.parsers import parse_academic_years, parse_lesson_instance

from conftest import (
	ENDPOINTS, TOKEN, MockResponse, MockSession, academic_years_payload,
	homework_payload, lesson_activity_payload, profile_payload,
	progress_payload, schedule_payload, visits_payload,
)


class TestAuthentication:

	async def test_resolves_student_id(self, diary, session):
		assert diary.authenticated
		assert diary.student_id == 42
		assert diary.profile.details().class_name == "10-A"
		assert session.get.call_count == 1
		assert session.get.call_args.args[0] == ENDPOINTS.profile

	async def test_rejected_token_leaves_client_unauthenticated(self):
		session = MockSession({ENDPOINTS.profile: MockResponse(status=401)})
		async with Diary(session=session) as diary:
			with pytest.raises(DiaryAuthError):
				await diary.authenticate("bad")
			assert not diary.authenticated
			assert diary.student_id is None

	async def test_undecodable_profile(self):
		session = MockSession({ENDPOINTS.profile: MockResponse(json_data={"profile": {}})})
		async with Diary(session=session) as diary:
			with pytest.raises(DiaryDecodeError):
				await diary.authenticate(TOKEN)
			assert not diary.authenticated

	async def test_calls_before_authenticate_fail_without_network(self):
		session = MockSession()
		async with Diary(session=session) as diary:
			with pytest.raises(DiaryNotAuthenticatedError):
				await diary.get_academic_years()
			with pytest.raises(DiaryMissingPrerequisiteError):
				await diary.get_visits(date(2023, 2, 1), date(2023, 2, 7))
		assert session.request_count == 0

	async def test_second_authenticate_rejected_without_network(self, diary, session):
		with pytest.raises(DiaryAlreadyAuthenticatedError):
			await diary.authenticate("other-token")
		assert session.get.call_count == 1
		assert diary.student_id == 42
		assert diary.authenticated

	async def test_authenticate_without_session(self):
		diary = Diary()
		with pytest.raises(DiaryNotAuthenticatedError):
			await diary.authenticate(TOKEN)

	async def test_injected_session_is_not_closed(self, session):
		async with Diary(session=session) as diary:
			await diary.authenticate(TOKEN)
		assert not session.closed

	async def test_create(self, session):
		diary = await Diary.create(TOKEN, session=session)
		assert diary.student_id == 42
		await diary.close()

	async def test_custom_host(self):
		diary = Diary(host="https://school.mos.ru/")
		assert diary.endpoints.profile == "https://school.mos.ru/mobile/api/profile"


class TestRequests:

	async def test_session_posts_token(self, diary, session):
		session.routes[ENDPOINTS.sessions] = MockResponse(json_data={
			"id": 42,
			"person_id": "0f8fad5b-d9cb-469f-a165-70867728950e",
			"last_name": "Ivanov",
			"first_name": "Ivan",
		})

		result = await diary.get_session()

		assert result.id == 42
		assert session.post.call_args.kwargs["json"] == {"auth_token": TOKEN}

	async def test_schedule_sends_date_only(self, diary, session):
		session.routes[ENDPOINTS.schedule] = MockResponse(json_data=schedule_payload())

		schedule = await diary.get_schedule(datetime(2023, 2, 10, 23, 59))

		assert schedule.summary == "2 lessons"
		params = session.get.call_args.kwargs["params"]
		assert params == {"student_id": 42, "date": "2023-02-10"}

	async def test_final_marks(self, diary, session):
		session.routes[ENDPOINTS.final_marks_prev_year] = MockResponse(json_data=[
			{"subject_id": 33, "subject_name": "Algebra", "value": "5"},
		])
		year = parse_academic_years(academic_years_payload())[0]

		marks = await diary.get_final_marks(year)

		assert marks[0].value == "5"
		kwargs = session.get.call_args.kwargs
		assert kwargs["params"] == {"student_profile_id": 42, "academic_year_id": 10, "is_year_mark": "true"}
		assert kwargs["headers"]["Profile-Type"] == "student"

	async def test_homework_uses_day_month_year(self, diary, session):
		session.routes[ENDPOINTS.student_homeworks] = MockResponse(json_data=[homework_payload()])

		homework = await diary.get_homework(date(2023, 2, 1), datetime(2023, 2, 14, 12, 0))

		assert homework[0].homework_entry.subject.name == "Algebra"
		params = session.get.call_args.kwargs["params"]
		assert params == {
			"begin_prepared_date": "01.02.2023",
			"end_prepared_date": "14.02.2023",
			"student_profile_id": 42,
		}

	async def test_visits_unwraps_payload(self, diary, session):
		session.routes[ENDPOINTS.visits] = MockResponse(json_data=visits_payload())

		visits = await diary.get_visits(date(2023, 2, 4), date(2023, 2, 10))

		assert visits[0].visits[0].short_name == "Building 1"
		params = session.get.call_args.kwargs["params"]
		assert params == {"from": "2023-02-04", "to": "2023-02-10", "contract_id": 777}

	async def test_visits_without_contract_id_makes_no_request(self):
		session = MockSession({ENDPOINTS.profile: MockResponse(json_data=profile_payload(contract_id=None))})
		async with Diary(session=session) as diary:
			await diary.authenticate(TOKEN)
			with pytest.raises(DiaryMissingPrerequisiteError, match="contract_id"):
				await diary.get_visits(date(2023, 2, 4), date(2023, 2, 10))
		assert session.request_count == 1
		assert session.calls_to(ENDPOINTS.visits) == []


class TestLessonPlan:

	@pytest.fixture
	def lesson(self):
		return parse_lesson_instance(lesson_activity_payload()["lesson"])

	async def test_two_hops(self, diary, session, lesson):
		item_url = ENDPOINTS.lesson_schedule_item(lesson.schedule_id)
		session.routes[item_url] = MockResponse(json_data={"id": lesson.schedule_id, "plan_id": 8})
		session.routes[ENDPOINTS.lesson_plans] = MockResponse(json_data=[
			{"id": 8, "name": "Algebra 10", "modules": []},
			{"id": 9, "name": "ignored", "modules": []},
		])

		plan = await diary.get_lesson_plan(lesson)

		assert plan.id == 8
		item_call = session.calls_to(item_url)[0]
		assert item_call.kwargs["params"] == {"student_id": 42, "type": "OO"}
		plan_call = session.calls_to(ENDPOINTS.lesson_plans)[0]
		assert plan_call.kwargs["params"] == {
			"plan_id": 8,
			"ignore_owner": "true",
			"with_modules": "true",
			"with_topics": "true",
			"status": "for_calendar_plan",
		}
		assert plan_call.kwargs["headers"]["Accept"] == "application/json"

	async def test_no_plan_id_stops_after_first_hop(self, diary, session, lesson):
		item_url = ENDPOINTS.lesson_schedule_item(lesson.schedule_id)
		session.routes[item_url] = MockResponse(json_data={"id": lesson.schedule_id, "plan_id": None})

		with pytest.raises(DiaryMissingPrerequisiteError, match="Algebra"):
			await diary.get_lesson_plan(lesson)
		assert session.calls_to(ENDPOINTS.lesson_plans) == []

	async def test_empty_plan_list(self, diary, session):
		session.routes[ENDPOINTS.lesson_plans] = MockResponse(json_data=[])

		with pytest.raises(DiaryEmptyResultError):
			await diary.get_lesson_plan_by_id(8)


class TestProgress:

	async def test_uses_last_year_by_default(self, diary, session):
		session.routes[ENDPOINTS.academic_years] = MockResponse(json_data=academic_years_payload())
		session.routes[ENDPOINTS.progress] = MockResponse(json_data=progress_payload())

		progress = await diary.get_progress()

		assert progress[0].subject_name == "Algebra"
		params = session.calls_to(ENDPOINTS.progress)[0].kwargs["params"]
		assert params == {"academic_year_id": 12, "student_profile_id": 42}

	async def test_prefer_current(self, diary, session):
		session.routes[ENDPOINTS.academic_years] = MockResponse(json_data=academic_years_payload())
		session.routes[ENDPOINTS.progress] = MockResponse(json_data=progress_payload())

		await diary.get_progress(prefer_current=True)

		params = session.calls_to(ENDPOINTS.progress)[0].kwargs["params"]
		assert params["academic_year_id"] == 11

	async def test_explicit_year_skips_lookup(self, diary, session):
		session.routes[ENDPOINTS.progress] = MockResponse(json_data=progress_payload())
		year = parse_academic_years(academic_years_payload())[0]

		await diary.get_progress(year)

		assert session.calls_to(ENDPOINTS.academic_years) == []

	async def test_no_years(self, diary, session):
		session.routes[ENDPOINTS.academic_years] = MockResponse(json_data=[])

		with pytest.raises(DiaryEmptyResultError):
			await diary.get_progress()
		assert session.calls_to(ENDPOINTS.progress) == []


def test_select_progress_year_falls_back_to_last():
	years = parse_academic_years([
		{"id": 1, "name": "a", "begin_date": "2021-09-01", "end_date": "2022-08-31", "current_year": False},
		{"id": 2, "name": "b", "begin_date": "2022-09-01", "end_date": "2023-08-31", "current_year": False},
	])
	assert select_progress_year(years, prefer_current=True).id == 2
