"""Main client for the dnevnik.mos.ru diary API."""

import logging
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar, Union

import aiohttp

from .const import (
	DEFAULT_HOST, DEFAULT_TIMEOUT, DOWNLOAD_TIMEOUT, LESSON_PLAN_STATUS,
	LESSON_SCHEDULE_ITEM_TYPE, PROFILE_TYPE_HEADER, PROFILE_TYPE_STUDENT,
	DiaryEndpoints,
)
from .exceptions import (
	DiaryAlreadyAuthenticatedError, DiaryDecodeError, DiaryEmptyResultError, DiaryMissingPrerequisiteError,
	DiaryNotAuthenticatedError, DiarySizeMismatchError,
)
from .models import (
	AcademicYear, FinalMark, GlobalAverageGrade, HomeworkAttachment,
	LessonInstance, LessonPlan, LessonScheduleItem, Schedule, StudentAttendance,
	StudentHomework, StudentProfile, StudentSession,
)
from . import parsers
from .transport import DiaryTransport
from .utils import DateLike, format_homework_date, format_query_date

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def select_progress_year(years: List[AcademicYear], prefer_current: bool = False) -> AcademicYear:
	"""Pick the academic year used for the progress report.

	The provider lists years chronologically, so the last one is taken. With
	``prefer_current`` the year flagged as current wins when there is one.
	"""
	if not years:
		raise DiaryEmptyResultError("No academic years returned by the API")
	if prefer_current:
		for year in years:
			if year.is_current:
				return year
		_LOGGER.warning("No academic year is flagged as current, falling back to the last one")
	return years[-1]


class Diary:
	"""Client for the student diary API.

	Usage:
		async with Diary() as diary:
			profile = await diary.authenticate(token)
			schedule = await diary.get_schedule(date.today())
	"""

	def __init__(self, session: Optional[aiohttp.ClientSession] = None, host: str = DEFAULT_HOST,
			timeout: float = DEFAULT_TIMEOUT, download_timeout: float = DOWNLOAD_TIMEOUT):
		"""Initialise diary client.

		Args:
			session: Optional aiohttp session. If None, a new one will be created.
			host: Base URL of the diary service
			timeout: Timeout for ordinary calls, in seconds
			download_timeout: Timeout for attachment downloads, in seconds
		"""
		self._session = session
		self._own_session = session is None
		self._timeout = timeout
		self._download_timeout = download_timeout
		self.endpoints = DiaryEndpoints.for_host(host)
		self._transport: Optional[DiaryTransport] = None
		self._token: Optional[str] = None
		self.profile: Optional[StudentProfile] = None
		self.student_id: Optional[int] = None
		self.authenticated = False

	async def __aenter__(self) -> "Diary":
		if self._own_session and self._session is None:
			self._session = aiohttp.ClientSession()
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb):
		await self.close()

	async def close(self) -> None:
		"""Close the session if this client created it."""
		if self._own_session and self._session:
			await self._session.close()
			self._session = None

	@classmethod
	async def create(cls, token: str, session: Optional[aiohttp.ClientSession] = None, **kwargs) -> "Diary":
		"""Build a client and authenticate it in one step.

		The caller owns the result and must ``await diary.close()``.
		"""
		diary = cls(session=session, **kwargs)
		await diary.__aenter__()
		try:
			await diary.authenticate(token)
		except Exception:
			await diary.close()
			raise
		return diary

	async def authenticate(self, token: str) -> StudentProfile:
		"""Validate the token and resolve the acting student.

		Args:
			token: Auth token issued by mos.ru

		Returns:
			Profile of the student owning the token
		"""
		if self._session is None:
			raise DiaryNotAuthenticatedError("Client not properly initialised, use 'async with Diary()'")
		if self.authenticated:
			raise DiaryAlreadyAuthenticatedError(
				f"Already authenticated as student {self.student_id}, create a new Diary to switch tokens"
			)
		transport = DiaryTransport(self._session, token, self._timeout, self._download_timeout)
		data = await transport.get_json(self.endpoints.profile)
		profile = self._decode(parsers.parse_profile, data, "profile")

		self._transport = transport
		self._token = token
		self.profile = profile
		self.student_id = profile.account.id
		self.authenticated = True
		_LOGGER.debug(f"Authenticated as student {self.student_id}")
		return profile

	def _ensure_authenticated(self) -> DiaryTransport:
		"""Ensure client is authenticated."""
		if not self.authenticated or self._transport is None:
			raise DiaryNotAuthenticatedError("Not authenticated. Call authenticate() first.")
		return self._transport

	@staticmethod
	def _decode(parser: Callable[[Any], T], data: Any, what: str) -> T:
		try:
			return parser(data)
		except DiaryDecodeError as e:
			_LOGGER.error(f"Failed to parse {what} data: {e}")
			raise

	async def get_session(self) -> StudentSession:
		"""Get the LMS session record of the logged-in person."""
		transport = self._ensure_authenticated()
		data = await transport.post_json(self.endpoints.sessions, {"auth_token": self._token})
		return self._decode(parsers.parse_session, data, "session")

	async def get_academic_years(self) -> List[AcademicYear]:
		transport = self._ensure_authenticated()
		data = await transport.get_json(self.endpoints.academic_years)
		return self._decode(parsers.parse_academic_years, data, "academic years")

	async def get_schedule(self, day: DateLike) -> Schedule:
		"""Get the schedule of one day.

		Args:
			day: Day to fetch; only its calendar date is sent

		Returns:
			Schedule with lessons and breaks in order
		"""
		transport = self._ensure_authenticated()
		params = {
			"student_id": self.student_id,
			"date": format_query_date(day),
		}
		data = await transport.get_json(self.endpoints.schedule, params=params)
		return self._decode(parsers.parse_schedule, data, "schedule")

	async def get_final_marks(self, year: AcademicYear) -> List[FinalMark]:
		return await self.get_final_marks_by_id(year.id)

	async def get_final_marks_by_id(self, year_id: int) -> List[FinalMark]:
		"""Get yearly marks for every subject of the given academic year."""
		transport = self._ensure_authenticated()
		params = {
			"student_profile_id": self.student_id,
			"academic_year_id": year_id,
			"is_year_mark": "true",
		}
		headers = {PROFILE_TYPE_HEADER: PROFILE_TYPE_STUDENT}
		data = await transport.get_json(self.endpoints.final_marks_prev_year, params=params, headers=headers)
		return self._decode(parsers.parse_final_marks, data, "final marks")

	async def get_lesson_schedule_item(self, schedule_id: int) -> LessonScheduleItem:
		transport = self._ensure_authenticated()
		params = {
			"student_id": self.student_id,
			"type": LESSON_SCHEDULE_ITEM_TYPE,
		}
		data = await transport.get_json(self.endpoints.lesson_schedule_item(schedule_id), params=params)
		return self._decode(parsers.parse_lesson_schedule_item, data, "lesson schedule item")

	async def get_lesson_plan(self, lesson: LessonInstance) -> LessonPlan:
		"""Get the module lesson plan of a lesson.

		Raises:
			DiaryMissingPrerequisiteError: If the API has no plan for the lesson
		"""
		schedule_item = await self.get_lesson_schedule_item(lesson.schedule_id)
		if schedule_item.plan_id is None:
			raise DiaryMissingPrerequisiteError(f"Could not get plan ID for the lesson {lesson.subject_name}!")
		return await self.get_lesson_plan_by_id(schedule_item.plan_id)

	async def get_lesson_plan_by_id(self, plan_id: int) -> LessonPlan:
		transport = self._ensure_authenticated()
		params = {
			"plan_id": plan_id,
			"ignore_owner": "true",
			"with_modules": "true",
			"with_topics": "true",
			"status": LESSON_PLAN_STATUS,
		}
		headers = {"Accept": "application/json"}
		data = await transport.get_json(self.endpoints.lesson_plans, params=params, headers=headers)
		plans = self._decode(parsers.parse_lesson_plans, data, "lesson plans")
		if not plans:
			raise DiaryEmptyResultError(f"No lesson plan returned for plan ID {plan_id}")
		return plans[0]

	async def get_homework(self, start: DateLike, end: DateLike) -> List[StudentHomework]:
		"""Get homework prepared between two days, inclusive."""
		transport = self._ensure_authenticated()
		params = {
			"begin_prepared_date": format_homework_date(start),
			"end_prepared_date": format_homework_date(end),
			"student_profile_id": self.student_id,
		}
		data = await transport.get_json(self.endpoints.student_homeworks, params=params)
		return self._decode(parsers.parse_student_homeworks, data, "homework")

	async def download_attachment(self, destination: Union[str, Path], attachment: HomeworkAttachment) -> int:
		"""Download a homework attachment to a local file.

		Args:
			destination: File path to write
			attachment: Attachment as returned by get_homework()

		Returns:
			Number of bytes written

		Raises:
			DiarySizeMismatchError: If fewer bytes arrived than the attachment declares
		"""
		transport = self._ensure_authenticated()
		url = self.endpoints.attachment(attachment.relative_path)
		copied = await transport.download(url, destination)
		if copied < attachment.file_size:
			raise DiarySizeMismatchError(copied, attachment.file_size)
		if copied > attachment.file_size:
			_LOGGER.warning(
				f"Attachment {attachment.file_name} is larger than declared ({copied} > {attachment.file_size})"
			)
		return copied

	async def get_progress(self, year: Optional[AcademicYear] = None,
			prefer_current: bool = False) -> List[GlobalAverageGrade]:
		"""Get the progress report of the student.

		Args:
			year: Academic year to report on. If None, it is looked up.
			prefer_current: Pick the year flagged as current instead of the last one

		Returns:
			Average grades per subject
		"""
		transport = self._ensure_authenticated()
		if year is None:
			year = select_progress_year(await self.get_academic_years(), prefer_current)
		params = {
			"academic_year_id": year.id,
			"student_profile_id": self.student_id,
		}
		data = await transport.get_json(self.endpoints.progress, params=params)
		return self._decode(parsers.parse_progress, data, "progress")

	async def get_visits(self, start: DateLike, end: DateLike) -> List[StudentAttendance]:
		"""Get school building visits between two days.

		Raises:
			DiaryMissingPrerequisiteError: If the profile carries no contract ID
		"""
		transport = self._ensure_authenticated()
		contract_id = self.profile.details().contract_id
		if contract_id is None:
			raise DiaryMissingPrerequisiteError("Provided student profile did not have `contract_id`!")
		params = {
			"from": format_query_date(start),
			"to": format_query_date(end),
			"contract_id": contract_id,
		}
		data = await transport.get_json(self.endpoints.visits, params=params)
		return self._decode(parsers.parse_visits, data, "visits")
