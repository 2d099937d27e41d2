"""Decoders turning diary API JSON into model objects.

Every public ``parse_*`` function takes the already JSON-decoded payload and
either returns a fully built model or raises DiaryDecodeError naming the
offending field. Nothing here performs I/O.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar
from uuid import UUID

from .exceptions import DiaryDecodeError
from .models import (
	AcademicYear, Account, BreakActivity, FinalMark, GlobalAverageGrade, Grade,
	HomeworkAttachment, HomeworkEntry, HomeworkSubject, LessonActivity,
	LessonInstance, LessonPlan, LessonScheduleItem, LessonTeacher, MarkInstance,
	ModuleTopic, PeriodAverageGrade, PlanModule, Schedule, ScheduleActivity,
	School, StudentAttendance, StudentDetails, StudentHomework, StudentProfile,
	StudentSession, StudentVisit, SubjectGroup, SystemBasedMarkValue,
	_HomeworkWrapper,
)
from .utils import (
	parse_diary_datetime, parse_epoch_datetime, parse_iso_date,
	parse_iso_datetime, parse_optional_diary_datetime,
)

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


def _expect_dict(data: Any, context: str) -> Dict[str, Any]:
	if not isinstance(data, dict):
		raise DiaryDecodeError(f"{context}: expected an object, got {type(data).__name__}", field=context)
	return data


def _expect_list(data: Any, context: str) -> List[Any]:
	if not isinstance(data, list):
		raise DiaryDecodeError(f"{context}: expected a list, got {type(data).__name__}", field=context)
	return data


def _get(data: Dict[str, Any], key: str, context: str, expected: Optional[type] = None,
		optional: bool = False, default: Any = None) -> Any:
	"""Read one field, checking presence and (optionally) its JSON type."""
	value = data.get(key, _MISSING)
	if value is _MISSING or value is None:
		if optional:
			return default
		raise DiaryDecodeError(f"{context}: missing field '{key}'", field=f"{context}.{key}")
	if expected is not None:
		# bool is a subclass of int, JSON never mixes them
		wrong_bool = expected in (int, float) and isinstance(value, bool)
		if expected is float:
			ok = isinstance(value, (int, float))
		else:
			ok = isinstance(value, expected)
		if wrong_bool or not ok:
			raise DiaryDecodeError(
				f"{context}: field '{key}' should be {expected.__name__}, got {type(value).__name__}",
				field=f"{context}.{key}",
			)
	return value


def _convert(data: Dict[str, Any], key: str, context: str, converter: Callable[[Any], T],
		optional: bool = False) -> Optional[T]:
	"""Read one field and run it through a converter, mapping ValueError to a decode error."""
	value = _get(data, key, context, optional=optional)
	if value is None:
		return None
	try:
		return converter(value)
	except (TypeError, ValueError) as e:
		raise DiaryDecodeError(f"{context}: field '{key}': {e}", field=f"{context}.{key}") from e


def _parse_list(data: Any, context: str, parser: Callable[[Any], T]) -> List[T]:
	return [parser(item) for item in _expect_list(data, context)]


def _parse_tuple(data: Any, context: str, parser: Callable[[Any], T]) -> Tuple[T, ...]:
	return tuple(parser(item) for item in _expect_list(data, context))


def _uuid(value: Any) -> UUID:
	return UUID(str(value))


# Profile

def parse_account(data: Any, context: str = "account") -> Account:
	data = _expect_dict(data, context)
	return Account(
		id=_get(data, "id", context, int),
		last_name=_get(data, "last_name", context, str),
		first_name=_get(data, "first_name", context, str),
		middle_name=_get(data, "middle_name", context, str, optional=True),
		birth_date=_convert(data, "birth_date", context, parse_iso_date, optional=True),
		gender=_get(data, "sex", context, str, optional=True),
		user_id=_get(data, "user_id", context, int, optional=True),
		contract_id=_get(data, "contract_id", context, int, optional=True),
		phone=_get(data, "phone", context, str, optional=True),
		email=_get(data, "email", context, str, optional=True),
		snils=_get(data, "snils", context, str, optional=True),
		profile_type=_get(data, "type", context, str, optional=True),
	)


def parse_school(data: Any) -> School:
	data = _expect_dict(data, "school")
	return School(
		id=_get(data, "id", "school", int),
		full_name=_get(data, "name", "school", str),
		short_name=_get(data, "short_name", "school", str, optional=True),
		county=_get(data, "county", "school", str, optional=True),
		principal=_get(data, "principal", "school", str, optional=True),
		phone=_get(data, "phone", "school", str, optional=True),
	)


def parse_subject_group(data: Any) -> SubjectGroup:
	data = _expect_dict(data, "group")
	return SubjectGroup(
		id=_get(data, "id", "group", int),
		name=_get(data, "name", "group", str),
		subject_id=_get(data, "subject_id", "group", int, optional=True),
		is_fake=_get(data, "is_fake", "group", bool, optional=True, default=False),
	)


def parse_student_details(data: Any) -> StudentDetails:
	"""Parse one ``children`` entry; its account fields sit in the same object."""
	data = _expect_dict(data, "children")
	return StudentDetails(
		parent_account=parse_account(data, "children"),
		school=parse_school(_get(data, "school", "children")),
		class_name=_get(data, "class_name", "children", str),
		grade=_get(data, "class_level_id", "children", int),
		class_id=_get(data, "class_unit_id", "children", int),
		subjects=_parse_tuple(_get(data, "groups", "children", optional=True, default=[]), "children.groups", parse_subject_group),
		representatives=_parse_tuple(
			_get(data, "representatives", "children", optional=True, default=[]),
			"children.representatives",
			lambda item: parse_account(item, "representative"),
		),
		sections=_parse_tuple(_get(data, "sections", "children", optional=True, default=[]), "children.sections", parse_subject_group),
		is_legal_representative=_get(data, "is_legal_representative", "children", bool, optional=True, default=False),
		uuid=_convert(data, "contingent_guid", "children", _uuid, optional=True),
		contract_id=_get(data, "contract_id", "children", int, optional=True),
	)


def parse_profile(data: Any) -> StudentProfile:
	data = _expect_dict(data, "profile response")
	details = _parse_tuple(_get(data, "children", "profile response"), "children", parse_student_details)
	if not details:
		raise DiaryDecodeError("profile response: 'children' must hold at least one student", field="children")
	return StudentProfile(
		hash=_get(data, "hash", "profile response", str, optional=True, default=""),
		account=parse_account(_get(data, "profile", "profile response"), "profile"),
		_details=details,
	)


def parse_session(data: Any) -> StudentSession:
	data = _expect_dict(data, "session")
	return StudentSession(
		id=_get(data, "id", "session", int),
		person_id=_convert(data, "person_id", "session", _uuid),
		last_name=_get(data, "last_name", "session", str),
		first_name=_get(data, "first_name", "session", str),
		middle_name=_get(data, "middle_name", "session", str, optional=True),
		date_of_birth=_convert(data, "date_of_birth", "session", parse_iso_date, optional=True),
		gender=_get(data, "sex", "session", str, optional=True),
		phone_number=_get(data, "phone_number", "session", str, optional=True),
		email=_get(data, "email", "session", str, optional=True),
		snils=_get(data, "snils", "session", str, optional=True),
	)


# Academic years and marks

def parse_academic_year(data: Any) -> AcademicYear:
	data = _expect_dict(data, "academic_year")
	return AcademicYear(
		id=_get(data, "id", "academic_year", int),
		description=_get(data, "name", "academic_year", str),
		begin_date=_convert(data, "begin_date", "academic_year", parse_iso_date),
		end_date=_convert(data, "end_date", "academic_year", parse_iso_date),
		is_current=_get(data, "current_year", "academic_year", bool, optional=True, default=False),
	)


def parse_academic_years(data: Any) -> List[AcademicYear]:
	return _parse_list(data, "academic_years", parse_academic_year)


def parse_grade(data: Any) -> Grade:
	data = _expect_dict(data, "grade")
	origin = data.get("origin")
	return Grade(
		five=float(_get(data, "five", "grade", float)),
		hundred=float(_get(data, "hundred", "grade", float)),
		origin=str(origin) if origin is not None else None,
	)


def parse_mark_value(data: Any) -> SystemBasedMarkValue:
	data = _expect_dict(data, "mark.values")
	return SystemBasedMarkValue(
		name=_get(data, "name", "mark.values", str),
		maximum=float(_get(data, "nmax", "mark.values", float)),
		grade=parse_grade(_get(data, "grade", "mark.values")),
		grade_system_type=_get(data, "grade_system_type", "mark.values", str, optional=True),
	)


def parse_mark(data: Any) -> MarkInstance:
	data = _expect_dict(data, "mark")
	return MarkInstance(
		id=_get(data, "id", "mark", int),
		value=str(_get(data, "value", "mark")),
		values=_parse_tuple(_get(data, "values", "mark", optional=True, default=[]), "mark.values", parse_mark_value),
		weight=_get(data, "weight", "mark", int),
		is_exam=_get(data, "is_exam", "mark", bool, optional=True, default=False),
		is_point=_get(data, "is_point", "mark", bool, optional=True, default=False),
		comment=_get(data, "comment", "mark", str, optional=True),
		cause=_get(data, "control_form_name", "mark", str, optional=True),
		created_at=_convert(data, "created_at", "mark", parse_iso_datetime, optional=True),
		updated_at=_convert(data, "updated_at", "mark", parse_iso_datetime, optional=True),
		point_date=_convert(data, "point_date", "mark", parse_iso_date, optional=True),
	)


def parse_final_mark(data: Any) -> FinalMark:
	data = _expect_dict(data, "final_mark")
	return FinalMark(
		subject_id=_get(data, "subject_id", "final_mark", int),
		subject_name=_get(data, "subject_name", "final_mark", str),
		value=str(_get(data, "value", "final_mark")),
		id=_get(data, "id", "final_mark", int, optional=True),
		academic_year_id=_get(data, "academic_year_id", "final_mark", int, optional=True),
		comment=_get(data, "comment", "final_mark", str, optional=True),
	)


def parse_final_marks(data: Any) -> List[FinalMark]:
	return _parse_list(data, "final_marks", parse_final_mark)


# Schedule

def parse_teacher(data: Any) -> LessonTeacher:
	data = _expect_dict(data, "lesson.teacher")
	return LessonTeacher(
		last_name=_get(data, "last_name", "lesson.teacher", str, optional=True, default=""),
		first_name=_get(data, "first_name", "lesson.teacher", str, optional=True, default=""),
		middle_name=_get(data, "middle_name", "lesson.teacher", str, optional=True),
		id=_get(data, "id", "lesson.teacher", int, optional=True),
	)


def _parse_lesson_homework(data: Any) -> Optional[str]:
	if data is None:
		return None
	if isinstance(data, str):
		return data or None
	data = _expect_dict(data, "lesson.homework")
	descriptions = _expect_list(data.get("descriptions") or [], "lesson.homework.descriptions")
	text = "\n".join(str(description) for description in descriptions if description)
	return text or None


def parse_lesson_instance(data: Any) -> LessonInstance:
	data = _expect_dict(data, "lesson")
	teacher = data.get("teacher")
	return LessonInstance(
		schedule_id=_get(data, "schedule_item_id", "lesson", int),
		subject_name=_get(data, "subject_name", "lesson", str),
		subject_id=_get(data, "subject_id", "lesson", int, optional=True),
		teacher=parse_teacher(teacher) if teacher is not None else None,
		marks=_parse_tuple(_get(data, "marks", "lesson", optional=True, default=[]), "lesson.marks", parse_mark),
		homework=_parse_lesson_homework(data.get("homework")),
		is_cancelled=_get(data, "is_cancelled", "lesson", bool, optional=True, default=False),
		is_missed_lesson=_get(data, "is_missed_lesson", "lesson", bool, optional=True, default=False),
		is_virtual=_get(data, "is_virtual", "lesson", bool, optional=True, default=False),
		lesson_type=_get(data, "lesson_type", "lesson", str, optional=True),
	)


def _parse_lesson_activity(data: Dict[str, Any]) -> LessonActivity:
	return LessonActivity(
		begin=_convert(data, "begin_utc", "activity", parse_epoch_datetime),
		end=_convert(data, "end_utc", "activity", parse_epoch_datetime),
		lesson=parse_lesson_instance(_get(data, "lesson", "activity")),
		begin_time=_get(data, "begin_time", "activity", str, optional=True),
		end_time=_get(data, "end_time", "activity", str, optional=True),
		info=_get(data, "info", "activity", str, optional=True),
		room_number=_convert(data, "room_number", "activity", str, optional=True),
		room_name=_get(data, "room_name", "activity", str, optional=True),
		building_name=_get(data, "building_name", "activity", str, optional=True),
	)


def _parse_break_activity(data: Dict[str, Any]) -> BreakActivity:
	return BreakActivity(
		begin=_convert(data, "begin_utc", "activity", parse_epoch_datetime),
		end=_convert(data, "end_utc", "activity", parse_epoch_datetime),
		duration=_get(data, "duration", "activity", int),
		begin_time=_get(data, "begin_time", "activity", str, optional=True),
		end_time=_get(data, "end_time", "activity", str, optional=True),
		info=_get(data, "info", "activity", str, optional=True),
	)


_ACTIVITY_PARSERS: Dict[str, Callable[[Dict[str, Any]], ScheduleActivity]] = {
	LessonActivity.kind: _parse_lesson_activity,
	BreakActivity.kind: _parse_break_activity,
}


def parse_schedule_activity(data: Any) -> ScheduleActivity:
	"""Dispatch on the ``type`` tag; unknown tags are an error, never a default."""
	data = _expect_dict(data, "activity")
	tag = _get(data, "type", "activity", str)
	parser = _ACTIVITY_PARSERS.get(tag)
	if parser is None:
		_LOGGER.error(f"Unknown schedule activity type {tag!r}")
		raise DiaryDecodeError(
			f"activity: unknown type {tag!r}, expected one of {sorted(_ACTIVITY_PARSERS)}",
			field="activity.type",
		)
	return parser(data)


def parse_schedule(data: Any) -> Schedule:
	data = _expect_dict(data, "schedule")
	return Schedule(
		date=_convert(data, "date", "schedule", parse_iso_date),
		summary=_get(data, "summary", "schedule", str, optional=True, default=""),
		activities=_parse_tuple(_get(data, "activities", "schedule", optional=True, default=[]), "schedule.activities", parse_schedule_activity),
	)


# Lesson plans

def parse_lesson_schedule_item(data: Any) -> LessonScheduleItem:
	data = _expect_dict(data, "lesson_schedule_item")
	return LessonScheduleItem(
		id=_get(data, "id", "lesson_schedule_item", int),
		plan_id=_get(data, "plan_id", "lesson_schedule_item", int, optional=True),
		subject_id=_get(data, "subject_id", "lesson_schedule_item", int, optional=True),
		subject_name=_get(data, "subject_name", "lesson_schedule_item", str, optional=True),
	)


def parse_module_topic(data: Any) -> ModuleTopic:
	data = _expect_dict(data, "topic")
	return ModuleTopic(
		id=_get(data, "id", "topic", int),
		name=_get(data, "name", "topic", str, optional=True),
		position=_get(data, "position", "topic", int, optional=True),
	)


def parse_plan_module(data: Any) -> PlanModule:
	data = _expect_dict(data, "module")
	return PlanModule(
		id=_get(data, "id", "module", int),
		name=_get(data, "name", "module", str, optional=True),
		position=_get(data, "position", "module", int, optional=True),
		topics=_parse_tuple(_get(data, "topics", "module", optional=True, default=[]), "module.topics", parse_module_topic),
	)


def parse_lesson_plan(data: Any) -> LessonPlan:
	data = _expect_dict(data, "lesson_plan")
	return LessonPlan(
		id=_get(data, "id", "lesson_plan", int),
		name=_get(data, "name", "lesson_plan", str, optional=True),
		subject_id=_get(data, "subject_id", "lesson_plan", int, optional=True),
		subject_name=_get(data, "subject_name", "lesson_plan", str, optional=True),
		status=_get(data, "status", "lesson_plan", str, optional=True),
		modules=_parse_tuple(_get(data, "modules", "lesson_plan", optional=True, default=[]), "lesson_plan.modules", parse_plan_module),
	)


def parse_lesson_plans(data: Any) -> List[LessonPlan]:
	return _parse_list(data, "lesson_plans", parse_lesson_plan)


# Homework

def parse_homework_attachment(data: Any) -> HomeworkAttachment:
	data = _expect_dict(data, "attachment")
	return HomeworkAttachment(
		id=_get(data, "id", "attachment", int),
		created_at=_convert(data, "created_at", "attachment", parse_diary_datetime),
		file_name=_get(data, "file_file_name", "attachment", str),
		file_size=_get(data, "file_file_size", "attachment", int),
		content_type=_get(data, "file_content_type", "attachment", str),
		relative_path=_get(data, "path", "attachment", str),
	)


def parse_homework_subject(data: Any) -> HomeworkSubject:
	data = _expect_dict(data, "homework.subject")
	return HomeworkSubject(
		id=_get(data, "id", "homework.subject", int),
		name=_get(data, "name", "homework.subject", str),
	)


def parse_homework_entry(data: Any) -> HomeworkEntry:
	data = _expect_dict(data, "homework_entry")
	wrapper = _expect_dict(_get(data, "homework", "homework_entry"), "homework_entry.homework")
	return HomeworkEntry(
		id=_get(data, "id", "homework_entry", int),
		created_at=_convert(data, "created_at", "homework_entry", parse_diary_datetime),
		updated_at=_convert(data, "updated_at", "homework_entry", parse_diary_datetime),
		description=_get(data, "description", "homework_entry", str, optional=True, default=""),
		expected_duration=_get(data, "duration", "homework_entry", int, optional=True, default=0),
		attachments=_parse_tuple(_get(data, "attachments", "homework_entry", optional=True, default=[]), "homework_entry.attachments", parse_homework_attachment),
		_homework=_HomeworkWrapper(subject=parse_homework_subject(_get(wrapper, "subject", "homework_entry.homework"))),
		deleted_at=_convert(data, "deleted_at", "homework_entry", parse_optional_diary_datetime, optional=True),
	)


def parse_student_homework(data: Any) -> StudentHomework:
	data = _expect_dict(data, "student_homework")
	return StudentHomework(
		id=_get(data, "id", "student_homework", int),
		student_id=_get(data, "student_id", "student_homework", int),
		is_ready=_get(data, "is_ready", "student_homework", bool, optional=True, default=False),
		homework_entry=parse_homework_entry(_get(data, "homework_entry", "student_homework")),
	)


def parse_student_homeworks(data: Any) -> List[StudentHomework]:
	return _parse_list(data, "student_homeworks", parse_student_homework)


# Attendance

def unwrap_payload(data: Any, context: str = "response") -> Any:
	"""Strip the single-field ``{"payload": ...}`` envelope."""
	data = _expect_dict(data, context)
	if "payload" not in data:
		raise DiaryDecodeError(f"{context}: missing field 'payload'", field=f"{context}.payload")
	return data["payload"]


def parse_student_visit(data: Any) -> StudentVisit:
	data = _expect_dict(data, "visit")
	return StudentVisit(
		entrance=_get(data, "in", "visit", str),
		exit=_get(data, "out", "visit", str),
		duration=_get(data, "duration", "visit", str),
		address=_get(data, "address", "visit", str, optional=True),
		visit_type=_get(data, "type", "visit", str, optional=True),
		is_warning=_get(data, "is_warning", "visit", bool, optional=True, default=False),
		short_name=_get(data, "short_name", "visit", str, optional=True),
	)


def parse_student_attendance(data: Any) -> StudentAttendance:
	data = _expect_dict(data, "attendance")
	return StudentAttendance(
		date=_convert(data, "date", "attendance", parse_iso_date),
		visits=_parse_tuple(_get(data, "visits", "attendance", optional=True, default=[]), "attendance.visits", parse_student_visit),
	)


def parse_visits(data: Any) -> List[StudentAttendance]:
	return _parse_list(unwrap_payload(data, "visits"), "visits.payload", parse_student_attendance)


# Progress

def parse_period_average_grade(data: Any) -> PeriodAverageGrade:
	data = _expect_dict(data, "period")
	return PeriodAverageGrade(
		name=_get(data, "name", "period", str),
		start=_convert(data, "start_iso", "period", parse_iso_date),
		end=_convert(data, "end_iso", "period", parse_iso_date),
		five=str(_get(data, "avg_five", "period", optional=True, default="")),
		hundred=str(_get(data, "avg_hundred", "period", optional=True, default="")),
		marks=_parse_tuple(_get(data, "marks", "period", optional=True, default=[]), "period.marks", parse_mark),
	)


def parse_global_average_grade(data: Any) -> GlobalAverageGrade:
	data = _expect_dict(data, "progress")
	return GlobalAverageGrade(
		subject_name=_get(data, "subject_name", "progress", str),
		five=str(_get(data, "avg_five", "progress", optional=True, default="")),
		hundred=str(_get(data, "avg_hundred", "progress", optional=True, default="")),
		periods=_parse_tuple(_get(data, "periods", "progress", optional=True, default=[]), "progress.periods", parse_period_average_grade),
	)


def parse_progress(data: Any) -> List[GlobalAverageGrade]:
	return _parse_list(data, "progress", parse_global_average_grade)
