"""Data models for dnevnik.mos.ru entities.

Every model is an immutable snapshot of one API response. Field names are the
domain names; parsers.py maps the provider's wire names onto them.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import ClassVar, Optional, Tuple, Union
from uuid import UUID

from .exceptions import DiaryEmptyResultError


@dataclass(frozen=True)
class StudentSession:
	"""The logged-in person as seen by the LMS sessions subsystem."""
	id: int
	person_id: UUID
	last_name: str
	first_name: str
	middle_name: Optional[str] = None
	date_of_birth: Optional[date] = None
	gender: Optional[str] = None
	phone_number: Optional[str] = None
	email: Optional[str] = None
	snils: Optional[str] = None  # individual insurance account number


@dataclass(frozen=True)
class Account:
	"""Person identity shared by profiles, students and representatives."""
	id: int
	last_name: str
	first_name: str
	middle_name: Optional[str] = None
	birth_date: Optional[date] = None
	gender: Optional[str] = None
	# internal id of the profile, not used by any student method
	user_id: Optional[int] = None
	# second identifier, only present on some profile forms
	contract_id: Optional[int] = None
	phone: Optional[str] = None
	email: Optional[str] = None
	snils: Optional[str] = None
	profile_type: Optional[str] = None  # "student", "teacher" or None for representatives

	@property
	def full_name(self) -> str:
		return " ".join(part for part in (self.last_name, self.first_name, self.middle_name) if part)


@dataclass(frozen=True)
class School:
	id: int
	full_name: str
	short_name: Optional[str] = None
	county: Optional[str] = None
	principal: Optional[str] = None
	phone: Optional[str] = None


@dataclass(frozen=True)
class SubjectGroup:
	"""A subject group or section the student belongs to."""
	id: int
	name: str
	subject_id: Optional[int] = None  # None for section groups
	is_fake: bool = False


@dataclass(frozen=True)
class StudentDetails:
	"""School-side details of a student."""
	parent_account: Account
	school: School
	class_name: str
	grade: int
	class_id: int
	subjects: Tuple[SubjectGroup, ...]
	representatives: Tuple[Account, ...]
	sections: Tuple[SubjectGroup, ...]
	is_legal_representative: bool
	uuid: Optional[UUID] = None
	contract_id: Optional[int] = None


@dataclass(frozen=True)
class StudentProfile:
	"""Profile returned by the mobile profile endpoint."""
	hash: str
	account: Account
	_details: Tuple[StudentDetails, ...] = field(repr=False)

	def details(self) -> StudentDetails:
		"""Details of the student; the API always sends exactly one entry."""
		if not self._details:
			raise DiaryEmptyResultError("Student profile has no details entry")
		return self._details[0]

	@property
	def student_id(self) -> int:
		return self.account.id


@dataclass(frozen=True)
class AcademicYear:
	id: int
	description: str
	begin_date: date
	end_date: date
	is_current: bool = False

	def __str__(self) -> str:
		return f"{self.description} ({self.begin_date.isoformat()} - {self.end_date.isoformat()})"


@dataclass(frozen=True)
class Grade:
	"""A mark value expressed on both five- and hundred-point bases."""
	five: float
	hundred: float
	origin: Optional[str] = None


@dataclass(frozen=True)
class SystemBasedMarkValue:
	"""Mark value in one grading system."""
	name: str
	maximum: float
	grade: Grade
	grade_system_type: Optional[str] = None


@dataclass(frozen=True)
class MarkInstance:
	"""A single mark given for a lesson or control work."""
	id: int
	value: str
	values: Tuple[SystemBasedMarkValue, ...]
	weight: int
	is_exam: bool = False
	is_point: bool = False
	comment: Optional[str] = None
	cause: Optional[str] = None  # control form name
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None
	point_date: Optional[date] = None

	def __str__(self) -> str:
		return f"{self.value} (weight {self.weight})"


@dataclass(frozen=True)
class FinalMark:
	"""Settled yearly mark for one subject."""
	subject_id: int
	subject_name: str
	value: str
	id: Optional[int] = None
	academic_year_id: Optional[int] = None
	comment: Optional[str] = None


@dataclass(frozen=True)
class LessonTeacher:
	last_name: str
	first_name: str
	middle_name: Optional[str] = None
	id: Optional[int] = None

	@property
	def full_name(self) -> str:
		return " ".join(part for part in (self.last_name, self.first_name, self.middle_name) if part)


@dataclass(frozen=True)
class LessonInstance:
	"""Lesson content embedded in a schedule activity."""
	schedule_id: int
	subject_name: str
	subject_id: Optional[int] = None
	teacher: Optional[LessonTeacher] = None
	marks: Tuple[MarkInstance, ...] = ()
	homework: Optional[str] = None
	is_cancelled: bool = False
	is_missed_lesson: bool = False
	is_virtual: bool = False
	lesson_type: Optional[str] = None


@dataclass(frozen=True)
class LessonActivity:
	"""A lesson slot in the day schedule."""
	kind: ClassVar[str] = "LESSON"

	begin: datetime
	end: datetime
	lesson: LessonInstance
	begin_time: Optional[str] = None
	end_time: Optional[str] = None
	info: Optional[str] = None
	room_number: Optional[str] = None
	room_name: Optional[str] = None
	building_name: Optional[str] = None

	def __str__(self) -> str:
		return f"{self.lesson.subject_name} ({self.begin_time}-{self.end_time})"


@dataclass(frozen=True)
class BreakActivity:
	"""A break between lessons."""
	kind: ClassVar[str] = "BREAK"

	begin: datetime
	end: datetime
	duration: int  # seconds
	begin_time: Optional[str] = None
	end_time: Optional[str] = None
	info: Optional[str] = None


ScheduleActivity = Union[LessonActivity, BreakActivity]


@dataclass(frozen=True)
class Schedule:
	"""Schedule of a single day."""
	date: date
	summary: str
	activities: Tuple[ScheduleActivity, ...]

	@property
	def lessons(self) -> Tuple[LessonActivity, ...]:
		return tuple(activity for activity in self.activities if isinstance(activity, LessonActivity))

	@property
	def breaks(self) -> Tuple[BreakActivity, ...]:
		return tuple(activity for activity in self.activities if isinstance(activity, BreakActivity))


@dataclass(frozen=True)
class LessonScheduleItem:
	"""Lookup record linking a scheduled lesson to its plan."""
	id: int
	plan_id: Optional[int] = None
	subject_id: Optional[int] = None
	subject_name: Optional[str] = None


@dataclass(frozen=True)
class ModuleTopic:
	id: int
	name: Optional[str] = None
	position: Optional[int] = None


@dataclass(frozen=True)
class PlanModule:
	id: int
	name: Optional[str] = None
	position: Optional[int] = None
	topics: Tuple[ModuleTopic, ...] = ()


@dataclass(frozen=True)
class LessonPlan:
	"""Teaching plan of a subject, split into modules and topics."""
	id: int
	name: Optional[str] = None
	subject_id: Optional[int] = None
	subject_name: Optional[str] = None
	status: Optional[str] = None
	modules: Tuple[PlanModule, ...] = ()


@dataclass(frozen=True)
class HomeworkSubject:
	id: int
	name: str


@dataclass(frozen=True)
class _HomeworkWrapper:
	# provider nesting around the subject, kept out of the public API
	subject: HomeworkSubject


@dataclass(frozen=True)
class HomeworkAttachment:
	"""File attached to a homework entry."""
	id: int
	created_at: datetime
	file_name: str
	file_size: int  # bytes, as declared by the server
	content_type: str
	relative_path: str


@dataclass(frozen=True)
class HomeworkEntry:
	"""Homework text, timestamps and attachments."""
	id: int
	created_at: datetime
	updated_at: datetime
	description: str
	expected_duration: int  # minutes
	attachments: Tuple[HomeworkAttachment, ...]
	_homework: _HomeworkWrapper = field(repr=False)
	deleted_at: Optional[datetime] = None

	@property
	def subject(self) -> HomeworkSubject:
		return self._homework.subject

	@property
	def is_deleted(self) -> bool:
		return self.deleted_at is not None


@dataclass(frozen=True)
class StudentHomework:
	id: int
	student_id: int
	is_ready: bool
	homework_entry: HomeworkEntry

	def __str__(self) -> str:
		return f"{self.homework_entry.subject.name}: {self.homework_entry.description}"


@dataclass(frozen=True)
class StudentVisit:
	"""One entry/exit pair at a school building."""
	entrance: str
	exit: str
	duration: str
	address: Optional[str] = None
	visit_type: Optional[str] = None  # only "COMMON" seen so far
	is_warning: bool = False
	short_name: Optional[str] = None


@dataclass(frozen=True)
class StudentAttendance:
	date: date
	visits: Tuple[StudentVisit, ...]


@dataclass(frozen=True)
class PeriodAverageGrade:
	"""Average grade of one subject over one grading period."""
	name: str
	start: date
	end: date
	five: str  # provider sends text, not always a number
	hundred: str
	marks: Tuple[MarkInstance, ...]


@dataclass(frozen=True)
class GlobalAverageGrade:
	"""Yearly average grade of one subject."""
	subject_name: str
	five: str
	hundred: str
	periods: Tuple[PeriodAverageGrade, ...]
