"""Constants and endpoint layout for the dnevnik.mos.ru API."""

from dataclasses import dataclass

from . import __version__

DEFAULT_HOST = "https://dnevnik.mos.ru"

# API group prefixes
CORE_API = "/core/api"
MOBILE_API = "/mobile/api"
LMS_API = "/lms/api"
JERSEY_API = "/jersey/api"
REPORTS_API = "/jersey/api"

# Request defaults
USER_AGENT = f"Dnevnik-Mos-Python/{__version__}"
REFERER = "https://dnevnik.mos.ru/diary/"
AUTH_TOKEN_HEADER = "Auth-Token"
PROFILE_TYPE_HEADER = "Profile-Type"
PROFILE_TYPE_STUDENT = "student"

# Timeouts in seconds
DEFAULT_TIMEOUT = 10
DOWNLOAD_TIMEOUT = 15  # attachment sizes vary a lot

DOWNLOAD_CHUNK_SIZE = 64 * 1024

# Fixed query values
LESSON_SCHEDULE_ITEM_TYPE = "OO"
LESSON_PLAN_STATUS = "for_calendar_plan"

# Date formats used by the provider
QUERY_DATE_FORMAT = "%Y-%m-%d"
HOMEWORK_DATE_FORMAT = "%d.%m.%Y"
DIARY_DATETIME_FORMAT = "%d.%m.%Y %H:%M"


@dataclass(frozen=True)
class DiaryEndpoints:
	"""Absolute URLs of every resource, built once per client."""
	host: str
	profile: str
	sessions: str
	academic_years: str
	schedule: str
	final_marks_prev_year: str
	lesson_plans: str
	student_homeworks: str
	progress: str
	visits: str

	@classmethod
	def for_host(cls, host: str = DEFAULT_HOST) -> "DiaryEndpoints":
		host = host.rstrip("/")
		return cls(
			host=host,
			profile=f"{host}{MOBILE_API}/profile",
			sessions=f"{host}{LMS_API}/sessions",
			academic_years=f"{host}{CORE_API}/academic_years",
			schedule=f"{host}{MOBILE_API}/schedule",
			final_marks_prev_year=f"{host}{CORE_API}/final_marks_prev_year",
			lesson_plans=f"{host}{JERSEY_API}/lesson_plans",
			student_homeworks=f"{host}{CORE_API}/student_homeworks",
			progress=f"{host}{REPORTS_API}/progress/json",
			visits=f"{host}{MOBILE_API}/visits",
		)

	def lesson_schedule_item(self, schedule_id: int) -> str:
		"""URL of a single lesson schedule item."""
		return f"{self.host}{MOBILE_API}/lesson_schedule_items/{int(schedule_id)}"

	def attachment(self, relative_path: str) -> str:
		"""URL of a homework attachment given its server-relative path."""
		if not relative_path.startswith("/"):
			relative_path = f"/{relative_path}"
		return f"{self.host}{relative_path}"
