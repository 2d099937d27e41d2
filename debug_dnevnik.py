#!/usr/bin/env python3
"""
Diary Debug Script

This script walks through every diary endpoint with detailed logging and
prints what came back. Useful to check the client against the live service.

Usage:
    python3 debug_dnevnik.py

The script reads the token from a .env file, or prompts for it.

Create a .env file with:
    AUTH_TOKEN=your_mos_ru_token
"""

import asyncio
import getpass
import logging
import os
import sys
from datetime import date, timedelta

from dotenv import load_dotenv

from dnevnik.client import Diary
from dnevnik.exceptions import DiaryAuthError, DiaryError

load_dotenv()

# Set up detailed logging
logging.basicConfig(
	level=logging.DEBUG,
	format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


async def debug_diary(token: str) -> bool:
	"""Query each endpoint once and report the result."""
	print("🔍 Debugging Diary Endpoints")
	print("=" * 50)

	async with Diary() as diary:
		print("\n1️⃣ Authenticating...")
		try:
			profile = await diary.authenticate(token)
		except DiaryAuthError as e:
			print(f"   ❌ Authentication error: {e}")
			return False
		account = profile.account
		print(f"   ✅ Student: {account.full_name} (id {diary.student_id})")
		print(f"   School: {profile.details().school.full_name}, class {profile.details().class_name}")

		print("\n2️⃣ Academic years...")
		try:
			years = await diary.get_academic_years()
			for year in years:
				print(f"   {'➡️' if year.is_current else '  '} {year}")
			if years:
				finals = await diary.get_final_marks(years[-1])
				print(f"   Final marks for {years[-1].description}: {len(finals)}")
				for mark in finals:
					print(f"      {mark.subject_name}: {mark.value}")
		except DiaryError as e:
			print(f"   ❌ Error: {e}")

		print("\n3️⃣ Yesterday's schedule...")
		try:
			schedule = await diary.get_schedule(date.today() - timedelta(days=1))
			print(f"   Summary: {schedule.summary}")
			for lesson in schedule.lessons:
				print(f"   {lesson}")
				for mark in lesson.lesson.marks:
					print(f"      Mark {mark} for '{mark.cause}'")
				try:
					plan = await diary.get_lesson_plan(lesson.lesson)
					print(f"      Plan: {plan.name} ({len(plan.modules)} modules)")
				except DiaryError as e:
					print(f"      No plan: {e}")
		except DiaryError as e:
			print(f"   ❌ Error: {e}")

		print("\n4️⃣ Session...")
		try:
			session = await diary.get_session()
			print(f"   Session person: {session.person_id}")
		except DiaryError as e:
			print(f"   ❌ Error: {e}")

		print("\n5️⃣ Homework...")
		try:
			homework = await diary.get_homework(date.today() - timedelta(days=2), date.today() + timedelta(weeks=2))
			for item in homework:
				print(f"   {item}")
				for attachment in item.homework_entry.attachments:
					print(f"      📎 {attachment.file_name} ({attachment.file_size} bytes)")
		except DiaryError as e:
			print(f"   ❌ Error: {e}")

		print("\n6️⃣ Progress...")
		try:
			for grade in await diary.get_progress(prefer_current=True):
				print(f"   Current average grade for {grade.subject_name}: {grade.five}")
		except DiaryError as e:
			print(f"   ❌ Error: {e}")

		print("\n7️⃣ Visits...")
		try:
			for attendance in await diary.get_visits(date.today() - timedelta(days=7), date.today()):
				for visit in attendance.visits:
					print(f"   {attendance.date}: {visit.entrance} - {visit.exit} ({visit.duration})")
		except DiaryError as e:
			print(f"   ❌ Error: {e}")

	return True


async def main():
	"""Main debug function."""
	print("Diary Debug Script\n")

	token = os.getenv("AUTH_TOKEN")
	if not token:
		token = getpass.getpass("mos.ru auth token: ").strip()
		if not token:
			print("❌ Token is required!")
			return

	if await debug_diary(token):
		print("\n✅ Debug complete! Check the output above for any issues.")
	else:
		print("\n❌ Authentication failed. Please check your token and try again.")


if __name__ == "__main__":
	try:
		asyncio.run(main())
	except KeyboardInterrupt:
		print("\n\n⚠️ Debug interrupted by user.")
		sys.exit(1)
