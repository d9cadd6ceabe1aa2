#!/usr/bin/env python3
"""
Load an exam definition from a JSON file into the database.

Exams are authored elsewhere; this script is for local runs and demos.
The file holds the exam fields plus a ``questions`` list:

    {
      "title": "Algebra quiz",
      "duration": 30,
      "status": "published",
      "questions": [
        {"questionText": "2 + 2?", "type": "mcq", "options": ["3", "4"],
         "correctAnswer": "4", "marks": 2}
      ]
    }

Usage:
    python scripts/seed_exam.py exam.json
"""

import argparse
import json
from pathlib import Path

from examcore.database import SessionLocal, init_db
from examcore.models.db.exam import Exam, ExamStatus, Question


def build_exam(data: dict) -> Exam:
    exam = Exam(
        title=data["title"],
        subject=data.get("subject"),
        status=data.get("status", ExamStatus.PUBLISHED.value),
        duration=data.get("duration"),
        instructions=data.get("instructions"),
    )
    if data.get("id"):
        exam.id = data["id"]

    total = 0
    for position, item in enumerate(data.get("questions", [])):
        question = Question(
            position=position,
            question_text=item.get("questionText", ""),
            type=item["type"],
            marks=int(item.get("marks", 1)),
        )
        if item.get("id"):
            question.id = item["id"]
        question.options = item.get("options")
        question.correct_answer = item.get("correctAnswer")
        total += question.marks
        exam.questions.append(question)

    exam.total_marks = data.get("totalMarks", total)
    return exam


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed an exam from JSON")
    parser.add_argument("path", type=Path)
    args = parser.parse_args()

    data = json.loads(args.path.read_text(encoding="utf-8"))
    init_db()
    db = SessionLocal()
    try:
        exam = build_exam(data)
        db.add(exam)
        db.commit()
        print(f"Created exam {exam.id} with {len(exam.questions)} question(s)")
    finally:
        db.close()


if __name__ == "__main__":
    main()
