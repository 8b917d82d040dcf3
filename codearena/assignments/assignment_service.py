"""
Assignment storage, attempt tracking and grading

MCQ answers are graded on submit: full points when the chosen option is
flagged correct, zero otherwise. Coding answers are stored for manual
grading. Finished attempts (submitted or graded) count against max_attempts.
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from codearena.assignments.assignment_models import QuestionType, SubmissionStatus
from codearena.community.community_service import get_user_group_ids
from codearena.database import generate_id, serialize_many, serialize_mongo

logger = logging.getLogger(__name__)

FINISHED_STATUSES = [SubmissionStatus.SUBMITTED.value, SubmissionStatus.GRADED.value]

# ==================== ASSIGNMENT CRUD ====================

async def create_assignment(db: AsyncIOMotorDatabase, assignment_data: dict, creator_id: str) -> dict:
    now = datetime.utcnow()
    assignment = {
        "assignment_id": generate_id("ASG"),
        **assignment_data,
        "created_by": creator_id,
        "created_at": now,
        "updated_at": now,
    }
    await db.assignments.insert_one(assignment)
    return serialize_mongo(assignment)


async def get_assignment(db: AsyncIOMotorDatabase, assignment_id: str) -> Optional[dict]:
    return serialize_mongo(await db.assignments.find_one({"assignment_id": assignment_id}))


async def list_assignments(db: AsyncIOMotorDatabase, query: dict = None) -> List[dict]:
    cursor = db.assignments.find(query or {}).sort("created_at", -1)
    return serialize_many(await cursor.to_list(length=None))


async def update_assignment(db: AsyncIOMotorDatabase, assignment_id: str, updates: dict) -> Optional[dict]:
    updates["updated_at"] = datetime.utcnow()
    result = await db.assignments.update_one({"assignment_id": assignment_id}, {"$set": updates})
    if result.matched_count == 0:
        return None
    return await get_assignment(db, assignment_id)


async def delete_assignment(db: AsyncIOMotorDatabase, assignment_id: str) -> bool:
    result = await db.assignments.delete_one({"assignment_id": assignment_id})
    if result.deleted_count == 0:
        return False
    await db.assignment_submissions.delete_many({"assignment_id": assignment_id})
    return True

# ==================== VISIBILITY ====================

def is_targeted(assignment: dict, user_id: str, group_ids: List[str]) -> bool:
    """Untargeted assignments are open to everyone"""
    assigned_to = assignment.get("assigned_to") or []
    assigned_groups = assignment.get("assigned_groups") or []
    if not assigned_to and not assigned_groups:
        return True
    return user_id in assigned_to or any(g in assigned_groups for g in group_ids)


async def list_for_student(db: AsyncIOMotorDatabase, user_id: str, course_tag: Optional[str] = None) -> List[dict]:
    query = {"is_visible": True}
    if course_tag:
        query["course_tag"] = course_tag

    group_ids = await get_user_group_ids(db, user_id)
    assignments = await list_assignments(db, query)
    return [
        strip_answers(a) for a in assignments if is_targeted(a, user_id, group_ids)
    ]


def strip_answers(assignment: dict) -> dict:
    """Hide option correctness and hidden test cases from students"""
    stripped = dict(assignment)
    questions = []
    for question in assignment.get("questions", []):
        q = dict(question)
        if q.get("options"):
            q["options"] = [
                {k: v for k, v in opt.items() if k != "is_correct"} for opt in q["options"]
            ]
        if q.get("test_cases"):
            q["test_cases"] = [tc for tc in q["test_cases"] if not tc.get("is_hidden", False)]
        questions.append(q)
    stripped["questions"] = questions
    return stripped


async def ensure_student_access(db: AsyncIOMotorDatabase, assignment: dict, user_id: str):
    """
    Raises:
        403: Assignment hidden or not assigned to this user
    """
    if not assignment.get("is_visible", False):
        raise HTTPException(status_code=403, detail="Assignment is not available")
    group_ids = await get_user_group_ids(db, user_id)
    if not is_targeted(assignment, user_id, group_ids):
        raise HTTPException(status_code=403, detail="Assignment is not available")


def deadline_passed(assignment: dict, now: Optional[datetime] = None) -> bool:
    deadline = assignment.get("deadline")
    return bool(deadline) and (now or datetime.utcnow()) > deadline

# ==================== GRADING ====================

def grade_mcq(question: dict, selected_option_id: Optional[str]) -> tuple[bool, int]:
    """Full points for the correct option, zero otherwise"""
    for option in question.get("options") or []:
        if option["id"] == selected_option_id:
            if option.get("is_correct", False):
                return True, question["points"]
            return False, 0
    return False, 0


def score_percent(total_score: float, max_score: float) -> float:
    if max_score <= 0:
        return 0.0
    return min(100.0, max(0.0, round(total_score / max_score * 100, 2)))


def max_score_of(assignment: dict) -> int:
    return sum(q["points"] for q in assignment.get("questions", []))


def evaluate_answers(assignment: dict, answers: List[dict]) -> dict:
    """
    Grade a full set of answers against the assignment's questions

    Returns:
        dict with question_submissions, total_score, max_score,
        score_percent and fully_graded (no coding question awaits review)
    """
    by_question = {a["question_id"]: a for a in answers}

    question_submissions = []
    total_score = 0
    fully_graded = True

    for question in assignment.get("questions", []):
        answer = by_question.get(question["id"], {})
        entry = {
            "question_id": question["id"],
            "type": question["type"],
            "selected_option_id": answer.get("selected_option_id"),
            "code": answer.get("code"),
            "language": answer.get("language"),
            "is_correct": None,
            "score": None,
            "feedback": None,
        }

        if question["type"] == QuestionType.MCQ.value:
            is_correct, score = grade_mcq(question, answer.get("selected_option_id"))
            entry["is_correct"] = is_correct
            entry["score"] = score
            total_score += score
        else:
            fully_graded = False

        question_submissions.append(entry)

    max_score = max_score_of(assignment)
    return {
        "question_submissions": question_submissions,
        "total_score": total_score,
        "max_score": max_score,
        "score_percent": score_percent(total_score, max_score),
        "fully_graded": fully_graded,
    }


def merge_answers(existing: List[dict], updates: List[dict]) -> List[dict]:
    merged = {a["question_id"]: a for a in existing}
    for answer in updates:
        merged[answer["question_id"]] = {**merged.get(answer["question_id"], {}), **answer}
    return list(merged.values())

# ==================== ATTEMPTS ====================

async def count_finished_attempts(db: AsyncIOMotorDatabase, assignment_id: str, user_id: str) -> int:
    return await db.assignment_submissions.count_documents({
        "assignment_id": assignment_id,
        "user_id": user_id,
        "status": {"$in": FINISHED_STATUSES},
    })


async def get_draft(db: AsyncIOMotorDatabase, assignment_id: str, user_id: str) -> Optional[dict]:
    return await db.assignment_submissions.find_one({
        "assignment_id": assignment_id,
        "user_id": user_id,
        "status": SubmissionStatus.IN_PROGRESS.value,
    })


async def get_latest_submission(db: AsyncIOMotorDatabase, assignment_id: str, user_id: str) -> Optional[dict]:
    submissions = await db.assignment_submissions.find(
        {"assignment_id": assignment_id, "user_id": user_id}
    ).sort("attempt_number", -1).limit(1).to_list(length=1)
    return serialize_mongo(submissions[0]) if submissions else None


async def list_submissions(db: AsyncIOMotorDatabase, assignment_id: str, user_id: Optional[str] = None) -> List[dict]:
    query = {"assignment_id": assignment_id}
    if user_id:
        query["user_id"] = user_id
    cursor = db.assignment_submissions.find(query).sort("created_at", -1)
    return serialize_many(await cursor.to_list(length=None))


async def save_draft(db: AsyncIOMotorDatabase, assignment: dict, user_id: str, answers: List[dict]) -> dict:
    """
    Create or update the caller's in-progress attempt

    Raises:
        400: Deadline passed or attempts exhausted
    """
    assignment_id = assignment["assignment_id"]

    if deadline_passed(assignment):
        raise HTTPException(status_code=400, detail="Assignment deadline has passed")

    now = datetime.utcnow()
    draft = await get_draft(db, assignment_id, user_id)

    if draft:
        merged = merge_answers(draft.get("answers", []), answers)
        await db.assignment_submissions.update_one(
            {"submission_id": draft["submission_id"]},
            {"$set": {"answers": merged, "updated_at": now}}
        )
        draft["answers"] = merged
        draft["updated_at"] = now
        return serialize_mongo(draft)

    finished = await count_finished_attempts(db, assignment_id, user_id)
    if finished >= assignment.get("max_attempts", 1):
        raise HTTPException(status_code=400, detail="Maximum attempts exceeded")

    draft = {
        "submission_id": generate_id("ASUB"),
        "assignment_id": assignment_id,
        "user_id": user_id,
        "attempt_number": finished + 1,
        "answers": merge_answers([], answers),
        "question_submissions": [],
        "total_score": 0,
        "max_score": max_score_of(assignment),
        "score_percent": 0.0,
        "status": SubmissionStatus.IN_PROGRESS.value,
        "submitted_at": None,
        "graded_at": None,
        "feedback": None,
        "created_at": now,
        "updated_at": now,
    }
    await db.assignment_submissions.insert_one(draft)
    return serialize_mongo(draft)


async def submit_attempt(
    db: AsyncIOMotorDatabase,
    assignment: dict,
    user_id: str,
    answers: Optional[List[dict]] = None,
) -> dict:
    """
    Finalize the caller's attempt and auto-grade its MCQ answers

    Raises:
        400: Deadline passed or attempts exhausted
    """
    assignment_id = assignment["assignment_id"]

    if deadline_passed(assignment):
        raise HTTPException(status_code=400, detail="Assignment deadline has passed")

    finished = await count_finished_attempts(db, assignment_id, user_id)
    if finished >= assignment.get("max_attempts", 1):
        raise HTTPException(status_code=400, detail="Maximum attempts exceeded")

    draft = await save_draft(db, assignment, user_id, answers or [])

    result = evaluate_answers(assignment, draft["answers"])
    now = datetime.utcnow()

    graded = assignment.get("auto_grade", True) and result["fully_graded"]
    final_fields = {
        "question_submissions": result["question_submissions"],
        "total_score": result["total_score"],
        "max_score": result["max_score"],
        "score_percent": result["score_percent"],
        "status": SubmissionStatus.GRADED.value if graded else SubmissionStatus.SUBMITTED.value,
        "submitted_at": now,
        "graded_at": now if graded else None,
        "updated_at": now,
    }
    await db.assignment_submissions.update_one(
        {"submission_id": draft["submission_id"]},
        {"$set": final_fields}
    )
    draft.update(final_fields)

    logger.info(
        "Assignment %s attempt %s by %s: %s (%s/%s)",
        assignment_id, draft["attempt_number"], user_id,
        final_fields["status"], result["total_score"], result["max_score"],
    )
    return draft


async def grade_submission(
    db: AsyncIOMotorDatabase,
    assignment: dict,
    submission_id: str,
    grades: List[dict],
    feedback: Optional[str] = None,
) -> Optional[dict]:
    """
    Apply manual per-question scores, clamped to each question's points

    Raises:
        400: Submission is still in progress or references an unknown question
    """
    submission = await db.assignment_submissions.find_one({
        "submission_id": submission_id,
        "assignment_id": assignment["assignment_id"],
    })
    if not submission:
        return None

    if submission["status"] == SubmissionStatus.IN_PROGRESS.value:
        raise HTTPException(status_code=400, detail="Submission has not been submitted yet")

    points = {q["id"]: q["points"] for q in assignment.get("questions", [])}
    question_submissions = {qs["question_id"]: qs for qs in submission.get("question_submissions", [])}

    for grade in grades:
        question_id = grade["question_id"]
        if question_id not in points:
            raise HTTPException(status_code=400, detail=f"Unknown question: {question_id}")
        entry = question_submissions.setdefault(question_id, {"question_id": question_id})
        entry["score"] = min(float(grade["score"]), points[question_id])
        entry["is_correct"] = entry["score"] >= points[question_id]
        if grade.get("feedback") is not None:
            entry["feedback"] = grade["feedback"]

    total_score = sum((qs.get("score") or 0) for qs in question_submissions.values())
    max_score = sum(points.values())
    now = datetime.utcnow()

    updates = {
        "question_submissions": list(question_submissions.values()),
        "total_score": total_score,
        "max_score": max_score,
        "score_percent": score_percent(total_score, max_score),
        "status": SubmissionStatus.GRADED.value,
        "graded_at": now,
        "updated_at": now,
    }
    if feedback is not None:
        updates["feedback"] = feedback

    await db.assignment_submissions.update_one({"submission_id": submission_id}, {"$set": updates})
    submission.update(updates)
    return serialize_mongo(submission)
