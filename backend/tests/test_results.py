"""API tests for result listing, manual grading and publication."""

import pytest

from tests.conftest import auth_headers
from tests.helpers.seed import create_scenario_quiz, option_ids


@pytest.fixture
def graded_attempt(client, db, teacher, student, auth_headers_student):
    """A scenario quiz the student has submitted (10 / 15)."""
    quiz = create_scenario_quiz(db, teacher, duration_minutes=30, students=[student])
    q1, q2 = quiz.questions
    client.post(f"/v1/quizzes/{quiz.id}/start", headers=auth_headers_student)
    response = client.post(
        f"/v1/quizzes/{quiz.id}/submit",
        json={
            "answers": [
                {"question_id": str(q1.id), "answer_text": "yes"},
                {"question_id": str(q2.id), "selected_options": option_ids(q2, "X")},
            ]
        },
        headers=auth_headers_student,
    )
    assert response.status_code == 200
    return quiz, response.json()["submission_id"]


def test_list_submissions(client, graded_attempt, auth_headers_teacher, student):
    quiz, submission_id = graded_attempt

    response = client.get(f"/v1/quizzes/{quiz.id}/submissions", headers=auth_headers_teacher)

    assert response.status_code == 200
    [row] = response.json()
    assert row["id"] == submission_id
    assert row["student_id"] == str(student.id)
    assert row["status"] == "graded"
    assert row["total_score"] == 10.0
    assert row["percentage"] == 66.67


def test_submission_detail_has_per_question_awards(client, graded_attempt, auth_headers_teacher):
    quiz, submission_id = graded_attempt
    q1, q2 = quiz.questions

    response = client.get(
        f"/v1/quizzes/{quiz.id}/submissions/{submission_id}", headers=auth_headers_teacher
    )

    assert response.status_code == 200
    answers = {a["question_id"]: a for a in response.json()["answers"]}
    assert answers[str(q1.id)]["marks_awarded"] == 5.0
    assert answers[str(q1.id)]["is_correct"] is True
    assert answers[str(q2.id)]["marks_awarded"] == 5.0
    assert answers[str(q2.id)]["is_correct"] is False
    assert answers[str(q2.id)]["selected_options"] == option_ids(q2, "X")


def test_student_cannot_list_submissions(client, graded_attempt, auth_headers_student):
    quiz, _ = graded_attempt

    response = client.get(f"/v1/quizzes/{quiz.id}/submissions", headers=auth_headers_student)

    assert response.status_code == 403


def test_other_teacher_cannot_see_submissions(client, graded_attempt, other_teacher):
    quiz, _ = graded_attempt

    response = client.get(f"/v1/quizzes/{quiz.id}/submissions", headers=auth_headers(other_teacher))

    assert response.status_code == 403


def test_result_hidden_until_published(client, graded_attempt, auth_headers_student, auth_headers_teacher):
    quiz, submission_id = graded_attempt

    hidden = client.get(f"/v1/quizzes/{quiz.id}/result", headers=auth_headers_student)
    assert hidden.status_code == 400
    assert hidden.json()["message"] == "Results not yet published"

    published = client.post(
        f"/v1/quizzes/{quiz.id}/submissions/{submission_id}/publish", headers=auth_headers_teacher
    )
    assert published.status_code == 200
    assert published.json()["status"] == "published"
    assert published.json()["published_at"] is not None

    visible = client.get(f"/v1/quizzes/{quiz.id}/result", headers=auth_headers_student)
    assert visible.status_code == 200
    assert visible.json()["total_score"] == 10.0
    assert len(visible.json()["answers"]) == 2


def test_status_includes_results_after_publish(client, graded_attempt, auth_headers_student, auth_headers_teacher):
    quiz, submission_id = graded_attempt
    client.post(f"/v1/quizzes/{quiz.id}/submissions/{submission_id}/publish", headers=auth_headers_teacher)

    data = client.get(f"/v1/quizzes/{quiz.id}/status", headers=auth_headers_student).json()

    assert data["status"] == "published"
    assert data["results"]["totalScore"] == 10.0


def test_publish_twice_conflicts(client, graded_attempt, auth_headers_teacher):
    quiz, submission_id = graded_attempt
    url = f"/v1/quizzes/{quiz.id}/submissions/{submission_id}/publish"

    client.post(url, headers=auth_headers_teacher)
    response = client.post(url, headers=auth_headers_teacher)

    assert response.status_code == 409
    assert response.json()["error_code"] == "NOT_GRADED"
    assert response.json()["details"] == {"status": "published"}


def test_publish_in_progress_attempt_conflicts(
    client, db, teacher, student, auth_headers_student, auth_headers_teacher
):
    quiz = create_scenario_quiz(db, teacher, duration_minutes=30, students=[student])
    started = client.post(f"/v1/quizzes/{quiz.id}/start", headers=auth_headers_student).json()

    response = client.post(
        f"/v1/quizzes/{quiz.id}/submissions/{started['submission_id']}/publish",
        headers=auth_headers_teacher,
    )

    assert response.status_code == 409


def test_result_without_attempt_is_not_found(client, db, teacher, auth_headers_student):
    quiz = create_scenario_quiz(db, teacher)

    response = client.get(f"/v1/quizzes/{quiz.id}/result", headers=auth_headers_student)

    assert response.status_code == 404


# ============================================================================
# Manual grading
# ============================================================================


def grade(client, quiz, submission_id, headers, grades, teacher_comments=None):
    return client.post(
        f"/v1/quizzes/{quiz.id}/submissions/{submission_id}/grade",
        json={"grades": grades, "teacher_comments": teacher_comments},
        headers=headers,
    )


def test_grade_override_recomputes_totals(client, graded_attempt, teacher, auth_headers_teacher):
    quiz, submission_id = graded_attempt
    q1, q2 = quiz.questions

    response = grade(
        client,
        quiz,
        submission_id,
        auth_headers_teacher,
        [{"question_id": str(q2.id), "marks_awarded": "10", "teacher_feedback": "X implies Y here"}],
        teacher_comments="Generous, but fair",
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "graded"
    assert data["total_score"] == 15.0
    assert data["max_score"] == 15.0
    assert data["percentage"] == 100.0
    assert data["teacher_comments"] == "Generous, but fair"
    answers = {a["question_id"]: a for a in data["answers"]}
    assert answers[str(q2.id)]["marks_awarded"] == 10.0
    assert answers[str(q2.id)]["is_correct"] is True
    assert answers[str(q2.id)]["teacher_feedback"] == "X implies Y here"
    # Untouched questions keep their automatic marks
    assert answers[str(q1.id)]["marks_awarded"] == 5.0
    assert answers[str(q1.id)]["teacher_feedback"] is None


def test_regrade_keeps_earlier_overrides(client, graded_attempt, auth_headers_teacher):
    quiz, submission_id = graded_attempt
    q1, q2 = quiz.questions

    first = [{"question_id": str(q2.id), "marks_awarded": 10}]
    second = [{"question_id": str(q1.id), "marks_awarded": 2.5}]

    grade(client, quiz, submission_id, auth_headers_teacher, first)
    response = grade(client, quiz, submission_id, auth_headers_teacher, second)

    assert response.status_code == 200
    assert response.json()["total_score"] == 12.5
    assert response.json()["percentage"] == 83.33


def test_grade_unanswered_question(client, db, teacher, student, auth_headers_student, auth_headers_teacher):
    quiz = create_scenario_quiz(db, teacher, students=[student])
    q1, q2 = quiz.questions
    client.post(f"/v1/quizzes/{quiz.id}/start", headers=auth_headers_student)
    submitted = client.post(
        f"/v1/quizzes/{quiz.id}/submit",
        json={"answers": [{"question_id": str(q1.id), "answer_text": "yes"}]},
        headers=auth_headers_student,
    ).json()

    response = grade(
        client,
        quiz,
        submitted["submission_id"],
        auth_headers_teacher,
        [{"question_id": str(q2.id), "marks_awarded": "4", "teacher_feedback": "Shown on paper"}],
    )

    assert response.status_code == 200
    answers = {a["question_id"]: a for a in response.json()["answers"]}
    assert answers[str(q2.id)]["answer_text"] is None
    assert answers[str(q2.id)]["marks_awarded"] == 4.0
    assert answers[str(q2.id)]["is_correct"] is False
    assert response.json()["total_score"] == 9.0


def test_grade_rejects_marks_above_question(client, graded_attempt, auth_headers_teacher):
    quiz, submission_id = graded_attempt
    q1 = quiz.questions[0]

    response = grade(
        client, quiz, submission_id, auth_headers_teacher, [{"question_id": str(q1.id), "marks_awarded": 6}]
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "VALIDATION_ERROR"
    assert response.json()["details"] == {"question_ids": [str(q1.id)]}


def test_grade_rejects_foreign_question(client, db, teacher, graded_attempt, auth_headers_teacher):
    quiz, submission_id = graded_attempt
    other = create_scenario_quiz(db, teacher)

    response = grade(
        client,
        quiz,
        submission_id,
        auth_headers_teacher,
        [{"question_id": str(other.questions[0].id), "marks_awarded": 1}],
    )

    assert response.status_code == 400
    detail = client.get(
        f"/v1/quizzes/{quiz.id}/submissions/{submission_id}", headers=auth_headers_teacher
    ).json()
    assert detail["total_score"] == 10.0


def test_grade_published_result_conflicts(client, graded_attempt, auth_headers_teacher):
    quiz, submission_id = graded_attempt
    q1 = quiz.questions[0]
    client.post(f"/v1/quizzes/{quiz.id}/submissions/{submission_id}/publish", headers=auth_headers_teacher)

    response = grade(
        client, quiz, submission_id, auth_headers_teacher, [{"question_id": str(q1.id), "marks_awarded": 0}]
    )

    assert response.status_code == 409
    assert response.json()["error_code"] == "NOT_GRADABLE"
    assert response.json()["details"] == {"status": "published"}


def test_grade_in_progress_attempt_conflicts(
    client, db, teacher, student, auth_headers_student, auth_headers_teacher
):
    quiz = create_scenario_quiz(db, teacher, duration_minutes=30, students=[student])
    started = client.post(f"/v1/quizzes/{quiz.id}/start", headers=auth_headers_student).json()

    response = grade(
        client,
        quiz,
        started["submission_id"],
        auth_headers_teacher,
        [{"question_id": str(quiz.questions[0].id), "marks_awarded": 5}],
    )

    assert response.status_code == 409
    assert response.json()["details"] == {"status": "in_progress"}


def test_student_cannot_grade(client, graded_attempt, auth_headers_student):
    quiz, submission_id = graded_attempt

    response = grade(
        client,
        quiz,
        submission_id,
        auth_headers_student,
        [{"question_id": str(quiz.questions[1].id), "marks_awarded": 10}],
    )

    assert response.status_code == 403


def test_published_result_carries_feedback(client, graded_attempt, auth_headers_teacher, auth_headers_student):
    quiz, submission_id = graded_attempt
    q2 = quiz.questions[1]
    grade(
        client,
        quiz,
        submission_id,
        auth_headers_teacher,
        [{"question_id": str(q2.id), "marks_awarded": 7, "teacher_feedback": "Y was also right"}],
        teacher_comments="Check option Y next time",
    )
    client.post(f"/v1/quizzes/{quiz.id}/submissions/{submission_id}/publish", headers=auth_headers_teacher)

    result = client.get(f"/v1/quizzes/{quiz.id}/result", headers=auth_headers_student).json()

    assert result["total_score"] == 12.0
    assert result["teacher_comments"] == "Check option Y next time"
    answers = {a["question_id"]: a for a in result["answers"]}
    assert answers[str(q2.id)]["teacher_feedback"] == "Y was also right"


# ============================================================================
# Student results
# ============================================================================


def test_student_results_show_scores_once_published(
    client, graded_attempt, auth_headers_student, auth_headers_teacher
):
    quiz, submission_id = graded_attempt

    before = client.get("/v1/quizzes/student/results", headers=auth_headers_student)
    client.post(f"/v1/quizzes/{quiz.id}/submissions/{submission_id}/publish", headers=auth_headers_teacher)
    after = client.get("/v1/quizzes/student/results", headers=auth_headers_student)

    assert before.status_code == 200
    [row] = before.json()
    assert row["submission_id"] == submission_id
    assert row["quiz_title"] == "Test quiz"
    assert row["status"] == "graded"
    assert row["total_score"] is None
    assert row["percentage"] is None

    [row] = after.json()
    assert row["status"] == "published"
    assert row["total_score"] == 10.0
    assert row["max_score"] == 15.0
    assert row["percentage"] == 66.67


def test_student_results_skip_open_attempts_and_other_students(
    client, db, teacher, student, other_student, graded_attempt, auth_headers_student
):
    quiz = create_scenario_quiz(db, teacher, title="Still open", students=[student, other_student])
    client.post(f"/v1/quizzes/{quiz.id}/start", headers=auth_headers_student)
    other_headers = auth_headers(other_student)
    client.post(f"/v1/quizzes/{quiz.id}/start", headers=other_headers)
    client.post(f"/v1/quizzes/{quiz.id}/submit", json={"answers": []}, headers=other_headers)

    mine = client.get("/v1/quizzes/student/results", headers=auth_headers_student).json()
    theirs = client.get("/v1/quizzes/student/results", headers=other_headers).json()

    assert [row["quiz_id"] for row in mine] == [str(graded_attempt[0].id)]
    assert [row["quiz_title"] for row in theirs] == ["Still open"]


def test_teacher_cannot_list_student_results(client, auth_headers_teacher):
    response = client.get("/v1/quizzes/student/results", headers=auth_headers_teacher)

    assert response.status_code == 403
