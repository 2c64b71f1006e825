"""
End-to-end tests for quiz generation, attempts, history and hints
"""

from app.models.quiz import Question
from app.schemas.quiz import GeneratedQuestion
from app.services.quiz import FALLBACK_HINT


def generated(order, text, answer="A"):
    return GeneratedQuestion(
        question_text=text,
        question_type="multiple_choice",
        options=["Mitochondria", "Nucleus", "Ribosome", "Golgi body"],
        correct_answer=answer,
        explanation="The mitochondria produce most of the cell's energy.",
        difficulty="medium",
        points=2,
        question_order=order,
    )


def take_quiz(client, headers, quiz, choices):
    start = client.post(f"/api/submission/quiz/{quiz.id}/start", headers=headers)
    assert start.status_code == 201
    submission_id = start.json()["submission_id"]
    payload = {
        "answers": [
            {"question_id": question.id, "answer": choice, "time_taken": 15}
            for question, choice in zip(quiz.questions, choices)
        ]
    }
    return client.post(
        f"/api/submission/{submission_id}/submit", json=payload, headers=headers
    )


# ==================== Generation ====================


def test_generate_quiz_with_ai_questions(client, fake_ai, make_user, auth_headers):
    fake_ai.questions = [
        generated(1, "Which organelle produces energy?"),
        generated(2, "Which organelle holds DNA?", answer="B"),
    ]
    user = make_user("instructor")

    response = client.post(
        "/api/quiz/generate",
        json={
            "subject": "biology",
            "grade_level": 9,
            "total_questions": 2,
            "difficulty_level": "medium",
            "topics": ["cells"],
        },
        headers=auth_headers(user),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["difficulty_analysis"] is None
    quiz = data["quiz"]
    assert quiz["title"] == "Biology Quiz - Grade 9"
    assert quiz["ai_generated"] is True
    assert quiz["difficulty_level"] == "medium"
    assert quiz["tags"] == ["cells"]
    assert quiz["total_questions"] == 2
    assert [q["correct_answer"] for q in quiz["questions"]] == ["A", "B"]
    assert fake_ai.calls == ["generate_questions"]


def test_generate_quiz_falls_back_to_samples(client, make_user, auth_headers):
    user = make_user("instructor")

    response = client.post(
        "/api/quiz/generate",
        json={"subject": "science", "grade_level": 6, "total_questions": 3},
        headers=auth_headers(user),
    )

    assert response.status_code == 201
    data = response.json()
    quiz = data["quiz"]
    assert quiz["ai_generated"] is False
    assert quiz["total_questions"] == 3
    assert [q["question_order"] for q in quiz["questions"]] == [1, 2, 3]
    # Two science samples, cycled
    assert quiz["questions"][2]["question_text"] == quiz["questions"][0]["question_text"]

    analysis = data["difficulty_analysis"]
    assert analysis["recommended_difficulty"] == "mixed"
    assert analysis["based_on_history"] is False
    assert analysis["recommendation"]["trend"] == "no_data"
    assert quiz["difficulty_level"] == "mixed"


def test_adaptive_generation_uses_subject_history(
    client, make_user, make_quiz, auth_headers
):
    learner = make_user("learner")
    headers = auth_headers(learner)
    quiz = make_quiz(make_user("author"))
    assert take_quiz(client, headers, quiz, ["A", "A"]).status_code == 200

    response = client.post(
        "/api/quiz/generate",
        json={
            "subject": "mathematics",
            "grade_level": 5,
            "total_questions": 2,
            "difficulty_level": "adaptive",
        },
        headers=headers,
    )

    assert response.status_code == 201
    analysis = response.json()["difficulty_analysis"]
    assert analysis["based_on_history"] is True
    assert analysis["recommended_difficulty"] == "easy"
    assert response.json()["quiz"]["difficulty_level"] == "easy"


def test_generate_rejects_out_of_range_grade(client, make_user, auth_headers):
    response = client.post(
        "/api/quiz/generate",
        json={"subject": "science", "grade_level": 13},
        headers=auth_headers(make_user("instructor")),
    )

    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_FAILED"


def test_generation_is_rate_limited(client, make_user, auth_headers):
    headers = auth_headers(make_user("spammer"))
    payload = {"subject": "mathematics", "grade_level": 4, "total_questions": 1}

    statuses = [
        client.post("/api/quiz/generate", json=payload, headers=headers).status_code
        for _ in range(6)
    ]

    assert statuses == [201] * 5 + [429]


def test_difficulty_recommendation_endpoint(client, make_user, auth_headers):
    response = client.get(
        "/api/quiz/difficulty/recommendation",
        params={"subject": "history"},
        headers=auth_headers(make_user("learner")),
    )

    assert response.status_code == 200
    assert response.json()["difficulty"] == "mixed"
    assert response.json()["trend"] == "no_data"


# ==================== Reading & ownership ====================


def test_answers_hidden_from_other_users(client, make_user, make_quiz, auth_headers):
    author = make_user("author")
    quiz = make_quiz(author)

    as_learner = client.get(
        f"/api/quiz/{quiz.id}",
        params={"include_answers": True},
        headers=auth_headers(make_user("learner")),
    )
    as_author = client.get(
        f"/api/quiz/{quiz.id}",
        params={"include_answers": True},
        headers=auth_headers(author),
    )

    assert as_learner.status_code == 200
    assert all("correct_answer" not in q for q in as_learner.json()["questions"])
    assert [q["correct_answer"] for q in as_author.json()["questions"]] == ["B", "C"]


def test_list_quizzes_filters_by_subject(client, make_user, make_quiz, auth_headers):
    author = make_user("author")
    make_quiz(author, subject="mathematics")
    make_quiz(author, subject="science", title="Science basics")

    response = client.get(
        "/api/quiz/", params={"subject": "science"}, headers=auth_headers(author)
    )

    assert response.status_code == 200
    data = response.json()
    assert [quiz["title"] for quiz in data["quizzes"]] == ["Science basics"]
    assert data["pagination"]["total_count"] == 1
    assert data["pagination"]["has_next"] is False


def test_only_author_can_update(client, make_user, make_quiz, auth_headers):
    author = make_user("author")
    quiz = make_quiz(author)

    denied = client.put(
        f"/api/quiz/{quiz.id}",
        json={"title": "Hijacked title"},
        headers=auth_headers(make_user("intruder")),
    )
    allowed = client.put(
        f"/api/quiz/{quiz.id}",
        json={"title": "Arithmetic, revised", "time_limit_minutes": 15},
        headers=auth_headers(author),
    )

    assert denied.status_code == 403
    assert denied.json()["error"] == "INSUFFICIENT_PERMISSIONS"
    assert allowed.status_code == 200
    assert allowed.json()["title"] == "Arithmetic, revised"
    assert allowed.json()["time_limit_minutes"] == 15


def test_soft_deleted_quiz_is_gone(client, make_user, make_quiz, auth_headers):
    author = make_user("author")
    headers = auth_headers(author)
    quiz = make_quiz(author)

    assert client.delete(f"/api/quiz/{quiz.id}", headers=headers).status_code == 200

    response = client.get(f"/api/quiz/{quiz.id}", headers=headers)
    assert response.status_code == 404
    assert response.json()["error"] == "QUIZ_INACTIVE"

    start = client.post(f"/api/submission/quiz/{quiz.id}/start", headers=headers)
    assert start.status_code == 400
    assert start.json()["error"] == "QUIZ_INACTIVE"


def test_missing_quiz_is_404(client, make_user, auth_headers):
    response = client.get("/api/quiz/12345", headers=auth_headers(make_user("learner")))

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "detail": "Quiz not found",
        "error": "QUIZ_NOT_FOUND",
    }


# ==================== Attempts ====================


def test_start_then_resume_status_codes(client, make_user, make_quiz, auth_headers):
    headers = auth_headers(make_user("learner"))
    quiz = make_quiz(make_user("author"))

    first = client.post(f"/api/submission/quiz/{quiz.id}/start", headers=headers)
    second = client.post(f"/api/submission/quiz/{quiz.id}/start", headers=headers)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["submission_id"] == first.json()["submission_id"]
    assert second.json()["resumed"] is True


def test_submit_flow_and_read_models(client, make_user, make_quiz, auth_headers):
    learner = make_user("learner")
    headers = auth_headers(learner)
    quiz = make_quiz(make_user("author"))

    response = take_quiz(client, headers, quiz, ["B", "D"])

    assert response.status_code == 200
    result = response.json()
    assert result["submission"]["score_percentage"] == 50.0
    assert result["grade"] == "C-"
    assert result["can_retry"] is True
    assert result["results"][1]["correct_answer"] == "C"
    submission_id = result["submission"]["id"]

    history = client.get("/api/submission/history", headers=headers).json()
    assert history["pagination"]["total_count"] == 1
    assert history["submissions"][0]["grade"] == "C-"
    assert history["submissions"][0]["quiz"]["title"] == "Arithmetic basics"

    filtered = client.get(
        "/api/submission/history", params={"marks_min": 60}, headers=headers
    ).json()
    assert filtered["submissions"] == []

    detail = client.get(f"/api/submission/{submission_id}", headers=headers).json()
    assert detail["submission"]["status"] == "completed"
    assert [a["is_correct"] for a in detail["answers"]] == [True, False]
    assert detail["answers"][0]["time_taken_seconds"] == 15

    summary = client.get("/api/submission/performance/summary", headers=headers).json()
    assert summary["total_quizzes"] == 1
    assert summary["average_score"] == 50.0
    assert summary["subject_performance"]["mathematics"]["count"] == 1
    assert summary["improvement_trend"] == "stable"

    retry = client.get(f"/api/submission/quiz/{quiz.id}/retry", headers=headers).json()
    assert retry["remaining_attempts"] == 2

    stats = client.get(f"/api/quiz/{quiz.id}/stats", headers=headers).json()
    assert stats["total_attempts"] == 1
    assert stats["unique_participants"] == 1
    assert stats["score_distribution"]["fair"] == 1

    profile = client.get("/api/auth/profile", headers=headers).json()
    assert profile["total_quizzes_attempted"] == 1
    assert profile["average_score"] == 50.0


def test_submission_details_are_private(client, make_user, make_quiz, auth_headers):
    quiz = make_quiz(make_user("author"))
    result = take_quiz(client, auth_headers(make_user("learner")), quiz, ["B", "C"])
    submission_id = result.json()["submission"]["id"]

    response = client.get(
        f"/api/submission/{submission_id}", headers=auth_headers(make_user("snoop"))
    )

    assert response.status_code == 404


def test_submit_uses_ai_suggestions_when_wrong(
    client, fake_ai, make_user, make_quiz, auth_headers
):
    fake_ai.suggestions = ["Practise multiplication tables.", "Check your working."]
    quiz = make_quiz(make_user("author"))

    response = take_quiz(client, auth_headers(make_user("learner")), quiz, ["B", "A"])

    assert response.json()["improvement_suggestions"] == [
        "Practise multiplication tables.",
        "Check your working.",
    ]


def test_submit_requires_answers(client, make_user, make_quiz, auth_headers):
    headers = auth_headers(make_user("learner"))
    quiz = make_quiz(make_user("author"))
    start = client.post(f"/api/submission/quiz/{quiz.id}/start", headers=headers)

    response = client.post(
        f"/api/submission/{start.json()['submission_id']}/submit",
        json={"answers": []},
        headers=headers,
    )

    assert response.status_code == 422


def test_fourth_attempt_is_refused(client, make_user, make_quiz, auth_headers):
    headers = auth_headers(make_user("learner"))
    quiz = make_quiz(make_user("author"))
    for _ in range(3):
        assert take_quiz(client, headers, quiz, ["B", "C"]).status_code == 200

    response = client.post(f"/api/submission/quiz/{quiz.id}/start", headers=headers)

    assert response.status_code == 400
    assert response.json()["error"] == "MAX_ATTEMPTS_REACHED"


# ==================== Hints ====================


def test_hint_is_generated_once_and_cached(
    client, db, fake_ai, make_user, make_quiz, auth_headers
):
    fake_ai.hint = "Add two and two on your fingers."
    headers = auth_headers(make_user("learner"))
    quiz = make_quiz(make_user("author"))
    question_id = quiz.questions[0].id
    url = f"/api/quiz/{quiz.id}/questions/{question_id}/hint"

    first = client.get(url, headers=headers)
    second = client.get(url, headers=headers)

    assert first.json() == {"hint": "Add two and two on your fingers.", "question_id": question_id}
    assert second.json()["hint"] == "Add two and two on your fingers."
    assert fake_ai.calls == ["generate_hint"]

    db.expire_all()
    assert db.get(Question, question_id).ai_generated_hint == "Add two and two on your fingers."


def test_author_hint_wins(client, fake_ai, make_user, make_quiz, auth_headers):
    quiz = make_quiz(
        make_user("author"),
        questions=[
            {
                "question_text": "What is 5 x 5?",
                "question_type": "multiple_choice",
                "options": ["10", "20", "25", "30"],
                "correct_answer": "C",
                "hint": "Five groups of five.",
            }
        ],
    )

    response = client.get(
        f"/api/quiz/{quiz.id}/questions/{quiz.questions[0].id}/hint",
        headers=auth_headers(make_user("learner")),
    )

    assert response.json()["hint"] == "Five groups of five."
    assert fake_ai.calls == []


def test_hint_fallback_when_ai_unavailable(client, make_user, make_quiz, auth_headers):
    quiz = make_quiz(make_user("author"))

    response = client.get(
        f"/api/quiz/{quiz.id}/questions/{quiz.questions[0].id}/hint",
        headers=auth_headers(make_user("learner")),
    )

    assert response.status_code == 200
    assert response.json()["hint"] == FALLBACK_HINT


def test_hint_for_question_of_another_quiz(client, make_user, make_quiz, auth_headers):
    author = make_user("author")
    quiz = make_quiz(author)
    other = make_quiz(author)

    response = client.get(
        f"/api/quiz/{quiz.id}/questions/{other.questions[0].id}/hint",
        headers=auth_headers(author),
    )

    assert response.status_code == 404
    assert response.json()["error"] == "QUESTION_NOT_FOUND"


# ==================== System ====================


def test_health_and_ai_connection(client, make_user, auth_headers):
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["database"] == "healthy"

    ai = client.get("/api/test/ai", headers=auth_headers(make_user("admin")))
    assert ai.status_code == 200
    assert ai.json()["status"] == "connected"
