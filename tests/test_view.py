from __future__ import annotations

from fixtures import quiz_set

from pdf_quiz.quiz import QuestionView, QuizApp, SessionState


def test_navigation_is_clamped(ready_controller) -> None:
    app = QuizApp(ready_controller)

    assert app.prev_question() == 0
    for _ in range(20):
        app.next_question()
    assert app.current_question() is ready_controller.question_set[9]
    assert app.prev_question() == 8


def test_select_answer_validates_choice_keys(ready_controller) -> None:
    app = QuizApp(ready_controller)

    assert app.select_answer("E") is False
    assert app.select_answer("a") is True
    assert ready_controller.answer_for(0) == "a"
    assert "Answered: 1/10" in app.status_text()


def test_select_answer_accepts_free_text_for_short_answer(
    ready_controller,
) -> None:
    app = QuizApp(ready_controller)
    for _ in range(8):
        app.next_question()

    assert app.select_answer("paris") is True
    assert ready_controller.answer_for(8) == "paris"


def test_grade_and_retry(ready_controller) -> None:
    app = QuizApp(ready_controller)

    assert app.retry() is False
    assert "Grade the quiz before retrying." in app.status_text()

    app.select_answer("A")
    assert app.grade() == 1
    assert app.status_text().startswith("Score: 1/10")
    assert app.select_answer("B") is False
    assert ready_controller.answer_for(0) == "A"

    app.next_question()
    assert app.retry() is True
    assert app.current_question() is ready_controller.question_set[0]
    assert ready_controller.state is SessionState.READY
    assert ready_controller.answers == {}


def test_select_answer_without_quiz_is_ignored(controller) -> None:
    app = QuizApp(controller)
    assert app.select_answer("A") is False
    assert app.status_text().startswith("Answered: 0/0")


def test_question_view_feedback() -> None:
    question_set = quiz_set()
    right = QuestionView(
        question_set[8], index=9, total=10, answer=" PARIS ", graded=True
    )
    wrong = QuestionView(
        question_set[0], index=1, total=10, answer="C", graded=True
    )

    assert right.feedback_text() == "Correct.\n해설 8"
    assert wrong.feedback_text() == "Incorrect. Answer: A\n해설 0"
