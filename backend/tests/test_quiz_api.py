"""Tests for the /quiz endpoints."""

import asyncio
from datetime import timedelta

import aiosqlite
import pytest

VOCAB = [
    ("el hotel", "the hotel"),
    ("la playa", "the beach"),
    ("el tren", "the train"),
    ("la iglesia", "the church"),
    ("el mercado", "the market"),
    ("la montaña", "the mountain"),
]


@pytest.fixture
def cards(client):
    return {
        front: client.post("/flashcards/", json={"front": front, "back": back}).json()
        for front, back in VOCAB
    }


def _answers(cards):
    return {c["id"]: c["back"] for c in cards.values()}


def test_quiz_needs_four_cards(client):
    for front, back in VOCAB[:3]:
        client.post("/flashcards/", json={"front": front, "back": back})
    res = client.post("/quiz/", json={"num_questions": 5})
    assert res.status_code == 422
    assert "at least 4" in res.json()["detail"]


def test_start_quiz(client, cards):
    res = client.post("/quiz/", json={"num_questions": 4})
    assert res.status_code == 201
    state = res.json()
    assert state["status"] == "in_progress"
    assert state["total_questions"] == 4
    assert state["current_index"] == 0
    question = state["current_question"]
    assert "correct_answer" not in question
    assert len(question["options"]) == 4
    assert _answers(cards)[question["card_id"]] in question["options"]


def test_default_question_count_capped_by_deck(client, cards):
    state = client.post("/quiz/", json={}).json()
    assert state["total_questions"] == len(VOCAB)


def test_full_quiz_updates_leitner_boxes(client, cards, clock, now):
    answers = _answers(cards)
    state = client.post("/quiz/", json={"num_questions": 6}).json()
    quiz_id = state["id"]
    clock.now = now + timedelta(hours=2)

    expected = {}
    for i in range(6):
        question = state["current_question"]
        correct = i % 2 == 0
        answer = answers[question["card_id"]] if correct else "definitely wrong"
        expected[question["card_id"]] = correct
        res = client.post(f"/quiz/{quiz_id}/answer", json={"answer": answer}).json()
        assert res["correct"] is correct
        assert res["correct_answer"] == answers[question["card_id"]]
        state = res["quiz"]
        # nothing is written back before the last answer
        assert res["reviewed_cards"] == (6 if i == 5 else 0)

    assert state["status"] == "finished"
    assert state["score"] == 3
    assert state["current_question"] is None

    for card_id, correct in expected.items():
        stored = client.get(f"/flashcards/{card_id}").json()
        assert stored["box"] == (2 if correct else 1)
        assert stored["review_count"] == (1 if correct else 0)
        assert stored["last_reviewed"] is not None

    # a fully saved quiz is dropped; its final state came with the last answer
    assert client.get(f"/quiz/{quiz_id}").status_code == 404
    res = client.post(f"/quiz/{quiz_id}/answer", json={"answer": "x"})
    assert res.status_code == 404


def test_abandoned_quiz_saves_nothing(client, cards):
    answers = _answers(cards)
    state = client.post("/quiz/", json={"num_questions": 4}).json()
    card_id = state["current_question"]["card_id"]
    client.post(f"/quiz/{state['id']}/answer", json={"answer": answers[card_id]})

    assert client.delete(f"/quiz/{state['id']}").status_code == 204
    assert client.get(f"/quiz/{state['id']}").status_code == 404
    assert client.get(f"/flashcards/{card_id}").json()["box"] == 1


def test_power_ups_are_one_shot(client, cards):
    answers = _answers(cards)
    state = client.post("/quiz/", json={"num_questions": 4}).json()
    quiz_id = state["id"]

    state = client.post(f"/quiz/{quiz_id}/fifty-fifty").json()
    question = state["current_question"]
    assert len(question["hidden_options"]) == 2
    assert answers[question["card_id"]] not in question["hidden_options"]
    assert client.post(f"/quiz/{quiz_id}/fifty-fifty").status_code == 409

    state = client.post(f"/quiz/{quiz_id}/double-points").json()
    assert state["double_points_active"] is True
    res = client.post(
        f"/quiz/{quiz_id}/answer", json={"answer": answers[question["card_id"]]}
    ).json()
    assert res["points"] == 2
    assert res["quiz"]["score"] == 2
    assert res["quiz"]["current_question"]["hidden_options"] == []
    assert client.post(f"/quiz/{quiz_id}/double-points").status_code == 409


def test_quiz_by_category(client, cards):
    client.post(
        "/flashcards/import",
        json={
            "category": "Essen",
            "items": [
                {"front": "la manzana", "back": "the apple"},
                {"front": "el queso", "back": "the cheese"},
                {"front": "la leche", "back": "the milk"},
                {"front": "el huevo", "back": "the egg"},
            ],
        },
    )
    state = client.post("/quiz/", json={"category": "Essen"}).json()
    assert state["total_questions"] == 4
    essen = {c["id"] for c in client.get("/flashcards/", params={"category": "Essen"}).json()["items"]}
    assert state["current_question"]["card_id"] in essen


def test_unknown_quiz(client):
    assert client.get("/quiz/missing").status_code == 404
    assert client.post("/quiz/missing/answer", json={"answer": "x"}).status_code == 404
    assert client.delete("/quiz/missing").status_code == 404


def _play(client, answers, num_questions):
    state = client.post("/quiz/", json={"num_questions": num_questions}).json()
    res = None
    for _ in range(num_questions):
        card_id = state["current_question"]["card_id"]
        res = client.post(f"/quiz/{state['id']}/answer", json={"answer": answers[card_id]}).json()
        state = res["quiz"]
    return res


def test_finished_quizzes_leave_the_store(app, client, cards):
    answers = _answers(cards)
    for _ in range(5):
        _play(client, answers, 4)
    assert len(app.state.quiz_sessions) == 0


def test_unsaved_review_can_be_retried(app, client, cards):
    answers = _answers(cards)
    corrupt_id = cards["el tren"]["id"]

    async def set_box(box):
        async with aiosqlite.connect(app.state.db_path) as db:
            await db.execute("UPDATE flashcards SET box = ? WHERE id = ?", (box, corrupt_id))
            await db.commit()

    asyncio.run(set_box(9))
    res = _play(client, answers, len(VOCAB))
    quiz_id = res["quiz"]["id"]
    assert res["quiz"]["status"] == "finished"
    assert res["unsaved_cards"] == [corrupt_id]
    assert res["reviewed_cards"] == len(VOCAB) - 1
    for card in cards.values():
        if card["id"] != corrupt_id:
            assert client.get(f"/flashcards/{card['id']}").json()["box"] == 2

    # still failing: nothing already saved is touched again
    retry = client.post(f"/quiz/{quiz_id}/save").json()
    assert retry["reviewed_cards"] == 0
    assert retry["unsaved_cards"] == [corrupt_id]

    asyncio.run(set_box(1))
    retry = client.post(f"/quiz/{quiz_id}/save").json()
    assert retry["reviewed_cards"] == 1
    assert retry["unsaved_cards"] == []
    assert client.get(f"/flashcards/{corrupt_id}").json()["box"] == 2
    assert client.get(f"/flashcards/{cards['la playa']['id']}").json()["box"] == 2
    assert client.post(f"/quiz/{quiz_id}/save").status_code == 404


def test_save_before_finish_conflicts(client, cards):
    state = client.post("/quiz/", json={"num_questions": 4}).json()
    assert client.post(f"/quiz/{state['id']}/save").status_code == 409
