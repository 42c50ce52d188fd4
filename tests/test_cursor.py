"""StepCursor, presence checks, progress and the AnswerStore."""

import pytest

from helpers.flow import make_graph, scenario_graph, terminal, text_graph
from surveyflow.answers import AnswerStore
from surveyflow.cursor import StepCursor, clamp, compute_progress, has_answer
from surveyflow.evaluator import visible_questions
from surveyflow.models.answer import ChoiceSetAnswer, ScalarAnswer, TextAnswer


def _gated_middle_graph():
    """[Q1 scale][Q2 text iff Q1 <= 6][Q3 text][T]"""
    return make_graph([
        {"id": 1, "kind": "scale"},
        {"id": 2, "kind": "text", "visibility": {"depends_on": 1, "op": "le", "value": 6}},
        {"id": 3, "kind": "text"},
        terminal(4),
    ])


# =====================================================================
# Cursor resolution
# =====================================================================


class TestResolve:
    """Re-mapping the cursor onto a freshly computed sequence."""

    def test_anchored_question_keeps_its_position(self):
        graph = _gated_middle_graph()
        cursor = StepCursor()
        cursor.commit(1, visible_questions(graph, {}))
        assert cursor.question_id == 3

        # Q2 appears before the anchor; the cursor follows Q3 to index 2
        visible = visible_questions(graph, {1: ScalarAnswer(value=2)})
        assert cursor.resolve(visible, graph) == (2, True)

    def test_hidden_anchor_falls_back_to_earlier_question(self):
        graph = _gated_middle_graph()
        answers = {1: ScalarAnswer(value=2)}
        cursor = StepCursor()
        cursor.commit(1, visible_questions(graph, answers))
        assert cursor.question_id == 2

        answers[1] = ScalarAnswer(value=9)
        visible = visible_questions(graph, answers)
        assert cursor.resolve(visible, graph) == (0, False)

    def test_slot_of_hidden_question_on_screen(self):
        graph = make_graph([
            {"id": 1, "kind": "text"},
            {"id": 2, "kind": "scale", "visibility": {"depends_on": 2, "op": "le", "value": 5}},
            {"id": 3, "kind": "text"},
            terminal(4),
        ])
        answers = {2: ScalarAnswer(value=3)}
        cursor = StepCursor()
        cursor.commit(1, visible_questions(graph, answers))
        assert cursor.slot(visible_questions(graph, answers), graph) == 1

        answers[2] = ScalarAnswer(value=7)
        visible = visible_questions(graph, answers)
        assert cursor.resolve(visible, graph) == (0, False)
        assert cursor.slot(visible, graph) == 1
        assert compute_progress(visible, cursor.slot(visible, graph), terminal=False).label == "2 of 2"

    def test_unanchored_cursor_is_clamped(self):
        graph = text_graph(2)
        cursor = StepCursor(index=9)
        visible = visible_questions(graph, {})
        assert cursor.resolve(visible, graph) == (2, False)

    def test_empty_sequence(self):
        assert StepCursor(index=3).resolve([], text_graph()) == (0, False)

    def test_commit_clamps_and_anchors(self):
        graph = text_graph(2)
        visible = visible_questions(graph, {})
        cursor = StepCursor()
        cursor.commit(10, visible)
        assert cursor.index == 2
        assert cursor.question_id == 3
        cursor.commit(-4, visible)
        assert cursor.index == 0
        assert cursor.question_id == 1


class TestNeighbours:

    def test_middle_of_sequence(self):
        graph = text_graph(3)
        visible = visible_questions(graph, {})
        cursor = StepCursor()
        cursor.commit(1, visible)
        assert cursor.neighbours(visible, graph) == (0, 2)

    def test_first_question_has_no_previous(self):
        graph = text_graph(2)
        visible = visible_questions(graph, {})
        cursor = StepCursor()
        cursor.commit(0, visible)
        assert cursor.neighbours(visible, graph) == (None, 1)

    def test_last_position_has_no_next(self):
        graph = text_graph(2)
        visible = visible_questions(graph, {})
        cursor = StepCursor()
        cursor.commit(2, visible)
        assert cursor.neighbours(visible, graph) == (1, None)

    def test_hidden_anchor_uses_declaration_order(self):
        graph = _gated_middle_graph()
        answers = {1: ScalarAnswer(value=2)}
        cursor = StepCursor()
        cursor.commit(1, visible_questions(graph, answers))

        answers[1] = ScalarAnswer(value=9)
        visible = visible_questions(graph, answers)
        # Visible is [Q1, Q3, T]; Q2 sits between Q1 and Q3
        assert [q.id for q in visible] == [1, 3, 4]
        assert cursor.neighbours(visible, graph) == (0, 1)


@pytest.mark.parametrize("index,length,expected", [
    (0, 0, 0),
    (5, 0, 0),
    (-1, 3, 0),
    (1, 3, 1),
    (3, 3, 2),
])
def test_clamp(index, length, expected):
    assert clamp(index, length) == expected


# =====================================================================
# Presence per kind
# =====================================================================


class TestHasAnswer:

    def test_scale_counts_zero(self, nps):
        assert has_answer(nps.get(1), ScalarAnswer(value=0))

    def test_text_requires_non_empty(self, nps):
        assert not has_answer(nps.get(2), TextAnswer(value=""))
        assert has_answer(nps.get(2), TextAnswer(value="ok"))

    def test_single_choice_requires_label(self, subscription):
        assert has_answer(subscription.get(1), ScalarAnswer(value="Neutral"))
        assert not has_answer(subscription.get(1), ScalarAnswer(value=""))

    def test_multi_choice_requires_non_empty_set(self):
        graph = make_graph([
            {"id": 1, "kind": "multi_choice", "options": ["A", "B"]},
            terminal(2),
        ])
        q = graph.get(1)
        assert not has_answer(q, ChoiceSetAnswer(values=frozenset()))
        assert has_answer(q, ChoiceSetAnswer(values=frozenset({"B"})))
        assert not has_answer(q, ScalarAnswer(value="A"))

    def test_missing_answer_or_terminal(self, nps):
        assert not has_answer(nps.get(1), None)
        assert not has_answer(nps.terminal, TextAnswer(value="x"))
        assert not has_answer(None, TextAnswer(value="x"))


# =====================================================================
# Progress
# =====================================================================


class TestProgress:

    def test_denominator_tracks_visible_questions(self):
        graph = scenario_graph()
        hidden = visible_questions(graph, {1: ScalarAnswer(value=9)})
        shown = visible_questions(graph, {1: ScalarAnswer(value=3)})

        assert compute_progress(hidden, 0, terminal=False).label == "1 of 1"
        p = compute_progress(shown, 0, terminal=False)
        assert (p.number, p.count) == (1, 2)
        assert p.percent == pytest.approx(50.0)

    def test_never_exceeds_full(self):
        graph = text_graph(2)
        visible = visible_questions(graph, {})
        p = compute_progress(visible, 2, terminal=False)
        assert p.number == 2
        assert p.percent == pytest.approx(100.0)

    def test_terminal_label(self):
        visible = visible_questions(text_graph(2), {})
        p = compute_progress(visible, 2, terminal=True)
        assert p.label == "Complete!"
        assert p.percent == 100.0


# =====================================================================
# AnswerStore
# =====================================================================


class TestAnswerStore:

    def test_overwrite_bumps_version(self):
        store = AnswerStore()
        store.set(1, ScalarAnswer(value=3))
        store.set(1, ScalarAnswer(value=4))
        assert store.version == 2
        assert store.get(1).value == 4
        assert len(store) == 1

    def test_snapshot_is_a_copy(self):
        store = AnswerStore({1: ScalarAnswer(value=3)})
        snap = store.snapshot()
        store.set(2, TextAnswer(value="hi"))
        assert 2 not in snap
        assert 2 in store
        assert list(store) == [1, 2]

    def test_plain_values(self):
        store = AnswerStore({
            1: ScalarAnswer(value=7),
            2: ChoiceSetAnswer(values=frozenset({"b", "a"})),
            3: TextAnswer(value="x"),
        })
        assert store.plain() == {1: 7, 2: ["a", "b"], 3: "x"}
