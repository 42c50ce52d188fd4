"""VisibilityEvaluator unit tests — every operator and the ordering rules.

Operator reference (from VisibilityEvaluator._compare):
    between         — inclusive numeric range, value = [lo, hi]
    ge, le          — numeric comparisons
    equals_one_of   — exact string match against a list of labels
    includes_any    — a choice-set answer shares a label with the operand
"""

import math

import pytest

from helpers.flow import choice_graph, make_graph, scenario_graph, terminal
from surveyflow.evaluator import VisibilityEvaluator, visible_questions
from surveyflow.models.answer import ChoiceSetAnswer, ScalarAnswer, TextAnswer


def _ids(questions):
    return [q.id for q in questions]


def _scalar(v):
    return ScalarAnswer(value=v)


# =====================================================================
# Ordering and unanswered dependencies
# =====================================================================


class TestVisibleSequence:
    """Shape of the visible sequence."""

    def test_unanswered_dependency_hides_question(self):
        assert _ids(visible_questions(scenario_graph(), {})) == [1, 3]

    def test_scenario_high_score_skips_followup(self):
        assert _ids(visible_questions(scenario_graph(), {1: _scalar(8)})) == [1, 3]

    def test_scenario_low_score_shows_followup(self):
        assert _ids(visible_questions(scenario_graph(), {1: _scalar(3)})) == [1, 2, 3]

    @pytest.mark.parametrize("score,expected", [
        (0, [1, 2, 5]),
        (6, [1, 2, 5]),
        (7, [1, 3, 5]),
        (8, [1, 3, 5]),
        (9, [1, 4, 5]),
        (10, [1, 4, 5]),
    ])
    def test_nps_score_routes_to_one_followup(self, nps, score, expected):
        assert _ids(visible_questions(nps, {1: _scalar(score)})) == expected

    def test_declaration_order_preserved(self):
        graph = make_graph([
            {"id": 10, "kind": "scale"},
            {"id": 3, "kind": "text", "visibility": {"depends_on": 10, "op": "ge", "value": 5}},
            {"id": 7, "kind": "text"},
            {"id": 1, "kind": "text", "visibility": {"depends_on": 10, "op": "le", "value": 5}},
            terminal(99),
        ])
        assert _ids(visible_questions(graph, {10: _scalar(5)})) == [10, 3, 7, 1, 99]
        assert _ids(visible_questions(graph, {10: _scalar(9)})) == [10, 3, 7, 99]

    def test_excludes_exactly_the_false_predicates(self, nps):
        answers = {1: _scalar(4)}
        ev = VisibilityEvaluator()
        visible = set(_ids(ev.visible_questions(nps, answers)))
        for q in nps.questions:
            assert (q.id in visible) == ev.is_visible(q, nps, answers)

    def test_accepts_plain_mapping_and_store(self, nps):
        from surveyflow.answers import AnswerStore

        store = AnswerStore({1: _scalar(9)})
        assert _ids(visible_questions(nps, store)) == _ids(visible_questions(nps, store.snapshot()))

    def test_hidden_dependency_is_not_consulted(self):
        graph = make_graph([
            {"id": 1, "kind": "single_choice", "options": ["Yes", "No"]},
            {
                "id": 2,
                "kind": "single_choice",
                "options": ["A", "B"],
                "visibility": {"depends_on": 1, "op": "equals_one_of", "value": ["Yes"]},
            },
            {
                "id": 3,
                "kind": "text",
                "visibility": {"depends_on": 2, "op": "equals_one_of", "value": ["A"]},
            },
            terminal(4),
        ])
        answers = {1: _scalar("Yes"), 2: _scalar("A")}
        assert _ids(visible_questions(graph, answers)) == [1, 2, 3, 4]
        # Q2 keeps its stale answer but, once hidden, no longer gates Q3
        answers[1] = _scalar("No")
        assert _ids(visible_questions(graph, answers)) == [1, 4]

    def test_self_reference_consults_own_answer(self):
        graph = make_graph([
            {"id": 1, "kind": "text"},
            {
                "id": 2,
                "kind": "scale",
                "visibility": {"depends_on": 2, "op": "le", "value": 5},
            },
            terminal(3),
        ])
        assert _ids(visible_questions(graph, {})) == [1, 3]
        assert _ids(visible_questions(graph, {2: _scalar(4)})) == [1, 2, 3]
        assert _ids(visible_questions(graph, {2: _scalar(6)})) == [1, 3]


# =====================================================================
# equals_one_of
# =====================================================================


class TestEqualsOneOf:
    """A question gated on {"Unlikely", "Very unlikely"}."""

    @pytest.fixture
    def graph(self):
        return make_graph([
            {
                "id": 1,
                "kind": "single_choice",
                "options": ["Very likely", "Likely", "Unsure", "Unlikely", "Very unlikely"],
            },
            {
                "id": 2,
                "kind": "text",
                "visibility": {
                    "depends_on": 1,
                    "op": "equals_one_of",
                    "value": ["Unlikely", "Very unlikely"],
                },
            },
            terminal(3),
        ])

    def test_absent_when_unset(self, graph):
        assert 2 not in _ids(visible_questions(graph, {}))

    @pytest.mark.parametrize("label", ["Unlikely", "Very unlikely"])
    def test_present_for_listed_values(self, graph, label):
        assert 2 in _ids(visible_questions(graph, {1: _scalar(label)}))

    @pytest.mark.parametrize("value", [
        "Very likely", "Likely", "Unsure", "unlikely", "Unlikely ", "", 3, 3.5,
    ])
    def test_absent_for_any_other_value(self, graph, value):
        assert 2 not in _ids(visible_questions(graph, {1: _scalar(value)}))

    def test_absent_for_choice_set(self, graph):
        answers = {1: ChoiceSetAnswer(values=frozenset({"Unlikely"}))}
        assert 2 not in _ids(visible_questions(graph, answers))

    def test_subscription_reason_question(self, subscription):
        for label in ("Unsure", "Unlikely", "Very unlikely"):
            assert 3 in _ids(visible_questions(subscription, {2: _scalar(label)}))
        for label in ("Very likely", "Likely"):
            assert 3 not in _ids(visible_questions(subscription, {2: _scalar(label)}))


# =====================================================================
# Numeric operators
# =====================================================================


class TestNumericOperators:

    def test_between_inclusive(self):
        assert VisibilityEvaluator._compare("between", _scalar(0), [0, 6])
        assert VisibilityEvaluator._compare("between", _scalar(6), [0, 6])
        assert not VisibilityEvaluator._compare("between", _scalar(6.5), [0, 6])
        assert not VisibilityEvaluator._compare("between", _scalar(-1), [0, 6])

    def test_ge_le(self):
        assert VisibilityEvaluator._compare("ge", _scalar(9), 9)
        assert not VisibilityEvaluator._compare("ge", _scalar(8), 9)
        assert VisibilityEvaluator._compare("le", _scalar(5), 5)
        assert not VisibilityEvaluator._compare("le", _scalar(6), 5)

    def test_numeric_string_is_coerced(self):
        assert VisibilityEvaluator._compare("ge", _scalar("9"), 9)

    @pytest.mark.parametrize("answer", [
        _scalar("Neutral"),
        _scalar(""),
        _scalar(math.nan),
        _scalar(math.inf),
        TextAnswer(value="7"),
        ChoiceSetAnswer(values=frozenset({"7"})),
    ])
    def test_non_numeric_answers_never_match(self, answer):
        assert not VisibilityEvaluator._compare("between", answer, [0, 10])
        assert not VisibilityEvaluator._compare("ge", answer, 0)


# =====================================================================
# includes_any
# =====================================================================


class TestIncludesAny:

    def test_shared_label_shows_question(self):
        answers = {2: ChoiceSetAnswer(values=frozenset({"Results", "Price"}))}
        assert 3 in _ids(visible_questions(choice_graph(), answers))

    def test_no_shared_label_hides_question(self):
        answers = {2: ChoiceSetAnswer(values=frozenset({"Support"}))}
        assert 3 not in _ids(visible_questions(choice_graph(), answers))

    def test_scalar_never_matches(self):
        assert not VisibilityEvaluator._compare("includes_any", _scalar("Price"), ["Price"])
