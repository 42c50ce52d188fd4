"""QuestionGraph validation and SurveyStore loading tests.

Covers the structural checks enforced once at load time (ids, terminal
placement, predicate references, option labels) and the bundled surveys.
"""

import pytest
from pydantic import ValidationError

from helpers.flow import make_graph, terminal
from surveyflow.graph import SurveyStore, load_yaml
from surveyflow.models.question import ScaleQuestion, TerminalQuestion


def _text(qid, **extra):
    return {"id": qid, "kind": "text", "question": f"Q{qid}", **extra}


# =====================================================================
# Bundled surveys
# =====================================================================


class TestBundledSurveys:
    """The surveys shipped under surveyflow/surveys/ load and validate."""

    def test_store_loads_both_surveys(self, store):
        assert store.names() == ["nps", "subscription"]

    def test_nps_settings(self, nps):
        assert nps.sink_type == "nps"
        assert nps.identity_param == "email"
        assert nps.score_question == 1
        assert nps.score_param == "nps"
        assert isinstance(nps.get(1), ScaleQuestion)
        assert isinstance(nps.terminal, TerminalQuestion)

    def test_nps_followups_share_response_field(self, nps):
        assert [q.sink_field for q in nps.answerable] == ["nps", "response", "response", "response"]

    def test_ge_alias_normalised(self, nps):
        assert nps.get(4).visibility.op == "ge"

    def test_subscription_fields_default_to_question_ids(self, subscription):
        assert [q.sink_field for q in subscription.answerable] == ["q1", "q2", "q3"]
        assert subscription.sink_type is None

    def test_unknown_survey_raises_key_error(self, store):
        with pytest.raises(KeyError, match="not found"):
            store.get("missing")


class TestSurveyStoreDirectory:
    """Loading from a custom directory."""

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SurveyStore(tmp_path / "nope").load()

    def test_name_defaults_to_file_stem(self, tmp_path):
        (tmp_path / "pulse.yaml").write_text(
            "questions:\n"
            "  - {id: 1, kind: text, question: 'How was today?'}\n"
            "  - {id: 2, kind: terminal, heading: Thanks, body: Bye}\n",
            encoding="utf-8",
        )
        store = SurveyStore(tmp_path)
        store.load()
        assert store.names() == ["pulse"]
        assert store.get("pulse").answerable[0].question == "How was today?"

    def test_duplicate_survey_name(self, tmp_path):
        body = (
            "name: same\n"
            "questions:\n"
            "  - {id: 1, kind: text}\n"
            "  - {id: 2, kind: terminal}\n"
        )
        (tmp_path / "a.yaml").write_text(body, encoding="utf-8")
        (tmp_path / "b.yaml").write_text(body, encoding="utf-8")
        with pytest.raises(ValueError, match="Duplicate survey name"):
            SurveyStore(tmp_path).load()

    def test_load_yaml_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "absent.yaml")


# =====================================================================
# Structural validation
# =====================================================================


class TestGraphValidation:
    """Invalid graphs are rejected when parsed."""

    def test_duplicate_ids(self):
        with pytest.raises(ValidationError, match="duplicate question id"):
            make_graph([_text(1), _text(1), terminal(2)])

    def test_terminal_must_be_last(self):
        with pytest.raises(ValidationError, match="declared last"):
            make_graph([terminal(1), _text(2)])

    def test_exactly_one_terminal(self):
        with pytest.raises(ValidationError, match="exactly one terminal"):
            make_graph([_text(1), terminal(2), terminal(3)])
        with pytest.raises(ValidationError, match="exactly one terminal"):
            make_graph([_text(1), _text(2)])

    def test_terminal_cannot_be_conditional(self):
        t = {**terminal(2), "visibility": {"depends_on": 1, "op": "ge", "value": 1}}
        with pytest.raises(ValidationError, match="cannot be conditional"):
            make_graph([{"id": 1, "kind": "scale"}, t])

    def test_needs_an_answerable_question(self):
        with pytest.raises(ValidationError, match="no answerable"):
            make_graph([terminal(1)])

    def test_forward_reference_rejected(self):
        gated = _text(1, visibility={"depends_on": 2, "op": "equals_one_of", "value": ["x"]})
        with pytest.raises(ValidationError, match="later question"):
            make_graph([gated, _text(2), terminal(3)])

    def test_self_reference_allowed(self):
        graph = make_graph([
            {
                "id": 1,
                "kind": "scale",
                "visibility": {"depends_on": 1, "op": "ge", "value": 0},
            },
            terminal(2),
        ])
        assert graph.get(1).visibility.depends_on == 1

    def test_unknown_dependency(self):
        gated = _text(2, visibility={"depends_on": 9, "op": "equals_one_of", "value": ["x"]})
        with pytest.raises(ValidationError, match="unknown question 9"):
            make_graph([_text(1), gated, terminal(3)])

    def test_score_field_requires_score_question(self):
        gated = _text(2, visibility={"depends_on": "nps_score", "op": "ge", "value": 9})
        with pytest.raises(ValidationError, match="no score_question"):
            make_graph([{"id": 1, "kind": "scale"}, gated, terminal(3)])

    def test_score_question_must_be_scale(self):
        with pytest.raises(ValidationError, match="must be a scale"):
            make_graph([_text(1), terminal(2)], score_question=1)

    def test_option_labels_cannot_contain_delimiter(self):
        q = {"id": 1, "kind": "multi_choice", "options": ["A|B", "C"]}
        with pytest.raises(ValidationError, match="cannot contain"):
            make_graph([q, terminal(2)])

    def test_choice_needs_options(self):
        with pytest.raises(ValidationError):
            make_graph([{"id": 1, "kind": "single_choice", "options": []}, terminal(2)])

    def test_scale_bounds(self):
        with pytest.raises(ValidationError, match="min must be < max"):
            make_graph([{"id": 1, "kind": "scale", "min": 5, "max": 5}, terminal(2)])

    def test_ids_must_be_positive(self):
        with pytest.raises(ValidationError):
            make_graph([_text(0), terminal(1)])

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown question kind 'slider'"):
            make_graph([{"id": 1, "kind": "slider"}, terminal(2)])

    @pytest.mark.parametrize("op,value", [
        ("between", [6, 0]),
        ("between", 5),
        ("ge", "nine"),
        ("equals_one_of", []),
        ("includes_any", [1, 2]),
    ])
    def test_bad_predicate_operand(self, op, value):
        gated = _text(2, visibility={"depends_on": 1, "op": op, "value": value})
        with pytest.raises(ValidationError):
            make_graph([{"id": 1, "kind": "scale"}, gated, terminal(3)])


# =====================================================================
# Lookup helpers
# =====================================================================


class TestLookups:

    def test_get_and_position(self, nps):
        assert nps.get(3).question.startswith("What would make")
        assert nps.position(5) == 4
        with pytest.raises(KeyError):
            nps.get(42)
        with pytest.raises(KeyError):
            nps.position(42)

    def test_answerable_excludes_terminal(self, subscription):
        assert [q.id for q in subscription.answerable] == [1, 2, 3]

    def test_resolve_dependency(self, nps):
        assert nps.resolve_dependency("nps_score") == 1
        assert nps.resolve_dependency(3) == 3
        assert nps.resolve_dependency("bogus") is None
