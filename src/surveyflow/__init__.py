"""surveyflow — branching survey flow SDK.

Public API:
    SurveyOrchestrator   — one respondent's pass through one survey
    SurveyStore          — loads YAML surveys into typed graphs with lookup helpers
    QuestionGraph        — ordered, validated question declaration
    VisibilityEvaluator  — computes the visible question sequence
    TransitionController — serialises submit / auto-advance / back moves
    SessionRecorder      — full-snapshot upserts to the sink and address bar
    parse_resume_link    — raw query string -> PrefillRecord
    StepView             — what is on screen right now
    SessionInfo          — public view of a visit

Collaborator interfaces:
    TransitionPlayer     — ABC for the animation component
    SnapshotSink         — ABC for the snapshot endpoint
    AddressBar           — ABC for the shareable-link state

Shipped implementations:
    InstantTransitionPlayer, TimedTransitionPlayer
    HttpSnapshotSink, LoggingSnapshotSink, MemorySnapshotSink
    InMemoryAddressBar
"""

from surveyflow.controller import TransitionController, TransitionOutcome, TransitionState
from surveyflow.evaluator import VisibilityEvaluator, visible_questions
from surveyflow.graph import QuestionGraph, SurveyStore, parse_graph
from surveyflow.interfaces import (
    AddressBar,
    InMemoryAddressBar,
    SnapshotSink,
    TransitionFrame,
    TransitionPlayer,
)
from surveyflow.models.session import (
    PrefillRecord,
    Progress,
    QuestionPayload,
    SessionInfo,
    StepView,
)
from surveyflow.orchestrator import SurveyOrchestrator
from surveyflow.players import InstantTransitionPlayer, TimedTransitionPlayer
from surveyflow.prefill import parse_resume_link
from surveyflow.recorder import SessionRecorder
from surveyflow.sinks import HttpSnapshotSink, LoggingSnapshotSink, MemorySnapshotSink

__all__ = [
    # Orchestrator & store
    "SurveyOrchestrator",
    "SurveyStore",
    "QuestionGraph",
    "parse_graph",
    # Components
    "VisibilityEvaluator",
    "visible_questions",
    "TransitionController",
    "TransitionOutcome",
    "TransitionState",
    "SessionRecorder",
    "parse_resume_link",
    # Session / step
    "PrefillRecord",
    "Progress",
    "QuestionPayload",
    "SessionInfo",
    "StepView",
    # Interfaces
    "AddressBar",
    "SnapshotSink",
    "TransitionFrame",
    "TransitionPlayer",
    # Implementations
    "InMemoryAddressBar",
    "InstantTransitionPlayer",
    "TimedTransitionPlayer",
    "HttpSnapshotSink",
    "LoggingSnapshotSink",
    "MemorySnapshotSink",
]
