"""Survey flow constants shared across the SDK.

These values are referenced by the orchestrator, controller, recorder and
the address-bar codec.  They mirror conventions encoded in the YAML surveys
under ``surveyflow/surveys/``.

Timing constants can be overridden via environment variables so that
deployments can tune the feel of auto-advance without code changes.
"""

import os

# Auto-advance delays (seconds) armed after a quick-pick answer.
# A scale tap advances almost immediately; a labelled choice waits long
# enough for the selected state to register visually.
# Overridable via SURVEYFLOW_SCALE_ADVANCE_MS / SURVEYFLOW_CHOICE_ADVANCE_MS.
AUTO_ADVANCE_DELAYS: dict[str, float] = {
    "scale": int(os.getenv("SURVEYFLOW_SCALE_ADVANCE_MS", "80")) / 1000,
    "single_choice": int(os.getenv("SURVEYFLOW_CHOICE_ADVANCE_MS", "350")) / 1000,
}

# Question kinds that arm an auto-advance task on selection.
AUTO_ADVANCE_KINDS: set[str] = set(AUTO_ADVANCE_DELAYS)

# Inline message shown when a submit is attempted without an answer.
VALIDATION_MESSAGE = "Please complete this question before continuing"

# Progress label shown once the terminal screen is reached.
COMPLETE_LABEL = "Complete!"

# Pseudo-field a visibility predicate uses to reference the graph's
# designated score question (e.g. the 0-10 NPS answer).
SCORE_FIELD = "nps_score"

# Address-bar naming: one ``q<id>`` parameter per answered question.
QUERY_PREFIX = "q"

# Separator used to flatten multi-choice answers into one query/sink value.
LIST_DELIMITER = "|"

# Default query parameter that carries the respondent identity.
DEFAULT_IDENTITY_PARAM = "email"

# Timeout (seconds) for the outbound snapshot sink call.
SINK_TIMEOUT = float(os.getenv("SURVEYFLOW_SINK_TIMEOUT", "10"))
