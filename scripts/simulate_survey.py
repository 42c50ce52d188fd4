#!/usr/bin/env python3
"""Simulate survey sessions end-to-end against the SDK, no server needed.

Walks one session through a bundled (or custom) survey, answering every
question it is shown, and prints an audit log of each screen, the answer
chosen, the shareable address and every snapshot the recorder sent.

By default answers are **randomised** (``--random``, on by default) so each
run explores a different branch of the survey.  Use ``--no-random`` to
always pick the first option / minimum score.

Usage::

    # Default run (nps survey, random answers, instant transitions)
    python scripts/simulate_survey.py

    # Subscription survey with real animation timings
    python scripts/simulate_survey.py -s subscription --animation-scale 1

    # Resume from a link
    python scripts/simulate_survey.py -s nps --query "email=a@b.c&nps=4"

    # List available surveys
    python scripts/simulate_survey.py --list-surveys
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import random
import sys
from pathlib import Path
from typing import Any

_SCRIPT_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _SCRIPT_DIR.parent
sys.path.insert(0, str(_REPO_ROOT / "src"))

from surveyflow.graph import SurveyStore  # noqa: E402
from surveyflow.interfaces import InMemoryAddressBar  # noqa: E402
from surveyflow.models.session import StepView  # noqa: E402
from surveyflow.orchestrator import SurveyOrchestrator  # noqa: E402
from surveyflow.players import TimedTransitionPlayer  # noqa: E402
from surveyflow.prefill import parse_resume_link  # noqa: E402
from surveyflow.sinks import MemorySnapshotSink  # noqa: E402

_DOUBLE_LINE = "=" * 72
_SINGLE_LINE = "-" * 72

_TEXT_POOL = [
    "Too expensive for what it does",
    "Mostly happy, a few rough edges",
    "The reminders are great",
]

_random_mode = True
_quiet = False


def _print(*args, **kwargs) -> None:
    """Print wrapper that respects the --quiet flag."""
    if not _quiet:
        print(*args, **kwargs)


def mock_answer(step: StepView, rng: random.Random) -> Any:
    """Pick an answer for the question on screen."""
    q = step.question
    if q.kind == "scale":
        lo, hi = q.scale["min"], q.scale["max"]
        return rng.randint(lo, hi) if _random_mode else lo
    if q.kind == "single_choice":
        return rng.choice(q.options) if _random_mode else q.options[0]
    if q.kind == "multi_choice":
        if not _random_mode:
            return [q.options[0]]
        return rng.sample(q.options, rng.randint(1, len(q.options)))
    return rng.choice(_TEXT_POOL) if _random_mode else _TEXT_POOL[0]


def log_screen(step: StepView) -> None:
    q = step.question
    _print(f"\n{_SINGLE_LINE}")
    _print(f" Q{q.id} [{q.kind}] {q.question}  ({step.progress.label})")
    if q.options:
        for i, opt in enumerate(q.options, 1):
            _print(f"     {i}. {opt}")
    if q.scale:
        _print(f"     {q.scale['min']}..{q.scale['max']}")


def log_answer(answer: Any, outcome: str, address: str) -> None:
    _print(f"   -> answer: {answer!r}")
    _print(f"   -> {outcome}; address: ?{address}")


async def run_simulation(name: str, query: str, seed: int | None, animation_scale: float) -> int:
    store = SurveyStore()
    store.load()
    graph = store.get(name)
    rng = random.Random(seed)

    sink = MemorySnapshotSink()
    orch = SurveyOrchestrator(
        graph,
        player=TimedTransitionPlayer(scale=animation_scale),
        sink=sink,
        address_bar=InMemoryAddressBar(),
        prefill=parse_resume_link(graph, query),
    )

    _print(_DOUBLE_LINE)
    _print(f" SURVEY: {graph.title or graph.name}  session {orch.correlation_id}")
    _print(_DOUBLE_LINE)

    step = await orch.start()
    while step.type == "question":
        log_screen(step)
        answer = mock_answer(step, rng)
        await orch.answer(answer)
        outcome = await orch.submit()
        await orch.settle()
        log_answer(answer, outcome.value, orch.address)
        step = orch.current_step()

    await orch.close()

    _print(f"\n{_DOUBLE_LINE}")
    _print(f" {step.terminal.heading}")
    _print(f" {step.terminal.body}")
    _print(_DOUBLE_LINE)
    _print(f"\nSnapshots sent: {len(sink.calls)}")
    _print(json.dumps(sink.rows.get(orch.correlation_id, {}), indent=2, ensure_ascii=False))
    return 0


def main() -> None:
    global _random_mode, _quiet

    parser = argparse.ArgumentParser(
        description="Simulate a survey session end-to-end against the SDK.",
    )
    parser.add_argument("-s", "--survey", default="nps", help="Survey name (default: nps)")
    parser.add_argument("--query", default="", help="Resume-link query string to start from")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed")
    parser.add_argument(
        "--animation-scale",
        type=float, default=0.0,
        help="Multiplier for transition timings (default: 0, instant)",
    )
    parser.add_argument("--list-surveys", action="store_true", help="List surveys and exit")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress output")
    parser.add_argument(
        "--random",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Randomise answers (default: on)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable SDK debug logging")
    args = parser.parse_args()

    _random_mode = args.random
    _quiet = args.quiet
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if args.list_surveys:
        store = SurveyStore()
        store.load()
        for graph in store.surveys.values():
            print(f"  {graph.name:<16s} {graph.title or ''}")
        sys.exit(0)

    sys.exit(asyncio.run(run_simulation(args.survey, args.query, args.seed, args.animation_scale)))


if __name__ == "__main__":
    main()
