"""Abstract interfaces for the orchestrator's external collaborators.

These ABCs define the contract that external implementations must fulfil.
The SDK ships simple concrete implementations (``surveyflow.players``,
``surveyflow.sinks`` and :class:`InMemoryAddressBar` below); a browser or
terminal front end provides its own.

Typical integration flow::

    orchestrator = SurveyOrchestrator(
        graph,
        player=MyAnimationPlayer(),       # fades, blurs, slides
        sink=HttpSnapshotSink(url),       # upsert-by-session endpoint
        address_bar=MyLocationBar(),      # history.replaceState equivalent
        prefill=parse_resume_link(graph, query),
    )
    view = await orchestrator.start()
    await orchestrator.answer(8)
    view = orchestrator.current_step()
"""

from abc import ABC, abstractmethod
from typing import Literal

from pydantic import BaseModel


class TransitionFrame(BaseModel):
    """What a transition is about, handed to the player.

    The player treats this as opaque routing information: which question is
    leaving, which is arriving, and in which direction.
    """

    direction: Literal["forward", "backward", "terminal", "enter"]
    leaving: int | None = None
    entering: int | None = None


class TransitionPlayer(ABC):
    """Interface for the component that animates a change of screen.

    The orchestrator awaits exactly one gating call per transition,
    ``play_exit`` or ``play_terminal_crossfade``, before it commits the step
    cursor.

    ``play_enter`` is an extra, non-gating call: by default it is fired in
    the background after each committed move and once at start, so a plain
    move produces two player calls.  Build the orchestrator with
    ``animate_enter=False`` to get a single call per transition and no
    entrance animation.
    """

    @abstractmethod
    async def play_exit(self, frame: TransitionFrame) -> None:
        """Animate the current screen out."""
        ...

    @abstractmethod
    async def play_enter(self, frame: TransitionFrame) -> None:
        """Animate a freshly committed screen in."""
        ...

    @abstractmethod
    async def play_terminal_crossfade(self, frame: TransitionFrame) -> None:
        """Crossfade from the last question into the closing screen."""
        ...


class SnapshotSink(ABC):
    """Interface for the endpoint that receives answer snapshots.

    Implementations receive the *full* current snapshot on every call and
    are expected to upsert it by ``sessionId``.  Errors may be raised
    freely; the recorder logs and swallows them.
    """

    @abstractmethod
    async def send(self, payload: dict) -> None:
        """Deliver one snapshot."""
        ...


class AddressBar(ABC):
    """Interface for the shareable-link state (the page's query string)."""

    @abstractmethod
    def replace(self, query: str) -> None:
        """Replace the current query string without adding history."""
        ...


class InMemoryAddressBar(AddressBar):
    """Keeps the latest query string in memory (headless use and tests)."""

    def __init__(self, query: str = "") -> None:
        self.query = query
        self.replacements = 0

    def replace(self, query: str) -> None:
        self.query = query
        self.replacements += 1
