"""Transition player implementations.

The orchestrator only awaits "done"; it never inspects how a player
animates.  Two players ship with the SDK:

  - InstantTransitionPlayer: completes immediately (tests, headless use)
  - TimedTransitionPlayer: waits as long as the web front end's staggered
    fades take, so a headless session keeps the same in-flight windows
"""

from __future__ import annotations

import asyncio

from surveyflow.interfaces import TransitionFrame, TransitionPlayer

# Animation timings (seconds) of the web front end.
DURATION_IN = 0.55
DURATION_OUT = 0.28
STAGGER_IN = 0.07
STAGGER_OUT = 0.04
ENTER_DELAY = 0.08
# Container fades out over 0.7s while the closing screen fades in from
# 0.15s for 0.8s; its items stagger in from 0.4s at 0.12s apart.
CROSSFADE_ITEM_START = 0.4
CROSSFADE_ITEM_STAGGER = 0.12
CROSSFADE_ITEM_DURATION = 0.7


class InstantTransitionPlayer(TransitionPlayer):
    """Completes every animation immediately, recording the frames it saw."""

    def __init__(self) -> None:
        self.frames: list[TransitionFrame] = []

    async def play_exit(self, frame: TransitionFrame) -> None:
        self.frames.append(frame)

    async def play_enter(self, frame: TransitionFrame) -> None:
        self.frames.append(frame)

    async def play_terminal_crossfade(self, frame: TransitionFrame) -> None:
        self.frames.append(frame)


class TimedTransitionPlayer(TransitionPlayer):
    """Sleeps for the duration of the corresponding web animation.

    Args:
        items: number of animated elements on a question screen
        terminal_items: number of animated elements on the closing screen
        scale: multiplier applied to every duration (0 disables waiting)
    """

    def __init__(self, *, items: int = 4, terminal_items: int = 3, scale: float = 1.0) -> None:
        self._items = items
        self._terminal_items = terminal_items
        self._scale = scale

    def exit_duration(self) -> float:
        return (self._items - 1) * STAGGER_OUT + DURATION_OUT

    def enter_duration(self) -> float:
        return ENTER_DELAY + (self._items - 1) * STAGGER_IN + DURATION_IN

    def crossfade_duration(self) -> float:
        items = max(self._terminal_items - 1, 0)
        return CROSSFADE_ITEM_START + items * CROSSFADE_ITEM_STAGGER + CROSSFADE_ITEM_DURATION

    async def play_exit(self, frame: TransitionFrame) -> None:
        await asyncio.sleep(self.exit_duration() * self._scale)

    async def play_enter(self, frame: TransitionFrame) -> None:
        await asyncio.sleep(self.enter_duration() * self._scale)

    async def play_terminal_crossfade(self, frame: TransitionFrame) -> None:
        await asyncio.sleep(self.crossfade_duration() * self._scale)
