"""Scripted behavior for simulated participants.

Bots act through the room's validated apply_* methods, so they follow the
same eligibility rules as connected players. The caller must hold the room
lock (the room invokes act() from inside its own dispatch).
"""

import logging
import random
from typing import Any, Awaitable, Callable, Optional

from bots.messages import (
    BOT_NAME_PREFIX,
    BOT_NAMES,
    DEFENSE_MESSAGES,
    ORDINARY_CHAT_MESSAGES,
    SABOTEUR_CHAT_MESSAGES,
)
from game.errors import RejectionError
from game.rules import Faction, Phase, SubPhase, Verdict
from game.state import Participant

logger = logging.getLogger(__name__)


class BotSimulator:
    """Generates chat, votes and night targets for living simulated participants."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        chat_probability: float = 0.7,
        ordinary_execute_probability: float = 0.6,
        faction_chat_probability: float = 0.5,
    ) -> None:
        self.rng = rng or random.Random()
        self.chat_probability = chat_probability
        self.ordinary_execute_probability = ordinary_execute_probability
        self.faction_chat_probability = faction_chat_probability

    def pick_name(self, taken: set[str]) -> str:
        """First free pool name, else a random numbered one."""
        for name in BOT_NAMES:
            display = f"{BOT_NAME_PREFIX} {name}"
            if display not in taken:
                return display
        while True:
            display = f"{BOT_NAME_PREFIX} {self.rng.randrange(1000)}"
            if display not in taken:
                return display

    async def act(self, room: Any) -> None:
        """Run the bot actions for the room's current step."""
        state = room.state
        if state.phase == Phase.NIGHT:
            await self._night(room)
        elif state.sub_phase == SubPhase.DISCUSSION:
            await self._discussion(room)
        elif state.sub_phase == SubPhase.ACCUSATION:
            await self._accusation(room)
        elif state.sub_phase == SubPhase.DEFENSE:
            await self._defense(room)
        elif state.sub_phase == SubPhase.VERDICT:
            await self._verdict(room)

    def _living_bots(self, room: Any) -> list[Participant]:
        return [p for p in room.roster.living() if p.is_simulated]

    async def _try(self, action: Callable[..., Awaitable[Any]], *args: Any) -> None:
        try:
            await action(*args)
        except RejectionError as e:
            logger.debug("Bot action rejected: %s", e.reason)

    async def _discussion(self, room: Any) -> None:
        for bot in self._living_bots(room):
            if self.rng.random() >= self.chat_probability:
                continue
            pool = SABOTEUR_CHAT_MESSAGES if bot.faction == Faction.SABOTEUR else ORDINARY_CHAT_MESSAGES
            await self._try(room.apply_chat, bot.display_name, self.rng.choice(pool), False)

    async def _accusation(self, room: Any) -> None:
        for bot in self._living_bots(room):
            if bot.accusation_vote is not None:
                continue
            others = [p for p in room.roster.living() if p.display_name != bot.display_name]
            if not others:
                continue
            pool = others
            if bot.faction == Faction.SABOTEUR:
                pool = [p for p in others if p.faction == Faction.ORDINARY] or others
            target = self.rng.choice(pool)
            await self._try(room.apply_accusation_vote, bot.display_name, target.display_name)

    async def _defense(self, room: Any) -> None:
        accused = room.roster.get(room.state.accused) if room.state.accused else None
        if accused is None or not accused.is_simulated or not accused.is_alive:
            return
        await self._try(room.apply_chat, accused.display_name, self.rng.choice(DEFENSE_MESSAGES), False)

    async def _verdict(self, room: Any) -> None:
        accused = room.roster.get(room.state.accused) if room.state.accused else None
        if accused is None:
            return
        for bot in self._living_bots(room):
            if bot.display_name == accused.display_name or bot.verdict_vote is not None:
                continue
            if bot.faction == Faction.SABOTEUR:
                vote = Verdict.NO if accused.faction == Faction.SABOTEUR else Verdict.YES
            elif self.rng.random() < self.ordinary_execute_probability:
                vote = Verdict.YES
            else:
                vote = Verdict.NO
            await self._try(room.apply_verdict_vote, bot.display_name, vote)

    async def _night(self, room: Any) -> None:
        saboteur_bots = [p for p in self._living_bots(room) if p.faction == Faction.SABOTEUR]
        if not saboteur_bots or room.state.night_target.target is not None:
            return
        targets = room.roster.living_of(Faction.ORDINARY)
        if not targets:
            return
        chooser = saboteur_bots[0]
        target = self.rng.choice(targets)
        await self._try(room.apply_night_target, chooser.display_name, target.display_name)
        if self.rng.random() < self.faction_chat_probability:
            await self._try(room.apply_chat, chooser.display_name, self.rng.choice(SABOTEUR_CHAT_MESSAGES), True)
