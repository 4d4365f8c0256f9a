"""Room orchestrator: the per-room game state machine.

Every public coroutine takes the room lock, so player actions, bot actions and
timer callbacks for one room never interleave. The apply_* methods are the
validated mutation paths; they expect the lock to be held already and are
shared by the public wrappers and the bot simulator.
"""

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from functools import partial
from typing import Any, Awaitable, Callable, Optional

from bots.simulator import BotSimulator
from game.engine import (
    apply_kill,
    assign_factions,
    clear_accusation_votes,
    clear_all_votes,
    clear_night_votes,
    clear_verdict_votes,
    get_winner,
)
from game.errors import (
    IneligibleActorError,
    InvalidTargetError,
    InvariantViolation,
    NotHostError,
    RejectionError,
    RoomClosedError,
    RoomFullError,
    UnknownParticipantError,
    WrongPhaseError,
)
from game.rules import (
    MAX_CHAT_LENGTH,
    MAX_PLAYERS,
    BotDelays,
    Faction,
    GameTimings,
    Lifecycle,
    Phase,
    SubPhase,
    Verdict,
)
from game.roster import Roster
from game.state import Participant, RoomState, VerdictOutcome
from game.tally import resolve_night_target, tally_accusation, tally_verdict
from game.timer import PhaseTimer

logger = logging.getLogger(__name__)

# Ballots that can be open at a time
BALLOT_ACCUSATION = "accusation"
BALLOT_VERDICT = "verdict"
BALLOT_NIGHT = "night"

WINNER_MESSAGES = {
    Faction.SABOTEUR: "Saboteurs now equal or outnumber everyone else. The saboteurs win.",
    Faction.ORDINARY: "Every saboteur has been eliminated. The ordinary side wins.",
}


class Broadcaster(ABC):
    """
    Outbound sink for room notifications. Messages are {"type", "data"} dicts;
    private messages are addressed to the participant's current connection.
    """

    @abstractmethod
    async def broadcast(self, room_id: str, message: dict) -> None:
        ...

    @abstractmethod
    async def send_to(self, room_id: str, connection_id: str, message: dict) -> None:
        ...


class Room:
    """One room: roster, state, phase timer and the transitions between phases."""

    def __init__(
        self,
        room_id: str,
        broadcaster: Broadcaster,
        timings: Optional[GameTimings] = None,
        rng: Optional[random.Random] = None,
        bots: Optional[BotSimulator] = None,
        bot_delays: Optional[BotDelays] = None,
    ) -> None:
        self.state = RoomState(room_id=room_id)
        self.roster = Roster()
        self.timings = timings or GameTimings()
        self.rng = rng or random.Random()
        self.bots = bots or BotSimulator()
        self.bot_delays = bot_delays or BotDelays()
        self.closed = False
        self.step_id = 0
        self._broadcaster = broadcaster
        self._lock = asyncio.Lock()
        self.timer = PhaseTimer(self._dispatch_timer, interval=self.timings.tick_interval, label=f"[{room_id}]")
        self._step_handler: Optional[Callable[[], Awaitable[Any]]] = None
        self._step_seconds = 0
        self._bots_acted = False
        self._open_ballot: Optional[str] = None

    @property
    def room_id(self) -> str:
        return self.state.room_id

    @property
    def lifecycle(self) -> Lifecycle:
        return self.state.lifecycle

    def __len__(self) -> int:
        return len(self.roster)

    # ── Serialization ─────────────────────────────────────────────────────────

    async def _dispatch(self, fn: Callable[[], Awaitable[Any]]) -> Any:
        async with self._lock:
            if self.closed:
                raise RoomClosedError(f"Room {self.room_id} is closed")
            return await fn()

    async def _dispatch_timer(self, fn: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await self._dispatch(fn)
        except InvariantViolation as e:
            logger.warning("[%s] Timer callback dropped: %s", self.room_id, e.reason)
        except Exception:
            logger.exception("[%s] Timer callback failed", self.room_id)
        return None

    # ── Public actions (take the lock) ────────────────────────────────────────

    async def join(self, display_name: str, connection_id: Optional[str] = None, as_host: bool = False) -> Participant:
        return await self._dispatch(partial(self._join, display_name, connection_id, as_host))

    async def leave(self, display_name: str) -> bool:
        """Remove a participant. Returns True when the room emptied and closed itself."""
        return await self._dispatch(partial(self._leave, display_name))

    async def disconnect(self, display_name: str, connection_id: str) -> None:
        await self._dispatch(partial(self._disconnect, display_name, connection_id))

    async def start_game(self, requester: str) -> None:
        await self._dispatch(partial(self._start_game, requester))

    async def add_simulated(self, requester: str) -> Participant:
        return await self._dispatch(partial(self._add_simulated, requester))

    async def remove_simulated(self, requester: str) -> Participant:
        return await self._dispatch(partial(self._remove_simulated, requester))

    async def submit_accusation_vote(self, voter: str, target: Optional[str]) -> None:
        await self._dispatch(partial(self.apply_accusation_vote, voter, target))

    async def submit_verdict_vote(self, voter: str, vote: Optional[Verdict | str]) -> None:
        await self._dispatch(partial(self.apply_verdict_vote, voter, vote))

    async def submit_night_target(self, voter: str, target: Optional[str]) -> None:
        await self._dispatch(partial(self.apply_night_target, voter, target))

    async def send_chat(
        self, sender: str, content: str, is_faction_channel: bool = False, claimed_sender: Optional[str] = None
    ) -> None:
        await self._dispatch(partial(self.apply_chat, sender, content, is_faction_channel, claimed_sender))

    async def advance(self) -> bool:
        """Short-circuit the running countdown or delay. Returns False if none was running."""
        return await self._dispatch(self.timer.fire_now)

    async def expire_step(self, step_id: int) -> bool:
        """Deliver an expiry for step_id; stale ids are a no-op."""
        return await self._dispatch(partial(self._run_step, step_id))

    async def close(self) -> None:
        async with self._lock:
            self._close()

    def snapshot(self) -> dict:
        """Read-only public view of the room."""
        reveal = self.state.lifecycle == Lifecycle.CONCLUDED
        data = self.state.lifecycle_payload()
        data.update(
            {
                "room_id": self.room_id,
                "remaining_seconds": self.state.remaining_seconds,
                "accused": self.state.accused,
                "participants": [p.to_public(reveal) for p in self.roster.all()],
            }
        )
        return data

    # ── Roster handling ───────────────────────────────────────────────────────

    async def _join(self, display_name: str, connection_id: Optional[str], as_host: bool) -> Participant:
        name = (display_name or "").strip()
        if not name:
            raise RejectionError("A display name is required")
        if name not in self.roster and len(self.roster) >= MAX_PLAYERS:
            raise RoomFullError(f"A room holds at most {MAX_PLAYERS} participants")
        participant, created = self.roster.join(name, connection_id, as_host)
        if created and self.state.lifecycle in (Lifecycle.ROLE_REVEAL, Lifecycle.ACTIVE):
            # Late joiners watch until the next game starts
            participant.is_alive = False
        logger.info(
            "[%s] %s %s (host=%s, alive=%s)",
            self.room_id,
            name,
            "joined" if created else "reconnected",
            participant.is_host,
            participant.is_alive,
        )
        await self._send_roster()
        if created:
            await self._system(f"{name} joined the room.")
        await self._sync_participant(participant)
        return participant

    async def _leave(self, display_name: str) -> bool:
        departed = self.roster.remove(display_name)
        logger.info("[%s] %s left (%d remaining)", self.room_id, display_name, len(self.roster))
        if not len(self.roster):
            self._close()
            return True
        new_host = self._promote_host() if departed.is_host else None
        await self._send_roster()
        await self._system(f"{display_name} left the room.")
        if new_host is not None:
            await self._system(f"{new_host.display_name} is now the host.")
        return False

    def _promote_host(self) -> Optional[Participant]:
        """Hand the host flag to the earliest connected human, else the earliest human."""
        humans = [p for p in self.roster.all() if not p.is_simulated]
        if not humans or any(p.is_host for p in humans):
            return None
        new_host = next((p for p in humans if p.connected), humans[0])
        new_host.is_host = True
        logger.info("[%s] Host passed to %s", self.room_id, new_host.display_name)
        return new_host

    def has_connected_human(self) -> bool:
        return any(p.connected for p in self.roster.all() if not p.is_simulated)

    async def _disconnect(self, display_name: str, connection_id: str) -> None:
        if self.roster.disconnect(display_name, connection_id):
            logger.info("[%s] %s disconnected", self.room_id, display_name)
            await self._send_roster()

    async def _add_simulated(self, requester: str) -> Participant:
        self._require_host(requester)
        self._require_lobby()
        if len(self.roster) >= MAX_PLAYERS:
            raise RoomFullError(f"A room holds at most {MAX_PLAYERS} participants")
        name = self.bots.pick_name(set(self.roster.names()))
        participant, _ = self.roster.join(name, None, is_simulated=True)
        logger.info("[%s] Simulated participant %s added", self.room_id, name)
        await self._send_roster()
        await self._system(f"Simulated participant {name} joined the room.")
        return participant

    async def _remove_simulated(self, requester: str) -> Participant:
        self._require_host(requester)
        self._require_lobby()
        simulated = self.roster.simulated()
        if not simulated:
            raise RejectionError("There is no simulated participant to remove")
        last = simulated[-1]
        self.roster.remove(last.display_name)
        logger.info("[%s] Simulated participant %s removed", self.room_id, last.display_name)
        await self._send_roster()
        await self._system(f"Simulated participant {last.display_name} left the room.")
        return last

    def _close(self) -> None:
        if self.closed:
            return
        self.timer.cancel()
        self._step_handler = None
        self.closed = True
        logger.info("[%s] Room closed", self.room_id)

    # ── Validation ────────────────────────────────────────────────────────────

    def _require_actor(self, name: str) -> Participant:
        p = self.roster.get(name)
        if p is None:
            raise UnknownParticipantError(f"{name} is not in this room")
        return p

    def _require_living(self, name: str) -> Participant:
        p = self._require_actor(name)
        if not p.is_alive:
            raise IneligibleActorError(f"{name} is not alive")
        return p

    def _require_host(self, name: str) -> Participant:
        p = self._require_actor(name)
        if not p.is_host:
            raise NotHostError("Only the host can do that")
        return p

    def _require_lobby(self) -> None:
        if self.state.lifecycle not in (Lifecycle.WAITING, Lifecycle.CONCLUDED):
            raise WrongPhaseError("Not while a game is in progress")

    def _require_ballot(self, ballot: str) -> None:
        if self.state.lifecycle != Lifecycle.ACTIVE or self._open_ballot != ballot:
            raise WrongPhaseError(f"The {ballot} vote is not open")

    # ── Inbound mutations (lock held) ─────────────────────────────────────────

    async def apply_accusation_vote(self, voter: str, target: Optional[str]) -> None:
        self._require_ballot(BALLOT_ACCUSATION)
        p = self._require_living(voter)
        if target is not None:
            accused = self.roster.get(target)
            if accused is None or not accused.is_alive:
                raise InvalidTargetError(f"{target} is not a living participant")
            if target == voter:
                raise InvalidTargetError("You cannot accuse yourself")
        p.accusation_vote = target
        logger.info("[%s] %s accuses %s", self.room_id, voter, target)
        tally = tally_accusation(self._accusation_votes(), self.roster.living_names())
        await self._broadcast("accusation_tally_update", {"counts": tally.counts})

    async def apply_verdict_vote(self, voter: str, vote: Optional[Verdict | str]) -> None:
        self._require_ballot(BALLOT_VERDICT)
        p = self._require_living(voter)
        if voter == self.state.accused:
            raise IneligibleActorError("The accused cannot vote on their own verdict")
        if vote is not None:
            try:
                vote = Verdict(vote)
            except ValueError:
                raise InvalidTargetError(f"Unknown verdict {vote!r}") from None
        p.verdict_vote = vote
        logger.info("[%s] %s votes %s on %s", self.room_id, voter, vote, self.state.accused)
        tally = tally_verdict(self._verdict_votes(), self.state.accused, self.roster.living_names())
        await self._broadcast("verdict_tally_update", {"yes": tally.yes, "no": tally.no})

    async def apply_night_target(self, voter: str, target: Optional[str]) -> None:
        self._require_ballot(BALLOT_NIGHT)
        p = self._require_living(voter)
        if p.faction != Faction.SABOTEUR:
            raise IneligibleActorError("Only saboteurs choose a night target")
        if target is not None:
            victim = self.roster.get(target)
            if victim is None or not victim.is_alive or victim.faction != Faction.ORDINARY:
                raise InvalidTargetError(f"{target} cannot be targeted")
        p.night_target_vote = target
        self.state.night_target.set(voter, target)
        logger.info("[%s] %s set night target %s", self.room_id, voter, target)
        text = f"{voter} chose {target} as tonight's target." if target else f"{voter} cleared tonight's target."
        for sab in self.roster.living_of(Faction.SABOTEUR):
            await self._send_to(sab.display_name, "system_message", {"message": text})

    async def apply_chat(
        self, sender: str, content: str, is_faction_channel: bool = False, claimed_sender: Optional[str] = None
    ) -> None:
        p = self._require_actor(sender)
        in_game = self.state.lifecycle in (Lifecycle.ROLE_REVEAL, Lifecycle.ACTIVE)
        if in_game and not p.is_alive:
            raise IneligibleActorError("Eliminated participants cannot chat")
        text = (content or "").strip()[:MAX_CHAT_LENGTH]
        if not text:
            raise RejectionError("Message is empty")
        if claimed_sender and claimed_sender != sender:
            logger.info("[%s] Chat sender %r overridden with %r", self.room_id, claimed_sender, sender)
        message = {
            "sender": sender,
            "content": text,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "is_faction_channel": bool(is_faction_channel),
        }
        if is_faction_channel:
            if p.faction != Faction.SABOTEUR or not p.is_alive:
                raise IneligibleActorError("Only living saboteurs can use the faction channel")
            for sab in self.roster.living_of(Faction.SABOTEUR):
                await self._send_to(sab.display_name, "chat_message", message)
        else:
            await self._broadcast("chat_message", message)

    # ── State machine ─────────────────────────────────────────────────────────

    async def _start_game(self, requester: str) -> None:
        self._require_host(requester)
        self._require_lobby()
        participants = self.roster.all()
        saboteurs = assign_factions(participants, self.rng)

        s = self.state
        s.lifecycle = Lifecycle.ROLE_REVEAL
        s.day = 1
        s.phase = Phase.DAY
        s.sub_phase = None
        s.remaining_seconds = 0
        s.accused = None
        s.night_target.clear()
        s.last_verdict = None
        s.winner = None
        self._open_ballot = None
        logger.info(
            "[%s] Game starting with %d players; saboteurs: %s",
            self.room_id,
            len(participants),
            [p.display_name for p in saboteurs],
        )

        await self._broadcast("lifecycle_update", s.lifecycle_payload())
        for p in participants:
            await self._send_private_lifecycle(p)
        await self._send_roster()
        await self._system("Roles have been assigned. Check yours before the first day begins.")
        await self._schedule(self.timings.role_reveal_delay, self._begin_game, ticking=False)

    async def _begin_game(self) -> None:
        self.state.lifecycle = Lifecycle.ACTIVE
        logger.info("[%s] Game active", self.room_id)
        await self._begin_day(1)

    async def _begin_day(self, day: int) -> None:
        s = self.state
        s.phase = Phase.DAY
        s.sub_phase = SubPhase.DISCUSSION
        s.day = day
        s.accused = None
        s.night_target.clear()
        s.last_verdict = None
        self._open_ballot = None
        clear_all_votes(self.roster)
        logger.info("[%s] Day %d begins (%d alive)", self.room_id, day, len(self.roster.living()))

        await self._broadcast("lifecycle_update", s.lifecycle_payload())
        announcement = f"Day {day} has begun. Discuss freely."
        await self._phase_change(self.timings.discussion, transition_kind="day_start", announcement=announcement)
        await self._system(announcement)
        await self._schedule(self.timings.discussion, self._begin_accusation)

    async def _begin_accusation(self) -> None:
        self.state.sub_phase = SubPhase.ACCUSATION
        clear_accusation_votes(self.roster)
        self._open_ballot = BALLOT_ACCUSATION
        seconds = self.timings.accusation
        logger.info("[%s] Accusation vote open (%ds)", self.room_id, seconds)
        await self._phase_change(seconds)
        await self._system(f"Accuse the participant you suspect most. ({seconds}s)")
        await self._schedule(seconds, self._resolve_accusation)

    async def _resolve_accusation(self) -> None:
        self._open_ballot = None
        result = tally_accusation(self._accusation_votes(), self.roster.living_names())
        logger.info("[%s] Accusation result: %s (%s) %s", self.room_id, result.nominee, result.reason, result.counts)
        await self._broadcast(
            "accusation_result",
            {
                "nominee": result.nominee,
                "counts": result.counts,
                "tie": result.tie,
                "reason": result.reason,
                "details": [{"voter": v, "target": t} for v, t in result.details],
            },
        )
        delay = self.timings.announcement_delay
        if result.nominee is not None:
            self.state.accused = result.nominee
            await self._system(f"{result.nominee} received the most votes. Their defense begins shortly.")
            await self._schedule(delay, self._begin_defense, ticking=False)
            return

        self.state.accused = None
        if result.tie:
            await self._system("The accusation vote tied, so nobody is accused. Night is coming.")
        else:
            await self._system("No votes were cast, so nobody is accused. Night is coming.")
        await self._schedule(delay, self._begin_night, ticking=False)

    async def _begin_defense(self) -> None:
        if not self._accused_is_present():
            logger.warning("[%s] Accused %s is gone; skipping to night", self.room_id, self.state.accused)
            await self._begin_night()
            return
        self.state.sub_phase = SubPhase.DEFENSE
        seconds = self.timings.defense
        await self._phase_change(seconds)
        await self._system(f"{self.state.accused}, make your final defense. ({seconds}s)")
        await self._schedule(seconds, self._begin_verdict)

    async def _begin_verdict(self) -> None:
        if not self._accused_is_present():
            logger.warning("[%s] Accused %s is gone; skipping to night", self.room_id, self.state.accused)
            await self._begin_night()
            return
        self.state.sub_phase = SubPhase.VERDICT
        clear_verdict_votes(self.roster)
        self._open_ballot = BALLOT_VERDICT
        seconds = self.timings.verdict
        logger.info("[%s] Verdict vote on %s (%ds)", self.room_id, self.state.accused, seconds)
        await self._phase_change(seconds)
        await self._system(f"Vote on whether to execute {self.state.accused}. ({seconds}s)")
        await self._schedule(seconds, self._resolve_verdict)

    async def _resolve_verdict(self) -> None:
        self._open_ballot = None
        s = self.state
        accused = s.accused
        result = tally_verdict(self._verdict_votes(), accused, self.roster.living_names())
        target = self.roster.get(accused) if accused else None
        executed = result.executed and target is not None and target.is_alive

        s.sub_phase = SubPhase.RESULT
        outcome = VerdictOutcome(
            target=accused,
            executed=executed,
            yes=result.yes,
            no=result.no,
            faction=target.faction if executed else None,
            ballots=result.ballots,
        )
        s.last_verdict = outcome
        logger.info(
            "[%s] Verdict on %s: yes=%d no=%d executed=%s", self.room_id, accused, result.yes, result.no, executed
        )

        if executed:
            apply_kill(self.roster, accused)
            await self._send_roster()
            await self._system(f"{accused} was executed. They were {target.faction.value}.")
        else:
            await self._system(f"{accused} was not executed.")

        await self._broadcast("verdict_result", outcome.to_public())
        seconds = self.timings.result
        await self._phase_change(seconds, verdict=outcome.to_public())
        await self._schedule(seconds, partial(self._finish_result, executed))

    async def _finish_result(self, executed: bool) -> None:
        if executed:
            winner = get_winner(self.roster)
            if winner is not None:
                await self._conclude(winner)
                return
        await self._begin_night()

    async def _begin_night(self) -> None:
        s = self.state
        s.phase = Phase.NIGHT
        s.sub_phase = None
        s.accused = None
        s.night_target.clear()
        clear_night_votes(self.roster)
        self._open_ballot = BALLOT_NIGHT
        seconds = self.timings.night
        logger.info("[%s] Night %d begins (%ds)", self.room_id, s.day, seconds)
        await self._phase_change(
            seconds,
            transition_kind="night_start",
            announcement="Night has fallen. Saboteurs, choose your target. Everyone else, wait for dawn.",
        )
        await self._system(f"Night {s.day} has begun.")
        await self._schedule(seconds, self._resolve_night)

    async def _resolve_night(self) -> None:
        self._open_ballot = None
        s = self.state
        eligible = [p.display_name for p in self.roster.living_of(Faction.ORDINARY)]
        target = resolve_night_target(s.night_target, eligible)
        killed = apply_kill(self.roster, target) if target else None
        s.night_target.clear()

        if killed is not None:
            logger.info("[%s] Night kill: %s", self.room_id, killed.display_name)
            await self._send_roster()
            await self._system(f"{killed.display_name} was eliminated during the night.")
        else:
            logger.info("[%s] Nobody died during night %d", self.room_id, s.day)
            await self._system("Nobody was eliminated during the night.")
        await self._broadcast(
            "night_result",
            {"killed": killed.display_name if killed else None, "day": s.day + 1},
        )

        if killed is not None:
            winner = get_winner(self.roster)
            if winner is not None:
                await self._conclude(winner)
                return
        await self._schedule(self.timings.night_result_delay, partial(self._begin_day, s.day + 1), ticking=False)

    async def _conclude(self, winner: Faction) -> None:
        self.timer.cancel()
        self._step_handler = None
        self._open_ballot = None
        self.step_id += 1
        s = self.state
        s.lifecycle = Lifecycle.CONCLUDED
        s.winner = winner
        s.sub_phase = None
        s.remaining_seconds = 0
        logger.info("[%s] Game over: %s wins on day %d", self.room_id, winner.value, s.day)
        await self._broadcast("lifecycle_update", s.lifecycle_payload())
        await self._send_roster()
        await self._system(WINNER_MESSAGES[winner])

    # ── Steps and ticks ───────────────────────────────────────────────────────

    async def _schedule(self, seconds: int, handler: Callable[[], Awaitable[Any]], ticking: bool = True) -> None:
        self.step_id += 1
        step = self.step_id
        self._step_handler = handler
        self._step_seconds = seconds
        self._bots_acted = False
        await self.timer.start(seconds, partial(self._run_step, step), self._on_tick if ticking else None)

    async def _run_step(self, step: int) -> bool:
        if step != self.step_id or self._step_handler is None:
            logger.info("[%s] Ignoring stale expiry for step %d (current %d)", self.room_id, step, self.step_id)
            return False
        handler, self._step_handler = self._step_handler, None
        self.step_id += 1
        await handler()
        return True

    async def _on_tick(self, remaining: int) -> None:
        self.state.remaining_seconds = remaining
        await self._broadcast("time_tick", {"remaining_seconds": remaining})
        if remaining % 5 == 0 or remaining <= 5:
            logger.debug("[%s] %ds left", self.room_id, remaining)
        await self._maybe_run_bots(self._step_seconds - remaining)

    async def _maybe_run_bots(self, elapsed: int) -> None:
        if self._bots_acted or self.state.lifecycle != Lifecycle.ACTIVE:
            return
        step = self.state.sub_phase if self.state.phase == Phase.DAY else None
        delay = self.bot_delays.for_step(step)
        if delay is None or elapsed < delay:
            return
        self._bots_acted = True
        await self.bots.act(self)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _accusation_votes(self) -> dict[str, Optional[str]]:
        return {p.display_name: p.accusation_vote for p in self.roster.all()}

    def _verdict_votes(self) -> dict[str, Optional[Verdict]]:
        return {p.display_name: p.verdict_vote for p in self.roster.all()}

    def _accused_is_present(self) -> bool:
        accused = self.roster.get(self.state.accused) if self.state.accused else None
        return accused is not None and accused.is_alive

    async def _broadcast(self, event: str, data: dict) -> None:
        await self._broadcaster.broadcast(self.room_id, {"type": event, "data": data})

    async def _send_to(self, display_name: str, event: str, data: dict) -> None:
        p = self.roster.get(display_name)
        if p is None or p.connection_id is None:
            return
        await self._broadcaster.send_to(self.room_id, p.connection_id, {"type": event, "data": data})

    async def _system(self, text: str) -> None:
        await self._broadcast("system_message", {"message": text})

    async def _send_roster(self) -> None:
        reveal = self.state.lifecycle == Lifecycle.CONCLUDED
        await self._broadcast("roster_update", {"participants": [p.to_public(reveal) for p in self.roster.all()]})

    async def _phase_change(self, seconds: int, **extra: Any) -> None:
        s = self.state
        data = {
            "phase": s.phase.value,
            "sub_phase": s.sub_phase.value if s.sub_phase else None,
            "day": s.day,
            "remaining_seconds": seconds,
            "accused": s.accused,
        }
        data.update(extra)
        await self._broadcast("phase_change", data)

    async def _send_private_lifecycle(self, p: Participant) -> None:
        data = self.state.lifecycle_payload()
        data["faction"] = p.faction.value if p.faction else None
        if p.faction == Faction.SABOTEUR:
            data["teammates"] = [
                o.display_name
                for o in self.roster.all()
                if o.faction == Faction.SABOTEUR and o.display_name != p.display_name
            ]
        await self._send_to(p.display_name, "lifecycle_update", data)

    async def _sync_participant(self, p: Participant) -> None:
        """Bring a (re)joining connection up to date with the room."""
        await self._send_private_lifecycle(p)
        s = self.state
        if s.lifecycle != Lifecycle.ACTIVE:
            return
        await self._send_to(
            p.display_name,
            "phase_change",
            {
                "phase": s.phase.value,
                "sub_phase": s.sub_phase.value if s.sub_phase else None,
                "day": s.day,
                "remaining_seconds": s.remaining_seconds,
                "accused": s.accused,
            },
        )
        await self._send_to(p.display_name, "time_tick", {"remaining_seconds": s.remaining_seconds})
        if s.sub_phase == SubPhase.RESULT and s.last_verdict is not None:
            await self._send_to(p.display_name, "verdict_result", s.last_verdict.to_public())
