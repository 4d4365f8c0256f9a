"""Participant roster for one room. Identity is the display name."""

import logging
from typing import Optional

from game.errors import DuplicateNameError, UnknownParticipantError
from game.rules import Faction
from game.state import Participant

logger = logging.getLogger(__name__)


class Roster:
    """Ordered participants (join order). Holds no game rules."""

    def __init__(self) -> None:
        self._participants: dict[str, Participant] = {}

    def __len__(self) -> int:
        return len(self._participants)

    def __contains__(self, display_name: str) -> bool:
        return display_name in self._participants

    def join(
        self,
        display_name: str,
        connection_id: Optional[str],
        requested_host: bool = False,
        is_simulated: bool = False,
    ) -> tuple[Participant, bool]:
        """
        Add a participant or reconcile a reconnect onto the existing one.
        Returns (participant, created). Raises DuplicateNameError if the name is
        held by a simulated participant or by a different live connection.
        """
        existing = self._participants.get(display_name)
        if existing is None:
            participant = Participant(
                display_name=display_name,
                connection_id=connection_id,
                is_host=requested_host,
                is_simulated=is_simulated,
            )
            self._participants[display_name] = participant
            return participant, True

        if existing.is_simulated or is_simulated:
            raise DuplicateNameError(f"{display_name} is already taken")
        if existing.connection_id is not None and existing.connection_id != connection_id:
            raise DuplicateNameError(f"{display_name} is already taken")

        if existing.connection_id != connection_id:
            logger.info("Reconnect %s: handle %s -> %s", display_name, existing.connection_id, connection_id)
        existing.connection_id = connection_id
        if requested_host:
            existing.is_host = True
        return existing, False

    def disconnect(self, display_name: str, connection_id: str) -> bool:
        """Drop the connection handle if it is still the given one."""
        p = self._participants.get(display_name)
        if p is None or p.connection_id != connection_id:
            return False
        p.connection_id = None
        return True

    def remove(self, display_name: str) -> Participant:
        try:
            return self._participants.pop(display_name)
        except KeyError:
            raise UnknownParticipantError(f"{display_name} is not in this room") from None

    def get(self, display_name: str) -> Optional[Participant]:
        return self._participants.get(display_name)

    def require(self, display_name: str) -> Participant:
        p = self._participants.get(display_name)
        if p is None:
            raise UnknownParticipantError(f"{display_name} is not in this room")
        return p

    def all(self) -> list[Participant]:
        return list(self._participants.values())

    def living(self) -> list[Participant]:
        return [p for p in self._participants.values() if p.is_alive]

    def living_names(self) -> set[str]:
        return {p.display_name for p in self._participants.values() if p.is_alive}

    def living_of(self, faction: Faction) -> list[Participant]:
        return [p for p in self._participants.values() if p.is_alive and p.faction == faction]

    def simulated(self) -> list[Participant]:
        return [p for p in self._participants.values() if p.is_simulated]

    def names(self) -> list[str]:
        return list(self._participants.keys())
