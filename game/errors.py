"""Error taxonomy for room actions.

RejectionError and ConfigurationError are reported back to the acting
connection only; InvariantViolation is logged and swallowed at the room's
dispatch point.
"""


class GameError(Exception):
    """Base for all game errors."""

    code = "game_error"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class RejectionError(GameError):
    """Action refused; room state unchanged."""

    code = "rejected"


class DuplicateNameError(RejectionError):
    code = "nickname_taken"


class NotHostError(RejectionError):
    code = "not_host"


class IneligibleActorError(RejectionError):
    code = "ineligible"


class WrongPhaseError(RejectionError):
    code = "wrong_phase"


class InvalidTargetError(RejectionError):
    code = "invalid_target"


class UnknownParticipantError(RejectionError):
    code = "unknown_participant"


class RoomFullError(RejectionError):
    code = "room_full"


class ConfigurationError(GameError):
    code = "configuration"


class PlayerCountError(ConfigurationError):
    code = "player_count"


class InvariantViolation(GameError):
    code = "invariant"


class RoomClosedError(InvariantViolation):
    code = "room_closed"
