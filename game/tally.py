"""Vote tallying: pure functions over vote slots and the living roster."""

import logging
from collections import Counter
from typing import Iterable, Mapping, Optional

from game.rules import Verdict
from game.state import AccusationTally, NightTarget, VerdictTally

logger = logging.getLogger(__name__)

REASON_PLURALITY = "plurality"
REASON_TIE = "tie"
REASON_NO_VOTES = "no votes"


def tally_accusation(
    votes: Mapping[str, Optional[str]],
    living: Iterable[str],
) -> AccusationTally:
    """
    Count accusation votes cast by living voters for living targets.
    A strict maximum names the nominee; a shared maximum is a tie; nothing
    counted means no votes.
    """
    alive = set(living)
    if not alive:
        logger.warning("Accusation tally with no living participants")
    details = [
        (voter, target)
        for voter, target in votes.items()
        if target is not None and voter in alive and target in alive
    ]
    counts = Counter(target for _, target in details)
    if not counts:
        return AccusationTally(nominee=None, counts={}, tie=False, reason=REASON_NO_VOTES, details=[])

    max_votes = max(counts.values())
    leaders = [t for t, c in counts.items() if c == max_votes]
    if len(leaders) > 1:
        return AccusationTally(nominee=None, counts=dict(counts), tie=True, reason=REASON_TIE, details=details)
    return AccusationTally(
        nominee=leaders[0], counts=dict(counts), tie=False, reason=REASON_PLURALITY, details=details
    )


def tally_verdict(
    votes: Mapping[str, Optional[Verdict]],
    accused: Optional[str],
    living: Iterable[str],
) -> VerdictTally:
    """
    Count yes/no among living voters other than the accused. Abstentions are
    ignored; execution needs yes strictly above half of the votes cast.
    """
    eligible = set(living)
    eligible.discard(accused)
    if not eligible:
        logger.warning("Verdict tally with no eligible voters")
    ballots = [
        (voter, Verdict(v))
        for voter, v in votes.items()
        if v is not None and voter in eligible
    ]
    yes = sum(1 for _, v in ballots if v == Verdict.YES)
    no = len(ballots) - yes
    executed = yes > (yes + no) / 2
    return VerdictTally(yes=yes, no=no, executed=executed, ballots=ballots)


def resolve_night_target(night_target: NightTarget, eligible: Iterable[str]) -> Optional[str]:
    """The saboteurs' last pick, if it is still a living non-saboteur."""
    target = night_target.target
    if target is None:
        return None
    if target not in set(eligible):
        logger.info("Night target %s is no longer eligible; no kill", target)
        return None
    return target
