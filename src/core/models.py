from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

WINNERS = "winners"
LOSERS = "losers"


@dataclass(frozen=True)
class Candidate:
    id: int
    title: str
    description: str = ""

    def to_dict(self) -> Dict:
        return {'id': self.id, 'title': self.title, 'description': self.description}


@dataclass(frozen=True)
class Match:
    """A single head-to-head pairing inside one bracket round."""
    id: str
    job1: Optional[Candidate]
    job2: Optional[Candidate]
    round: int
    bracket: str
    position: int
    winner: Optional[Candidate] = None

    @property
    def is_decided(self) -> bool:
        return self.winner is not None

    @property
    def is_ready(self) -> bool:
        """Both slots are filled and no winner has been recorded yet."""
        return self.job1 is not None and self.job2 is not None and self.winner is None

    @property
    def loser(self) -> Optional[Candidate]:
        if self.winner is None or self.job1 is None or self.job2 is None:
            return None
        return self.job2 if self.job1.id == self.winner.id else self.job1

    def participant(self, candidate_id: int) -> Optional[Candidate]:
        for job in (self.job1, self.job2):
            if job is not None and job.id == candidate_id:
                return job
        return None

    def with_winner(self, winner: Candidate) -> 'Match':
        return replace(self, winner=winner)

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'job1': self.job1.to_dict() if self.job1 else None,
            'job2': self.job2.to_dict() if self.job2 else None,
            'winner': self.winner.to_dict() if self.winner else None,
            'round': self.round,
            'bracket': self.bracket,
            'position': self.position,
        }


@dataclass(frozen=True)
class BracketState:
    """
    Immutable snapshot of a tournament.

    `matches` is a registry keyed by match id, in creation order. New states copy the
    registry but share the Match objects that did not change.
    `history` holds earlier snapshots, each stored with an empty history of its own.

    `matches`, `loss_counts` and `placements` are stored as read-only views over
    private copies, so a snapshot never changes after it is taken. States are not
    hashable.
    """
    matches: Mapping[str, Match]
    current_match: Optional[Match] = None
    completed_jobs: FrozenSet[int] = frozenset()
    loss_counts: Mapping[int, int] = field(default_factory=dict)
    elimination_order: Tuple[Candidate, ...] = ()
    history: Tuple['BracketState', ...] = ()
    winners: Tuple[Candidate, ...] = ()
    placements: Mapping[int, int] = field(default_factory=dict)

    __hash__ = None

    def __post_init__(self):
        for name in ('matches', 'loss_counts', 'placements'):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @property
    def is_complete(self) -> bool:
        return self.current_match is None

    def snapshot(self) -> 'BracketState':
        return replace(self, history=())

    def get_match(self, match_id: str) -> Optional[Match]:
        return self.matches.get(match_id)

    def to_dict(self) -> Dict:
        return {
            'matches': [m.to_dict() for m in self.matches.values()],
            'current_match': self.current_match.to_dict() if self.current_match else None,
            'completed_jobs': sorted(self.completed_jobs),
            'loss_counts': dict(self.loss_counts),
            'elimination_order': [job.to_dict() for job in self.elimination_order],
            'history_depth': len(self.history),
            'winners': [job.to_dict() for job in self.winners],
            'placements': dict(self.placements),
        }


def round_matches(matches: Mapping[str, Match], bracket: str, round_num: int) -> List[Match]:
    """All matches of one bracket round, in positional order."""
    found = [m for m in matches.values() if m.bracket == bracket and m.round == round_num]
    return sorted(found, key=lambda m: m.position)
