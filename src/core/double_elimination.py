"""
Double elimination bracket engine.

In double elimination:
- Jobs must lose twice to be eliminated
- Winners Bracket: Jobs that haven't lost yet
- Losers Bracket: Jobs that have lost once
- Grand Final: Winners bracket champion vs Losers bracket champion
- Bracket Reset: If the losers bracket champion wins the Grand Final, a final match decides the champion

The bracket advances one decision at a time. Every transition returns a new
BracketState and leaves its input untouched; later rounds are materialized as soon
as all the matches feeding them are decided.
"""
import logging
import math
import random
from dataclasses import replace
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from .elimination import calculate_rounds, get_round_name, pair_consecutive, shuffle_array
from .exceptions import BracketStateError, InvalidEntrantCount, InvalidWinnerError
from .models import LOSERS, WINNERS, BracketState, Candidate, Match, round_matches

logger = logging.getLogger(__name__)


def calculate_losers_bracket_rounds(bracket_size: int) -> int:
    """
    Calculate number of rounds in losers bracket.
    For N jobs in winners bracket (power of 2):
    - Winners bracket has log2(N) rounds
    - Losers bracket has 2 * (log2(N) - 1) rounds

    Pattern: minor, major, minor, major, ... ending with a major round
    """
    if bracket_size < 2:
        return 0
    winners_rounds = int(math.log2(bracket_size))
    return 2 * (winners_rounds - 1)


TOTAL_JOBS = 128
FIRST_ROUND_MATCHES = TOTAL_JOBS // 2
WINNERS_BRACKET_ROUNDS = calculate_rounds(TOTAL_JOBS)  # 128 -> 64 -> 32 -> 16 -> 8 -> 4 -> 2 -> 1
LOSERS_BRACKET_ROUNDS = calculate_losers_bracket_rounds(TOTAL_JOBS)
TOTAL_MATCHES = 2 * TOTAL_JOBS - 2  # without a bracket reset
TOP_PLACEMENTS = 5

GRAND_FINAL_ID = "grand-final"
GRAND_FINAL_RESET_ID = "grand-final-reset"
GRAND_FINAL_ROUND = WINNERS_BRACKET_ROUNDS + 1
GRAND_FINAL_RESET_ROUND = WINNERS_BRACKET_ROUNDS + 2

_BRACKET_PRIORITY = {WINNERS: 0, LOSERS: 1}


# --- Round naming -----------------------------------------------------------

def get_losers_round_name(round_num: int, total_losers_rounds: int) -> str:
    """Get the name for a losers bracket round (0-indexed)."""
    rounds_from_end = total_losers_rounds - round_num - 1
    if rounds_from_end == 0:
        return "Losers Final"
    elif rounds_from_end == 1:
        return "Losers Semifinal"
    else:
        return f"Losers Round {round_num + 1}"


def get_winners_round_name(teams_in_round: int) -> str:
    """Get the name for a winners bracket round."""
    return f"Winners {get_round_name(teams_in_round)}"


def describe_match(match: Match) -> str:
    """Human readable round label for a match."""
    if match.id == GRAND_FINAL_ID:
        return "Grand Final"
    if match.id == GRAND_FINAL_RESET_ID:
        return "Bracket Reset"
    if match.bracket == WINNERS:
        return get_winners_round_name(TOTAL_JOBS >> (match.round - 1))
    return get_losers_round_name(match.round - 1, LOSERS_BRACKET_ROUNDS)


# --- Initialization ---------------------------------------------------------

def _match_id(bracket: str, round_num: int, position: int) -> str:
    prefix = 'w' if bracket == WINNERS else 'l'
    return f"{prefix}-r{round_num}-{position}"


def initialize_bracket(candidates: Sequence[Candidate], rng: Optional[random.Random] = None) -> BracketState:
    """
    Shuffle the candidates and lay out the first winners bracket round.

    Raises InvalidEntrantCount unless exactly TOTAL_JOBS candidates are given.
    """
    if len(candidates) != TOTAL_JOBS:
        raise InvalidEntrantCount(TOTAL_JOBS, len(candidates))

    shuffled = shuffle_array(candidates, rng)
    matches = {}
    for i, (job1, job2) in enumerate(pair_consecutive(shuffled)):
        match = Match(
            id=_match_id(WINNERS, 1, i),
            job1=job1,
            job2=job2,
            round=1,
            bracket=WINNERS,
            position=i,
        )
        matches[match.id] = match

    logger.debug(f"Initialized bracket with {len(shuffled)} jobs in {len(matches)} first round matches")
    return BracketState(
        matches=matches,
        current_match=matches[_match_id(WINNERS, 1, 0)],
        loss_counts={job.id: 0 for job in shuffled},
    )


# --- Round materialization --------------------------------------------------
# Each rule inspects the working registry and adds whatever became derivable.
# Rules never overwrite an existing match id, so running them again is harmless.

def _round_decided(matches: List[Match]) -> bool:
    return bool(matches) and all(m.is_decided for m in matches)


def _add_match(matches: Dict[str, Match], match: Match) -> bool:
    if match.id in matches:
        return False
    matches[match.id] = match
    return True


def _add_round(matches: Dict[str, Match], bracket: str, round_num: int,
               pairs: List[Tuple[Candidate, Candidate]]) -> int:
    created = 0
    for i, (job1, job2) in enumerate(pairs):
        match = Match(
            id=_match_id(bracket, round_num, i),
            job1=job1,
            job2=job2,
            round=round_num,
            bracket=bracket,
            position=i,
        )
        if _add_match(matches, match):
            created += 1
    if created:
        logger.debug(f"Materialized {created} matches for {bracket} round {round_num}")
    return created


def create_winners_bracket_round(matches: Dict[str, Match], round_num: int) -> int:
    """Pair the winners of a finished winners round into the next round."""
    current = round_matches(matches, WINNERS, round_num)
    if not _round_decided(current):
        return 0
    winners = [m.winner for m in current]
    if len(winners) < 2:
        return 0
    return _add_round(matches, WINNERS, round_num + 1, pair_consecutive(winners))


def create_winners_bracket_rounds(matches: Dict[str, Match]) -> None:
    for round_num in range(1, WINNERS_BRACKET_ROUNDS):
        if not _round_decided(round_matches(matches, WINNERS, round_num)):
            return
        create_winners_bracket_round(matches, round_num)


def create_losers_bracket_round_1(matches: Dict[str, Match]) -> None:
    """First round losers pair off among themselves."""
    first_round = round_matches(matches, WINNERS, 1)
    if len(first_round) != FIRST_ROUND_MATCHES or not _round_decided(first_round):
        return
    losers = [m.loser for m in first_round]
    _add_round(matches, LOSERS, 1, pair_consecutive(losers))


def _create_drop_in_round(matches: Dict[str, Match], round_num: int, winners_round: int) -> None:
    """Survivors of the previous losers round meet the jobs dropping down from winners_round."""
    survivors = round_matches(matches, LOSERS, round_num - 1)
    dropped = round_matches(matches, WINNERS, winners_round)
    if not _round_decided(survivors) or not _round_decided(dropped):
        return
    pairs = list(zip([m.winner for m in survivors], [m.loser for m in dropped]))
    _add_round(matches, LOSERS, round_num, pairs)


def create_losers_bracket_round_2(matches: Dict[str, Match]) -> None:
    _create_drop_in_round(matches, 2, 2)


def create_losers_bracket_later_rounds(matches: Dict[str, Match]) -> None:
    """
    Rounds 3 and up of the losers bracket.

    Odd rounds (3, 5, ...): winners of the previous losers round face each other.
    Even rounds (4, 6, ...): winners of the previous losers round face the losers
    of winners round (round / 2) + 1.
    """
    for round_num in range(2, LOSERS_BRACKET_ROUNDS):
        current = round_matches(matches, LOSERS, round_num)
        if not _round_decided(current):
            return
        next_round = round_num + 1
        if next_round % 2:
            _add_round(matches, LOSERS, next_round, pair_consecutive([m.winner for m in current]))
        else:
            _create_drop_in_round(matches, next_round, next_round // 2 + 1)


def _seed_final(matches: Dict[str, Match], match_id: str, round_num: int,
                job1: Candidate, job2: Candidate) -> Match:
    existing = matches.get(match_id)
    if existing is None:
        match = Match(id=match_id, job1=job1, job2=job2, round=round_num, bracket=WINNERS, position=0)
        matches[match_id] = match
        logger.info(f"Created {describe_match(match)}: {job1.title} vs {job2.title}")
        return match
    if existing.job1 != job1 or existing.job2 != job2:
        existing = replace(existing, job1=job1, job2=job2)
        matches[match_id] = existing
    return existing


def ensure_grand_final_matches(matches: Dict[str, Match]) -> None:
    """Create or refresh the grand final, and the bracket reset when it is owed."""
    winners_final = matches.get(_match_id(WINNERS, WINNERS_BRACKET_ROUNDS, 0))
    losers_final = matches.get(_match_id(LOSERS, LOSERS_BRACKET_ROUNDS, 0))
    if winners_final is None or losers_final is None:
        return
    if not winners_final.is_decided or not losers_final.is_decided:
        return

    winners_champion = winners_final.winner
    losers_champion = losers_final.winner
    grand_final = _seed_final(matches, GRAND_FINAL_ID, GRAND_FINAL_ROUND, winners_champion, losers_champion)

    # The winners champion only has one loss after dropping the grand final.
    needs_reset = grand_final.is_decided and grand_final.loser.id == winners_champion.id
    if needs_reset:
        _seed_final(matches, GRAND_FINAL_RESET_ID, GRAND_FINAL_RESET_ROUND, winners_champion, losers_champion)
    elif GRAND_FINAL_RESET_ID in matches:
        del matches[GRAND_FINAL_RESET_ID]


def materialize_rounds(matches: Dict[str, Match], decided: Match) -> None:
    """Run every construction rule, in dependency order, after `decided` got its winner."""
    create_winners_bracket_rounds(matches)
    if decided.bracket == WINNERS and decided.round == 1:
        create_losers_bracket_round_1(matches)
    create_losers_bracket_round_2(matches)
    create_losers_bracket_later_rounds(matches)
    ensure_grand_final_matches(matches)


# --- Elimination tracking ---------------------------------------------------

def record_elimination(state: BracketState, decided: Match) -> Tuple[Dict[int, int], FrozenSet[int], Tuple[Candidate, ...]]:
    """
    Charge the loser of `decided` with a loss.

    Returns new (loss_counts, completed_jobs, elimination_order). A job joins the
    elimination order once, on its second loss.
    """
    loss_counts = dict(state.loss_counts)
    completed_jobs = state.completed_jobs
    elimination_order = state.elimination_order

    loser = decided.loser
    if loser is not None:
        losses = loss_counts.get(loser.id, 0) + 1
        loss_counts[loser.id] = losses
        if losses >= 2 and loser.id not in completed_jobs:
            completed_jobs = completed_jobs | {loser.id}
            elimination_order = elimination_order + (loser,)
            logger.debug(f"{loser.title} eliminated ({len(elimination_order)} out)")

    loss_counts.setdefault(decided.winner.id, 0)
    return loss_counts, completed_jobs, elimination_order


# --- Match selection --------------------------------------------------------

def match_order_key(match: Match) -> Tuple[int, int, int]:
    """Round first, winners bracket before losers bracket, then position."""
    return (match.round, _BRACKET_PRIORITY[match.bracket], match.position)


def select_next_match(matches: Dict[str, Match]) -> Optional[Match]:
    """The next undecided match with both jobs known, or None when the bracket is done."""
    ready = [m for m in matches.values() if m.is_ready]
    if not ready:
        return None
    return min(ready, key=match_order_key)


# --- Placements -------------------------------------------------------------

def get_final_match(matches: Dict[str, Match]) -> Optional[Match]:
    """The bracket reset if it was played, otherwise the grand final if it was played."""
    reset = matches.get(GRAND_FINAL_RESET_ID)
    if reset is not None and reset.is_decided:
        return reset
    grand_final = matches.get(GRAND_FINAL_ID)
    if grand_final is not None and grand_final.is_decided:
        return grand_final
    return None


def calculate_final_rankings(matches: Dict[str, Match],
                             elimination_order: Sequence[Candidate]) -> Tuple[Tuple[Candidate, ...], Dict[int, int]]:
    """
    Calculate the top placements from the final match and the elimination order.

    Champion = final match winner
    Runner-up = final match loser
    Places 3-5 = the most recently eliminated jobs not already placed
    """
    final_match = get_final_match(matches)
    if final_match is None:
        raise BracketStateError("Cannot rank a bracket whose grand final has not been decided")

    placements = {}
    ranked = []

    champion = final_match.winner
    ranked.append(champion)
    placements[champion.id] = 1

    runner_up = final_match.loser
    if runner_up is not None:
        ranked.append(runner_up)
        placements[runner_up.id] = 2

    place = 3
    for job in reversed(elimination_order):
        if len(ranked) >= TOP_PLACEMENTS:
            break
        if job.id in placements:
            continue
        placements[job.id] = place
        ranked.append(job)
        place += 1

    return tuple(ranked), placements


# --- Transitions ------------------------------------------------------------

def select_winner(state: BracketState, winner: Candidate) -> BracketState:
    """
    Record `winner` for the current match and advance the bracket.

    Returns `state` unchanged when the tournament is already over. Raises
    InvalidWinnerError when `winner` is not playing in the current match.
    """
    if state.current_match is None:
        return state

    match = state.get_match(state.current_match.id)
    if match is None:
        raise BracketStateError(f"Current match {state.current_match.id} is not part of the bracket")
    chosen = match.participant(winner.id)
    if chosen is None:
        raise InvalidWinnerError(f"{winner.title} (id {winner.id}) is not playing in match {match.id}")

    history = state.history + (state.snapshot(),)

    matches = dict(state.matches)
    decided = match.with_winner(chosen)
    matches[decided.id] = decided

    loss_counts, completed_jobs, elimination_order = record_elimination(state, decided)
    materialize_rounds(matches, decided)

    next_match = select_next_match(matches)
    winners, placements = state.winners, state.placements
    if next_match is None:
        winners, placements = calculate_final_rankings(matches, elimination_order)
        logger.info(f"Bracket complete after {len(history)} decisions, champion: {winners[0].title}")

    return BracketState(
        matches=matches,
        current_match=next_match,
        completed_jobs=completed_jobs,
        loss_counts=loss_counts,
        elimination_order=elimination_order,
        history=history,
        winners=winners,
        placements=placements,
    )


def undo_selection(state: BracketState) -> BracketState:
    """Step back to the state before the last decision. No-op without history."""
    if not state.history:
        return state
    return replace(state.history[-1], history=state.history[:-1])


def get_bracket_progress(state: BracketState) -> Dict:
    """Counts for a progress display."""
    completed_matches = sum(1 for m in state.matches.values() if m.is_decided)
    total_matches = TOTAL_MATCHES + (1 if GRAND_FINAL_RESET_ID in state.matches else 0)
    remaining_jobs = TOTAL_JOBS - len(state.completed_jobs) if state.current_match else 0
    return {
        'total_matches': total_matches,
        'completed_matches': completed_matches,
        'remaining_jobs': remaining_jobs,
        'percent_complete': round(completed_matches / total_matches * 100, 1),
    }
