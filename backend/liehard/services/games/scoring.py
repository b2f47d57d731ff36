"""Scoring rules for the four rounds.

Everything here is pure: functions take the roster and the relevant round
fields and return score deltas keyed by player id. Callers apply the deltas
with :func:`apply_deltas` and write the new roster in the same write that
reveals the result.
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple

from liehard.state import GUESS_LIE, GUESS_TRUE, player_key

ROUND1_POINTS = 1
ROUND2_POINTS = 4
ROUND3_POINTS = 3
ROUND4_POINTS = 8


def apply_deltas(players: List[Dict[str, Any]], deltas: Dict[int, int]) -> List[Dict[str, Any]]:
    updated = []
    for p in players:
        delta = deltas.get(p['id'], 0)
        updated.append({**p, 'score': p['score'] + delta} if delta else dict(p))
    return updated


def add_points(player_ids: Iterable[int], points: int) -> Dict[int, int]:
    deltas: Dict[int, int] = {}
    for pid in player_ids:
        deltas[pid] = deltas.get(pid, 0) + points
    return deltas


def round1_correct_answer(statement: Dict[str, Any]) -> str:
    return GUESS_TRUE if statement.get('isTruth') else GUESS_LIE


def score_round1(players, guesses: Dict[str, str], statement: Dict[str, Any],
                 storyteller_id: Optional[int]) -> Dict[int, int]:
    """+1 to every non-storyteller whose guess matches the statement's label."""
    correct = round1_correct_answer(statement)
    winners = [
        p['id'] for p in players
        if p['id'] != storyteller_id and guesses.get(player_key(p['id'])) == correct
    ]
    return add_points(winners, ROUND1_POINTS)


def round2_winner(players, guesses: Dict[str, Any], actual_value) -> Optional[int]:
    """Closest guess to ``actual_value``; the first player in roster order wins ties."""
    winner_id = None
    min_diff = None
    for p in players:
        guess = guesses.get(player_key(p['id']))
        if guess is None:
            continue
        diff = abs(guess - actual_value)
        if min_diff is None or diff < min_diff:
            min_diff = diff
            winner_id = p['id']
    return winner_id


def score_round2(players, guesses: Dict[str, Any], actual_value) -> Tuple[Optional[int], Dict[int, int]]:
    winner_id = round2_winner(players, guesses, actual_value)
    if winner_id is None:
        return None, {}
    return winner_id, add_points([winner_id], ROUND2_POINTS)


def round3_correct_guessers(players, guesses: Dict[str, Any], storyteller_id, true_index) -> List[int]:
    return [
        p['id'] for p in players
        if p['id'] != storyteller_id
        and guesses.get(player_key(p['id'])) is not None
        and guesses.get(player_key(p['id'])) == true_index
    ]


def score_round3(players, guesses: Dict[str, Any], storyteller_id, true_index) -> Dict[int, int]:
    """+3 to each correct guesser, or +3 to the storyteller when nobody found the truth."""
    correct = round3_correct_guessers(players, guesses, storyteller_id, true_index)
    if correct:
        return add_points(correct, ROUND3_POINTS)
    return add_points([storyteller_id], ROUND3_POINTS)


def score_round4(winner_id: int) -> Dict[int, int]:
    return add_points([winner_id], ROUND4_POINTS)


def compute_winners(players) -> List[Dict[str, Any]]:
    """All players holding the top score; ties are not broken."""
    if not players:
        return []
    high_score = max(p['score'] for p in players)
    return [p for p in players if p['score'] == high_score]


def leaderboard(players) -> List[Dict[str, Any]]:
    return sorted(players, key=lambda p: p['score'], reverse=True)
