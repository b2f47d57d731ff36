"""Round 2, Phone Out, Cash In.

Two parts: in STATEMENTS the operator reveals the five clues one at a time in
any order (``revealOrder`` keeps the display order); in GUESSING every player
estimates the resale value and the closest guess takes +4.
"""
import logging
from typing import Any, Dict

from liehard.errors import InvalidPayloadError, MissingActualValueError
from liehard.state import PART_GUESSING, R2, player_key
from liehard.store import DocumentStore
from .guards import coerce_number, require_player, require_round
from .scoring import apply_deltas, score_round2

logger = logging.getLogger(__name__)


def toggle_statement_visibility(store: DocumentStore, index, strict: bool = False) -> Dict[str, Any]:
    document = store.read()
    require_round(document, R2, strict)
    round2 = document['round2']
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(round2['statements']):
        raise InvalidPayloadError(f'Invalid statement index {index!r}')

    revealed = list(round2['revealedStatements'])
    revealed.extend([False] * (len(round2['statements']) - len(revealed)))
    revealed[index] = not revealed[index]
    order = [i for i in round2['revealOrder'] if i != index]
    if revealed[index]:
        order.append(index)
    logger.info(f"[r2-toggle] index={index} revealed={revealed[index]} order={order}")
    return store.write_partial({
        'round2.revealedStatements': revealed,
        'round2.revealOrder': order,
    })


def move_to_guessing_part(store: DocumentStore, strict: bool = False) -> Dict[str, Any]:
    document = store.read()
    require_round(document, R2, strict)
    logger.info("[r2-part] guessing")
    return store.write_partial({'round2.part': PART_GUESSING})


def record_guess(store: DocumentStore, player_id, value, strict: bool = False) -> Dict[str, Any]:
    document = store.read()
    require_round(document, R2, strict)
    pid = require_player(document, player_id)
    return store.write_partial({f'round2.guesses.{player_key(pid)}': coerce_number(value)})


def reveal_actual_value(store: DocumentStore, value, strict: bool = False) -> Dict[str, Any]:
    document = store.read()
    require_round(document, R2, strict)
    actual = coerce_number(value)
    logger.info(f"[r2-actual] value={actual}")
    return store.write_partial({'round2.actualValue': actual})


def reveal_winner_and_score(store: DocumentStore, strict: bool = False) -> Dict[str, Any]:
    document = store.read()
    require_round(document, R2, strict)
    round2 = document['round2']
    if round2['actualValue'] is None:
        raise MissingActualValueError('Set the actual value before revealing a winner')

    winner_id, deltas = score_round2(document['players'], round2['guesses'], round2['actualValue'])
    if winner_id is None:
        logger.warning("[r2-reveal] no guesses recorded, no winner")
        return store.write_partial({'round2.winnerId': None})
    logger.info(f"[r2-reveal] actual={round2['actualValue']} winner={winner_id}")
    return store.write_partial({
        'round2.winnerId': winner_id,
        'players': apply_deltas(document['players'], deltas),
    })
