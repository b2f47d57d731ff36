"""Round 3, Catch Me If You Can.

Every player takes one turn as storyteller with three statements, one true.
The others pick the true one; correct pickers get +3 each, and if nobody
picks it the storyteller gets +3 instead. Completed storytellers are not
offered again.
"""
import logging
from typing import Any, Dict, List

from liehard.errors import IllegalTransitionError, InvalidPayloadError, SetNotFoundError
from liehard.state import R3, ROUND3_STATEMENT_COUNT, find_round3_set, player_key
from liehard.store import DocumentStore
from .guards import require_player, require_round
from .scoring import apply_deltas, round3_correct_guessers, score_round3

logger = logging.getLogger(__name__)


def available_storytellers(document) -> List[Dict[str, Any]]:
    completed = set(document['round3']['completedStorytellers'])
    return [p for p in document['players'] if p['id'] not in completed]


def select_storyteller(store: DocumentStore, player_id, strict: bool = False) -> Dict[str, Any]:
    document = store.read()
    require_round(document, R3, strict)
    pid = require_player(document, player_id)
    statement_set = find_round3_set(document, pid)
    if statement_set is None:
        raise SetNotFoundError(f'No statement set loaded for player {pid}')
    if strict and pid in document['round3']['completedStorytellers']:
        raise IllegalTransitionError(f'Player {pid} has already told their story')

    logger.info(f"[r3-storyteller] storyteller={pid}")
    return store.write_partial({
        'round3.currentStorytellerId': pid,
        'round3.currentStatements': list(statement_set['statements']),
        'round3.trueIndex': statement_set['trueIndex'],
        'round3.nonPlayerGuesses': {
            player_key(p['id']): None for p in document['players'] if p['id'] != pid
        },
        'round3.votingOpen': False,
        'round3.showResult': False,
    })


def record_non_player_guess(store: DocumentStore, player_id, index, strict: bool = False) -> Dict[str, Any]:
    if index is not None and (
        isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < ROUND3_STATEMENT_COUNT
    ):
        raise InvalidPayloadError(f'Invalid statement index {index!r}')
    document = store.read()
    require_round(document, R3, strict)
    pid = require_player(document, player_id)
    return store.write_partial({f'round3.nonPlayerGuesses.{player_key(pid)}': index})


def open_voting(store: DocumentStore, strict: bool = False) -> Dict[str, Any]:
    document = store.read()
    require_round(document, R3, strict)
    if document['round3']['currentStorytellerId'] is None:
        raise IllegalTransitionError('Select a storyteller before opening voting')
    logger.info(f"[r3-voting] open storyteller={document['round3']['currentStorytellerId']}")
    return store.write_partial({'round3.votingOpen': True, 'round3.showResult': False})


def close_voting(store: DocumentStore, strict: bool = False) -> Dict[str, Any]:
    document = store.read()
    require_round(document, R3, strict)
    logger.info("[r3-voting] close")
    return store.write_partial({'round3.votingOpen': False})


def reveal_result(store: DocumentStore, strict: bool = False) -> Dict[str, Any]:
    document = store.read()
    require_round(document, R3, strict)
    round3 = document['round3']
    storyteller_id = round3['currentStorytellerId']
    if storyteller_id is None:
        raise IllegalTransitionError('No storyteller selected')
    if strict and round3['votingOpen']:
        raise IllegalTransitionError('Close voting before revealing')

    players = document['players']
    guesses = round3['nonPlayerGuesses']
    correct = round3_correct_guessers(players, guesses, storyteller_id, round3['trueIndex'])
    deltas = score_round3(players, guesses, storyteller_id, round3['trueIndex'])
    completed = list(round3['completedStorytellers'])
    if storyteller_id not in completed:
        completed.append(storyteller_id)

    logger.info(
        f"[r3-reveal] storyteller={storyteller_id} true_index={round3['trueIndex']} "
        f"correct={correct} storyteller_bonus={not correct}"
    )
    return store.write_partial({
        'round3.showResult': True,
        'round3.completedStorytellers': completed,
        'players': apply_deltas(players, deltas),
    })
