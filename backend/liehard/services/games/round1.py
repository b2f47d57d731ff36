"""Round 1, Better Call Bluff.

Each turn: pick a storyteller, open voting, log everyone's TRUE/LIE guess,
close voting, then reveal and score. Picking the next storyteller starts the
next turn; advancing to Round 2 is left to the operator.
"""
import logging
from typing import Any, Dict

from liehard.errors import IllegalTransitionError, InvalidPayloadError, MissingStatementError
from liehard.state import GUESS_EMPTY, R1, ROUND1_GUESSES, find_round1_statement, player_key
from liehard.store import DocumentStore
from .guards import require_player, require_round
from .scoring import apply_deltas, round1_correct_answer, score_round1

logger = logging.getLogger(__name__)


def select_storyteller(store: DocumentStore, player_id, strict: bool = False) -> Dict[str, Any]:
    """Start a turn for ``player_id``, discarding any guesses and result of the last one."""
    document = store.read()
    require_round(document, R1, strict)
    pid = require_player(document, player_id)
    logger.info(f"[r1-storyteller] storyteller={pid}")
    return store.write_partial({
        'round1.currentStorytellerId': pid,
        'round1.votingOpen': False,
        'round1.showResult': False,
        'round1.guesses': {player_key(p['id']): GUESS_EMPTY for p in document['players']},
    })


def record_guess(store: DocumentStore, guesser_id, guess, strict: bool = False) -> Dict[str, Any]:
    if guess is None:
        guess = GUESS_EMPTY
    if guess not in ROUND1_GUESSES:
        raise InvalidPayloadError(f'Invalid guess {guess!r}')
    document = store.read()
    require_round(document, R1, strict)
    pid = require_player(document, guesser_id)
    if strict and not document['round1']['votingOpen']:
        raise IllegalTransitionError('Voting is closed')
    return store.write_partial({f'round1.guesses.{player_key(pid)}': guess})


def open_voting(store: DocumentStore, strict: bool = False) -> Dict[str, Any]:
    document = store.read()
    require_round(document, R1, strict)
    if document['round1']['currentStorytellerId'] is None:
        raise IllegalTransitionError('Select a storyteller before opening voting')
    logger.info(f"[r1-voting] open storyteller={document['round1']['currentStorytellerId']}")
    return store.write_partial({'round1.votingOpen': True})


def close_voting(store: DocumentStore, strict: bool = False) -> Dict[str, Any]:
    document = store.read()
    require_round(document, R1, strict)
    logger.info("[r1-voting] close")
    return store.write_partial({'round1.votingOpen': False})


def reveal_and_score(store: DocumentStore, strict: bool = False) -> Dict[str, Any]:
    """Show the truth/lie label and give +1 to every correct guesser.

    Calling it again re-applies the points; there is no settled marker.
    """
    document = store.read()
    require_round(document, R1, strict)
    round1 = document['round1']
    storyteller_id = round1['currentStorytellerId']
    statement = find_round1_statement(document, storyteller_id) if storyteller_id is not None else None
    if statement is None:
        raise MissingStatementError(f'No statement loaded for storyteller {storyteller_id}')
    if strict and round1['votingOpen']:
        raise IllegalTransitionError('Close voting before revealing')

    deltas = score_round1(document['players'], round1['guesses'], statement, storyteller_id)
    logger.info(
        f"[r1-reveal] storyteller={storyteller_id} answer={round1_correct_answer(statement)} correct={sorted(deltas)}"
    )
    return store.write_partial({
        'round1.showResult': True,
        'players': apply_deltas(document['players'], deltas),
    })
