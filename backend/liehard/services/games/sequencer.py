"""Top-level round sequencing: LOBBY -> R1 -> R2 -> R3 -> R4 -> WINNER.

This is the only module that changes ``currentRound`` on a live document;
initialise, reset and import replace the whole document instead.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from liehard.errors import DocumentNotFound, IllegalTransitionError, InvalidPayloadError
from liehard.state import (
    CONTENT_ROUNDS, R4, ROUND_ORDER, WINNER, build_roster, initial_game_state, next_round,
)
from liehard.store import DocumentStore
from .guards import require_player
from .scoring import add_points, apply_deltas

logger = logging.getLogger(__name__)


def default_roster(config) -> List[Dict[str, Any]]:
    return build_roster(list(config.get('PLAYER_NAMES') or []))


def default_round4(config) -> Dict[str, Any]:
    return {
        'objectTitle': config.get('ROUND4_OBJECT_TITLE', ''),
        'objectImage': config.get('ROUND4_OBJECT_IMAGE', ''),
        'realOwnerId': config.get('ROUND4_REAL_OWNER_ID'),
    }


def parse_roster(raw) -> List[Dict[str, Any]]:
    """Validate a roster sent by the console: unique integer ids, names required."""
    if not isinstance(raw, list) or not raw:
        raise InvalidPayloadError('players must be a non-empty list')
    roster = []
    seen = set()
    for idx, entry in enumerate(raw, start=1):
        if isinstance(entry, str):
            entry = {'id': idx, 'name': entry}
        if not isinstance(entry, dict) or not entry.get('name'):
            raise InvalidPayloadError(f'Invalid player entry {entry!r}')
        try:
            pid = int(entry.get('id', idx))
        except (TypeError, ValueError):
            raise InvalidPayloadError(f'Invalid player id {entry.get("id")!r}')
        if pid in seen:
            raise InvalidPayloadError(f'Duplicate player id {pid}')
        seen.add(pid)
        roster.append({
            'id': pid,
            'name': str(entry['name']),
            'score': 0,
            'photo': entry.get('photo') or f'/player{pid}.png',
        })
    return roster


def initialize_game(store: DocumentStore, players: List[Dict[str, Any]],
                    round4: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    document = initial_game_state(players, round4=round4)
    logger.info(f"[initialize] document={store.document_id} players={[p['id'] for p in players]}")
    return store.write_whole(document)


def ensure_initialized(store: DocumentStore, players: List[Dict[str, Any]],
                       round4: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return the live document, writing the canonical one if it is missing."""
    try:
        return store.read()
    except DocumentNotFound:
        logger.info(f"[auto-initialize] document={store.document_id} missing, initializing")
        return initialize_game(store, players, round4)


def reset_to_lobby(store: DocumentStore, default_players: List[Dict[str, Any]],
                   round4: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Replace the document with the canonical one for the current roster.

    Player identities survive; scores, rounds and preloaded content do not.
    """
    try:
        players = store.read()['players']
    except DocumentNotFound:
        players = default_players
    logger.info(f"[reset] document={store.document_id}")
    return store.write_whole(initial_game_state(players, round4=round4))


def start_round(store: DocumentStore, round_tag: str, strict: bool = False) -> Dict[str, Any]:
    if round_tag not in ROUND_ORDER:
        raise InvalidPayloadError(f'Unknown round {round_tag!r}')
    document = store.read()
    current = document['currentRound']
    if strict and next_round(current) != round_tag:
        raise IllegalTransitionError(f'Cannot start {round_tag} from {current}')
    logger.info(f"[start_round] {current} -> {round_tag}")
    return store.write_partial({'currentRound': round_tag, 'roundStarted': False})


def start_round_content(store: DocumentStore) -> Dict[str, Any]:
    document = store.read()
    if document['currentRound'] not in CONTENT_ROUNDS:
        raise IllegalTransitionError(f"Round {document['currentRound']} has no content to start")
    logger.info(f"[start_content] round={document['currentRound']}")
    return store.write_partial({'roundStarted': True})


def show_winner(store: DocumentStore, strict: bool = False) -> Dict[str, Any]:
    document = store.read()
    if strict and document['currentRound'] != R4:
        raise IllegalTransitionError(f"Cannot show winner from {document['currentRound']}")
    logger.info(f"[show_winner] from={document['currentRound']}")
    return store.write_partial({'currentRound': WINNER, 'roundStarted': False})


def toggle_scoreboard(store: DocumentStore) -> Dict[str, Any]:
    document = store.read()
    return store.write_partial({'showScoreboard': not document['showScoreboard']})


def show_leaderboard(store: DocumentStore, show: bool) -> Dict[str, Any]:
    return store.write_partial({'showLeaderboardModal': bool(show)})


def award_points(store: DocumentStore, player_ids: Iterable, points) -> Dict[str, Any]:
    """Manual score adjustment from the console; ``points`` may be negative."""
    if isinstance(points, bool) or not isinstance(points, int):
        raise InvalidPayloadError(f'points must be an integer, got {points!r}')
    document = store.read()
    ids = [require_player(document, pid) for pid in player_ids]
    players = apply_deltas(document['players'], add_points(ids, points))
    logger.info(f"[award] players={ids} points={points}")
    return store.write_partial({'players': players})
