"""Schema of the live game-state document.

The document is plain JSON: the same dict is stored by the document store,
pushed to subscribers and returned by the HTTP API. Player ids are integers,
but mappings keyed by player (``guesses``, ``nonPlayerGuesses``) use the string
form of the id because JSON object keys are strings.
"""
import copy
from typing import Any, Dict, List, Optional

LOBBY = 'LOBBY'
R1 = 'R1'
R2 = 'R2'
R3 = 'R3'
R4 = 'R4'
WINNER = 'WINNER'

ROUND_ORDER = [LOBBY, R1, R2, R3, R4, WINNER]
CONTENT_ROUNDS = (R1, R2, R3, R4)

GUESS_TRUE = 'TRUE'
GUESS_LIE = 'LIE'
GUESS_EMPTY = ''
ROUND1_GUESSES = (GUESS_TRUE, GUESS_LIE, GUESS_EMPTY)

PART_STATEMENTS = 'STATEMENTS'
PART_GUESSING = 'GUESSING'

ROUND2_STATEMENT_COUNT = 5
ROUND3_STATEMENT_COUNT = 3

DEFAULT_PLAYER_NAMES = ['Baneet', 'Gaurav', 'Player 3', 'Player 4']


def player_key(player_id) -> str:
    return str(int(player_id))


def next_round(current: str) -> Optional[str]:
    """Return the round that follows ``current``, or None after WINNER."""
    idx = ROUND_ORDER.index(current)
    if idx + 1 < len(ROUND_ORDER):
        return ROUND_ORDER[idx + 1]
    return None


def build_roster(names: List[str]) -> List[Dict[str, Any]]:
    """Players 1..N with zero scores and the conventional photo paths."""
    return [
        {'id': i, 'name': name, 'score': 0, 'photo': f'/player{i}.png'}
        for i, name in enumerate(names, start=1)
    ]


def fresh_roster(players: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Copy a roster keeping identities and zeroing scores."""
    return [
        {
            'id': int(p['id']),
            'name': p.get('name', ''),
            'score': 0,
            'photo': p.get('photo', ''),
        }
        for p in players
    ]


def initial_round1(players, statements=None) -> Dict[str, Any]:
    return {
        'statements': list(statements or []),
        'currentStorytellerId': None,
        'votingOpen': False,
        'showResult': False,
        'guesses': {player_key(p['id']): GUESS_EMPTY for p in players},
    }


def initial_round2(players, statements=None) -> Dict[str, Any]:
    statements = list(statements or [])
    return {
        'statements': statements,
        'revealedStatements': [False] * len(statements),
        'revealOrder': [],
        'part': PART_STATEMENTS,
        'guesses': {player_key(p['id']): None for p in players},
        'actualValue': None,
        'winnerId': None,
    }


def initial_round3(sets=None) -> Dict[str, Any]:
    return {
        'sets': list(sets or []),
        'currentStorytellerId': None,
        'currentStatements': [],
        'trueIndex': None,
        'nonPlayerGuesses': {},
        'votingOpen': False,
        'showResult': False,
        'completedStorytellers': [],
    }


def initial_round4(object_title: str = '', object_image: str = '', real_owner_id=None) -> Dict[str, Any]:
    return {
        'objectTitle': object_title,
        'objectImage': object_image,
        'realOwnerId': real_owner_id,
        'winnerId': None,
        'showRealOwner': False,
    }


def initial_game_state(players: List[Dict[str, Any]],
                       round1_statements=None,
                       round2_statements=None,
                       round3_sets=None,
                       round4: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Build the canonical document written by initialise, reset and import.

    ``players`` is taken as a roster: ids, names and photos are kept and every
    score starts at zero.
    """
    roster = fresh_roster(players)
    round4 = round4 or {}
    return {
        'currentRound': LOBBY,
        'roundStarted': False,
        'players': roster,
        'showScoreboard': True,
        'showLeaderboardModal': False,
        'round1': initial_round1(roster, copy.deepcopy(round1_statements)),
        'round2': initial_round2(roster, copy.deepcopy(round2_statements)),
        'round3': initial_round3(copy.deepcopy(round3_sets)),
        'round4': initial_round4(
            object_title=round4.get('objectTitle', ''),
            object_image=round4.get('objectImage', ''),
            real_owner_id=round4.get('realOwnerId'),
        ),
    }


def find_player(document, player_id) -> Optional[Dict[str, Any]]:
    for p in document['players']:
        if p['id'] == player_id:
            return p
    return None


def player_ids(document) -> List[int]:
    return [p['id'] for p in document['players']]


def find_round1_statement(document, player_id) -> Optional[Dict[str, Any]]:
    for s in document['round1']['statements']:
        if s.get('playerId') == player_id:
            return s
    return None


def find_round3_set(document, player_id) -> Optional[Dict[str, Any]]:
    for s in document['round3']['sets']:
        if s.get('playerId') == player_id:
            return s
    return None


def round4_preload(document) -> Dict[str, Any]:
    r4 = document.get('round4') or {}
    return {
        'objectTitle': r4.get('objectTitle', ''),
        'objectImage': r4.get('objectImage', ''),
        'realOwnerId': r4.get('realOwnerId'),
    }
