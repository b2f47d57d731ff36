"""Audience-screen projection of the live document.

The display never writes; it derives everything it shows from the latest
snapshot. ``project_display`` dispatches on ``currentRound`` to one view
builder per round tag.
"""
from typing import Any, Callable, Dict

from liehard.state import (
    LOBBY, R1, R2, R3, R4, WINNER, find_player, find_round1_statement, player_key,
)
from .round3 import available_storytellers
from .scoring import compute_winners, leaderboard, round1_correct_answer


def _lobby_view(document) -> Dict[str, Any]:
    return {'players': document['players']}


def _round1_view(document) -> Dict[str, Any]:
    round1 = document['round1']
    storyteller_id = round1['currentStorytellerId']
    if storyteller_id is None:
        return {'status': 'waiting_for_storyteller'}
    storyteller = find_player(document, storyteller_id)
    statement = find_round1_statement(document, storyteller_id)
    if storyteller is None or statement is None:
        return {'status': 'missing_statement', 'storytellerId': storyteller_id}
    return {
        'status': 'result' if round1['showResult'] else ('voting' if round1['votingOpen'] else 'storyteller'),
        'storyteller': storyteller,
        'statement': statement['statement'],
        'votingOpen': round1['votingOpen'],
        'result': round1_correct_answer(statement) if round1['showResult'] else None,
        'guesses': {
            key: guess for key, guess in round1['guesses'].items()
            if guess and key != player_key(storyteller_id)
        },
    }


def _round2_view(document) -> Dict[str, Any]:
    round2 = document['round2']
    return {
        'part': round2['part'],
        'statements': [
            {'index': i, 'text': round2['statements'][i]}
            for i in round2['revealOrder'] if 0 <= i < len(round2['statements'])
        ],
        'guesses': [
            {'player': p, 'guess': round2['guesses'].get(player_key(p['id']))}
            for p in document['players']
        ],
        'actualValue': round2['actualValue'],
        'winnerId': round2['winnerId'],
    }


def _round3_view(document) -> Dict[str, Any]:
    round3 = document['round3']
    storyteller_id = round3['currentStorytellerId']
    storyteller = find_player(document, storyteller_id) if storyteller_id is not None else None
    return {
        'status': 'result' if round3['showResult'] else ('voting' if round3['votingOpen'] else 'storyteller'),
        'storyteller': storyteller,
        'statements': [
            {
                'index': i,
                'text': text,
                'isTrue': (i == round3['trueIndex']) if round3['showResult'] else None,
            }
            for i, text in enumerate(round3['currentStatements'])
        ],
        'remainingStorytellers': [p['id'] for p in available_storytellers(document)],
    }


def _round4_view(document) -> Dict[str, Any]:
    round4 = document['round4']
    winner = find_player(document, round4['winnerId']) if round4['winnerId'] is not None else None
    owner = find_player(document, round4['realOwnerId']) if round4['showRealOwner'] else None
    return {
        'objectTitle': round4['objectTitle'],
        'objectImage': round4['objectImage'],
        'winner': winner,
        'realOwner': owner,
    }


def _winner_view(document) -> Dict[str, Any]:
    return {'winners': compute_winners(document['players'])}


ROUND_VIEWS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    LOBBY: _lobby_view,
    R1: _round1_view,
    R2: _round2_view,
    R3: _round3_view,
    R4: _round4_view,
    WINNER: _winner_view,
}


def project_display(document) -> Dict[str, Any]:
    round_tag = document['currentRound']
    show_content = round_tag in (LOBBY, WINNER) or document['roundStarted']
    view = ROUND_VIEWS[round_tag](document) if show_content else {'status': 'intro'}
    return {
        'round': round_tag,
        'roundStarted': document['roundStarted'],
        'view': view,
        'leaderboard': leaderboard(document['players']),
        'showScoreboard': document['showScoreboard'],
        'showLeaderboardModal': document['showLeaderboardModal'],
    }
