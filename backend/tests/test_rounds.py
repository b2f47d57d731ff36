import json

import pytest

from liehard.errors import (
    DocumentNotFound, IllegalTransitionError, InvalidPayloadError, MissingActualValueError,
    MissingStatementError, SetNotFoundError,
)
from liehard.services.games import round1, round2, round3, round4, sequencer
from liehard.state import initial_game_state
from liehard.store import MemoryDocumentStore
from factories import ROUND4_PRELOAD, loaded_document, roster, scores


def _canonical(document):
    return json.dumps(document, sort_keys=True)


# --- sequencer ---

def test_start_round_resets_intro_flag(store):
    document = sequencer.start_round(store, 'R1')
    assert document['currentRound'] == 'R1'
    assert document['roundStarted'] is False
    document = sequencer.start_round_content(store)
    assert document['roundStarted'] is True
    document = sequencer.start_round(store, 'R2')
    assert (document['currentRound'], document['roundStarted']) == ('R2', False)


def test_start_round_trusts_the_console_by_default(store):
    # Skipping rounds is allowed unless strict transitions are on
    assert sequencer.start_round(store, 'R3')['currentRound'] == 'R3'


def test_start_round_strict_requires_successor(store):
    with pytest.raises(IllegalTransitionError):
        sequencer.start_round(store, 'R2', strict=True)
    assert sequencer.start_round(store, 'R1', strict=True)['currentRound'] == 'R1'


def test_start_round_rejects_unknown_tag(store):
    with pytest.raises(InvalidPayloadError):
        sequencer.start_round(store, 'R9')


def test_start_round_content_only_inside_rounds(store):
    with pytest.raises(IllegalTransitionError):
        sequencer.start_round_content(store)
    sequencer.show_winner(store)
    with pytest.raises(IllegalTransitionError):
        sequencer.start_round_content(store)


def test_show_winner(store):
    assert sequencer.show_winner(store)['currentRound'] == 'WINNER'


def test_show_winner_strict_only_after_round4(store):
    with pytest.raises(IllegalTransitionError):
        sequencer.show_winner(store, strict=True)
    sequencer.start_round(store, 'R4')
    assert sequencer.show_winner(store, strict=True)['currentRound'] == 'WINNER'


def test_reset_to_lobby_yields_canonical_document(store):
    sequencer.start_round(store, 'R1')
    round1.select_storyteller(store, 1)
    round1.record_guess(store, 2, 'TRUE')
    round1.reveal_and_score(store)
    sequencer.toggle_scoreboard(store)

    document = sequencer.reset_to_lobby(store, roster(), ROUND4_PRELOAD)
    assert _canonical(document) == _canonical(initial_game_state(roster(), round4=ROUND4_PRELOAD))
    assert _canonical(store.read()) == _canonical(document)


def test_reset_keeps_custom_roster_identities():
    players = [{'id': 7, 'name': 'Asha', 'score': 12, 'photo': '/asha.png'}]
    store = MemoryDocumentStore('live', initial_game_state(players))
    store.write_partial({'players': players})
    document = sequencer.reset_to_lobby(store, roster())
    assert document['players'] == [{'id': 7, 'name': 'Asha', 'score': 0, 'photo': '/asha.png'}]
    assert document['round1']['guesses'] == {'7': ''}


def test_ensure_initialized_writes_missing_document():
    store = MemoryDocumentStore('live')
    document = sequencer.ensure_initialized(store, roster(), ROUND4_PRELOAD)
    assert document['currentRound'] == 'LOBBY'
    assert scores(document) == {1: 0, 2: 0, 3: 0, 4: 0}
    assert store.read() == document


def test_actions_on_missing_document_raise():
    with pytest.raises(DocumentNotFound):
        sequencer.start_round(MemoryDocumentStore('live'), 'R1')


def test_overlay_toggles_are_independent(store):
    document = sequencer.toggle_scoreboard(store)
    assert document['showScoreboard'] is False
    document = sequencer.show_leaderboard(store, True)
    assert document['showLeaderboardModal'] is True
    assert document['showScoreboard'] is False
    assert document['currentRound'] == 'LOBBY'


def test_manual_award_points(store):
    document = sequencer.award_points(store, [2, 3], -1)
    assert scores(document) == {1: 0, 2: -1, 3: -1, 4: 0}
    with pytest.raises(InvalidPayloadError):
        sequencer.award_points(store, [99], 1)
    with pytest.raises(InvalidPayloadError):
        sequencer.award_points(store, [1], 1.5)


def test_parse_roster():
    players = sequencer.parse_roster(['Ann', {'id': 5, 'name': 'Bo', 'photo': '/bo.png'}])
    assert players == [
        {'id': 1, 'name': 'Ann', 'score': 0, 'photo': '/player1.png'},
        {'id': 5, 'name': 'Bo', 'score': 0, 'photo': '/bo.png'},
    ]
    with pytest.raises(InvalidPayloadError):
        sequencer.parse_roster([{'id': 1, 'name': 'A'}, {'id': 1, 'name': 'B'}])
    with pytest.raises(InvalidPayloadError):
        sequencer.parse_roster([])


# --- round 1 ---

def test_round1_show_scenario(store):
    sequencer.start_round(store, 'R1')
    round1.select_storyteller(store, 1)
    round1.open_voting(store)
    round1.record_guess(store, 2, 'TRUE')
    round1.record_guess(store, 3, 'LIE')
    round1.record_guess(store, 4, 'TRUE')
    round1.close_voting(store)
    document = round1.reveal_and_score(store)
    assert scores(document) == {1: 0, 2: 1, 3: 0, 4: 1}
    assert document['round1']['showResult'] is True


def test_round1_select_storyteller_clears_turn(store):
    round1.select_storyteller(store, 1)
    round1.open_voting(store)
    round1.record_guess(store, 2, 'LIE')
    document = round1.select_storyteller(store, 3)
    assert document['round1']['currentStorytellerId'] == 3
    assert document['round1']['votingOpen'] is False
    assert document['round1']['showResult'] is False
    assert document['round1']['guesses'] == {'1': '', '2': '', '3': '', '4': ''}


def test_round1_guess_none_clears(store):
    round1.select_storyteller(store, 1)
    round1.record_guess(store, 2, 'LIE')
    assert round1.record_guess(store, 2, None)['round1']['guesses']['2'] == ''
    with pytest.raises(InvalidPayloadError):
        round1.record_guess(store, 2, 'MAYBE')
    with pytest.raises(InvalidPayloadError):
        round1.record_guess(store, 42, 'TRUE')


def test_round1_open_voting_needs_storyteller(store):
    with pytest.raises(IllegalTransitionError):
        round1.open_voting(store)


def test_round1_reveal_without_statement(store):
    with pytest.raises(MissingStatementError):
        round1.reveal_and_score(store)
    empty = MemoryDocumentStore('live', initial_game_state(roster()))
    round1.select_storyteller(empty, 2)
    with pytest.raises(MissingStatementError):
        round1.reveal_and_score(empty)


def test_round1_reveal_twice_reapplies_points(store):
    round1.select_storyteller(store, 2)
    round1.record_guess(store, 1, 'LIE')
    round1.reveal_and_score(store)
    assert scores(round1.reveal_and_score(store))[1] == 2


def test_round1_strict_guards(store):
    with pytest.raises(IllegalTransitionError):
        round1.select_storyteller(store, 1, strict=True)
    sequencer.start_round(store, 'R1')
    round1.select_storyteller(store, 1, strict=True)
    with pytest.raises(IllegalTransitionError):
        round1.record_guess(store, 2, 'TRUE', strict=True)
    round1.open_voting(store, strict=True)
    round1.record_guess(store, 2, 'TRUE', strict=True)
    with pytest.raises(IllegalTransitionError):
        round1.reveal_and_score(store, strict=True)
    round1.close_voting(store, strict=True)
    assert scores(round1.reveal_and_score(store, strict=True))[2] == 1


# --- round 2 ---

def test_round2_reveal_order_follows_toggles(store):
    for index in (2, 0, 4):
        round2.toggle_statement_visibility(store, index)
    round2.toggle_statement_visibility(store, 0)
    document = round2.toggle_statement_visibility(store, 0)
    assert document['round2']['revealOrder'] == [2, 4, 0]
    assert document['round2']['revealedStatements'] == [True, False, True, False, True]


def test_round2_toggle_rejects_bad_index(store):
    with pytest.raises(InvalidPayloadError):
        round2.toggle_statement_visibility(store, 5)
    with pytest.raises(InvalidPayloadError):
        round2.toggle_statement_visibility(store, -1)


def test_round2_guessing_part_is_unconditional(store):
    assert round2.move_to_guessing_part(store)['round2']['part'] == 'GUESSING'


def test_round2_invalid_numbers_become_null(store):
    assert round2.record_guess(store, 1, 'abc')['round2']['guesses']['1'] is None
    assert round2.record_guess(store, 1, '12500')['round2']['guesses']['1'] == 12500
    assert round2.record_guess(store, 2, 99.5)['round2']['guesses']['2'] == 99.5
    assert round2.record_guess(store, 3, 0)['round2']['guesses']['3'] == 0
    big = round2.record_guess(store, 4, '12345678901234567891')
    assert big['round2']['guesses']['4'] == 12345678901234567891
    assert round2.record_guess(store, 4, ' 1e3 ')['round2']['guesses']['4'] == 1000
    assert round2.reveal_actual_value(store, '')['round2']['actualValue'] is None


def test_round2_winner_needs_actual_value(store):
    round2.record_guess(store, 1, 100)
    with pytest.raises(MissingActualValueError):
        round2.reveal_winner_and_score(store)


def test_round2_winner_and_score(store):
    round2.record_guess(store, 1, 10000)
    round2.record_guess(store, 2, 14000)
    round2.record_guess(store, 3, 12000)
    round2.reveal_actual_value(store, 13000)
    document = round2.reveal_winner_and_score(store)
    # 2 and 3 are both 1000 away; 2 comes first
    assert document['round2']['winnerId'] == 2
    assert scores(document) == {1: 0, 2: 4, 3: 0, 4: 0}


def test_round2_no_guesses_awards_nobody(store):
    round2.reveal_actual_value(store, 500)
    document = round2.reveal_winner_and_score(store)
    assert document['round2']['winnerId'] is None
    assert scores(document) == {1: 0, 2: 0, 3: 0, 4: 0}


# --- round 3 ---

def test_round3_select_copies_set(store):
    document = round3.select_storyteller(store, 2)
    r3 = document['round3']
    assert r3['currentStatements'] == ['B1', 'B2', 'B3']
    assert r3['trueIndex'] == 2
    assert r3['nonPlayerGuesses'] == {'1': None, '3': None, '4': None}
    assert (r3['votingOpen'], r3['showResult']) == (False, False)


def test_round3_missing_set():
    store = MemoryDocumentStore('live', initial_game_state(roster()))
    with pytest.raises(SetNotFoundError):
        round3.select_storyteller(store, 1)


def test_round3_storyteller_must_be_on_roster():
    document = loaded_document()
    document['round3']['sets'].append({'playerId': 9, 'statements': ['X1', 'X2', 'X3'], 'trueIndex': 0})
    store = MemoryDocumentStore('live', document)
    with pytest.raises(InvalidPayloadError):
        round3.select_storyteller(store, 9)
    assert store.read()['round3']['currentStorytellerId'] is None


def test_round3_correct_guessers_score(store):
    round3.select_storyteller(store, 3)  # true index 1
    round3.open_voting(store)
    round3.record_non_player_guess(store, 1, 1)
    round3.record_non_player_guess(store, 2, 0)
    round3.record_non_player_guess(store, 4, 1)
    round3.close_voting(store)
    document = round3.reveal_result(store)
    assert scores(document) == {1: 3, 2: 0, 3: 0, 4: 3}
    assert document['round3']['showResult'] is True
    assert document['round3']['completedStorytellers'] == [3]


def test_round3_storyteller_scores_when_everyone_is_fooled(store):
    round3.select_storyteller(store, 1)  # true index 0
    round3.record_non_player_guess(store, 2, 2)
    round3.record_non_player_guess(store, 3, 1)
    document = round3.reveal_result(store)
    assert scores(document) == {1: 3, 2: 0, 3: 0, 4: 0}


def test_round3_storyteller_own_guess_is_ignored(store):
    round3.select_storyteller(store, 1)
    round3.record_non_player_guess(store, 1, 0)
    assert scores(round3.reveal_result(store)) == {1: 3, 2: 0, 3: 0, 4: 0}


def test_round3_rotation_excludes_completed(store):
    for pid in (4, 2, 1):
        round3.select_storyteller(store, pid)
        round3.reveal_result(store)
    document = store.read()
    assert document['round3']['completedStorytellers'] == [4, 2, 1]
    assert [p['id'] for p in round3.available_storytellers(document)] == [3]
    sequencer.start_round(store, 'R3')
    with pytest.raises(IllegalTransitionError):
        round3.select_storyteller(store, 2, strict=True)


def test_round3_guess_validation(store):
    round3.select_storyteller(store, 1)
    with pytest.raises(InvalidPayloadError):
        round3.record_non_player_guess(store, 2, 3)
    with pytest.raises(InvalidPayloadError):
        round3.record_non_player_guess(store, 2, True)
    assert round3.record_non_player_guess(store, 2, None)['round3']['nonPlayerGuesses']['2'] is None


def test_round3_reveal_needs_storyteller(store):
    with pytest.raises(IllegalTransitionError):
        round3.reveal_result(store)
    with pytest.raises(IllegalTransitionError):
        round3.open_voting(store)


# --- round 4 ---

def test_round4_award_and_reveal(store):
    document = round4.award_winner(store, 3)
    assert document['round4']['winnerId'] == 3
    assert scores(document)[3] == 8
    document = round4.reveal_real_owner(store)
    assert document['round4']['showRealOwner'] is True
    assert document['round4']['realOwnerId'] == 2


def test_round4_second_award_adds_again(store):
    round4.award_winner(store, 3)
    document = round4.award_winner(store, 1)
    assert scores(document) == {1: 8, 2: 0, 3: 8, 4: 0}
    assert document['round4']['winnerId'] == 1


def test_round4_unknown_player(store):
    with pytest.raises(InvalidPayloadError):
        round4.award_winner(store, 9)


def test_full_game_scores_accumulate():
    store = MemoryDocumentStore('live', loaded_document())
    sequencer.start_round(store, 'R1', strict=True)
    sequencer.start_round_content(store)
    round1.select_storyteller(store, 4, strict=True)
    round1.open_voting(store, strict=True)
    round1.record_guess(store, 1, 'TRUE', strict=True)
    round1.close_voting(store, strict=True)
    round1.reveal_and_score(store, strict=True)

    sequencer.start_round(store, 'R2', strict=True)
    round2.move_to_guessing_part(store, strict=True)
    round2.record_guess(store, 2, 50, strict=True)
    round2.reveal_actual_value(store, 60, strict=True)
    round2.reveal_winner_and_score(store, strict=True)

    sequencer.start_round(store, 'R3', strict=True)
    round3.select_storyteller(store, 3, strict=True)
    round3.reveal_result(store, strict=True)

    sequencer.start_round(store, 'R4', strict=True)
    round4.award_winner(store, 3, strict=True)
    document = sequencer.show_winner(store, strict=True)

    assert document['currentRound'] == 'WINNER'
    assert scores(document) == {1: 1, 2: 4, 3: 11, 4: 0}
