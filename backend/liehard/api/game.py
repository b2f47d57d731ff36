from flask import Blueprint, current_app, jsonify, request
from liehard.errors import GameStateError, ImportValidationError
from liehard.store import get_store
from liehard.services.games import display, importer, round1, round2, round3, round4, sequencer


game = Blueprint('game', __name__)


def _strict() -> bool:
    return bool(current_app.config.get('STRICT_TRANSITIONS', False))


def _defaults():
    cfg = current_app.config
    return sequencer.default_roster(cfg), sequencer.default_round4(cfg)


def _ensure(store):
    players, round4_preload = _defaults()
    return sequencer.ensure_initialized(store, players, round4_preload)


def _run(name, action, ensure=True, status=200):
    """Run one operator action against the live document.

    A missing document is initialised first unless ``ensure`` is False.
    Domain errors are logged and returned to the console as
    ``{'error': ...}`` with the error's status.
    """
    store = get_store()
    try:
        if ensure:
            _ensure(store)
        document = action(store)
    except GameStateError as exc:
        current_app.logger.warning(f"[action-failed] action={name} kind={exc.__class__.__name__} error={exc}")
        return jsonify(exc.to_dict()), exc.status_code
    return jsonify(document), status


def _payload():
    return request.get_json(silent=True) or {}


@game.route('/state', methods=['GET'])
def get_state():
    return _run('state', lambda store: store.read())


@game.route('/display', methods=['GET'])
def get_display():
    # Read-only: a missing document is a 404 until the operator creates it
    try:
        document = get_store().read()
    except GameStateError as exc:
        current_app.logger.warning(f"[display] could not load document: {exc}")
        return jsonify(exc.to_dict()), exc.status_code
    return jsonify(display.project_display(document))


@game.route('/initialize', methods=['POST'])
def initialize_game():
    data = _payload()

    def action(store):
        players, round4_preload = _defaults()
        if data.get('players') is not None:
            players = sequencer.parse_roster(data['players'])
        if isinstance(data.get('round4'), dict):
            round4_preload = {**round4_preload, **data['round4']}
        return sequencer.initialize_game(store, players, round4_preload)

    return _run('initialize', action, ensure=False, status=201)


@game.route('/reset', methods=['POST'])
def reset_to_lobby():
    players, round4_preload = _defaults()
    return _run('reset', lambda store: sequencer.reset_to_lobby(store, players, round4_preload))


@game.route('/rounds/start', methods=['POST'])
def start_round():
    data = _payload()
    return _run('start_round', lambda store: sequencer.start_round(store, data.get('round'), strict=_strict()))


@game.route('/rounds/content', methods=['POST'])
def start_round_content():
    return _run('start_content', sequencer.start_round_content)


@game.route('/winner', methods=['POST'])
def show_winner():
    return _run('show_winner', lambda store: sequencer.show_winner(store, strict=_strict()))


@game.route('/scoreboard/toggle', methods=['POST'])
def toggle_scoreboard():
    return _run('toggle_scoreboard', sequencer.toggle_scoreboard)


@game.route('/leaderboard', methods=['POST'])
def show_leaderboard():
    data = _payload()
    return _run('leaderboard', lambda store: sequencer.show_leaderboard(store, bool(data.get('show'))))


@game.route('/scores/award', methods=['POST'])
def award_points():
    data = _payload()
    player_ids = data.get('player_ids')
    if not isinstance(player_ids, list) or not player_ids:
        return jsonify({'error': 'player_ids must be a non-empty list'}), 400
    return _run('award', lambda store: sequencer.award_points(store, player_ids, data.get('points')))


def _uploaded_text(field):
    upload = request.files.get(field)
    if upload is None or not upload.filename:
        return None
    try:
        return upload.read().decode('utf-8-sig')
    except UnicodeDecodeError:
        raise ImportValidationError(f'{field}: file is not UTF-8 text')


@game.route('/import', methods=['POST'])
def import_csv():
    def action(store):
        players, round4_preload = _defaults()
        return importer.import_game(
            store,
            _uploaded_text('round1'),
            _uploaded_text('round2'),
            _uploaded_text('round3'),
            players,
            round4_preload,
        )
    return _run('import', action, ensure=False)


# --- Round 1 ---

@game.route('/round1/storyteller', methods=['POST'])
def round1_select_storyteller():
    data = _payload()
    return _run('r1-storyteller', lambda store: round1.select_storyteller(store, data.get('player_id'), strict=_strict()))


@game.route('/round1/guess', methods=['POST'])
def round1_record_guess():
    data = _payload()
    return _run('r1-guess', lambda store: round1.record_guess(
        store, data.get('guesser_id'), data.get('guess'), strict=_strict()))


@game.route('/round1/voting/open', methods=['POST'])
def round1_open_voting():
    return _run('r1-open', lambda store: round1.open_voting(store, strict=_strict()))


@game.route('/round1/voting/close', methods=['POST'])
def round1_close_voting():
    return _run('r1-close', lambda store: round1.close_voting(store, strict=_strict()))


@game.route('/round1/reveal', methods=['POST'])
def round1_reveal():
    return _run('r1-reveal', lambda store: round1.reveal_and_score(store, strict=_strict()))


# --- Round 2 ---

@game.route('/round2/statements/<int:index>/toggle', methods=['POST'])
def round2_toggle_statement(index):
    return _run('r2-toggle', lambda store: round2.toggle_statement_visibility(store, index, strict=_strict()))


@game.route('/round2/guessing', methods=['POST'])
def round2_guessing_part():
    return _run('r2-guessing', lambda store: round2.move_to_guessing_part(store, strict=_strict()))


@game.route('/round2/guess', methods=['POST'])
def round2_record_guess():
    data = _payload()
    return _run('r2-guess', lambda store: round2.record_guess(
        store, data.get('player_id'), data.get('value'), strict=_strict()))


@game.route('/round2/actual', methods=['POST'])
def round2_actual_value():
    data = _payload()
    return _run('r2-actual', lambda store: round2.reveal_actual_value(store, data.get('value'), strict=_strict()))


@game.route('/round2/reveal', methods=['POST'])
def round2_reveal():
    return _run('r2-reveal', lambda store: round2.reveal_winner_and_score(store, strict=_strict()))


# --- Round 3 ---

@game.route('/round3/storytellers', methods=['GET'])
def round3_storytellers():
    store = get_store()
    try:
        document = _ensure(store)
    except GameStateError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    return jsonify(round3.available_storytellers(document))


@game.route('/round3/storyteller', methods=['POST'])
def round3_select_storyteller():
    data = _payload()
    return _run('r3-storyteller', lambda store: round3.select_storyteller(store, data.get('player_id'), strict=_strict()))


@game.route('/round3/guess', methods=['POST'])
def round3_record_guess():
    data = _payload()
    if 'index' not in data:
        return jsonify({'error': 'index is required (use null to clear)'}), 400
    return _run('r3-guess', lambda store: round3.record_non_player_guess(
        store, data.get('player_id'), data['index'], strict=_strict()))


@game.route('/round3/voting/open', methods=['POST'])
def round3_open_voting():
    return _run('r3-open', lambda store: round3.open_voting(store, strict=_strict()))


@game.route('/round3/voting/close', methods=['POST'])
def round3_close_voting():
    return _run('r3-close', lambda store: round3.close_voting(store, strict=_strict()))


@game.route('/round3/reveal', methods=['POST'])
def round3_reveal():
    return _run('r3-reveal', lambda store: round3.reveal_result(store, strict=_strict()))


# --- Round 4 ---

@game.route('/round4/winner', methods=['POST'])
def round4_award_winner():
    data = _payload()
    return _run('r4-winner', lambda store: round4.award_winner(store, data.get('player_id'), strict=_strict()))


@game.route('/round4/owner', methods=['POST'])
def round4_reveal_owner():
    return _run('r4-owner', lambda store: round4.reveal_real_owner(store, strict=_strict()))
