"""Pre-show CSV import of the round content.

Three files, each with a header row:

- Round 1: ``playerId, playerName, statement, isTruth``
- Round 2: ``statement`` (exactly five rows, in display-storage order)
- Round 3: ``playerId, statement_1, statement_2, statement_3, true_index``

All three are parsed before anything is written; a successful import replaces
the live document with a fresh one for the current roster.
"""
import csv
import io
import logging
from typing import Any, Dict, List, Optional

from liehard.errors import DocumentNotFound, ImportValidationError
from liehard.state import ROUND2_STATEMENT_COUNT, ROUND3_STATEMENT_COUNT, initial_game_state
from liehard.store import DocumentStore

logger = logging.getLogger(__name__)

ROUND1_COLUMNS = ('playerId', 'playerName', 'statement', 'isTruth')
ROUND2_COLUMNS = ('statement',)
ROUND3_COLUMNS = ('playerId', 'statement_1', 'statement_2', 'statement_3', 'true_index')


def _rows(text: str, columns, label: str) -> List[Dict[str, str]]:
    reader = csv.DictReader(io.StringIO(text))
    header = [h.strip() for h in (reader.fieldnames or [])]
    missing = [c for c in columns if c not in header]
    if missing:
        raise ImportValidationError(f'{label}: missing column(s) {", ".join(missing)}')
    reader.fieldnames = header
    rows = []
    for row in reader:
        if not any((v or '').strip() for v in row.values() if isinstance(v, str)):
            continue
        rows.append(row)
    return rows


def _int(value, label: str, line: int) -> int:
    try:
        return int((value or '').strip())
    except ValueError:
        raise ImportValidationError(f'{label} row {line}: {value!r} is not an integer')


def parse_round1_csv(text: str) -> List[Dict[str, Any]]:
    statements = []
    for line, row in enumerate(_rows(text, ROUND1_COLUMNS, 'Round 1'), start=1):
        statements.append({
            'playerId': _int(row['playerId'], 'Round 1', line),
            'playerName': (row['playerName'] or '').strip(),
            'statement': (row['statement'] or '').strip(),
            'isTruth': (row['isTruth'] or '').strip().upper() == 'TRUE',
        })
    if not statements:
        raise ImportValidationError('Round 1: no statements found')
    return statements


def parse_round2_csv(text: str) -> List[str]:
    statements = [(row['statement'] or '').strip() for row in _rows(text, ROUND2_COLUMNS, 'Round 2')]
    if len(statements) != ROUND2_STATEMENT_COUNT:
        raise ImportValidationError(
            f'Round 2: expected {ROUND2_STATEMENT_COUNT} statements, found {len(statements)}'
        )
    return statements


def parse_round3_csv(text: str) -> List[Dict[str, Any]]:
    sets = []
    for line, row in enumerate(_rows(text, ROUND3_COLUMNS, 'Round 3'), start=1):
        true_index = _int(row['true_index'], 'Round 3', line)
        if not 0 <= true_index < ROUND3_STATEMENT_COUNT:
            raise ImportValidationError(f'Round 3 row {line}: true_index must be 0, 1 or 2')
        sets.append({
            'playerId': _int(row['playerId'], 'Round 3', line),
            'statements': [(row[f'statement_{i}'] or '').strip() for i in range(1, ROUND3_STATEMENT_COUNT + 1)],
            'trueIndex': true_index,
        })
    if not sets:
        raise ImportValidationError('Round 3: no statement sets found')
    return sets


def _check_player_ids(entries: List[Dict[str, Any]], players: List[Dict[str, Any]], label: str) -> None:
    """One entry per rostered player at most; unknown ids are rejected."""
    roster_ids = {p['id'] for p in players}
    seen = set()
    for line, entry in enumerate(entries, start=1):
        pid = entry['playerId']
        if pid not in roster_ids:
            raise ImportValidationError(f'{label} row {line}: unknown player {pid}')
        if pid in seen:
            raise ImportValidationError(f'{label} row {line}: duplicate player {pid}')
        seen.add(pid)


def import_game(store: DocumentStore, round1_text: Optional[str], round2_text: Optional[str],
                round3_text: Optional[str], default_players: List[Dict[str, Any]],
                round4: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Parse all three files, then replace the live document in one write.

    Any in-progress game is discarded.
    """
    missing = [label for label, text in (('round1', round1_text), ('round2', round2_text), ('round3', round3_text))
               if not text]
    if missing:
        raise ImportValidationError(f'Upload files for all rounds before importing (missing: {", ".join(missing)})')

    round1_statements = parse_round1_csv(round1_text)
    round2_statements = parse_round2_csv(round2_text)
    round3_sets = parse_round3_csv(round3_text)

    try:
        players = store.read()['players']
    except DocumentNotFound:
        players = default_players
    _check_player_ids(round1_statements, players, 'Round 1')
    _check_player_ids(round3_sets, players, 'Round 3')

    document = initial_game_state(
        players,
        round1_statements=round1_statements,
        round2_statements=round2_statements,
        round3_sets=round3_sets,
        round4=round4,
    )
    logger.info(
        f"[import] round1={len(round1_statements)} round2={len(round2_statements)} round3={len(round3_sets)}"
    )
    return store.write_whole(document)
