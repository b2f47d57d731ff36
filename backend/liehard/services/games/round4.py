"""Round 4, Faking Bad: one object, one real owner, one declared winner."""
import logging
from typing import Any, Dict

from liehard.state import R4
from liehard.store import DocumentStore
from .guards import require_player, require_round
from .scoring import apply_deltas, score_round4

logger = logging.getLogger(__name__)


def award_winner(store: DocumentStore, player_id, strict: bool = False) -> Dict[str, Any]:
    """+8 to ``player_id``. Not guarded: a second call awards again."""
    document = store.read()
    require_round(document, R4, strict)
    pid = require_player(document, player_id)
    logger.info(f"[r4-winner] winner={pid} previous={document['round4']['winnerId']}")
    return store.write_partial({
        'round4.winnerId': pid,
        'players': apply_deltas(document['players'], score_round4(pid)),
    })


def reveal_real_owner(store: DocumentStore, strict: bool = False) -> Dict[str, Any]:
    document = store.read()
    require_round(document, R4, strict)
    logger.info(f"[r4-owner] owner={document['round4']['realOwnerId']}")
    return store.write_partial({'round4.showRealOwner': True})
