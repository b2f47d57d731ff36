"""Payload coercion and the optional strict-transition checks.

Operator actions trust the console by default: the console disables buttons
that would be out of order, and the model accepts whatever it is sent. With
``strict`` set, :func:`require_round` and the per-action checks reject those
out-of-order calls instead.
"""
import math
from typing import Optional, Union

from liehard.errors import IllegalTransitionError, InvalidPayloadError
from liehard.state import find_player

Number = Union[int, float]


def as_player_id(value) -> int:
    if isinstance(value, bool):
        raise InvalidPayloadError(f'Invalid player id {value!r}')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidPayloadError(f'Invalid player id {value!r}')


def require_player(document, player_id) -> int:
    pid = as_player_id(player_id)
    if find_player(document, pid) is None:
        raise InvalidPayloadError(f'Unknown player {pid}')
    return pid


def require_round(document, round_tag: str, strict: bool) -> None:
    if strict and document['currentRound'] != round_tag:
        raise IllegalTransitionError(
            f"Action for {round_tag} while current round is {document['currentRound']}"
        )


def coerce_number(value) -> Optional[Number]:
    """Parse a numeric guess; anything that is not a finite number becomes None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            value = int(value)
        except ValueError:
            try:
                value = float(value)
            except ValueError:
                return None
    if not isinstance(value, (int, float)):
        return None
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        if value.is_integer():
            return int(value)
    return value
