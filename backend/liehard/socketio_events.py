from flask_socketio import join_room, leave_room, emit
from flask import current_app
from liehard import socketio
from liehard.errors import GameStateError
from liehard.store import get_store

LIVE_ROOM = 'live'


def broadcast_state(snapshot) -> None:
    """Store subscriber: push the full snapshot to every display."""
    # Use socketio.emit since this runs outside any Socket.IO request
    socketio.emit('state_update', snapshot, to=LIVE_ROOM, namespace='/ws')


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_subscribe(data=None):
    join_room(LIVE_ROOM)
    try:
        document = get_store().read()
    except GameStateError as exc:
        # Displays never write; the first operator action creates the document
        current_app.logger.warning(f"[subscribe] could not load live document: {exc}")
        emit('error', exc.to_dict())
        return
    emit('state_update', document)


def handle_unsubscribe(data=None):
    leave_room(LIVE_ROOM)
    emit('unsubscribed', {'room': LIVE_ROOM})


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('subscribe', handle_subscribe, namespace='/ws')
    socketio.on_event('unsubscribe', handle_unsubscribe, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('subscribe', handle_subscribe, namespace='/')
        socketio.on_event('unsubscribe', handle_unsubscribe, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
