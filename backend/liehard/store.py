"""Document store holding the single live game-state record.

Actions talk to a ``DocumentStore``: ``read`` the whole record, ``write_whole``
to replace it, ``write_partial`` to set dotted field paths
(``{'round1.guesses.3': 'TRUE'}``) and ``subscribe`` to be called with the full
snapshot after every write. Nothing spans an action's read and its write, so
two actions racing on the same field path resolve last-write-wins.
"""
import copy
import logging
import time
from threading import RLock
from typing import Any, Callable, Dict, List

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from liehard import db
from liehard.errors import DocumentNotFound, WriteFailure
from liehard.models import GameDocument

logger = logging.getLogger(__name__)

Subscriber = Callable[[Dict[str, Any]], None]

STORE_EXTENSION_KEY = 'liehard_store'


def apply_field_paths(document: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``document`` with every dotted path in ``updates`` set.

    Missing intermediate mappings are created. Updates are applied in order,
    so a later path may write inside a value set by an earlier one.
    """
    result = copy.deepcopy(document)
    for path, value in updates.items():
        parts = path.split('.')
        if not all(parts):
            raise WriteFailure(f'Invalid field path {path!r}')
        node = result
        for part in parts[:-1]:
            child = node.get(part)
            if child is None:
                child = {}
                node[part] = child
            elif not isinstance(child, dict):
                raise WriteFailure(f'Field path {path!r} crosses non-mapping field {part!r}')
            node = child
        node[parts[-1]] = copy.deepcopy(value)
    return result


class DocumentStore:
    """Base class: subscription bookkeeping shared by the concrete stores."""

    def __init__(self, document_id: str = 'live'):
        self.document_id = document_id
        self._subscribers: List[Subscriber] = []
        self._subscribers_lock = RLock()

    def read(self) -> Dict[str, Any]:
        raise NotImplementedError

    def write_whole(self, document: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def write_partial(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def exists(self) -> bool:
        try:
            self.read()
        except DocumentNotFound:
            return False
        return True

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        with self._subscribers_lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._subscribers_lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, snapshot: Dict[str, Any]) -> None:
        with self._subscribers_lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(copy.deepcopy(snapshot))
            except Exception:
                logger.exception(f"[store-notify] document={self.document_id} subscriber {callback!r} failed")


class MemoryDocumentStore(DocumentStore):
    """Process-local store; used by tests and the ``memory`` backend."""

    def __init__(self, document_id: str = 'live', document: Dict[str, Any] = None):
        super().__init__(document_id)
        self._lock = RLock()
        self._document = copy.deepcopy(document) if document is not None else None

    def read(self) -> Dict[str, Any]:
        with self._lock:
            if self._document is None:
                raise DocumentNotFound(f'Document {self.document_id!r} not found')
            return copy.deepcopy(self._document)

    def write_whole(self, document: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            self._document = copy.deepcopy(document)
            snapshot = copy.deepcopy(self._document)
        self._notify(snapshot)
        return snapshot

    def write_partial(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            if self._document is None:
                raise DocumentNotFound(f'Document {self.document_id!r} not found')
            self._document = apply_field_paths(self._document, updates)
            snapshot = copy.deepcopy(self._document)
        self._notify(snapshot)
        return snapshot


class SqlDocumentStore(DocumentStore):
    """Store backed by one ``game_document`` row per document id.

    Must be used inside an application context. Partial writes lock the row
    (``SELECT ... FOR UPDATE`` where the database supports it) for the
    duration of the merge.
    """

    def _query(self):
        return GameDocument.query.filter_by(id=self.document_id)

    def read(self) -> Dict[str, Any]:
        row = self._query().first()
        if row is None:
            raise DocumentNotFound(f'Document {self.document_id!r} not found')
        return copy.deepcopy(row.data)

    def write_whole(self, document: Dict[str, Any]) -> Dict[str, Any]:
        try:
            row = self._query().with_for_update().first()
            if row is None:
                row = GameDocument(id=self.document_id)
            row.data = copy.deepcopy(document)
            row.updated_at = time.time()
            db.session.add(row)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise WriteFailure(f'Could not write document {self.document_id!r}: {exc}') from exc
        snapshot = copy.deepcopy(document)
        self._notify(snapshot)
        return snapshot

    def write_partial(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        try:
            row = self._query().with_for_update().first()
            if row is None:
                db.session.rollback()
                raise DocumentNotFound(f'Document {self.document_id!r} not found')
            try:
                data = apply_field_paths(row.data, updates)
            except WriteFailure:
                # Release the row lock before reporting the bad path
                db.session.rollback()
                raise
            row.data = data
            row.updated_at = time.time()
            db.session.add(row)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise WriteFailure(f'Could not update document {self.document_id!r}: {exc}') from exc
        snapshot = copy.deepcopy(data)
        self._notify(snapshot)
        return snapshot


def create_store(config) -> DocumentStore:
    document_id = config.get('LIVE_DOCUMENT_ID', 'live')
    backend = (config.get('STATE_STORE') or 'sql').lower()
    if backend == 'memory':
        return MemoryDocumentStore(document_id)
    if backend == 'sql':
        return SqlDocumentStore(document_id)
    raise ValueError(f'Unknown STATE_STORE backend {backend!r}')


def get_store() -> DocumentStore:
    return current_app.extensions[STORE_EXTENSION_KEY]
