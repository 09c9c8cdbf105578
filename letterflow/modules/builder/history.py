"""
Editor History
==============

Linear undo/redo over full document snapshots. Documents are small (tens of
elements) and element operations share untouched subtrees, so a snapshot is
just the document list as committed.
"""

import logging

logger = logging.getLogger(__name__)


class History:
    """Snapshots plus a cursor.

    Invariant: 0 <= index < len(snapshots), and snapshots[index] is the live
    document once a mutation has been committed.
    """

    def __init__(self, initial):
        self._snapshots = [initial]
        self._index = 0

    def __len__(self):
        return len(self._snapshots)

    @property
    def index(self):
        return self._index

    @property
    def current(self):
        return self._snapshots[self._index]

    @property
    def can_undo(self):
        return self._index > 0

    @property
    def can_redo(self):
        return self._index < len(self._snapshots) - 1

    def snapshot(self, index):
        return self._snapshots[index]

    def commit(self, document):
        """Record document as the newest state.

        Returns False (nothing recorded) when it equals the current snapshot.
        Otherwise discards any redo branch, appends and advances.
        """
        if document == self._snapshots[self._index]:
            return False
        del self._snapshots[self._index + 1:]
        self._snapshots.append(document)
        self._index += 1
        logger.debug(f"History commit: index={self._index} length={len(self._snapshots)}")
        return True

    def undo(self):
        """Step back; returns the now-current document, or None at the start"""
        if not self.can_undo:
            return None
        self._index -= 1
        return self._snapshots[self._index]

    def redo(self):
        """Step forward; returns the now-current document, or None at the tail"""
        if not self.can_redo:
            return None
        self._index += 1
        return self._snapshots[self._index]

    def to_dict(self):
        return {
            'index': self._index,
            'length': len(self._snapshots),
            'can_undo': self.can_undo,
            'can_redo': self.can_redo,
        }
