"""
Undo/redo history over document snapshots.
"""

from letterflow.modules.builder.elements import add_element, update_element
from letterflow.modules.builder.history import History
from letterflow.modules.builder.ids import SequentialIds


def _mutate(history, n):
    """Apply n distinct mutations, committing each; returns the documents"""
    ids = SequentialIds()
    docs = [history.current]
    doc = history.current
    for _ in range(n):
        doc, _ = add_element(doc, 'text', id_factory=ids)
        history.commit(doc)
        docs.append(doc)
    return docs


def test_initial_state():
    history = History([])
    assert len(history) == 1
    assert history.index == 0
    assert history.current == []
    assert not history.can_undo
    assert not history.can_redo


def test_commit_advances():
    history = History([])
    docs = _mutate(history, 3)
    assert len(history) == 4
    assert history.index == 3
    assert history.current is docs[-1]


def test_undo_k_steps():
    history = History([])
    docs = _mutate(history, 4)
    for k in range(1, 5):
        assert history.undo() == docs[4 - k]
        assert history.index == 4 - k
        assert history.current == history.snapshot(4 - k)


def test_redo_after_undo():
    history = History([])
    docs = _mutate(history, 2)
    history.undo()
    history.undo()
    assert history.redo() == docs[1]
    assert history.redo() == docs[2]
    assert history.index == 2


def test_mutation_after_undo_truncates_redo_branch():
    history = History([])
    docs = _mutate(history, 3)
    history.undo()
    history.undo()

    branch, _ = add_element(docs[1], 'divider', id_factory=SequentialIds(100))
    assert history.commit(branch)

    assert len(history) == 3
    assert history.index == 2
    assert history.current == branch
    assert not history.can_redo
    assert history.redo() is None


def test_equal_document_is_not_recorded():
    doc = [{'id': 'a', 'type': 'text', 'content': 'x'}]
    history = History(doc)
    assert history.commit(update_element(doc, 'a', {'content': 'x'})) is False
    assert history.commit(update_element(doc, 'missing', {'content': 'y'})) is False
    assert len(history) == 1


def test_boundaries_report_rejection():
    history = History([])
    assert history.undo() is None
    assert history.index == 0

    _mutate(history, 1)
    assert history.redo() is None
    assert history.index == 1
    assert len(history) == 2


def test_to_dict():
    history = History([])
    _mutate(history, 2)
    history.undo()
    assert history.to_dict() == {'index': 1, 'length': 3, 'can_undo': True, 'can_redo': True}
