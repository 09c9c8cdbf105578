"""
Element ID Generators
=====================

Element ids must be unique across a whole document, nested column slots
included, because every tree operation looks elements up by id alone.

Generators are plain callables taking the element type and returning a new id,
so tests can inject a deterministic one.
"""

import itertools
import secrets
import time


def make_element_id(element_type):
    """Default generator: '<type>-<ms timestamp>-<random suffix>'"""
    return f"{element_type}-{int(time.time() * 1000)}-{secrets.token_hex(3)}"


class SequentialIds:
    """Deterministic generator producing '<type>-1', '<type>-2', ..."""

    def __init__(self, start=1):
        self._counter = itertools.count(start)

    def __call__(self, element_type):
        return f"{element_type}-{next(self._counter)}"
