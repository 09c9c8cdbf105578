"""
Builder Module
==============

Provides:
- Element tree operations for newsletter documents (find, update, remove,
  duplicate, add, personalize, move)
- Per-editor undo/redo history
- Drag-and-drop reordering and palette drops
- JSON API over in-memory editor sessions at /api/builder
"""

from flask import Blueprint

builder_bp = Blueprint(
    'builder',
    __name__,
    url_prefix='/api/builder'
)

from . import routes
