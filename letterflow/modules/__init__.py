"""
Letterflow Modules
==================

Feature modules registered by the Letterflow extension.
"""

__all__ = ['builder', 'email', 'newsletters']
