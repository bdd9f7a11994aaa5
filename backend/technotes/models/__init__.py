# Models package init
"""
TechNotes Backend - SQLAlchemy Models
======================================

Importing this package registers every table with `Base.metadata`.
"""

from technotes.models.note import Note
from technotes.models.user import User

__all__ = ["Note", "User"]
