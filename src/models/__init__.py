"""SQLAlchemy models."""
from models.base import Base
from models.ember import Ember
from models.onward import OnwardEntry
from models.trace import Trace
from models.unburnt import UnburntDraft, UnburntEntry

__all__ = [
    "Base",
    "Ember",
    "OnwardEntry",
    "Trace",
    "UnburntDraft",
    "UnburntEntry",
]
