"""SQLAlchemy models; importing this package populates Base.metadata."""

from esg_tracker.models.base import BaseModel, ModelMixin
from esg_tracker.models.esg import ESGResponse

__all__ = [
    "BaseModel",
    "ESGResponse",
    "ModelMixin",
]
