# assettrack/db/base.py
"""Import all models for Alembic"""
from assettrack.models.base import Base

from assettrack.models.profile import Profile
from assettrack.models.asset import Asset

__all__ = ["Base", "Profile", "Asset"]
