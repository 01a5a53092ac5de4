# assettrack/models/profile.py
"""
User profile model.
Rows are provisioned by the identity provider; assets only join against
them for assignee/creator display names.
"""
from datetime import datetime
from sqlalchemy import Column, String, DateTime
from assettrack.models.base import Base


class Profile(Base):
    """Display profile keyed by the identity provider's user id"""
    __tablename__ = "profiles"

    id = Column(String(100), primary_key=True, index=True)
    email = Column(String(255), nullable=True)
    full_name = Column(String(255), nullable=True)
    role = Column(String(50), default="user", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Profile {self.full_name or self.id}>"
