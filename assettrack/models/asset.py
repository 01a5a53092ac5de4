# assettrack/models/asset.py
"""
Asset model.
One row per tracked asset; the rendered QR image is cached on the row.
"""
from sqlalchemy import Column, String, Text, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from assettrack.models.base import BaseModel


class Asset(BaseModel):
    """Tracked asset"""
    __tablename__ = "assets"

    # Business identifier printed on labels and embedded in QR payloads
    asset_id = Column(String(100), unique=True, index=True, nullable=False)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False, default="other")
    status = Column(String(20), nullable=False, default="active")
    location = Column(String(255), nullable=True)
    value = Column(Numeric(12, 2), nullable=True)

    # data:image/png;base64,... of the last generated QR code
    qr_code = Column(Text, nullable=True)

    assignee_id = Column(String(100), ForeignKey("profiles.id"), nullable=True)
    created_by = Column(String(100), ForeignKey("profiles.id"), nullable=True)

    assignee = relationship("Profile", foreign_keys=[assignee_id], lazy="joined")
    creator = relationship("Profile", foreign_keys=[created_by], lazy="joined")

    def __repr__(self):
        return f"<Asset {self.asset_id} - {self.name}>"
