from sqlalchemy import Column, String, DateTime, ForeignKey
from ..core.database import Base


class Session(Base):
    """Opaque bearer token -> user identity, expiring at ``expires_at``."""

    __tablename__ = "sessions"
    token = Column(String(80), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    email = Column(String(255), nullable=False)
    username = Column(String(50), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
