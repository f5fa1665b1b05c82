from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from ..core.database import Base
from .user import new_id, utcnow


class Item(Base):
    __tablename__ = "items"
    id = Column(String(36), primary_key=True, default=new_id)
    hobby_id = Column(String(36), ForeignKey("hobbies.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), index=True, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    image_url = Column(String(500), nullable=True)  # storage key under image_store_dir
    embedding_id = Column(String(36), index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    hobby = relationship("Hobby", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "hobby_id": self.hobby_id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "tags": list(self.tags or []),
            "image_url": self.image_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
