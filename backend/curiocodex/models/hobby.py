from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from ..core.database import Base
from .user import new_id, utcnow


class Hobby(Base):
    __tablename__ = "hobbies"
    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), index=True, nullable=True)
    tags = Column(JSON, nullable=False, default=list)  # ordered list of strings
    embedding_id = Column(String(36), index=True)  # key in vector index, same as id
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    items = relationship("Item", back_populates="hobby", cascade="all, delete-orphan")
    item_categories = relationship(
        "HobbyItemCategory", back_populates="hobby", cascade="all, delete-orphan"
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "tags": list(self.tags or []),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class HobbyItemCategory(Base):
    __tablename__ = "hobby_item_categories"
    __table_args__ = (UniqueConstraint("hobby_id", "name", name="uq_hobby_item_category"),)
    id = Column(String(36), primary_key=True, default=new_id)
    hobby_id = Column(String(36), ForeignKey("hobbies.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    hobby = relationship("Hobby", back_populates="item_categories")
