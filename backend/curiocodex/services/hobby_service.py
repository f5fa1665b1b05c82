import logging
from typing import Any, Dict, List, Sequence

from sqlalchemy.orm import Session

from ..core.config import Settings, get_settings
from ..core.errors import NotFoundError, ValidationError
from ..models.hobby import Hobby, HobbyItemCategory
from ..models.item import Item
from ..models.user import new_id
from ..schemas.auth import CurrentUser
from ..schemas.hobby import HobbyCreate, HobbyUpdate
from .ai_gateway import AIGateway
from .enrichment import clean_text, enrich, fill_description, hobby_vector
from .image_store import ImageStore
from .vectorstore import GuardedVectorIndex

logger = logging.getLogger("curiocodex.hobbies")

SIMILAR_LIMIT = 5
# one extra so the anchor itself can be dropped
SIMILAR_CANDIDATES = SIMILAR_LIMIT + 1


def get_owned_hobby(db: Session, user: CurrentUser, hobby_id: str) -> Hobby:
    hobby = db.get(Hobby, hobby_id)
    if hobby is None or hobby.user_id != user.userId:
        raise NotFoundError("Hobby not found")
    return hobby


def unique_names(names: Sequence[str]) -> List[str]:
    seen: List[str] = []
    for name in names or []:
        name = clean_text(name) if isinstance(name, str) else None
        if name and name not in seen:
            seen.append(name)
    return seen


def commit(db: Session) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


class HobbyService:
    def __init__(
        self,
        db: Session,
        ai: AIGateway,
        index: GuardedVectorIndex,
        settings: Settings | None = None,
        images: ImageStore | None = None,
    ):
        self.db = db
        self.ai = ai
        self.index = index
        self.settings = settings or get_settings()
        self.images = images

    def get_owned(self, user: CurrentUser, hobby_id: str) -> Hobby:
        return get_owned_hobby(self.db, user, hobby_id)

    def list(self, user: CurrentUser) -> List[Hobby]:
        return (
            self.db.query(Hobby)
            .filter(Hobby.user_id == user.userId)
            .order_by(Hobby.created_at.desc())
            .all()
        )

    def create(self, user: CurrentUser, data: HobbyCreate) -> Hobby:
        name = clean_text(data.name)
        if not name:
            raise ValidationError("Name is required")
        description = fill_description(
            self.ai, name, clean_text(data.description), self.settings.generate_missing_descriptions
        )
        enriched = enrich(self.ai, name, description, manual_category=data.category)

        hobby_id = new_id()
        hobby = Hobby(
            id=hobby_id,
            embedding_id=hobby_id,
            user_id=user.userId,
            name=name,
            description=description,
            category=enriched.category,
            tags=enriched.tags,
        )
        for category_name in unique_names(data.item_categories):
            hobby.item_categories.append(HobbyItemCategory(name=category_name))
        self.db.add(hobby)
        commit(self.db)
        self.db.refresh(hobby)
        logger.info(f"Created hobby {hobby.id} for user {user.userId} ({hobby.category})")

        self.index.upsert([hobby_vector(hobby, enriched.embedding)])
        return hobby

    def update(self, user: CurrentUser, hobby_id: str, data: HobbyUpdate) -> Hobby:
        hobby = self.get_owned(user, hobby_id)
        name = clean_text(data.name)
        description = clean_text(data.description)
        enriched = enrich(self.ai, name, description, manual_category=data.category)

        hobby.name = name
        hobby.description = description
        hobby.category = enriched.category
        hobby.tags = enriched.tags
        names = unique_names(data.item_categories)
        if names:
            # replace the definitions wholesale
            hobby.item_categories.clear()
            self.db.flush()
            for category_name in names:
                hobby.item_categories.append(HobbyItemCategory(name=category_name))
        commit(self.db)
        self.db.refresh(hobby)

        self.index.upsert([hobby_vector(hobby, enriched.embedding)])
        return hobby

    def delete(self, user: CurrentUser, hobby_id: str) -> None:
        hobby = self.get_owned(user, hobby_id)
        items = self.db.query(Item.id, Item.image_url).filter(Item.hobby_id == hobby.id).all()
        self.db.delete(hobby)
        commit(self.db)
        logger.info(f"Deleted hobby {hobby_id} and {len(items)} items")

        self.index.delete_by_ids([hobby_id, *[row.id for row in items]])
        if self.images:
            for row in items:
                self.images.discard(row.image_url)

    def similar(self, user: CurrentUser, hobby_id: str) -> List[Dict[str, Any]]:
        """Up to five of the caller's hobbies closest to ``hobby_id``, in index order."""
        hobby = self.get_owned(user, hobby_id)
        if not self.index.available:
            return []
        anchors = self.index.get_by_ids([hobby.id])
        if not anchors:
            return []

        matches = self.index.query(
            anchors[0].values,
            top_k=SIMILAR_CANDIDATES,
            filter={"userId": user.userId, "type": "hobby"},
        )
        matches = [m for m in matches if m.id != hobby.id][:SIMILAR_LIMIT]
        if not matches:
            return []

        rows = self._hobbies_by_id(user, [m.id for m in matches])
        return [{**rows[m.id].to_dict(), "similarity": m.score} for m in matches if m.id in rows]

    def _hobbies_by_id(self, user: CurrentUser, ids: List[str]) -> Dict[str, Hobby]:
        rows = (
            self.db.query(Hobby)
            .filter(Hobby.id.in_(ids), Hobby.user_id == user.userId)
            .all()
        )
        return {h.id: h for h in rows}

    def by_category(self, user: CurrentUser, category: str, limit: int = 20) -> List[Hobby]:
        return (
            self.db.query(Hobby)
            .filter(Hobby.user_id == user.userId, Hobby.category == category)
            .order_by(Hobby.created_at.desc())
            .limit(limit)
            .all()
        )

