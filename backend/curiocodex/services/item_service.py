import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.config import Settings, get_settings
from ..core.errors import NotFoundError, ValidationError
from ..models.hobby import Hobby, HobbyItemCategory
from ..models.item import Item
from ..models.user import new_id
from ..schemas.auth import CurrentUser
from ..schemas.item import ItemCreate, ItemUpdate
from .ai_gateway import AIGateway
from .enrichment import (
    clean_text,
    embedding_text,
    enrich,
    fill_description,
    item_vector,
    resolve_item_category,
)
from .hobby_service import commit, get_owned_hobby
from .image_store import ImageStore, UploadedImage
from .vectorstore import GuardedVectorIndex

logger = logging.getLogger("curiocodex.items")

UNNAMED_ITEM = "Unnamed Item"


class ItemService:
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

    def get_owned(self, user: CurrentUser, hobby_id: str, item_id: str) -> Tuple[Hobby, Item]:
        hobby = get_owned_hobby(self.db, user, hobby_id)
        item = self.db.get(Item, item_id)
        if item is None or item.hobby_id != hobby.id:
            raise NotFoundError("Item not found")
        return hobby, item

    def list(self, user: CurrentUser, hobby_id: str) -> List[Item]:
        hobby = get_owned_hobby(self.db, user, hobby_id)
        return (
            self.db.query(Item)
            .filter(Item.hobby_id == hobby.id)
            .order_by(Item.created_at.desc())
            .all()
        )

    def custom_categories(self, hobby: Hobby) -> List[str]:
        """Categories already used by the hobby's items plus its defined ones."""
        used = [
            row.category.strip()
            for row in self.db.query(Item.category)
            .filter(Item.hobby_id == hobby.id, Item.category.isnot(None))
            .distinct()
        ]
        defined = [
            row.name.strip()
            for row in self.db.query(HobbyItemCategory.name).filter(HobbyItemCategory.hobby_id == hobby.id)
        ]
        names: List[str] = []
        for name in sorted(used, key=str.casefold) + sorted(defined, key=str.casefold):
            if name and name not in names:
                names.append(name)
        return names

    def item_categories(self, user: CurrentUser, hobby_id: str) -> Dict[str, Any]:
        hobby = get_owned_hobby(self.db, user, hobby_id)
        defined = sorted((c.name for c in hobby.item_categories), key=str.casefold)
        return {
            "hobbyCategory": hobby.category,
            "itemCategories": self.custom_categories(hobby),
            "definedCategories": defined,
        }

    def create(
        self,
        user: CurrentUser,
        hobby_id: str,
        data: ItemCreate,
        image: Optional[UploadedImage] = None,
    ) -> Item:
        name = clean_text(data.name)
        description = clean_text(data.description)
        category = clean_text(data.category)
        if image is not None and not image.data:
            image = None
        if not name and image is None:
            raise ValidationError("Name is required, or upload an image for AI to generate one")

        hobby = get_owned_hobby(self.db, user, hobby_id)
        item_id = new_id()
        image_url = None
        if image is not None:
            image_url = self._save_image(user, item_id, image)
            if not (name and description and category):
                analysis = self.ai.analyze_image(image.data, image.content_type, hobby.name, hobby.category)
                if analysis:
                    name = name or analysis.name
                    description = description or analysis.description
                    category = category or analysis.category

        try:
            return self._create_core(user, hobby, item_id, name or UNNAMED_ITEM, description, category, image_url)
        except Exception:
            if self.images:
                self.images.discard(image_url)
            raise

    def bulk_create(self, user: CurrentUser, hobby_id: str, entries: Sequence[ItemCreate]) -> Tuple[List[Item], List[Dict[str, Any]]]:
        """Create each entry independently; failures are reported, not raised."""
        if not entries:
            raise ValidationError("No items provided")
        hobby = get_owned_hobby(self.db, user, hobby_id)

        created: List[Item] = []
        skipped: List[Dict[str, Any]] = []
        for position, entry in enumerate(entries):
            name = clean_text(entry.name)
            if not name:
                skipped.append({"index": position, "reason": "Missing name"})
                continue
            try:
                created.append(
                    self._create_core(user, hobby, new_id(), name, clean_text(entry.description), clean_text(entry.category), None)
                )
            except Exception:
                logger.exception(f"Failed to create bulk item at index {position} in hobby {hobby_id}")
                skipped.append({"index": position, "reason": "Failed to create item"})

        if not created:
            raise ValidationError("No items were created", skipped=skipped)
        return created, skipped

    def update(self, user: CurrentUser, hobby_id: str, item_id: str, data: ItemUpdate) -> Item:
        hobby, item = self.get_owned(user, hobby_id, item_id)
        name = clean_text(data.name)
        description = clean_text(data.description)
        enriched = enrich(
            self.ai,
            name,
            description,
            manual_category=data.category,
            resolve_category=self._category_resolver(hobby),
        )

        item.name = name
        item.description = description
        item.category = enriched.category
        item.tags = enriched.tags
        commit(self.db)
        self.db.refresh(item)

        self.index.upsert([item_vector(item, user.userId, enriched.embedding)])
        return item

    def move(self, user: CurrentUser, hobby_id: str, item_id: str, new_hobby_id: Optional[str]) -> Item:
        new_hobby_id = clean_text(new_hobby_id)
        if not new_hobby_id:
            raise ValidationError("newHobbyId is required")
        if new_hobby_id == hobby_id:
            raise ValidationError("Item is already in this hobby")

        _, item = self.get_owned(user, hobby_id, item_id)
        target = get_owned_hobby(self.db, user, new_hobby_id)
        embedding = self.ai.embed(embedding_text(item.name, item.description))

        item.hobby_id = target.id
        commit(self.db)
        self.db.refresh(item)
        logger.info(f"Moved item {item.id} from hobby {hobby_id} to {target.id}")

        self.index.upsert([item_vector(item, user.userId, embedding)])
        return item

    def delete(self, user: CurrentUser, hobby_id: str, item_id: str) -> None:
        _, item = self.get_owned(user, hobby_id, item_id)
        image_url = item.image_url
        self.db.delete(item)
        commit(self.db)

        self.index.delete_by_ids([item_id])
        if self.images:
            self.images.discard(image_url)

    def _category_resolver(self, hobby: Hobby):
        custom = self.custom_categories(hobby)
        hobby_category = hobby.category

        def resolve(name: str, description: Optional[str]) -> str:
            return resolve_item_category(self.ai, name, description, hobby_category, custom)

        return resolve

    def _save_image(self, user: CurrentUser, item_id: str, image: UploadedImage) -> Optional[str]:
        if self.images is None:
            return None
        return self.images.save(user.userId, item_id, image)

    def _create_core(
        self,
        user: CurrentUser,
        hobby: Hobby,
        item_id: str,
        name: str,
        description: Optional[str],
        category: Optional[str],
        image_url: Optional[str],
    ) -> Item:
        description = fill_description(self.ai, name, description, self.settings.generate_missing_descriptions)
        enriched = enrich(
            self.ai,
            name,
            description,
            manual_category=category,
            resolve_category=self._category_resolver(hobby),
        )

        item = Item(
            id=item_id,
            embedding_id=item_id,
            hobby_id=hobby.id,
            name=name,
            description=description,
            category=enriched.category,
            tags=enriched.tags,
            image_url=image_url,
        )
        self.db.add(item)
        commit(self.db)
        self.db.refresh(item)
        logger.info(f"Created item {item.id} in hobby {hobby.id} ({item.category})")

        self.index.upsert([item_vector(item, user.userId, enriched.embedding)])
        return item
