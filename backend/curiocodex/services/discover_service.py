import logging
from typing import Any, Dict, List, Optional

import numpy as np
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..core.errors import ValidationError
from ..models.hobby import Hobby
from ..models.item import Item
from ..schemas.auth import CurrentUser
from .ai_gateway import AIGateway
from .enrichment import clean_text
from .vectorstore import GuardedVectorIndex, VectorMatch

logger = logging.getLogger("curiocodex.discover")

RECOMMENDATION_CANDIDATES = 20
RECOMMENDATION_LIMIT = 10
# weight of the interest profile when blended with a free-text query
PROFILE_WEIGHT = 0.5


def average_embeddings(vectors: List[List[float]]) -> List[float]:
    if not vectors:
        raise ValueError("Cannot average an empty list of embeddings")
    return np.mean(np.asarray(vectors, dtype="float64"), axis=0).tolist()


class DiscoverService:
    def __init__(self, db: Session, ai: AIGateway, index: GuardedVectorIndex):
        self.db = db
        self.ai = ai
        self.index = index

    def profile_embedding(self, user: CurrentUser) -> Optional[List[float]]:
        """Mean of the caller's indexed hobby vectors, or None if none are indexed."""
        hobby_ids = [row.id for row in self.db.query(Hobby.id).filter(Hobby.user_id == user.userId)]
        records = self.index.get_by_ids(hobby_ids)
        if not records:
            return None
        return average_embeddings([list(r.values) for r in records])

    def recommendations(self, user: CurrentUser, query: Optional[str] = None) -> List[Dict[str, Any]]:
        """Other users' items closest to the caller's interests, in index order.

        The index filter only supports equality, so the caller's own records are
        dropped after the query; that is why more candidates are requested than
        returned.
        """
        if not self.index.available:
            return []
        query = clean_text(query)
        search = self.profile_embedding(user)
        if query:
            query_vector = self.ai.embed(query)
            if search is None:
                search = query_vector
            else:
                search = (
                    PROFILE_WEIGHT * np.asarray(search) + (1 - PROFILE_WEIGHT) * np.asarray(query_vector)
                ).tolist()
        if search is None:
            return []

        matches = self.index.query(search, top_k=RECOMMENDATION_CANDIDATES)
        picked: List[VectorMatch] = []
        for m in matches:
            owner = m.metadata.get("userId")
            if not owner or owner == user.userId or m.metadata.get("type") != "item":
                continue
            if any(p.id == m.id for p in picked):
                continue
            picked.append(m)
            if len(picked) >= RECOMMENDATION_LIMIT:
                break
        if not picked:
            return []

        rows = (
            self.db.query(Item, Hobby.user_id)
            .join(Hobby, Item.hobby_id == Hobby.id)
            .filter(Item.id.in_([m.id for m in picked]))
            .all()
        )
        # the relational owner is authoritative over stale index metadata
        items = {item.id: item for item, owner in rows if owner != user.userId}
        return [
            {**items[m.id].to_dict(), "type": "item", "similarity": m.score}
            for m in picked
            if m.id in items
        ]

    def search(self, user: CurrentUser, query: Optional[str], limit: int = 20, mode: Optional[str] = None) -> Dict[str, Any]:
        query = clean_text(query)
        if not query:
            raise ValidationError("Search query is required")
        if mode == "text" or not self.index.available:
            return self.text_search(user, query, limit)

        try:
            query_vector = self.ai.embed(query)
        except Exception as e:
            logger.warning(f"Could not embed search query, using text search: {e}")
            return self.text_search(user, query, limit)

        matches = self.index.query(query_vector, top_k=limit * 2, filter={"userId": user.userId})[:limit]
        if not matches:
            logger.info(f"No semantic matches for user {user.userId}; falling back to text search")
            return self.text_search(user, query, limit)

        scores = {m.id: m.score for m in matches}
        hobby_ids = [m.id for m in matches if m.metadata.get("type") == "hobby"]
        item_ids = [m.id for m in matches if m.metadata.get("type") == "item"]

        hobbies = []
        if hobby_ids:
            hobbies = (
                self.db.query(Hobby)
                .filter(Hobby.id.in_(hobby_ids), Hobby.user_id == user.userId)
                .all()
            )
        items = []
        if item_ids:
            items = (
                self.db.query(Item)
                .join(Hobby, Item.hobby_id == Hobby.id)
                .filter(Item.id.in_(item_ids), Hobby.user_id == user.userId)
                .all()
            )

        return {
            "hobbies": sorted(
                ({**h.to_dict(), "type": "hobby", "similarity": scores.get(h.id, 0.0)} for h in hobbies),
                key=lambda r: r["similarity"],
                reverse=True,
            ),
            "items": sorted(
                ({**i.to_dict(), "type": "item", "similarity": scores.get(i.id, 0.0)} for i in items),
                key=lambda r: r["similarity"],
                reverse=True,
            ),
            "searchMethod": "semantic",
        }

    def text_search(self, user: CurrentUser, query: str, limit: int = 20) -> Dict[str, Any]:
        pattern = f"%{query.lower()}%"
        hobbies = (
            self.db.query(Hobby)
            .filter(
                Hobby.user_id == user.userId,
                or_(func.lower(Hobby.name).like(pattern), func.lower(Hobby.description).like(pattern)),
            )
            .order_by(Hobby.created_at.desc())
            .limit(limit)
            .all()
        )
        items = (
            self.db.query(Item)
            .join(Hobby, Item.hobby_id == Hobby.id)
            .filter(
                Hobby.user_id == user.userId,
                or_(func.lower(Item.name).like(pattern), func.lower(Item.description).like(pattern)),
            )
            .order_by(Item.created_at.desc())
            .limit(limit)
            .all()
        )
        return {
            "hobbies": [{**h.to_dict(), "type": "hobby"} for h in hobbies],
            "items": [{**i.to_dict(), "type": "item"} for i in items],
            "searchMethod": "text",
        }
