"""Backfill of the vector index from the relational store.

Index writes on the request path are best-effort and never retried, so records
can end up missing from the index or carrying stale metadata. Repair
re-embeds every hobby and item the caller owns and upserts them keyed by id,
which makes it safe to run any number of times.
"""
import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from ..core.errors import ValidationError
from ..models.hobby import Hobby
from ..models.item import Item
from ..schemas.auth import CurrentUser
from .ai_gateway import AIGateway
from .enrichment import embedding_text, hobby_vector, item_vector
from .vectorstore import GuardedVectorIndex

logger = logging.getLogger("curiocodex.repair")


def repair_vector_index(db: Session, ai: AIGateway, index: GuardedVectorIndex, user: CurrentUser) -> Dict[str, Any]:
    if not index.available:
        raise ValidationError("Vector index not available")

    hobbies = db.query(Hobby).filter(Hobby.user_id == user.userId).all()
    items = (
        db.query(Item)
        .join(Hobby, Item.hobby_id == Hobby.id)
        .filter(Hobby.user_id == user.userId)
        .all()
    )

    records = [hobby_vector(h, ai.embed(embedding_text(h.name, h.description))) for h in hobbies]
    records += [item_vector(i, user.userId, ai.embed(embedding_text(i.name, i.description))) for i in items]

    ok = index.upsert(records) if records else True
    repaired = len(records) if ok else 0
    logger.info(f"Repaired {repaired} vectors for user {user.userId}")
    return {"success": ok, "repaired": repaired, "hobbies": len(hobbies), "items": len(items)}
