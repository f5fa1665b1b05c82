import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from ..core.errors import ValidationError
from .ai_gateway import AIGateway
from .vectorstore import VectorRecord

logger = logging.getLogger("curiocodex.enrichment")

CategoryResolver = Callable[[str, Optional[str]], str]


@dataclass
class Enrichment:
    embedding: List[float]
    category: Optional[str]
    tags: List[str] = field(default_factory=list)


def clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def embedding_text(name: str, description: Optional[str]) -> str:
    return f"{name} {description or ''}".strip()


def fill_description(ai: AIGateway, name: str, description: Optional[str], enabled: bool) -> Optional[str]:
    """Ask the gateway for a short description when none was given."""
    if description or not enabled:
        return description
    try:
        return clean_text(ai.describe_from_name(name)) or description
    except Exception as e:
        logger.error(f"Could not generate a description for {name!r}: {e}")
        return description


def resolve_item_category(
    ai: AIGateway,
    name: str,
    description: Optional[str],
    hobby_category: Optional[str],
    custom_categories: Sequence[str],
) -> str:
    """Category for an item that was given none.

    1. the hobby already has item categories -> let the AI choose among them
    2. the hobby has a category -> inherit it
    3. otherwise the generic categorizer
    """
    hobby_category = clean_text(hobby_category)
    if custom_categories:
        return ai.categorize_with_custom_categories(name, description, hobby_category, list(custom_categories))
    if hobby_category:
        return hobby_category
    return ai.categorize(name, description)


def enrich(
    ai: AIGateway,
    name: Optional[str],
    description: Optional[str],
    manual_category: Optional[str] = None,
    resolve_category: Optional[CategoryResolver] = None,
) -> Enrichment:
    """Embedding, category and tags for a hobby or item, always recomputed in full.

    A manual category wins verbatim and skips categorization entirely. Tags are
    extracted regardless. Embedding failures propagate.
    """
    name = clean_text(name)
    if not name:
        raise ValidationError("Name is required")
    description = clean_text(description)

    embedding = ai.embed(embedding_text(name, description))

    category = clean_text(manual_category)
    if category is None:
        category = resolve_category(name, description) if resolve_category else ai.categorize(name, description)

    tags = [t for t in (ai.extract_tags(name, description) or []) if t]
    return Enrichment(embedding=list(embedding), category=category, tags=tags)


def hobby_vector(hobby, embedding: List[float]) -> VectorRecord:
    return VectorRecord(
        id=hobby.id,
        values=embedding,
        metadata={"type": "hobby", "userId": hobby.user_id, "name": hobby.name, "category": hobby.category},
    )


def item_vector(item, user_id: str, embedding: List[float]) -> VectorRecord:
    return VectorRecord(
        id=item.id,
        values=embedding,
        metadata={
            "type": "item",
            "userId": user_id,
            "hobbyId": item.hobby_id,
            "name": item.name,
            "category": item.category,
        },
    )
