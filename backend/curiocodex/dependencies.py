"""FastAPI dependency providers.

The authenticated user, the database session and the enrichment backends are
resolved per request and handed to routes as arguments. Tests swap the AI
gateway and vector index through ``app.dependency_overrides``.
"""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from .core.config import get_settings
from .core.database import get_db
from .schemas.auth import CurrentUser
from .services.ai_gateway import AIGateway, ai_gateway
from .services.auth_service import AuthService
from .services.discover_service import DiscoverService
from .services.hobby_service import HobbyService
from .services.image_store import ImageStore, image_store
from .services.item_service import ItemService
from .services.vectorstore import GuardedVectorIndex, VectorIndex, vector_index


def get_ai_gateway() -> AIGateway:
    return ai_gateway


def get_vector_index() -> Optional[VectorIndex]:
    return vector_index


def get_image_store() -> ImageStore:
    return image_store


def get_guarded_index(index: Optional[VectorIndex] = Depends(get_vector_index)) -> GuardedVectorIndex:
    return GuardedVectorIndex(index)


def bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None
    return None


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db, get_settings())


def get_current_user(
    token: Optional[str] = Depends(bearer_token),
    auth: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    return auth.authenticate(token)


def get_hobby_service(
    db: Session = Depends(get_db),
    ai: AIGateway = Depends(get_ai_gateway),
    index: GuardedVectorIndex = Depends(get_guarded_index),
    images: ImageStore = Depends(get_image_store),
) -> HobbyService:
    return HobbyService(db, ai, index, get_settings(), images)


def get_item_service(
    db: Session = Depends(get_db),
    ai: AIGateway = Depends(get_ai_gateway),
    index: GuardedVectorIndex = Depends(get_guarded_index),
    images: ImageStore = Depends(get_image_store),
) -> ItemService:
    return ItemService(db, ai, index, get_settings(), images)


def get_discover_service(
    db: Session = Depends(get_db),
    ai: AIGateway = Depends(get_ai_gateway),
    index: GuardedVectorIndex = Depends(get_guarded_index),
) -> DiscoverService:
    return DiscoverService(db, ai, index)
