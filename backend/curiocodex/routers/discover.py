from typing import Optional
from fastapi import APIRouter, Depends
from ..dependencies import get_current_user, get_discover_service, get_hobby_service
from ..schemas.auth import CurrentUser
from ..schemas.discover import SearchRequest
from ..services.discover_service import DiscoverService
from ..services.hobby_service import HobbyService

router = APIRouter(prefix="/api/discover", tags=["discover"])

@router.get("/recommendations")
def recommendations(
    q: Optional[str] = None,
    user: CurrentUser = Depends(get_current_user),
    service: DiscoverService = Depends(get_discover_service),
):
    return {"recommendations": service.recommendations(user, q)}

@router.get("/by-category/{category}")
def by_category(
    category: str,
    user: CurrentUser = Depends(get_current_user),
    hobbies: HobbyService = Depends(get_hobby_service),
):
    return {"hobbies": [h.to_dict() for h in hobbies.by_category(user, category)]}

@router.post("/search")
def search(
    payload: SearchRequest,
    user: CurrentUser = Depends(get_current_user),
    service: DiscoverService = Depends(get_discover_service),
):
    return service.search(user, payload.query, limit=payload.limit, mode=payload.mode)
