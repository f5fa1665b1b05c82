from fastapi import APIRouter, Depends
from ..dependencies import get_current_user, get_hobby_service
from ..schemas.auth import CurrentUser
from ..schemas.hobby import HobbyCreate, HobbyRead, HobbyResponse, HobbyUpdate
from ..services.hobby_service import HobbyService

router = APIRouter(prefix="/api/hobbies", tags=["hobbies"])

@router.post("", response_model=HobbyResponse)
def create_hobby(
    payload: HobbyCreate,
    user: CurrentUser = Depends(get_current_user),
    service: HobbyService = Depends(get_hobby_service),
):
    hobby = service.create(user, payload)
    return HobbyResponse(hobby=HobbyRead.model_validate(hobby))

@router.get("")
def list_hobbies(user: CurrentUser = Depends(get_current_user), service: HobbyService = Depends(get_hobby_service)):
    return {"hobbies": [h.to_dict() for h in service.list(user)]}

@router.get("/{hobby_id}/similar")
def similar_hobbies(
    hobby_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: HobbyService = Depends(get_hobby_service),
):
    return {"similar": service.similar(user, hobby_id)}

@router.put("/{hobby_id}", response_model=HobbyResponse)
def update_hobby(
    hobby_id: str,
    payload: HobbyUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: HobbyService = Depends(get_hobby_service),
):
    hobby = service.update(user, hobby_id, payload)
    return HobbyResponse(hobby=HobbyRead.model_validate(hobby))

@router.delete("/{hobby_id}")
def delete_hobby(
    hobby_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: HobbyService = Depends(get_hobby_service),
):
    service.delete(user, hobby_id)
    return {"success": True}
