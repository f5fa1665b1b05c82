from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from ..core.errors import ValidationError
from ..dependencies import get_current_user, get_item_service
from ..schemas.auth import CurrentUser
from ..schemas.item import BulkItemsCreate, ItemCreate, ItemMove, ItemRead, ItemResponse, ItemUpdate
from ..services.image_store import UploadedImage
from ..services.item_service import ItemService

router = APIRouter(prefix="/api/hobbies/{hobby_id}", tags=["items"])


async def _read_item_payload(request: Request):
    """JSON body, or multipart form with an optional ``image`` file."""
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" in content_type:
        # closing the form closes any spooled upload
        async with request.form() as form:
            data = ItemCreate(
                name=form.get("name") or None,
                description=form.get("description") or None,
                category=form.get("category") or None,
            )
            upload = form.get("image")
            image = None
            if isinstance(upload, UploadFile):
                image = UploadedImage(
                    filename=upload.filename or "image.jpg",
                    content_type=upload.content_type or "image/jpeg",
                    data=await upload.read(),
                )
        return data, image
    try:
        return ItemCreate.model_validate(await request.json()), None
    except ValueError:
        raise ValidationError("Invalid request body")


@router.post("/items", response_model=ItemResponse)
async def create_item(
    hobby_id: str,
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    service: ItemService = Depends(get_item_service),
):
    data, image = await _read_item_payload(request)
    item = await run_in_threadpool(service.create, user, hobby_id, data, image)
    return ItemResponse(item=ItemRead.model_validate(item))

@router.post("/items/bulk")
def create_items_bulk(
    hobby_id: str,
    payload: BulkItemsCreate,
    user: CurrentUser = Depends(get_current_user),
    service: ItemService = Depends(get_item_service),
):
    created, skipped = service.bulk_create(user, hobby_id, payload.items)
    return {
        "success": True,
        "items": [ItemRead.model_validate(i).model_dump() for i in created],
        "skipped": skipped,
    }

@router.get("/items")
def list_items(hobby_id: str, user: CurrentUser = Depends(get_current_user), service: ItemService = Depends(get_item_service)):
    return {"items": [i.to_dict() for i in service.list(user, hobby_id)]}

@router.get("/item-categories")
def item_categories(hobby_id: str, user: CurrentUser = Depends(get_current_user), service: ItemService = Depends(get_item_service)):
    return service.item_categories(user, hobby_id)

@router.put("/items/{item_id}", response_model=ItemResponse)
def update_item(
    hobby_id: str,
    item_id: str,
    payload: ItemUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: ItemService = Depends(get_item_service),
):
    item = service.update(user, hobby_id, item_id, payload)
    return ItemResponse(item=ItemRead.model_validate(item))

@router.put("/items/{item_id}/move")
def move_item(
    hobby_id: str,
    item_id: str,
    payload: ItemMove,
    user: CurrentUser = Depends(get_current_user),
    service: ItemService = Depends(get_item_service),
):
    item = service.move(user, hobby_id, item_id, payload.new_hobby_id)
    return {
        "success": True,
        "item": {**ItemRead.model_validate(item).model_dump(), "oldHobbyId": hobby_id, "newHobbyId": item.hobby_id},
    }

@router.delete("/items/{item_id}")
def delete_item(
    hobby_id: str,
    item_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ItemService = Depends(get_item_service),
):
    service.delete(user, hobby_id, item_id)
    return {"success": True}
