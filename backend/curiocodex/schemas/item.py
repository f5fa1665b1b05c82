from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

class ItemCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None

class ItemUpdate(ItemCreate):
    pass

class BulkItemsCreate(BaseModel):
    items: List[ItemCreate] = Field(default_factory=list)

class ItemMove(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_hobby_id: Optional[str] = Field(default=None, alias="newHobbyId")

class ItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None

class ItemResponse(BaseModel):
    success: bool = True
    item: ItemRead

class SkippedItem(BaseModel):
    index: int
    reason: str

class BulkItemsResponse(BaseModel):
    success: bool = True
    items: List[ItemRead]
    skipped: List[SkippedItem]
