from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

class HobbyCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    item_categories: List[str] = Field(default_factory=list, alias="itemCategories")

class HobbyUpdate(HobbyCreate):
    pass

class HobbyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

class HobbyResponse(BaseModel):
    success: bool = True
    hobby: HobbyRead
