from pydantic import BaseModel, Field
from typing import Literal, Optional

class SearchRequest(BaseModel):
    query: Optional[str] = None
    limit: int = Field(default=20, ge=1, le=100)
    mode: Optional[Literal["semantic", "text"]] = None
