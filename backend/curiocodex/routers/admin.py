from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ..core.database import get_db
from ..dependencies import get_ai_gateway, get_current_user, get_guarded_index
from ..schemas.auth import CurrentUser
from ..services.ai_gateway import AIGateway
from ..services.index_repair import repair_vector_index
from ..services.vectorstore import GuardedVectorIndex

router = APIRouter(prefix="/api/admin", tags=["admin"])

@router.post("/repair-vector-index")
def repair_index(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    ai: AIGateway = Depends(get_ai_gateway),
    index: GuardedVectorIndex = Depends(get_guarded_index),
):
    return repair_vector_index(db, ai, index, user)
