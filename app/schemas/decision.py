from pydantic import BaseModel
from typing import Optional


class DecisionOut(BaseModel):
    """Accepted outcome. Rejections are raised as HTTPException with {"reason", "message"}."""
    accepted: bool
    id: Optional[int] = None
    message: str = ""
