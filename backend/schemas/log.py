from pydantic import BaseModel
from datetime import datetime
from typing import Any, Dict, List, Optional

# A single audit entry as shown in the admin panel
class LogResponse(BaseModel):
    id: int
    user_id: Optional[str] = None
    action: str
    resource: str
    status: str
    ip: Optional[str] = None
    ts: datetime
    meta: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True

class LogPage(BaseModel):
    items: List[LogResponse]
    total: int
    page: int
    page_size: int
