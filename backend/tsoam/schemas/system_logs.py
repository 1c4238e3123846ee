# tsoam/schemas/system_logs.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class SystemLogOut(BaseModel):
    log_id: str
    user_id: Optional[uuid.UUID] = None
    user_name: Optional[str] = None
    action: str
    module: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    severity: str
    risk_level: str
    details: Dict[str, Any]
    ip_address: Optional[str] = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)
