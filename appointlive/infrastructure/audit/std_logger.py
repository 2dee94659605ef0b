import json
import logging
from datetime import datetime
from typing import Optional, Dict, Any

from ...application.ports.audit_logger import AuditLogger


class StdAuditLogger(AuditLogger):
    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def log(self, action: str, actor_role: str, actor_id: Optional[int] = None, appointment_id: Optional[int] = None, success: bool = True, details: Optional[Dict[str, Any]] = None) -> None:
        entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "action": action,
            "actor_role": actor_role,
            "actor_id": actor_id,
            "appointment_id": appointment_id,
            "success": success,
            "details": details or {},
        }
        if success:
            self._logger.info(f"AUDIT: {json.dumps(entry)}")
        else:
            self._logger.warning(f"AUDIT: {json.dumps(entry)}")
