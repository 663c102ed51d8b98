import logging
from typing import Optional, Any, Dict

from django.contrib.auth import get_user_model
from core.models import AuditEvent

logger = logging.getLogger(__name__)

User = get_user_model()


def log_action(*, user_id: Optional[int], action: str, object_type: Optional[str]=None, object_id: Optional[int]=None, detail: Optional[Dict[str, Any]]=None) -> AuditEvent:
    logger.info('audit %s by %s on %s:%s', action, user_id, object_type, object_id)
    return AuditEvent.objects.create(
        user_id=user_id,
        action=action,
        object_type=object_type, object_id=object_id,
        detail=detail or {},
    )
