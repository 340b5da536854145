from typing import Optional, Any, Dict
from django.contrib.auth import get_user_model
from core.models import AuditEvent

User = get_user_model()


def log_action(*, user: Optional[User]=None, user_id: Optional[int]=None, action: str, object_type: Optional[str]=None, object_id: Optional[int]=None, detail: Optional[Dict[str, Any]]=None) -> AuditEvent:
    """Record an audit event; call inside the transaction of the change it describes."""
    if user_id is None and getattr(user, 'pk', None):
        user_id = user.pk
    return AuditEvent.objects.create(
        user_id=user_id,
        action=action,
        object_type=object_type, object_id=object_id,
        detail=detail or {},
    )
