from sqlalchemy.exc import SQLAlchemyError

from app.services.base import BaseService
from app.models.audit_log import AuditLog
from typing import Any, Optional


class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        user_id: Optional[int],
        user_role: Optional[str],
        details: dict,
        before_state: Optional[Any] = None,
        after_state: Optional[Any] = None
    ) -> Optional[AuditLog]:
        """
        Append an audit entry to the caller's transaction.

        Flushed but not committed: the entry commits or rolls back together
        with the compensation request change it describes.
        """
        try:
            db_log = AuditLog(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                user_id=user_id,
                user_role=getattr(user_role, "value", user_role),
                details=_jsonable(details),
                before_state=_jsonable(before_state),
                after_state=_jsonable(after_state)
            )
            self.db.add(db_log)
            self.db.flush()
        except SQLAlchemyError as e:
            self._logger.error(f"Audit write failed for {action}: {e}", exc_info=True)
            return None
        self.log_info(f"Audit: {action}", entity_type=entity_type, entity_id=entity_id, actor_id=user_id)
        return db_log

    @staticmethod
    def log(db, *args, **kwargs) -> Optional[AuditLog]:
        return AuditService(db).log_action(*args, **kwargs)


def _jsonable(obj):
    """Dates, enums and pydantic models to plain JSON values."""
    if obj is None:
        return None
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(i) for i in obj]
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    if hasattr(obj, "value"):
        return obj.value
    return obj
