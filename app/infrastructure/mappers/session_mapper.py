"""
Session, activity and audit log mappers.
"""

from app.domain.models.session import UserSession
from app.domain.models.activity import Activity, AuditLogEntry
from app.infrastructure.db.models import UserSessionModel, ActivityModel, AuditLogModel
from app.infrastructure.mappers.user_mapper import to_naive_utc


class SessionMapper:

    def domain_to_model(self, session: UserSession) -> UserSessionModel:
        return UserSessionModel(
            id=session.id,
            user_id=session.user_id,
            token=session.token,
            expires_at=session.expires_at,
            last_activity=session.last_activity,
            user_agent=session.user_agent,
            ip_address=session.ip_address,
            created_at=session.created_at
        )

    def model_to_domain(self, model: UserSessionModel) -> UserSession:
        return UserSession(
            id=model.id,
            user_id=model.user_id,
            token=model.token,
            expires_at=to_naive_utc(model.expires_at),
            last_activity=to_naive_utc(model.last_activity),
            user_agent=model.user_agent or "",
            ip_address=model.ip_address or "",
            created_at=to_naive_utc(model.created_at)
        )


class ActivityMapper:

    def domain_to_model(self, activity: Activity) -> ActivityModel:
        return ActivityModel(
            id=activity.id,
            user_id=activity.user_id,
            type=activity.type,
            extra=dict(activity.metadata),
            created_at=activity.created_at
        )

    def model_to_domain(self, model: ActivityModel) -> Activity:
        return Activity(
            id=model.id,
            user_id=model.user_id,
            type=model.type,
            metadata=dict(model.extra or {}),
            created_at=to_naive_utc(model.created_at)
        )


class AuditLogMapper:

    def domain_to_model(self, entry: AuditLogEntry) -> AuditLogModel:
        return AuditLogModel(
            id=entry.id,
            user_id=entry.user_id,
            action=entry.action,
            resource=entry.resource,
            resource_id=entry.resource_id,
            detail=dict(entry.detail),
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            created_at=entry.created_at
        )

    def model_to_domain(self, model: AuditLogModel) -> AuditLogEntry:
        return AuditLogEntry(
            id=model.id,
            user_id=model.user_id,
            action=model.action,
            resource=model.resource or "",
            resource_id=model.resource_id,
            detail=dict(model.detail or {}),
            ip_address=model.ip_address or "",
            user_agent=model.user_agent or "",
            created_at=to_naive_utc(model.created_at)
        )
