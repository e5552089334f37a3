"""
Session, activity and audit log repositories using SQLAlchemy.
"""

from typing import Optional, List
from sqlalchemy.orm import Session

from app.domain.models.session import UserSession
from app.domain.models.activity import Activity, AuditLogEntry
from app.domain.repositories.session_repository import (
    SessionRepository,
    ActivityRepository,
    AuditLogRepository
)
from app.infrastructure.db.models import UserSessionModel, ActivityModel, AuditLogModel
from app.infrastructure.mappers.session_mapper import SessionMapper, ActivityMapper, AuditLogMapper


class SQLAlchemySessionRepository(SessionRepository):

    def __init__(self, session: Session):
        self.session = session
        self.mapper = SessionMapper()

    async def add(self, user_session: UserSession) -> UserSession:
        model = self.mapper.domain_to_model(user_session)
        self.session.add(model)
        self.session.flush()
        user_session.id = model.id
        return user_session

    async def find_by_token(self, token: str) -> Optional[UserSession]:
        model = self.session.query(UserSessionModel).filter_by(token=token).first()
        return self.mapper.model_to_domain(model) if model else None

    async def touch(self, user_session: UserSession) -> None:
        self.session.query(UserSessionModel).filter_by(token=user_session.token).update(
            {"last_activity": user_session.last_activity}
        )

    async def delete(self, token: str) -> bool:
        deleted = self.session.query(UserSessionModel).filter_by(token=token).delete()
        return deleted > 0

    async def delete_for_user(self, user_id: int) -> int:
        return self.session.query(UserSessionModel).filter_by(user_id=user_id).delete()


class SQLAlchemyActivityRepository(ActivityRepository):

    def __init__(self, session: Session):
        self.session = session
        self.mapper = ActivityMapper()

    async def add(self, activity: Activity) -> Activity:
        model = self.mapper.domain_to_model(activity)
        self.session.add(model)
        self.session.flush()
        activity.id = model.id
        return activity

    async def find_by_user(self, user_id: int, limit: int = 10) -> List[Activity]:
        models = (
            self.session.query(ActivityModel)
            .filter_by(user_id=user_id)
            .order_by(ActivityModel.created_at.desc(), ActivityModel.id.desc())
            .limit(limit)
            .all()
        )
        return [self.mapper.model_to_domain(model) for model in models]


class SQLAlchemyAuditLogRepository(AuditLogRepository):

    def __init__(self, session: Session):
        self.session = session
        self.mapper = AuditLogMapper()

    async def add(self, entry: AuditLogEntry) -> AuditLogEntry:
        model = self.mapper.domain_to_model(entry)
        self.session.add(model)
        self.session.flush()
        entry.id = model.id
        return entry

    async def find_by_user(self, user_id: int, limit: int = 50) -> List[AuditLogEntry]:
        models = (
            self.session.query(AuditLogModel)
            .filter_by(user_id=user_id)
            .order_by(AuditLogModel.id.desc())
            .limit(limit)
            .all()
        )
        return [self.mapper.model_to_domain(model) for model in models]
