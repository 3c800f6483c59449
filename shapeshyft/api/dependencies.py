from fastapi import Depends, HTTPException, Path
from sqlalchemy.orm import Session

from shapeshyft.domain.analytics.repository import AnalyticsRepository
from shapeshyft.domain.keys.repository import KeyRepository
from shapeshyft.domain.projects.repository import EndpointRepository, ProjectRepository
from shapeshyft.domain.users.entities import User
from shapeshyft.domain.users.repository import UserRepository
from shapeshyft.infrastructure.db.connection import get_db
from shapeshyft.security.auth import get_current_subject


def get_user_repo(db: Session = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_key_repo(db: Session = Depends(get_db)) -> KeyRepository:
    return KeyRepository(db)


def get_project_repo(db: Session = Depends(get_db)) -> ProjectRepository:
    return ProjectRepository(db)


def get_endpoint_repo(db: Session = Depends(get_db)) -> EndpointRepository:
    return EndpointRepository(db)


def get_analytics_repo(db: Session = Depends(get_db)) -> AnalyticsRepository:
    return AnalyticsRepository(db)


def get_authorized_user(
    user_id: str = Path(..., min_length=1, max_length=128),
    subject: str = Depends(get_current_subject),
    users: UserRepository = Depends(get_user_repo),
) -> User:
    """The caller may only act on their own `user_id`; provisions the user on first access."""
    if subject != user_id:
        raise HTTPException(status_code=403, detail="You can only access your own resources")
    return users.get_or_create(subject)


def ok(data) -> dict:
    return {"success": True, "data": data}
