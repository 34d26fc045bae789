"""
FastAPI dependencies (DB session, authentication)
"""
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from substracker.infrastructure.db.session import get_db as _get_db
from substracker.infrastructure.db.models import User


# Re-export get_db
get_db = _get_db


def get_current_user_id(request: Request, db: Session = Depends(get_db)) -> int:
    """
    Current user from the session cookie (login itself lives outside this service)

    Raises:
        HTTPException(401): not logged in / unknown user
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return user.id
