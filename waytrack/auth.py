from fastapi import HTTPException, Header, Depends
from sqlalchemy.orm import Session
from datetime import datetime
import secrets
import string
from typing import Optional

from .database import get_db
from .models import User
from .config import settings

SYSTEM_EMAIL = "system@waytrack"

def generate_api_key() -> str:
    """Generate a random API key"""
    alphabet = string.ascii_letters + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(32))

def verify_api_key(api_key: Optional[str], db: Session) -> Optional[User]:
    """Verify API key and return user"""
    if not api_key:
        return None

    # The master key maps to a persistent system user so sessions have an owner row
    if settings.API_KEY and secrets.compare_digest(api_key, settings.API_KEY):
        user = db.query(User).filter(User.email == SYSTEM_EMAIL).first()
        if not user:
            user = User(
                email=SYSTEM_EMAIL,
                display_name="System",
                api_key=generate_api_key(),  # distinct from master key
            )
            db.add(user)
            db.commit()
            db.refresh(user)
        return user

    user = db.query(User).filter(User.api_key == api_key).first()
    if user:
        user.last_active_at = datetime.utcnow()
        db.commit()
        return user

    return None

def get_current_user(
    api_key: str = Header(None, alias="X-API-KEY"),
    db: Session = Depends(get_db)
) -> User:
    """Get current user from API key"""
    user = verify_api_key(api_key, db)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user

def get_current_user_optional(
    api_key: str = Header(None, alias="X-API-KEY"),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Get current user from API key (optional - returns None if not authenticated)"""
    return verify_api_key(api_key, db)
