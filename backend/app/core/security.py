"""Bearer-token checks: agent session JWTs and the shared cron secret."""
import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.models.agent import Agent

logger = logging.getLogger(__name__)


def create_access_token(agent_id: int, expires_minutes: Optional[int] = None) -> str:
    """Sign a session token for an agent. Issuance normally happens at login."""
    minutes = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(agent_id),
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Raises jwt.InvalidTokenError on a bad signature or expired token."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


def get_current_agent(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Agent:
    token = _bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        payload = decode_access_token(token)
        agent_id = int(payload.get("sub"))
    except (jwt.InvalidTokenError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Unauthorized")

    agent = db.query(Agent).filter(Agent.id == agent_id).first()
    if not agent:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return agent


def require_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Cron endpoints only run with `Authorization: Bearer <CRON_SECRET>`."""
    token = _bearer_token(authorization)
    if not settings.CRON_SECRET:
        logger.warning("CRON_SECRET is not configured, rejecting scheduled-job call")
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not token or not hmac.compare_digest(token.encode(), settings.CRON_SECRET.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")
