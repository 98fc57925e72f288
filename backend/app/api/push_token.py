"""Client app push-token registration.

Called by the mobile app after the client enters their client code. No agent
session: the client code is the credential.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.client import Client
from app.schemas.notification import PushTokenRegister

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/push-token", tags=["Push Tokens"])


@router.post("/register")
def register_push_token(payload: PushTokenRegister, db: Session = Depends(get_db)):
    code = payload.client_code.strip().upper()
    client = db.query(Client).filter(Client.client_code == code).first()
    if not client:
        raise HTTPException(status_code=404, detail="Client code not found")

    client.push_token = payload.push_token.strip()
    db.commit()
    logger.info(f"Push token registered for client {client.id}")
    return {"success": True, "clientId": client.id}
