"""Client and Policy models, including the touchpoint dedup markers."""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Numeric, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class PolicyStatus(str, enum.Enum):
    ACTIVE = "Active"
    PENDING = "Pending"
    LAPSED = "Lapsed"


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    agent_id = Column(Integer, ForeignKey("agents.id"), nullable=False, index=True)

    # Core info
    name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    date_of_birth = Column(String, nullable=True)  # free text: 1990-03-15, 03/15/1990, March 15, 1990

    # Mobile app
    client_code = Column(String, unique=True, nullable=True, index=True)
    push_token = Column(String, nullable=True)  # Expo push token; NULL = cannot be notified

    # Touchpoint dedup markers
    holiday_notified_at = Column(JSON, nullable=True)  # {"christmas_2025": true, ...}
    birthday_notified_at = Column(String, nullable=True)  # year, e.g. "2026"

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    # Relationships
    agent = relationship("Agent", back_populates="clients")
    policies = relationship("Policy", back_populates="client", order_by="Policy.id")
    notifications = relationship("NotificationRecord", back_populates="client", order_by="NotificationRecord.id")

    @property
    def first_name(self) -> str:
        parts = (self.name or "").split()
        return parts[0] if parts else "Friend"


class Policy(Base):
    __tablename__ = "policies"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)

    # Policy info
    policy_number = Column(String, nullable=True, index=True)
    policy_type = Column(String, nullable=True)  # Term Life, Whole Life, IUL, ...
    carrier = Column(String, nullable=True)
    premium_amount = Column(Numeric(10, 2), nullable=True)
    status = Column(String, default=PolicyStatus.ACTIVE.value, nullable=False)

    # Anniversary dedup markers (one per anniversary year)
    anniversary_agent_notified_at = Column(DateTime, nullable=True)
    anniversary_client_notified_at = Column(DateTime, nullable=True)

    # Anchor for the anniversary calculation (naive UTC)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, onupdate=func.now())

    # Relationships
    client = relationship("Client", back_populates="policies")
