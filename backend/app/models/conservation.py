"""Conservation alerts: rescue cases opened when a policy lapses or cancels."""
import enum
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class AlertStatus(str, enum.Enum):
    NEW = "new"
    OUTREACH_SCHEDULED = "outreach_scheduled"
    SAVED = "saved"
    LOST = "lost"

    @property
    def is_terminal(self) -> bool:
        return self in (AlertStatus.SAVED, AlertStatus.LOST)


class ConservationReason(str, enum.Enum):
    LAPSED_PAYMENT = "lapsed_payment"
    CANCELLATION = "cancellation"
    OTHER = "other"


class ConservationAlert(Base):
    __tablename__ = "conservation_alerts"

    id = Column(Integer, primary_key=True, index=True)
    agent_id = Column(Integer, ForeignKey("agents.id"), nullable=False, index=True)

    # Optional match to the agent's book
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)
    policy_id = Column(Integer, ForeignKey("policies.id"), nullable=True, index=True)

    # Intake
    source = Column(String, default="paste")  # paste, email_forward
    client_name = Column(String, nullable=False)
    policy_number = Column(String, nullable=True)
    carrier = Column(String, nullable=True)
    reason = Column(String, default=ConservationReason.OTHER.value)

    # Triage
    priority = Column(String, default="low")  # high, low
    is_chargeback_risk = Column(Boolean, default=False)
    policy_age_days = Column(Integer, nullable=True)

    # Lifecycle
    status = Column(String, default=AlertStatus.NEW.value, nullable=False, index=True)
    scheduled_outreach_at = Column(DateTime, nullable=True)
    outreach_sent_at = Column(DateTime, nullable=True)  # set once the scheduled outreach fired
    push_sent_at = Column(DateTime, nullable=True)

    initial_message = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    resolved_at = Column(DateTime, nullable=True)

    # Relationships
    agent = relationship("Agent", back_populates="conservation_alerts")
    client = relationship("Client")
    policy = relationship("Policy")
