"""Agent model: the insurance agent who owns a book of clients."""
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class Agent(Base):
    __tablename__ = "agents"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=True)
    email = Column(String, nullable=True, index=True)
    agency_name = Column(String, nullable=True)
    scheduling_url = Column(String, nullable=True)  # booking link shared in outreach

    # Automated holiday cards are opt-out; NULL counts as opted in
    auto_holiday_cards = Column(Boolean, default=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    # Relationships
    clients = relationship("Client", back_populates="agent", order_by="Client.id")
    conservation_alerts = relationship("ConservationAlert", back_populates="agent")

    @property
    def display_name(self) -> str:
        return self.name or "Your Agent"

    @property
    def signature(self) -> str:
        """Sign-off used at the end of touchpoint messages."""
        if self.agency_name:
            return f"{self.display_name}, {self.agency_name}"
        return self.display_name
