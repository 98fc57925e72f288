"""
Database initialization script
Run this to create tables and seed a demo agent with one client
"""
import sys
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from app.core.database import engine, Base, SessionLocal
from app.core.security import create_access_token
from app.models.agent import Agent
from app.models.client import Client, Policy


def init_db():
    """Initialize database with tables"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("✓ Tables created successfully")


def seed_data():
    """Seed a demo agent, client and policy"""
    db = SessionLocal()

    try:
        print("\nSeeding initial data...")

        agent = db.query(Agent).filter(Agent.email == "demo.agent@agentforlife.app").first()
        if not agent:
            agent = Agent(
                name="Dana Demo",
                email="demo.agent@agentforlife.app",
                agency_name="Demo Family Insurance",
                scheduling_url="https://calendly.com/demo-agent",
            )
            db.add(agent)
            db.flush()
            print("✓ Demo agent created")

        client = db.query(Client).filter(Client.client_code == "DEMO01").first()
        if not client:
            client = Client(
                agent_id=agent.id,
                name="Jordan Sample",
                email="jordan@example.com",
                date_of_birth="1985-06-12",
                client_code="DEMO01",
            )
            db.add(client)
            db.flush()
            db.add(Policy(
                client_id=client.id,
                policy_number="TL-100200",
                policy_type="Term Life",
                carrier="Sample Mutual",
                premium_amount=Decimal("54.20"),
                created_at=datetime.utcnow() - timedelta(days=340),
            ))
            print("✓ Demo client created (client code: DEMO01)")

        db.commit()
        print("\n✓ Database seeded successfully!")
        print(f"\nDemo agent token:\n  {create_access_token(agent.id)}")

    except Exception as e:
        print(f"\n✗ Error seeding data: {e}")
        db.rollback()
    finally:
        db.close()


if __name__ == "__main__":
    print("=" * 60)
    print("AgentForLife - Database Initialization")
    print("=" * 60)

    init_db()
    seed_data()

    print("\n" + "=" * 60)
    print("Initialization complete!")
    print("=" * 60)
    print("\nYou can now access:")
    print("  - API: http://localhost:8000")
    print("  - API Docs: http://localhost:8000/docs")
    print("=" * 60)
