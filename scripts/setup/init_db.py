"""
Initialize database: creates all tables, optionally seeds lot settings.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--slots 50 --rate 20]
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import create_tables, engine, SessionLocal
from app.config import settings
from app.exceptions import ParkingError
from app.services.settings_service import update_settings
from sqlalchemy import inspect, text


def main():
    parser = argparse.ArgumentParser(description="Create ParkDesk tables")
    parser.add_argument("--slots", type=int, help="Seed total slots")
    parser.add_argument("--rate", type=str, help="Seed rate per hour")
    args = parser.parse_args()

    print("🗄️  ParkDesk DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  docker-compose up -d db")
        print("  # or: sudo systemctl start postgresql")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    tables = inspect(engine).get_table_names()
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in sorted(tables):
        print(f"   ✓ {t}")

    if args.slots is not None and args.rate is not None:
        db = SessionLocal()
        try:
            row = update_settings(db, args.slots, args.rate)
            print(f"\n⚙️  Settings: {row.total_slots} slots @ {row.rate_per_hour}/h")
        except ParkingError as e:
            print(f"❌ Settings rejected: {e.message}")
            sys.exit(1)
        finally:
            db.close()

    print("\n🎉 Database ready! You can now start the backend:")
    print("   uvicorn app.main:app --host 0.0.0.0 --port 8080 --reload")


if __name__ == "__main__":
    main()
