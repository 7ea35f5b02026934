"""
Add a PostgreSQL exclusion constraint so the database itself rejects
overlapping non-cancelled appointments for the same doctor.
Run with: python -m migrations.add_appointment_overlap_constraint
"""

import sys
from pathlib import Path

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

sys.path.insert(0, str(Path(__file__).parent.parent))

from clinic_api.config import get_settings  # noqa: E402
from clinic_api.domain.scheduling.repository import OVERLAP_CONSTRAINT_NAME  # noqa: E402

STATEMENTS = [
    "CREATE EXTENSION IF NOT EXISTS btree_gist",
    f"ALTER TABLE appointments DROP CONSTRAINT IF EXISTS {OVERLAP_CONSTRAINT_NAME}",
    f"""
    ALTER TABLE appointments
    ADD CONSTRAINT {OVERLAP_CONSTRAINT_NAME}
    EXCLUDE USING gist (
        doctor_id WITH =,
        tstzrange(starts_at, ends_at, '[)') WITH &&
    )
    WHERE (status <> 'cancelled')
    """,
]


def add_overlap_constraint(db):
    """Install the exclusion constraint (idempotent)"""
    print("🚀 Installing appointment overlap constraint...")

    overlaps = db.execute(
        text(
            """
            SELECT a.id, b.id
            FROM appointments a
            JOIN appointments b
              ON a.doctor_id = b.doctor_id
             AND a.id < b.id
             AND a.status <> 'cancelled'
             AND b.status <> 'cancelled'
             AND a.starts_at < b.ends_at
             AND b.starts_at < a.ends_at
            """
        )
    ).fetchall()

    if overlaps:
        print(f"❌ {len(overlaps)} overlapping appointment pairs must be resolved first:")
        for first_id, second_id in overlaps:
            print(f"   - {first_id} <-> {second_id}")
        raise RuntimeError("Existing double bookings prevent the constraint")

    for statement in STATEMENTS:
        db.execute(text(statement))

    db.commit()
    print(f"✅ Constraint {OVERLAP_CONSTRAINT_NAME} installed")


def main():
    settings = get_settings()
    if not settings.database_url.startswith("postgresql"):
        print("❌ ERROR: exclusion constraints require PostgreSQL")
        sys.exit(1)

    engine = create_engine(settings.database_url)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db = SessionLocal()
    try:
        add_overlap_constraint(db)
    except Exception as e:
        print(f"\n❌ ERROR: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
