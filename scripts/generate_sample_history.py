"""
Generate sample medications and dose history for local development.
Run: python scripts/generate_sample_history.py
"""
import sys
import os
import asyncio
from datetime import datetime, timedelta

# Ensure project root on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from database import init_db, get_db_context
import models
from services.history_service import to_epoch_millis
from services.medication_service import medication_service
from services.achievement_service import achievement_service

# Per medication: (name, dosage, hour, minute, supply, threshold, pattern)
# The pattern repeats over the last 30 days, newest day first.
# "T" taken, "M" missed
SAMPLE_MEDICATIONS = [
    ("Metformin", "500mg", 8, 0, 42, 10, "TTTTTTT"),
    ("Lisinopril", "10mg", 9, 30, 6, 7, "TTMTTTM"),
    ("Atorvastatin", "20mg", 21, 0, 25, 5, "TMMTTMT"),
]

DAYS = 30


async def main():
    init_db()
    now = datetime.now()
    created = 0

    with get_db_context() as db:
        await achievement_service.initialize_achievements(db=db)

        for name, dosage, hour, minute, supply, threshold, pattern in SAMPLE_MEDICATIONS:
            scheduled = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
            medication = await medication_service.add_medication(
                name=name,
                dosage=dosage,
                scheduled_time=scheduled,
                supply=supply,
                low_supply_threshold=threshold,
                frequency="once daily",
                db=db
            )
            print(f"Added {name} (id={medication.id})")

            for day_index in range(DAYS):
                dose_time = scheduled - timedelta(days=day_index)
                if dose_time > now:
                    continue
                taken = pattern[day_index % len(pattern)] == "T"
                db.add(dose_entry(medication.id, dose_time, taken))
                created += 1
        db.commit()

        results = await achievement_service.evaluate_achievements(db=db)

    print(f"Created {created} dose events")
    for result in results:
        if result.newly_completed:
            print(f"Completed achievement: {result.achievement.name}")


def dose_entry(medication_id, dose_time, taken):
    return models.HistoryEntry(
        medication_id=medication_id,
        timestamp=to_epoch_millis(dose_time),
        taken=taken,
        notes=None if taken else "Missed dose"
    )


if __name__ == "__main__":
    asyncio.run(main())
