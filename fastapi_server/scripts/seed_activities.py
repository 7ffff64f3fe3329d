"""
Seed the activities table from data/activities.json.
"""
import json
import logging
from pathlib import Path

from sqlmodel import Session, select

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in __import__("sys").path:
    __import__("sys").path.insert(0, str(PROJECT_ROOT))

from wellness.database import create_db_and_tables, engine
from wellness.models.activity import Activity

logger = logging.getLogger("wellness.seed")


def load_activities_from_json(json_path: Path) -> list[dict]:
    """Load activity data from JSON file."""
    with open(json_path, "r", encoding="utf-8") as f:
        return json.load(f)


def seed_activities(json_path: Path | None = None, bind=None) -> int:
    """
    Seed activities table from JSON file, matching rows by name.
    Returns the number of activities inserted/updated.
    """
    if json_path is None:
        json_path = PROJECT_ROOT / "data" / "activities.json"

    activities_data = load_activities_from_json(json_path)
    count = 0

    with Session(bind or engine) as session:
        for activity in activities_data:
            existing = session.exec(
                select(Activity).where(Activity.name == activity["name"])
            ).first()

            if existing:
                existing.emoji = activity["emoji"]
                existing.points = activity["points"]
                existing.description = activity.get("description")
                session.add(existing)
            else:
                session.add(Activity(
                    name=activity["name"],
                    emoji=activity["emoji"],
                    points=activity["points"],
                    description=activity.get("description"),
                ))
            count += 1

        session.commit()

    return count


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    logger.info("Creating database tables...")
    Path("data").mkdir(exist_ok=True)  # SQLite fallback database lives here
    create_db_and_tables()

    logger.info("Seeding activities from data/activities.json...")
    count = seed_activities()
    logger.info("Done! %s activities seeded.", count)


if __name__ == "__main__":
    main()
