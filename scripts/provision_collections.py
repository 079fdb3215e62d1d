"""Create the users and courses collections if they are missing.

Usage: python scripts/provision_collections.py [--database NAME]
"""
import sys
import argparse
import pathlib
from typing import Optional
# Ensure the project root is on sys.path so `ishariu` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from ishariu.config import settings
from ishariu.database import close_client, get_client
from ishariu.repositories import ensure_collection


def main(database: Optional[str] = None):
    """Provision every expected collection and report what was created.

    Running it repeatedly is safe: existing collections are left alone.
    """
    db = get_client()[database or settings.MONGO_DB_NAME]
    print("Using database:", db.name)
    try:
        for name in settings.collection_names():
            created = ensure_collection(db, name)
            print(f"{name}: {'created' if created else 'already present'}")
    finally:
        close_client()


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--database', help='Override MONGO_DB_NAME')
    args = parser.parse_args()
    main(database=args.database)
