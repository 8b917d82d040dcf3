"""
Promote a user to admin by email

    python scripts/make_admin.py someone@example.com
"""

import sys
from datetime import datetime

from pymongo import MongoClient

from codearena import config


def make_admin(email: str) -> int:
    client = MongoClient(config.MONGO_URL)
    try:
        users = client[config.DATABASE_NAME]["users"]
        result = users.update_one(
            {"email": email.strip().lower()},
            {"$set": {"role": "admin", "updated_at": datetime.utcnow()}}
        )

        if result.matched_count == 0:
            print(f"No user found with email {email}")
            return 1
        if result.modified_count == 0:
            print(f"{email} is already an admin")
        else:
            print(f"{email} is now an admin")
        return 0
    finally:
        client.close()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/make_admin.py <email>")
        sys.exit(1)
    sys.exit(make_admin(sys.argv[1]))
