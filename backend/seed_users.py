"""
Crée (ou met à jour) les comptes de test. L'inscription ne fait pas partie
de l'API : c'est ainsi que les utilisateurs arrivent en base.

    python seed_users.py
"""
import asyncio
import os
import uuid
from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorClient

from core.security import hash_password

MONGO_URL = os.environ.get("MONGO_URL", "mongodb://localhost:27017")
DB_NAME = os.environ.get("DB_NAME", "parcel_delivery")
DEFAULT_PASSWORD = os.environ.get("SEED_PASSWORD", "password123")

TEST_USERS = [
    {
        "email":     "admin@parcel.test",
        "full_name": "Admin",
        "phone":     "+8801700000000",
        "role":      "admin",
    },
    {
        "email":     "sender@parcel.test",
        "full_name": "Sender One",
        "phone":     "+8801700000001",
        "role":      "sender",
    },
    {
        "email":     "receiver@parcel.test",
        "full_name": "Receiver One",
        "phone":     "+8801700000002",
        "role":      "receiver",
    },
]


async def seed_test_accounts():
    print(f"Connecting to MongoDB: {DB_NAME}")
    client = AsyncIOMotorClient(MONGO_URL, tz_aware=True)
    db = client[DB_NAME]

    now = datetime.now(timezone.utc)
    password = hash_password(DEFAULT_PASSWORD)

    for u in TEST_USERS:
        existing = await db.users.find_one({"email": u["email"]})
        if existing:
            await db.users.update_one(
                {"_id": existing["_id"]},
                {"$set": {"role": u["role"], "full_name": u["full_name"], "updated_at": now}},
            )
            print(f"Exists : {u['role'].upper():<9} -> {u['email']} ({existing['user_id']})")
            continue

        user_doc = {
            "user_id":    f"usr_{uuid.uuid4().hex[:12]}",
            "full_name":  u["full_name"],
            "email":      u["email"],
            "phone":      u["phone"],
            "password":   password,
            "role":       u["role"],
            "status":     "active",
            "address":    None,
            "avatar":     None,
            "created_at": now,
            "updated_at": now,
        }
        await db.users.insert_one(user_doc)
        print(f"Created: {u['role'].upper():<9} -> {u['email']} ({user_doc['user_id']})")

    client.close()


if __name__ == "__main__":
    asyncio.run(seed_test_accounts())
