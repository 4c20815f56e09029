import os
import time

from dotenv import load_dotenv
from pymongo import ASCENDING, DESCENDING, MongoClient

load_dotenv()

MONGO_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGODB_DB", "sc2ladder")

SNAPSHOT_COLLECTION = "ranking_snapshots"


def wait_for_mongodb(max_retries=5, retry_delay=5):
    for attempt in range(max_retries):
        try:
            client = MongoClient(MONGO_URI, serverSelectionTimeoutMS=5000)
            client.server_info()
            return client
        except Exception as e:
            if attempt < max_retries - 1:
                print(f"Attempt {attempt + 1}/{max_retries}: MongoDB connection failed: {e}")
                print(f"Retrying in {retry_delay} seconds...")
                time.sleep(retry_delay)
            else:
                raise Exception(f"Could not connect to MongoDB after {max_retries} attempts: {e}")


def create_indexes(db):
    snapshots = db[SNAPSHOT_COLLECTION]
    snapshots.create_index([("created_at", DESCENDING)])
    snapshots.create_index([("expiry", ASCENDING)])


def main():
    print(f"Connecting to MongoDB database '{MONGO_DB}'")
    client = wait_for_mongodb()
    db = client[MONGO_DB]

    if SNAPSHOT_COLLECTION not in db.list_collection_names():
        db.create_collection(SNAPSHOT_COLLECTION)
        print(f"Created collection: {SNAPSHOT_COLLECTION}")

    create_indexes(db)
    print("Database initialized successfully.")


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print(f"Error initializing database: {e}")
        raise SystemExit(1)
