import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorGridFSBucket
from pymongo import ASCENDING, DESCENDING

from jobportal.config import MONGO_URI, DATABASE_NAME

logger = logging.getLogger(__name__)

client = None
db = None
fs_bucket = None


async def connect_to_mongo():
    global client, db, fs_bucket

    if not MONGO_URI:
        raise ValueError("MONGO_URI environment variable is not set! Check your .env file.")

    client = AsyncIOMotorClient(MONGO_URI)
    db = client[DATABASE_NAME]
    fs_bucket = AsyncIOMotorGridFSBucket(db, bucket_name="uploads")
    await client.admin.command("ping")

    if "mongodb+srv" in MONGO_URI:
        logger.info("Connected to MongoDB Atlas (database=%s)", DATABASE_NAME)
    else:
        logger.info("Connected to MongoDB at %s (database=%s)", MONGO_URI, DATABASE_NAME)

    await ensure_indexes(db)


async def close_mongo_connection():
    if client:
        client.close()
        logger.info("MongoDB connection closed")


async def ensure_indexes(database):
    """Create the indexes the application logic relies on."""
    await database.users.create_index("email", unique=True)
    # Backs the duplicate-application check in the apply path
    await database.applications.create_index(
        [("job", ASCENDING), ("applicant", ASCENDING)], unique=True
    )
    await database.applications.create_index([("job", ASCENDING), ("status", ASCENDING)])
    await database.jobs.create_index([("created_by", ASCENDING), ("created_at", DESCENDING)])
    await database.companies.create_index("user_id")


def get_fs_bucket():
    return fs_bucket


def get_db():
    return db
