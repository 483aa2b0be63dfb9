from motor.motor_asyncio import AsyncIOMotorClient
from dotenv import load_dotenv
import os
import logging
from pathlib import Path

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

logger = logging.getLogger(__name__)


class Database:
    client: AsyncIOMotorClient = None
    db = None

    async def connect(self):
        try:
            mongo_url = os.environ['MONGO_URL']
            self.client = AsyncIOMotorClient(mongo_url)
            self.db = self.client[os.environ['DB_NAME']]
            # Verify connection
            await self.db.command("ping")
            logger.info(f"Connected to MongoDB: {os.environ['DB_NAME']}")

            await self._create_indexes()
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    async def close(self):
        if self.client:
            self.client.close()
            logger.info("MongoDB connection closed")

    def get_db(self):
        return self.db

    async def _create_indexes(self):
        """Create MongoDB indexes for tenant-scoped lookups."""
        try:
            # Users - email is the login key
            try:
                await self.db.users.create_index("email", unique=True)
            except Exception:
                pass  # Index may already exist with different options
            await self.db.users.create_index("user_id", unique=True)
            await self.db.users.create_index("organization_id")
            await self.db.users.create_index([("role", 1), ("active", 1)])

            # Organizations
            await self.db.organizations.create_index("org_id", unique=True)
            await self.db.organizations.create_index("name")

            # Leads - duplicate detection looks up email/phone within an organization
            await self.db.leads.create_index("lead_id", unique=True)
            await self.db.leads.create_index([("organization_id", 1), ("created_at", -1)])
            await self.db.leads.create_index([("organization_id", 1), ("email", 1)])
            await self.db.leads.create_index([("organization_id", 1), ("phone", 1)])
            await self.db.leads.create_index("created_by")

            # Audit log
            await self.db.audit_logs.create_index([("resource_id", 1), ("timestamp", -1)])
            await self.db.audit_logs.create_index([("action", 1), ("timestamp", -1)])
            logger.info("MongoDB indexes created/verified")
        except Exception as e:
            # Indexes may already exist, log but don't fail
            logger.warning(f"Index creation note: {e}")


database = Database()
