"""Create the storage tables. Same as starting the API with DB_AUTO_MIGRATE enabled."""
import asyncio
import logging

from storage_service.database import engine, init_db

logging.basicConfig(level=logging.INFO)


async def main():
    try:
        await init_db()
    finally:
        await engine.dispose()
    print("Storage tables created successfully!")


if __name__ == "__main__":
    asyncio.run(main())
