# orderdesk/main.py
from contextlib import asynccontextmanager

import uvicorn

from orderdesk.api import create_app
from orderdesk.data.database import Base, engine
from orderdesk.utils.logging import get_logger

# all models must be imported before create_all
from orderdesk.data.models import EmployeeModel, OrderModel, OrderLineModel  # noqa: F401

logger = get_logger(__name__)


def init_db() -> None:
    logger.info("=" * 80)
    logger.info("Initializing database...")
    logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")

    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise

    logger.info("Database tables created")
    logger.info("=" * 80)


@asynccontextmanager
async def lifespan(app):
    init_db()
    yield


app = create_app(lifespan=lifespan)

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
