"""
Repositories.

build_repository() is the single place the storage backend is chosen.
"""

from agentledger.config import Settings
from agentledger.db.engine import create_engine, create_session_factory, init_db
from agentledger.db.repositories.base import FraudRepository
from agentledger.db.repositories.memory import InMemoryRepository
from agentledger.db.repositories.sql import SqlRepository

__all__ = [
    "FraudRepository",
    "InMemoryRepository",
    "SqlRepository",
    "build_repository",
]


async def build_repository(settings: Settings) -> FraudRepository:
    backend = settings.storage_backend.lower()
    if backend == "memory":
        return InMemoryRepository()
    if backend == "sql":
        engine = create_engine(settings)
        await init_db(engine)
        return SqlRepository(create_session_factory(engine), engine=engine)
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.storage_backend!r}")
