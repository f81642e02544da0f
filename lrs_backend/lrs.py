"""The Learning Record Store service, composed from its capability services."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from .auth.credentials import KeyPair
from .auth.scopes import Scope, encode_scope
from .config import Settings
from .db.models import Base
from .db.session import make_engine, make_session_factory, transaction
from .logging_utils import get_logger
from .repositories.credential_repo import SQLAlchemyCredentialRepository
from .services.admin import AdminService
from .services.agents import AgentInfoService
from .services.auth import AuthService
from .services.documents import DocumentService
from .services.statements import StatementService

logger = get_logger(__name__)

XAPI_VERSIONS = ["1.0.0", "1.0.1", "1.0.2", "1.0.3"]


class LearningRecordStore(
    StatementService,
    DocumentService,
    AgentInfoService,
    AuthService,
    AdminService,
):
    """One service implementing every LRS capability over a shared session factory."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings,
        engine: AsyncEngine | None = None,
    ):
        super().__init__(session_factory, settings)
        self._engine = engine

    @classmethod
    def from_settings(cls, settings: Settings) -> LearningRecordStore:
        engine = make_engine(settings.database_url, echo=settings.database_echo)
        return cls(make_session_factory(engine), settings, engine=engine)

    async def start(self) -> None:
        """Create tables and seed the default credential when one is configured."""
        if self._engine is not None:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        if self._settings.has_default_credentials:
            await self._insert_default_credentials(
                KeyPair(self._settings.api_key_default, self._settings.api_secret_default)
            )
        logger.info("Starting new LRS")

    async def stop(self) -> None:
        logger.info("Stopping LRS...")
        if self._engine is not None:
            await self._engine.dispose()

    async def _insert_default_credentials(self, key_pair: KeyPair) -> None:
        async with transaction(self._sf) as session:
            credentials = SQLAlchemyCredentialRepository(session)
            if await credentials.get(key_pair) is None:
                await credentials.create(None, key_pair)
                await credentials.insert_scopes(key_pair, [encode_scope(Scope.ALL)])
                logger.info("Seeded default credentials", data={"api_key": key_pair.api_key})

    def get_about(self) -> dict:
        return {"version": list(XAPI_VERSIONS)}
