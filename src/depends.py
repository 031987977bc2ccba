from contextlib import asynccontextmanager

from fastapi import Depends
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.http_dispatcher import HttpDirectiveDispatcher
from src.adapter.services.relay_dispatcher import BrowserRelayDispatcher
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.client_registry import ClientRegistry
from src.app.services.credential_verifier import CredentialVerifier
from src.app.services.directive_dispatcher import IDirectiveDispatcher
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.session_store import SessionStore
from src.app.services.token_issuer import TokenIssuer
from src.app.services.unit_of_work import UnitOfWork

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


def build_directive_dispatcher(config) -> IDirectiveDispatcher:
    if config.PROPAGATION_MODE == "http":
        return HttpDirectiveDispatcher()
    return BrowserRelayDispatcher()


# Process-wide: the key ring must be shared by every request and the rotation timer
token_issuer = TokenIssuer.from_config(ApplicationConfig)
directive_dispatcher = build_directive_dispatcher(ApplicationConfig)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@asynccontextmanager
async def unit_of_work_scope():
    """Unit of work outside a request (background delivery, timers)."""
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_unit_of_work_factory():
    return unit_of_work_scope


def get_token_issuer() -> TokenIssuer:
    return token_issuer


def get_directive_dispatcher() -> IDirectiveDispatcher:
    return directive_dispatcher


def build_session_store(uow: UnitOfWork, issuer: TokenIssuer) -> SessionStore:
    return SessionStore(uow, issuer, clock=issuer.clock)


def build_propagation_coordinator(
    uow: UnitOfWork, dispatcher: IDirectiveDispatcher, issuer: TokenIssuer
) -> PropagationCoordinator:
    return PropagationCoordinator.from_config(
        uow, dispatcher, issuer, ApplicationConfig, clock=issuer.clock
    )


def get_session_store(
    uow: UnitOfWork = Depends(get_unit_of_work),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> SessionStore:
    return build_session_store(uow, issuer)


def get_client_registry(
    uow: UnitOfWork = Depends(get_unit_of_work),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> ClientRegistry:
    return ClientRegistry(uow, ApplicationConfig, clock=issuer.clock)


def get_credential_verifier(
    uow: UnitOfWork = Depends(get_unit_of_work),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> CredentialVerifier:
    return CredentialVerifier(uow, issuer, clock=issuer.clock)


def get_propagation_coordinator(
    uow: UnitOfWork = Depends(get_unit_of_work),
    dispatcher: IDirectiveDispatcher = Depends(get_directive_dispatcher),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> PropagationCoordinator:
    return build_propagation_coordinator(uow, dispatcher, issuer)
