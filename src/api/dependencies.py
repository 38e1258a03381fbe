"""
FastAPI dependency injection wiring.

The wallet session and the listing cache live for the whole process; use
cases are built per request with their collaborators injected, keeping the
route handlers thin.
"""
from functools import lru_cache

from fastapi import Depends

from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.ledger_client import LedgerClient
from src.application.lifecycle_controller import ListingLifecycleController
from src.application.services.listing_query_cache import ListingQueryCache
from src.application.services.media_pipeline import MediaPipeline
from src.application.services.search_debouncer import SearchDebouncer
from src.application.session import WalletSession
from src.application.use_cases.get_listing_detail import GetListingDetail
from src.application.use_cases.manage_profile import CreateProfile, DeleteProfile, GetProfile
from src.config import settings
from src.infrastructure.external_services.cosmwasm_ledger_client import CosmWasmLedgerClient
from src.infrastructure.external_services.pinning_gateway_client import PinningGatewayClient
from src.infrastructure.external_services.signing_agent_client import SigningAgentClient
from src.infrastructure.messaging.noop_publisher import NoOpEventPublisher
from src.infrastructure.messaging.rabbitmq_publisher import RabbitMQPublisher


# ---- Process-wide singletons ----------------------------------------------

@lru_cache
def get_ledger_client() -> LedgerClient:
    return CosmWasmLedgerClient(signer=SigningAgentClient())


@lru_cache
def get_wallet_session() -> WalletSession:
    return WalletSession(
        ledger=get_ledger_client(),
        contract_address=settings.contract_address,
        address=settings.wallet_address,
    )


@lru_cache
def get_query_cache() -> ListingQueryCache:
    return ListingQueryCache(get_wallet_session(), limit=settings.listing_query_limit)


@lru_cache
def get_search_debouncer() -> SearchDebouncer:
    return SearchDebouncer(get_query_cache(), delay_seconds=settings.search_debounce_seconds)


@lru_cache
def get_media_pipeline() -> MediaPipeline:
    return MediaPipeline(PinningGatewayClient(), settings.media_retrieval_base_url)


def get_event_publisher() -> EventPublisher:
    if settings.rabbitmq_url:
        return RabbitMQPublisher(settings.rabbitmq_url)
    return NoOpEventPublisher()


# ---- Use-case dependencies -------------------------------------------------

def get_lifecycle_controller(
    session: WalletSession = Depends(get_wallet_session),
    cache: ListingQueryCache = Depends(get_query_cache),
    media_pipeline: MediaPipeline = Depends(get_media_pipeline),
    event_publisher: EventPublisher = Depends(get_event_publisher),
) -> ListingLifecycleController:
    return ListingLifecycleController(
        session,
        cache,
        media_pipeline,
        event_publisher,
        denom=settings.denom,
        denomination_factor=settings.denomination_factor,
    )


def get_listing_detail_use_case(
    session: WalletSession = Depends(get_wallet_session),
    cache: ListingQueryCache = Depends(get_query_cache),
    media_pipeline: MediaPipeline = Depends(get_media_pipeline),
) -> GetListingDetail:
    return GetListingDetail(session, cache, media_pipeline)


def get_profile_use_case(session: WalletSession = Depends(get_wallet_session)) -> GetProfile:
    return GetProfile(session)


def get_create_profile_use_case(
    session: WalletSession = Depends(get_wallet_session),
) -> CreateProfile:
    return CreateProfile(session)


def get_delete_profile_use_case(
    session: WalletSession = Depends(get_wallet_session),
) -> DeleteProfile:
    return DeleteProfile(session)
