"""
Integration tests for the API layer.

The ledger is replaced by an AsyncMock behind a real ListingQueryCache; the
lifecycle controller and the profile use cases are swapped out through
dependency overrides. The app lifespan is not entered, so nothing reaches the
network.
"""
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import (
    get_create_profile_use_case,
    get_lifecycle_controller,
    get_listing_detail_use_case,
    get_profile_use_case,
    get_query_cache,
    get_search_debouncer,
    get_wallet_session,
)
from src.api.main import app
from src.application.interfaces.ledger_client import (
    LedgerExecuteError,
    LedgerQueryError,
    SigningUnavailableError,
)
from src.application.services.listing_query_cache import ListingQueryCache
from src.application.services.media_pipeline import MediaBatchSizeError, ReleaseReport
from src.application.services.search_debouncer import SearchDebouncer
from src.application.session import WalletSession
from src.application.use_cases.create_listing import CreateListingOutput
from src.application.use_cases.get_listing_detail import GetListingDetailOutput
from src.application.use_cases.manage_profile import ProfileChangeOutput
from src.application.use_cases.transition_listing_state import (
    ListingNotFoundError,
    TransitionListingStateOutput,
)
from src.domain.entities.listing import Listing
from src.domain.entities.profile import Profile
from src.domain.enums.listing_event import ListingEvent, Role
from src.domain.enums.listing_state import ListingState
from src.domain.state_machine.lifecycle_state_machine import ActorNotPermittedError

CONTRACT = "cosmos1contract"


def _wire_listing(listing_id: int, title: str, price: int) -> dict[str, Any]:
    return {
        "listing_id": listing_id,
        "listing_title": title,
        "external_id": "",
        "text": "",
        "tags": ["shoes"],
        "seller": "cosmos1seller",
        "contact": "",
        "price": price,
        "buyer": None,
        "bought": False,
        "shipped": False,
        "received": False,
        "arbitration_requested": False,
    }


def _make_session(query: AsyncMock | None = None, address: str = "cosmos1buyer") -> WalletSession:
    ledger = MagicMock()
    ledger.query = query or AsyncMock(
        return_value={
            "listings": [
                _wire_listing(1, "Red Boots", 3_000_000),
                _wire_listing(2, "Blue Hat", 1_000_000),
            ]
        }
    )
    ledger.execute = AsyncMock()
    return WalletSession(ledger=ledger, contract_address=CONTRACT, address=address)


def _make_controller() -> MagicMock:
    controller = MagicMock()
    for action in (
        "create",
        "purchase",
        "delete",
        "mark_shipped",
        "seller_cancel",
        "buyer_cancel",
        "mark_received",
        "request_arbitration",
    ):
        setattr(controller, action, AsyncMock())
    return controller


@pytest.fixture()
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def cache(client: TestClient) -> ListingQueryCache:
    cache = ListingQueryCache(_make_session())
    app.dependency_overrides[get_query_cache] = lambda: cache
    app.dependency_overrides[get_search_debouncer] = lambda: SearchDebouncer(cache, delay_seconds=0)
    return cache


class TestHealth:
    def test_healthy_when_ledger_answers(self, client: TestClient) -> None:
        app.dependency_overrides[get_wallet_session] = lambda: _make_session()

        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["wallet_connected"] is True

    def test_degraded_when_ledger_fails(self, client: TestClient) -> None:
        session = _make_session(AsyncMock(side_effect=LedgerQueryError("LCD down")))
        app.dependency_overrides[get_wallet_session] = lambda: session

        data = client.get("/health").json()

        assert data["status"] == "degraded"


class TestListListings:
    def test_refresh_then_page(self, client: TestClient, cache: ListingQueryCache) -> None:
        assert client.post("/listings/refresh").status_code == 200

        response = client.get("/listings", params={"sort": "price_asc"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["total_pages"] == 1
        assert [l["title"] for l in data["listings"]] == ["Blue Hat", "Red Boots"]
        assert data["listings"][0]["state"] == "ACTIVE"

    def test_search_goes_to_the_contract(self, client: TestClient) -> None:
        query = AsyncMock(return_value={"listings": [_wire_listing(1, "Red Boots", 3_000_000)]})
        search_cache = ListingQueryCache(_make_session(query))
        app.dependency_overrides[get_query_cache] = lambda: search_cache
        app.dependency_overrides[get_search_debouncer] = lambda: SearchDebouncer(
            search_cache, delay_seconds=0
        )

        response = client.get("/listings", params={"search": "boots"})

        assert response.status_code == 200
        assert response.json()["total"] == 1
        query.assert_awaited_once_with(
            CONTRACT, {"search_listings_by_title": {"title": "boots", "limit": 50}}
        )

    def test_unsupported_page_size(self, client: TestClient, cache: ListingQueryCache) -> None:
        response = client.get("/listings", params={"page_size": 10})
        assert response.status_code == 422

    def test_unknown_sort_order(self, client: TestClient, cache: ListingQueryCache) -> None:
        response = client.get("/listings", params={"sort": "cheapest"})
        assert response.status_code == 422


class TestListingDetail:
    def test_returns_detail(self, client: TestClient) -> None:
        use_case = MagicMock()
        use_case.execute = AsyncMock(
            return_value=GetListingDetailOutput(
                listing=Listing(listing_id=4, title="Red Boots", seller="cosmos1seller", price=5),
                image_urls=["https://gw/ipfs/QmA"],
                allowed_events=[ListingEvent.PURCHASE],
            )
        )
        app.dependency_overrides[get_listing_detail_use_case] = lambda: use_case

        response = client.get("/listings/4")

        assert response.status_code == 200
        data = response.json()
        assert data["listing"]["listing_id"] == 4
        assert data["image_urls"] == ["https://gw/ipfs/QmA"]
        assert data["allowed_actions"] == ["purchase"]

    def test_returns_404_if_not_found(self, client: TestClient) -> None:
        use_case = MagicMock()
        use_case.execute = AsyncMock(side_effect=ListingNotFoundError(4))
        app.dependency_overrides[get_listing_detail_use_case] = lambda: use_case

        assert client.get("/listings/4").status_code == 404


class TestCreateListing:
    def test_multipart_create(self, client: TestClient) -> None:
        controller = _make_controller()
        controller.create.return_value = CreateListingOutput(
            price=2_500_000,
            media_ref="https://gw/ipfs/QmManifest",
            tags=["boots"],
            transaction_hash="TX1",
        )
        app.dependency_overrides[get_lifecycle_controller] = lambda: controller

        response = client.post(
            "/listings",
            data={"title": "Red Boots", "price": "2.5", "tags": "boots"},
            files=[("images", ("a.png", b"png-bytes", "image/png"))],
        )

        assert response.status_code == 201
        assert response.json()["price"] == 2_500_000
        input_data = controller.create.call_args.args[0]
        assert input_data.images[0].content == b"png-bytes"
        assert input_data.images[0].content_type == "image/png"

    def test_too_many_images_is_422(self, client: TestClient) -> None:
        controller = _make_controller()
        controller.create.side_effect = MediaBatchSizeError(6)
        app.dependency_overrides[get_lifecycle_controller] = lambda: controller

        response = client.post("/listings", data={"title": "Red Boots", "price": "1"})

        assert response.status_code == 422

    def test_ledger_failure_is_502(self, client: TestClient) -> None:
        controller = _make_controller()
        controller.create.side_effect = LedgerExecuteError("out of gas")
        app.dependency_overrides[get_lifecycle_controller] = lambda: controller

        response = client.post("/listings", data={"title": "Red Boots", "price": "1"})

        assert response.status_code == 502


class TestTransitions:
    def test_mark_received_reports_media_release(self, client: TestClient) -> None:
        controller = _make_controller()
        controller.mark_received.return_value = TransitionListingStateOutput(
            listing_id=1,
            event=ListingEvent.MARK_RECEIVED,
            from_state=ListingState.SHIPPED,
            to_state=ListingState.RECEIVED,
            transaction_hash="TX9",
            media_release=ReleaseReport(
                manifest_address="https://gw/ipfs/QmM", released=["QmM"], failed=["QmA"]
            ),
        )
        app.dependency_overrides[get_lifecycle_controller] = lambda: controller

        response = client.post("/listings/1/receive")

        assert response.status_code == 200
        data = response.json()
        assert data["to_state"] == "RECEIVED"
        assert data["media_released"] == ["QmM"]
        assert data["media_release_failed"] == ["QmA"]

    def test_delete_route(self, client: TestClient) -> None:
        controller = _make_controller()
        controller.delete.return_value = TransitionListingStateOutput(
            listing_id=1,
            event=ListingEvent.DELETE,
            from_state=ListingState.ACTIVE,
            to_state=ListingState.DELETED,
        )
        app.dependency_overrides[get_lifecycle_controller] = lambda: controller

        assert client.delete("/listings/1").status_code == 200
        controller.delete.assert_awaited_once_with(1)

    def test_rejected_transition_is_422(self, client: TestClient) -> None:
        controller = _make_controller()
        controller.purchase.side_effect = ActorNotPermittedError(
            ListingEvent.PURCHASE, Role.SELLER, "cosmos1seller"
        )
        app.dependency_overrides[get_lifecycle_controller] = lambda: controller

        assert client.post("/listings/1/purchase").status_code == 422

    def test_no_wallet_is_401(self, client: TestClient) -> None:
        controller = _make_controller()
        controller.mark_shipped.side_effect = SigningUnavailableError("no wallet")
        app.dependency_overrides[get_lifecycle_controller] = lambda: controller

        assert client.post("/listings/1/ship").status_code == 401

    def test_unknown_listing_is_404(self, client: TestClient) -> None:
        controller = _make_controller()
        controller.request_arbitration.side_effect = ListingNotFoundError(1)
        app.dependency_overrides[get_lifecycle_controller] = lambda: controller

        assert client.post("/listings/1/arbitration").status_code == 404


class TestProfiles:
    def test_get_profile(self, client: TestClient) -> None:
        use_case = MagicMock()
        use_case.execute = AsyncMock(
            return_value=Profile(address="cosmos1a", profile_name="alice", ratings=9, rating_count=2)
        )
        app.dependency_overrides[get_profile_use_case] = lambda: use_case

        response = client.get("/profiles/cosmos1a")

        assert response.status_code == 200
        assert response.json()["average_rating"] == 4.5

    def test_missing_profile_is_404(self, client: TestClient) -> None:
        use_case = MagicMock()
        use_case.execute = AsyncMock(return_value=None)
        app.dependency_overrides[get_profile_use_case] = lambda: use_case

        assert client.get("/profiles/cosmos1a").status_code == 404

    def test_create_profile(self, client: TestClient) -> None:
        use_case = MagicMock()
        use_case.execute = AsyncMock(
            return_value=ProfileChangeOutput(address="cosmos1a", transaction_hash="TX1")
        )
        app.dependency_overrides[get_create_profile_use_case] = lambda: use_case

        response = client.post("/profiles", json={"profile_name": "alice"})

        assert response.status_code == 201
        use_case.execute.assert_awaited_once_with("alice")

    def test_empty_profile_name_is_422(self, client: TestClient) -> None:
        assert client.post("/profiles", json={"profile_name": ""}).status_code == 422
