from collections.abc import Awaitable, Callable

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from src.api.dependencies import (
    get_lifecycle_controller,
    get_listing_detail_use_case,
    get_query_cache,
    get_search_debouncer,
)
from src.api.schemas.listing_responses import (
    CreateListingResponse,
    ListingDetailResponse,
    ListingResponse,
    PaginatedListingsResponse,
    TransitionResponse,
)
from src.application.interfaces.ledger_client import (
    LedgerError,
    LedgerExecuteError,
    SigningUnavailableError,
)
from src.application.lifecycle_controller import ListingLifecycleController
from src.application.services.listing_query_cache import (
    DEFAULT_PAGE_SIZE,
    InvalidPageError,
    ListingQueryCache,
    SortOrder,
)
from src.application.services.media_pipeline import MediaBatchSizeError, MediaUploadError
from src.application.services.search_debouncer import SearchDebouncer
from src.application.use_cases.create_listing import CreateListingInput
from src.application.use_cases.get_listing_detail import GetListingDetail
from src.application.use_cases.transition_listing_state import (
    ListingNotFoundError,
    TransitionListingStateOutput,
)
from src.domain.entities.listing import Listing
from src.domain.entities.media_bundle import ImageUpload
from src.domain.pricing import InvalidPriceError
from src.domain.state_machine.lifecycle_state_machine import TransitionRejectedError

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/listings", tags=["listings"])


def _listing_to_response(listing: Listing) -> ListingResponse:
    return ListingResponse(
        listing_id=listing.listing_id,
        title=listing.title,
        text=listing.text,
        tags=list(listing.tags),
        seller=listing.seller,
        buyer=listing.buyer,
        contact=listing.contact,
        price=listing.price,
        media_ref=listing.media_ref,
        bought=listing.bought,
        shipped=listing.shipped,
        received=listing.received,
        arbitration_requested=listing.arbitration_requested,
        state=listing.state,
    )


def _transition_to_response(output: TransitionListingStateOutput) -> TransitionResponse:
    report = output.media_release
    return TransitionResponse(
        listing_id=output.listing_id,
        event=output.event,
        from_state=output.from_state,
        to_state=output.to_state,
        transaction_hash=output.transaction_hash,
        media_released=report.released if report else [],
        media_release_failed=report.failed if report else [],
    )


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, ListingNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, SigningUnavailableError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    if isinstance(exc, (TransitionRejectedError, InvalidPriceError, MediaBatchSizeError)):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


_HANDLED_ERRORS = (
    ListingNotFoundError,
    TransitionRejectedError,
    InvalidPriceError,
    MediaBatchSizeError,
    MediaUploadError,
    LedgerError,
)


async def _run_transition(
    action: Callable[[int], Awaitable[TransitionListingStateOutput]], listing_id: int
) -> TransitionResponse:
    try:
        output = await action(listing_id)
    except _HANDLED_ERRORS as exc:
        raise _http_error(exc) from exc
    return _transition_to_response(output)


# ---- Read path -------------------------------------------------------------

@router.get("", response_model=PaginatedListingsResponse)
async def list_listings(
    sort: SortOrder = Query(default=SortOrder.NEWEST),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=DEFAULT_PAGE_SIZE),
    search: str | None = Query(default=None),
    cache: ListingQueryCache = Depends(get_query_cache),
    debouncer: SearchDebouncer = Depends(get_search_debouncer),
) -> PaginatedListingsResponse:
    """Page through the cached listings.

    A search term is debounced: requests arriving inside the quiet window all
    wait on the last one, which is the only search sent to the contract.
    """
    if search is not None:
        debouncer.submit(search)
        await debouncer.wait()

    try:
        listings = cache.page(page, page_size, sort)
        total_pages = cache.page_count(page_size)
    except InvalidPageError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))

    return PaginatedListingsResponse(
        listings=[_listing_to_response(l) for l in listings],
        total=len(cache),
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        sort=sort,
    )


@router.post("/refresh", response_model=PaginatedListingsResponse)
async def refresh_listings(
    cache: ListingQueryCache = Depends(get_query_cache),
) -> PaginatedListingsResponse:
    listings = await cache.refresh()
    return PaginatedListingsResponse(
        listings=[_listing_to_response(l) for l in cache.page(1, DEFAULT_PAGE_SIZE)],
        total=len(listings),
        page=1,
        page_size=DEFAULT_PAGE_SIZE,
        total_pages=cache.page_count(DEFAULT_PAGE_SIZE),
        sort=SortOrder.NEWEST,
    )


@router.get("/{listing_id}", response_model=ListingDetailResponse)
async def get_listing(
    listing_id: int,
    use_case: GetListingDetail = Depends(get_listing_detail_use_case),
) -> ListingDetailResponse:
    try:
        detail = await use_case.execute(listing_id)
    except _HANDLED_ERRORS as exc:
        raise _http_error(exc) from exc
    return ListingDetailResponse(
        listing=_listing_to_response(detail.listing),
        image_urls=detail.image_urls,
        allowed_actions=detail.allowed_events,
    )


# ---- Create path -----------------------------------------------------------

@router.post("", status_code=status.HTTP_201_CREATED, response_model=CreateListingResponse)
async def create_listing(
    title: str = Form(...),
    price: str = Form(...),
    text: str = Form(default=""),
    contact: str = Form(default=""),
    tags: str = Form(default=""),
    images: list[UploadFile] = File(default=[]),
    controller: ListingLifecycleController = Depends(get_lifecycle_controller),
) -> CreateListingResponse:
    """Pin the images, bundle them behind a manifest and publish the listing."""
    uploads = [
        ImageUpload(
            filename=image.filename or f"image-{index}",
            content=await image.read(),
            content_type=image.content_type or "application/octet-stream",
        )
        for index, image in enumerate(images)
    ]
    try:
        output = await controller.create(
            CreateListingInput(
                title=title,
                text=text,
                contact=contact,
                price=price,
                tags=tags,
                images=uploads,
            )
        )
    except _HANDLED_ERRORS as exc:
        if isinstance(exc, (LedgerExecuteError, MediaUploadError)):
            logger.error("create_listing_request_failed", title=title, error=str(exc))
        raise _http_error(exc) from exc

    return CreateListingResponse(
        price=output.price,
        media_ref=output.media_ref,
        tags=output.tags,
        transaction_hash=output.transaction_hash,
    )


# ---- Lifecycle transitions -------------------------------------------------

@router.post("/{listing_id}/purchase", response_model=TransitionResponse)
async def purchase_listing(
    listing_id: int,
    controller: ListingLifecycleController = Depends(get_lifecycle_controller),
) -> TransitionResponse:
    return await _run_transition(controller.purchase, listing_id)


@router.post("/{listing_id}/ship", response_model=TransitionResponse)
async def mark_shipped(
    listing_id: int,
    controller: ListingLifecycleController = Depends(get_lifecycle_controller),
) -> TransitionResponse:
    return await _run_transition(controller.mark_shipped, listing_id)


@router.post("/{listing_id}/receive", response_model=TransitionResponse)
async def mark_received(
    listing_id: int,
    controller: ListingLifecycleController = Depends(get_lifecycle_controller),
) -> TransitionResponse:
    return await _run_transition(controller.mark_received, listing_id)


@router.post("/{listing_id}/seller-cancel", response_model=TransitionResponse)
async def seller_cancel_sale(
    listing_id: int,
    controller: ListingLifecycleController = Depends(get_lifecycle_controller),
) -> TransitionResponse:
    return await _run_transition(controller.seller_cancel, listing_id)


@router.post("/{listing_id}/buyer-cancel", response_model=TransitionResponse)
async def cancel_purchase(
    listing_id: int,
    controller: ListingLifecycleController = Depends(get_lifecycle_controller),
) -> TransitionResponse:
    return await _run_transition(controller.buyer_cancel, listing_id)


@router.post("/{listing_id}/arbitration", response_model=TransitionResponse)
async def request_arbitration(
    listing_id: int,
    controller: ListingLifecycleController = Depends(get_lifecycle_controller),
) -> TransitionResponse:
    return await _run_transition(controller.request_arbitration, listing_id)


@router.delete("/{listing_id}", response_model=TransitionResponse)
async def delete_listing(
    listing_id: int,
    controller: ListingLifecycleController = Depends(get_lifecycle_controller),
) -> TransitionResponse:
    return await _run_transition(controller.delete, listing_id)
