from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import (
    get_create_profile_use_case,
    get_delete_profile_use_case,
    get_profile_use_case,
)
from src.api.schemas.profile_schemas import (
    CreateProfileRequest,
    ProfileChangeResponse,
    ProfileResponse,
)
from src.application.interfaces.ledger_client import LedgerError, SigningUnavailableError
from src.application.use_cases.manage_profile import (
    CreateProfile,
    DeleteProfile,
    GetProfile,
    InvalidProfileNameError,
    ProfileChangeOutput,
)

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _change_to_response(output: ProfileChangeOutput) -> ProfileChangeResponse:
    return ProfileChangeResponse(address=output.address, transaction_hash=output.transaction_hash)


@router.get("/{address}", response_model=ProfileResponse)
async def get_profile(
    address: str,
    use_case: GetProfile = Depends(get_profile_use_case),
) -> ProfileResponse:
    profile = await use_case.execute(address)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found.")
    return ProfileResponse(
        address=profile.address,
        profile_name=profile.profile_name,
        transaction_count=profile.transaction_count,
        ratings=profile.ratings,
        rating_count=profile.rating_count,
        average_rating=profile.average_rating,
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ProfileChangeResponse)
async def create_profile(
    body: CreateProfileRequest,
    use_case: CreateProfile = Depends(get_create_profile_use_case),
) -> ProfileChangeResponse:
    try:
        output = await use_case.execute(body.profile_name)
    except InvalidProfileNameError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except SigningUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    except LedgerError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return _change_to_response(output)


@router.delete("", response_model=ProfileChangeResponse)
async def delete_profile(
    use_case: DeleteProfile = Depends(get_delete_profile_use_case),
) -> ProfileChangeResponse:
    try:
        output = await use_case.execute()
    except SigningUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    except LedgerError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return _change_to_response(output)
