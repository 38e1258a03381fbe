from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    address: str
    profile_name: str
    transaction_count: int
    ratings: int
    rating_count: int
    average_rating: float


class CreateProfileRequest(BaseModel):
    profile_name: str = Field(min_length=1, max_length=64)


class ProfileChangeResponse(BaseModel):
    address: str
    transaction_hash: str | None = None
