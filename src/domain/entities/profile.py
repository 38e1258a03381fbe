from dataclasses import dataclass


@dataclass(frozen=True)
class Profile:
    """Seller / buyer reputation record held by the contract, keyed by owner address."""

    address: str
    profile_name: str
    transaction_count: int = 0
    ratings: int = 0
    rating_count: int = 0
    reported_average: float | None = None

    @property
    def average_rating(self) -> float:
        if self.reported_average is not None:
            return self.reported_average
        if self.rating_count == 0:
            return 0.0
        return self.ratings / self.rating_count
