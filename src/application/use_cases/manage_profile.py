from dataclasses import dataclass

import structlog

from src.application.interfaces.ledger_client import LedgerExecuteError, LedgerQueryError
from src.application.schemas.ledger_messages import (
    create_profile_msg,
    delete_profile_msg,
    profile_from_response,
    profile_query,
)
from src.application.session import WalletSession
from src.domain.entities.profile import Profile

logger = structlog.get_logger(__name__)


class InvalidProfileNameError(ValueError):
    pass


@dataclass
class ProfileChangeOutput:
    address: str
    transaction_hash: str | None = None


class GetProfile:
    """Use case: Look up the profile owned by an address. Read failures yield None."""

    def __init__(self, session: WalletSession) -> None:
        self._session = session

    async def execute(self, address: str) -> Profile | None:
        try:
            payload = await self._session.ledger.query(
                self._session.contract_address, profile_query(address)
            )
            return profile_from_response(payload, address)
        except LedgerQueryError as exc:
            logger.error("profile_fetch_failed", address=address, error=str(exc))
            return None


class CreateProfile:
    def __init__(self, session: WalletSession) -> None:
        self._session = session

    async def execute(self, profile_name: str) -> ProfileChangeOutput:
        owner = self._session.require_signer()
        name = (profile_name or "").strip()
        if not name:
            raise InvalidProfileNameError("Profile name is required.")

        try:
            result = await self._session.ledger.execute(
                owner, self._session.contract_address, create_profile_msg(name)
            )
        except LedgerExecuteError as exc:
            logger.error("profile_create_failed", address=owner, error=str(exc))
            raise

        logger.info("profile_created", address=owner, profile_name=name)
        return ProfileChangeOutput(address=owner, transaction_hash=result.transaction_hash)


class DeleteProfile:
    def __init__(self, session: WalletSession) -> None:
        self._session = session

    async def execute(self) -> ProfileChangeOutput:
        owner = self._session.require_signer()
        try:
            result = await self._session.ledger.execute(
                owner, self._session.contract_address, delete_profile_msg()
            )
        except LedgerExecuteError as exc:
            logger.error("profile_delete_failed", address=owner, error=str(exc))
            raise

        logger.info("profile_deleted", address=owner)
        return ProfileChangeOutput(address=owner, transaction_hash=result.transaction_hash)
