from dataclasses import dataclass

from src.application.interfaces.ledger_client import LedgerClient, SigningUnavailableError


@dataclass(frozen=True)
class WalletSession:
    """
    The connected wallet: the ledger client, the contract it talks to, and the
    address that signs. Passed explicitly to everything that calls the ledger.
    """

    ledger: LedgerClient
    contract_address: str
    address: str = ""

    @property
    def is_connected(self) -> bool:
        return bool(self.address)

    def require_signer(self) -> str:
        """Return the signing address, or raise before any remote call is made."""
        if not self.address:
            raise SigningUnavailableError("No wallet connected; connect a signing identity first.")
        return self.address
