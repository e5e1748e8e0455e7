from typing import Dict, List, Optional

from models import ClientAccount, ErrorRecord, LedgerEntry


class StateManager:
    """
    Owns all state for a single run: client accounts, the ledger of accepted
    deposits and withdrawals, and the errors collected along the way.
    """

    def __init__(self):
        # Insertion order is the order of first appearance.
        self._accounts: Dict[int, ClientAccount] = {}
        self._ledger: Dict[int, LedgerEntry] = {}
        self._errors: List[ErrorRecord] = []

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = self._accounts[client_id] = ClientAccount(client_id=client_id)
        return account

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def store_entry(self, entry: LedgerEntry) -> None:
        """Store accepted transaction for future dispute lookups."""
        self._ledger[entry.transaction_id] = entry

    def get_entry(self, transaction_id: int) -> Optional[LedgerEntry]:
        """Retrieve stored ledger entry by ID."""
        return self._ledger.get(transaction_id)

    def has_entry(self, transaction_id: int) -> bool:
        return transaction_id in self._ledger

    def record_error(self, error: ErrorRecord) -> None:
        self._errors.append(error)

    def get_all_accounts(self) -> List[ClientAccount]:
        """Return all accounts in order of first appearance (for final output)."""
        return list(self._accounts.values())

    def get_errors(self) -> List[ErrorRecord]:
        return list(self._errors)
