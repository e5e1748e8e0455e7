import logging
from typing import Optional

from models import (
    ClientAccount,
    DisputeState,
    ErrorCategory,
    ErrorRecord,
    LedgerEntry,
    ProcessingResult,
    Transaction,
    TransactionType,
)
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions against state, one at a time, in arrival order.

    Every rejection is recorded on the state as an ErrorRecord and reported
    as ProcessingResult.REJECTED; account and ledger state are left untouched.
    Only LedgerInvariantError escapes, and only for engine bugs.
    """

    def __init__(self, state: StateManager):
        self._state = state

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: Applied to the account and ledger
            REJECTED: Refused (bad amount, duplicate id, insufficient funds,
                locked account, bad dispute reference); an error was recorded
        """
        account = self._state.get_or_create_account(transaction.client_id)

        if account.locked:
            return self._reject(transaction, ErrorCategory.VALIDATION, "account is locked")

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)
            case _:
                raise ValueError(f"unhandled transaction type {transaction.transaction_type!r}")

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        rejection = self._check_new_movement(transaction)
        if rejection is not None:
            return rejection

        account.credit(transaction.amount)
        self._store(transaction)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        rejection = self._check_new_movement(transaction)
        if rejection is not None:
            return rejection

        if account.available < transaction.amount:
            return self._reject(
                transaction,
                ErrorCategory.VALIDATION,
                f"insufficient funds (available {account.available}, requested {transaction.amount})",
            )

        account.debit(transaction.amount)
        self._store(transaction)
        return ProcessingResult.SUCCESS

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        entry = self._lookup(transaction, DisputeState.CLEAN)
        if entry is None:
            return ProcessingResult.REJECTED

        # Withdrawals are disputed the same way as deposits: the amount moves
        # from available to held.
        account.hold(entry.amount)
        entry.dispute_state = DisputeState.DISPUTED
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        entry = self._lookup(transaction, DisputeState.DISPUTED)
        if entry is None:
            return ProcessingResult.REJECTED

        account.release_hold(entry.amount)
        entry.dispute_state = DisputeState.RESOLVED
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        entry = self._lookup(transaction, DisputeState.DISPUTED)
        if entry is None:
            return ProcessingResult.REJECTED

        account.remove_held(entry.amount)
        account.lock()
        entry.dispute_state = DisputeState.CHARGED_BACK
        logger.info(f"Chargeback for tx {transaction.transaction_id}: client {account.client_id} locked")
        return ProcessingResult.SUCCESS

    def _check_new_movement(self, transaction: Transaction) -> Optional[ProcessingResult]:
        """Checks shared by deposits and withdrawals; returns a rejection or None."""
        if transaction.amount is None or transaction.amount <= 0:
            return self._reject(
                transaction, ErrorCategory.VALIDATION, f"amount must be positive (got {transaction.amount})"
            )

        if self._state.has_entry(transaction.transaction_id):
            return self._reject(transaction, ErrorCategory.VALIDATION, "duplicate transaction id")

        return None

    def _lookup(self, transaction: Transaction, expected: DisputeState) -> Optional[LedgerEntry]:
        """
        Find the ledger entry a dispute, resolve or chargeback refers to.
        Records a reference error and returns None when it cannot be used.
        """
        entry = self._state.get_entry(transaction.transaction_id)

        if entry is None:
            self._reject(transaction, ErrorCategory.REFERENCE, "referenced transaction not found")
            return None

        if entry.client_id != transaction.client_id:
            self._reject(
                transaction,
                ErrorCategory.REFERENCE,
                f"referenced transaction belongs to client {entry.client_id}",
            )
            return None

        if entry.dispute_state != expected:
            self._reject(
                transaction,
                ErrorCategory.REFERENCE,
                f"referenced transaction is {entry.dispute_state.value}, expected {expected.value}",
            )
            return None

        return entry

    def _store(self, transaction: Transaction) -> None:
        self._state.store_entry(
            LedgerEntry(
                transaction_id=transaction.transaction_id,
                client_id=transaction.client_id,
                transaction_type=transaction.transaction_type,
                amount=transaction.amount,
            )
        )

    def _reject(self, transaction: Transaction, category: ErrorCategory, message: str) -> ProcessingResult:
        logger.info(
            f"{transaction.transaction_type.value.capitalize()} tx {transaction.transaction_id} "
            f"(client {transaction.client_id}): {message}"
        )
        self._state.record_error(
            ErrorRecord(
                category=category,
                message=message,
                line=transaction.line,
                transaction_type=transaction.transaction_type,
                client_id=transaction.client_id,
                transaction_id=transaction.transaction_id,
            )
        )
        return ProcessingResult.REJECTED
