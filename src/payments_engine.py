import logging
from typing import Iterable, List, Optional, Union

from csv_source import read_transactions
from models import (
    ClientAccount,
    ErrorCategory,
    ErrorRecord,
    ParseFailure,
    ProcessingResult,
    ProcessingStats,
    Transaction,
)
from state_manager import StateManager
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Folds a stream of records into account state, strictly in arrival order.

    Malformed and rejected records are collected as ErrorRecords and never
    stop the run. LedgerInvariantError propagates to the caller.
    """

    def __init__(self, state: Optional[StateManager] = None):
        self._state = state if state is not None else StateManager()
        self._processor = TransactionProcessor(self._state)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> List[ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")
        return self.process_records(read_transactions(filepath))

    def process_records(self, records: Iterable[Union[Transaction, ParseFailure]]) -> List[ClientAccount]:
        """Apply every record of a single forward-only pass over ``records``."""
        for record in records:
            self.apply(record)

        logger.info(f"Processing complete. {self._stats}")
        return self.accounts()

    def apply(self, record: Union[Transaction, ParseFailure]) -> None:
        if isinstance(record, ParseFailure):
            self._stats.record_malformed()
            message = f"{record.reason} ({record.raw!r})" if record.raw else record.reason
            self._state.record_error(ErrorRecord(category=ErrorCategory.PARSE, message=message, line=record.line))
            return

        result = self._processor.process_transaction(record)

        if result == ProcessingResult.SUCCESS:
            self._stats.record_success()
        elif result == ProcessingResult.REJECTED:
            self._stats.record_rejection()

    def accounts(self) -> List[ClientAccount]:
        """Final accounts, in order of first appearance."""
        return self._state.get_all_accounts()

    def errors(self) -> List[ErrorRecord]:
        return self._state.get_errors()
