from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

from errors import ArithmeticOverflowError, LedgerInvariantError

AMOUNT_PLACES = 4
AMOUNT_QUANTUM = Decimal(1).scaleb(-AMOUNT_PLACES)
# Signed 64-bit fixed point with four fractional digits.
MAX_AMOUNT = Decimal(2**63 - 1).scaleb(-AMOUNT_PLACES)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def moves_funds(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class DisputeState(Enum):
    CLEAN = "clean"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"

    @property
    def is_terminal(self) -> bool:
        return self in (DisputeState.RESOLVED, DisputeState.CHARGED_BACK)


class ProcessingResult(Enum):
    SUCCESS = "success"
    REJECTED = "rejected"


class ErrorCategory(Enum):
    PARSE = "parse"
    VALIDATION = "validation"
    REFERENCE = "reference"


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None
    line: Optional[int] = field(default=None, compare=False)

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class ParseFailure:
    """A row the record source could not turn into a Transaction."""

    line: int
    raw: str
    reason: str


@dataclass
class LedgerEntry:
    """An accepted deposit or withdrawal that later records may dispute."""

    transaction_id: int
    client_id: int
    transaction_type: TransactionType
    amount: Decimal
    dispute_state: DisputeState = DisputeState.CLEAN


@dataclass(frozen=True)
class ErrorRecord:
    category: ErrorCategory
    message: str
    line: Optional[int] = None
    transaction_type: Optional[TransactionType] = None
    client_id: Optional[int] = None
    transaction_id: Optional[int] = None

    @property
    def context(self) -> str:
        if self.transaction_type is None:
            return f"{self.category.value} error"
        return f"{self.transaction_type.value} client={self.client_id} tx={self.transaction_id}"

    def __str__(self) -> str:
        where = f"line {self.line}" if self.line is not None else "line ?"
        return f"{where}: {self.context}: {self.message}"


def _checked(value: Decimal) -> Decimal:
    if abs(value) > MAX_AMOUNT:
        raise ArithmeticOverflowError(f"balance {value} exceeds fixed-point range")
    return value


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available = _checked(self.available + amount)
        self._check_invariants()

    def debit(self, amount: Decimal) -> None:
        self.available = _checked(self.available - amount)
        self._check_invariants()

    def hold(self, amount: Decimal) -> None:
        self.available = _checked(self.available - amount)
        self.held = _checked(self.held + amount)
        self._check_invariants()

    def release_hold(self, amount: Decimal) -> None:
        self.held = _checked(self.held - amount)
        self.available = _checked(self.available + amount)
        self._check_invariants()

    def remove_held(self, amount: Decimal) -> None:
        self.held = _checked(self.held - amount)
        self._check_invariants()

    def lock(self) -> None:
        self.locked = True

    def _check_invariants(self) -> None:
        if self.held < 0:
            raise LedgerInvariantError(f"client {self.client_id}: held balance went negative ({self.held})")
        _checked(self.total)


class ProcessingStats:
    """Counters for tracking processing statistics."""

    def __init__(self):
        self.processed = 0
        self.rejected = 0
        self.malformed = 0

    def record_success(self):
        self.processed += 1

    def record_rejection(self):
        self.rejected += 1

    def record_malformed(self):
        self.malformed += 1

    def __str__(self) -> str:
        return f"Processed: {self.processed}, Rejected: {self.rejected}, Malformed: {self.malformed}"
