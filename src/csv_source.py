import csv
import logging
from decimal import Decimal, DecimalException, InvalidOperation
from typing import Dict, Iterable, Iterator, List, Union

from errors import RecordSourceError
from models import (
    AMOUNT_QUANTUM,
    MAX_AMOUNT,
    MAX_CLIENT_ID,
    MAX_TRANSACTION_ID,
    ParseFailure,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("type", "client", "tx")
AMOUNT_COLUMN = "amount"

Record = Union[Transaction, ParseFailure]


class RowError(ValueError):
    pass


def read_transactions(filepath: str, encoding: str = "utf-8") -> Iterator[Record]:
    """Lazily read a CSV file, yielding one Transaction or ParseFailure per row."""
    # Undecodable bytes survive as surrogates and fail on their own row.
    with open(filepath, "r", encoding=encoding, errors="surrogateescape", newline="") as f:
        yield from parse_rows(f)


def parse_rows(lines: Iterable[str]) -> Iterator[Record]:
    """
    Parse CSV text (header first) into records without buffering the input.

    Whitespace around fields is ignored. Rows of dispute, resolve and
    chargeback may leave out the trailing amount column. Blank lines are
    skipped. A missing header, or one without the type/client/tx columns,
    raises RecordSourceError; every other problem is yielded as a
    ParseFailure for the row it affects.
    """
    reader = csv.reader(lines)
    header = _read_header(reader)
    columns = {name: index for index, name in enumerate(header)}

    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            line = reader.line_num
            logger.info(f"Failed to read row {line}: {e}")
            yield ParseFailure(line=line, raw="", reason=f"unreadable row: {e}")
            continue

        if not row or all(not value.strip() for value in row):
            continue
        line = reader.line_num
        try:
            yield _parse_row(row, header, columns, line)
        except RowError as e:
            raw = ",".join(row)
            logger.info(f"Failed to parse row {line} {raw!r}: {e}")
            yield ParseFailure(line=line, raw=raw, reason=str(e))


def _read_header(reader) -> List[str]:
    try:
        for row in reader:
            header = [name.strip().lower() for name in row]
            if not any(header):
                continue
            missing = [name for name in REQUIRED_COLUMNS if name not in header]
            if missing:
                raise RecordSourceError(f"input header {row!r} is missing column(s): {', '.join(missing)}")
            return header
    except csv.Error as e:
        raise RecordSourceError(f"input header is unreadable: {e}") from e
    raise RecordSourceError("input is empty, expected a header row")


def _parse_row(row: List[str], header: List[str], columns: Dict[str, int], line: int) -> Transaction:
    fields = [value.strip() for value in row]

    if len(fields) > len(header):
        raise RowError(f"expected {len(header)} fields, got {len(fields)}")
    if len(fields) < len(header):
        if header[len(fields):] != [AMOUNT_COLUMN]:
            raise RowError(f"expected {len(header)} fields, got {len(fields)}")
        fields.append("")

    type_str = fields[columns["type"]].lower()
    try:
        transaction_type = TransactionType(type_str)
    except ValueError:
        raise RowError(f"unknown transaction type {type_str!r}") from None

    client_id = _parse_id(fields[columns["client"]], "client", MAX_CLIENT_ID)
    transaction_id = _parse_id(fields[columns["tx"]], "tx", MAX_TRANSACTION_ID)

    amount = None
    # Amounts on dispute, resolve and chargeback rows are ignored.
    if transaction_type.moves_funds:
        amount_str = fields[columns[AMOUNT_COLUMN]] if AMOUNT_COLUMN in columns else ""
        if not amount_str:
            raise RowError(f"{transaction_type.value} requires an amount")
        amount = parse_amount(amount_str)

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
        line=line,
    )


def _parse_id(value: str, name: str, maximum: int) -> int:
    if not (value.isascii() and value.isdigit()):
        raise RowError(f"{name} id {value!r} is not an unsigned integer")
    parsed = int(value)
    if parsed > maximum:
        raise RowError(f"{name} id {parsed} is out of range (max {maximum})")
    return parsed


def parse_amount(value: str) -> Decimal:
    """Parse a decimal amount with at most four fractional digits."""
    try:
        amount = Decimal(value)
    except (InvalidOperation, ValueError):
        raise RowError(f"amount {value!r} is not a decimal number") from None

    if not amount.is_finite():
        raise RowError(f"amount {value!r} is not a finite number")
    # Compare magnitudes first; abs() of a huge exponent overflows the context.
    if amount and amount.adjusted() > MAX_AMOUNT.adjusted():
        raise RowError(f"amount {value!r} is out of range")
    try:
        if abs(amount) > MAX_AMOUNT:
            raise RowError(f"amount {value!r} is out of range")
        quantized = amount.quantize(AMOUNT_QUANTUM)
    except DecimalException:
        raise RowError(f"amount {value!r} cannot be represented") from None
    if quantized != amount:
        raise RowError(f"amount {value!r} has more than four decimal places")
    return quantized
