import csv
from decimal import Decimal
from typing import Iterable, TextIO

from models import AMOUNT_QUANTUM, ClientAccount, ErrorRecord, ProcessingStats

CSV_HEADER = ("client", "available", "held", "total", "locked")


def format_decimal(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    normalized = value.quantize(AMOUNT_QUANTUM).normalize()
    if normalized == 0:
        # Avoid "-0" and "0E-4" style output.
        return "0"
    return f"{normalized:f}"


def write_snapshot(accounts: Iterable[ClientAccount], stream: TextIO) -> None:
    """Write one CSV row per account, in the order given."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for account in accounts:
        writer.writerow(
            (
                account.client_id,
                format_decimal(account.available),
                format_decimal(account.held),
                format_decimal(account.total),
                str(account.locked).lower(),
            )
        )


def write_error_report(errors: Iterable[ErrorRecord], stats: ProcessingStats, stream: TextIO) -> None:
    for error in errors:
        print(error, file=stream)
    print(stats, file=stream)
