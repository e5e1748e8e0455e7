import sys
import logging

from errors import PaymentsError
from payments_engine import PaymentsEngine
from snapshot_writer import write_error_report, write_snapshot

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
    stream=sys.stderr,
)


def main(argv=None) -> int:
    argv = sys.argv if argv is None else argv
    if len(argv) != 2:
        print(f"Usage: python {argv[0] if argv else 'main.py'} <transactions.csv>", file=sys.stderr)
        return 1

    filepath = argv[1]
    engine = PaymentsEngine()
    try:
        accounts = engine.process_file(filepath)
    except OSError as e:
        print(f"Failed to open file {filepath}: {e}", file=sys.stderr)
        return 1
    except PaymentsError as e:
        print(f"fatal: {e}", file=sys.stderr)
        return 2

    write_snapshot(accounts, sys.stdout)
    write_error_report(engine.errors(), engine.stats, sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
