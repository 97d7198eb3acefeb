import csv
from decimal import Decimal, localcontext
from typing import Iterable, Iterator, List, TextIO

from pydantic import ValidationError

from errors import InputUnavailableError, MalformedRecordError
from models import AMOUNT_PLACES, LEDGER_CONTEXT, Account, AccountBalance, TransactionRecord

REPORT_HEADER = "client, available, held, total, locked"


def parse_row(row: List[str], line: int) -> TransactionRecord:
    """Decode one CSV row of `type, client, tx[, amount]`."""
    fields = [field.strip() for field in row]
    if len(fields) not in (3, 4):
        raise MalformedRecordError(line, f"expected 3 or 4 fields, got {len(fields)}", row)

    try:
        return TransactionRecord(
            transaction_type=fields[0],
            client_id=fields[1],
            transaction_id=fields[2],
            amount=fields[3] if len(fields) == 4 else None,
        )
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise MalformedRecordError(line, problems, row) from e


def read_transactions(path: str, encoding: str = "utf-8") -> Iterator[TransactionRecord]:
    """Yield records from a CSV file in file order. The header row is skipped."""
    try:
        handle = open(path, newline="", encoding=encoding)
    except OSError as e:
        raise InputUnavailableError(path, e.strerror or str(e)) from e

    with handle:
        reader = csv.reader(handle)
        header_seen = False
        try:
            for row in reader:
                if not any(field.strip() for field in row):
                    continue
                if not header_seen:
                    header_seen = True
                    continue
                yield parse_row(row, reader.line_num)
        except csv.Error as e:
            raise MalformedRecordError(reader.line_num, str(e)) from e
        except UnicodeDecodeError as e:
            raise MalformedRecordError(reader.line_num + 1, f"undecodable bytes ({e.reason})") from e


def format_amount(value: Decimal) -> str:
    with localcontext(LEDGER_CONTEXT):
        return f"{value.quantize(AMOUNT_PLACES):f}"


def format_balance_row(balance: AccountBalance) -> str:
    return ",".join([
        str(balance.client),
        format_amount(balance.available),
        format_amount(balance.held),
        format_amount(balance.total),
        "true" if balance.locked else "false",
    ])


def write_balances(accounts: Iterable[Account], out: TextIO) -> None:
    """Write the balance report for every account, in the given order."""
    # format everything first so a failure leaves `out` untouched
    lines = [REPORT_HEADER] + [format_balance_row(account.to_balance()) for account in accounts]
    out.write("\n".join(lines) + "\n")
