from typing import Iterable, List, TextIO
import structlog

from csv_io import read_transactions, write_balances
from models import Account, TransactionRecord
from services import LedgerService, get_ledger_service

logger = structlog.get_logger()


class ReplayDriver:
    """Feeds an ordered record stream into a ledger, strictly one at a time.

    Errors raised by the record source (a ReplayError from the reader) are
    not caught here: the replay stops at the first structural failure.
    """

    def __init__(self, ledger: LedgerService):
        self.ledger = ledger
        self.records_read = 0

    def run(self, records: Iterable[TransactionRecord]) -> List[Account]:
        for record in records:
            self.records_read += 1
            self.ledger.apply(record)
        return self.ledger.accounts()


def replay_file(path: str, out: TextIO, encoding: str = "utf-8") -> List[Account]:
    """Replay a CSV feed and write the balance report to `out`.

    Nothing is written if the replay aborts.
    """
    driver = ReplayDriver(get_ledger_service())

    logger.info("Replay started", path=path)
    accounts = driver.run(read_transactions(path, encoding=encoding))

    write_balances(accounts, out)

    logger.info(
        "Replay completed",
        path=path,
        records_read=driver.records_read,
        accounts=len(accounts)
    )
    return accounts
