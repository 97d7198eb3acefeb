from decimal import Decimal, Inexact, localcontext
from typing import Callable, Dict, List, Optional
import structlog

from errors import AmountParseError
from models import LEDGER_CONTEXT, Account, DepositRecord, TransactionRecord, TransactionType, parse_amount
from repositories import AccountRepository, InMemoryAccountRepository

logger = structlog.get_logger()


class LedgerService:
    """Applies transaction records to client accounts, one at a time.

    apply() never raises on bad input. Records that cannot be applied
    (unknown type, unknown client, bad amount, insufficient funds, unknown
    or undisputed transaction, locked account) are dropped and leave the
    account set untouched.

    A second dispute of a deposit already in dispute is a no-op, so an
    amount is never held twice. A deposit reusing a transaction id already
    recorded for the account is rejected.
    """

    def __init__(self, account_repo: AccountRepository):
        self.account_repo = account_repo
        self._handlers: Dict[TransactionType, Callable[[Account, TransactionRecord], None]] = {
            TransactionType.deposit: self._process_deposit,
            TransactionType.withdrawal: self._process_withdrawal,
            TransactionType.dispute: self._process_dispute,
            TransactionType.resolve: self._process_resolve,
            TransactionType.chargeback: self._process_chargeback,
        }

    def apply(self, record: TransactionRecord) -> None:
        """Apply one record to the ledger."""
        kind = record.kind
        if kind is None:
            return

        account = self.account_repo.get_account(record.client_id)

        if account is None:
            # only a deposit can open an account
            if kind == TransactionType.deposit:
                self._open_account(record)
            return

        if account.locked:
            return

        # balances never round: a record that would need rounding is dropped
        try:
            with localcontext(LEDGER_CONTEXT):
                self._handlers[kind](account, record)
        except Inexact:
            return

    def accounts(self) -> List[Account]:
        return self.account_repo.list_accounts()

    def get_account(self, client_id: int) -> Optional[Account]:
        return self.account_repo.get_account(client_id)

    def _open_account(self, record: TransactionRecord) -> None:
        amount = self._amount_of(record)
        if amount is None:
            return

        account = Account(client_id=record.client_id, available=amount)
        account.deposits[record.transaction_id] = DepositRecord(
            transaction_id=record.transaction_id,
            amount=amount
        )
        self.account_repo.add_account(account)

        logger.debug(
            "Account opened",
            client_id=record.client_id,
            transaction_id=record.transaction_id,
            available=str(amount)
        )

    def _process_deposit(self, account: Account, record: TransactionRecord) -> None:
        """Credit available funds and remember the deposit for disputes."""
        if record.transaction_id in account.deposits:
            return

        amount = self._amount_of(record)
        if amount is None:
            return

        account.available += amount
        account.deposits[record.transaction_id] = DepositRecord(
            transaction_id=record.transaction_id,
            amount=amount
        )

    def _process_withdrawal(self, account: Account, record: TransactionRecord) -> None:
        """Debit available funds, all or nothing."""
        amount = self._amount_of(record)
        if amount is None:
            return

        if account.available < amount:
            return

        account.available -= amount

    def _process_dispute(self, account: Account, record: TransactionRecord) -> None:
        """Move a deposit's amount from available to held.

        Available may go negative if funds were withdrawn after the deposit.
        """
        deposit = account.deposits.get(record.transaction_id)
        if deposit is None or deposit.in_dispute:
            return

        available = account.available - deposit.amount
        held = account.held + deposit.amount

        deposit.in_dispute = True
        account.available = available
        account.held = held

    def _process_resolve(self, account: Account, record: TransactionRecord) -> None:
        """Release a disputed deposit back to available."""
        deposit = account.deposits.get(record.transaction_id)
        if deposit is None or not deposit.in_dispute:
            return

        available = account.available + deposit.amount
        held = account.held - deposit.amount

        deposit.in_dispute = False
        account.available = available
        account.held = held

    def _process_chargeback(self, account: Account, record: TransactionRecord) -> None:
        """Write off a disputed deposit and lock the account for good."""
        deposit = account.deposits.get(record.transaction_id)
        if deposit is None or not deposit.in_dispute:
            return

        held = account.held - deposit.amount

        deposit.in_dispute = False
        account.held = held
        account.locked = True

        logger.debug(
            "Account locked by chargeback",
            client_id=account.client_id,
            transaction_id=record.transaction_id,
            written_off=str(deposit.amount)
        )

    @staticmethod
    def _amount_of(record: TransactionRecord) -> Optional[Decimal]:
        """Parsed, non-negative amount of a record, or None to drop it."""
        try:
            amount = parse_amount(record.amount)
        except AmountParseError:
            return None
        if amount < 0:
            return None
        # "-0" parses as negative zero
        return amount.copy_abs()


# Factory function for dependency injection
def get_ledger_service(account_repo: Optional[AccountRepository] = None) -> LedgerService:
    return LedgerService(account_repo if account_repo is not None else InMemoryAccountRepository())
