from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from models import Account


class AccountRepository(ABC):
    @abstractmethod
    def get_account(self, client_id: int) -> Optional[Account]:
        """Get account by client id. Returns None if account doesn't exist."""
        pass

    @abstractmethod
    def add_account(self, account: Account) -> None:
        """Register a newly opened account."""
        pass

    @abstractmethod
    def list_accounts(self) -> List[Account]:
        """All accounts, in the order they were opened."""
        pass


class InMemoryAccountRepository(AccountRepository):
    def __init__(self):
        # dicts keep insertion order, which is the report order
        self.accounts: Dict[int, Account] = {}

    def get_account(self, client_id: int) -> Optional[Account]:
        return self.accounts.get(client_id)

    def add_account(self, account: Account) -> None:
        if account.client_id in self.accounts:
            raise ValueError(f"Account {account.client_id} already exists")
        self.accounts[account.client_id] = account

    def list_accounts(self) -> List[Account]:
        return list(self.accounts.values())
