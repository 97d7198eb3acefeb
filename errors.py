from typing import Optional


class LedgerError(Exception):
    """Base ledger error."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class AmountParseError(LedgerError):
    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__("INVALID_AMOUNT", f"Invalid amount: {raw!r}")


# --- fatal tier ---

class ReplayError(LedgerError):
    """Aborts the replay. Reported once by the CLI."""


class InputUnavailableError(ReplayError):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__("INPUT_UNAVAILABLE", f"Cannot open {path}: {reason}")


class MalformedRecordError(ReplayError):
    def __init__(self, line: int, detail: str, row: Optional[list] = None) -> None:
        self.line = line
        self.row = row
        super().__init__("MALFORMED_RECORD", f"Malformed record on line {line}: {detail}")
