"""Savings ledger arithmetic - balance effect of ledger entries"""

from decimal import Decimal
from typing import Tuple

from spendwise.domain.exceptions import InvalidTransactionDataError
from spendwise.domain.models import TransactionType


def balance_delta(tx_type: TransactionType, amount: Decimal) -> Decimal:
    """
    Signed balance change for a ledger entry.

    Amounts are stored positive; deposits and interest add, withdrawals
    subtract.
    """
    if amount <= 0:
        raise InvalidTransactionDataError(f"Transaction amount must be positive, got {amount}")

    tx_type = TransactionType(tx_type)
    if tx_type == TransactionType.WITHDRAWAL:
        return -amount
    return amount


def apply_transaction(balance: Decimal, tx_type: TransactionType, amount: Decimal) -> Decimal:
    """New running balance after posting. No floor: balances may go negative."""
    return balance + balance_delta(tx_type, amount)


def compensating_entry(old_amount: Decimal, new_amount: Decimal) -> Tuple[TransactionType, Decimal] | None:
    """
    Ledger entry that moves an account from an expense's old withdrawal to
    its new one. None when the amount did not change.
    """
    difference = new_amount - old_amount
    if difference == 0:
        return None
    if difference > 0:
        return TransactionType.WITHDRAWAL, difference
    return TransactionType.DEPOSIT, -difference
