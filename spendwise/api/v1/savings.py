"""/v1/savings - savings accounts and their deposit/withdrawal ledger"""

import logging
from datetime import tzinfo
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from spendwise.api.dependencies import get_local_timezone, get_request_id
from spendwise.api.v1.common import (
    account_response,
    parse_optional_uuid,
    parse_uuid,
    transaction_response,
)
from spendwise.api.v1.schemas import (
    AccountCreate,
    AccountResponse,
    AccountTypeLiteral,
    AccountUpdate,
    SavingsSummaryResponse,
    TransactionCreate,
    TransactionPosted,
    TransactionResponse,
)
from spendwise.domain.exceptions import InvalidTransactionDataError, NotFoundError
from spendwise.domain.models import AccountType, TransactionType
from spendwise.infrastructure.database.repositories import SavingsRepository
from spendwise.infrastructure.database.session import get_db
from spendwise.infrastructure.observability.logging import log_transaction_posted
from spendwise.infrastructure.observability.metrics import record_savings_transaction
from spendwise.utils.date_utils import to_utc

router = APIRouter()


@router.post("/savings/accounts", response_model=AccountResponse, status_code=201)
def create_account(body: AccountCreate, db: Session = Depends(get_db), tz: tzinfo = Depends(get_local_timezone)):
    """Open an account with its starting balance (no ledger entry for the opening balance)"""
    bank_uuid = parse_uuid(body.bank_id, "bank ID")
    try:
        account = SavingsRepository(db).create_account(
            user_id=body.user_id,
            bank_id=bank_uuid,
            balance=body.balance,
            account_type=body.account_type,
            account_name=body.account_name,
            interest_rate=body.interest_rate,
            maturity_date=to_utc(body.maturity_date, tz) if body.maturity_date else None,
        )
        db.commit()
        return account_response(account)

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/savings/accounts", response_model=List[AccountResponse])
def list_accounts(
    user_id: str = Query(..., description="User identifier"),
    account_type: Optional[AccountTypeLiteral] = Query(None),
    db: Session = Depends(get_db),
):
    return [account_response(a) for a in SavingsRepository(db).list_accounts(user_id, account_type)]


@router.get("/savings/accounts/{account_id}", response_model=AccountResponse)
def get_account(account_id: str, db: Session = Depends(get_db)):
    account_uuid = parse_uuid(account_id, "account ID")
    try:
        return account_response(SavingsRepository(db).require_account(account_uuid))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/savings/accounts/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: str,
    body: AccountUpdate,
    request: Request,
    db: Session = Depends(get_db),
    tz: tzinfo = Depends(get_local_timezone),
):
    """
    Edit account details.

    A balance in the body is a manual correction: it overrides the stored
    balance directly and writes no ledger entry.
    """
    account_uuid = parse_uuid(account_id, "account ID")
    updates = body.model_dump(exclude_unset=True, exclude_none=True, exclude={"user_id"})
    if "maturity_date" in updates:
        updates["maturity_date"] = to_utc(updates["maturity_date"], tz)

    repo = SavingsRepository(db)
    try:
        account = repo.require_account(account_uuid, user_id=body.user_id, lock=True)
        if "balance" in updates:
            balance = updates.pop("balance")
            repo.set_balance(account, balance)
            logging.info(
                "Manual balance override",
                extra={"request_id": get_request_id(request), "account_id": account_id, "balance": str(balance)},
            )
        repo.update_account(account, updates)
        db.commit()
        return account_response(account)

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/savings/accounts/{account_id}", status_code=204)
def delete_account(
    account_id: str,
    request: Request,
    user_id: str = Query(..., description="Owner of the account"),
    db: Session = Depends(get_db),
):
    """Delete an account together with every ledger entry it owns"""
    request_id = get_request_id(request)
    account_uuid = parse_uuid(account_id, "account ID")
    repo = SavingsRepository(db)

    try:
        removed = repo.delete_account(repo.require_account(account_uuid, user_id=user_id, lock=True))
        db.commit()
        logging.info(
            "Savings account deleted",
            extra={"request_id": request_id, "account_id": account_id, "transactions_removed": removed},
        )
        return Response(status_code=204)

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/savings/summary", response_model=SavingsSummaryResponse)
def get_total_balance(user_id: str = Query(..., description="User identifier"), db: Session = Depends(get_db)):
    """Balances across all of a user's accounts, split by account type"""
    accounts = SavingsRepository(db).list_accounts(user_id)
    by_type = {t.value: Decimal("0") for t in AccountType}
    for account in accounts:
        by_type[account.account_type] = by_type.get(account.account_type, Decimal("0")) + Decimal(account.balance)

    return SavingsSummaryResponse(
        total=float(sum(by_type.values(), Decimal("0"))),
        savings_total=float(by_type[AccountType.SAVINGS.value]),
        time_deposit_total=float(by_type[AccountType.TIME_DEPOSIT.value]),
        account_count=len(accounts),
    )


@router.post("/savings/transactions", response_model=TransactionPosted, status_code=201)
def post_savings_transaction(
    body: TransactionCreate,
    request: Request,
    db: Session = Depends(get_db),
    tz: tzinfo = Depends(get_local_timezone),
):
    """
    Post a deposit, withdrawal or interest entry.

    The ledger row and the balance update commit together. Withdrawals may
    take the balance below zero.
    """
    request_id = get_request_id(request)
    account_uuid = parse_uuid(body.account_id, "account ID")
    repo = SavingsRepository(db)

    try:
        account = repo.require_account(account_uuid, user_id=body.user_id, lock=True)
        tx = repo.post_transaction(
            account, TransactionType(body.type), body.amount, body.description, to_utc(body.date, tz)
        )
        new_balance = Decimal(account.balance)
        tx_id = str(tx.id)
        db.commit()

        record_savings_transaction(body.type)
        log_transaction_posted(request_id, body.user_id, body.account_id, body.type, body.amount, new_balance)

        return TransactionPosted(transaction_id=tx_id, account_id=body.account_id, balance=float(new_balance))

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidTransactionDataError as e:
        db.rollback()
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/savings/transactions", response_model=List[TransactionResponse])
def list_transactions(
    user_id: str = Query(..., description="User identifier"),
    account_id: Optional[str] = Query(None, description="Restrict to one account"),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Newest-first ledger entries for one account or all of a user's accounts"""
    account_uuid = parse_optional_uuid(account_id, "account ID")
    transactions = SavingsRepository(db).list_transactions(user_id, account_uuid, limit)
    return [transaction_response(t) for t in transactions]
