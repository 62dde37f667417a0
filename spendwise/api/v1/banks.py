"""GET /v1/banks - static bank, digital bank and e-wallet directory"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from spendwise.api.v1.common import parse_uuid
from spendwise.api.v1.schemas import BankResponse, BankTypeLiteral
from spendwise.domain.exceptions import NotFoundError
from spendwise.infrastructure.database.models import Bank
from spendwise.infrastructure.database.repositories import BankRepository
from spendwise.infrastructure.database.session import get_db

router = APIRouter()


def _bank_response(bank: Bank) -> BankResponse:
    return BankResponse(
        id=str(bank.id),
        name=bank.name,
        short_name=bank.short_name,
        color=bank.color,
        interest_rate=bank.interest_rate,
        type=bank.type,
    )


@router.get("/banks", response_model=List[BankResponse])
def list_banks(type: Optional[BankTypeLiteral] = Query(None), db: Session = Depends(get_db)):
    return [_bank_response(b) for b in BankRepository(db).list_banks(type)]


@router.get("/banks/{bank_id}", response_model=BankResponse)
def get_bank(bank_id: str, db: Session = Depends(get_db)):
    bank_uuid = parse_uuid(bank_id, "bank ID")
    try:
        return _bank_response(BankRepository(db).require_bank(bank_uuid))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
