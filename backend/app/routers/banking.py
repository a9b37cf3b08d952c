# backend/app/routers/banking.py
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import require_host
from ..db import get_db
from ..domain.errors import BusinessRuleError
from ..models import Banking, Transaction
from ..schemas import BankingCreate, BankingOut

router = APIRouter(prefix="/banking", tags=["banking"])


@router.post("", response_model=BankingOut)
def create_bank_account(payload: BankingCreate, db: Session = Depends(get_db), p=Depends(require_host)):
    row = Banking(**payload.model_dump(), user_id=p.user_id, created_at=datetime.utcnow())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.get("", response_model=list[BankingOut])
def list_bank_accounts(db: Session = Depends(get_db), p=Depends(require_host)):
    q = select(Banking)
    if not p.is_master:
        q = q.where(Banking.user_id == p.user_id)
    return list(db.scalars(q.order_by(Banking.id)).all())


@router.delete("/{bank_id}")
def delete_bank_account(bank_id: int, db: Session = Depends(get_db), p=Depends(require_host)):
    row = db.get(Banking, bank_id)
    if row is None or (not p.is_master and row.user_id != p.user_id):
        raise HTTPException(status_code=404, detail="bank account not found")
    if db.scalar(select(Transaction.id).where(Transaction.banking_id == row.id)) is not None:
        raise BusinessRuleError("Tài khoản ngân hàng đã có giao dịch, không thể xóa")
    db.delete(row)
    db.commit()
    return {"ok": True}
