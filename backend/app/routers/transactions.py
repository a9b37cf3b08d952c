# backend/app/routers/transactions.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..auth import get_principal, require_host
from ..db import get_db
from ..domain.audit import emit_audit
from ..domain.errors import BusinessRuleError
from ..models import Transaction, TXN_CANCEL, TXN_SUCCESS, TXN_WAITING
from ..schemas import TransactionCreate, TransactionOut
from ..services.contracts import approve_transaction, get_bank
from ..services.orders import cancel_transaction, submit_payment
from ..services.ownership import must_get_order, must_get_room, must_get_transaction, visible_to

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.post("", response_model=TransactionOut)
def submit(payload: TransactionCreate, db: Session = Depends(get_db), p=Depends(get_principal)):
    """Tenant reports a bank transfer for one of their orders."""
    order = must_get_order(db, order_id=payload.order_id, p=p)
    txn = submit_payment(db, order, bank=get_bank(db, payload.bank_id), key_payment=payload.key_payment)
    db.commit()

    emit_audit(db, actor_user_id=p.user_id, action="transaction.submit", entity_type="Transaction", entity_id=txn.id, after=txn.model_dump())
    return txn


@router.get("", response_model=list[TransactionOut])
def list_transactions(
    status: Optional[str] = Query(default=None),
    limit: int = Query(default=200, ge=1, le=2000),
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    q = select(Transaction).where(Transaction.is_deleted.is_(False), visible_to(Transaction, p))
    if status:
        if status not in (TXN_WAITING, TXN_SUCCESS, TXN_CANCEL):
            raise BusinessRuleError("Trạng thái giao dịch không hợp lệ")
        q = q.where(Transaction.status == status)
    return list(db.scalars(q.order_by(desc(Transaction.id)).limit(limit)).all())


@router.get("/{transaction_id}", response_model=TransactionOut)
def get_transaction(transaction_id: int, db: Session = Depends(get_db), p=Depends(get_principal)):
    return must_get_transaction(db, transaction_id=transaction_id, p=p)


@router.put("/{transaction_id}/approve", response_model=TransactionOut)
def approve(transaction_id: int, db: Session = Depends(get_db), p=Depends(require_host)):
    txn = must_get_transaction(db, transaction_id=transaction_id, p=p)
    must_get_room(db, room_id=txn.room_id, p=p)
    before = txn.model_dump()
    approve_transaction(db, txn)
    db.commit()

    emit_audit(db, actor_user_id=p.user_id, action="transaction.approve", entity_type="Transaction", entity_id=txn.id, before=before, after=txn.model_dump())
    return txn


@router.put("/{transaction_id}/reject", response_model=TransactionOut)
def reject(transaction_id: int, db: Session = Depends(get_db), p=Depends(require_host)):
    txn = must_get_transaction(db, transaction_id=transaction_id, p=p)
    must_get_room(db, room_id=txn.room_id, p=p)
    before = txn.model_dump()
    cancel_transaction(db, txn)
    db.commit()

    emit_audit(db, actor_user_id=p.user_id, action="transaction.reject", entity_type="Transaction", entity_id=txn.id, before=before, after=txn.model_dump())
    return txn
