# backend/app/routers/bills.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..auth import get_principal
from ..db import get_db
from ..models import Bill
from ..schemas import BillOut
from ..services.ownership import must_get_bill, visible_to

router = APIRouter(prefix="/bills", tags=["bills"])


@router.get("", response_model=list[BillOut])
def list_bills(
    limit: int = Query(default=200, ge=1, le=2000),
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    q = select(Bill).where(visible_to(Bill, p)).order_by(desc(Bill.id)).limit(limit)
    return list(db.scalars(q).all())


@router.get("/{bill_id}", response_model=BillOut)
def get_bill(bill_id: int, db: Session = Depends(get_db), p=Depends(get_principal)):
    return must_get_bill(db, bill_id=bill_id, p=p)
