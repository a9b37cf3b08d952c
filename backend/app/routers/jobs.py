# backend/app/routers/jobs.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..auth import get_principal
from ..db import get_db
from ..domain.audit import emit_audit
from ..domain.job_status import JOB_STATUSES
from ..domain.errors import BusinessRuleError
from ..models import Job, Order
from ..schemas import IdentityImagesIn, JobCreate, JobOut, OrderOut
from ..services.contracts import activate_job, cancel_job, create_deposit_job, set_identity_images
from ..services.ownership import must_get_job, must_get_user, visible_to

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("", response_model=JobOut)
def create_job(payload: JobCreate, db: Session = Depends(get_db), p=Depends(get_principal)):
    user = must_get_user(db, user_id=p.user_id)
    job = create_deposit_job(
        db,
        user=user,
        room_id=payload.room_id,
        check_in=payload.check_in_time,
        rental_period=payload.rental_period,
    )
    db.commit()

    emit_audit(db, actor_user_id=p.user_id, action="job.create", entity_type="Job", entity_id=job.id, after=job.model_dump())
    return job


@router.get("", response_model=list[JobOut])
def list_jobs(
    status: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=2000),
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    q = select(Job).where(Job.is_deleted.is_(False), visible_to(Job, p))
    if status:
        if status not in JOB_STATUSES:
            raise BusinessRuleError("Trạng thái hợp đồng không hợp lệ")
        q = q.where(Job.status == status)
    return list(db.scalars(q.order_by(desc(Job.id)).limit(limit)).all())


@router.get("/{job_id}", response_model=JobOut)
def get_job(job_id: int, db: Session = Depends(get_db), p=Depends(get_principal)):
    return must_get_job(db, job_id=job_id, p=p)


@router.get("/{job_id}/orders", response_model=list[OrderOut])
def list_job_orders(job_id: int, db: Session = Depends(get_db), p=Depends(get_principal)):
    job = must_get_job(db, job_id=job_id, p=p)
    return list(db.scalars(select(Order).where(Order.job_id == job.id).order_by(Order.id)).all())


@router.post("/{job_id}/activate", response_model=OrderOut)
def activate(job_id: int, db: Session = Depends(get_db), p=Depends(get_principal)):
    job = must_get_job(db, job_id=job_id, p=p)
    before = job.model_dump()
    order = activate_job(db, job)
    db.commit()

    emit_audit(db, actor_user_id=p.user_id, action="job.activate", entity_type="Job", entity_id=job.id, before=before, after=job.model_dump())
    return order


@router.put("/{job_id}/identity-images", response_model=JobOut)
def update_identity_images(job_id: int, payload: IdentityImagesIn, db: Session = Depends(get_db), p=Depends(get_principal)):
    job = must_get_job(db, job_id=job_id, p=p)
    job = set_identity_images(db, job, payload.images)
    db.commit()
    return job


@router.delete("/{job_id}", response_model=JobOut)
def cancel(job_id: int, db: Session = Depends(get_db), p=Depends(get_principal)):
    job = must_get_job(db, job_id=job_id, p=p)
    before = job.model_dump()
    job = cancel_job(db, job)
    db.commit()

    emit_audit(db, actor_user_id=p.user_id, action="job.cancel", entity_type="Job", entity_id=job.id, before=before, after=job.model_dump())
    return job
