"""Job listing routes."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from . import schemas
from .auth import get_current_user_id, logger
from .database import get_db
from .models import Job

router = APIRouter(prefix="/jobs", tags=["jobs"])


def _job_out(job: Job) -> schemas.JobOut:
    requirements = [line for line in (job.requirements or "").split("\n") if line.strip()]
    return schemas.JobOut(
        id=job.id,
        title=job.title,
        company=job.company,
        description=job.description,
        location=job.location,
        salary=job.salary,
        requirements=requirements,
        type=job.type,
        posted_by=job.posted_by,
        posted_at=job.posted_at,
    )


@router.post("", response_model=schemas.JobOut, status_code=status.HTTP_201_CREATED)
def post_job(
    payload: schemas.JobCreate,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    job = Job(
        title=payload.title.strip(),
        company=payload.company.strip(),
        description=payload.description.strip(),
        location=payload.location.strip(),
        salary=payload.salary.strip(),
        requirements="\n".join(r.strip() for r in payload.requirements if r.strip()),
        type=payload.type,
        posted_by=current_user_id,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info("JOB_POSTED job_id=%s user_id=%s", job.id, current_user_id)
    return _job_out(job)


@router.get("", response_model=List[schemas.JobOut])
def list_jobs(db: Session = Depends(get_db), _: str = Depends(get_current_user_id)):
    jobs = db.query(Job).order_by(Job.posted_at.desc()).all()
    return [_job_out(job) for job in jobs]


@router.get("/{job_id}", response_model=schemas.JobOut)
def get_job(job_id: str, db: Session = Depends(get_db), _: str = Depends(get_current_user_id)):
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return _job_out(job)
