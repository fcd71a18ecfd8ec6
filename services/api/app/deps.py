"""FastAPI dependencies for the weekly report API.

Provides:
- Database session dependency
- Household resolution from the path (404 when unknown)
- Report policy
"""

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from .db import get_db
from .models import Household
from .settings import ReportPolicy, settings


def get_household(household_id: str, db: Session = Depends(get_db)) -> Household:
    household = db.get(Household, household_id)
    if household is None:
        raise HTTPException(status_code=404, detail=f"Household '{household_id}' not found")
    return household


def get_report_policy() -> ReportPolicy:
    return settings.report_policy
