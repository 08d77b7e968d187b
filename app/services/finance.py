from typing import Dict, Iterable, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models import Case, Payment


def total_paid_by_case(db: Session, case_ids: Iterable[str]) -> Dict[str, float]:
    """Sum Payment.paid_amount per case in a single grouped query."""
    case_ids = list(case_ids)
    if not case_ids:
        return {}
    rows = (
        db.query(Payment.affaire_id, func.sum(Payment.paid_amount))
        .filter(Payment.affaire_id.in_(case_ids))
        .group_by(Payment.affaire_id)
        .all()
    )
    return {affaire_id: float(total or 0) for affaire_id, total in rows}


def attach_total_paid(db: Session, cases: List[Case]) -> List[Case]:
    """Set the read-only ``total_paid_amount`` attribute on each case instance."""
    totals = total_paid_by_case(db, [case.id for case in cases])
    for case in cases:
        case.total_paid_amount = totals.get(case.id, 0)
    return cases
