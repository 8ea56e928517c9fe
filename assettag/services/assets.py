"""
Asset lookups shared by the equipment routes and the report exports.
"""
from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, Query

from ..models.models import Equipment


ASSET_STATUSES = ["In Use", "Available", "Under Maintenance", "Retired", "Lost"]


def get_asset(db: Session, asset_id: str) -> Optional[Equipment]:
    return db.query(Equipment).filter(Equipment.asset_id == asset_id).first()


def search_clause(term: str):
    like = f"%{term.strip()}%"
    return or_(
        Equipment.name.ilike(like),
        Equipment.asset_id.ilike(like),
        Equipment.category.ilike(like),
    )


def filter_equipment(
    db: Session,
    category: Optional[str] = None,
    status: Optional[str] = None,
    location: Optional[str] = None,
    department: Optional[str] = None,
    purchase_date_from: Optional[date] = None,
    purchase_date_to: Optional[date] = None,
    cost_min: Optional[float] = None,
    cost_max: Optional[float] = None,
    q: Optional[str] = None,
) -> Query:
    """
    Build the asset list query, newest first.

    Purchase dates are stored as ISO strings, so the range filter compares
    them lexicographically against the ISO form of the bounds.
    """
    query = db.query(Equipment)
    if category:
        query = query.filter(Equipment.category == category)
    if status:
        query = query.filter(Equipment.status == status)
    if location:
        query = query.filter(Equipment.location.ilike(f"%{location}%"))
    if department:
        query = query.filter(Equipment.department == department)
    if purchase_date_from:
        query = query.filter(Equipment.purchase_date >= purchase_date_from.isoformat())
    if purchase_date_to:
        # inclusive of the whole end day, e.g. "2024-03-31T10:00"
        query = query.filter(Equipment.purchase_date <= purchase_date_to.isoformat() + "T23:59:59")
    if cost_min is not None:
        query = query.filter(Equipment.cost >= cost_min)
    if cost_max is not None:
        query = query.filter(Equipment.cost <= cost_max)
    if q and q.strip():
        query = query.filter(search_clause(q))
    return query.order_by(Equipment.created_at.desc())
