import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..db import get_db
from ..auth.security import require_permissions
from ..models.models import Equipment, Tag
from ..schemas.tags import TagCreate, TagUpdate, TagResponse, TagWithCount, TagCategory


router = APIRouter(prefix="/api/tags", tags=["tags"])

# Which asset column a tag category classifies
CATEGORY_COLUMNS = {
    "Asset Type": Equipment.category,
    "Location": Equipment.location,
    "Status": Equipment.status,
    "Department": Equipment.department,
}


def _asset_counts(db: Session) -> dict:
    counts = {}
    for category, column in CATEGORY_COLUMNS.items():
        rows = db.query(column, func.count(Equipment.id)).filter(column.isnot(None)).group_by(column).all()
        counts[category] = {value: n for value, n in rows}
    return counts


def _get_or_404(db: Session, tag_id: uuid.UUID) -> Tag:
    tag = db.query(Tag).filter(Tag.id == tag_id).first()
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    return tag


@router.get("", response_model=List[TagWithCount])
def list_tags(
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewTags")),
):
    """All tags ordered by category then name, each with the number of assets it matches"""
    counts = _asset_counts(db)
    tags = db.query(Tag).order_by(Tag.category.asc(), Tag.name.asc()).all()
    return [
        TagWithCount(
            **TagResponse.model_validate(t).model_dump(),
            asset_count=counts.get(t.category, {}).get(t.name, 0),
        )
        for t in tags
    ]


@router.get("/category/{category}", response_model=List[TagResponse])
def tags_by_category(
    category: TagCategory,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewTags")),
):
    return db.query(Tag).filter(Tag.category == category.value).order_by(Tag.name.asc()).all()


@router.post("", response_model=TagResponse, status_code=201)
def create_tag(
    body: TagCreate,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("createTags")),
):
    tag = Tag(name=body.name, category=body.category.value, color=body.color, description=body.description)
    db.add(tag)
    db.commit()
    db.refresh(tag)
    return tag


@router.put("/{tag_id}", response_model=TagResponse)
def update_tag(
    tag_id: uuid.UUID,
    body: TagUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("editTags")),
):
    tag = _get_or_404(db, tag_id)
    update_data = body.dict(exclude_unset=True)
    if update_data.get("category") is not None:
        update_data["category"] = update_data["category"].value
    for key, value in update_data.items():
        if value is None and key in ("name", "category", "color", "usage_count"):
            continue
        setattr(tag, key, value)
    db.commit()
    db.refresh(tag)
    return tag


@router.delete("/{tag_id}")
def delete_tag(
    tag_id: uuid.UUID,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("deleteTags")),
):
    tag = _get_or_404(db, tag_id)
    db.delete(tag)
    db.commit()
    return {"message": "Tag deleted successfully"}
