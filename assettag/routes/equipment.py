import os
import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, File
from fastapi.responses import Response, StreamingResponse
from slugify import slugify
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import structlog

from ..db import get_db
from ..config import settings
from ..auth.security import get_current_user, require_permissions
from ..models.models import Equipment, AssetNote, AssetFile, User
from ..schemas.equipment import (
    EquipmentCreate,
    EquipmentUpdate,
    EquipmentResponse,
    EquipmentDeleteResponse,
    AssetNoteCreate,
    FileUploadResponse,
)
from ..services import notifications as notify
from ..services.activity import log_activity, actor_name
from ..services.assets import get_asset, filter_equipment, search_clause
from ..services.reports import generate_qr_code_image
from ..services.scheduling import (
    utcnow,
    as_naive_utc,
    initial_next_maintenance,
    apply_maintenance_status,
)

router = APIRouter(prefix="/api/equipment", tags=["equipment"])
logger = structlog.get_logger(__name__)

ALLOWED_EXTENSIONS = {".pdf", ".doc", ".docx", ".xls", ".xlsx", ".txt", ".jpg", ".jpeg", ".png", ".gif"}


def _get_asset_or_404(db: Session, asset_id: str) -> Equipment:
    asset = get_asset(db, asset_id)
    if not asset:
        raise HTTPException(status_code=404, detail="Equipment not found")
    return asset


def _safe_filename(filename: str) -> str:
    base, ext = os.path.splitext(os.path.basename(filename or "document"))
    return f"{slugify(base) or 'document'}{ext.lower()}"


def asset_filters(
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    purchase_date_from: Optional[date] = Query(None, alias="purchaseDateFrom"),
    purchase_date_to: Optional[date] = Query(None, alias="purchaseDateTo"),
    cost_min: Optional[float] = Query(None, alias="costMin", ge=0),
    cost_max: Optional[float] = Query(None, alias="costMax", ge=0),
    q: Optional[str] = Query(None),
) -> dict:
    """Advanced-search query parameters, shared with the report exports"""
    return {
        "category": category,
        "status": status,
        "location": location,
        "department": department,
        "purchase_date_from": purchase_date_from,
        "purchase_date_to": purchase_date_to,
        "cost_min": cost_min,
        "cost_max": cost_max,
        "q": q,
    }


@router.get("", response_model=List[EquipmentResponse])
def list_equipment(
    filters: dict = Depends(asset_filters),
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewAssets")),
):
    """List assets, newest first, with optional advanced-search filters"""
    return filter_equipment(db, **filters).all()


@router.get("/search/{query}", response_model=List[EquipmentResponse])
def search_equipment(
    query: str,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewAssets")),
):
    return db.query(Equipment).filter(search_clause(query)).order_by(Equipment.created_at.desc()).all()


@router.get("/{asset_id}", response_model=EquipmentResponse)
def get_equipment(
    asset_id: str,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewAssets")),
):
    return _get_asset_or_404(db, asset_id)


@router.post("", response_model=EquipmentResponse, status_code=201)
def create_equipment(
    body: EquipmentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _=Depends(require_permissions("createAssets")),
):
    """Register a new asset; derives its first maintenance date from the period when none is given"""
    if get_asset(db, body.asset_id):
        raise HTTPException(status_code=400, detail="Asset ID already exists")
    data = body.dict()
    data["maintenance_period"] = body.maintenance_period.value
    data["maintenance_schedule"] = body.maintenance_schedule.value
    data["next_scheduled_maintenance"] = as_naive_utc(body.next_scheduled_maintenance)
    data["currency"] = body.currency or settings.default_currency
    asset = Equipment(**data)
    now = utcnow()
    asset.last_modified = now
    if asset.maintenance_period and not asset.next_scheduled_maintenance:
        asset.next_scheduled_maintenance = initial_next_maintenance(asset, now)
    apply_maintenance_status(db, asset, now)
    db.add(asset)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Asset ID already exists")
    db.refresh(asset)

    log_activity(db, asset, "Added", user=user, details=f"Asset {asset.name} registered")
    notify.new_asset(db, asset)
    logger.info("asset_created", asset_id=asset.asset_id, user=actor_name(user))
    return asset


@router.put("/{asset_id}", response_model=EquipmentResponse)
def update_equipment(
    asset_id: str,
    body: EquipmentUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _=Depends(require_permissions("editAssets")),
):
    asset = _get_asset_or_404(db, asset_id)
    old_status = asset.status
    old_assignee = asset.assigned_to

    update_data = body.dict(exclude_unset=True)
    for key in ("maintenance_period", "maintenance_schedule"):
        if update_data.get(key) is not None:
            update_data[key] = update_data[key].value
    for key in ("next_scheduled_maintenance", "last_maintenance_date"):
        if key in update_data:
            update_data[key] = as_naive_utc(update_data[key])
    for key, value in update_data.items():
        setattr(asset, key, value)

    now = utcnow()
    asset.last_modified = now
    if "maintenance_period" in update_data or "next_scheduled_maintenance" in update_data:
        if asset.maintenance_period and not asset.next_scheduled_maintenance:
            asset.next_scheduled_maintenance = initial_next_maintenance(asset, now)
        if "next_scheduled_maintenance" in update_data:
            asset.maintenance_due_notification_sent = False
        apply_maintenance_status(db, asset, now)
    db.commit()
    db.refresh(asset)

    changed = ", ".join(sorted(update_data)) or "no fields"
    log_activity(db, asset, "Updated", user=user, details=f"Updated {changed}")
    if "status" in update_data and asset.status != old_status:
        notify.status_change(db, asset, old_status, asset.status)
    if "assigned_to" in update_data and asset.assigned_to and asset.assigned_to != old_assignee:
        notify.assignment(db, asset, asset.assigned_to)
    logger.info("asset_updated", asset_id=asset.asset_id, fields=sorted(update_data))
    return asset


@router.delete("/{asset_id}", response_model=EquipmentDeleteResponse)
def delete_equipment(
    asset_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _=Depends(require_permissions("deleteAssets")),
):
    asset = _get_asset_or_404(db, asset_id)
    snapshot = EquipmentResponse.model_validate(asset)
    log_activity(db, asset, "Deleted", user=user, details=f"Asset {asset.name} removed", commit=False)
    db.delete(asset)
    db.commit()
    logger.info("asset_deleted", asset_id=asset_id, user=actor_name(user))
    return {"message": "Equipment deleted successfully", "equipment": snapshot}


@router.post("/{asset_id}/upload", response_model=FileUploadResponse)
def upload_document(
    asset_id: str,
    document: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _=Depends(require_permissions("uploadDocuments")),
):
    asset = _get_asset_or_404(db, asset_id)
    ext = os.path.splitext(document.filename or "")[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Only PDF, DOC, DOCX, XLS, XLSX, TXT, and images are allowed.",
        )
    # at most one byte past the limit
    data = document.file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=400, detail="File too large. Maximum size is 10MB.")

    stored = AssetFile(
        file_id=f"{uuid.uuid4().hex}{ext}",
        name=document.filename,
        content_type=document.content_type,
        data=data,
        size=len(data),
        upload_date=utcnow(),
    )
    asset.attached_files.append(stored)
    asset.last_modified = utcnow()
    db.commit()
    db.refresh(asset)
    db.refresh(stored)

    log_activity(db, asset, "Document Uploaded", action_type="Updated", user=user, details=f"Uploaded {stored.name}")
    logger.info("document_uploaded", asset_id=asset.asset_id, file_id=stored.file_id, size=stored.size)
    return {"message": "File uploaded successfully", "file": stored, "equipment": asset}


@router.delete("/{asset_id}/document/{file_id}", response_model=EquipmentResponse)
def delete_document(
    asset_id: str,
    file_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _=Depends(require_permissions("deleteDocuments")),
):
    asset = _get_asset_or_404(db, asset_id)
    stored = next((f for f in asset.attached_files if f.file_id == file_id), None)
    if not stored:
        raise HTTPException(status_code=404, detail="File not found")
    name = stored.name
    asset.attached_files.remove(stored)
    asset.last_modified = utcnow()
    db.commit()
    db.refresh(asset)
    log_activity(db, asset, "Document Deleted", action_type="Updated", user=user, details=f"Deleted {name}")
    return asset


@router.get("/{asset_id}/document/{file_id}/download")
def download_document(
    asset_id: str,
    file_id: str,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("downloadDocuments")),
):
    asset = _get_asset_or_404(db, asset_id)
    stored = db.query(AssetFile).filter(AssetFile.equipment_id == asset.id, AssetFile.file_id == file_id).first()
    if not stored:
        raise HTTPException(status_code=404, detail="File not found")
    return Response(
        content=stored.data,
        media_type=stored.content_type or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{_safe_filename(stored.name)}"'},
    )


@router.get("/{asset_id}/qrcode")
def asset_qrcode(
    asset_id: str,
    size: int = Query(200, ge=64, le=1024),
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewAssets")),
):
    asset = _get_asset_or_404(db, asset_id)
    buffer = generate_qr_code_image(asset.asset_id, size=size)
    return StreamingResponse(
        buffer,
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="{_safe_filename(asset.asset_id)}.png"'},
    )


@router.post("/{asset_id}/notes", response_model=EquipmentResponse, status_code=201)
def add_note(
    asset_id: str,
    body: AssetNoteCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _=Depends(require_permissions("createNotes")),
):
    asset = _get_asset_or_404(db, asset_id)
    now = utcnow()
    author = actor_name(user)
    asset.notes_history.append(AssetNote(content=body.content.strip(), created_at=now, updated_at=now, created_by=author, updated_by=author))
    asset.last_modified = now
    db.commit()
    db.refresh(asset)
    return asset


@router.put("/{asset_id}/notes/{note_id}", response_model=EquipmentResponse)
def update_note(
    asset_id: str,
    note_id: uuid.UUID,
    body: AssetNoteCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _=Depends(require_permissions("editNotes")),
):
    asset = _get_asset_or_404(db, asset_id)
    note = db.query(AssetNote).filter(AssetNote.id == note_id, AssetNote.equipment_id == asset.id).first()
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    note.content = body.content.strip()
    note.updated_at = utcnow()
    note.updated_by = actor_name(user)
    asset.last_modified = note.updated_at
    db.commit()
    db.refresh(asset)
    return asset


@router.delete("/{asset_id}/notes/{note_id}", response_model=EquipmentResponse)
def delete_note(
    asset_id: str,
    note_id: uuid.UUID,
    db: Session = Depends(get_db),
    _=Depends(require_permissions("deleteNotes")),
):
    asset = _get_asset_or_404(db, asset_id)
    note = next((n for n in asset.notes_history if n.id == note_id), None)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    asset.notes_history.remove(note)
    db.commit()
    db.refresh(asset)
    return asset
