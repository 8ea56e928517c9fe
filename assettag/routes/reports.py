from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response, StreamingResponse
from sqlalchemy.orm import Session

from ..db import get_db
from ..auth.security import require_permissions
from ..models.models import Equipment
from ..services.app_settings import get_or_create_settings
from ..services.assets import filter_equipment
from ..services.reports import assets_to_csv, assets_report_pdf, qr_labels_pdf
from ..services.scheduling import utcnow
from .equipment import asset_filters


router = APIRouter(prefix="/api/reports", tags=["reports"])


def _stamp() -> str:
    return utcnow().strftime("%Y-%m-%d")


@router.get("/assets.csv")
def export_assets_csv(
    filters: dict = Depends(asset_filters),
    db: Session = Depends(get_db),
    _=Depends(require_permissions("exportAssets", "exportReports")),
):
    content = assets_to_csv(filter_equipment(db, **filters).all())
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="assets-{_stamp()}.csv"'},
    )


@router.get("/assets.pdf")
def export_assets_pdf(
    filters: dict = Depends(asset_filters),
    db: Session = Depends(get_db),
    _=Depends(require_permissions("exportReports")),
):
    app_settings = get_or_create_settings(db)
    buffer = assets_report_pdf(filter_equipment(db, **filters).all(), company_name=app_settings.company_name)
    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="asset-report-{_stamp()}.pdf"'},
    )


@router.get("/qr-labels.pdf")
def export_qr_labels(
    ids: str = Query(..., description="Comma-separated asset tag ids"),
    db: Session = Depends(get_db),
    _=Depends(require_permissions("viewAssets")),
):
    wanted = [i.strip() for i in ids.split(",") if i.strip()]
    if not wanted:
        raise HTTPException(status_code=400, detail="No asset ids given")
    found = {a.asset_id: a for a in db.query(Equipment).filter(Equipment.asset_id.in_(wanted)).all()}
    missing = [i for i in wanted if i not in found]
    if missing:
        raise HTTPException(status_code=404, detail=f"Equipment not found: {', '.join(missing)}")
    buffer = qr_labels_pdf([found[i] for i in wanted])
    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="qr-labels.pdf"'},
    )
