"""
Asset exports: CSV, a tabular PDF report, QR code images and printable QR label sheets.
"""
import csv
from io import BytesIO, StringIO
from collections import Counter
from datetime import datetime
from typing import Iterable, List, Optional

import qrcode
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Image, Table, TableStyle
from PIL import Image as PILImage

from ..models.models import Equipment
from .assets import ASSET_STATUSES


CSV_COLUMNS = [
    "Asset ID",
    "Name",
    "Category",
    "Location",
    "Status",
    "Model",
    "Serial Number",
    "Assigned To",
    "Department",
    "Acquisition Date",
    "Cost",
    "Currency",
    "Maintenance Status",
    "Next Maintenance",
]

BRAND_COLOR = "#3B82F6"


def _fmt_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def _csv_row(asset: Equipment) -> list:
    return [
        asset.asset_id,
        asset.name,
        asset.category or "",
        asset.location or "",
        asset.status or "",
        asset.model or "",
        asset.serial or "",
        asset.assigned_to or "",
        asset.department or "",
        asset.acquisition_date or asset.purchase_date or "",
        "" if asset.cost is None else f"{asset.cost:.2f}",
        asset.currency or "",
        asset.maintenance_status or "",
        _fmt_date(asset.next_scheduled_maintenance),
    ]


def assets_to_csv(assets: Iterable[Equipment]) -> str:
    out = StringIO()
    writer = csv.writer(out)
    writer.writerow(CSV_COLUMNS)
    for asset in assets:
        writer.writerow(_csv_row(asset))
    return out.getvalue()


def generate_qr_code_image(data: str, size: int = 200) -> BytesIO:
    """Generate QR code image as BytesIO"""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white").convert("RGB")
    img = img.resize((size, size), PILImage.Resampling.NEAREST)

    buffer = BytesIO()
    img.save(buffer, format="PNG")
    buffer.seek(0)
    return buffer


def assets_report_pdf(assets: List[Equipment], title: str = "Asset Report", company_name: Optional[str] = None) -> BytesIO:
    """
    Build a landscape PDF with a status summary followed by the asset table.

    Args:
        assets: Assets to list, in display order
        title: Report heading
        company_name: Printed under the heading when given

    Returns:
        BytesIO buffer with PDF content
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        rightMargin=36,
        leftMargin=36,
        topMargin=36,
        bottomMargin=36,
        title=title,
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "ReportTitle",
        parent=styles["Heading1"],
        fontSize=20,
        textColor=colors.HexColor(BRAND_COLOR),
        spaceAfter=6,
    )
    cell_style = ParagraphStyle("Cell", parent=styles["Normal"], fontSize=8, leading=10)

    story = [Paragraph(title, title_style)]
    subtitle = f"Generated {datetime.now().strftime('%B %d, %Y %H:%M')}"
    if company_name:
        subtitle = f"{company_name} · {subtitle}"
    story.append(Paragraph(subtitle, styles["Normal"]))
    story.append(Spacer(1, 0.2 * inch))

    counts = Counter(a.status for a in assets)
    summary = [["Total"] + ASSET_STATUSES, [str(len(assets))] + [str(counts.get(s, 0)) for s in ASSET_STATUSES]]
    summary_table = Table(summary)
    summary_table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#E5E7EB")),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ]))
    story.append(summary_table)
    story.append(Spacer(1, 0.3 * inch))

    columns = ["Asset ID", "Name", "Category", "Location", "Status", "Assigned To", "Cost", "Maintenance Status", "Next Maintenance"]
    rows = [columns]
    for a in assets:
        cost = "" if a.cost is None else f"{a.currency or ''} {a.cost:,.2f}".strip()
        rows.append([
            Paragraph(a.asset_id, cell_style),
            Paragraph(a.name, cell_style),
            a.category or "",
            Paragraph(a.location or "", cell_style),
            a.status or "",
            Paragraph(a.assigned_to or "", cell_style),
            cost,
            a.maintenance_status or "",
            _fmt_date(a.next_scheduled_maintenance),
        ])
    if len(rows) == 1:
        rows.append(["No assets found"] + [""] * (len(columns) - 1))
    table = Table(rows, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(BRAND_COLOR)),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F3F4F6")]),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
    ]))
    story.append(table)

    doc.build(story)
    buffer.seek(0)
    return buffer


def qr_labels_pdf(assets: List[Equipment], columns: int = 3) -> BytesIO:
    """Printable sheet of QR labels, one cell per asset with its tag id and name."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, rightMargin=36, leftMargin=36, topMargin=36, bottomMargin=36, title="QR Labels")
    styles = getSampleStyleSheet()
    label_style = ParagraphStyle("Label", parent=styles["Normal"], fontSize=9, alignment=1, leading=11)

    cells = []
    for a in assets:
        qr_img = Image(generate_qr_code_image(a.asset_id, size=150), width=1.5 * inch, height=1.5 * inch)
        cells.append([qr_img, Paragraph(f"<b>{a.asset_id}</b><br/>{a.name}", label_style)])

    story = []
    if not cells:
        story.append(Paragraph("No assets selected", styles["Normal"]))
    else:
        rows = []
        for i in range(0, len(cells), columns):
            chunk = cells[i:i + columns]
            chunk += [""] * (columns - len(chunk))
            rows.append(chunk)
        col_width = (A4[0] - 72) / columns
        table = Table(rows, colWidths=[col_width] * columns)
        table.setStyle(TableStyle([
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("BOX", (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ("INNERGRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 12),
            ("TOPPADDING", (0, 0), (-1, -1), 12),
        ]))
        story.append(table)

    doc.build(story)
    buffer.seek(0)
    return buffer
