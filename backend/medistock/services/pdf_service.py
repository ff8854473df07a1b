"""
PDF invoice generation.

Renders the same document the sale screen previews: pharmacy header,
bill-to block, one row per sold batch line, then subtotal / tax / discount /
total.
"""
from datetime import datetime
from decimal import Decimal
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from sqlalchemy.orm import Session

from medistock.services.invoice_service import get_invoice, invoice_document


def format_date(value) -> str:
    """dd-Mon-yy, e.g. 05-Mar-26."""
    return value.strftime("%d-%b-%y")


def _money(currency: str, value: Decimal) -> str:
    return f"{currency} {float(value):,.2f}"


def _rate_label(part: Decimal, subtotal: Decimal) -> str:
    if not subtotal:
        return ""
    return f" ({float(part / subtotal * 100):.0f}%)"


def render_invoice_pdf(doc_data: dict) -> BytesIO:
    """Build the PDF for an invoice_document() dict."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, topMargin=0.5 * inch, bottomMargin=0.5 * inch)

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        "InvoiceTitle",
        parent=styles["Heading1"],
        fontSize=22,
        textColor=colors.HexColor("#1a56db"),
        alignment=TA_CENTER,
        spaceAfter=12,
    )
    heading_style = ParagraphStyle(
        "InvoiceHeading",
        parent=styles["Heading2"],
        fontSize=13,
        textColor=colors.HexColor("#1f2937"),
        spaceAfter=6,
    )
    normal_style = ParagraphStyle(
        "InvoiceNormal",
        parent=styles["Normal"],
        fontSize=10,
        textColor=colors.HexColor("#374151"),
    )

    company = doc_data["company"]
    customer = doc_data["customer"]
    currency = doc_data["currency"]

    elements.append(Paragraph("INVOICE", title_style))
    elements.append(Spacer(1, 0.2 * inch))

    header = Table(
        [[
            Paragraph(
                f"<b>{escape(company['name'])}</b><br/>{escape(company['address'])}<br/>{escape(company['phone'])}",
                normal_style,
            ),
            Paragraph(
                f"<b>Invoice #:</b> {escape(doc_data['invoice_no'])}<br/>"
                f"<b>Date:</b> {format_date(doc_data['date'])}<br/>"
                f"<b>Status:</b> {escape(doc_data['status'].upper())}",
                normal_style,
            ),
        ]],
        colWidths=[3.8 * inch, 2.7 * inch],
    )
    header.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]))
    elements.append(header)
    elements.append(Spacer(1, 0.3 * inch))

    elements.append(Paragraph("<b>Bill To:</b>", heading_style))
    bill_to = f"<b>{escape(customer['name'])}</b>"
    address = ", ".join(p for p in (customer["address"], customer["city"]) if p)
    if address:
        bill_to += f"<br/>{escape(address)}"
    if customer["phone"]:
        bill_to += f"<br/>Phone: {escape(customer['phone'])}"
    elements.append(Paragraph(bill_to, normal_style))
    elements.append(Spacer(1, 0.3 * inch))

    rows = [["#", "Batch", "Medicine", "Unit", "Qty", "Rate", "Amount"]]
    for n, line in enumerate(doc_data["items"], start=1):
        rows.append([
            str(n),
            line["batch_no"],
            Paragraph(escape(line["medicine"]), normal_style),
            line["unit"],
            str(line["quantity"]),
            f"{float(line['unit_price']):,.2f}",
            f"{float(line['amount']):,.2f}",
        ])

    items_table = Table(
        rows,
        colWidths=[0.35 * inch, 0.9 * inch, 2.3 * inch, 0.8 * inch, 0.5 * inch, 0.8 * inch, 0.95 * inch],
        repeatRows=1,
    )
    items_table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f3f4f6")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.HexColor("#1f2937")),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (4, 0), (-1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#fafafa")]),
        ("TOPPADDING", (0, 0), (-1, -1), 5),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2 * inch))

    subtotal = doc_data["subtotal"]
    totals = Table(
        [
            ["", "Subtotal:", _money(currency, subtotal)],
            ["", f"Tax{_rate_label(doc_data['tax'], subtotal)}:", _money(currency, doc_data["tax"])],
            ["", f"Discount{_rate_label(doc_data['discount'], subtotal)}:", f"- {_money(currency, doc_data['discount'])}"],
            ["", "TOTAL:", _money(currency, doc_data["total"])],
        ],
        colWidths=[3.6 * inch, 1.6 * inch, 1.4 * inch],
    )
    totals.setStyle(TableStyle([
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("FONTNAME", (1, 3), (-1, 3), "Helvetica-Bold"),
        ("LINEABOVE", (1, 3), (-1, 3), 1, colors.black),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]))
    elements.append(totals)

    footer_style = ParagraphStyle(
        "Footer",
        parent=styles["Normal"],
        fontSize=8,
        textColor=colors.grey,
        alignment=TA_CENTER,
    )
    elements.append(Spacer(1, 0.6 * inch))
    elements.append(Paragraph("Thank you for your business!", footer_style))
    elements.append(Paragraph(
        f"Invoice generated on {datetime.now().strftime('%d %b %Y at %I:%M %p')}", footer_style
    ))

    doc.build(elements)
    buffer.seek(0)
    return buffer


def generate_invoice_pdf(db: Session, invoice_id: int) -> BytesIO:
    return render_invoice_pdf(invoice_document(get_invoice(db, invoice_id)))
