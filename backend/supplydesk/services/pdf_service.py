# Overview: Printable invoice rendered with reportlab.

from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from ..money import money_json

BRAND_NAME = "SupplyDesk School Supplies"


def _money(value) -> str:
    return f"Rs. {money_json(value) or 0:,.2f}"


def render_invoice_pdf(invoice) -> bytes:
    """Render an Invoice (with lines, school and student loaded) to PDF bytes."""
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    width, height = A4
    x_margin = 18 * mm

    brand = colors.HexColor("#1e3a8a")
    muted = colors.HexColor("#64748b")
    border = colors.HexColor("#e2e8f0")

    # Header bar
    header_h = 26 * mm
    c.setFillColor(brand)
    c.rect(0, height - header_h, width, header_h, fill=1, stroke=0)
    c.setFillColor(colors.white)
    c.setFont("Helvetica-Bold", 16)
    c.drawString(x_margin, height - 12 * mm, BRAND_NAME)
    c.setFont("Helvetica", 10)
    title = "TAX INVOICE" if invoice.gst_number else "INVOICE"
    c.drawString(x_margin, height - 18 * mm, title)
    c.setFont("Helvetica-Bold", 11)
    c.drawRightString(width - x_margin, height - 12 * mm, invoice.invoice_number)
    c.setFont("Helvetica", 9)
    c.drawRightString(width - x_margin, height - 18 * mm, invoice.invoice_date.strftime("%d %b %Y"))

    y = height - header_h - 10 * mm

    def draw_kv(label: str, value: str):
        nonlocal y
        c.setFont("Helvetica", 9)
        c.setFillColor(muted)
        c.drawString(x_margin, y, label)
        c.setFillColor(colors.black)
        c.setFont("Helvetica-Bold", 10)
        c.drawString(x_margin + 35 * mm, y, value)
        y -= 6 * mm

    student = invoice.student
    draw_kv("Student", f"{student.name} ({student.roll_number})" if student else "N/A")
    draw_kv("Class", f"{student.class_name} {student.section or ''}".strip() if student else "N/A")
    draw_kv("School", invoice.school.name if invoice.school else "N/A")
    draw_kv("Payment", f"{invoice.payment_status.upper()} / {invoice.payment_method}")
    if invoice.gst_number:
        draw_kv("GSTIN", invoice.gst_number)
        business = invoice.business_info or {}
        if business.get("legal_name") or business.get("trade_name"):
            draw_kv("Business", str(business.get("legal_name") or business.get("trade_name")))

    # Line items table
    y -= 4 * mm
    columns = [
        ("Item", x_margin, "left"),
        ("Qty", x_margin + 90 * mm, "right"),
        ("Rate", x_margin + 115 * mm, "right"),
        ("GST", x_margin + 140 * mm, "right"),
        ("Amount", width - x_margin, "right"),
    ]

    def draw_row(values, bold=False):
        nonlocal y
        c.setFont("Helvetica-Bold" if bold else "Helvetica", 9)
        for (_, x, align), value in zip(columns, values):
            if align == "left":
                c.drawString(x, y, value)
            else:
                c.drawRightString(x, y, value)
        y -= 6 * mm

    c.setFillColor(colors.black)
    draw_row([name for name, _, _ in columns], bold=True)
    c.setStrokeColor(border)
    c.line(x_margin, y + 4 * mm, width - x_margin, y + 4 * mm)

    for line in invoice.lines:
        if y < 40 * mm:
            c.showPage()
            y = height - 20 * mm
        draw_row([
            line.product_name[:48],
            str(line.quantity),
            _money(line.unit_price),
            f"{money_json(line.gst_rate):g}%",
            _money(line.total_price),
        ])

    c.line(x_margin, y + 4 * mm, width - x_margin, y + 4 * mm)
    y -= 2 * mm

    def draw_total(label: str, value, bold=False):
        nonlocal y
        c.setFont("Helvetica-Bold" if bold else "Helvetica", 10 if bold else 9)
        c.drawRightString(x_margin + 140 * mm, y, label)
        c.drawRightString(width - x_margin, y, _money(value))
        y -= 6 * mm

    draw_total("Subtotal", invoice.subtotal)
    draw_total("GST", invoice.gst_amount)
    if invoice.discount:
        draw_total("Discount", -invoice.discount)
    draw_total("Total", invoice.total_amount, bold=True)

    if invoice.notes:
        y -= 4 * mm
        c.setFont("Helvetica", 8.5)
        c.setFillColor(muted)
        c.drawString(x_margin, y, f"Notes: {invoice.notes[:110]}")

    c.setFillColor(muted)
    c.setFont("Helvetica", 8)
    c.drawCentredString(width / 2, 12 * mm, "Thank you for your purchase.")

    c.showPage()
    c.save()
    pdf_bytes = buf.getvalue()
    buf.close()
    return pdf_bytes
