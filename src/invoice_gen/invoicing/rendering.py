"""Tax invoice layout and PDF export.

The invoice is drawn onto an off-screen Pillow surface at twice the nominal
800px template width, then fitted onto an A4 page and encoded as a
single-page PDF.
"""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from io import BytesIO
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import qrcode
from PIL import Image, ImageDraw, ImageFont

from ..utils.config import Config
from ..utils.logging import get_logger
from .calculator import format_money, round_rupees
from .models import InvoiceBreakdown, LineBreakdown, Order, PaymentMethod
from .words import invoice_amount_line

logger = get_logger(__name__)

SCALE = 2
SURFACE_WIDTH = 800 * SCALE
MARGIN = 15 * SCALE
CONTENT_WIDTH = SURFACE_WIDTH - 2 * MARGIN
# A4 at 150 dpi
PAGE_DPI = 150
PAGE_SIZE = (1240, 1754)

BLACK = (0, 0, 0)
GREY = (102, 102, 102)
LIGHT_GREY = (153, 153, 153)
HEADER_FILL = (240, 240, 240)
TOTAL_FILL = (249, 249, 249)
BRAND_ORANGE = (255, 107, 53)
WHITE = (255, 255, 255)

ITEM_COLUMNS = (0.05, 0.25, 0.30, 0.08, 0.08, 0.06, 0.08, 0.10, 0.10)
ITEM_HEADERS = (
    "S. N.", "Product Name", "Title\\Description", "Price", "Discount\\\nCoupons",
    "QTY\n(Unit)", "Taxable\nValue", "IGST or CGST\nSGST/UTGST", "Total Amount",
)
TERMS = (
    "• Keep this Invoice and manufacturer box for warranty purposes. (If warranty is applicable)",
    "• Goods once sold will not be taken back or exchanged except under our return policy",
    "• All disputes are subject to jurisdiction of courts in our city only",
)

Cell = Union[str, Sequence[str]]


class InvoiceExportError(Exception):
    """Raised when the invoice could not be drawn or written as a PDF."""


@dataclass(frozen=True)
class SellerProfile:
    name: str
    address_lines: Tuple[str, ...]
    gstin: str
    pan: str

    @classmethod
    def from_config(cls, config: Config) -> "SellerProfile":
        address = config.get("seller_address", "")
        return cls(
            name=config.get("seller_name", ""),
            address_lines=tuple(part.strip() for part in address.split("|") if part.strip()),
            gstin=config.get("seller_gstin", ""),
            pan=config.get("seller_pan", ""),
        )


def invoice_file_name(order_id: int, invoice_date: date) -> str:
    return f"Invoice_{order_id}_{invoice_date.isoformat()}.pdf"


def invoice_number(order_id: int, invoice_date: date) -> str:
    return f"BLK{order_id}{invoice_date:%y%m%d}"


def split_address(address: str) -> Tuple[str, str]:
    """Split a shipping address into (PIN code, locality) for the address blocks."""
    parts = address.split(",")
    pin = parts[-1].strip()
    locality = ",".join(parts[:-1]).strip()[:40]
    return pin, locality


def truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


@lru_cache(maxsize=None)
def _font(size: int, bold: bool = False) -> ImageFont.ImageFont:
    name = "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf"
    try:
        return ImageFont.truetype(name, size)
    except OSError:
        return ImageFont.load_default(size=size)


def make_qr_image(data: str, size: int) -> Image.Image:
    """Render a QR code for data as a size x size RGB image."""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=1,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    buffer.seek(0)
    with Image.open(buffer) as png:
        return png.convert("RGB").resize((size, size), Image.Resampling.NEAREST)


@contextmanager
def rendering_surface(width: int, height: int) -> Iterator[Image.Image]:
    """Off-screen white surface, released when the block exits."""
    surface = Image.new("RGB", (width, height), WHITE)
    try:
        yield surface
    finally:
        surface.close()


class _Pen:
    """Cursor-free drawing helpers on top of ImageDraw."""

    def __init__(self, surface: Image.Image) -> None:
        self.draw = ImageDraw.Draw(surface)

    @staticmethod
    def line_height(size: int) -> int:
        return int(size * 1.3)

    def text(self, x: int, y: int, text: str, size: int = 10, bold: bool = False,
             fill=BLACK, align: str = "left", width: int = 0) -> int:
        """Draw one or more lines of text; returns the height used."""
        font = _font(size * SCALE, bold)
        step = self.line_height(size * SCALE)
        lines = text.split("\n")
        for i, line in enumerate(lines):
            tx = x
            if align != "left" and width:
                line_width = self.draw.textlength(line, font=font)
                tx = x + (width - line_width) / 2 if align == "center" else x + width - line_width
            self.draw.text((tx, y + i * step), line, font=font, fill=fill)
        return step * len(lines)

    def rule(self, y: int, x0: int = MARGIN, x1: int = SURFACE_WIDTH - MARGIN, width: int = 1) -> None:
        self.draw.line([(x0, y), (x1, y)], fill=BLACK, width=width * SCALE // 2 or 1)

    def table(self, x: int, y: int, widths: Sequence[int], rows: Sequence[Sequence[Cell]],
              size: int = 9, bold_rows: Sequence[int] = (), aligns: Optional[Sequence[str]] = None,
              fills: Optional[dict] = None) -> int:
        """Draw a bordered table; cells may hold several lines. Returns its height."""
        pad = 4 * SCALE
        step = self.line_height(size * SCALE)
        aligns = aligns or ["left"] * len(widths)
        fills = fills or {}
        top = y
        for r, row in enumerate(rows):
            cells = [[c] if isinstance(c, str) else list(c) for c in row]
            cells = [sum((line.split("\n") for line in c), []) for c in cells]
            height = max(len(c) for c in cells) * step + 2 * pad
            cx = x
            for c, (lines, w) in enumerate(zip(cells, widths)):
                box = [cx, y, cx + w, y + height]
                self.draw.rectangle(box, outline=BLACK, fill=fills.get(r), width=1)
                self.text(cx + pad, y + pad, "\n".join(lines), size=size, bold=r in bold_rows,
                          align=aligns[c], width=w - 2 * pad)
                cx += w
            y += height
        return y - top


def _columns(total: int, fractions: Sequence[float]) -> List[int]:
    widths = [int(total * f) for f in fractions]
    widths[-1] += total - sum(widths)
    return widths


def _tax_cell(line: LineBreakdown) -> List[str]:
    parts = []
    for amount, rate in ((line.igst, line.rates.igst), (line.cgst, line.rates.cgst), (line.sgst, line.rates.sgst)):
        if amount > 0:
            parts.append(f"{format_money(amount)} ({format_money(rate, 1)}%)")
    return parts or ["0.00 (0%)"]


def _description_cell(line: LineBreakdown) -> List[str]:
    item = line.item
    cell = [truncate(item.name, 35)]
    if item.selected_color:
        cell.append(f"({item.selected_color} Colour,")
    if item.selected_size:
        cell.append(f"Size: {item.selected_size},")
    cell.append(f"Pack of {item.quantity}/Pcs)")
    return cell


def _party_block(order: Order, title: str) -> str:
    pin, locality = split_address(order.shipping_address)
    return "\n".join([
        title,
        order.user_name,
        f"{order.user_name}, {pin}",
        locality,
        f"- {pin}",
        f"Phone: {order.user_phone}",
    ])


class InvoiceRenderer:
    """Lay out a computed invoice and export it as a single-page A4 PDF."""

    def __init__(self, seller: SellerProfile, support_url: str) -> None:
        self.seller = seller
        self.support_url = support_url

    def _qr_code(self, size: int) -> Optional[Image.Image]:
        try:
            return make_qr_image(self.support_url, size)
        except Exception as e:
            logger.error(f"QR code generation failed: {e}")
            return None

    def _estimate_height(self, breakdown: InvoiceBreakdown) -> int:
        return (1000 + 70 * len(breakdown.lines)) * SCALE

    def draw(self, surface: Image.Image, breakdown: InvoiceBreakdown, invoice_date: date) -> int:
        """Draw the invoice onto surface; returns the height actually used."""
        pen = _Pen(surface)
        order, totals = breakdown.order, breakdown.totals
        left, width = MARGIN, CONTENT_WIDTH
        y = MARGIN

        # Header: logo, title, QR code
        logo = 35 * SCALE
        pen.draw.rounded_rectangle([left, y, left + logo, y + logo], radius=4 * SCALE, fill=BRAND_ORANGE)
        pen.text(left, y + 8 * SCALE, "BLINK\nEACH", size=8, bold=True, fill=WHITE, align="center", width=logo)
        pen.text(left, y, "Tax Invoice", size=16, bold=True, align="center", width=width)
        qr_box = 60 * SCALE
        qr_x = left + width - qr_box
        pen.draw.rectangle([qr_x, y, qr_x + qr_box, y + qr_box], outline=BLACK, width=1)
        qr = self._qr_code(qr_box - 4 * SCALE)
        if qr is not None:
            surface.paste(qr, (qr_x + 2 * SCALE, y + 2 * SCALE))
            qr.close()
        else:
            pen.text(qr_x, y + 15 * SCALE, "QR Code\nScanner\nHere", size=6, align="center", width=qr_box)
        y += qr_box + 10 * SCALE
        pen.rule(y)
        y += 10 * SCALE

        # Seller
        seller_lines = [f"Sold By: {self.seller.name}"]
        if self.seller.address_lines:
            seller_lines.append(f"Address: {self.seller.address_lines[0]}")
            seller_lines.extend(self.seller.address_lines[1:])
        seller_lines.append(f"GSTIN: {self.seller.gstin}")
        y += pen.text(left, y, "\n".join(seller_lines), size=10) + 15 * SCALE

        # Order details, Bill To, Ship To
        third = width // 3
        details = "\n".join([
            f"Order ID: OD{order.id}",
            f"Order Date: {order.created_at:%d/%m/%Y}",
            f"Invoice Date: {invoice_date:%d/%m/%Y}",
            f"PAN: {self.seller.pan}",
        ])
        heights = [
            pen.text(left, y, details, size=10),
            pen.text(left + third, y, _party_block(order, "Bill To"), size=10, align="center", width=third),
            pen.text(left + 2 * third, y, _party_block(order, "Ship To"), size=10, align="right", width=third),
        ]
        y += max(heights) + 15 * SCALE
        y += pen.text(left, y, f"Invoice Number # {invoice_number(order.id, invoice_date)}", size=10,
                      bold=True, align="right", width=width) + 15 * SCALE

        # Line items
        rows: List[List[Cell]] = [list(ITEM_HEADERS)]
        for index, line in enumerate(breakdown.lines, start=1):
            rows.append([
                str(index),
                [truncate(line.item.name, 20), f"HSN/SAC:{line.item.hsn_code}"],
                _description_cell(line),
                format_money(line.unit_price),
                f"-{format_money(line.discount)}",
                f"{line.item.quantity:02d} PCS",
                format_money(line.taxable_value),
                _tax_cell(line),
                format_money(line.total),
            ])
        rows.append([
            "", "", "Total", "",
            f"-{format_money(totals.total_discount)}",
            f"{totals.total_quantity:02d}",
            format_money(totals.taxable_value),
            format_money(totals.total_tax),
            format_money(totals.items_total),
        ])
        aligns = ["center", "left", "left"] + ["center"] * 6
        y += pen.table(left, y, _columns(width, ITEM_COLUMNS), rows, size=9,
                       bold_rows=(0, len(rows) - 1), aligns=aligns) + 15 * SCALE

        # Tax summary, extra charges, grand total
        gst_rows = [
            ["GST", "Amount"],
            ["IGST", format_money(totals.total_igst)],
            ["CGST", format_money(totals.total_cgst)],
            ["SGST/UTGST", format_money(totals.total_sgst)],
            ["Total Tax Amount", format_money(totals.total_tax)],
        ]
        if order.payment_method is PaymentMethod.CASH_ON_DELIVERY:
            payment_row = ["COD Charges", format_money(totals.cod_charge)]
        else:
            payment_row = ["Online Payment Discount", f"-{format_money(totals.online_payment_discount)}"]
        charge_rows = [
            ["EXTRA Discount", "Total Discount Amount"],
            ["Shipping & Handling Charges", format_money(totals.delivery_charge)],
            ["Universal Discount for All Users", f"-{format_money(totals.universal_discount)}"],
            payment_row,
        ]
        gst_width = int(width * 0.30)
        charge_width = int(width * 0.35)
        total_width = int(width * 0.30)
        gst_height = pen.table(left, y, _columns(gst_width, (0.6, 0.4)), gst_rows,
                               bold_rows=(0, 4), aligns=["left", "center"], fills={0: HEADER_FILL})
        charge_x = left + gst_width + (width - gst_width - charge_width - total_width) // 2
        charge_height = pen.table(charge_x, y, _columns(charge_width, (0.6, 0.4)), charge_rows,
                                  bold_rows=(0,), aligns=["left", "center"])
        total_x = left + width - total_width
        grand = f"Rs. {format_money(totals.grand_total, 0)}"
        box_height = 60 * SCALE
        pen.draw.rectangle([total_x, y, total_x + total_width, y + box_height], outline=BLACK, fill=TOTAL_FILL)
        pen.text(total_x, y + 8 * SCALE, "Grand Total", size=12, bold=True, align="right",
                 width=total_width - 8 * SCALE)
        pen.text(total_x, y + 28 * SCALE, grand, size=16, bold=True, align="right",
                 width=total_width - 8 * SCALE)
        y += max(gst_height, charge_height, box_height) + 15 * SCALE

        # Amount in words
        y += pen.text(left, y, "AMOUNT IN WORD:", size=10, bold=True) + 5 * SCALE
        pen.rule(y)
        y += 5 * SCALE
        y += pen.text(left, y, invoice_amount_line(round_rupees(totals.grand_total)), size=10) + 15 * SCALE

        # Terms and signature
        terms_width = int(width * 0.60)
        sign_width = int(width * 0.35)
        sign_x = left + width - sign_width
        terms_top = y
        y += pen.text(left, y, "Terms & Conditions:", size=9, bold=True) + 3 * SCALE
        pen.rule(y, x0=left, x1=left + terms_width)
        y += 5 * SCALE
        y += pen.text(left, y, "\n".join(TERMS), size=8)

        sy = terms_top
        sy += pen.text(sign_x, sy, f"for {self.seller.name.upper()}", size=10, bold=True,
                       align="right", width=sign_width) + 10 * SCALE
        stamp_w, stamp_h = 100 * SCALE, 50 * SCALE
        stamp_x = sign_x + sign_width - stamp_w
        pen.draw.rectangle([stamp_x, sy, stamp_x + stamp_w, sy + stamp_h], outline=(221, 221, 221))
        pen.text(stamp_x, sy + 20 * SCALE, "Proprietor", size=8, fill=LIGHT_GREY, align="center", width=stamp_w)
        sy += stamp_h + 20 * SCALE
        pen.rule(sy, x0=sign_x, x1=sign_x + sign_width)
        sy += 5 * SCALE
        sy += pen.text(sign_x, sy, "Authorised Signatory", size=9, align="right", width=sign_width)

        bottom = max(y, sy) + MARGIN
        pen.draw.rectangle([0, 0, SURFACE_WIDTH - 1, bottom], outline=BLACK, width=2 * SCALE)
        return bottom + 1

    def compose_page(self, snapshot: Image.Image) -> Image.Image:
        """Fit a snapshot onto an A4 page, centred horizontally and top aligned."""
        page_w, page_h = PAGE_SIZE
        ratio = min(page_w / snapshot.width, page_h / snapshot.height)
        size = (max(1, int(snapshot.width * ratio)), max(1, int(snapshot.height * ratio)))
        page = Image.new("RGB", PAGE_SIZE, WHITE)
        with snapshot.resize(size, Image.Resampling.LANCZOS) as scaled:
            page.paste(scaled, ((page_w - size[0]) // 2, 0))
        return page

    def render(self, breakdown: InvoiceBreakdown, invoice_date: date) -> Image.Image:
        """Draw the invoice and return the composed A4 page image."""
        height = self._estimate_height(breakdown)
        with rendering_surface(SURFACE_WIDTH, height) as surface:
            used = self.draw(surface, breakdown, invoice_date)
            if used <= height:
                with surface.crop((0, 0, SURFACE_WIDTH, used)) as snapshot:
                    return self.compose_page(snapshot)
        # Content overran the estimate; the first pass measured the real height
        logger.debug(f"Invoice needs {used}px, estimated {height}px; redrawing")
        with rendering_surface(SURFACE_WIDTH, used) as surface:
            redrawn = self.draw(surface, breakdown, invoice_date)
            if redrawn != used:
                raise InvoiceExportError(f"Invoice layout height changed between passes ({used} != {redrawn})")
            return self.compose_page(surface)

    def export(self, breakdown: InvoiceBreakdown, output_dir: Union[str, Path],
               invoice_date: Optional[date] = None) -> Path:
        """
        Render the invoice and write it as a PDF into output_dir.

        The file only appears under its final name once it has been fully
        written; any failure raises InvoiceExportError and leaves nothing
        behind.

        Returns:
            Path of the written PDF
        """
        invoice_date = invoice_date or date.today()
        output_dir = Path(output_dir)
        target = output_dir / invoice_file_name(breakdown.order.id, invoice_date)
        tmp_path = None
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            page = self.render(breakdown, invoice_date)
            try:
                fd, tmp_path = tempfile.mkstemp(dir=output_dir, prefix=".invoice-", suffix=".pdf.part")
                os.close(fd)
                page.save(tmp_path, format="PDF", resolution=float(PAGE_DPI))
            finally:
                page.close()
            os.replace(tmp_path, target)
            tmp_path = None
        except Exception as e:
            raise InvoiceExportError(f"Failed to export invoice for order {breakdown.order.id}: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
        logger.info(f"Invoice written to {target}")
        return target
