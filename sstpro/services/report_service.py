# sstpro/services/report_service.py
"""
Exportações: relatório de visita técnica em PDF (reportlab) e a planilha
do histórico (openpyxl).
"""
import base64
import binascii
from datetime import date
from io import BytesIO
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas
from reportlab.platypus import Table, TableStyle

from ..models import Appointment
from ..storage import PhotoStorage

NAVY = colors.Color(15 / 255, 23 / 255, 42 / 255)
EMERALD = colors.Color(34 / 255, 197 / 255, 94 / 255)
LIGHT = colors.Color(248 / 255, 250 / 255, 252 / 255)
ROW_GRAY = colors.Color(245 / 255, 245 / 255, 245 / 255)

MARGIN = 42
FOOTER_H = 42
SIGN_BLOCK_H = 140
PHOTO_MAX_W = 240
PHOTO_MAX_H = 180


def _decode_data_url(data_url: Optional[str]) -> Optional[ImageReader]:
    """'data:image/png;base64,...' -> ImageReader, ou None se inválido."""
    if not data_url or not data_url.startswith("data:") or "," not in data_url:
        return None
    try:
        raw = base64.b64decode(data_url.split(",", 1)[1], validate=True)
        return ImageReader(BytesIO(raw))
    except (binascii.Error, ValueError, OSError):
        return None


def report_filename(appointment: Appointment) -> str:
    name = (appointment.company_name or "Empresa").strip().replace(" ", "_")
    return f"Relatorio_SST_{name}.pdf"


class ReportService:
    def __init__(self, brand: str = "SST PRO", photos: Optional[PhotoStorage] = None) -> None:
        self.brand = brand
        self.photos = photos

    def _photo_reader(self, photo_url: Optional[str]) -> Optional[ImageReader]:
        """Foto da visita: data URL inline ou arquivo local dentro do UPLOAD_DIR."""
        if not photo_url:
            return None
        if photo_url.startswith("data:"):
            return _decode_data_url(photo_url)
        path = self.photos.local_path(photo_url) if self.photos else None
        if not path:
            return None
        try:
            return ImageReader(path)
        except OSError:
            return None

    # ---------------------------
    # PDF
    # ---------------------------
    def _watermark(self, c: canvas.Canvas, width: float, height: float) -> None:
        c.saveState()
        c.setFillColor(colors.Color(0.6, 0.6, 0.6, alpha=0.06))
        c.setFont("Helvetica-Bold", 60)
        c.translate(width / 2, height / 2)
        c.rotate(45)
        c.drawCentredString(0, 0, self.brand)
        c.restoreState()

    def _header(self, c: canvas.Canvas, appt: Appointment, width: float, height: float) -> None:
        band = 100
        c.setFillColor(NAVY)
        c.rect(0, height - band, width, band, stroke=0, fill=1)

        c.setStrokeColor(EMERALD)
        c.setLineWidth(2)
        c.circle(MARGIN + 22, height - band / 2, 22, stroke=1, fill=0)

        head, _, tail = self.brand.partition(" ")
        c.setFont("Helvetica-Bold", 18)
        c.setFillColor(colors.white)
        c.drawString(MARGIN + 54, height - band / 2 - 6, head)
        if tail:
            c.setFillColor(EMERALD)
            c.drawString(MARGIN + 58 + c.stringWidth(head, "Helvetica-Bold", 18), height - band / 2 - 6, tail)

        c.setFillColor(colors.white)
        c.setFont("Helvetica", 10)
        c.drawRightString(width - MARGIN, height - 40, "RELATÓRIO DE VISITA TÉCNICA")
        c.setFont("Helvetica", 8)
        c.drawRightString(width - MARGIN, height - 58, f"ID: #{appt.short_id}")
        c.drawRightString(width - MARGIN, height - 72, f"EMISSÃO: {date.today().strftime('%d/%m/%Y')}")

    def _footer(self, c: canvas.Canvas, width: float) -> None:
        c.setFillColor(LIGHT)
        c.rect(0, 0, width, FOOTER_H, stroke=0, fill=1)
        c.setFillColor(colors.Color(0.4, 0.4, 0.4))
        c.setFont("Helvetica", 8)
        c.drawCentredString(
            width / 2, 18,
            f"{self.brand} - Gestão Ocupacional Inteligente | Gerado via Plataforma Digital",
        )

    def _signatures(self, c: canvas.Canvas, appt: Appointment, width: float) -> None:
        y = FOOTER_H + 70
        left = (MARGIN + 15, MARGIN + 215)
        right = (width - MARGIN - 215, width - MARGIN - 15)

        # assinatura coletada no formulário é a do cliente
        sig = _decode_data_url(appt.signature_image)
        if sig is not None:
            c.drawImage(sig, right[0], y + 4, width=right[1] - right[0], height=55,
                        preserveAspectRatio=True, mask="auto")

        c.setStrokeColor(colors.Color(0.7, 0.7, 0.7))
        c.setLineWidth(1)
        c.line(left[0], y, left[1], y)
        c.line(right[0], y, right[1], y)
        c.setFillColor(NAVY)
        c.setFont("Helvetica", 8)
        c.drawCentredString((left[0] + left[1]) / 2, y - 12, "Assinatura do Técnico")
        c.drawCentredString((right[0] + right[1]) / 2, y - 12, "Assinatura do Cliente")

    def _details_table(self, appt: Appointment, avail_width: float) -> Table:
        data = [
            ["ESPECIFICAÇÃO", "DETALHAMENTO"],
            ["CLIENTE", (appt.company_name or "Empresa não informada").upper()],
            ["DOCUMENTO (CNPJ)", appt.company_cnpj or "N/A"],
            ["DATA E HORÁRIO", f"{appt.date} às {appt.time}"],
            ["MOTIVO DA VISITA", appt.reason or "Vistoria Técnica"],
            ["EXECUTOR", appt.technician_name or "Técnico Responsável"],
        ]
        table = Table(data, colWidths=[150, avail_width - 150])
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), NAVY),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTNAME", (0, 1), (0, -1), "Helvetica-Bold"),
            ("BACKGROUND", (0, 1), (0, -1), ROW_GRAY),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.Color(0.8, 0.8, 0.8)),
            ("TOPPADDING", (0, 0), (-1, -1), 6),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
        ]))
        return table

    def _next_page(self, c: canvas.Canvas, width: float, height: float) -> float:
        self._footer(c, width)
        c.showPage()
        self._watermark(c, width, height)
        c.setFillColor(NAVY)
        c.setFont("Helvetica", 10)
        return height - MARGIN

    def generate_appointment_pdf(self, appt: Appointment) -> bytes:
        buf = BytesIO()
        width, height = letter
        c = canvas.Canvas(buf, pagesize=letter)
        c.setTitle(f"Relatório de Visita Técnica #{appt.short_id}")

        self._watermark(c, width, height)
        self._header(c, appt, width, height)

        y = height - 140
        c.setFillColor(NAVY)
        c.setFont("Helvetica-Bold", 12)
        c.drawString(MARGIN, y, "1. DADOS DO ATENDIMENTO")

        table = self._details_table(appt, width - 2 * MARGIN)
        _, th = table.wrapOn(c, width - 2 * MARGIN, height)
        y -= 14 + th
        table.drawOn(c, MARGIN, y)

        y -= 34
        c.setFillColor(NAVY)
        c.setFont("Helvetica-Bold", 12)
        c.drawString(MARGIN, y, "2. PARECER TÉCNICO")

        text = appt.description or "Sem observações adicionais gravadas."
        lines: List[str] = []
        for paragraph in text.splitlines() or [""]:
            lines.extend(simpleSplit(paragraph, "Helvetica", 10, width - 2 * MARGIN) or [""])

        y -= 20
        c.setFont("Helvetica", 10)
        bottom = FOOTER_H + SIGN_BLOCK_H
        for line in lines:
            if y < bottom:
                # quebra de página para pareceres longos
                y = self._next_page(c, width, height)
            c.drawString(MARGIN, y, line)
            y -= 14

        photo = self._photo_reader(appt.photo_url)
        if photo is not None:
            iw, ih = photo.getSize()
            scale = min(PHOTO_MAX_W / iw, PHOTO_MAX_H / ih)
            pw, ph = iw * scale, ih * scale
            if y - 28 - ph < bottom:
                y = self._next_page(c, width, height)
            y -= 20
            c.setFillColor(NAVY)
            c.setFont("Helvetica-Bold", 12)
            c.drawString(MARGIN, y, "3. EVIDÊNCIA FOTOGRÁFICA")
            y -= 8 + ph
            c.drawImage(photo, MARGIN, y, width=pw, height=ph, preserveAspectRatio=True, mask="auto")

        self._signatures(c, appt, width)
        self._footer(c, width)
        c.showPage()
        c.save()
        return buf.getvalue()

    # ---------------------------
    # Excel do histórico
    # ---------------------------
    def export_history_xlsx(self, appointments: List[Appointment]) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = "Histórico"

        header = ["Data", "Hora", "Empresa", "CNPJ", "Técnico", "Motivo", "Status"]
        ws.append(header)
        for cell in ws[1]:
            cell.font = Font(bold=True, color="FFFFFF")
            cell.fill = PatternFill("solid", fgColor="0F172A")

        for a in appointments:
            ws.append([
                a.date,
                a.time,
                a.company_name or "",
                a.company_cnpj or "",
                a.technician_name or "Aguardando Técnico",
                a.reason or "",
                a.status_label,
            ])

        # larguras
        for idx, col_cells in enumerate(ws.iter_cols(min_col=1, max_col=ws.max_column), start=1):
            max_len = max(len("" if c.value is None else str(c.value)) for c in col_cells)
            ws.column_dimensions[get_column_letter(idx)].width = min(max(12, max_len + 2), 60)

        bio = BytesIO()
        wb.save(bio)
        return bio.getvalue()
