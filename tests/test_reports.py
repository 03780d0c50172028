import base64
import re
from datetime import datetime
from io import BytesIO

from openpyxl import load_workbook

from sstpro.models import Appointment, AppointmentStatus
from sstpro.services.report_service import ReportService, report_filename, _decode_data_url
from sstpro.storage import PhotoStorage

# PNG 1x1
PNG = ("data:image/png;base64,"
       "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII=")


def _appt(**kw):
    base = dict(
        id="abcdef12-0000-0000-0000-000000000000",
        company_id="c1",
        company_name="Metalúrgica Alfa",
        company_cnpj="12.345.678/0001-90",
        datetime=datetime(2026, 3, 9, 8, 40),
        reason="Inspeção NR-12",
        status=AppointmentStatus.COMPLETED,
        technician_id="t1",
        technician_name="Carlos Técnico",
        description="Máquinas com proteção adequada.",
        signature_image=PNG,
    )
    base.update(kw)
    return Appointment(**base)


def test_pdf_is_generated():
    pdf = ReportService().generate_appointment_pdf(_appt())
    assert pdf.startswith(b"%PDF")


def test_pdf_with_long_report_spans_pages():
    long_text = "\n".join(f"Item {i}: verificado e conforme NR-12." for i in range(120))
    pdf = ReportService().generate_appointment_pdf(_appt(description=long_text))
    pages = re.search(rb"/Count (\d+)", pdf)
    assert pages and int(pages.group(1)) >= 2


def test_pdf_tolerates_missing_fields():
    pdf = ReportService("ACME").generate_appointment_pdf(
        _appt(company_cnpj=None, technician_name=None, description=None, signature_image="lixo")
    )
    assert pdf.startswith(b"%PDF")


def test_decode_data_url():
    assert _decode_data_url(PNG) is not None
    assert _decode_data_url(None) is None
    assert _decode_data_url("data:image/png;base64,@@@") is None
    assert _decode_data_url("https://x/y.png") is None


def test_report_filename():
    assert report_filename(_appt()) == "Relatorio_SST_Metalúrgica_Alfa.pdf"
    assert report_filename(_appt(company_name="")) == "Relatorio_SST_Empresa.pdf"


def test_history_xlsx():
    rows = [
        _appt(),
        _appt(technician_name=None, technician_id=None, status=AppointmentStatus.PENDING),
    ]
    data = ReportService().export_history_xlsx(rows)
    ws = load_workbook(BytesIO(data)).active
    values = [[c.value for c in r] for r in ws.iter_rows()]
    assert values[0] == ["Data", "Hora", "Empresa", "CNPJ", "Técnico", "Motivo", "Status"]
    assert values[1] == ["09/03/2026", "08:40", "Metalúrgica Alfa", "12.345.678/0001-90",
                         "Carlos Técnico", "Inspeção NR-12", "Concluído"]
    assert values[2][4] == "Aguardando Técnico"
    assert values[2][6] == "Aguardando"


class _RecordingCanvas:
    def __init__(self):
        self.images = []
        self.labels = {}

    def drawImage(self, image, x, y, width=None, height=None, **kw):
        self.images.append((x, x + width))

    def drawCentredString(self, x, y, text):
        self.labels[text] = x

    def __getattr__(self, name):
        return lambda *a, **kw: None


def test_signature_is_drawn_over_client_line():
    c = _RecordingCanvas()
    ReportService()._signatures(c, _appt(), 612)
    (x0, x1), = c.images
    assert (x0 + x1) / 2 == c.labels["Assinatura do Cliente"]
    assert not x0 <= c.labels["Assinatura do Técnico"] <= x1


def test_pdf_embeds_photo_from_data_url():
    without = ReportService().generate_appointment_pdf(_appt(photo_url=None))
    with_photo = ReportService().generate_appointment_pdf(_appt(photo_url=PNG))
    assert len(with_photo) > len(without)


def test_pdf_embeds_local_photo(tmp_path):
    appt = _appt()
    folder = tmp_path / appt.id
    folder.mkdir()
    (folder / "foto.png").write_bytes(base64.b64decode(PNG.split(",", 1)[1]))
    svc = ReportService(photos=PhotoStorage(str(tmp_path), {"png"}, 1024))

    without = svc.generate_appointment_pdf(appt)
    with_photo = svc.generate_appointment_pdf(_appt(photo_url=f"/files/appointments/{appt.id}/foto.png"))
    assert len(with_photo) > len(without)


def test_pdf_ignores_photo_outside_upload_dir(tmp_path):
    svc = ReportService(photos=PhotoStorage(str(tmp_path), {"png"}, 1024))
    pdf = svc.generate_appointment_pdf(_appt(photo_url="/files/appointments/../../etc/passwd"))
    assert pdf.startswith(b"%PDF")
    assert svc._photo_reader("/files/appointments/../../etc/passwd") is None
