# app/utils/pdf.py
"""
ReportLab rendering of a Reservist Information Data Sheet.

The PDF is built in memory and returned as bytes; nothing is written to disk.
An attached photo (already read from the blob store) is normalised with Pillow
before embedding.
"""
import logging
from datetime import date, datetime
from io import BytesIO
from typing import Any, Dict, Iterable, List, Optional
from xml.sax.saxutils import escape

from PIL import Image as PILImage, UnidentifiedImageError
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, Image

logger = logging.getLogger(__name__)

HEADER_COLOR = colors.HexColor('#1b3a2f')
ORGANIZATION = "Armed Forces of the Philippines - Reserve Command"

SECTIONS = (
    ("Personal Information", "personal_information", (
        ("Full Name", "full_name"),
        ("Date of Birth", "date_of_birth"),
        ("Place of Birth", "place_of_birth"),
        ("Gender", "gender"),
        ("Civil Status", "civil_status"),
        ("Religion", "religion"),
        ("Blood Type", "blood_type"),
    )),
    ("Contact Information", "contact_information", (
        ("Residential Address", "residential_address"),
        ("Mobile Number", "mobile_number"),
        ("Email Address", "email_address"),
    )),
    ("Identification", "identification_info", (
        ("Service ID", "service_id"),
        ("Height", "height"),
        ("Weight", "weight"),
        ("TIN", "tin"),
    )),
    ("Educational Background", "educational_background", (
        ("Highest Education", "highest_education"),
        ("School", "school"),
        ("Year Graduated", "year_graduated"),
    )),
    ("Occupation", "occupation_info", (
        ("Occupation", "occupation"),
        ("Employer", "employer"),
        ("Office Address", "office_address"),
    )),
)

LIST_SECTIONS = (
    ("Military Training", "military_training", (("Training", "name"), ("School", "school"), ("Date Graduated", "date_graduated"))),
    ("Awards", "awards", (("Award", "title"), ("Authority", "authority"), ("Date", "date"))),
    ("Assignments", "assignments", (("Unit", "unit"), ("Authority", "authority"), ("Date From", "date_from"), ("Date To", "date_to"))),
)


class PDFGenerationError(Exception):
    """Raised when the data sheet cannot be rendered"""
    pass


def _format_value(value) -> str:
    if value is None or value == "":
        return "N/A"
    if isinstance(value, (datetime, date)):
        return value.strftime("%d %B, %Y")
    if isinstance(value, str):
        for fmt in ("%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M:%S.%f"):
            try:
                return datetime.strptime(value, fmt).strftime("%d %B, %Y")
            except ValueError:
                continue
    return str(value)


def prepare_photo(data: Optional[bytes], width=1.5 * inch, height=1.5 * inch) -> Optional[Image]:
    """Flatten transparency, shrink to 400px and re-encode as JPEG."""
    if not data:
        return None
    try:
        pil_img = PILImage.open(BytesIO(data))
        pil_img.load()
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"Photo could not be read: {e}")
        return None

    if pil_img.mode in ('RGBA', 'LA'):
        background = PILImage.new('RGB', pil_img.size, (255, 255, 255))
        background.paste(pil_img, mask=pil_img.split()[-1])
        pil_img = background
    elif pil_img.mode != 'RGB':
        pil_img = pil_img.convert('RGB')

    max_width, max_height = 400, 400
    if pil_img.width > max_width or pil_img.height > max_height:
        pil_img.thumbnail((max_width, max_height), PILImage.Resampling.LANCZOS)

    img_bytes = BytesIO()
    pil_img.save(img_bytes, format='JPEG', quality=85)
    img_bytes.seek(0)
    return Image(img_bytes, width=width, height=height)


class RIDSPDFGenerator:

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            'RIDSTitle',
            parent=self.styles['Heading1'],
            fontSize=15,
            alignment=TA_CENTER,
            textColor=HEADER_COLOR,
            spaceAfter=4,
        )
        self.subtitle_style = ParagraphStyle(
            'RIDSSubtitle',
            parent=self.styles['Normal'],
            fontSize=9,
            alignment=TA_CENTER,
            textColor=colors.gray,
        )
        self.section_style = ParagraphStyle(
            'RIDSSection',
            parent=self.styles['Heading3'],
            textColor=HEADER_COLOR,
            spaceBefore=10,
            spaceAfter=4,
        )
        self.cell_style = ParagraphStyle('RIDSCell', parent=self.styles['Normal'], fontSize=9, leading=11)

    def _key_value_table(self, rows: List[List[str]]) -> Table:
        data = [[Paragraph(f"<b>{label}</b>", self.cell_style), Paragraph(escape(value), self.cell_style)] for label, value in rows]
        table = Table(data, colWidths=[2.0 * inch, 4.6 * inch])
        table.setStyle(TableStyle([
            ('GRID', (0, 0), (-1, -1), 0.4, colors.lightgrey),
            ('BACKGROUND', (0, 0), (0, -1), colors.HexColor('#f1f5f2')),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ]))
        return table

    def _list_table(self, columns: Iterable, items: List[Dict[str, Any]]) -> Table:
        columns = list(columns)
        header = [Paragraph(f"<b>{label}</b>", self.cell_style) for label, _ in columns]
        body = [
            [Paragraph(escape(_format_value(item.get(key))), self.cell_style) for _, key in columns]
            for item in items
            if isinstance(item, dict)
        ]
        table = Table([header] + body, colWidths=[6.6 * inch / len(columns)] * len(columns))
        table.setStyle(TableStyle([
            ('GRID', (0, 0), (-1, -1), 0.4, colors.lightgrey),
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#dfe9e2')),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ]))
        return table

    def _header_footer(self, canvas, doc):
        canvas.saveState()
        canvas.setFont('Helvetica', 8)
        canvas.setFillColor(colors.gray)
        canvas.drawString(inch, 0.5 * inch, f"Page {doc.page}")
        canvas.drawRightString(doc.width + inch, 0.5 * inch, datetime.now().strftime("%d/%m/%Y %H:%M"))
        canvas.setStrokeColor(colors.lightgrey)
        canvas.setLineWidth(0.5)
        canvas.line(inch, 0.7 * inch, doc.width + inch, 0.7 * inch)
        canvas.restoreState()

    def generate(self, rids: Dict[str, Any], reservist: Dict[str, Any], photo: Optional[bytes] = None) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=inch,
            rightMargin=inch,
            topMargin=0.8 * inch,
            bottomMargin=inch,
            title="Reservist Information Data Sheet",
        )

        story = [
            Paragraph(ORGANIZATION, self.subtitle_style),
            Paragraph("Reservist Information Data Sheet", self.title_style),
            Spacer(1, 0.1 * inch),
        ]

        summary = self._key_value_table([
            ["Name", _format_value(reservist.get("name"))],
            ["Rank", _format_value(reservist.get("rank"))],
            ["Service ID", _format_value(reservist.get("service_id"))],
            ["Company", _format_value(reservist.get("company"))],
            ["Status", "Verified" if rids.get("is_verified") else ("Submitted" if rids.get("is_submitted") else "Draft")],
        ])
        image = prepare_photo(photo)
        if image is not None:
            layout = Table([[summary, image]], colWidths=[4.9 * inch, 1.7 * inch])
            layout.setStyle(TableStyle([('VALIGN', (0, 0), (-1, -1), 'TOP')]))
            story.append(layout)
        else:
            story.append(summary)

        for title, key, fields in SECTIONS:
            section = rids.get(key) or {}
            story.append(Paragraph(title, self.section_style))
            story.append(self._key_value_table([[label, _format_value(section.get(field))] for label, field in fields]))

        skills = rids.get("special_skills") or []
        story.append(Paragraph("Special Skills", self.section_style))
        story.append(Paragraph(escape(", ".join(str(s) for s in skills)) if skills else "N/A", self.cell_style))

        for title, key, columns in LIST_SECTIONS:
            items = rids.get(key) or []
            story.append(Paragraph(title, self.section_style))
            if items:
                story.append(self._list_table(columns, items))
            else:
                story.append(Paragraph("None recorded", self.cell_style))

        try:
            doc.build(story, onFirstPage=self._header_footer, onLaterPages=self._header_footer)
        except Exception as e:
            logger.error(f"❌ RIDS PDF build failed: {e}", exc_info=True)
            raise PDFGenerationError(str(e)) from e

        pdf = buffer.getvalue()
        logger.info(f"📄 Rendered RIDS PDF ({len(pdf)} bytes) for {reservist.get('name')}")
        return pdf
