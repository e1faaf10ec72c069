import os
from datetime import datetime
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from models.permissions import GroupReview, RiskAssessment, RiskLevel
from config.settings import settings
from loguru import logger

DARK_BLUE = colors.HexColor("#0D2B45")
BLUE = colors.HexColor("#1565C0")
GRAY = colors.HexColor("#F5F7FA")
RED = colors.HexColor("#D32F2F")
LEVEL_COLORS = {
    RiskLevel.HIGH: RED,
    RiskLevel.MEDIUM: colors.HexColor("#FBC02D"),
    RiskLevel.LOW: colors.HexColor("#388E3C"),
}


class PermissionReportGenerator:
    def __init__(self, assessment: RiskAssessment, reviews: list[GroupReview],
                 subject: str = "Permission Review", analysis: Optional[str] = None,
                 output_dir: Optional[Path] = None):
        self.assessment = assessment
        self.reviews = reviews
        self.subject = subject
        self.analysis = analysis or getattr(assessment, "analysis", None)
        self.output_dir = Path(output_dir or settings.REPORT_OUTPUT_DIR)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def generate(self) -> str:
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = os.path.join(self.output_dir, f"OdooLens_Permissions_{ts}.pdf")
        doc = SimpleDocTemplate(path, pagesize=letter,
                                rightMargin=0.75*inch, leftMargin=0.75*inch,
                                topMargin=0.75*inch, bottomMargin=0.75*inch)
        story = []
        story += self._cover()
        story += self._risk()
        story += self._groups()
        story += self._analysis()
        doc.build(story)
        logger.info(f"PDF generated: {path}")
        return path

    def _h1(self, text):
        return Paragraph(f"<font color='#0D2B45'><b>{text}</b></font>",
                         ParagraphStyle("h1", fontSize=16, spaceAfter=8, spaceBefore=16))

    def _body(self, text):
        return Paragraph(text, ParagraphStyle("body", fontSize=10, leading=14,
                                              alignment=TA_JUSTIFY, spaceAfter=8))

    def _cover(self):
        title_style = ParagraphStyle("title", fontSize=22, textColor=colors.white,
                                     alignment=TA_CENTER, fontName="Helvetica-Bold",
                                     leading=28)
        header = Table([[Paragraph(
            f'<b>{settings.APP_NAME}</b><br/>Odoo Permission Risk Report<br/>'
            f'<font size="14">{escape(self.subject)}</font>', title_style
        )]], colWidths=[7*inch])
        header.setStyle(TableStyle([
            ("BACKGROUND", (0,0), (-1,-1), DARK_BLUE),
            ("ALIGN", (0,0), (-1,-1), "CENTER"),
            ("TOPPADDING", (0,0), (-1,-1), 30),
            ("BOTTOMPADDING", (0,0), (-1,-1), 30),
        ]))
        meta = Table([
            ["Date:", datetime.now().strftime("%B %d, %Y")],
            ["Groups reviewed:", str(len(self.reviews))],
            ["Classification:", "CONFIDENTIAL"],
        ], colWidths=[2*inch, 5*inch])
        meta.setStyle(TableStyle([
            ("FONTNAME", (0,0), (0,-1), "Helvetica-Bold"),
            ("FONTSIZE", (0,0), (-1,-1), 10),
            ("ROWBACKGROUNDS", (0,0), (-1,-1), [GRAY, colors.white]),
            ("TOPPADDING", (0,0), (-1,-1), 6),
            ("BOTTOMPADDING", (0,0), (-1,-1), 6),
            ("LEFTPADDING", (0,0), (-1,-1), 8),
        ]))
        return [header, Spacer(1, 0.3*inch), meta]

    def _risk(self):
        a = self.assessment
        els = [self._h1("Risk Assessment")]
        data = [
            ["Metric", "Value"],
            ["Risk Level", a.risk_level.value.upper()],
            ["Risk Score", f"{a.risk_score:.1f} / 100"],
            ["High-Risk Groups", ", ".join(a.high_risk_groups) or "None"],
        ]
        t = Table(data, colWidths=[2.5*inch, 4.5*inch])
        t.setStyle(TableStyle([
            ("BACKGROUND", (0,0), (-1,0), BLUE),
            ("TEXTCOLOR", (0,0), (-1,0), colors.white),
            ("FONTNAME", (0,0), (-1,0), "Helvetica-Bold"),
            ("TEXTCOLOR", (1,1), (1,1), LEVEL_COLORS.get(a.risk_level, colors.black)),
            ("FONTNAME", (1,1), (1,1), "Helvetica-Bold"),
            ("ROWBACKGROUNDS", (0,1), (-1,-1), [GRAY, colors.white]),
            ("GRID", (0,0), (-1,-1), 0.5, colors.lightgrey),
            ("TOPPADDING", (0,0), (-1,-1), 6),
            ("BOTTOMPADDING", (0,0), (-1,-1), 6),
            ("LEFTPADDING", (0,0), (-1,-1), 8),
        ]))
        els.append(t)
        return els

    def _groups(self):
        els = [self._h1("Group Permissions")]
        rows = [["Group", "Create", "Read", "Update", "Delete"]]
        for r in self.reviews:
            if r.error:
                rows.append([r.group_name, "—", "—", "—", "—"])
                continue
            s = r.summary
            rows.append([r.group_name, str(s.create), str(s.read), str(s.update), str(s.delete)])
        t = Table(rows, colWidths=[3.4*inch, 0.9*inch, 0.9*inch, 0.9*inch, 0.9*inch], repeatRows=1)
        style = [
            ("BACKGROUND", (0,0), (-1,0), DARK_BLUE),
            ("TEXTCOLOR", (0,0), (-1,0), colors.white),
            ("FONTNAME", (0,0), (-1,0), "Helvetica-Bold"),
            ("FONTSIZE", (0,0), (-1,-1), 9),
            ("ALIGN", (1,0), (-1,-1), "RIGHT"),
            ("ROWBACKGROUNDS", (0,1), (-1,-1), [GRAY, colors.white]),
            ("GRID", (0,0), (-1,-1), 0.5, colors.lightgrey),
            ("TOPPADDING", (0,0), (-1,-1), 5),
            ("BOTTOMPADDING", (0,0), (-1,-1), 5),
            ("LEFTPADDING", (0,0), (-1,-1), 6),
        ]
        flagged = set(self.assessment.high_risk_groups)
        for i, r in enumerate(self.reviews, 1):
            if r.group_name in flagged:
                style += [("TEXTCOLOR", (0,i), (0,i), RED),
                          ("FONTNAME", (0,i), (0,i), "Helvetica-Bold")]
        t.setStyle(TableStyle(style))
        els.append(t)
        return els

    def _analysis(self):
        if not self.analysis:
            return []
        els = [self._h1("AI Analysis")]
        for para in self.analysis.split("\n\n"):
            if para.strip():
                els.append(self._body(escape(para.strip()).replace("\n", "<br/>")))
        return els
