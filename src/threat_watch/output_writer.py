"""I/O adapters for advisory markdown and printable PDF output."""

from __future__ import annotations

import html
import re
from datetime import datetime
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import ListFlowable, ListItem, Paragraph, Preformatted, SimpleDocTemplate, Spacer

HEADING_PREFIXES = (("#### ", "h4"), ("### ", "h3"), ("## ", "h2"), ("# ", "h1"))
SPACE_AFTER = {"h1": 10, "h2": 6, "h3": 4, "h4": 4, "p": 8, "code": 8}


class AdvisoryWriter:
    """Write advisories to markdown, optionally mirrored as PDF."""

    def __init__(self, markdown_dir: str | Path, pdf_dir: str | Path, output_pdf: bool = False):
        self.markdown_dir = Path(markdown_dir)
        self.pdf_dir = Path(pdf_dir)
        self.output_pdf = output_pdf
        self.markdown_dir.mkdir(parents=True, exist_ok=True)
        if self.output_pdf:
            self.pdf_dir.mkdir(parents=True, exist_ok=True)

    def write(self, run_at: datetime, text: str) -> str:
        stem = f"{run_at.strftime('%m%d_%H%M%S')}_advisory"
        markdown_path = self.markdown_dir / f"{stem}.md"
        markdown_path.write_text(text, encoding="utf-8")

        if self.output_pdf:
            self._write_pdf(text=text, output_path=self.pdf_dir / f"{stem}.pdf")
        return str(markdown_path)

    def _write_pdf(self, text: str, output_path: Path) -> None:
        doc = SimpleDocTemplate(
            str(output_path),
            pagesize=A4,
            leftMargin=18 * mm,
            rightMargin=18 * mm,
            topMargin=16 * mm,
            bottomMargin=18 * mm,
            title="Cybersecurity Advisory",
        )
        doc.build(
            _build_story(_parse_markdown_blocks(text)),
            onFirstPage=_draw_footer,
            onLaterPages=_draw_footer,
        )


def _draw_footer(canvas, doc) -> None:  # type: ignore[no-untyped-def]
    canvas.saveState()
    canvas.setFont("Helvetica", 9)
    canvas.setFillColor(colors.grey)
    canvas.drawString(18 * mm, 10 * mm, "TLP:CLEAR")
    canvas.drawRightString(A4[0] - 18 * mm, 10 * mm, f"Page {canvas.getPageNumber()}")
    canvas.restoreState()


def _build_story(blocks: list[tuple[str, str]]):
    styles = _build_styles()
    story = []
    i = 0

    while i < len(blocks):
        kind, content = blocks[i]

        if kind == "li":
            items = []
            while i < len(blocks) and blocks[i][0] == "li":
                items.append(
                    ListItem(Paragraph(_inline_to_reportlab(blocks[i][1]), styles["li"]), leftIndent=8)
                )
                i += 1
            story.append(ListFlowable(items, bulletType="bullet", leftIndent=12, bulletFontName="Helvetica"))
            story.append(Spacer(1, 8))
            continue

        if kind == "code":
            story.append(Preformatted(content, styles["code"]))
        else:
            story.append(Paragraph(_inline_to_reportlab(content), styles[kind]))
        story.append(Spacer(1, SPACE_AFTER[kind]))
        i += 1

    return story


def _build_styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    body = {"fontName": "Helvetica", "fontSize": 10.5, "textColor": colors.HexColor("#111827")}
    return {
        "h1": ParagraphStyle(
            "H1",
            parent=base["Heading1"],
            fontName="Helvetica-Bold",
            fontSize=18,
            leading=22,
            textColor=colors.HexColor("#0b3d91"),
            spaceAfter=4,
        ),
        "h2": ParagraphStyle(
            "H2",
            parent=base["Heading2"],
            fontName="Helvetica-Bold",
            fontSize=14,
            leading=18,
            textColor=colors.HexColor("#1f2937"),
        ),
        "h3": ParagraphStyle(
            "H3",
            parent=base["Heading3"],
            fontName="Helvetica-Bold",
            fontSize=12,
            leading=15,
            textColor=colors.HexColor("#374151"),
        ),
        "h4": ParagraphStyle(
            "H4",
            parent=base["Heading4"],
            fontName="Helvetica-Bold",
            fontSize=11,
            leading=14,
            textColor=colors.HexColor("#4b5563"),
        ),
        "p": ParagraphStyle("P", parent=base["BodyText"], leading=15, **body),
        "li": ParagraphStyle("LI", parent=base["BodyText"], leading=14, **body),
        "code": ParagraphStyle(
            "CODE",
            parent=base["Code"],
            fontName="Courier",
            fontSize=9,
            leading=12,
            backColor=colors.HexColor("#f3f4f6"),
            borderPadding=6,
        ),
    }


def _parse_markdown_blocks(text: str) -> list[tuple[str, str]]:
    blocks: list[tuple[str, str]] = []
    in_code = False
    code_lines: list[str] = []

    for raw in text.splitlines():
        stripped = raw.strip()

        if stripped.startswith("```"):
            if in_code:
                blocks.append(("code", "\n".join(code_lines).rstrip()))
                code_lines = []
            in_code = not in_code
            continue

        if in_code:
            code_lines.append(raw)
            continue

        if not stripped:
            continue

        heading = next(
            ((kind, stripped[len(prefix):].strip()) for prefix, kind in HEADING_PREFIXES if stripped.startswith(prefix)),
            None,
        )
        if heading:
            blocks.append(heading)
            continue

        # advisory bullets are written as "*   **CVE ID:** ..."
        item_match = re.match(r"^(?:[-*]|\d+\.)\s+(.*)$", stripped)
        if item_match:
            blocks.append(("li", item_match.group(1).strip()))
            continue

        blocks.append(("p", stripped))

    if in_code and code_lines:
        blocks.append(("code", "\n".join(code_lines).rstrip()))

    return blocks


def _inline_to_reportlab(text: str) -> str:
    escaped = html.escape(text)
    escaped = re.sub(r"\[([^\]]+)\]\(([^)]+)\)", r"\1 (\2)", escaped)
    escaped = re.sub(r"\*\*([^*]+)\*\*", r"<b>\1</b>", escaped)
    escaped = re.sub(r"`([^`]+)`", r"<font name='Courier'>\1</font>", escaped)
    return escaped
