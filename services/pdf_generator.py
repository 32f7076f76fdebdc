"""
SAFE document generator

Lays out a post-money valuation cap SAFE on US Letter pages with the
reportlab canvas. Text is wrapped greedily by measured string width.
"""
import io
import logging
import time
from datetime import date, datetime
from typing import List

from reportlab.lib.pagesizes import letter
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from models.safe import SafeFormData, parse_amount
from utils.exceptions import PDFGenerationError
from utils.error_handlers import log_performance_metric

logger = logging.getLogger(__name__)


PAGE_WIDTH, PAGE_HEIGHT = letter  # 612 x 792
MARGIN = 72
LINE_HEIGHT = 14
FONT = "Times-Roman"
BOLD_FONT = "Times-Bold"

DOCUMENT_TYPE = "yc-safe"

COPYRIGHT_TEXT = (
    "© 2023 Y Combinator Management, LLC. This form is made available under a Creative Commons "
    "Attribution-NoDerivatives 4.0 License (International): "
    "https://creativecommons.org/licenses/by-nd/4.0/legalcode. You may modify this form so you can use it "
    "in transactions, but please do not publicly disseminate a modified version of the form without "
    "asking us first."
)

SECURITIES_DISCLAIMER = (
    'THIS INSTRUMENT AND ANY SECURITIES ISSUABLE PURSUANT HERETO HAVE NOT BEEN REGISTERED UNDER THE '
    'SECURITIES ACT OF 1933, AS AMENDED (THE "SECURITIES ACT"), OR UNDER THE SECURITIES LAWS OF CERTAIN '
    'STATES. THESE SECURITIES MAY NOT BE OFFERED, SOLD OR OTHERWISE TRANSFERRED, PLEDGED OR HYPOTHECATED '
    'EXCEPT AS PERMITTED IN THIS SAFE AND UNDER THE ACT AND APPLICABLE STATE SECURITIES LAWS PURSUANT TO '
    'AN EFFECTIVE REGISTRATION STATEMENT OR AN EXEMPTION THEREFROM.'
)

FORM_DISCLAIMER = (
    "This Safe is one of the forms available at http://ycombinator.com/documents and the Company and the "
    "Investor agree that neither one has modified the form, except to fill in blanks and bracketed terms."
)

EVENTS = (
    ("(a)", "Equity Financing.", (
        "If there is an Equity Financing before the termination of this Safe, on the initial closing of "
        "such Equity Financing, this Safe will automatically convert into the greater of: (1) the number "
        "of shares of Standard Preferred Stock equal to the Purchase Amount divided by the lowest price "
        "per share of the Standard Preferred Stock; or (2) the number of shares of Safe Preferred Stock "
        "equal to the Purchase Amount divided by the Safe Price.",
        "In connection with the automatic conversion of this Safe into shares of Standard Preferred Stock "
        "or Safe Preferred Stock, the Investor will execute and deliver to the Company all of the "
        "transaction documents related to the Equity Financing; provided, that such documents (i) are the "
        "same documents to be entered into with the purchasers of Standard Preferred Stock, with "
        "appropriate variations for the Safe Preferred Stock if applicable, and (ii) have customary "
        "exceptions to any drag-along applicable to the Investor, including (without limitation) limited "
        "representations, warranties, liability and indemnification obligations for the Investor.",
    )),
    ("(b)", "Liquidity Event.", (
        "If there is a Liquidity Event before the termination of this Safe, the Investor will "
        "automatically be entitled (subject to the liquidation priority set forth in Section 1(d) below) "
        "to receive a portion of Proceeds, due and payable to the Investor immediately prior to, or "
        "concurrent with, the consummation of such Liquidity Event, equal to the greater of (i) the "
        "Purchase Amount (the \"Cash-Out Amount\") or (ii) the amount payable on the number of shares of "
        "Common Stock equal to the Purchase Amount divided by the Liquidity Price (the \"Conversion "
        "Amount\"). If any of the Company's securityholders are given a choice as to the form and amount "
        "of Proceeds to be received in a Liquidity Event, the Investor will be given the same choice, "
        "provided that the Investor may not choose to receive a form of consideration that the Investor "
        "would be ineligible to receive as a result of the Investor's failure to satisfy any requirement "
        "or limitation generally applicable to the Company's securityholders, or under any applicable laws.",
        "Notwithstanding the foregoing, in connection with a Change of Control intended to qualify as a "
        "tax-free reorganization, the Company may reduce the cash portion of Proceeds payable to the "
        "Investor by the amount determined by its board of directors in good faith for such Change of "
        "Control to qualify as a tax-free reorganization for U.S. federal income tax purposes, provided "
        "that such reduction (A) does not reduce the total Proceeds payable to such Investor and (B) is "
        "applied in the same manner and on a pro rata basis to all securityholders who have equal "
        "priority to the Investor under Section 1(d).",
    )),
    ("(c)", "Dissolution Event.", (
        "If there is a Dissolution Event before the termination of this Safe, the Investor will "
        "automatically be entitled (subject to the liquidation priority set forth in Section 1(d) below) "
        "to receive a portion of Proceeds equal to the Cash-Out Amount, due and payable to the Investor "
        "immediately prior to the consummation of the Dissolution Event.",
    )),
)

DEFINITIONS = (
    ('"Capital Stock"',
     'means the capital stock of the Company, including, without limitation, the "Common Stock" and the '
     '"Preferred Stock."'),
    ('"Change of Control"',
     'means (i) a transaction or series of related transactions in which any "person" or "group" (within '
     'the meaning of Section 13(d) and 14(d) of the Securities Exchange Act of 1934, as amended), becomes '
     'the "beneficial owner" (as defined in Rule 13d-3 under the Securities Exchange Act of 1934, as '
     'amended), directly or indirectly, of more than 50% of the outstanding voting securities of the '
     "Company having the right to vote for the election of members of the Company's board of directors, "
     '(ii) any reorganization, merger or consolidation of the Company, other than a transaction or series '
     'of related transactions in which the holders of the voting securities of the Company outstanding '
     'immediately prior to such transaction or series of related transactions retain, immediately after '
     'such transaction or series of related transactions, at least a majority of the total voting power '
     'represented by the outstanding voting securities of the Company or such other surviving or resulting '
     'entity or (iii) a sale, lease or other disposition of all or substantially all of the assets of the '
     'Company.'),
)

WITNESS_TEXT = "IN WITNESS WHEREOF, the undersigned have caused this Safe to be duly executed and delivered."


def preview_form_data() -> SafeFormData:
    """Bracketed placeholder values used for previews"""
    return SafeFormData(
        company_name="[COMPANY NAME]",
        company_state="[STATE OF INCORPORATION]",
        investor_name="[INVESTOR NAME]",
        purchase_amount="100000",
        valuation_cap="10000000",
        discount_rate="20",
        date=date.today().isoformat(),
        title="[TITLE]",
        founder_name="[FOUNDER NAME]",
        company_address="[COMPANY ADDRESS]",
        company_email="[COMPANY EMAIL]",
        investor_title="[INVESTOR TITLE]",
        investor_address="[INVESTOR ADDRESS]",
        investor_email="[INVESTOR EMAIL]"
    )


def with_placeholders(data: SafeFormData) -> SafeFormData:
    """Fill blank values with their preview placeholders"""
    placeholders = preview_form_data()
    updates = {
        name: getattr(placeholders, name)
        for name in SafeFormData.model_fields
        if not getattr(data, name).strip()
    }
    return data.model_copy(update=updates)


def format_currency(value: str) -> str:
    """``100000`` -> ``$100,000``; values that are not numbers are kept as typed"""
    try:
        amount = parse_amount(value)
    except ValueError:
        return f"${value}"
    return "$" + f"{amount:,.3f}".rstrip("0").rstrip(".")


def format_date(value: str) -> str:
    """``2024-01-15`` -> ``1/15/2024``; values that are not ISO dates are kept as typed"""
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return value
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def _break_word(word: str, font: str, size: float, max_width: float) -> List[str]:
    """Split a word wider than ``max_width`` into pieces that each fit"""
    pieces = []
    piece = ""
    for ch in word:
        if piece and stringWidth(piece + ch, font, size) > max_width:
            pieces.append(piece)
            piece = ch
        else:
            piece += ch
    if piece:
        pieces.append(piece)
    return pieces


def wrap_text(text: str, font: str, size: float, max_width: float) -> List[str]:
    """
    Greedy word wrap by measured width.

    A word is added to the current line while the line stays within
    ``max_width``; otherwise the current line is emitted and the word starts
    a new one. A single word wider than ``max_width`` is broken between
    characters so that no emitted line exceeds the budget.

    Args:
        text: Text to wrap
        font: Font name known to reportlab
        size: Font size in points
        max_width: Width budget in points

    Returns:
        The wrapped lines, without trailing spaces
    """
    lines = []
    line = ""

    for word in text.split():
        if stringWidth(word, font, size) > max_width:
            if line:
                lines.append(line)
            pieces = _break_word(word, font, size, max_width)
            lines.extend(pieces[:-1])
            line = pieces[-1]
            continue

        candidate = f"{line} {word}" if line else word
        if stringWidth(candidate, font, size) <= max_width:
            line = candidate
        else:
            lines.append(line)
            line = word

    if line:
        lines.append(line)

    return lines


class SafePDFGenerator:
    """Generator for post-money valuation cap SAFE documents"""

    def __init__(self):
        self.page_width = PAGE_WIDTH
        self.page_height = PAGE_HEIGHT
        self.margin = MARGIN
        self.line_height = LINE_HEIGHT

    def create_document(self, data: SafeFormData) -> bytes:
        """
        Render the complete four page SAFE

        Args:
            data: Values to fill in

        Returns:
            PDF file content

        Raises:
            PDFGenerationError: If rendering fails
        """
        return self._render(data, full=True)

    def create_preview_document(self) -> bytes:
        """Render the complete SAFE with bracketed placeholder values"""
        return self._render(preview_form_data(), full=True)

    def create_live_preview_document(self, data: SafeFormData) -> bytes:
        """Render the header page only, blank values shown as placeholders"""
        return self._render(with_placeholders(data), full=False)

    def _render(self, data: SafeFormData, full: bool) -> bytes:
        start_time = time.time()
        buffer = io.BytesIO()

        try:
            pdf = canvas.Canvas(buffer, pagesize=(self.page_width, self.page_height))
            pdf.setTitle(f"SAFE - {data.company_name}")

            self._draw_header_page(pdf, data)
            if full:
                self._draw_events_page(pdf)
                self._draw_definitions_page(pdf)
                self._draw_signature_page(pdf, data)

            pdf.save()
        except Exception as e:
            logger.error(f"Failed to generate SAFE document: {e}")
            raise PDFGenerationError(
                message="Failed to generate SAFE document. Please try again.",
                document_type=DOCUMENT_TYPE,
                stage="render",
                original_exception=e
            )

        content = buffer.getvalue()
        duration_ms = int((time.time() - start_time) * 1000)
        log_performance_metric("safe_generation", duration_ms, {"pages": 4 if full else 1, "bytes": len(content)})
        return content

    def draw_text(self, pdf: canvas.Canvas, text: str, x: float, y: float, size: float, font: str = FONT) -> None:
        pdf.setFont(font, size)
        pdf.drawString(x, y, text)

    def draw_wrapped_text(
        self,
        pdf: canvas.Canvas,
        text: str,
        x: float,
        y: float,
        size: float,
        max_width: float,
        font: str = FONT
    ) -> float:
        """
        Draw wrapped text starting at ``y`` and moving down one line height per line

        Returns:
            The y position below the last drawn line
        """
        for line in wrap_text(text, font, size, max_width):
            self.draw_text(pdf, line, x, y, size, font)
            y -= self.line_height
        return y

    def _draw_header_page(self, pdf: canvas.Canvas, data: SafeFormData) -> None:
        body_width = self.page_width - 2 * self.margin
        y = self.page_height - self.margin

        self.draw_text(pdf, "Version 1.2", 50, y, 10)
        y -= 20
        self.draw_text(pdf, "POST-MONEY VALUATION CAP", 50, y, 10, BOLD_FONT)
        y -= 30

        y = self.draw_wrapped_text(pdf, COPYRIGHT_TEXT, self.margin, y, 9, body_width)
        y -= 30
        y = self.draw_wrapped_text(pdf, SECURITIES_DISCLAIMER, self.margin, y, 9, body_width)
        y -= 50

        company_width = stringWidth(data.company_name, BOLD_FONT, 16)
        self.draw_text(pdf, data.company_name, (self.page_width - company_width) / 2, y, 16, BOLD_FONT)
        y -= 40

        self.draw_text(pdf, "SAFE", self.page_width / 2 - 30, y, 16, BOLD_FONT)
        y -= 20
        self.draw_text(pdf, "(Simple Agreement for Future Equity)", self.page_width / 2 - 120, y, 12)
        y -= 40

        main_paragraph = (
            f'THIS CERTIFIES THAT in exchange for the payment by {data.investor_name} (the "Investor") of '
            f'{format_currency(data.purchase_amount)} (the "Purchase Amount") on or about '
            f'{format_date(data.date)}, {data.company_name}, a {data.company_state} corporation '
            f'(the "Company"), issues to the Investor the right to certain shares of the Company\'s '
            f'Capital Stock, subject to the terms described below.'
        )
        y = self.draw_wrapped_text(pdf, main_paragraph, self.margin, y, 11, body_width)
        y -= 30

        y = self.draw_wrapped_text(pdf, FORM_DISCLAIMER, self.margin, y, 11, body_width)
        y -= 30

        valuation_cap_text = (
            f'The "Post-Money Valuation Cap" is {format_currency(data.valuation_cap)}. '
            f'See Section 2 for certain additional defined terms.'
        )
        self.draw_wrapped_text(pdf, valuation_cap_text, self.margin, y, 11, body_width)
        pdf.showPage()

    def _draw_events_page(self, pdf: canvas.Canvas) -> None:
        indent = self.margin + 40
        width = self.page_width - 2 * self.margin - 40
        y = self.page_height - self.margin

        self.draw_text(pdf, "1. Events", self.margin, y, 12, BOLD_FONT)
        y -= 30

        for label, heading, paragraphs in EVENTS:
            self.draw_text(pdf, label, self.margin + 20, y, 11, BOLD_FONT)
            self.draw_text(pdf, heading, indent, y, 11, BOLD_FONT)
            y -= 20
            for index, paragraph in enumerate(paragraphs):
                if index:
                    y -= 20
                y = self.draw_wrapped_text(pdf, paragraph, indent, y, 11, width)
            y -= 30

        pdf.showPage()

    def _draw_definitions_page(self, pdf: canvas.Canvas) -> None:
        y = self.page_height - self.margin

        self.draw_text(pdf, "2. Definitions", self.margin, y, 12, BOLD_FONT)
        y -= 30

        for term, definition in DEFINITIONS:
            self.draw_text(pdf, term, self.margin, y, 11, BOLD_FONT)
            y -= 20
            y = self.draw_wrapped_text(
                pdf, definition, self.margin + 20, y, 11, self.page_width - 2 * self.margin - 20
            )
            y -= 20

        pdf.showPage()

    def _draw_labelled(self, pdf: canvas.Canvas, label: str, value: str, y: float, offset: int = 50) -> float:
        self.draw_text(pdf, label, self.margin, y, 11)
        self.draw_text(pdf, value, self.margin + offset, y, 11)
        return y - 25

    def _draw_signature_page(self, pdf: canvas.Canvas, data: SafeFormData) -> None:
        signed_on = format_date(data.date)
        y = self.page_height - self.margin

        y = self.draw_wrapped_text(pdf, WITNESS_TEXT, self.margin, y, 11, self.page_width - 2 * self.margin)
        y -= 60

        # Company block
        self.draw_text(pdf, data.company_name.upper(), self.margin, y, 12, BOLD_FONT)
        y -= 40
        y = self._draw_labelled(pdf, "By:", "_________________________", y)
        y = self._draw_labelled(pdf, "Name:", data.founder_name or "[Founder Name]", y)
        y = self._draw_labelled(pdf, "Title:", data.title, y)
        y = self._draw_labelled(pdf, "Date:", signed_on, y)
        if data.company_address:
            y = self._draw_labelled(pdf, "Address:", data.company_address, y, offset=60)
        if data.company_email:
            y = self._draw_labelled(pdf, "Email:", data.company_email, y) - 15
        else:
            y -= 40

        # Investor block
        self.draw_text(pdf, "INVESTOR:", self.margin, y, 12, BOLD_FONT)
        y -= 40
        y = self._draw_labelled(pdf, "By:", "_________________________", y)
        y = self._draw_labelled(pdf, "Name:", data.investor_name, y)
        if data.investor_title:
            y = self._draw_labelled(pdf, "Title:", data.investor_title, y)
        y = self._draw_labelled(pdf, "Date:", signed_on, y)
        if data.investor_address:
            y = self._draw_labelled(pdf, "Address:", data.investor_address, y, offset=60)
        if data.investor_email:
            self._draw_labelled(pdf, "Email:", data.investor_email, y)

        pdf.showPage()


def build_filename(data: SafeFormData, prefix: str = "YC-SAFE") -> str:
    """Download filename such as ``YC-SAFE-Acme-Inc-2024-01-15.pdf``"""
    company = "".join(ch for ch in "-".join(data.company_name.split()) if ch.isalnum() or ch in "-_.")
    signed_on = "".join(ch for ch in data.date if ch.isalnum() or ch == "-")
    return f"{prefix}-{company or 'Company'}-{signed_on}.pdf"
