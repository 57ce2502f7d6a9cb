"""
Receipt Parser

Turns raw OCR text into a ParsedReceipt using line-based heuristics.

HEURISTICS (in order):
1. Merchant: the first non-empty line, if it holds no digit
2. Date: the first D/M/Y or Y/M/D shaped substring anywhere in the text,
   kept verbatim (no calendar validation)
3. Amounts: the LAST currency-shaped number on each line
4. Grand total: the first line mentioning "total"/"amount", or a last line
   above 50. Line-item collection STOPS at the total line - items printed
   after it are dropped.
5. Without a total line, the total is the sum of the line items

KNOWN LIMITATIONS:
- A receipt that opens with a promotional line or a multi-line header gets
  the wrong merchant (or none).
- Fees printed before the total line (tax, service) are kept as items.
- Date digits are not told apart from prices: "Date: 12/03/2025" yields
  an item of 2025, and a date on the last line becomes the grand total.

The parser is total: any string, including an empty one, yields a fully
populated ParsedReceipt.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from smartspend.models.receipt import ParsedReceipt, ReceiptLineItem
from smartspend.understanding.confidence import receipt_confidence


UNKNOWN_MERCHANT = "Unknown"
LAST_LINE_TOTAL_THRESHOLD = Decimal("50")
TOTAL_KEYWORDS = ("total", "amount")

DATE_PATTERN = re.compile(
    r"(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})|(\d{4})[/-](\d{1,2})[/-](\d{1,2})"
)
AMOUNT_PATTERN = re.compile(r"(?:₹|Rs\.?)?\s*(\d+(?:\.\d{2})?)")
DIGIT_PATTERN = re.compile(r"\d")

# Separator debris and any Unicode whitespace (NBSP, ideographic space)
# left at either end once the amount is cut out ("Tax - 23")
_DESCRIPTION_EDGES = re.compile(r"^[\s\-–:=*]+|[\s\-–:=*]+$")


def _last_amount(line: str) -> Optional[Decimal]:
    """Last currency-shaped number on the line, or None."""
    amount = None
    for match in AMOUNT_PATTERN.finditer(line):
        try:
            amount = Decimal(match.group(1))
        except InvalidOperation:
            continue
    return amount


def _is_total_line(line: str, amount: Decimal, is_last: bool) -> bool:
    lowered = line.lower()
    if any(keyword in lowered for keyword in TOTAL_KEYWORDS):
        return True
    return is_last and amount > LAST_LINE_TOTAL_THRESHOLD


def _describe(line: str, position: int) -> str:
    description = _DESCRIPTION_EDGES.sub("", AMOUNT_PATTERN.sub("", line))
    return description or f"Item {position}"


def parse_receipt(text: Optional[str], today: Optional[date] = None) -> ParsedReceipt:
    """
    Parse raw receipt text.

    Args:
        text: OCR output (may be empty)
        today: Date used when the text holds none. Defaults to date.today().

    Returns:
        ParsedReceipt with fallbacks applied: merchant "Unknown",
        date = today's ISO date, total 0, no line items.
    """
    text = text or ""
    lines = [line.strip() for line in text.splitlines() if line.strip()]

    merchant = None
    if lines and not DIGIT_PATTERN.search(lines[0]):
        merchant = lines[0]

    date_match = DATE_PATTERN.search(text)
    receipt_date = date_match.group(0) if date_match else None

    line_items: list[ReceiptLineItem] = []
    total = Decimal("0")
    found_total = False

    for index, line in enumerate(lines):
        amount = _last_amount(line)
        if amount is None:
            continue

        if _is_total_line(line, amount, is_last=index == len(lines) - 1):
            total = amount
            found_total = True
            break

        if amount > 0:
            line_items.append(ReceiptLineItem(
                description=_describe(line, len(line_items) + 1),
                amount=amount,
            ))

    if not found_total:
        total = sum((item.amount for item in line_items), Decimal("0"))

    confidence = receipt_confidence(
        has_merchant=merchant is not None,
        has_date=receipt_date is not None,
        has_total=total > 0,
        has_line_items=bool(line_items),
    )

    return ParsedReceipt(
        merchant=merchant or UNKNOWN_MERCHANT,
        date=receipt_date or (today or date.today()).isoformat(),
        line_items=line_items,
        total=total,
        confidence=confidence,
    )
