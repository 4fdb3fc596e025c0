"""
Receipt Encoder
===============

Renders receipt markdown into an ESC/POS command buffer with python-escpos.

Supported markup (a subset of ReceiptLine):
- ``-`` on its own line     - horizontal rule
- ``=`` on its own line     - paper cut
- ``|a |b |c|``             - columns (first left, last right aligned)
- leading ``"``             - emphasis (bold)
- leading ``^`` / ``^^``    - double height / double height and width
- ``{...}``                 - layout properties, ignored
- ``\\_``                   - literal underscore
"""

import re
from typing import List, Tuple

from escpos.printer import Dummy

from .config import RECEIPT_WIDTH, PRINTER_PROFILE

_PROPERTY = re.compile(r'^\{.*\}$')
_COLUMN = re.compile(r'(?<!\\)\|')


def _split_cells(line: str) -> List[str]:
    cells = _COLUMN.split(line)
    if line.startswith('|'):
        cells = cells[1:]
    if line.endswith('|') and not line.endswith('\\|') and cells:
        cells = cells[:-1]
    return cells


def _parse_cell(cell: str) -> Tuple[str, bool, int]:
    """Return (text, bold, size) for one cell."""
    text = cell.strip()
    bold = False
    size = 0
    while text and text[0] in '"^':
        if text[0] == '"':
            bold = True
        else:
            size += 1
        text = text[1:]
    text = text.rstrip('"^').strip()
    return text.replace('\\_', '_').replace('\\|', '|'), bold, size


def _layout(texts: List[str], width: int) -> str:
    if len(texts) == 1:
        return texts[0]
    column = max(1, width // len(texts))
    line = ''
    for text in texts[:-1]:
        line += text[:column - 1].ljust(column)
    return line + texts[-1].rjust(max(0, width - len(line)))


def encode(markdown: str, width: int = RECEIPT_WIDTH, profile: str = PRINTER_PROFILE,
           cut: bool = True) -> bytes:
    """
    Encode receipt markdown to ESC/POS bytes.

    Args:
        markdown: Receipt markdown from the formatters
        width: Characters per line
        profile: python-escpos capability profile
        cut: Cut paper at the end

    Returns:
        Raw command buffer
    """
    printer = Dummy(profile=profile)

    for raw in markdown.splitlines():
        line = raw.strip()

        if _PROPERTY.match(line):
            continue
        if line == '-':
            printer.set(align='left', bold=False, normal_textsize=True)
            printer.text('-' * width + '\n')
            continue
        if line == '=':
            printer.cut()
            continue
        if not line:
            printer.text('\n')
            continue

        cells = [_parse_cell(cell) for cell in _split_cells(line)] or [('', False, 0)]
        bold = any(cell[1] for cell in cells)
        size = max(cell[2] for cell in cells)
        texts = [cell[0] for cell in cells]

        printer.set(
            align='center' if '|' not in line else 'left',
            bold=bold,
            normal_textsize=size == 0,
            double_height=size >= 1,
            double_width=size >= 2,
        )
        printer.text(_layout(texts, width // 2 if size >= 2 else width) + '\n')

    printer.set(align='left', bold=False, normal_textsize=True)
    if cut:
        printer.cut()
    return printer.output
