"""
Receipt Formatters
==================

Builds receipt markdown from POS business content. One builder per job
kind; ``build_payload`` picks the builder for a job and checks that the
content it needs is there.
"""

from typing import Dict, Any, List, Callable

from .errors import ValidationError
from .models import Job


def _number(value: Any) -> float:
    """Number-like value to float (0 when not a number)."""
    try:
        return float(str(value).replace(',', ''))
    except (TypeError, ValueError):
        return 0.0


def _money(value: Any) -> str:
    return f'{_number(value):,.0f}'


def _qty(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _escape(text: Any) -> str:
    return str(text).replace('_', '\\_')


def _sub_header(content: Dict[str, Any]) -> str:
    """Onsite table, takeaway number or delivery banner."""
    if content.get('takeawayNo'):
        return f"\"^TAKEAWAY NO. {content['takeawayNo']}\n-\n"
    if content.get('isDelivery'):
        return '"^DELIVERY\n-\n'
    return f"\"^TABLE {content.get('tableCode', '')}\n-\n"


def _footer(rows: List[tuple]) -> str:
    lines = ''.join(f'{label}: |{value}\n' for label, value in rows if value)
    return f'{{w:10,*}}\n{lines}{{w:auto}}\n-\n'


def build_bill(content: Dict[str, Any]) -> str:
    """Customer bill with merged food lines and totals."""
    header = f"\"^{content.get('shopName', '')}\n\n{content.get('address', '')}\n\n"

    merged = []
    for food in content.get('foodList') or []:
        existing = next((f for f in merged if f['name'] == food.get('name')), None)
        if existing:
            existing['num'] += _number(food.get('num'))
        else:
            merged.append({
                'name': food.get('name'),
                'modifier': food.get('modifier'),
                'num': _number(food.get('num')),
                'price': _number(food.get('price')),
            })

    rows = []
    for food in merged:
        row = f"|{food['name']} |\n"
        if food['modifier']:
            row += f"|[{food['modifier']}] |\n"
        row += (f"|| {_qty(food['num'])} | {_money(food['price'])} | "
                f"\"{_money(food['num'] * food['price'])}|")
        rows.append(row)

    fees = ''
    if content.get('deliveryFee'):
        fees += f"Delivery Fee | \"^{content['deliveryFee']}\n"
    if content.get('tipsFee'):
        fees += f"^Tips | \"^{content['tipsFee']}\n"
    if content.get('discount'):
        fees += f"^Discount | \"^{content['discount']}\n"

    table = ('|Name | Qty | Price | Total|\n-\n' + '\n'.join(rows) +
             f"\n-\n{fees}^TOTAL | \"^{content.get('totalPrice', '')}\n-\n")

    footer = _footer([
        ('Order No.', content.get('statementID')),
        ('Attendant', content.get('attendant') and _escape(content['attendant'])),
        ('Date Time', content.get('createdDate')),
        ('Receiver', content.get('receiverName') and _escape(content['receiverName'])),
        ('Phone No.', content.get('receiverPhone')),
        ('Address', content.get('receiverAdress')),
        ('Remark', content.get('remark')),
    ])
    return header + _sub_header(content) + table + footer + '\n'


def build_order(content: Dict[str, Any]) -> str:
    """Kitchen ticket for one dish."""
    food = content.get('food') or {}
    modifier = f"\n||^^^[{food['modifier']}] |" if food.get('modifier') else ''
    table = (f"{{w:6,*}}\n|Qty |Name |\n-\n"
             f"|^^^{food.get('num', '')} |^^^{food.get('name', '')} |{modifier}\n{{w:auto}}\n-\n")

    footer = _footer([
        ('Order No.', content.get('statementID')),
        ('Attendant', content.get('attendant') and _escape(content['attendant'])),
        ('Date Time', content.get('createdDate')),
        ('Receiver', content.get('receiverName') and _escape(content['receiverName'])),
        ('Remark', content.get('remark')),
    ])
    return _sub_header(content) + table + footer


def build_orders(chef_content: List[Dict[str, Any]]) -> str:
    """One kitchen ticket per dish, separated by paper cuts."""
    return '=\n'.join(build_order(content) for content in chef_content)


def build_refund(content: Dict[str, Any]) -> str:
    """Refund slip for one returned dish."""
    food = content.get('food') or {}
    modifier = f"\n||^^^[{food['modifier']}] |" if food.get('modifier') else ''
    table = (f"{{w:6,*}}\n|Qty |Name |\n-\n"
             f"|^^^-{food.get('num', '')} |^^^{food.get('name', '')} |{modifier}\n{{w:auto}}\n-\n")

    footer = _footer([
        ('Order No.', content.get('statementID')),
        ('Attendant', content.get('attendant') and _escape(content['attendant'])),
        ('Date Time', content.get('createdDate')),
        ('Reason', content.get('reason')),
    ])
    return '"^^REFUND\n-\n' + _sub_header(content) + table + footer


def build_revenue_analysis(content: Dict[str, Any]) -> str:
    """
    Revenue report for a date range.

    Reads ``shopName``, ``startDate``, ``endDate``, the optional totals
    ``totalRevenue``, ``orderCount``, ``customerNum``, ``discount``,
    ``refundAmount`` and the optional breakdowns ``categoryList`` /
    ``paymentList`` (items with ``name``, ``num``, ``amount``).
    """
    header = (f"\"^{content.get('shopName', '')}\n\n\"^^REVENUE REPORT\n\n"
              f"{content.get('startDate', '')} ~ {content.get('endDate', '')}\n-\n")

    totals = ''
    for label, key in (('Orders', 'orderCount'), ('Customers', 'customerNum'),
                       ('Discount', 'discount'), ('Refunds', 'refundAmount')):
        if content.get(key) not in (None, ''):
            totals += f'{label} | "{content[key]}\n'
    totals += f"^REVENUE | \"^{_money(content.get('totalRevenue'))}\n-\n"

    sections = ''
    for title, key in (('Category', 'categoryList'), ('Payment', 'paymentList')):
        items = content.get(key) or []
        if not items:
            continue
        sections += f'|{title} | Qty | Amount|\n-\n'
        for item in items:
            sections += (f"|{item.get('name', '')} | {_qty(_number(item.get('num')))} | "
                         f"\"{_money(item.get('amount'))}|\n")
        sections += '-\n'

    return header + totals + sections + '\n'


def _bill_payload(content: Any) -> str:
    if not isinstance(content, dict) or not content:
        raise ValidationError('customerContent empty.')
    return build_bill(content)


def _order_payload(content: Any) -> str:
    if not isinstance(content, list) or not content:
        raise ValidationError('chefContent empty.')
    return build_orders(content)


def _refund_payload(content: Any) -> str:
    if not isinstance(content, dict) or not content:
        raise ValidationError('refundContent empty.')
    if not content.get('food'):
        raise ValidationError('refundContent.food empty.')
    return build_refund(content)


def _report_payload(content: Any) -> str:
    if not isinstance(content, dict) or not content:
        raise ValidationError('revenueAnalysis empty.')
    return build_revenue_analysis(content)


PAYLOAD_BUILDERS: Dict[str, Callable[[Any], str]] = {
    'bill': _bill_payload,
    'order': _order_payload,
    'refund': _refund_payload,
    'report': _report_payload,
}


def build_payload(job: Job) -> str:
    """
    Receipt markdown for a job.

    Raises:
        ValidationError: the job's content is missing what its kind needs
    """
    return PAYLOAD_BUILDERS[job.kind](job.content)
