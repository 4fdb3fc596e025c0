"""
Print Job Model
===============

A print request is a batch of jobs grouped by kind (report, bill, order,
refund). Each job targets one network or USB receipt printer.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Iterator, Tuple

from ..config import JOB_KINDS, NETWORK, USB
from ..errors import ValidationError


def _parse_usb_id(value: Any) -> int:
    """Parse a vendor/product id given as int, decimal string or 0x-hex string."""
    if isinstance(value, bool):
        raise ValidationError(f'USB id {value!r} is not a number')
    if isinstance(value, int):
        return value
    text = str(value).strip().lower()
    try:
        if text.startswith('0x'):
            return int(text, 16)
        return int(text, 10)
    except ValueError:
        raise ValidationError(f'USB id {value!r} is not a number') from None


def _location(content: Dict[str, Any], delivery_label: str = 'Delivery') -> str:
    if content.get('tableCode'):
        return f"Onsite:{content['tableCode']}"
    if content.get('takeawayNo'):
        return f"Takeaway:{content['takeawayNo']}"
    return delivery_label


@dataclass
class Job:
    """One unit of print work for one printer."""

    kind: str  # report, bill, order, refund
    hardware_type: Optional[str] = None  # Network, USB or an ignored brand

    # Business content handed to the receipt formatter
    content: Any = None

    # Network target
    ip: Optional[str] = None

    # USB target (absent means first available printer)
    vid: Any = None
    pid: Any = None

    # Position within its group
    position: int = 0

    @classmethod
    def from_dict(cls, kind: str, data: Dict[str, Any], position: int = 0) -> 'Job':
        """Create from a request record."""
        if not isinstance(data, dict):
            raise ValidationError(
                f"Print failed: {JOB_KINDS[kind]['field']}[{position}] must be an object."
            )
        return cls(
            kind=kind,
            hardware_type=data.get('hardwareType'),
            content=data.get(JOB_KINDS[kind]['content']),
            ip=data.get('ip'),
            vid=data.get('vid'),
            pid=data.get('pid'),
            position=position,
        )

    @property
    def duration_units(self) -> int:
        """Estimated printer time in slips; orders print one slip per dish."""
        if self.kind == 'order' and isinstance(self.content, list) and self.content:
            return len(self.content)
        return 1

    def usb_ids(self) -> Tuple[Optional[int], Optional[int]]:
        """Return (vid, pid), or (None, None) for first available printer."""
        if self.vid in (None, '') or self.pid in (None, ''):
            return None, None
        return _parse_usb_id(self.vid), _parse_usb_id(self.pid)

    @property
    def usb_label(self) -> str:
        return f'[{self.vid};{self.pid}]'

    @property
    def device_key(self) -> str:
        """Identity of the physical printer this job lands on."""
        if self.hardware_type == NETWORK:
            return f'net:{self.ip}'
        if self.hardware_type == USB:
            try:
                vid, pid = self.usb_ids()
            except ValidationError:
                return f'usb:{self.vid}:{self.pid}'
            if vid is None:
                return 'usb:first'
            return f'usb:{vid:04x}:{pid:04x}'
        return f'{self.hardware_type}'

    def summary(self, session: str) -> str:
        """One-line description of the job for the log."""
        parts = [f'Session:{session}', self.kind]
        content = self.content

        if self.kind == 'bill' and isinstance(content, dict):
            parts += [
                f"ID:{content.get('statementID')}",
                _location(content, f"Delivery:{content.get('receiverName')}"),
                f"Attendant:{content.get('attendant')}",
                f"Remark:{content.get('remark')}",
            ]
        elif self.kind == 'order' and isinstance(content, list) and content:
            first = content[0] if isinstance(content[0], dict) else {}
            dishes = ';'.join(
                f"{(c.get('food') or {}).get('name')} x {(c.get('food') or {}).get('num')}"
                for c in content if isinstance(c, dict)
            )
            parts += [
                f'Length:{len(content)}',
                f"ID:{first.get('statementID')}",
                _location(first),
                f"Attendant:{first.get('attendant')}",
                f"Remark:{first.get('remark')}",
                f'[{dishes}]',
            ]
        elif self.kind == 'refund' and isinstance(content, dict):
            food = content.get('food') or {}
            modifier = f"[{food['modifier']}]" if food.get('modifier') else ''
            parts += [
                f"{food.get('name')}{modifier} x {food.get('num')}",
                f"Onsite:{content.get('tableCode')}",
                f"Attendant:{content.get('attendant')}",
            ]
        elif self.kind == 'report' and isinstance(content, dict):
            parts += [
                f"Start:{content.get('startDate')}",
                f"End:{content.get('endDate')}",
                f"Shop:{content.get('shopName')}",
            ]

        return '|'.join(parts)


@dataclass
class PrintRequest:
    """A batch of jobs submitted in one call, dispatched under one session."""

    session: str
    groups: Dict[str, List[Job]] = field(default_factory=dict)

    @classmethod
    def from_body(cls, body: Any, session: str) -> 'PrintRequest':
        """
        Build from a request body.

        Raises:
            ValidationError: body missing every job group, or all groups empty
        """
        fields = [spec['field'] for spec in JOB_KINDS.values()]
        names = ', '.join(f"'{name}'" for name in fields[:-1]) + f" and '{fields[-1]}'"

        if not isinstance(body, dict) or not any(name in body for name in fields):
            raise ValidationError(f'Print failed: {names} not in the body.')

        groups = {}
        for kind, spec in JOB_KINDS.items():
            records = body.get(spec['field']) or []
            if not isinstance(records, list):
                raise ValidationError(f"Print failed: '{spec['field']}' must be a list.")
            groups[kind] = [Job.from_dict(kind, record, i) for i, record in enumerate(records)]

        if not any(groups.values()):
            raise ValidationError(f'Print failed: {names} empty.')

        return cls(session=session, groups=groups)

    def jobs(self) -> Iterator[Job]:
        """Jobs in dispatch order: group order first, then array order."""
        for kind in JOB_KINDS:
            yield from self.groups.get(kind, [])

    def __len__(self) -> int:
        return sum(len(jobs) for jobs in self.groups.values())
