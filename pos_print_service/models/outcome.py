"""
Outcome Model
=============

Result of one print job, or the summary of a whole request.
"""

from datetime import datetime
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

SUCCESS = '0'
FAILURE = '1'


@dataclass
class Outcome:
    """Success/failure code with a human-readable message."""

    code: str
    message: str
    session: str
    kind: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def success(cls, message: str, session: str, kind: Optional[str] = None) -> 'Outcome':
        return cls(code=SUCCESS, message=message, session=session, kind=kind)

    @classmethod
    def failure(cls, message: str, session: str, kind: Optional[str] = None) -> 'Outcome':
        return cls(code=FAILURE, message=message, session=session, kind=kind)

    @property
    def ok(self) -> bool:
        return self.code == SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the response payload shape."""
        data = {
            'resCode': self.code,
            'resMsg': self.message,
            'session': self.session,
        }
        if self.kind:
            data['kind'] = self.kind
        return data
