"""Data models for the study engine: the scheduling state of a flashcard."""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Optional

from study.card_types import CardStatus


@dataclass
class CardState:
    """
    Scheduling subset of a flashcard.

    interval is in days and stored unrounded; next_review is None for cards
    that have never been shown.
    """
    status: str = CardStatus.NEW.value
    interval: float = 0.0
    ease_factor: float = 1.3
    lapse_count: int = 0
    review_count: int = 0
    next_review: Optional[datetime] = None

    @property
    def is_new(self) -> bool:
        return self.status == CardStatus.NEW.value

    def to_dict(self) -> Dict:
        d = asdict(self)
        if self.next_review is not None:
            d['next_review'] = self.next_review.isoformat()
        return d

    @classmethod
    def from_dict(cls, data: Dict) -> 'CardState':
        data = dict(data)  # shallow copy
        known = cls.__dataclass_fields__
        data = {k: v for k, v in data.items() if k in known}
        if isinstance(data.get('next_review'), str):
            data['next_review'] = datetime.fromisoformat(data['next_review'])
        return cls(**data)
