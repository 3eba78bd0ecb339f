"""Events the session machine publishes for presentation layers."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .snapshot import GameSession

__all__ = ["EventKind", "Listener", "UIEvent"]


class EventKind(str, Enum):
    GREETING = "greeting"
    STATE_UPDATED = "stateUpdated"
    ACTIVITY_LOGGED = "activityLogged"
    DIAGNOSTIC = "diagnostic"
    IMPORTANT_NOTICE = "importantNotice"
    DRAW_OFFER_PROMPT = "drawOfferPrompt"


@dataclass(frozen=True)
class UIEvent:
    kind: EventKind
    text: str = ""
    session: Optional[GameSession] = None
    data: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[UIEvent], None]
