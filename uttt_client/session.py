"""Client-side game session state machine.

The machine owns the mirrored board and the latest :class:`GameSession`.
Inbound frames are decoded and dispatched one at a time; every transition
produces :class:`~uttt_client.events.UIEvent` objects which are handed to the
subscribed listeners and returned to the caller.  Local player actions are
validated against the last snapshot and turned into the plain-text commands
the server understands.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple

from .board import Board, BoardModel
from .errors import InvalidNotation, ProtocolError
from .events import EventKind, Listener, UIEvent
from .legality import LEGAL, check_move
from .notation import decode, encode
from .protocol import (
    DrawOfferNotice,
    ErrorNotice,
    GameOver,
    GameState,
    InfoNotice,
    Message,
    MoveNotice,
    Welcome,
    decode_message,
)
from .snapshot import GameSession, Symbol

logger = logging.getLogger(__name__)

__all__ = [
    "ACCEPT_DRAW",
    "ActionResult",
    "ClientState",
    "DECLINE_DRAW",
    "DrawOffer",
    "OFFER_DRAW",
    "QUERY_COMMANDS",
    "QUIT",
    "RESIGN",
    "SessionMachine",
]

RESIGN = "R"
OFFER_DRAW = "DRAW"
ACCEPT_DRAW = "ACCEPT_DRAW"
DECLINE_DRAW = "DECLINE_DRAW"
QUIT = "quit"
QUERY_COMMANDS = ("status", "help", "board")

NOT_CONNECTED = "Not connected to server"


class ClientState(str, Enum):
    DISCONNECTED = "disconnected"
    AWAITING_FIRST_SNAPSHOT = "awaiting_first_snapshot"
    ACTIVE = "active"
    CONCLUDED = "concluded"


@dataclass(frozen=True)
class DrawOffer:
    """A pending draw offer that the local player has to answer."""

    responder: Optional[Symbol]
    offered_by: Optional[str] = None


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a local action.

    ``command`` is the text to hand to the transport, or ``None`` when the
    action was rejected locally and nothing must be sent.
    """

    command: Optional[str]
    events: Tuple[UIEvent, ...] = ()

    @property
    def accepted(self) -> bool:
        return self.command is not None


class SessionMachine:
    def __init__(self) -> None:
        self.state = ClientState.DISCONNECTED
        self.board = BoardModel()
        self.session: Optional[GameSession] = None
        self.draw_offer: Optional[DrawOffer] = None
        self.activity: List[str] = []
        self._listeners: List[Listener] = []

    # Listeners
    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def _emit(self, kind: EventKind, text: str = "", **data: Any) -> UIEvent:
        event = UIEvent(kind=kind, text=text, session=self.session, data=data)
        for listener in list(self._listeners):
            listener(event)
        return event

    # Connection lifecycle
    def connected(self) -> List[UIEvent]:
        if self.state is ClientState.DISCONNECTED:
            logger.info("connected, waiting for the first game snapshot")
            self.state = ClientState.AWAITING_FIRST_SNAPSHOT
        return []

    def disconnected(self) -> List[UIEvent]:
        was_connected = self.state is not ClientState.DISCONNECTED
        self.state = ClientState.DISCONNECTED
        self.session = None
        self.draw_offer = None
        self.activity.clear()
        self.board.replace_with(Board())
        if not was_connected:
            return []
        logger.info("disconnected from server")
        return [self._emit(EventKind.DIAGNOSTIC, "Disconnected from server")]

    # Inbound messages
    def receive(self, raw: str) -> List[UIEvent]:
        """Decode one inbound frame and dispatch it.

        Frames that cannot be decoded leave the state untouched and surface
        as a single diagnostic event carrying the raw text.
        """

        logger.debug("received %s", raw)
        try:
            message = decode_message(raw)
        except ProtocolError as exc:
            logger.warning("ignoring inbound frame: %s", exc)
            return [self._emit(EventKind.DIAGNOSTIC, raw, error=str(exc))]
        return self.dispatch(message)

    def dispatch(self, message: Message) -> List[UIEvent]:
        if isinstance(message, Welcome):
            return [
                self._emit(
                    EventKind.GREETING,
                    message.message,
                    player_id=message.player_id,
                    player_name=message.player_name,
                )
            ]
        if isinstance(message, GameState):
            return self._apply_snapshot(message.snapshot)
        if isinstance(message, MoveNotice):
            line = f"{message.player_name} ({message.player_symbol.value}) played {message.move}"
            self.activity.append(line)
            return [self._emit(EventKind.ACTIVITY_LOGGED, line, move=message.move)]
        if isinstance(message, ErrorNotice):
            return [self._emit(EventKind.DIAGNOSTIC, message.message, severity="error")]
        if isinstance(message, InfoNotice):
            return [self._emit(EventKind.DIAGNOSTIC, message.message, severity="info")]
        if isinstance(message, GameOver):
            return [
                self._emit(
                    EventKind.IMPORTANT_NOTICE,
                    message.message,
                    winner=message.winner,
                    winner_name=message.winner_name,
                    comment=message.comment,
                )
            ]
        if isinstance(message, DrawOfferNotice):
            if self.session is None or self.state is not ClientState.ACTIVE:
                logger.warning("draw offer received without a game in progress, ignoring")
                return [self._emit(EventKind.DIAGNOSTIC, "Ignored draw offer without a game in progress")]
            self.draw_offer = DrawOffer(responder=self.session.your_symbol, offered_by=message.offered_by)
            return [
                self._emit(
                    EventKind.DRAW_OFFER_PROMPT,
                    message.message,
                    offered_by=message.offered_by,
                    accept=ACCEPT_DRAW,
                    decline=DECLINE_DRAW,
                )
            ]
        raise TypeError(f"unsupported message {message!r}")

    def _apply_snapshot(self, snapshot: GameSession) -> List[UIEvent]:
        if self.state is ClientState.DISCONNECTED:
            logger.warning("game_state received while disconnected, ignoring")
            return [self._emit(EventKind.DIAGNOSTIC, "Ignored game state received while disconnected")]

        if self.session is None or self.session.game_id != snapshot.game_id:
            self.activity.clear()
        self.session = snapshot
        self.board.replace_with(snapshot.board)
        self.draw_offer = None
        self.state = ClientState.CONCLUDED if snapshot.finished else ClientState.ACTIVE
        logger.debug("game %s now %s after %d moves", snapshot.game_id, self.state.value, len(snapshot.moves))
        return [self._emit(EventKind.STATE_UPDATED, self.status_line(), state=self.state.value)]

    def status_line(self) -> str:
        session = self.session
        if session is None:
            if self.state is ClientState.DISCONNECTED:
                return NOT_CONNECTED
            return "Waiting for a match"
        if session.finished:
            return f"Game over: {session.result_text()}"
        if session.is_your_turn:
            return f"Your turn ({session.your_symbol.value})"
        turn = session.current_turn
        return f"Waiting for {session.name_of(turn)} ({turn.value})"

    # Local actions
    def _reject(self, text: str, **data: Any) -> ActionResult:
        logger.warning("rejected locally: %s", text)
        return ActionResult(None, (self._emit(EventKind.DIAGNOSTIC, text, rejected=True, **data),))

    def _accept(self, command: str) -> ActionResult:
        logger.debug("sending %s", command)
        return ActionResult(command)

    def _require_game(self) -> Optional[ActionResult]:
        if self.state is ClientState.DISCONNECTED:
            return self._reject(NOT_CONNECTED)
        if self.session is None or self.state is not ClientState.ACTIVE:
            return self._reject("No game in progress")
        return None

    def submit_move(self, sub_board: int, cell: int) -> ActionResult:
        if self.state is ClientState.DISCONNECTED:
            return self._reject(NOT_CONNECTED)
        if self.session is None:
            return self._reject("No game in progress")
        verdict = check_move(
            self.board.snapshot,
            self.session.is_your_turn,
            self.session.status,
            (sub_board, cell),
        )
        if verdict is not LEGAL:
            return self._reject(verdict.message, reason=verdict)
        return self._accept(encode(sub_board, cell))

    def submit_token(self, token: str) -> ActionResult:
        try:
            sub_board, cell = decode(token)
        except InvalidNotation as exc:
            return self._reject(str(exc))
        return self.submit_move(sub_board, cell)

    def resign(self) -> ActionResult:
        return self._require_game() or self._accept(RESIGN)

    def offer_draw(self) -> ActionResult:
        return self._require_game() or self._accept(OFFER_DRAW)

    def accept_draw(self) -> ActionResult:
        return self._answer_draw(ACCEPT_DRAW)

    def decline_draw(self) -> ActionResult:
        return self._answer_draw(DECLINE_DRAW)

    def _answer_draw(self, command: str) -> ActionResult:
        if self.state is ClientState.DISCONNECTED:
            return self._reject(NOT_CONNECTED)
        if self.draw_offer is None:
            return self._reject("No draw offer pending")
        self.draw_offer = None
        return self._accept(command)

    def query(self, name: str) -> ActionResult:
        command = name.strip().lower()
        if command not in QUERY_COMMANDS:
            return self._reject(f"Unknown command {name!r}")
        if self.state is ClientState.DISCONNECTED:
            return self._reject(NOT_CONNECTED)
        return self._accept(command)

    def quit(self) -> ActionResult:
        if self.state is ClientState.DISCONNECTED:
            return self._reject(NOT_CONNECTED)
        return self._accept(QUIT)

    def send_failed(self, command: str) -> ActionResult:
        """Report that the transport could not deliver ``command``."""

        return self._reject(NOT_CONNECTED, command=command)
