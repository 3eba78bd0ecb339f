"""Terminal client for the ultimate tic-tac-toe matchmaking server."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import threading
from pathlib import Path
from typing import Callable, List, Optional, Set

from websockets.exceptions import WebSocketException

from .config import ClientConfig, load_config
from .errors import NotConnectedError
from .events import EventKind, UIEvent
from .session import QUERY_COMMANDS, QUIT, ActionResult, SessionMachine
from .transport import WebSocketTransport
from .ugn import GameRecord

logger = logging.getLogger(__name__)

__all__ = ["TerminalClient", "build_config", "main", "parse_args"]

HELP_TEXT = """Commands:
  A1-I9     play a move (sub-board letter, cell digit)
  board     ask the server for the board
  status    ask the server for the game status
  help      ask the server for its help text
  resign    resign the game (also: r)
  draw      offer a draw
  accept    accept a pending draw offer
  decline   decline a pending draw offer
  quit      leave (also: exit)"""


class TerminalClient:
    """Feeds stdin commands and server frames into a :class:`SessionMachine`."""

    def __init__(
        self,
        machine: SessionMachine,
        transport: WebSocketTransport,
        config: ClientConfig,
        out: Callable[[str], None] = print,
    ) -> None:
        self.machine = machine
        self.transport = transport
        self.config = config
        self.out = out
        self._saved_games: Set[str] = set()
        self._last_comment = ""
        machine.subscribe(self.on_event)

    def on_event(self, event: UIEvent) -> None:
        if event.kind is EventKind.STATE_UPDATED and event.session is not None:
            self.out(event.session.board.render_ascii())
            if event.session.moves:
                self.out("Moves: " + " ".join(event.session.moves))
            self.out(event.text)
            if event.session.finished:
                self._save_record()
        elif event.kind is EventKind.IMPORTANT_NOTICE:
            self._last_comment = event.data.get("comment") or ""
            self.out(f"*** {event.text} ***")
        elif event.kind is EventKind.DRAW_OFFER_PROMPT:
            self.out(f"{event.text}\nType 'accept' or 'decline'.")
        elif event.kind is EventKind.DIAGNOSTIC and (
            event.data.get("rejected") or event.data.get("severity") == "error"
        ):
            self.out(f"Error: {event.text}")
        else:
            self.out(event.text)

    def _save_record(self) -> None:
        session = self.machine.session
        if self.config.record_dir is None or session is None:
            return
        if session.game_id in self._saved_games:
            return
        record = GameRecord.from_session(session, comment=self._last_comment)
        self._saved_games.add(session.game_id)
        try:
            path = record.save(self.config.record_dir)
        except OSError as exc:
            logger.error("could not save game record for %s: %s", session.game_id, exc)
            self.out(f"Error: could not save game record: {exc}")
            return
        logger.info("saved game record %s", path)
        self.out(f"Game record saved to {path}")

    def handle_line(self, line: str) -> Optional[ActionResult]:
        """Translate one line of user input into a machine action."""

        text = line.strip()
        if not text:
            return None
        word = text.lower()
        if word in ("?", "commands"):
            self.out(HELP_TEXT)
            return None
        if word in ("quit", "exit"):
            return self.machine.quit()
        if word in QUERY_COMMANDS:
            return self.machine.query(word)
        if word in ("r", "resign"):
            return self.machine.resign()
        if word == "draw":
            return self.machine.offer_draw()
        if word in ("accept", "accept_draw"):
            return self.machine.accept_draw()
        if word in ("decline", "decline_draw"):
            return self.machine.decline_draw()
        return self.machine.submit_token(text)

    async def run(self, lines: Optional["asyncio.Queue[Optional[str]]"] = None) -> int:
        self.out("Connecting to Ultimate Tic-Tac-Toe Matchmaking Server")
        try:
            await self.transport.connect()
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            self.out(f"Failed to connect to server: {exc}")
            return 1
        self.machine.connected()
        self.out("Connected to server! Entering matchmaking queue")

        if lines is None:
            lines = _stdin_queue()
        inbound = asyncio.create_task(self._pump_inbound())
        commands = asyncio.create_task(self._pump_commands(lines))
        failure: Optional[BaseException] = None
        try:
            done, _ = await asyncio.wait({inbound, commands}, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    failure = task.exception()
        finally:
            for task in (inbound, commands):
                task.cancel()
            await asyncio.gather(inbound, commands, return_exceptions=True)
            await self.transport.close()
            self.machine.disconnected()
        if failure is not None:
            logger.error("client stopped unexpectedly", exc_info=failure)
            self.out(f"Error: {failure}")
            return 1
        return 0

    async def _pump_inbound(self) -> None:
        async for frame in self.transport.messages():
            self.machine.receive(frame)

    async def _pump_commands(self, lines: "asyncio.Queue[Optional[str]]") -> None:
        while True:
            line = await lines.get()
            if line is None:
                return
            result = self.handle_line(line)
            if result is None or result.command is None:
                continue
            try:
                await self.transport.send(result.command)
            except (NotConnectedError, OSError, WebSocketException) as exc:
                logger.warning("could not send %r: %s", result.command, exc)
                self.machine.send_failed(result.command)
                return
            if result.command == QUIT:
                self.out("Disconnecting")
                return


def _stdin_queue() -> "asyncio.Queue[Optional[str]]":
    """Read stdin on a daemon thread and hand lines to the running loop."""

    loop = asyncio.get_running_loop()
    queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()

    def reader() -> None:
        for line in sys.stdin:
            loop.call_soon_threadsafe(queue.put_nowait, line)
        loop.call_soon_threadsafe(queue.put_nowait, None)

    threading.Thread(target=reader, name="stdin-reader", daemon=True).start()
    return queue


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play Ultimate Tic-Tac-Toe against another player")
    parser.add_argument("name", nargs="?", default=None, help="Player name sent to the server")
    parser.add_argument("--config", type=Path, default=None, help="YAML file with a 'client' section")
    parser.add_argument("--url", default=None, help="WebSocket URL of the server")
    parser.add_argument("--record-dir", type=Path, default=None, help="Where to save finished games as UGN")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ClientConfig:
    config = load_config(args.config) if args.config else ClientConfig()
    return config.override(
        server_url=args.url,
        player_name=args.name,
        log_level=args.log_level,
        record_dir=args.record_dir,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = build_config(args)
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    machine = SessionMachine()
    client = TerminalClient(machine, WebSocketTransport(config.connect_url()), config)
    try:
        return asyncio.run(client.run())
    except KeyboardInterrupt:
        print("\nReceived interrupt signal. Closing connection")
        return 0


if __name__ == "__main__":
    sys.exit(main())
