"""Tkinter-based graphical client for online Ultimate Tic-Tac-Toe games."""
from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import queue
import threading
from typing import List, Optional, Tuple

import numpy as np
import tkinter as tk
from tkinter import messagebox, ttk

from websockets.exceptions import WebSocketException

from .board import Cell, Outcome
from .config import ClientConfig
from .errors import NotConnectedError
from .events import EventKind, UIEvent
from .legality import legal_action_mask
from .notation import Move
from .session import ActionResult, SessionMachine
from .transport import WebSocketTransport

logger = logging.getLogger(__name__)

__all__ = ["NetworkWorker", "OnlineTTTApp", "apply_network_item", "main"]

# Items placed on the inbound queue by the network thread.
_CONNECTED = "connected"
_FRAME = "frame"
_CLOSED = "closed"
_FAILED = "failed"
_SEND_FAILED = "send_failed"


def apply_network_item(machine: SessionMachine, kind: str, text: str) -> None:
    """Feed one ``(kind, text)`` item from :class:`NetworkWorker` into ``machine``."""

    if kind == _FRAME:
        machine.receive(text)
    elif kind == _CONNECTED:
        machine.connected()
    elif kind == _SEND_FAILED:
        machine.send_failed(text)
        machine.disconnected()
    elif kind in (_CLOSED, _FAILED):
        machine.disconnected()
    else:
        raise ValueError(f"unknown network item {kind!r}")


class NetworkWorker:
    """Runs the WebSocket transport on its own asyncio loop thread.

    Inbound frames and lifecycle changes are put on :attr:`inbound` as
    ``(kind, text)`` tuples for the UI thread to consume.  Nothing here
    blocks the UI thread except :meth:`stop`.
    """

    def __init__(self, transport: WebSocketTransport) -> None:
        self.transport = transport
        self.inbound: "queue.Queue[Tuple[str, str]]" = queue.Queue()
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, name="uttt-network", daemon=True)

    def start(self) -> None:
        self._thread.start()
        future = asyncio.run_coroutine_threadsafe(self._run(), self._loop)
        future.add_done_callback(self._reader_done)

    async def _run(self) -> None:
        try:
            await self.transport.connect()
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            self.inbound.put((_FAILED, str(exc)))
            return
        self.inbound.put((_CONNECTED, ""))
        try:
            async for frame in self.transport.messages():
                self.inbound.put((_FRAME, frame))
        finally:
            self.inbound.put((_CLOSED, ""))

    @staticmethod
    def _reader_done(future: "concurrent.futures.Future[None]") -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("network reader stopped: %s", exc, exc_info=exc)

    def send(self, text: str) -> None:
        future = asyncio.run_coroutine_threadsafe(self.transport.send(text), self._loop)
        future.add_done_callback(lambda done: self._sent(text, done))

    def _sent(self, text: str, future: "concurrent.futures.Future[None]") -> None:
        exc = None if future.cancelled() else future.exception()
        if exc is None:
            return
        logger.warning("could not send %r: %s", text, exc)
        self.inbound.put((_SEND_FAILED, text))
        asyncio.run_coroutine_threadsafe(self.transport.close(), self._loop)

    async def _shutdown(self, farewell: Optional[str]) -> None:
        if farewell is not None:
            try:
                await self.transport.send(farewell)
            except (NotConnectedError, OSError, WebSocketException) as exc:
                logger.debug("could not send %r before closing: %s", farewell, exc)
        await self.transport.close()

    def stop(self, farewell: Optional[str] = None) -> None:
        """Send ``farewell`` if given, close the transport and stop the loop."""

        future = asyncio.run_coroutine_threadsafe(self._shutdown(farewell), self._loop)
        try:
            future.result(timeout=5)
        except (OSError, WebSocketException, concurrent.futures.TimeoutError) as exc:
            logger.debug("error while closing transport: %s", exc)
        self._loop.call_soon_threadsafe(self._loop.stop)


class OnlineTTTApp:
    BOARD_SIZE = 540
    PADDING = 20
    CELL_SIZE = BOARD_SIZE / 9
    POLL_MS = 50

    def __init__(self, config: ClientConfig) -> None:
        self.root = tk.Tk()
        self.root.title("Ultimate Tic-Tac-Toe Online")
        self.root.resizable(False, False)

        self.config = config
        self.machine = SessionMachine()
        self.machine.subscribe(self.on_event)
        self.network = NetworkWorker(WebSocketTransport(config.connect_url()))

        self.status_var = tk.StringVar(value="Connecting...")
        self.hover_move: Optional[Move] = None
        self.invalid_move: Optional[Move] = None
        self._invalid_job: Optional[str] = None
        self._build_widgets()
        self.draw_board()

    def _build_widgets(self) -> None:
        control_frame = ttk.Frame(self.root, padding=10)
        control_frame.pack(side=tk.TOP, fill=tk.X)

        ttk.Button(control_frame, text="Resign", command=lambda: self.perform(self.machine.resign())).pack(
            side=tk.LEFT
        )
        ttk.Button(control_frame, text="Offer draw", command=lambda: self.perform(self.machine.offer_draw())).pack(
            side=tk.LEFT, padx=5
        )
        ttk.Button(control_frame, text="Status", command=lambda: self.perform(self.machine.query("status"))).pack(
            side=tk.LEFT
        )
        ttk.Label(control_frame, textvariable=self.status_var).pack(side=tk.RIGHT)

        canvas_size = self.BOARD_SIZE + 2 * self.PADDING
        self.canvas = tk.Canvas(
            self.root,
            width=canvas_size,
            height=canvas_size,
            background="#f8f8f8",
        )
        self.canvas.pack(padx=10, pady=10)
        self.canvas.bind("<Button-1>", self.on_click)
        self.canvas.bind("<Motion>", self.on_motion)
        self.canvas.bind("<Leave>", self.on_leave_canvas)

        self.log = tk.Listbox(self.root, height=8)
        self.log.pack(fill=tk.X, padx=10, pady=(0, 10))

    # Network plumbing
    def poll_network(self) -> None:
        while True:
            try:
                kind, text = self.network.inbound.get_nowait()
            except queue.Empty:
                break
            if kind == _FAILED:
                self.add_log(f"Failed to connect to server: {text}")
            apply_network_item(self.machine, kind, text)
            if kind == _CONNECTED:
                self.add_log("Connected to server! Entering matchmaking queue")
                self.status_var.set(self.machine.status_line())
            elif kind != _FRAME:
                self.status_var.set("Disconnected")
                self.draw_board()
        self.root.after(self.POLL_MS, self.poll_network)

    def perform(self, result: ActionResult) -> None:
        if result.command is not None:
            self.network.send(result.command)

    # Session events
    def on_event(self, event: UIEvent) -> None:
        if event.kind is EventKind.STATE_UPDATED:
            self.status_var.set(event.text)
            self.draw_board()
        elif event.kind is EventKind.DRAW_OFFER_PROMPT:
            self.add_log(event.text)
            self.root.after_idle(self.ask_draw_response)
        elif event.kind is EventKind.IMPORTANT_NOTICE:
            self.add_log(event.text)
            messagebox.showinfo("Game over", event.text)
        elif event.text:
            self.add_log(event.text)

    def ask_draw_response(self) -> None:
        if self.machine.draw_offer is None:
            return
        offered_by = self.machine.draw_offer.offered_by or "Your opponent"
        if messagebox.askyesno("Draw offer", f"{offered_by} offers a draw. Accept?"):
            self.perform(self.machine.accept_draw())
        else:
            self.perform(self.machine.decline_draw())

    def add_log(self, text: str) -> None:
        for line in text.splitlines() or [""]:
            self.log.insert(tk.END, line)
        self.log.see(tk.END)

    # Input
    def _legal_mask(self) -> Optional[np.ndarray]:
        session = self.machine.session
        if session is None:
            return None
        return legal_action_mask(self.machine.board.snapshot, session.is_your_turn, session.status)

    def on_click(self, event: tk.Event) -> None:
        move = self._point_to_move(event.x, event.y)
        if move is None:
            return
        result = self.machine.submit_move(*move)
        if result.command is None:
            self.show_invalid_feedback(move, result)
            return
        self.perform(result)

    def on_motion(self, event: tk.Event) -> None:
        move = self._point_to_move(event.x, event.y)
        mask = self._legal_mask()
        if move is not None and mask is not None and mask[move[0] * 9 + move[1]]:
            if move != self.hover_move:
                self.hover_move = move
                self.draw_board()
            self.canvas.configure(cursor="hand2")
        else:
            if self.hover_move is not None:
                self.hover_move = None
                self.draw_board()
            self.canvas.configure(cursor="arrow")

    def on_leave_canvas(self, _event: tk.Event) -> None:
        if self.hover_move is not None:
            self.hover_move = None
            self.draw_board()
        self.canvas.configure(cursor="arrow")

    def show_invalid_feedback(self, move: Move, result: ActionResult) -> None:
        self.invalid_move = move
        self.draw_board()
        if result.events:
            self.status_var.set(result.events[-1].text)
        if self._invalid_job is not None:
            self.root.after_cancel(self._invalid_job)
        self._invalid_job = self.root.after(800, self.clear_invalid_feedback)

    def clear_invalid_feedback(self) -> None:
        self.invalid_move = None
        self._invalid_job = None
        self.status_var.set(self.machine.status_line())
        self.draw_board()

    # Drawing
    def draw_board(self) -> None:
        self.canvas.delete("all")
        margin = self.PADDING
        cell = self.CELL_SIZE
        board = self.machine.board.snapshot
        mask = self._legal_mask()
        playable = set()
        if mask is not None:
            playable = {int(index) // 9 for index in mask.nonzero()[0]}

        tints = {Outcome.X: "#cce1ff", Outcome.O: "#ffd6cc", Outcome.DRAW: "#e0e0e0"}
        for sub_idx, sub in enumerate(board.sub_boards):
            x0, y0, x1, y1 = self._sub_board_bbox(sub_idx)
            fill = tints.get(sub.outcome, "#f2fce4" if sub_idx in playable else "#ffffff")
            self.canvas.create_rectangle(x0, y0, x1, y1, fill=fill, outline="")

            for idx, value in enumerate(sub.cells):
                row, col = divmod(idx, 3)
                cx = x0 + col * cell + cell / 2
                cy = y0 + row * cell + cell / 2
                if value is Cell.X:
                    self._draw_x(cx, cy, cell * 0.3, width=3)
                elif value is Cell.O:
                    self._draw_o(cx, cy, cell * 0.35, width=3)

            if sub.outcome is Outcome.X:
                self._draw_x((x0 + x1) / 2, (y0 + y1) / 2, cell * 1.1, width=8)
            elif sub.outcome is Outcome.O:
                self._draw_o((x0 + x1) / 2, (y0 + y1) / 2, cell * 1.2, width=8)

        for i in range(10):
            line_width = 1 if i % 3 else 4
            start = margin + i * cell
            end = margin + self.BOARD_SIZE
            self.canvas.create_line(margin, start, end, start, width=line_width, fill="#444444")
            self.canvas.create_line(start, margin, start, end, width=line_width, fill="#444444")

        if self.hover_move is not None and mask is not None and mask[self.hover_move[0] * 9 + self.hover_move[1]]:
            x0, y0, x1, y1 = self._cell_bbox(self.hover_move)
            self.canvas.create_rectangle(x0 + 2, y0 + 2, x1 - 2, y1 - 2, outline="#4caf50", width=3)

        if self.invalid_move is not None:
            x0, y0, x1, y1 = self._cell_bbox(self.invalid_move)
            self.canvas.create_rectangle(x0, y0, x1, y1, outline="#d32f2f", width=3)
            self.canvas.create_rectangle(x0, y0, x1, y1, fill="#d32f2f", stipple="gray25", outline="")

    def _draw_x(self, cx: float, cy: float, offset: float, width: int) -> None:
        for dy in (offset, -offset):
            self.canvas.create_line(cx - offset, cy - dy, cx + offset, cy + dy, width=width, fill="#1a4b8c")

    def _draw_o(self, cx: float, cy: float, radius: float, width: int) -> None:
        self.canvas.create_oval(cx - radius, cy - radius, cx + radius, cy + radius, width=width, outline="#b53d00")

    def _point_to_move(self, x: float, y: float) -> Optional[Move]:
        rel_x = x - self.PADDING
        rel_y = y - self.PADDING
        if rel_x < 0 or rel_y < 0 or rel_x >= self.BOARD_SIZE or rel_y >= self.BOARD_SIZE:
            return None

        grid_x = int(rel_x // self.CELL_SIZE)
        grid_y = int(rel_y // self.CELL_SIZE)
        sub_row, cell_row = divmod(grid_y, 3)
        sub_col, cell_col = divmod(grid_x, 3)
        return sub_row * 3 + sub_col, cell_row * 3 + cell_col

    def _sub_board_bbox(self, sub_index: int) -> Tuple[float, float, float, float]:
        span = self.CELL_SIZE * 3
        top_row, top_col = divmod(sub_index, 3)
        x0 = self.PADDING + top_col * span
        y0 = self.PADDING + top_row * span
        return x0, y0, x0 + span, y0 + span

    def _cell_bbox(self, move: Move) -> Tuple[float, float, float, float]:
        sub_index, cell_index = move
        cell = self.CELL_SIZE
        x0, y0, _, _ = self._sub_board_bbox(sub_index)
        cell_row, cell_col = divmod(cell_index, 3)
        x0 += cell_col * cell
        y0 += cell_row * cell
        return x0, y0, x0 + cell, y0 + cell

    def on_close(self) -> None:
        result = self.machine.quit()
        self.network.stop(farewell=result.command)
        self.root.destroy()

    def run(self) -> None:
        self.root.protocol("WM_DELETE_WINDOW", self.on_close)
        self.network.start()
        self.root.after(self.POLL_MS, self.poll_network)
        self.root.mainloop()


def main(argv: Optional[List[str]] = None) -> None:
    from .cli import build_config, parse_args

    config = build_config(parse_args(argv))
    logging.basicConfig(level=getattr(logging, config.log_level, logging.WARNING))
    app = OnlineTTTApp(config)
    app.run()


if __name__ == "__main__":
    main()
