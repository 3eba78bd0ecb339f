import asyncio

from uttt_client.cli import TerminalClient, build_config, parse_args
from uttt_client.config import ClientConfig
from uttt_client.events import EventKind
from uttt_client.session import SessionMachine
from uttt_client.transport import WebSocketTransport


class ScriptedConnection:
    """Serves the given frames, then waits until closed."""

    def __init__(self, frames):
        self.frames = list(frames)
        self.sent = []
        self.closed = asyncio.Event()

    async def send(self, text):
        self.sent.append(text)

    async def close(self):
        self.closed.set()

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for frame in self.frames:
            yield frame
        await self.closed.wait()


def build_client(config=None, frames=()):
    conn = ScriptedConnection(frames)

    async def connector(url):
        return conn

    output = []
    machine = SessionMachine()
    transport = WebSocketTransport("ws://test/ws", connector=connector)
    client = TerminalClient(machine, transport, config or ClientConfig(), out=output.append)
    return client, conn, output


def test_handle_line_maps_commands(make_frame):
    client, _, output = build_client()
    client.machine.connected()
    client.machine.receive(make_frame())

    assert client.handle_line("") is None
    assert client.handle_line("e5").command == "E5"
    assert client.handle_line("board").command == "board"
    assert client.handle_line("Resign").command == "R"
    assert client.handle_line("draw").command == "DRAW"
    assert client.handle_line("accept").command is None
    assert client.handle_line("exit").command == "quit"
    assert client.handle_line("?") is None
    assert "A1-I9" in output[-1]


def test_state_updates_print_the_board(make_frame):
    client, _, output = build_client()
    client.machine.connected()
    client.machine.receive(make_frame(cells={(0, 0): "X"}, ugn_moves=["A1"], is_your_turn=False, current_turn="O"))
    text = "\n".join(output)
    assert "X . ." in text
    assert "Moves: A1" in text
    assert output[-1] == "Waiting for bob (O)"


def test_rejections_print_as_errors(make_frame):
    client, _, output = build_client()
    client.machine.connected()
    client.machine.receive(make_frame(active_board=4))
    client.handle_line("A1")
    assert output[-1] == "Error: You must play in sub-board E"


def test_finished_game_is_recorded_once(make_frame, tmp_path):
    client, _, output = build_client(config=ClientConfig(record_dir=tmp_path))
    client.machine.connected()
    client.machine.receive(make_frame("game_over", {"message": "alice wins by resignation!", "comment": "resignation"}))
    finished = make_frame(game_status="finished", winner="X", ugn_moves=["E5"])
    client.machine.receive(finished)
    client.machine.receive(finished)

    records = list(tmp_path.glob("*.ugn"))
    assert len(records) == 1
    assert '[Comment "resignation"]' in records[0].read_text(encoding="utf-8")
    assert sum(line.startswith("Game record saved") for line in output) == 1


def test_run_sends_commands_until_quit(make_frame):
    client, conn, output = build_client(frames=[make_frame("welcome", {"message": "Welcome alice!"}), make_frame()])

    async def scenario():
        lines = asyncio.Queue()
        for line in ("status\n", "J1\n", "quit\n"):
            lines.put_nowait(line)
        return await client.run(lines)

    assert asyncio.run(scenario()) == 0
    assert conn.sent == ["status", "quit"]
    assert conn.closed.is_set()
    assert "Welcome alice!" in output
    assert "Disconnecting" in output


def test_run_reports_connection_failure():
    async def connector(url):
        raise OSError("connection refused")

    output = []
    client = TerminalClient(
        SessionMachine(), WebSocketTransport("ws://test/ws", connector=connector), ClientConfig(), out=output.append
    )
    assert asyncio.run(client.run(asyncio.Queue())) == 1
    assert output[-1] == "Failed to connect to server: connection refused"


def test_build_config_applies_command_line_overrides(tmp_path):
    path = tmp_path / "client.yaml"
    path.write_text("client:\n  player_name: alice\n  server_url: ws://a/ws\n", encoding="utf-8")
    config = build_config(parse_args(["bob", "--config", str(path), "--log-level", "DEBUG"]))
    assert config.player_name == "bob"
    assert config.server_url == "ws://a/ws"
    assert config.log_level == "DEBUG"
    assert config.connect_url() == "ws://a/ws?name=bob"


def test_unwritable_record_dir_prints_an_error(make_frame, tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    client, _, output = build_client(
        config=ClientConfig(record_dir=blocker / "games"),
        frames=[make_frame(game_status="finished", winner="X")],
    )

    async def scenario():
        lines = asyncio.Queue()
        task = asyncio.create_task(client.run(lines))
        while client.machine.session is None:
            await asyncio.sleep(0)
        lines.put_nowait(None)
        return await task

    assert asyncio.run(scenario()) == 0
    errors = [line for line in output if line.startswith("Error: could not save game record")]
    assert len(errors) == 1


def test_run_reports_a_failing_listener(make_frame):
    client, conn, output = build_client(frames=[make_frame()])

    def explode(event):
        if event.kind is EventKind.STATE_UPDATED:
            raise RuntimeError("listener failed")

    client.machine.subscribe(explode)
    assert asyncio.run(client.run(asyncio.Queue())) == 1
    assert output[-1] == "Error: listener failed"
    assert conn.closed.is_set()
