"""Reading and writing UGN game records.

A record starts with tag pairs such as ``[PlayerX "alice"]``, followed by a
blank line, the annotated moves two per line and a result line (``1-0``,
``0-1``, ``1/2-1/2`` or ``*``).
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .notation import AnnotatedMove, parse_annotated
from .snapshot import DRAW, GameSession, Symbol

__all__ = ["GameRecord", "IN_PROGRESS", "RESULT_LINES"]

IN_PROGRESS = "In Progress"

RESULT_LINES: Dict[str, str] = {"X": "1-0", "O": "0-1", DRAW: "1/2-1/2"}

_TAG_RE = re.compile(r'^\[(\w+)\s+"((?:[^"\\]|\\.)*)"\]$')
_ESCAPED_RE = re.compile(r"\\(.)")
_TAG_FIELDS = {
    "GameID": "game_id",
    "Date": "date",
    "Time": "time",
    "PlayerX": "player_x",
    "PlayerO": "player_o",
    "Result": "result",
    "Comment": "comment",
}


@dataclass
class GameRecord:
    game_id: str = ""
    date: str = ""
    time: str = ""
    player_x: str = ""
    player_o: str = ""
    result: str = IN_PROGRESS
    comment: str = ""
    moves: List[AnnotatedMove] = field(default_factory=list)

    @classmethod
    def from_session(
        cls, session: GameSession, comment: str = "", now: Optional[datetime] = None
    ) -> "GameRecord":
        now = now or datetime.now()
        result = IN_PROGRESS
        if session.finished:
            result = session.winner or DRAW
        return cls(
            game_id=session.game_id,
            date=now.strftime("%Y-%m-%d"),
            time=now.strftime("%H:%M:%S"),
            player_x=session.name_of(Symbol.X),
            player_o=session.name_of(Symbol.O),
            result=result,
            comment=comment,
            moves=[parse_annotated(token) for token in session.moves],
        )

    def dumps(self) -> str:
        lines: List[str] = []
        for tag, attr in _TAG_FIELDS.items():
            value = getattr(self, attr)
            if tag == "Comment" and not value:
                continue
            escaped = value.replace("\\", "\\\\").replace('"', '\\"')
            lines.append(f'[{tag} "{escaped}"]')
        lines.append("")

        tokens = [move.token for move in self.moves]
        for start in range(0, len(tokens), 2):
            lines.append(" ".join(tokens[start : start + 2]))
        lines.append(RESULT_LINES.get(self.result, "*"))
        return "\n".join(lines) + "\n"

    @classmethod
    def loads(cls, text: str) -> "GameRecord":
        record = cls()
        lines = text.splitlines()
        index = 0
        while index < len(lines):
            line = lines[index].strip()
            index += 1
            if not line:
                break
            match = _TAG_RE.match(line)
            if match and match.group(1) in _TAG_FIELDS:
                setattr(record, _TAG_FIELDS[match.group(1)], _ESCAPED_RE.sub(r"\1", match.group(2)))

        for line in lines[index:]:
            line = line.strip()
            if not line or line in ("1-0", "0-1", "1/2-1/2", "*"):
                continue
            record.moves.extend(parse_annotated(token) for token in line.split())
        return record

    def filename(self) -> str:
        date = self.date.replace("-", "")
        time = self.time.replace(":", "")
        return f"{date}_{time}_{self.game_id}.ugn"

    def save(self, directory: Path) -> Path:
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.filename()
        path.write_text(self.dumps(), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "GameRecord":
        return cls.loads(Path(path).read_text(encoding="utf-8"))
