"""In-process session memory.

Sessions are keyed by the caller-supplied id and created on first
reference. The store lives for the lifetime of the process; nothing is
persisted and nothing expires. Mutation is unsynchronized, which is only
acceptable for a single-instance deployment. Running more than one
instance requires a shared keyed store in place of this map.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from agent.schemas import SessionContext, Turn


@dataclass
class Session:
    turns: List[Turn] = field(default_factory=list)
    context: Optional[SessionContext] = None


class SessionStore:
    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}

    def get(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            session = Session()
            self._sessions[session_id] = session
        return session

    def append(self, session_id: str, turn: Turn) -> None:
        self.get(session_id).turns.append(turn)

    def set_context(self, session_id: str, context: Optional[SessionContext]) -> None:
        # Last write wins; no merge with the previous context.
        self.get(session_id).context = context

    def reset(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def turns(self, session_id: str) -> List[Turn]:
        return list(self.get(session_id).turns)

    def history_as_lines(self, session_id: str) -> List[str]:
        return [f"{t.role.upper()}: {t.text}" for t in self.get(session_id).turns]

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


session_store = SessionStore()
