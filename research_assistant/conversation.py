from typing import Dict, Iterator, List, Tuple

from .models import Role, Turn


class ConversationHistory:
    """Append-only log of turns threaded through every model invocation."""

    def __init__(self) -> None:
        self._turns: List[Turn] = []

    def append(self, turn: Turn) -> Turn:
        self._turns.append(turn)
        return turn

    def append_user(self, content: str) -> Turn:
        return self.append(Turn(role=Role.USER, content=content))

    def append_assistant(self, content: str) -> Turn:
        return self.append(Turn(role=Role.ASSISTANT, content=content))

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    def to_messages(self) -> List[Dict[str, str]]:
        """Snapshot of the history in chat-completions message format."""

        return [turn.to_message() for turn in self._turns]

    def clear(self) -> None:
        self._turns.clear()

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))

    def __len__(self) -> int:
        return len(self._turns)
