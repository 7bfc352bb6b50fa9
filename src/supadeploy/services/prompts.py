"""Input providers used by the credential collector.

The collector never talks to the terminal directly: it asks a provider for
the value of a named field, optionally masked. ``RichPromptProvider`` reads
from the terminal; ``ScriptedPromptProvider`` replays prepared answers so the
whole workflow can run without a TTY.
"""

from typing import Dict, List, Optional, Sequence, Union

from rich.console import Console
from rich.prompt import Prompt


class RichPromptProvider:
    """Reads answers interactively; secrets are captured without echo."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def ask(
        self,
        field: str,
        label: str,
        secret: bool = False,
        default: Optional[str] = None,
    ) -> str:
        if default is None:
            answer = Prompt.ask(label, console=self.console, password=secret)
        else:
            answer = Prompt.ask(label, console=self.console, password=secret, default=default)
        return answer or ""


class ScriptedPromptProvider:
    """Replays answers keyed by field name.

    A list answer is consumed one item per prompt, which is how re-prompted
    fields are scripted. Every request is recorded in ``requests`` as
    ``(field, secret)``.
    """

    def __init__(self, answers: Dict[str, Union[str, Sequence[str]]]):
        self._answers: Dict[str, List[str]] = {}
        for field, value in answers.items():
            if isinstance(value, str):
                self._answers[field] = [value]
            else:
                self._answers[field] = list(value)
        self.requests: List[tuple] = []

    def ask(
        self,
        field: str,
        label: str,
        secret: bool = False,
        default: Optional[str] = None,
    ) -> str:
        self.requests.append((field, secret))
        pending = self._answers.get(field)
        if not pending:
            if default is not None:
                return default
            raise KeyError(f"No scripted answer for field '{field}'")
        if len(pending) == 1:
            return pending[0]
        return pending.pop(0)

    @property
    def asked_fields(self) -> List[str]:
        return [field for field, _ in self.requests]
