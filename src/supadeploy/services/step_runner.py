"""Fail-fast execution of an ordered list of named steps."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional


@dataclass(frozen=True)
class Step:
    name: str
    description: str
    action: Callable[[], Any]
    command: Optional[List[str]] = None
    cwd: Optional[str] = None


class StepRunner:
    """Runs steps in order and stops at the first one that raises."""

    def __init__(self, logger, console, manifest_service=None):
        self.logger = logger
        self.console = console
        self.manifest_service = manifest_service
        # Name of the running step; left set when a step fails.
        self.current_step: Optional[str] = None

    def run(self, steps: Iterable[Step]) -> Dict[str, Any]:
        results: Dict[str, Any] = {}
        for step in steps:
            results[step.name] = self.run_step(step)
        return results

    def run_step(self, step: Step) -> Any:
        self.current_step = step.name
        self.console.print()
        self.console.print(f"[bold blue]{step.description}...[/bold blue]")
        self.logger.info("Starting step: %s", step.name)
        if self.manifest_service:
            self.manifest_service.step_started(step.name, step.command, step.cwd)

        try:
            result = step.action()
        except Exception as exc:
            self.logger.debug("Step %s failed: %s", step.name, exc)
            if self.manifest_service:
                self.manifest_service.step_finished(step.name, "failed", error=str(exc))
            raise

        if self.manifest_service:
            self.manifest_service.step_finished(step.name, "success")
        self.current_step = None
        return result
