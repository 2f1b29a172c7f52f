"""Operator confirmation gates."""

from typing import Callable, Protocol
import logging

logger = logging.getLogger(__name__)


class ConfirmationGate(Protocol):
    def ask(self, prompt: str) -> bool:
        ...


class PromptGate:
    """Blocks on a line of operator input; only ``y``/``yes`` approve."""

    def __init__(self, input_fn: Callable[[str], str] = input) -> None:
        self._input = input_fn

    def ask(self, prompt: str) -> bool:
        try:
            response = self._input(f"{prompt} (y/n): ")
        except EOFError:
            return False
        return response.strip().lower() in {"y", "yes"}


class AutoApproveGate:
    def ask(self, prompt: str) -> bool:
        logger.info("Auto-approved: %s", prompt)
        return True
