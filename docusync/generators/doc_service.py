"""Caller-facing documentation operations.

Validates user input, renders the prompt, and runs it through the
retrying invoker on one of two independent slots: ``generate`` for full
documentation and ``suggest`` for update suggestions.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from docusync.generators.invoker import InvocationState, RetryingInvoker
from docusync.generators.llm_client import GeminiClient
from docusync.generators.template_manager import TemplateManager

logger = logging.getLogger(__name__)

GENERATE_SLOT = "generate"
SUGGEST_SLOT = "suggest"
SLOT_NAMES = (GENERATE_SLOT, SUGGEST_SLOT)

EMPTY_SOURCE_ERROR = "Please paste your source code into the input box."
EMPTY_VERSIONS_ERROR = "Please provide both original and updated code versions."


class UnknownSlotError(KeyError):
    """Raised when a slot name is not one of SLOT_NAMES."""


@dataclass
class Slot:
    """One UI context with its own invocation state.

    Each started invocation gets the next generation number. Only the
    latest generation may publish, so a response that arrives after a
    newer invocation started is dropped instead of overwriting it.
    """

    name: str
    generation: int = 0
    state: InvocationState = field(default_factory=InvocationState)

    def begin(self) -> InvocationState:
        """Allocate a new generation and return its fresh state."""
        self.generation += 1
        return InvocationState(generation=self.generation)

    def publish(self, state: InvocationState) -> bool:
        """Store a copy of ``state`` if it belongs to the latest generation."""
        if state.generation != self.generation:
            logger.info(
                "Discarding stale %s state (generation %d, current %d)",
                self.name,
                state.generation,
                self.generation,
            )
            return False
        self.state = replace(state)
        return True

    def is_current(self, state: InvocationState) -> bool:
        """Whether ``state`` belongs to the latest generation."""
        return state.generation == self.generation


class DocumentationService:
    """Runs documentation requests for the two UI slots."""

    def __init__(
        self,
        invoker: RetryingInvoker,
        templates: Optional[TemplateManager] = None,
    ) -> None:
        self.invoker = invoker
        self.templates = templates or TemplateManager()
        self._slots = {name: Slot(name) for name in SLOT_NAMES}

    @classmethod
    def from_client(cls, client: GeminiClient) -> "DocumentationService":
        """Build a service with a default invoker around ``client``."""
        return cls(RetryingInvoker(client))

    def slot(self, name: str) -> Slot:
        """Look up a slot by name.

        Raises:
            UnknownSlotError: If ``name`` is not a known slot.
        """
        try:
            return self._slots[name]
        except KeyError:
            raise UnknownSlotError(name) from None

    def snapshot(self, name: str) -> InvocationState:
        """Return a copy of a slot's current state."""
        return replace(self.slot(name).state)

    async def generate_documentation(self, source_code: str) -> InvocationState:
        """Generate full documentation for a code blob.

        Args:
            source_code: Code pasted by the user.

        Returns:
            The terminal state of this invocation.
        """
        if not source_code.strip():
            return self._reject(GENERATE_SLOT, EMPTY_SOURCE_ERROR)
        prompt = self.templates.render_documentation_prompt(source_code)
        return await self._run(GENERATE_SLOT, prompt)

    async def suggest_update(
        self, original_code: str, updated_code: str
    ) -> InvocationState:
        """Suggest a documentation update for the change between two versions.

        Args:
            original_code: Code before the change.
            updated_code: Code after the change.

        Returns:
            The terminal state of this invocation.
        """
        if not original_code.strip() or not updated_code.strip():
            return self._reject(SUGGEST_SLOT, EMPTY_VERSIONS_ERROR)
        prompt = self.templates.render_update_prompt(original_code, updated_code)
        return await self._run(SUGGEST_SLOT, prompt)

    async def _run(self, slot_name: str, prompt: str) -> InvocationState:
        slot = self.slot(slot_name)
        client = self.invoker.client
        if not client.is_configured:
            return self._reject(
                slot_name,
                f"{client.config.api_key_env} is not set. "
                "Configure an API key before making requests.",
            )

        state = slot.begin()
        logger.info("Starting %s invocation %d", slot_name, state.generation)
        return await self.invoker.invoke(prompt, state=state, on_change=slot.publish)

    def _reject(self, slot_name: str, message: str) -> InvocationState:
        """Record a local error on a slot without touching the network."""
        slot = self.slot(slot_name)
        state = slot.begin()
        state.error = message
        slot.publish(state)
        logger.info("Rejected %s request: %s", slot_name, message)
        return state
