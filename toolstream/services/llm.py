"""LLM service driving the streamed tool-use conversation loop."""

import dataclasses
from collections.abc import AsyncIterator, Iterable
from contextlib import aclosing
from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from toolstream.clients.anthropic import AnthropicClient, AnthropicConfig, MessageStreamTransport
from toolstream.errors import MaxTurnsExceededError
from toolstream.models.llm import AgentLoopResult, LLMMessage, LLMUsage, TextBlock
from toolstream.services.assembler import StreamAssembler
from toolstream.services.dispatch import ToolDispatcher
from toolstream.services.history import ConversationHistory
from toolstream.tools.base import ModelToolHandler, ToolCallable, ToolDefinition
from toolstream.tools.registry import ToolsRegistry
from toolstream.utils.logging import get_logger

logger = get_logger(__name__)


class LoopState(StrEnum):
    SENDING = "sending"
    ASSEMBLING = "assembling"
    DISPATCHING = "dispatching"
    DECIDING = "deciding"
    DONE = "done"


class LLMService:
    """Streaming client that runs requested tools and resumes the model until it answers.

    Example:
        service = LLMService(AnthropicConfig(max_tokens=4096))
        service.add_tool(create_roll_dice_tool())
        history = ConversationHistory([LLMMessage(role="user", content="Roll a d20")])
        async for chunk in service.stream(history):
            print(chunk, end="")

    One instance drives one conversation call at a time.
    """

    def __init__(
        self,
        config: AnthropicConfig | None = None,
        transport: MessageStreamTransport | None = None,
        registry: ToolsRegistry | None = None,
    ):
        """Initialize LLM service.

        Args:
            config: Request defaults; copied, so later changes stay local to this instance
            transport: Event stream source (defaults to an AnthropicClient)
            registry: Tools available to the model (defaults to an empty registry)
        """
        self.config = dataclasses.replace(config) if config else AnthropicConfig()
        self.transport = transport or AnthropicClient()
        self.registry = registry if registry is not None else ToolsRegistry()
        self.dispatcher = ToolDispatcher(self.registry)

        self.history: ConversationHistory | None = None
        self.state = LoopState.DONE
        self.turns = 0
        self.stop_reason: str | None = None
        self.usage = LLMUsage()

    def system(self, prompt: str) -> None:
        """Set the system instruction applied to every turn."""
        self.config.system = prompt

    def add_tool(self, tool: ToolDefinition) -> None:
        self.registry.add(tool)

    def register_tool(
        self,
        name: str,
        input_schema: dict[str, Any],
        handler: ToolCallable,
        description: str | None = None,
    ) -> ToolDefinition:
        return self.registry.register_tool(name, input_schema, handler, description)

    def add_model_tool(
        self,
        name: str,
        input_schema_class: type[BaseModel],
        handler: ModelToolHandler,
        description: str | None = None,
    ) -> ToolDefinition:
        """Attach a tool described by a pydantic model.

        Example:
            class RollDice(BaseModel):
                sides: int

            async def roll(params: RollDice) -> str:
                return str(random.randint(1, params.sides))

            service.add_model_tool("roll_dice", RollDice, roll, "Roll a die with the given number of sides")
        """
        return self.registry.add_model_tool(name, input_schema_class, handler, description)

    async def stream(
        self,
        history: ConversationHistory | Iterable[LLMMessage | dict[str, Any]],
        **kwargs: Any,
    ) -> AsyncIterator[str]:
        """Stream the model's text, running tools until a turn requests none.

        A ConversationHistory is extended in place with every assistant turn and
        tool result message; any other iterable of messages is copied into a new
        history, available as ``self.history``.

        Args:
            history: Conversation so far
            **kwargs: Per-call overrides of model, max_tokens, temperature, system
                and max_turns; other keys are passed to the API unchanged

        Raises:
            ProtocolError: If a turn's event stream is malformed
            ToolInputParseError: If a tool input is not a JSON object
            UnknownToolError: If the model calls an unregistered tool
            MaxTurnsExceededError: If the conversation needs more than max_turns turns
        """
        if not isinstance(history, ConversationHistory):
            history = ConversationHistory(history)
        self.history = history

        max_turns = kwargs.pop("max_turns", self.config.max_turns)
        options = self._request_options(kwargs)
        tools = self.registry.get_api_tools()

        self.turns = 0
        self.stop_reason = None
        self.usage = LLMUsage()

        logger.info(f"Starting conversation with {len(history)} messages, {len(tools)} tools, max_turns: {max_turns}")

        while True:
            if max_turns is not None and self.turns >= max_turns:
                logger.warning(f"Conversation reached max turns ({max_turns})")
                raise MaxTurnsExceededError(max_turns)
            self.turns += 1

            self.state = LoopState.SENDING
            logger.debug(f"Conversation turn {self.turns}")
            assembler = StreamAssembler()
            async with (
                aclosing(self.transport.create_stream(history.messages, tools, **options)) as events,
                aclosing(assembler.assemble(events)) as increments,
            ):
                self.state = LoopState.ASSEMBLING
                async for increment in increments:
                    yield increment

            content = assembler.content
            self.stop_reason = assembler.stop_reason
            self.usage.add(assembler.usage)
            history.append(LLMMessage(role="assistant", content=content))

            self.state = LoopState.DISPATCHING
            tool_results = await self.dispatcher.dispatch(content)

            self.state = LoopState.DECIDING
            if not tool_results:
                break

            logger.info(f"Model used {len(tool_results)} tools in turn {self.turns}")
            history.append(LLMMessage(role="user", content=tool_results))

        self.state = LoopState.DONE
        logger.info(f"Conversation completed in {self.turns} turns ({self.usage.total_tokens} tokens)")

    async def run(
        self,
        history: ConversationHistory | Iterable[LLMMessage | dict[str, Any]],
        **kwargs: Any,
    ) -> AgentLoopResult:
        """Run the conversation to completion and return the final answer."""
        if not isinstance(history, ConversationHistory):
            history = ConversationHistory(history)

        async for _ in self.stream(history, **kwargs):
            pass

        final_message = history[-1]
        content = final_message.blocks
        text = "\n".join(block.text for block in content if isinstance(block, TextBlock))

        return AgentLoopResult(
            text=text,
            content=content,
            stop_reason=self.stop_reason,
            messages=history.messages,
            turns=self.turns,
            usage=self.usage,
        )

    def _request_options(self, overrides: dict[str, Any]) -> dict[str, Any]:
        options: dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "system": self.config.system,
        }
        options.update(overrides)
        return options
