"""Execution of the tool calls requested in one assistant turn."""

from collections.abc import Sequence

from toolstream.errors import ProtocolError, UnknownToolError
from toolstream.models.llm import AssistantBlock, TextBlock, ToolResultBlock, ToolUseBlock
from toolstream.tools.registry import ToolsRegistry
from toolstream.utils.logging import get_logger

logger = get_logger(__name__)


class ToolDispatcher:
    """Runs tool handlers for the tool_use blocks of a turn, one at a time."""

    def __init__(self, registry: ToolsRegistry):
        self.registry = registry

    async def dispatch(self, blocks: Sequence[AssistantBlock]) -> list[ToolResultBlock]:
        """Produce one tool result per tool_use block, in request order.

        Handler exceptions are reported back to the model as error results.
        Only non-``Exception`` failures such as cancellation escape.

        Raises:
            UnknownToolError: If a requested tool has no registered handler
        """
        tool_results: list[ToolResultBlock] = []

        for block in blocks:
            if isinstance(block, TextBlock):
                continue
            if not isinstance(block, ToolUseBlock):
                raise ProtocolError(f"Unexpected {block.type} block in assistant output")

            tool_results.append(await self._call_tool(block))

        return tool_results

    async def _call_tool(self, block: ToolUseBlock) -> ToolResultBlock:
        handler = self.registry.get_handler(block.name)
        if handler is None:
            logger.error(f"Unknown tool requested: {block.name}")
            raise UnknownToolError(block.name)

        logger.debug(f"Executing tool: {block.name} with input: {block.input}")
        try:
            result = await handler(block.input)
        except Exception as e:
            logger.error(f"Tool {block.name} failed: {e}")
            return ToolResultBlock(tool_use_id=block.id, content=str(e), is_error=True)

        logger.debug(f"Tool {block.name} succeeded: {str(result)[:100]}...")
        return ToolResultBlock(tool_use_id=block.id, content=str(result))
