#!/usr/bin/env python3
"""Interactive chat CLI streaming model output with tool calls."""

import asyncio
import sys

from anthropic import APIError
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt

from toolstream import AnthropicConfig, ConversationHistory, LLMService, ToolStreamError
from toolstream.tools.dice import create_roll_dice_tool
from toolstream.utils.logging import setup_logging


class ChatCLI:
    """Interactive chat interface over a streaming LLMService."""

    def __init__(self, model: str | None = None):
        """Initialize chat CLI."""
        config = AnthropicConfig(model=model) if model else AnthropicConfig()
        self.console = Console()
        self.service = LLMService(config)
        self.service.system("You are a helpful assistant. Use the available tools when they help.")
        self.service.add_tool(create_roll_dice_tool())
        self.history = ConversationHistory()

    async def start(self) -> None:
        """Start the interactive chat session."""
        self.console.print(
            Panel.fit(
                "[bold blue]toolstream chat[/bold blue]\n"
                f"Model: {self.service.config.model}\n"
                f"Tools: {', '.join(self.service.registry.get_tool_names())}\n"
                "Commands: /help, /clear, /quit",
                border_style="blue",
            )
        )

        try:
            while True:
                user_input = await asyncio.to_thread(Prompt.ask, "\n[bold cyan]You[/bold cyan]")

                if user_input.lower() in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif user_input.lower() == "/help":
                    self._show_help()
                    continue
                elif user_input.lower() == "/clear":
                    self.history = ConversationHistory()
                    self.console.print("[yellow]Conversation cleared[/yellow]")
                    continue
                elif user_input.strip() == "":
                    continue

                await self._send_message(user_input)

        except (KeyboardInterrupt, EOFError):
            pass
        finally:
            self.console.print("\n[yellow]Goodbye![/yellow]")

    async def _send_message(self, message: str) -> None:
        """Send a message and print the reply as it streams in."""
        self.history.add_user(message)
        self.console.print("\n[bold green]Assistant[/bold green]")
        try:
            async for chunk in self.service.stream(self.history):
                self.console.print(chunk, end="", markup=False, highlight=False)
        except (ToolStreamError, APIError) as e:
            self.console.print(f"\n[red]❌ Conversation failed: {e}[/red]", highlight=False)
            # The failed exchange left the history mid-turn; start over
            self.history = ConversationHistory()
            return

        usage = self.service.usage
        self.console.print(
            f"[dim]{self.service.turns} turns, {usage.input_tokens} input / {usage.output_tokens} output tokens[/dim]"
        )

    def _show_help(self) -> None:
        """Show help information."""
        help_text = """
[bold]Available Commands:[/bold]
• /help - Show this help message
• /clear - Forget the conversation and start over
• /quit or /exit - Exit the chat

[bold]Try:[/bold]
• "Roll a twenty-sided die"
• "Roll two six-sided dice and add them up"
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]Help[/cyan]", border_style="cyan"))


def main():
    """Main entry point for the chat CLI."""
    setup_logging()
    model = sys.argv[1] if len(sys.argv) > 1 else None

    chat = ChatCLI(model)
    asyncio.run(chat.start())


if __name__ == "__main__":
    main()
