"""Main CLI application using Typer."""
import asyncio

import typer
from dotenv import load_dotenv
from rich.console import Console, Group
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.text import Text

from ..chat import ChatMessage, Confidence, Role, extract_sections, split_reasoning
from ..client import ChatSession
from ..config import ClientSettings, ServerSettings
from .providers import configure_logging, get_session, get_store, get_transport

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="lexa",
    help="Legal guidance chat: streaming client and LLM proxy server",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

_CONFIDENCE_STYLES = {
    Confidence.HIGH: "green",
    Confidence.MEDIUM: "yellow",
    Confidence.LOW: "dim",
}


def render_message(message: ChatMessage, show_reasoning: bool = False) -> Panel | Text:
    """Render one chat message for the terminal."""
    if message.role is Role.SYSTEM:
        return Text(message.content, style="dim italic")

    if message.role is Role.USER:
        return Panel(Text(message.content), title="You", title_align="left", border_style="blue")

    content, reasoning = split_reasoning(message.content)
    parts: list = [Markdown(content or "…")]
    if reasoning and show_reasoning:
        parts.append(Panel(Markdown(reasoning), title="AI Reasoning", border_style="dim"))

    sections = extract_sections(message.content)
    if sections:
        parts.append(Text("Cited: " + ", ".join(sections[:5]), style="cyan"))

    subtitle = None
    if message.confidence is not None:
        style = _CONFIDENCE_STYLES[message.confidence]
        subtitle = f"[{style}]{message.confidence.value.title()} Confidence[/{style}]"

    return Panel(
        Group(*parts),
        title=message.agent_name or "Assistant",
        title_align="left",
        subtitle=subtitle,
        subtitle_align="right",
        border_style="magenta",
    )


def _client_settings(url: str | None, token: str | None, no_stream: bool) -> ClientSettings:
    settings = ClientSettings.from_env()
    updates = {}
    if url:
        updates["chat_url"] = url
    if token:
        updates["token"] = token
    if no_stream:
        updates["stream"] = False
    return settings.model_copy(update=updates)


async def _run_turn(session: ChatSession, text: str, show_reasoning: bool) -> None:
    """Send one message, rendering the assistant reply live as it streams."""
    start = len(session.messages)

    with Live(console=console, refresh_per_second=12, transient=False) as live:
        def _update(chat: ChatSession) -> None:
            new = [m for m in chat.messages[start:] if m.role is Role.ASSISTANT]
            if new:
                live.update(render_message(new[-1], show_reasoning))
            elif chat.is_loading:
                live.update(Text("Analyzing your query...", style="dim"))

        session.on_change = _update
        try:
            await session.send_message(text)
        finally:
            session.on_change = None

    for message in session.messages[start:]:
        if message.role is Role.SYSTEM:
            console.print(render_message(message))

    if session.notifications:
        notice = session.notifications[-1]
        console.print(f"[red]Error: {notice.message}[/red]")
        console.print("[dim]Type /retry to resend your last message.[/dim]")


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address (default: LEXA_HOST)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default: LEXA_PORT)"),
    log_level: str = typer.Option("info", "--log-level", "-l", help="Log level"),
):
    """Run the chat server."""
    import uvicorn

    from ..server import create_app

    configure_logging(log_level)
    settings = ServerSettings.from_env()
    if not settings.gateway_api_key:
        console.print("[yellow]Warning: LLM_API_KEY not set, chat requests will fail[/yellow]")

    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_level=log_level.lower(),
    )


@app.command()
def chat(
    url: str | None = typer.Option(None, "--url", "-u", help="Chat endpoint URL"),
    token: str | None = typer.Option(None, "--token", "-t", help="Bearer token"),
    no_stream: bool = typer.Option(False, "--no-stream", help="Request complete answers instead of streams"),
    reasoning: bool = typer.Option(False, "--reasoning", "-r", help="Show the AI Reasoning section"),
    log_level: str = typer.Option("warning", "--log-level", "-l", help="Log level"),
):
    """Start an interactive legal guidance chat."""
    configure_logging(log_level)
    settings = _client_settings(url, token, no_stream)

    async def _chat():
        store = get_store(settings)
        await store.connect()
        transport = get_transport(settings, console)
        session = get_session(settings, transport, store)

        console.print(Panel(
            "Describe your legal issue. Commands: /retry, /new, /quit",
            title="LeXa Legal Guidance",
            border_style="magenta",
        ))

        try:
            while True:
                text = Prompt.ask("[bold blue]You[/bold blue]", console=console)
                command = text.strip().lower()
                if command in ("/quit", "/exit"):
                    break
                if command == "/new":
                    session.clear()
                    console.print("[dim]Started a new conversation.[/dim]")
                    continue
                if command == "/retry":
                    if not session.notifications:
                        console.print("[dim]Nothing to retry.[/dim]")
                        continue
                    text = session.notifications.pop().retry_input
                if not text.strip():
                    continue
                await _run_turn(session, text, reasoning)
        except (EOFError, KeyboardInterrupt):
            session.cancel()
        finally:
            await transport.close()
            await store.disconnect()

    asyncio.run(_chat())


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to ask"),
    url: str | None = typer.Option(None, "--url", "-u", help="Chat endpoint URL"),
    token: str | None = typer.Option(None, "--token", "-t", help="Bearer token"),
    no_stream: bool = typer.Option(False, "--no-stream", help="Request a complete answer instead of a stream"),
    reasoning: bool = typer.Option(False, "--reasoning", "-r", help="Show the AI Reasoning section"),
    log_level: str = typer.Option("warning", "--log-level", "-l", help="Log level"),
):
    """Ask a single question and print the answer."""
    configure_logging(log_level)
    settings = _client_settings(url, token, no_stream)

    async def _ask() -> bool:
        async with get_transport(settings, console) as transport:
            session = get_session(settings, transport)
            await _run_turn(session, question, reasoning)
            return not session.notifications

    if not asyncio.run(_ask()):
        raise typer.Exit(code=1)


def main() -> None:
    app()
