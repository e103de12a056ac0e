"""
Workflow Sage CLI - Main command-line interface for Workflow Sage.

Commands for running the API server, preparing the database, chatting from
the terminal and administering conversations.
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from workflowsage import __version__
from workflowsage.logging_config import setup_logging

app = typer.Typer(
    name="workflowsage",
    help="Workflow Sage - map business workflows and find AI opportunities",
    no_args_is_help=True,
)

console = Console()

CHAT_COMMANDS = {
    "/diagram": "generate the workflow diagram",
    "/suggest": "generate AI opportunity suggestions",
    "/title": "generate a title for this chat",
    "/quit": "leave the chat",
}


def _init_logging() -> None:
    # Fall back to console logging if file logging is not permitted
    try:
        setup_logging(context="cli")
    except PermissionError:
        import logging

        logging.basicConfig(level=logging.INFO)


def _build_store(memory: bool):
    if memory:
        from workflowsage.store import InMemoryChatStore

        return InMemoryChatStore()

    from workflowsage.db.connection import init_db
    from workflowsage.store import SqlChatStore

    init_db()
    return SqlChatStore()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host to bind to"),
    port: Optional[int] = typer.Option(None, help="Port to bind to"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
) -> None:
    """
    Start the FastAPI server.

    Runs the Workflow Sage chat API.
    """
    import uvicorn

    from workflowsage.config import settings

    host = host or settings.api_host
    port = port or settings.api_port

    console.print("[bold green]Starting Workflow Sage API server...[/bold green]")
    console.print(f"  Host: {host}")
    console.print(f"  Port: {port}")
    console.print(f"  Reload: {reload}")
    console.print(f"\n  API docs: http://{host}:{port}/docs")

    uvicorn.run(
        "workflowsage.api.app:app",
        host=host,
        port=port,
        reload=reload,
    )


@app.command("init-db")
def init_db_command() -> None:
    """Create the database tables if they do not exist."""
    from workflowsage.config import settings
    from workflowsage.db.connection import check_connection, init_db

    _init_logging()
    console.print(f"[bold blue]Database:[/bold blue] {settings.database_url}")
    if not check_connection():
        console.print("[bold red]Error:[/bold red] Cannot connect to the database")
        raise typer.Exit(1)

    init_db()
    console.print("[green]✓ Database schema initialized[/green]")


@app.command()
def chat(
    memory: bool = typer.Option(
        False, "--memory", help="Keep the conversation in memory instead of the database"
    ),
    owner: str = typer.Option(None, help="Owner recorded on the conversation"),
) -> None:
    """
    Map a workflow interactively from the terminal.

    Type a message to answer the interviewer, or one of the slash commands
    to trigger diagram, suggestion or title generation.
    """
    from workflowsage.conversation import WorkflowOrchestrator
    from workflowsage.exceptions import WorkflowSageError

    _init_logging()
    try:
        orchestrator = WorkflowOrchestrator.from_settings(_build_store(memory))
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    async def session() -> None:
        conversation = await orchestrator.start_conversation(owner=owner)
        turns = await orchestrator.store.get_turns(conversation.id)
        console.print(f"[dim]Conversation {conversation.id}[/dim]")
        console.print(
            "[dim]Commands: "
            + ", ".join(f"{name} ({help_text})" for name, help_text in CHAT_COMMANDS.items())
            + "[/dim]\n"
        )
        console.print(Markdown(turns[-1].text))

        while True:
            text = console.input("\n[bold cyan]you>[/bold cyan] ").strip()
            if not text:
                continue
            if text == "/quit":
                break

            try:
                if text == "/diagram":
                    with console.status("Generating diagram..."):
                        result = await orchestrator.generate_diagram(conversation.id)
                    console.print(result.notation)
                elif text == "/suggest":
                    with console.status("Researching AI opportunities..."):
                        reply = await orchestrator.generate_recommendations(conversation.id)
                    console.print(Markdown(reply))
                elif text == "/title":
                    title = await orchestrator.generate_title(conversation.id)
                    console.print(f"[green]Title:[/green] {title}")
                else:
                    with console.status("Thinking..."):
                        reply = await orchestrator.process_turn(conversation.id, text)
                    console.print(Markdown(reply))
            except WorkflowSageError as e:
                console.print(f"[yellow]⚠ {e}[/yellow]")

    try:
        asyncio.run(session())
    except (KeyboardInterrupt, EOFError):
        console.print()
    console.print("[dim]Bye.[/dim]")


@app.command("set-phase")
def set_phase(
    conversation_id: str = typer.Argument(..., help="Conversation id"),
    phase: int = typer.Argument(..., min=1, max=3, help="1=discovery, 2=diagram, 3=opportunities"),
) -> None:
    """
    Override a conversation's phase.

    Administrative escape hatch: unlike normal processing this can move a
    conversation back to an earlier phase.
    """
    from workflowsage.db.connection import init_db
    from workflowsage.exceptions import ConversationNotFoundError
    from workflowsage.models.workflow import Phase
    from workflowsage.store import SqlChatStore

    _init_logging()
    init_db()
    store = SqlChatStore()

    try:
        asyncio.run(store.set_phase(conversation_id, phase))
    except ConversationNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(
        f"[green]✓ Conversation {conversation_id} set to phase {phase} "
        f"({Phase(phase).name})[/green]"
    )


@app.command()
def show(conversation_id: str = typer.Argument(..., help="Conversation id")) -> None:
    """Show a stored conversation and its turns."""
    from workflowsage.store import SqlChatStore

    store = SqlChatStore()

    async def load():
        return (
            await store.get_conversation(conversation_id),
            await store.get_turns(conversation_id),
        )

    conversation, turns = asyncio.run(load())
    if conversation is None:
        console.print(f"[bold red]Error:[/bold red] Conversation {conversation_id} not found")
        raise typer.Exit(1)

    console.print(f"[bold]{conversation.title or '(untitled)'}[/bold]")
    console.print(f"  Phase: {conversation.phase}  Completed: {conversation.completed}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Role")
    table.add_column("Message")
    for index, turn in enumerate(turns, start=1):
        table.add_row(str(index), turn.role.value, turn.text)
    console.print(table)


@app.command()
def version() -> None:
    """Show the Workflow Sage version."""
    console.print(f"workflowsage {__version__}")


if __name__ == "__main__":
    app()
