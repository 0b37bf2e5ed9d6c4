"""
monkeyai ask / explain / mode

The CLI plays the editor host: when the local service cannot be started it
offers to switch to the remote API, try again, or cancel.
"""

import asyncio
from typing import Awaitable, Callable, Optional

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.prompt import Prompt

from monkeyai.assistant.service import MonkeyAssistant, format_answer, format_explanation
from monkeyai.common.errors import (
    ContentRejected,
    LaunchError,
    MonkeyAIError,
    ResourceFetchFailure,
    StartupFailure,
)
from monkeyai.config import Settings, get_settings_manager, load_settings

console = Console()

RECOVERY_CHOICES = {
    "1": "Use API",
    "2": "Try Again",
    "3": "Cancel",
}


def ask_recovery(error: Exception) -> str:
    """Ask how to proceed after Ollama failed to start"""
    console.print(f"[red]❌ Failed to start Ollama: {error}[/red]")
    for key, label in RECOVERY_CHOICES.items():
        console.print(f"  {key}. {label}")
    choice = Prompt.ask("What would you like to do?", choices=list(RECOVERY_CHOICES), default="3")
    return RECOVERY_CHOICES[choice]


def switch_to_api(settings: Settings) -> Settings:
    get_settings_manager().update(use_ollama=False)
    settings.use_ollama = False
    console.print("Switched to API mode")
    return settings


def run_with_recovery(
    settings: Settings,
    operation: Callable[[MonkeyAssistant], Awaitable[str]],
) -> Optional[str]:
    """
    Run an assistant operation, prompting on local startup failures

    Returns None when the user cancels.
    """
    while True:
        assistant = MonkeyAssistant(settings)
        console.print(f"[dim]🐵 Monkey is thinking... ({assistant.mode_label})[/dim]")
        try:
            return asyncio.run(operation(assistant))
        except (StartupFailure, LaunchError, ResourceFetchFailure) as e:
            if not settings.use_ollama:
                raise
            choice = ask_recovery(e)
            if choice == "Use API":
                settings = switch_to_api(settings)
            elif choice == "Cancel":
                return None


def _report_failure(e: MonkeyAIError):
    if isinstance(e, ContentRejected):
        console.print(f"[yellow]🙈 Monkey can't help with that: {e}[/yellow]")
    else:
        console.print(f"[red]❌ Error: {e}[/red]")
    raise SystemExit(1)


@click.command(name="ask")
@click.argument("question", nargs=-1, required=True)
def ask_cmd(question):
    """Ask Monkey a coding question"""
    text = " ".join(question).strip()
    if not text:
        raise click.UsageError("Question must not be empty")

    try:
        answer = run_with_recovery(load_settings(), lambda a: a.ask_question(text))
    except MonkeyAIError as e:
        _report_failure(e)
        return

    if answer is None:
        raise SystemExit(1)
    console.print(Markdown(format_answer(answer, text)))


@click.command(name="explain")
@click.argument("source", type=click.File("r"), default="-")
def explain_cmd(source):
    """Explain code from a file (or stdin)"""
    code = source.read()
    if not code.strip():
        console.print("[yellow]Please select some code first![/yellow]")
        raise SystemExit(1)

    try:
        explanation = run_with_recovery(load_settings(), lambda a: a.explain_code(code))
    except MonkeyAIError as e:
        _report_failure(e)
        return

    if explanation is None:
        raise SystemExit(1)
    console.print(Markdown(format_explanation(explanation, code)))


@click.command(name="mode")
@click.argument("target", type=click.Choice(["local", "api"]), required=False)
def mode_cmd(target: Optional[str]):
    """Switch between local Ollama and the remote API (toggles without TARGET)"""
    manager = get_settings_manager()
    if target is None:
        use_ollama = not manager.load().use_ollama
    else:
        use_ollama = target == "local"

    manager.update(use_ollama=use_ollama)
    label = "Ollama (Local)" if use_ollama else "API (Cloud)"
    console.print(f"Monkey AI is now using: {label}")
