"""
monkeyai ollama / monkeyai status

`ollama` starts the server (if needed), makes sure a model exists and stays
in the foreground until Ctrl+C, which stops the process it started.
"""

import asyncio

import click
from rich.console import Console

from monkeyai.cli.info import show_help
from monkeyai.common.errors import MonkeyAIError, RequestFailure
from monkeyai.config import Settings, load_settings
from monkeyai.providers.ollama_supervisor import OllamaSupervisor
from monkeyai.providers.readiness import manual_start_instructions

console = Console()


def build_supervisor(settings: Settings) -> OllamaSupervisor:
    return OllamaSupervisor(
        port=settings.ollama_port,
        max_retries=settings.max_retries,
        retry_delay_ms=settings.retry_delay_ms,
    )


async def _serve_ollama(supervisor: OllamaSupervisor, settings: Settings):
    try:
        await supervisor.ensure_running()
        await supervisor.ensure_default_model(settings.ollama_model)

        console.print("[green]✅ Ollama is ready![/green]")
        console.print(f"🌐 API available at: {supervisor.endpoint}")
        console.print("\nPress Ctrl+C to stop")

        await asyncio.Event().wait()
    finally:
        if supervisor.process is not None:
            console.print("\n🛑 Stopping Ollama...")
        supervisor.stop()


def run_ollama(settings: Settings) -> int:
    """Start Ollama and keep it alive; returns the exit code"""
    console.print("🚀 Starting Ollama...\n")
    supervisor = build_supervisor(settings)

    try:
        asyncio.run(_serve_ollama(supervisor, settings))
    except KeyboardInterrupt:
        return 0
    except MonkeyAIError as e:
        console.print(f"[red]❌ Failed to start Ollama: {e}[/red]")
        show_help()
        return 1
    return 0


async def _collect_status(supervisor: OllamaSupervisor):
    running = await supervisor.check_reachable()
    models = []
    error = None
    if running:
        try:
            models = await supervisor.list_models()
        except RequestFailure as e:
            error = str(e)
    return running, models, error


@click.command(name="ollama")
def ollama_cmd():
    """Start Ollama, ensure a model is available, and keep it running"""
    raise SystemExit(run_ollama(load_settings()))


@click.command(name="status")
def status_cmd():
    """Report whether Ollama is reachable and which models are installed"""
    settings = load_settings()
    supervisor = build_supervisor(settings)
    running, models, error = asyncio.run(_collect_status(supervisor))

    mode = "Ollama (Local)" if settings.use_ollama else "API (Cloud)"
    console.print(f"Mode: {mode}")

    if not running:
        console.print(f"[red]❌ Ollama is not running on port {settings.ollama_port}[/red]")
        console.print(manual_start_instructions(), highlight=False)
        raise SystemExit(1)

    console.print(f"[green]✅ Ollama is running at {supervisor.endpoint}[/green]")
    if error:
        console.print(f"[yellow]⚠️  {error}[/yellow]")
    elif models:
        console.print("Installed models:")
        for name in models:
            console.print(f"  - {name}")
    else:
        console.print(f"No models installed. Run: ollama pull {settings.ollama_model}")
