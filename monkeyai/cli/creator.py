"""
monkeyai create-model [--simple]
"""

import asyncio
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from monkeyai.common.errors import ModelCreationError
from monkeyai.creator.builder import MonkeyZeroCreator
from monkeyai.creator.modelfile import MONKEYZERO_SIMPLE

console = Console()

OLLAMA_HELP = (
    "1. Install from: https://ollama.ai\n"
    "2. Run: ollama serve\n"
    "3. Then try again"
)


@click.command(name="create-model")
@click.option(
    "--simple",
    is_flag=True,
    help=f"Only customize an existing small model ({MONKEYZERO_SIMPLE.name})",
)
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory to update (default: current directory)",
)
def create_model_cmd(simple: bool, root: Optional[Path]):
    """Create the MonkeyZero custom model with Ollama"""
    creator = MonkeyZeroCreator(project_dir=root)

    try:
        if simple:
            console.print("🐵 Creating professional MonkeyZero model...\n")
            asyncio.run(creator.create_simple_customization())
            console.print(f"\n[green]✅ Professional model '{MONKEYZERO_SIMPLE.name}' created![/green]")
            console.print(f"Run: ollama run {MONKEYZERO_SIMPLE.name}")
            return

        console.print("🐵 MonkeyZero Creator - Building Ultra-Light AI Model\n")
        output = asyncio.run(creator.create())
    except ModelCreationError as e:
        console.print(f"[red]❌ Creation failed: {e}[/red]")
        if "not found" in str(e).lower():
            console.print("\n[yellow]💡 Make sure Ollama is installed and running:[/yellow]")
            console.print(OLLAMA_HELP)
        raise SystemExit(1)

    if output.strip():
        console.print("Model response:", output.strip(), sep="\n", markup=False, highlight=False)

    console.print("\n[green]🎉 MonkeyZero-Mini created successfully![/green]")
    console.print("\nNext steps:")
    console.print(f"1. Use in web interface: select '{creator.model_name}'")
    console.print(f'2. In VS Code: set "monkeyAI.ollamaModel" to "{creator.model_name}"')
    console.print(f"3. Direct usage: ollama run {creator.model_name}")
