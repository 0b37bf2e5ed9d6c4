"""monkeyai info - setup help, models and troubleshooting"""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console

console = Console()

HELP_TEMPLATE = """
🐵 Monkey AI Help
================

What is this?
- A local AI assistant that runs on your computer
- Uses Ollama for privacy (no data sent to cloud)
- Works in VS Code and web browser

Setup Steps:
1. Install Ollama: https://ollama.ai
2. Run: ollama pull llama2
3. Run: monkeyai

Available Models:
- llama2 (general purpose, recommended)
- codellama (better for coding)
- mistral (fast and efficient)
- deepseek-coder (excellent for code)

Troubleshooting:
- "Connection failed" → Install Ollama first
- "Model not found" → Run: ollama pull llama2
- "Port in use" → Change port in config
- Still issues? → Check https://ollama.ai/docs

Files in this project:
{extension} package.json - VS Code extension
{web} index.html - Web interface

Happy coding! 🚀
"""


def has_web_interface(root: Path) -> bool:
    return (root / "index.html").exists()


def has_extension(root: Path) -> bool:
    return (root / "package.json").exists()


def render_help(root: Optional[Path] = None) -> str:
    root = root or Path.cwd()
    return HELP_TEMPLATE.format(
        extension="✅" if has_extension(root) else "❌",
        web="✅" if has_web_interface(root) else "❌",
    )


def show_help(root: Optional[Path] = None):
    console.print(render_help(root), highlight=False, markup=False)


@click.command(name="info")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: current directory)",
)
def info_cmd(root: Optional[Path]):
    """Show setup help, models and troubleshooting tips"""
    show_help(root)
