"""CLI main entry point"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.prompt import Prompt

from monkeyai import __version__
from monkeyai.cli.info import has_extension, has_web_interface, show_help

console = Console()


def show_menu(root: Path) -> str:
    """Numbered menu built from what exists in root; returns the action"""
    options = {}

    console.print("What would you like to do?\n")
    if has_web_interface(root):
        options[str(len(options) + 1)] = ("web", "Start Web Interface 🌐")
    if has_extension(root):
        options[str(len(options) + 1)] = ("extension", "Install VS Code Extension 📦")
    options[str(len(options) + 1)] = ("ollama", "Just start Ollama 🚀")
    options[str(len(options) + 1)] = ("help", "Help & Info ℹ️")

    for key, (_, label) in options.items():
        console.print(f"{key}. {label}")

    answer = Prompt.ask(f"\nEnter your choice (1-{len(options)})", default="")
    action = options.get(answer.strip())
    return action[0] if action else "help"


def run_action(ctx: click.Context, action: str, root: Path):
    from monkeyai.cli.extension import install_extension
    from monkeyai.cli.ollama import run_ollama
    from monkeyai.config import load_settings

    if action == "web":
        if not has_web_interface(root):
            console.print("[red]❌ Web interface not found (index.html missing)[/red]")
            ctx.exit(1)
        from monkeyai.webui.launcher import WebLauncher
        ctx.exit(WebLauncher(load_settings(), web_root=root).launch())
    elif action == "extension":
        install_extension(root)
    elif action == "ollama":
        ctx.exit(run_ollama(load_settings()))
    else:
        show_help(root)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="monkeyai")
@click.option("--web", is_flag=True, help="Start Ollama and the web interface")
@click.option("--extension", is_flag=True, help="Package and install the VS Code extension")
@click.option("--ollama", is_flag=True, help="Just start Ollama and keep it running")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, web: bool, extension: bool, ollama: bool, verbose: bool):
    """Monkey AI - local coding assistant powered by Ollama

    Run without arguments for an interactive menu.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    root = Path.cwd()
    if web:
        run_action(ctx, "web", root)
    elif extension:
        run_action(ctx, "extension", root)
    elif ollama:
        run_action(ctx, "ollama", root)
    elif ctx.invoked_subcommand is None:
        run_action(ctx, show_menu(root), root)


# Import subcommands
from monkeyai.cli.assistant import ask_cmd, explain_cmd, mode_cmd
from monkeyai.cli.creator import create_model_cmd
from monkeyai.cli.extension import extension_cmd
from monkeyai.cli.info import info_cmd
from monkeyai.cli.ollama import ollama_cmd, status_cmd
from monkeyai.cli.web import web_cmd

cli.add_command(web_cmd, name="web")
cli.add_command(ollama_cmd, name="ollama")
cli.add_command(status_cmd, name="status")
cli.add_command(ask_cmd, name="ask")
cli.add_command(explain_cmd, name="explain")
cli.add_command(mode_cmd, name="mode")
cli.add_command(create_model_cmd, name="create-model")
cli.add_command(extension_cmd, name="extension")
cli.add_command(info_cmd, name="info")


def main(argv: Optional[list] = None):
    """Console script entry point"""
    try:
        cli(args=argv)
    except Exception as e:
        console.print(f"[red]❌ Unexpected error: {e}[/red]")
        console.print("Try running with --help for troubleshooting")
        sys.exit(1)


if __name__ == "__main__":
    main()
