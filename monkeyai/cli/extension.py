"""
monkeyai extension - package and install the VS Code extension

Runs `vsce package` then `code --install-extension <vsix>`; prints the
manual steps when either tool is missing or fails.
"""

import subprocess
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console

console = Console()

DEV_MODE_STEPS = (
    "Installing via development mode...\n"
    "1. Open VS Code\n"
    '2. Press F1 and type "Developer: Install Extension from Location"\n'
    "3. Select this folder: {root}\n"
    "\n"
    "Or run: code --install-extension ."
)

MANUAL_VSIX_STEPS = (
    "Please install manually:\n"
    "1. Open VS Code\n"
    "2. Go to Extensions (Ctrl+Shift+X)\n"
    '3. Click "..." → Install from VSIX\n'
    "4. Select the .vsix file in this folder"
)


def _run(args: List[str], cwd: Path) -> bool:
    try:
        result = subprocess.run(args, cwd=cwd, capture_output=True, text=True)
    except OSError as e:
        console.print(f"[dim]{args[0]}: {e}[/dim]")
        return False
    if result.returncode != 0 and result.stderr:
        console.print(f"[dim]{result.stderr.strip()}[/dim]")
    return result.returncode == 0


def find_vsix(root: Path) -> Optional[Path]:
    """Newest .vsix in root"""
    packages = sorted(root.glob("*.vsix"), key=lambda p: p.stat().st_mtime, reverse=True)
    return packages[0] if packages else None


def install_extension(root: Optional[Path] = None) -> bool:
    """Package and install the extension; returns True when installed"""
    root = (root or Path.cwd()).resolve()
    console.print("📦 Installing VS Code extension...\n")

    if not _run(["vsce", "package"], cwd=root):
        console.print(DEV_MODE_STEPS.format(root=root), highlight=False)
        return False

    console.print("[green]✅ Extension packaged![/green]")
    console.print("Installing...")

    vsix = find_vsix(root)
    if vsix is None or not _run(["code", "--install-extension", str(vsix)], cwd=root):
        console.print(MANUAL_VSIX_STEPS, highlight=False)
        return False

    console.print("[green]✅ Extension installed![/green]")
    console.print("Use Ctrl+Shift+M to ask Monkey AI questions")
    return True


@click.command(name="extension")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Extension directory (default: current directory)",
)
def extension_cmd(root: Optional[Path]):
    """Package and install the VS Code extension"""
    install_extension(root)
