"""
monkeyai web [--port PORT] [--no-browser] [--root DIR]
"""

from pathlib import Path
from typing import Optional

import click

from monkeyai.config import load_settings
from monkeyai.webui.launcher import WebLauncher


@click.command(name="web")
@click.option(
    "--port",
    default=None,
    type=int,
    help="Port to serve on (default: webPort setting, 3000)",
)
@click.option(
    "--no-browser",
    is_flag=True,
    help="Don't auto-open the browser",
)
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory containing index.html (default: current directory)",
)
def web_cmd(port: Optional[int], no_browser: bool, root: Optional[Path]):
    """Start Ollama and serve the web interface"""
    launcher = WebLauncher(
        load_settings(),
        port=port,
        open_browser=not no_browser,
        web_root=root,
    )
    raise SystemExit(launcher.launch())
