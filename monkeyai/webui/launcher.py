"""
Web launcher - start Ollama, make sure a model exists, serve the page

The server and the supervised Ollama process share one event loop so the
child's output readers keep running while the page is served.
"""

import asyncio
import logging
import webbrowser
from pathlib import Path
from typing import Optional

import uvicorn
from rich.console import Console

from monkeyai.common.errors import MonkeyAIError
from monkeyai.config import Settings
from monkeyai.providers.ollama_supervisor import OllamaSupervisor
from monkeyai.providers.readiness import ManualReadinessChecker
from monkeyai.webui.app import create_app

logger = logging.getLogger(__name__)

BROWSER_DELAY_SECONDS = 1.0

INSTALL_HELP = (
    "1. Download Ollama from: https://ollama.ai\n"
    "2. Install and run: ollama pull llama2\n"
    "3. Then run this script again"
)


def print_install_help(console: Console, error: Exception):
    if "not found" in str(error).lower():
        console.print("\n[yellow]💡 Installation help:[/yellow]")
        console.print(INSTALL_HELP)


class WebLauncher:
    """Starts the local stack and serves the web interface"""

    def __init__(
        self,
        settings: Settings,
        port: Optional[int] = None,
        open_browser: bool = True,
        web_root: Optional[Path] = None,
        supervisor: Optional[OllamaSupervisor] = None,
        console: Optional[Console] = None,
    ):
        self.settings = settings
        self.port = port or settings.web_port
        self.open_browser = open_browser
        self.web_root = Path(web_root) if web_root else Path.cwd()
        self.supervisor = supervisor or OllamaSupervisor(
            port=settings.ollama_port,
            max_retries=settings.max_retries,
            retry_delay_ms=settings.retry_delay_ms,
        )
        self.console = console or Console()

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}"

    def open_in_browser(self):
        try:
            if webbrowser.open(self.url):
                self.console.print(f"🚀 Opened {self.url} in your browser")
                return
        except webbrowser.Error as e:
            logger.debug(f"Browser open failed: {e}")
        self.console.print(f"Please open {self.url} in your browser")

    async def prepare(self):
        """Make sure Ollama is running and has the configured model"""
        self.console.print("📡 Checking Ollama...")
        await self.supervisor.ensure_running()
        self.console.print("[green]✅ Ollama is running[/green]\n")

        self.console.print("🤖 Checking for models...")
        await self.supervisor.ensure_default_model(self.settings.ollama_model)
        self.console.print("[green]✅ Model is ready[/green]\n")

    async def serve(self):
        app = create_app(
            self.web_root,
            checker=ManualReadinessChecker(port=self.settings.ollama_port),
        )
        config = uvicorn.Config(app=app, host="127.0.0.1", port=self.port, log_level="warning")
        server = uvicorn.Server(config)

        self.console.print(f"🌐 Server running at {self.url}")
        if self.open_browser:
            asyncio.get_running_loop().call_later(BROWSER_DELAY_SECONDS, self.open_in_browser)

        self.console.print("\n🎉 Everything is ready!")
        self.console.print("Press Ctrl+C to stop\n")
        await server.serve()

    async def run(self) -> int:
        self.console.print("🐵 Starting Monkey AI Web Interface...\n")
        try:
            await self.prepare()
        except MonkeyAIError as e:
            self.console.print(f"[red]❌ Failed to start: {e}[/red]")
            print_install_help(self.console, e)
            return 1

        try:
            await self.serve()
        finally:
            self.console.print("\n🛑 Shutting down...")
            self.supervisor.stop()
        return 0

    def launch(self) -> int:
        """Blocking entry point; returns the process exit code"""
        return asyncio.run(self.run())
