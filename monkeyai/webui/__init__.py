"""Static web interface and its launcher"""

from monkeyai.webui.app import create_app
from monkeyai.webui.launcher import WebLauncher

__all__ = ["create_app", "WebLauncher"]
