"""
MonkeyZero creator - build a customized model through the ollama CLI

Steps:
1. `ollama pull <base>`
2. Write the Modelfile, `ollama create <name> -f <file>`
3. Smoke test with `ollama run <name>`
4. Register the model in local project files and save the training data
"""

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Optional

from monkeyai.common.errors import ModelCreationError
from monkeyai.creator.modelfile import (
    MONKEYZERO_MINI,
    MONKEYZERO_SIMPLE,
    ModelProfile,
    render_training_data,
)

logger = logging.getLogger(__name__)

TEST_PROMPT = "Write a simple Python function to reverse a string"
MODEL_SELECT_RE = re.compile(r'<select id="modelSelect">([\s\S]*?)</select>')


class MonkeyZeroCreator:
    """Creates and registers a custom MonkeyZero model"""

    def __init__(
        self,
        project_dir: Optional[Path] = None,
        executable: str = "ollama",
        profile: ModelProfile = MONKEYZERO_MINI,
        bye_delay: float = 5.0,
    ):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.executable = executable
        self.profile = profile
        self.bye_delay = bye_delay

    @property
    def model_name(self) -> str:
        return self.profile.name

    def render_modelfile(self) -> str:
        return self.profile.render()

    async def _run(self, *args: str, what: str) -> int:
        """Run the ollama CLI with console I/O inherited"""
        try:
            proc = await asyncio.create_subprocess_exec(self.executable, *args)
        except FileNotFoundError as e:
            raise ModelCreationError(f"Error {what}: {self.executable} executable not found") from e
        except OSError as e:
            raise ModelCreationError(f"Error {what}: {e}") from e
        return await proc.wait()

    async def install_base_model(self):
        base = self.profile.base_model
        logger.info(f"Installing base model: {base}")

        exit_code = await self._run("pull", base, what="installing base model")
        if exit_code != 0:
            raise ModelCreationError(
                f"Failed to install base model (exit code: {exit_code})", exit_code=exit_code
            )

        logger.info(f"Base model {base} installed")

    async def create_custom_model(self, profile: Optional[ModelProfile] = None):
        """
        Write the Modelfile and run `ollama create`

        The Modelfile is removed after a successful create and kept for
        inspection on failure.
        """
        profile = profile or self.profile
        modelfile_path = self.project_dir / f"{profile.name}.Modelfile"
        modelfile_path.write_text(profile.render(), encoding="utf-8")
        logger.info(f"Created Modelfile: {modelfile_path}")

        logger.info(f"Creating custom model: {profile.name}")
        exit_code = await self._run(
            "create", profile.name, "-f", str(modelfile_path), what="creating custom model"
        )
        if exit_code != 0:
            raise ModelCreationError(
                f"Failed to create custom model (exit code: {exit_code})", exit_code=exit_code
            )

        modelfile_path.unlink(missing_ok=True)
        logger.info(f"Custom model {profile.name} created")

    async def test_model(self) -> str:
        """Send the test prompt through `ollama run`, then `/bye`; return output"""
        logger.info(f"Testing {self.model_name}...")

        try:
            proc = await asyncio.create_subprocess_exec(
                self.executable,
                "run",
                self.model_name,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ModelCreationError(f"Error testing model: {e}") from e

        try:
            proc.stdin.write(f"{TEST_PROMPT}\n".encode())
            await proc.stdin.drain()
            await asyncio.sleep(self.bye_delay)
            proc.stdin.write(b"/bye\n")
        except (BrokenPipeError, ConnectionResetError) as e:
            # `ollama run` exited before reading the prompt
            exit_code = await proc.wait()
            raise ModelCreationError(f"Error testing model: {e}", exit_code=exit_code) from e

        stdout, stderr = await proc.communicate()
        if stderr:
            logger.warning(f"Test error: {stderr.decode(errors='replace').strip()}")

        if proc.returncode != 0:
            raise ModelCreationError("Test failed", exit_code=proc.returncode)

        return stdout.decode(errors="replace")

    def update_project_files(self):
        """Register the model in index.html / package.json, save training data"""
        index_path = self.project_dir / "index.html"
        if index_path.exists():
            content = index_path.read_text(encoding="utf-8")
            match = MODEL_SELECT_RE.search(content)
            if match:
                option = (
                    f'\n                    <option value="{self.model_name}">'
                    f"MonkeyZero-Mini (Custom)</option>"
                )
                end = match.end(1)
                content = content[:end] + option + content[end:]
                index_path.write_text(content, encoding="utf-8")
                logger.info("Updated web interface")

        package_path = self.project_dir / "package.json"
        if package_path.exists():
            package_data = json.loads(package_path.read_text(encoding="utf-8"))
            properties = (
                package_data.get("contributes", {})
                .get("configuration", {})
                .get("properties", {})
            )
            model_prop = properties.get("monkeyAI.ollamaModel")
            if model_prop and isinstance(model_prop.get("enum"), list):
                if self.model_name not in model_prop["enum"]:
                    model_prop["enum"].append(self.model_name)
                model_prop["default"] = self.model_name

            package_path.write_text(json.dumps(package_data, indent=2), encoding="utf-8")
            logger.info("Updated VS Code extension config")

        training_path = self.project_dir / "monkeyzero-training-data.json"
        training_path.write_text(render_training_data(self.profile.system_prompt), encoding="utf-8")
        logger.info(f"Saved training data template: {training_path}")

    async def create(self) -> str:
        """Run every step; returns the smoke test output"""
        await self.install_base_model()
        await self.create_custom_model()
        output = await self.test_model()
        self.update_project_files()
        return output

    async def create_simple_customization(self, profile: ModelProfile = MONKEYZERO_SIMPLE):
        """
        Customize an existing small model without the full pipeline

        The Modelfile is removed whichever way `ollama create` exits.
        """
        modelfile_path = self.project_dir / f"{profile.name}.Modelfile"
        modelfile_path.write_text(profile.render(), encoding="utf-8")

        try:
            exit_code = await self._run(
                "create", profile.name, "-f", str(modelfile_path), what="creating simple model"
            )
        finally:
            modelfile_path.unlink(missing_ok=True)

        if exit_code != 0:
            raise ModelCreationError("Failed to create simple model", exit_code=exit_code)

        logger.info(f"Professional model {profile.name} created")
