"""Compile and minify backends injected into the bundler."""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

from ..errors import ArgumentError, CommandFailedError
from ..settings import CommandSettings

logger = logging.getLogger(__name__)

# (input_path, output_path) -> success. Returning False or raising aborts the include.
CollaboratorFn = Callable[[str, str], Optional[bool]]


@dataclass(frozen=True, slots=True)
class Collaborators:
    """Function table for the external compile and minify steps."""

    compile_less: CollaboratorFn
    compile_template: CollaboratorFn
    minify_css: CollaboratorFn
    minify_js: CollaboratorFn


def _copy(input_path: str, output_path: str) -> bool:
    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(input_path, target)
    return True


def copy_collaborators() -> Collaborators:
    """Backend where every step copies its input unchanged."""

    return Collaborators(
        compile_less=_copy,
        compile_template=_copy,
        minify_css=_copy,
        minify_js=_copy,
    )


class CommandCollaborator:
    """Runs a shell command template with ``{input}`` and ``{output}`` placeholders."""

    def __init__(self, name: str, command: Optional[str], env: Optional[Dict[str, str]] = None) -> None:
        self.name = name
        self.command = command
        self.env = env

    def __call__(self, input_path: str, output_path: str) -> bool:
        if not self.command:
            raise CommandFailedError(f"<no {self.name} command configured>", -1)
        cmd = self._render_command(input_path, output_path)
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        logger.debug("Executing %s command: %s", self.name, cmd)
        proc = subprocess.run(
            cmd,
            shell=True,
            check=False,
            capture_output=True,
            text=True,
            env=self.env,
        )
        if proc.stdout:
            logger.debug("%s stdout: %s", self.name, proc.stdout.strip())
        if proc.returncode != 0:
            raise CommandFailedError(cmd, proc.returncode, proc.stderr or "")
        if proc.stderr:
            logger.warning("%s stderr: %s", self.name, proc.stderr.strip())
        return True

    def _render_command(self, input_path: str, output_path: str) -> str:
        replacements = {
            "{input}": shlex.quote(input_path),
            "{output}": shlex.quote(output_path),
        }
        command = self.command or ""
        for placeholder, value in replacements.items():
            command = command.replace(placeholder, value)
        return command


def command_collaborators(commands: CommandSettings, env: Optional[Dict[str, str]] = None) -> Collaborators:
    """Backend where every step shells out to a configured command."""

    return Collaborators(
        compile_less=CommandCollaborator("compile_less", commands.compile_less, env),
        compile_template=CommandCollaborator("compile_template", commands.compile_template, env),
        minify_css=CommandCollaborator("minify_css", commands.minify_css, env),
        minify_js=CommandCollaborator("minify_js", commands.minify_js, env),
    )


def build_collaborators(
    name: str,
    *,
    commands: Optional[CommandSettings] = None,
    env: Optional[Dict[str, str]] = None,
) -> Collaborators:
    lowered = (name or "command").lower()
    if lowered in ("copy", "passthrough"):
        return copy_collaborators()
    if lowered in ("cmd", "command"):
        return command_collaborators(commands or CommandSettings(), env)
    raise ArgumentError(f"Unknown collaborator backend '{name}'")
