"""Application version lookup and version-info templating."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import ConfigurationError
from .base import BuildState

if TYPE_CHECKING:
    from ..runtime.session import BuildContext

__all__ = ["VERSION_TOKEN", "parse_version_output", "render_version_template", "run"]

VERSION_TOKEN = "__version__"


def parse_version_output(output: str) -> str:
    """Return the last non-empty line of ``setup.py --version`` output."""

    lines = [line.strip() for line in output.splitlines() if line.strip()]
    return lines[-1] if lines else ""


def render_version_template(template: Path, destination: Path, version: str) -> Path:
    """Copy ``template`` to ``destination`` replacing every version token.

    Works on bytes so everything except the token survives unchanged.
    """

    if not version:
        raise ConfigurationError("Refusing to render a version template without a version.")
    try:
        payload = Path(template).read_bytes()
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read version template {template}", context={"path": str(template)}, cause=exc
        ) from exc
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(payload.replace(VERSION_TOKEN.encode(), version.encode("utf-8")))
    return destination


def run(context: BuildContext, state: BuildState) -> None:
    config = context.config
    python = state.require_venv_python()
    output = context.commands.output([python, "setup.py", "--version"], cwd=config.project_dir)
    version = state.record_version(parse_version_output(output))
    context.logger.info(f"{config.app_name} version {version}")

    state.version_info_path = render_version_template(
        config.version_template,
        config.build_dir / config.version_info_name,
        version,
    )
