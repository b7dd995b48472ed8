# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Jinja2 rendering of HTML body templates.

Templates are loaded from the filesystem. Relative paths are resolved
against ``base_dir`` when one is configured, otherwise against the current
working directory. One jinja2 environment is kept per template directory,
up to ``max_environments``; the least recently used one is evicted first.

Example:
    Rendering a welcome mail::

        renderer = TemplateRenderer(base_dir="/srv/mail/templates")
        html = renderer.render("welcome.html", {"name": "Ada"})
"""

from __future__ import annotations

from collections import OrderedDict
from pathlib import Path
from typing import Any

import jinja2
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .errors import TemplateError
from .logger import get_logger

logger = get_logger("TemplateRenderer")

DEFAULT_MAX_ENVIRONMENTS = 32


class TemplateRenderer:
    """Render template files with a data mapping."""

    def __init__(self, base_dir: str | Path | None = None, max_environments: int = DEFAULT_MAX_ENVIRONMENTS):
        if max_environments < 1:
            raise ValueError("max_environments must be at least 1")
        self.base_dir = Path(base_dir) if base_dir else None
        self.max_environments = max_environments
        self._environments: OrderedDict[Path, Environment] = OrderedDict()

    def _resolve(self, template_path: str) -> Path:
        path = Path(template_path)
        if not path.is_absolute() and self.base_dir is not None:
            path = self.base_dir / path
        return path

    def _environment_for(self, directory: Path) -> Environment:
        env = self._environments.get(directory)
        if env is not None:
            self._environments.move_to_end(directory)
            return env
        while len(self._environments) >= self.max_environments:
            evicted, _ = self._environments.popitem(last=False)
            logger.debug("Evicted template environment for %s", evicted)
        env = Environment(
            loader=FileSystemLoader(str(directory)),
            autoescape=select_autoescape(["html", "htm", "xml"]),
        )
        self._environments[directory] = env
        return env

    def render(self, template_path: str, data: dict[str, Any] | None = None) -> str:
        """Render ``template_path`` with ``data``.

        Raises:
            TemplateError: If the template is missing, malformed or fails
                while rendering.
        """
        path = self._resolve(template_path)
        env = self._environment_for(path.parent)
        try:
            template = env.get_template(path.name)
            rendered = template.render(**(data or {}))
        except jinja2.TemplateNotFound as exc:
            logger.error("Template %s not found", path)
            raise TemplateError(template_path, "template not found") from exc
        except (jinja2.TemplateError, OSError) as exc:
            logger.error("Template %s failed to render: %s", path, exc)
            raise TemplateError(template_path, str(exc)) from exc
        logger.debug("Rendered template %s (%d characters)", path, len(rendered))
        return rendered
