# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/utils/template_renderer.py

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from pathlib import Path
from typing import Optional
import os
import re

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


def expand_env_vars(value: str) -> str:
    return re.sub(r"\$\{([^}^{]+)\}", lambda m: os.getenv(m.group(1), m.group(0)), value)


class TemplateRenderer:
    def __init__(self, templates_dir: Optional[Path] = None):
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir or TEMPLATES_DIR)),
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def render(self, template_name: str, context: Optional[dict] = None) -> str:
        expanded = {k: expand_env_vars(v) if isinstance(v, str) else v for k, v in (context or {}).items()}
        tmpl = self.env.get_template(template_name)
        return tmpl.render(**expanded)
