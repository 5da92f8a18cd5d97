# codeweaver/core/preview.py
import json
from typing import Iterable, Optional
from urllib.parse import quote

from loguru import logger

from .models import PreviewResult, ProjectEntry
from .paths import file_extension

FRAMEWORK_DEPENDENCIES = ('react', 'vue', 'angular', 'vite', 'next', 'svelte', '@angular/core')
BUILD_CONFIG_FILES = ('vite.config.js', 'vite.config.ts', 'webpack.config.js', 'next.config.js')


def is_complex_project(entries: Iterable[ProjectEntry]) -> bool:
    """True when the project needs a build step (framework deps or bundler config) to preview."""
    entries = list(entries)
    for entry in entries:
        lowered = entry.path.lower()
        if lowered in BUILD_CONFIG_FILES:
            return True
        if lowered == 'package.json' and entry.content:
            try:
                pkg = json.loads(entry.content)
            except json.JSONDecodeError:
                logger.warning("Could not parse package.json for preview check")
                continue
            if not isinstance(pkg, dict):
                continue
            deps = {}
            for section in ('dependencies', 'devDependencies'):
                value = pkg.get(section)
                if isinstance(value, dict):
                    deps.update(value)
            if any(dep in deps for dep in FRAMEWORK_DEPENDENCIES):
                return True
    return False


def _data_url(mime_type: str, content: str) -> str:
    return f"data:{mime_type};charset=utf-8,{quote(content, safe='')}"


def classify_preview(entries: Iterable[ProjectEntry], active_path: Optional[str]) -> PreviewResult:
    entries = list(entries)
    if not active_path:
        return PreviewResult(ok=False, message="No active file to preview.")
    active = next((e for e in entries if e.path == active_path), None)
    if active is None or active.is_folder:
        return PreviewResult(ok=False, message="Cannot preview a folder or non-existent file.")
    if is_complex_project(entries):
        return PreviewResult(
            ok=False,
            message="Preview for complex projects (React, Vue, Node, etc.) requires a build step and a local server.",
        )
    if file_extension(active.path) in ('html', 'htm'):
        return PreviewResult(ok=True, message=f"Previewing {active.path}... (linked local CSS/JS will not apply)",
                             url=_data_url("text/html", active.content), mime_type="text/html")
    return PreviewResult(ok=True, message=f"Displaying content of {active.path}... (not an HTML preview)",
                         url=_data_url("text/plain", active.content), mime_type="text/plain")
