"""Template loaders for the notpl environment.

Loaders provide template source to the Environment. They implement
``get_source(name)`` returning ``(source, filename)``.

Built-in Loaders:
- ``FileSystemLoader``: Load from filesystem directories
- ``DictLoader``: Load from an in-memory dictionary (testing/embedded)

Without a loader, ``Environment.from_file()`` and nested ``render()`` calls
read paths directly from disk, resolving relative paths against the
including template's directory first.

Custom Loaders:
Any object with the same ``get_source`` method works:
    ```python
    class DatabaseLoader:
        def get_source(self, name: str) -> tuple[str, str | None]:
            row = db.query("SELECT source FROM templates WHERE name = ?", name)
            if not row:
                raise TemplateNotFoundError(f"Template '{name}' not found")
            return row.source, f"db://{name}"
    ```

"""

from __future__ import annotations

from difflib import get_close_matches
from pathlib import Path
from typing import Protocol

from notpl.environment.exceptions import TemplateNotFoundError


class Loader(Protocol):
    def get_source(self, name: str) -> tuple[str, str | None]: ...


class FileSystemLoader:
    """Load templates from filesystem directories.

    Directories are searched in order; the first matching file wins.

    Example:
            >>> loader = FileSystemLoader(["site/", "shared/"])
            >>> source, filename = loader.get_source("nav.html")
            >>> filename
            'site/nav.html'

    Raises:
        TemplateNotFoundError: If template not found in any search path
    """

    __slots__ = ("_encoding", "_paths")

    def __init__(
        self,
        paths: str | Path | list[str | Path],
        encoding: str = "utf-8",
    ):
        if isinstance(paths, (str, Path)):
            paths = [paths]
        self._paths = [Path(p) for p in paths]
        self._encoding = encoding

    def get_source(self, name: str) -> tuple[str, str]:
        """Load template source from the first search path containing it."""
        for base in self._paths:
            path = base / name
            if path.is_file():
                return path.read_text(self._encoding), str(path)

        searched = ", ".join(str(p) for p in self._paths)
        raise _not_found(name, self.list_templates(), f" in: {searched}")

    def list_templates(self) -> list[str]:
        """List every file under the search paths, relative to its root."""
        templates: set[str] = set()
        for base in self._paths:
            if base.is_dir():
                templates.update(
                    str(path.relative_to(base)) for path in base.rglob("*") if path.is_file()
                )
        return sorted(templates)


class DictLoader:
    """Load templates from an in-memory dictionary.

    Returns ``None`` as filename since templates are not file-backed.

    Example:
            >>> env = Environment(loader=DictLoader({"nav.html": "<nav><$ print(title) $></nav>"}))
            >>> env.from_string("<$ render('nav.html', {}, {'title': 'Home'}) $>").render()
            '<nav>Home</nav>'

    Raises:
        TemplateNotFoundError: If template name not in mapping
    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: dict[str, str]):
        self._mapping = mapping

    def get_source(self, name: str) -> tuple[str, None]:
        try:
            return self._mapping[name], None
        except KeyError:
            raise _not_found(name, sorted(self._mapping)) from None

    def list_templates(self) -> list[str]:
        return sorted(self._mapping)


def _not_found(name: str, known: list[str], where: str = "") -> TemplateNotFoundError:
    """Build the not-found error, suggesting the closest known template name."""
    message = f"Template '{name}' not found{where}"
    matches = get_close_matches(name, known, n=1, cutoff=0.6)
    if matches:
        message += f". Did you mean '{matches[0]}'?"
    elif known and not where:
        shown = ", ".join(known[:10])
        more = f" ... ({len(known)} total)" if len(known) > 10 else ""
        message += f". Available: {shown}{more}"
    return TemplateNotFoundError(message)


def read_template_file(path: str | Path, encoding: str = "utf-8") -> tuple[str, str]:
    """Read a template straight from disk (no loader configured).

    Raises:
        TemplateNotFoundError: If the path is not a readable file
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise TemplateNotFoundError(f"Template file '{path}' not found")
    return file_path.read_text(encoding), str(file_path)
