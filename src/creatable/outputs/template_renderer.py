import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader, Template, select_autoescape
from jinja2.sandbox import SandboxedEnvironment

from creatable.observability.logger import log_event
from creatable.utils.exceptions import TemplateNotFoundError

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
BUNDLED_TEMPLATES_DIR = PACKAGE_ROOT / "templates"

SEARCH_PATH_ENV = "CREATABLE_PATH"


@dataclass
class RenderedOutput:
    """
    Output of one template run in multiple-output mode.
    filename is None when the template did not ask for a file.
    """
    table: str
    filename: Optional[str]
    content: str


def template_search_path(environ: Optional[Mapping[str, str]] = None) -> List[str]:
    environ = os.environ if environ is None else environ
    value = environ.get(SEARCH_PATH_ENV, "")
    dirs = [d for d in value.split(os.pathsep) if d]
    dirs.append(str(BUNDLED_TEMPLATES_DIR))
    return dirs


def find_template(
    name: str,
    search_path: Optional[Sequence[str]] = None,
    allow_path: bool = True,
) -> Tuple[str, str]:
    """
    Locate a template and return (directory, template name relative to it).

    A name that is an existing file wins (unless allow_path is False);
    otherwise every directory of the search path is tried in order.
    """
    if allow_path and os.path.isfile(name):
        full = os.path.abspath(name)
        return os.path.dirname(full), os.path.basename(full)

    if search_path is None:
        search_path = template_search_path()
    for directory in search_path:
        if os.path.isfile(os.path.join(directory, name)):
            return directory, name

    raise TemplateNotFoundError(name)


def _environment(directories: Sequence[str] = (), sandboxed: bool = False) -> Environment:
    env_cls = SandboxedEnvironment if sandboxed else Environment
    return env_cls(
        loader=FileSystemLoader(list(directories)),
        autoescape=select_autoescape(enabled_extensions=()),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


class TemplateRenderer:
    """
    Renders manipulated table definitions through a Jinja2 template.

    Context in single mode:   tables, properties
    Context in multiple mode: table, properties, output_filename(name)
    """

    def __init__(self, template: Template):
        self.template = template

    @classmethod
    def from_name(
        cls,
        name: str,
        search_path: Optional[Sequence[str]] = None,
        allow_path: bool = True,
    ) -> "TemplateRenderer":
        directory, template_name = find_template(name, search_path, allow_path)
        # keep the rest of the search path reachable for {% include %}
        directories = [directory] + [
            d for d in (search_path or template_search_path()) if d != directory
        ]
        env = _environment(directories)
        return cls(env.get_template(template_name))

    @classmethod
    def from_source(cls, source: str) -> "TemplateRenderer":
        # inline sources may come from HTTP clients
        env = _environment(template_search_path(), sandboxed=True)
        return cls(env.from_string(source))

    # ------------------------------------------
    # Single output
    # ------------------------------------------
    def render(self, tables: List[Dict[str, Any]], properties: Optional[Dict[str, Any]] = None) -> str:
        context = {"tables": tables, "properties": properties or {}}
        return self.template.render(**context)

    # ------------------------------------------
    # One output per table
    # ------------------------------------------
    def render_each(
        self,
        tables: List[Dict[str, Any]],
        properties: Optional[Dict[str, Any]] = None,
        output_dir: Optional[str] = None,
    ) -> List[RenderedOutput]:
        outputs: List[RenderedOutput] = []
        for table in tables:
            selected: Dict[str, str] = {}

            def output_filename(name: str) -> str:
                selected["filename"] = str(name)
                return ""

            context = {
                "table": table,
                "properties": properties or {},
                "output_filename": output_filename,
            }
            content = self.template.render(**context)

            filename = selected.get("filename")
            if filename and output_dir:
                filename = os.path.join(output_dir, filename)
            outputs.append(RenderedOutput(table=table["name"], filename=filename, content=content))
        return outputs


def write_outputs(outputs: List[RenderedOutput]) -> List[str]:
    """
    Write every output that has a filename. Returns the written paths.
    """
    written = []
    for output in outputs:
        if not output.filename:
            continue
        parent = os.path.dirname(output.filename)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(output.filename, "w", encoding="utf-8") as f:
            f.write(output.content)
        log_event("OUTPUT_GENERATED", {"table": output.table, "filename": output.filename})
        written.append(output.filename)
    return written
