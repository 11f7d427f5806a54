from typing import Any, Dict

# ---------------- Input ----------------
from creatable.input.definition_loader import load_definition, parse_definition

# ---------------- Pipeline steps ----------------
from creatable.pipeline.manipulator import Manipulator

# ---------------- Outputs ----------------
from creatable.outputs.template_renderer import TemplateRenderer

# ---------------- Observability ----------------
from creatable.observability.logger import log_event, generate_request_id, RequestTimer

from creatable.utils.exceptions import UsageError


def _build_renderer(payload: Dict[str, Any]) -> TemplateRenderer:
    if payload.get("template_source") is not None:
        return TemplateRenderer.from_source(payload["template_source"])
    if payload.get("template"):
        return TemplateRenderer.from_name(
            payload["template"],
            payload.get("search_path"),
            allow_path=payload.get("allow_template_path", True),
        )
    raise UsageError("template is not specified.")


def _load_document(payload: Dict[str, Any]) -> Dict[str, Any]:
    if payload.get("definition") is not None:
        return parse_definition(payload["definition"])
    return load_definition(payload.get("definition_paths"), payload.get("stdin"))


# ==========================================================
# ROUTER
# ==========================================================
def route(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    creatable main entry point.

    Flow:
    Definition → Manipulator → Template → Output

    Payload keys:
    - definition (YAML text) or definition_paths (files, stdin when empty)
    - template (name or path) or template_source (inline template text)
    - properties, multiple, output_dir, search_path
    """
    request_id = generate_request_id()
    timer = RequestTimer()
    multiple = payload.get("multiple") is True
    properties = payload.get("properties") or {}

    log_event("RUN_STARTED", {
        "request_id": request_id,
        "template": payload.get("template") or "<inline>",
        "multiple": multiple,
    })

    try:
        # --------------------------------------------------
        # Phase 1 – Template lookup (fail before reading input)
        # --------------------------------------------------
        renderer = _build_renderer(payload)

        # --------------------------------------------------
        # Phase 2 – Load definition
        # --------------------------------------------------
        document = _load_document(payload)
        tables = document.get("tables") or []
        log_event("DEFINITION_LOADED", {
            "request_id": request_id,
            "tables": len(tables),
        })

        # --------------------------------------------------
        # Phase 3 – Check names, apply defaults, link columns
        # --------------------------------------------------
        Manipulator(document).manipulate()
        log_event("DOCUMENT_MANIPULATED", {
            "request_id": request_id,
            "tables": [t["name"] for t in tables],
        })

        # --------------------------------------------------
        # Phase 4 – Render
        # --------------------------------------------------
        response: Dict[str, Any] = {
            "status": "SUCCESS",
            "request_id": request_id,
            "tables": [t["name"] for t in tables],
        }
        if multiple:
            response["outputs"] = renderer.render_each(
                tables, properties, output_dir=payload.get("output_dir")
            )
        else:
            response["output"] = renderer.render(tables, properties)

    except Exception as e:
        log_event("RUN_FAILED", {
            "request_id": request_id,
            "error": type(e).__name__,
            "message": str(e),
            "duration_seconds": timer.duration(),
        })
        raise

    log_event("RUN_COMPLETED", {
        "request_id": request_id,
        "duration_seconds": timer.duration(),
    })
    return response
