import os
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from jinja2 import TemplateError
from pydantic import BaseModel, Field

from creatable.router import route
from creatable.utils.exceptions import CreatableError

app = FastAPI(
    title="creatable",
    version="1.0.0"
)


class RenderRequest(BaseModel):
    definition: str
    template: Optional[str] = None
    template_source: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    multiple: bool = False


def _bad_request(message: str) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={
            "status": "ERROR",
            "error": "UsageError",
            "message": message,
        },
    )


@app.post("/render")
def render(body: RenderRequest):
    if body.template is None and body.template_source is None:
        raise _bad_request("template or template_source is required.")
    # HTTP clients may only name templates on the search path
    if body.template is not None and (
        os.path.isabs(body.template) or ".." in body.template.replace("\\", "/").split("/")
    ):
        raise _bad_request(f"'{body.template}': template must be a search path name.")

    try:
        result = route({
            "definition": body.definition,
            "template": body.template,
            "template_source": body.template_source,
            "properties": body.properties,
            "multiple": body.multiple,
            "allow_template_path": False,
        })
    except (CreatableError, TemplateError) as e:
        # Invalid definitions and templates are client errors
        raise HTTPException(
            status_code=422,
            detail={
                "status": "ERROR",
                "error": type(e).__name__,
                "message": str(e),
            }
        )

    if body.multiple:
        return {
            "status": result["status"],
            "outputs": [
                {"table": o.table, "filename": o.filename, "content": o.content}
                for o in result["outputs"]
            ],
        }
    return PlainTextResponse(result["output"])
