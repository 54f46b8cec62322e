from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException

from app.core.config import settings
from app.generators.codegen.renderer import TemplateRenderer


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Caller identity, as forwarded by the auth proxy."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id.strip()


@lru_cache(maxsize=1)
def get_renderer() -> TemplateRenderer:
    """One renderer per process so compiled templates are reused."""
    return TemplateRenderer(settings.templates_dir)
