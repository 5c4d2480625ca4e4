import logging
import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from marksmith.converter import convert
from marksmith.errors import MarksmithError
from marksmith.plugins import SYNTAX_HIGHLIGHTER_PLUGIN
from marksmith.themes import DEFAULT_THEME, load_default

# Load environment variables from .env file (MARKSMITH_* settings)
load_dotenv()

LOG_LEVEL = os.getenv("MARKSMITH_LOG_LEVEL", "INFO").upper()
ALLOW_THEME_PATHS = os.getenv("MARKSMITH_ALLOW_THEME_PATHS", "false").lower() in ("1", "true", "yes")
HOST = os.getenv("MARKSMITH_HOST", "127.0.0.1")
PORT = int(os.getenv("MARKSMITH_PORT", "8001"))

# Configure Logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger("marksmith.api")

app = FastAPI(title="marksmith")


class RenderRequest(BaseModel):
    text: str
    options: Optional[Dict[str, Any]] = None
    plugins: Optional[Dict[str, Any]] = None


class RenderResponse(BaseModel):
    """Response model for render endpoints."""
    content: str
    format: str


class ThemesResponse(BaseModel):
    default: str
    themes: List[str]


def _requests_theme_path(plugins: Optional[Dict[str, Any]]) -> bool:
    if not plugins:
        return False
    highlighter = plugins.get(SYNTAX_HIGHLIGHTER_PLUGIN)
    return isinstance(highlighter, dict) and bool(highlighter.get("path"))


# API Endpoints

@app.post("/api/render")
def render(req: RenderRequest) -> RenderResponse:
    """
    Render markdown to HTML with the given options and plugins.

    Returns:
        RenderResponse with HTML content

    Raises:
        HTTPException 400 when options or plugins are invalid, 403 when a
        theme directory is requested but disabled on this server.
    """
    logger.info(f"RENDER Request: {len(req.text)} chars, options={req.options is not None}, plugins={req.plugins is not None}")

    if not ALLOW_THEME_PATHS and _requests_theme_path(req.plugins):
        logger.warning("RENDER Rejected: theme directories are disabled on this server.")
        raise HTTPException(status_code=403, detail="theme directories are disabled on this server")

    try:
        html = convert(req.text, options=req.options, plugins=req.plugins)
    except MarksmithError as e:
        logger.warning(f"RENDER Failed: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return RenderResponse(content=html, format="html")


@app.get("/api/themes")
def list_themes() -> ThemesResponse:
    """List the themes available without a custom theme directory."""
    logger.info("THEMES Request")
    return ThemesResponse(default=DEFAULT_THEME, themes=load_default().names())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT)
