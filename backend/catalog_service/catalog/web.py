# backend/catalog_service/catalog/web.py

from decimal import Decimal
from pathlib import Path
from typing import List, Tuple

from fastapi import Request
from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
FLASH_SESSION_KEY = "_flashes"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def flash(request: Request, message: str, category: str = "success") -> None:
    """Queue a one-time notice for the next rendered page."""
    flashes = list(request.session.get(FLASH_SESSION_KEY, []))
    flashes.append([category, message])
    request.session[FLASH_SESSION_KEY] = flashes


def get_flashed_messages(request: Request) -> List[Tuple[str, str]]:
    return [tuple(item) for item in request.session.pop(FLASH_SESSION_KEY, [])]


def format_number(value):
    """Render a Decimal without trailing zeros, e.g. 12.00 -> 12 and 2.50 -> 2.5."""
    if not isinstance(value, Decimal):
        return value
    text = f"{value:f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


templates.env.globals["get_flashed_messages"] = get_flashed_messages
templates.env.filters["number"] = format_number
