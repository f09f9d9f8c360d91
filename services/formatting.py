from __future__ import annotations

from typing import Optional
from zoneinfo import ZoneInfo

from config import settings
from schemas import Event, Notification
from utils.dates import parse_start

_MONTHS_PT = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


def _amount(v: float) -> str:
    return str(int(v)) if float(v).is_integer() else str(v)


def format_price(price_min: Optional[float], price_max: Optional[float]) -> str:
    if not price_min and not price_max:
        return "Gratuito"
    if price_min == 0:
        return "Gratuito"
    if price_max is None:
        return f"A partir de R$ {_amount(price_min)}"
    if price_min is None:
        return f"Até R$ {_amount(price_max)}"
    if price_min == price_max:
        return f"R$ {_amount(price_min)}"
    return f"R$ {_amount(price_min)} - R$ {_amount(price_max)}"


def format_date(value: Optional[str], tz: Optional[str] = None) -> str:
    """'5 de março às 19:00' in the app timezone; unparseable input is echoed."""
    if not value:
        return ""
    dt = parse_start(value)
    if dt is None:
        return value
    local = dt.astimezone(ZoneInfo(tz or settings.app_timezone))
    return f"{local.day} de {_MONTHS_PT[local.month - 1]} às {local:%H:%M}"


def results_heading(count: int) -> str:
    return f"{count} eventos encontrados"


def details_notification(event: Event) -> Notification:
    return Notification(title=event.title, description="Página de detalhes em breve!")
