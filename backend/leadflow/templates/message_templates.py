"""
Message Templates - Outbound WhatsApp text and in-app notification copy

Templates use a single {name} placeholder that is replaced literally, so lead
names containing braces are safe.
"""
import re
from enum import Enum
from typing import Any, Callable, Dict
from urllib.parse import quote

from ..config.settings import settings


WHATSAPP_BASE_URL = "https://wa.me"

# Characters encodeURIComponent leaves untouched
_URI_COMPONENT_SAFE = "-_.!~*'()"

_NON_DIGITS = re.compile(r"\D")


class NotificationTemplateKey(str, Enum):
    """In-app notification templates raised by automations"""
    WHATSAPP_READY = "WHATSAPP_READY"
    LEAD_REMINDER = "LEAD_REMINDER"


# =============================================================================
# WhatsApp
# =============================================================================

def render_whatsapp_message(name: str, template: str = "") -> str:
    """Substitute the lead's name into the outbound message template"""
    template = template or settings.whatsapp_message_template
    return template.replace("{name}", name, 1)


def sanitize_phone(mobile: str) -> str:
    """Strip everything but digits from a phone number"""
    return _NON_DIGITS.sub("", mobile or "")


def build_whatsapp_link(mobile: str, message: str) -> str:
    """
    Build a wa.me deep link for the given number and message

    Examples:
        >>> build_whatsapp_link("+91 98765-43210", "Hi there!")
        'https://wa.me/919876543210?text=Hi%20there!'
    """
    encoded = quote(message, safe=_URI_COMPONENT_SAFE)
    return f"{WHATSAPP_BASE_URL}/{sanitize_phone(mobile)}?text={encoded}"


# =============================================================================
# Notifications
# =============================================================================

def get_whatsapp_ready_template(payload: Dict[str, Any]) -> Dict[str, str]:
    return {
        "title": "Auto WhatsApp Ready",
        "message": f"Click to send WhatsApp to {payload['lead_name']}: {payload['link']}",
    }


def get_lead_reminder_template(payload: Dict[str, Any]) -> Dict[str, str]:
    return {
        "title": "Lead Reminder",
        "message": f"No activity on lead \"{payload['lead_name']}\" - follow up required",
    }


TEMPLATE_REGISTRY: Dict[NotificationTemplateKey, Callable[[Dict[str, Any]], Dict[str, str]]] = {
    NotificationTemplateKey.WHATSAPP_READY: get_whatsapp_ready_template,
    NotificationTemplateKey.LEAD_REMINDER: get_lead_reminder_template,
}


def get_notification_template(key: NotificationTemplateKey, payload: Dict[str, Any]) -> Dict[str, str]:
    """Render title and message for a notification template"""
    return TEMPLATE_REGISTRY[key](payload)


def lead_link(lead_id: str) -> str:
    """In-app deep link to a lead"""
    return f"/leads/{lead_id}"
