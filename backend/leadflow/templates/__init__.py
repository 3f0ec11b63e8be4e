"""
Message Templates Package

Outbound WhatsApp text and in-app notification copy used by automations.
"""
from .message_templates import (
    render_whatsapp_message,
    build_whatsapp_link,
    sanitize_phone,
    get_notification_template,
    lead_link,
    NotificationTemplateKey,
    TEMPLATE_REGISTRY
)

__all__ = [
    "render_whatsapp_message",
    "build_whatsapp_link",
    "sanitize_phone",
    "get_notification_template",
    "lead_link",
    "NotificationTemplateKey",
    "TEMPLATE_REGISTRY"
]
