"""Tests for WhatsApp links and notification copy"""
from leadflow.templates.message_templates import (
    NotificationTemplateKey, build_whatsapp_link, get_notification_template,
    render_whatsapp_message, sanitize_phone
)


def test_sanitize_phone_keeps_digits_only():
    assert sanitize_phone("+91 (987) 654-3210") == "919876543210"
    assert sanitize_phone("") == ""


def test_build_whatsapp_link_encodes_like_uri_component():
    link = build_whatsapp_link("+91 98765-43210", "Hi Asha! Let's talk & plan?")
    assert link == "https://wa.me/919876543210?text=Hi%20Asha!%20Let's%20talk%20%26%20plan%3F"


def test_render_replaces_first_placeholder_only():
    assert render_whatsapp_message("Asha", "Hi {name}, {name}") == "Hi Asha, {name}"


def test_render_uses_configured_template_by_default():
    assert render_whatsapp_message("Asha").startswith("Hi Asha! Thank you")


def test_notification_templates():
    ready = get_notification_template(
        NotificationTemplateKey.WHATSAPP_READY,
        {"lead_name": "Asha", "link": "https://wa.me/1?text=Hi"}
    )
    assert ready == {
        "title": "Auto WhatsApp Ready",
        "message": "Click to send WhatsApp to Asha: https://wa.me/1?text=Hi",
    }

    reminder = get_notification_template(NotificationTemplateKey.LEAD_REMINDER, {"lead_name": "Asha"})
    assert reminder["title"] == "Lead Reminder"
    assert reminder["message"] == 'No activity on lead "Asha" - follow up required'
