"""Outbound email: template rendering and SMTP transport."""

from certnag.notifications.renderer import TemplateRenderer
from certnag.notifications.transport import SmtpTransport

__all__ = ["SmtpTransport", "TemplateRenderer"]
