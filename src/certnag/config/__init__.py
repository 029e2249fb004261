"""Configuration subsystem for certnag.

Public API::

    from certnag.config import get_config, CertnagConfig

    # At startup (CLI only):
    CertnagConfig(config_file="config.yaml", schema_file="bundled")

    # Everywhere else:
    cfg  = get_config()
    days = cfg.settings.mailer.warning_days   # typed access
    host = cfg.get("smtp.host")               # dynamic dot-path
"""

from certnag.config.certnag_config import (
    CertnagConfig,
    ConfigValidationError,
    get_config,
)
from certnag.config.settings import (
    CertnagSettings,
    DatabaseSettings,
    LoggingSettings,
    MailerSettings,
    MetricsSettings,
    SmtpSettings,
)

__all__ = [
    "CertnagConfig",
    "CertnagSettings",
    "ConfigValidationError",
    "DatabaseSettings",
    "LoggingSettings",
    "MailerSettings",
    "MetricsSettings",
    "SmtpSettings",
    "get_config",
]
