"""certnag: certificate expiration mailer.

Scans the certificate store for certificates approaching expiry and
sends each owner at most one warning per configured threshold.
"""

__version__ = "1.0.0"
