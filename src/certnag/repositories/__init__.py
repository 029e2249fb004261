"""Repository classes for the certnag persistence layer.

Each repository extends :class:`pypgkit.BaseRepository` with custom
query methods for the expiration-mailer domain.
"""

from certnag.repositories.certificate import CertificateRepository
from certnag.repositories.nag_state import NagStateRepository
from certnag.repositories.registration import RegistrationRepository

__all__ = [
    "CertificateRepository",
    "NagStateRepository",
    "RegistrationRepository",
]
