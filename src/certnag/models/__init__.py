"""Entity models for the certnag persistence layer.

All models are frozen dataclasses.  Use :func:`dataclasses.replace`
for modifications (copy-on-write).
"""

from certnag.models.certificate import Certificate
from certnag.models.nag_state import NagState
from certnag.models.registration import Registration

__all__ = [
    "Certificate",
    "NagState",
    "Registration",
]
