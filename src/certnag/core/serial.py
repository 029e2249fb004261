"""Certificate serial number rendering.

Serials are stored and joined on as fixed-width lowercase hex so that
the certificate table and the nag-state table agree on the key.
"""

from __future__ import annotations

_SERIAL_HEX_WIDTH = 36


def serial_to_string(serial: int | bytes) -> str:
    """Render *serial* as zero-padded 36-digit lowercase hex.

    Accepts the integer form (as exposed by :mod:`cryptography`) or the
    big-endian byte form stored alongside the DER.
    """
    if isinstance(serial, bytes):
        serial = int.from_bytes(serial, "big")
    if serial < 0:
        msg = f"Serial number must be non-negative (got {serial})"
        raise ValueError(msg)
    return f"{serial:0{_SERIAL_HEX_WIDTH}x}"
