from src.shared.utils.datetime import (
    current_millis,
    ensure_utc,
    from_timestamp_ms_utc,
    utc_now,
)
from src.shared.utils.generators import generate_cuid, generate_nonce

__all__ = [
    "generate_cuid",
    "generate_nonce",
    "utc_now",
    "current_millis",
    "ensure_utc",
    "from_timestamp_ms_utc",
]
