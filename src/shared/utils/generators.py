import secrets

from cuid2 import cuid_wrapper

# Create a CUID generator with custom settings
cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier"""
    result = cuid_generator()
    assert isinstance(result, str)
    return result


def generate_nonce(num_bytes: int = 16) -> str:
    """Random hex nonce for credential payloads (at least 16 bytes)"""
    if num_bytes < 16:
        raise ValueError("Nonce must be at least 16 bytes")
    return secrets.token_hex(num_bytes)
