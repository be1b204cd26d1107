"""
Recurrence ID generation utilities.
"""

import secrets


def generate_recurrence_id(length: int = 8) -> str:
    """
    Generate a cryptographically random hex recurrence ID.

    Args:
        length: Length of the ID in hex characters (default 8)

    Returns:
        Lowercase hex string, e.g. "a7f3c2d9"
    """
    return secrets.token_hex((length + 1) // 2)[:length]
