"""
Secret detection and value masking for display.

A value is treated as a secret when:
- Its key name contains a sensitive word (PASSWORD, TOKEN, SECRET, ...)
- It starts with a known credential prefix (sk_, AKIA, ghp_, ...)
- Its Shannon entropy is high (random-looking)
"""

import math
from enum import Enum


MASK = "••••••••"

# Sensitive prefixes that indicate secrets
SECRET_PREFIXES = [
    'sk_',      # Stripe, OpenAI, etc.
    'sk-',      # OpenAI style keys
    'pk_',      # Public keys (still sensitive in some contexts)
    'AKIA',     # AWS Access Key ID
    'ghp_',     # GitHub Personal Access Token
    'gho_',     # GitHub OAuth Token
    'ghs_',     # GitHub Server-to-Server Token
    'xoxb-',    # Slack bot token
    'vault:',   # HashiCorp Vault
    'encrypted:',
    'ENC[',
]

SENSITIVE_KEY_WORDS = (
    'PASSWORD',
    'PASSWD',
    'SECRET',
    'TOKEN',
    'API_KEY',
    'APIKEY',
    'PRIVATE',
    'CREDENTIAL',
    'DSN',
)

ENTROPY_THRESHOLD = 4.5


class MaskMode(Enum):
    """How values are shown in tables."""
    ALL = "all"          # mask every value
    SECRETS = "secrets"  # mask only values that look sensitive
    NONE = "none"        # show everything


def calculate_entropy(value: str) -> float:
    """
    Calculate Shannon entropy of a string.

    Args:
        value: String to analyze

    Returns:
        Entropy value (bits per character)
    """
    if not value:
        return 0.0

    freq = {}
    for char in value:
        freq[char] = freq.get(char, 0) + 1

    entropy = 0.0
    length = len(value)
    for count in freq.values():
        probability = count / length
        entropy -= probability * math.log2(probability)

    return entropy


def is_sensitive_key(key: str) -> bool:
    upper = key.upper()
    return any(word in upper for word in SENSITIVE_KEY_WORDS)


def is_secret(key: str, value: str) -> bool:
    """
    Determine if a key/value pair is likely a secret.

    Args:
        key: Variable name
        value: Raw value as written in the file

    Returns:
        True if likely a secret
    """
    if is_sensitive_key(key):
        return True

    stripped = value.strip().strip('"\'')
    if not stripped:
        return False

    for prefix in SECRET_PREFIXES:
        if stripped.startswith(prefix):
            return True

    return calculate_entropy(stripped) > ENTROPY_THRESHOLD


def mask_value(key: str, value: str, mode: MaskMode = MaskMode.ALL) -> str:
    """Return the text to display for a value under the given mask mode."""
    if mode == MaskMode.NONE or not value:
        return value
    if mode == MaskMode.ALL or is_secret(key, value):
        return MASK
    return value
