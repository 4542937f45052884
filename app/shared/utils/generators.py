"""Entity id generation.

Role, permission, assignment and security-event ids are CUID2 strings:
URL-safe, so they double as Firestore document ids.
"""

from cuid2 import cuid_wrapper

_next_cuid = cuid_wrapper()


def generate_cuid() -> str:
    """New collision-resistant id."""
    return str(_next_cuid())
