"""Random identifier generation shared by session, response and event ids."""

import uuid


def generate_id() -> str:
    """Return a random UUID-shaped identifier.

    Format is five dash-separated lowercase hex groups (8-4-4-4-12) with the
    version nibble set to 4 and the RFC 4122 variant bits set, which is the
    shape the fragment service accepts for `userID`.
    """
    return str(uuid.uuid4())
