from typing import Optional

from fastapi import Header


def get_current_user_id(x_user_id: Optional[int] = Header(default=None)) -> Optional[int]:
    """Caller identity as asserted by the upstream auth proxy; recorded on audit entries."""
    return x_user_id
