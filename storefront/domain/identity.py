# storefront/domain/identity.py
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Identity:
    """
    Who is calling. user_id comes from the upstream auth layer, session_id
    is the anonymous cart token from the cart cookie. An authenticated
    request may carry both while a guest cart is waiting to be merged.
    """

    user_id: Optional[int] = None
    session_id: Optional[str] = None
    is_admin: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = Identity()
