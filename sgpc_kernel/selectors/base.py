"""
Module: sgpc_kernel.selectors.base
Responsibility: Abstract base class for read-only lookups.  Selectors are the
    query side of each module: they accept a Session, read, and return frozen
    DTOs.
Architecture position: Kernel > Selectors.  May import from db/ and models/.
    MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: Selectors MUST NOT call session.add(), session.delete(),
      session.commit(), or session.flush().
    - Session ownership: the caller owns the session and its transaction.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Subclasses implement domain-specific queries against ``self.session``.
    """

    def __init__(self, session: Session):
        self.session = session
