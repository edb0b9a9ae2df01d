from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Sequence

from app.domain.models import Credential, ReferenceItem


class PersistenceError(RuntimeError):
    """Raised by repository implementations when a write does not go through."""


class CredentialRepositoryInterface(ABC):
    """Persistence contract for per-user Dropbox credentials"""

    @abstractmethod
    async def get_credential(self, user_id: str) -> Optional[Credential]:
        ...

    @abstractmethod
    async def save_access_token(
        self,
        user_id: str,
        access_token: str,
        expires_at: datetime,
    ) -> None:
        ...


class ReferenceItemRepositoryInterface(ABC):
    """Persistence contract for reference items receiving waveform peaks"""

    @abstractmethod
    async def get_by_id(self, reference_id: str) -> Optional[ReferenceItem]:
        ...

    @abstractmethod
    async def save_waveform(
        self,
        reference_id: str,
        peaks: Sequence[float],
        *,
        duration: Optional[float] = None,
        sample_rate: Optional[int] = None,
    ) -> None:
        ...
