from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces import (
    CredentialRepositoryInterface,
    PersistenceError,
    ReferenceItemRepositoryInterface,
)
from app.domain.models import Credential, ReferenceItem
from app.models import Profile, ReferenceItem as ReferenceItemEntity


class SQLAlchemyCredentialRepository(CredentialRepositoryInterface):
    """SQLAlchemy implementation of the credential repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_credential(self, user_id: str) -> Optional[Credential]:
        result = await self.session.execute(
            select(Profile).where(Profile.user_id == user_id)
        )
        profile = result.scalar_one_or_none()
        credential = None
        if profile:
            credential = Credential(
                user_id=profile.user_id,
                access_token=profile.dropbox_access_token,
                refresh_token=profile.dropbox_refresh_token,
                expires_at=profile.dropbox_token_expires_at,
            )
        # End the read transaction so the connection goes back to the pool
        # before the download and analysis stages run.
        await self.session.commit()
        return credential

    async def save_access_token(
        self,
        user_id: str,
        access_token: str,
        expires_at: datetime,
    ) -> None:
        try:
            result = await self.session.execute(
                update(Profile)
                .where(Profile.user_id == user_id)
                .values(
                    dropbox_access_token=access_token,
                    dropbox_token_expires_at=expires_at,
                )
            )
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise PersistenceError(f"Failed to save new token to database: {exc}") from exc

        if result.rowcount == 0:
            raise PersistenceError(f"Failed to save new token to database: no profile for {user_id}")


class SQLAlchemyReferenceItemRepository(ReferenceItemRepositoryInterface):
    """SQLAlchemy implementation of the reference item repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, reference_id: str) -> Optional[ReferenceItem]:
        result = await self.session.execute(
            select(ReferenceItemEntity).where(ReferenceItemEntity.id == reference_id)
        )
        db_item = result.scalar_one_or_none()
        item = ReferenceItem.model_validate(db_item) if db_item else None
        await self.session.commit()
        return item

    async def save_waveform(
        self,
        reference_id: str,
        peaks: Sequence[float],
        *,
        duration: Optional[float] = None,
        sample_rate: Optional[int] = None,
    ) -> None:
        values = {"waveform_peaks": list(peaks)}
        if duration is not None:
            values["waveform_duration"] = duration
        if sample_rate is not None:
            values["waveform_sample_rate"] = sample_rate

        try:
            result = await self.session.execute(
                update(ReferenceItemEntity)
                .where(ReferenceItemEntity.id == reference_id)
                .values(**values)
            )
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise PersistenceError(f"Failed to save peaks to database: {exc}") from exc

        if result.rowcount == 0:
            raise PersistenceError(
                f"Failed to save peaks to database: reference {reference_id} no longer exists"
            )
