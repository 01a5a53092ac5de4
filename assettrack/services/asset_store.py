# assettrack/services/asset_store.py
"""
Record store boundary for assets.

AssetStore is the only persistence surface the QR and asset services see.
SqlAlchemyAssetStore backs it with the ORM; tests supply their own
implementation. Provider exceptions never leave this module: they are
translated into the StoreError variants below.
"""
from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import DBAPIError, IntegrityError, NoResultFound, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from assettrack.models.asset import Asset
from assettrack.models.profile import Profile
from assettrack.schemas.asset import AssetCreate, AssetRecord, AssetUpdate

log = logging.getLogger("assettrack.asset_store")


# ────────────────────────────────────────────
# Store Errors
# ────────────────────────────────────────────

class StoreError(Exception):
    """Base class for record store failures"""


class RecordNotFound(StoreError):
    """No row matches the requested key"""


class RecordConflict(StoreError):
    """Write violates a uniqueness or reference constraint"""


class PermissionDenied(StoreError):
    """The store refused the operation for the current credentials"""


class StoreUnavailable(StoreError):
    """The store could not be reached or failed mid-operation"""


# ────────────────────────────────────────────
# Interface
# ────────────────────────────────────────────

class AssetStore(ABC):
    """Persistence operations over assets"""

    @abstractmethod
    def get_by_asset_id(self, asset_id: str) -> AssetRecord:
        """Asset by business key; raises RecordNotFound"""

    @abstractmethod
    def get_by_id(self, record_id: int) -> AssetRecord:
        """Asset by internal id; raises RecordNotFound"""

    @abstractmethod
    def get_many_by_asset_ids(self, asset_ids: Iterable[str]) -> List[AssetRecord]:
        """Assets whose business key is in asset_ids, in no particular order"""

    @abstractmethod
    def update_qr_code(self, record_id: int, qr_code: Optional[str]) -> None:
        """Overwrite the cached QR image of one asset"""

    @abstractmethod
    def list_assets(
        self,
        q: Optional[str] = None,
        category: Optional[str] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[int, List[AssetRecord]]:
        """(total matching, page of assets newest first)"""

    @abstractmethod
    def add_asset(self, data: AssetCreate, created_by: Optional[str]) -> AssetRecord:
        """Insert an asset; raises RecordConflict on duplicate asset_id"""

    @abstractmethod
    def update_asset(self, record_id: int, data: AssetUpdate) -> AssetRecord:
        """Apply the set fields of data"""

    @abstractmethod
    def profile_exists(self, user_id: str) -> bool:
        """Whether a display profile exists for user_id"""


# ────────────────────────────────────────────
# SQLAlchemy implementation
# ────────────────────────────────────────────

def _to_record(asset: Asset) -> AssetRecord:
    return AssetRecord(
        id=asset.id,
        asset_id=asset.asset_id,
        name=asset.name,
        description=asset.description,
        category=asset.category,
        status=asset.status,
        location=asset.location,
        value=float(asset.value) if asset.value is not None else None,
        qr_code=asset.qr_code,
        assignee_id=asset.assignee_id,
        assignee_name=asset.assignee.full_name if asset.assignee else None,
        created_by=asset.created_by,
        created_by_name=asset.creator.full_name if asset.creator else None,
        created_at=asset.created_at,
        updated_at=asset.updated_at,
    )


class SqlAlchemyAssetStore(AssetStore):
    """AssetStore over a request-scoped SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _translate(self, action: str) -> Iterator[None]:
        try:
            yield
        except StoreError:
            raise
        except NoResultFound as e:
            raise RecordNotFound(f"{action}: no matching asset") from e
        except IntegrityError as e:
            self.db.rollback()
            log.warning(f"Constraint violation during {action}: {e.orig}")
            raise RecordConflict(f"{action}: constraint violation") from e
        except (OperationalError, DBAPIError) as e:
            self.db.rollback()
            if _is_permission_error(e):
                log.error(f"Permission denied during {action}: {e.orig}")
                raise PermissionDenied(f"{action}: permission denied") from e
            log.error(f"Database unavailable during {action}: {e}")
            raise StoreUnavailable(f"{action}: database unavailable") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error(f"Database error during {action}: {e}")
            raise StoreUnavailable(f"{action}: database error") from e

    def _get_row(self, record_id: int) -> Asset:
        return self.db.query(Asset).filter(Asset.id == record_id).one()

    def get_by_asset_id(self, asset_id: str) -> AssetRecord:
        with self._translate(f"get asset {asset_id!r}"):
            asset = self.db.query(Asset).filter(Asset.asset_id == asset_id).one()
            return _to_record(asset)

    def get_by_id(self, record_id: int) -> AssetRecord:
        with self._translate(f"get asset #{record_id}"):
            return _to_record(self._get_row(record_id))

    def get_many_by_asset_ids(self, asset_ids: Iterable[str]) -> List[AssetRecord]:
        keys = list(dict.fromkeys(asset_ids))
        if not keys:
            return []
        with self._translate("bulk get assets"):
            rows = self.db.query(Asset).filter(Asset.asset_id.in_(keys)).all()
            return [_to_record(row) for row in rows]

    def update_qr_code(self, record_id: int, qr_code: Optional[str]) -> None:
        with self._translate(f"update qr_code of asset #{record_id}"):
            updated = self.db.query(Asset).filter(Asset.id == record_id).update(
                {Asset.qr_code: qr_code}, synchronize_session=False
            )
            if not updated:
                raise RecordNotFound(f"update qr_code of asset #{record_id}: no matching asset")
            self.db.commit()

    def list_assets(
        self,
        q: Optional[str] = None,
        category: Optional[str] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[int, List[AssetRecord]]:
        with self._translate("list assets"):
            query = self.db.query(Asset)
            if q:
                pattern = f"%{q.strip()}%"
                query = query.filter(or_(Asset.name.ilike(pattern), Asset.asset_id.ilike(pattern)))
            if category:
                query = query.filter(Asset.category == category)
            if status:
                query = query.filter(Asset.status == status)

            total = query.count()
            rows = query.order_by(Asset.created_at.desc(), Asset.id.desc()).offset(skip).limit(limit).all()
            return total, [_to_record(row) for row in rows]

    def add_asset(self, data: AssetCreate, created_by: Optional[str]) -> AssetRecord:
        with self._translate(f"add asset {data.asset_id!r}"):
            asset = Asset(
                asset_id=data.asset_id,
                name=data.name,
                description=data.description,
                category=data.category,
                status=data.status.value,
                location=data.location,
                value=data.value,
                assignee_id=data.assignee_id,
                created_by=created_by,
            )
            self.db.add(asset)
            self.db.commit()
            self.db.refresh(asset)
            return _to_record(asset)

    def update_asset(self, record_id: int, data: AssetUpdate) -> AssetRecord:
        with self._translate(f"update asset #{record_id}"):
            asset = self._get_row(record_id)
            for field, value in data.model_dump(exclude_unset=True).items():
                if hasattr(value, "value"):
                    value = value.value
                setattr(asset, field, value)
            self.db.commit()
            self.db.refresh(asset)
            return _to_record(asset)

    def profile_exists(self, user_id: str) -> bool:
        with self._translate(f"get profile {user_id!r}"):
            return self.db.query(Profile.id).filter(Profile.id == user_id).first() is not None


def _is_permission_error(error: DBAPIError) -> bool:
    # PostgreSQL insufficient_privilege
    return getattr(error.orig, "pgcode", None) == "42501"
