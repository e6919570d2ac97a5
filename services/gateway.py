"""
services/gateway.py

Persistence gateway: the only code that talks to the database.

- PersistenceGateway: the operations the rest of the app depends on
- SqlGateway: SQLAlchemy implementation over models.py

Every database failure surfaces as GatewayError. Nothing here spans more than
one operation in a transaction; concurrent writers to the same owner row race
and the last committed write wins.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import AppUser, SharedSessionRow, UserData, utcnow
from schemas.flights import FlightRecord, OwnerDataset
from schemas.sessions import SharedSession
from services.errors import GatewayError

logger = logging.getLogger(__name__)


class PersistenceGateway(ABC):

    @abstractmethod
    def get_owner_dataset(self, owner_id: str) -> Optional[OwnerDataset]:
        """None when the owner has never saved anything."""

    @abstractmethod
    def put_owner_dataset(self, owner_id: str, dataset: OwnerDataset) -> None:
        """Idempotent full replace keyed by owner_id."""

    @abstractmethod
    def create_shared_session(self, session: SharedSession) -> None:
        ...

    @abstractmethod
    def update_shared_session_active(self, token: str, active: bool) -> None:
        ...

    @abstractmethod
    def list_shared_sessions(self, owner_id: str) -> List[SharedSession]:
        """Newest first."""

    @abstractmethod
    def find_shared_session_by_token(self, token: str) -> Optional[SharedSession]:
        ...

    @abstractmethod
    def get_user_name(self, user_id: str) -> Optional[str]:
        ...

    @abstractmethod
    def upsert_user(self, user_id: str, name: Optional[str]) -> None:
        ...


# =====================================================================
# SECTION: ROW CONVERSION
# =====================================================================

def _unique(values: Iterable[str]) -> List[str]:
    seen = []
    for v in values:
        if v and v not in seen:
            seen.append(v)
    return seen


def _flight_from_json(raw: dict) -> FlightRecord:
    data = dict(raw)
    # Rows written by older clients can carry out-of-range passenger counts
    try:
        data["passengers"] = min(max(int(data.get("passengers") or 1), 1), 4)
    except (TypeError, ValueError):
        data["passengers"] = 1
    return FlightRecord.model_validate(data)


def _dataset_from_row(row: UserData) -> OwnerDataset:
    try:
        flights = [_flight_from_json(raw) for raw in (row.flights or [])]
    except ValidationError as e:
        raise GatewayError(f"Stored flights for {row.user_id} are unreadable: {e}") from e

    # Known-value lists are the stored lists plus whatever the flights imply
    return OwnerDataset(
        flights=flights,
        airlines=_unique(list(row.airlines or []) + [f.airline for f in flights]),
        originCities=_unique(list(row.origin_cities or []) + [f.origin for f in flights]),
        destinationCities=_unique(list(row.destination_cities or []) + [f.destination for f in flights]),
    )


def _session_from_row(row: SharedSessionRow) -> SharedSession:
    return SharedSession(
        id=row.id,
        owner_id=row.owner_id,
        token=row.token,
        permissions=row.permissions or "view",
        expires_at=row.expires_at,
        created_at=row.created_at,
        is_active=bool(row.is_active),
    )


# =====================================================================
# SECTION: SQLALCHEMY GATEWAY
# =====================================================================

class SqlGateway(PersistenceGateway):

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def _fail(self, db: Session, op: str, exc: SQLAlchemyError) -> GatewayError:
        db.rollback()
        logger.error(f"[gateway] {op} failed: {exc}")
        return GatewayError(f"{op} failed")

    def get_owner_dataset(self, owner_id: str) -> Optional[OwnerDataset]:
        db = self._session_factory()
        try:
            row = db.query(UserData).filter(UserData.user_id == owner_id).first()
            if row is None:
                return None
            return _dataset_from_row(row)
        except SQLAlchemyError as e:
            raise self._fail(db, "get_owner_dataset", e) from e
        finally:
            db.close()

    def put_owner_dataset(self, owner_id: str, dataset: OwnerDataset) -> None:
        db = self._session_factory()
        try:
            now = utcnow()
            row = db.query(UserData).filter(UserData.user_id == owner_id).first()
            if row is None:
                row = UserData(user_id=owner_id, created_at=now)
                db.add(row)

            row.flights = [f.model_dump(mode="json") for f in dataset.flights]
            row.airlines = list(dataset.airlines)
            row.origin_cities = list(dataset.originCities)
            row.destination_cities = list(dataset.destinationCities)
            row.updated_at = now

            db.commit()
            logger.info(f"[gateway] saved dataset owner={owner_id} flights={len(dataset.flights)}")
        except SQLAlchemyError as e:
            raise self._fail(db, "put_owner_dataset", e) from e
        finally:
            db.close()

    def create_shared_session(self, session: SharedSession) -> None:
        db = self._session_factory()
        try:
            db.add(SharedSessionRow(
                id=session.id,
                owner_id=session.owner_id,
                token=session.token,
                permissions=session.permissions.value,
                expires_at=session.expires_at,
                created_at=session.created_at,
                is_active=session.is_active,
            ))
            db.commit()
        except SQLAlchemyError as e:
            raise self._fail(db, "create_shared_session", e) from e
        finally:
            db.close()

    def update_shared_session_active(self, token: str, active: bool) -> None:
        db = self._session_factory()
        try:
            db.query(SharedSessionRow).filter(SharedSessionRow.token == token).update(
                {SharedSessionRow.is_active: active},
                synchronize_session=False,
            )
            db.commit()
        except SQLAlchemyError as e:
            raise self._fail(db, "update_shared_session_active", e) from e
        finally:
            db.close()

    def list_shared_sessions(self, owner_id: str) -> List[SharedSession]:
        db = self._session_factory()
        try:
            rows = (
                db.query(SharedSessionRow)
                .filter(SharedSessionRow.owner_id == owner_id)
                .order_by(SharedSessionRow.created_at.desc())
                .all()
            )
            return [_session_from_row(r) for r in rows]
        except SQLAlchemyError as e:
            raise self._fail(db, "list_shared_sessions", e) from e
        finally:
            db.close()

    def find_shared_session_by_token(self, token: str) -> Optional[SharedSession]:
        db = self._session_factory()
        try:
            row = db.query(SharedSessionRow).filter(SharedSessionRow.token == token).first()
            return _session_from_row(row) if row else None
        except SQLAlchemyError as e:
            raise self._fail(db, "find_shared_session_by_token", e) from e
        finally:
            db.close()

    def get_user_name(self, user_id: str) -> Optional[str]:
        db = self._session_factory()
        try:
            user = db.query(AppUser).filter(AppUser.user_id == user_id).first()
            return user.name if user and user.name else None
        except SQLAlchemyError as e:
            raise self._fail(db, "get_user_name", e) from e
        finally:
            db.close()

    def upsert_user(self, user_id: str, name: Optional[str]) -> None:
        db = self._session_factory()
        try:
            user = db.query(AppUser).filter(AppUser.user_id == user_id).first()
            if user is None:
                db.add(AppUser(user_id=user_id, name=name))
            elif name:
                user.name = name
            db.commit()
        except SQLAlchemyError as e:
            raise self._fail(db, "upsert_user", e) from e
        finally:
            db.close()
