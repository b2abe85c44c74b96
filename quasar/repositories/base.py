"""
Base repository with the query helpers shared by the services
"""
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from quasar.core.database import Base
from quasar.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)

T = TypeVar("T", bound=Base)

MAX_PAGE_SIZE = 100


class BaseRepository(Generic[T]):
    """CRUD helpers for one model; soft-deleted rows are hidden when the model supports it"""

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model

    @property
    def soft_deletes(self) -> bool:
        return hasattr(self.model, "deleted_at")

    def query(self, include_deleted: bool = False) -> Query:
        query = self.db.query(self.model)
        if self.soft_deletes and not include_deleted:
            query = query.filter(self.model.deleted_at.is_(None))
        return query

    def find_by_id(self, record_id: UUID, include_deleted: bool = False) -> Optional[T]:
        return self.query(include_deleted).filter(self.model.id == record_id).first()

    def find_one_by(self, **filters) -> Optional[T]:
        return self.query().filter_by(**filters).first()

    def exists(self, **filters) -> bool:
        return self.query().filter_by(**filters).first() is not None

    def count(self, query: Optional[Query] = None) -> int:
        return (query if query is not None else self.query()).count()

    def paginate(self, query: Query, page: int = 1, limit: int = 20) -> Tuple[List[T], int]:
        """Return one page of `query` and the total row count"""
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        total = query.order_by(None).count()
        items = query.offset((page - 1) * limit).limit(limit).all()
        return items, total

    def create(self, **values) -> T:
        entity = self.model(**values)
        self.db.add(entity)
        self.db.flush()
        return entity

    def update(self, entity: T, values: Dict[str, Any], actor_id: Optional[UUID] = None) -> T:
        for key, value in values.items():
            setattr(entity, key, value)
        if hasattr(entity, "version"):
            entity.version = (entity.version or 0) + 1
            if actor_id is not None:
                entity.updated_by = actor_id
        self.db.flush()
        return entity

    def soft_delete(self, entity: T, actor_id: Optional[UUID] = None):
        if self.soft_deletes:
            entity.soft_delete(actor_id)
        else:
            self.db.delete(entity)
        self.db.flush()
        logger.debug(f"Deleted {self.model.__name__} {entity.id}")

    def max_position(self, column, *criteria) -> int:
        """Highest value of `column` among rows matching `criteria`, -1 when none"""
        query = self.db.query(func.max(column))
        if self.soft_deletes:
            query = query.filter(self.model.deleted_at.is_(None))
        value = query.filter(*criteria).scalar()
        return -1 if value is None else int(value)
