import logging
from typing import Callable, Dict, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.document import Document

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def document_type_name(doc_type: Type[BaseModel]) -> str:
    return doc_type.__name__


class SessionHelper:
    """
    Loads single documents (one row per document type) through a db session.

    `load_for_update` and `get_for_caching` are meant to be used in pair: the
    first hands out the instance that will be written back, the second a
    detached copy that can be shared through a cache. They never return the
    same instance.
    """

    def __init__(self, db: Session):
        self.db = db
        self._loaded: Dict[Type[BaseModel], BaseModel] = {}
        self._records: Dict[Type[BaseModel], Document] = {}

    def load_for_update(self, doc_type: Type[T], factory: Optional[Callable[[], T]] = None) -> T:
        """
        Loads a single document (or creates a new one) for updating and that should not be cached.
        Repeated calls return the same instance.
        """
        if doc_type in self._loaded:
            return self._loaded[doc_type]

        record = self.db.query(Document).filter(Document.type == document_type_name(doc_type)).first()

        if record is not None:
            document = doc_type.model_validate(record.content)
            self._records[doc_type] = record
        else:
            document = factory() if factory else doc_type()

        self._loaded[doc_type] = document
        return document

    def get_for_caching(self, doc_type: Type[T], factory: Optional[Callable[[], T]] = None) -> T:
        """
        Gets a single document (or creates a new one) for caching and that should not be updated.
        """
        # Select the column, not the entity: the identity map (and any pending
        # change to a row loaded for update) is bypassed.
        content = self.db.execute(
            select(Document.content).where(Document.type == document_type_name(doc_type))
        ).scalar_one_or_none()

        if content is not None:
            return doc_type.model_validate(content)

        return factory() if factory else doc_type()

    def save(self, document: BaseModel) -> None:
        doc_type = type(document)
        record = self._records.get(doc_type)

        if record is None:
            record = self.db.query(Document).filter(Document.type == document_type_name(doc_type)).first()

        if record is None:
            record = Document(type=document_type_name(doc_type))
            self.db.add(record)
            logger.info(f"Created document '{record.type}'")

        record.content = document.model_dump(mode="json")
        self.db.flush()

        self._records[doc_type] = record
        self._loaded[doc_type] = document
