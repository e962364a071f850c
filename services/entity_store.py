from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from models.entity_document import EntityDocument
from utils.errors import StoreError, PermissionDeniedError, NotFoundError, ValidationError
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

ORDERS_COLLECTION = "AllOrders"
DRIVERS_COLLECTION = "Drivers"
VEHICLES_COLLECTION = "Vehicles"

class EntityStore:
    """
    Owner-scoped document collection backed by the entity_documents table.

    Documents are plain dicts keyed by `key_field`. Saving merges the given
    fields into the stored body (create-or-merge); the owner is always the
    calling account and is exposed to clients as `userId`.
    """

    def __init__(self, collection: str, key_field: str, label: str):
        self.collection = collection
        self.key_field = key_field
        self.label = label

    def _to_dict(self, document: EntityDocument) -> Dict[str, Any]:
        body = dict(document.data or {})
        body["id"] = document.doc_id
        body["userId"] = document.user_id
        return body

    def _query(self, db: Session):
        return db.query(EntityDocument).filter(EntityDocument.collection == self.collection)

    def _find(self, db: Session, doc_id: str) -> Optional[EntityDocument]:
        return self._query(db).filter(EntityDocument.doc_id == str(doc_id)).first()

    def _fail(self, db: Session, action: str, error: SQLAlchemyError):
        db.rollback()
        logger.error(f"{self.collection} {action} failed: {error}")
        raise StoreError(f"Error {action} {self.label}: storage is unavailable")

    def resolve_key(self, entity: Dict[str, Any]) -> str:
        key = entity.get(self.key_field)
        if key is None or str(key).strip() == "":
            raise ValidationError(f"{self.key_field} is required")
        return str(key).strip()

    def exists(self, db: Session, doc_id: str) -> bool:
        try:
            return self._find(db, doc_id) is not None
        except SQLAlchemyError as e:
            self._fail(db, "fetching", e)

    def list(self, db: Session, owner_id: int) -> List[Dict[str, Any]]:
        try:
            documents = (
                self._query(db)
                .filter(EntityDocument.user_id == owner_id)
                .order_by(EntityDocument.created_at.desc(), EntityDocument.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self._fail(db, "fetching", e)
        return [self._to_dict(document) for document in documents]

    def list_all(self, db: Session) -> List[Dict[str, Any]]:
        """Unscoped read for administrative views"""
        try:
            documents = self._query(db).order_by(EntityDocument.created_at.desc(), EntityDocument.id.desc()).all()
        except SQLAlchemyError as e:
            self._fail(db, "fetching", e)
        return [self._to_dict(document) for document in documents]

    def get(self, db: Session, owner_id: int, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            document = self._find(db, doc_id)
        except SQLAlchemyError as e:
            self._fail(db, "fetching", e)
        if document is None or document.user_id != owner_id:
            return None
        return self._to_dict(document)

    def _merge_into(self, db: Session, document: EntityDocument, owner_id: int, body: Dict[str, Any]) -> None:
        if document.user_id != owner_id:
            raise PermissionDeniedError(f"Error saving {self.label}: permission denied")
        # New dict so the JSON column registers the change
        document.data = {**(document.data or {}), **body}
        document.updated_at = datetime.utcnow()
        db.commit()

    def save(self, db: Session, owner_id: int, entity: Dict[str, Any]) -> Dict[str, Any]:
        doc_id = self.resolve_key(entity)
        body = {key: value for key, value in entity.items() if key not in ("id", "userId")}
        body[self.key_field] = doc_id

        try:
            document = self._find(db, doc_id)
            if document is None:
                document = EntityDocument(
                    collection=self.collection,
                    doc_id=doc_id,
                    user_id=owner_id,
                    data=body,
                )
                db.add(document)
                db.commit()
            else:
                self._merge_into(db, document, owner_id, body)
            db.refresh(document)
        except IntegrityError:
            # A concurrent create took the key first; last write wins by merging into its row
            db.rollback()
            logger.info(f"{self.collection} {doc_id} created concurrently, merging")
            try:
                document = self._find(db, doc_id)
                if document is None:
                    raise StoreError(f"Error saving {self.label}: storage is unavailable")
                self._merge_into(db, document, owner_id, body)
                db.refresh(document)
            except SQLAlchemyError as e:
                self._fail(db, "saving", e)
        except SQLAlchemyError as e:
            self._fail(db, "saving", e)

        logger.info(f"Saved {self.label} {doc_id} for user {owner_id}")
        return self._to_dict(document)

    def merge_fields(self, db: Session, owner_id: int, doc_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Merge a partial update into an existing document"""
        try:
            document = self._find(db, doc_id)
        except SQLAlchemyError as e:
            self._fail(db, "updating", e)
        if document is None or document.user_id != owner_id:
            raise NotFoundError(f"{self.label.capitalize()} not found")
        return self.save(db, owner_id, {**fields, self.key_field: document.doc_id})

    def delete(self, db: Session, owner_id: int, doc_id: str) -> None:
        try:
            document = self._find(db, doc_id)
            if document is None:
                raise NotFoundError(f"{self.label.capitalize()} not found")
            if document.user_id != owner_id:
                raise PermissionDeniedError(f"Error deleting {self.label}: permission denied")
            db.delete(document)
            db.commit()
        except SQLAlchemyError as e:
            self._fail(db, "deleting", e)

        logger.info(f"Deleted {self.label} {doc_id} for user {owner_id}")

    def count(self, db: Session, owner_id: int) -> int:
        try:
            return self._query(db).filter(EntityDocument.user_id == owner_id).count()
        except SQLAlchemyError as e:
            self._fail(db, "counting", e)

order_store = EntityStore(ORDERS_COLLECTION, "order_id", "order")
driver_store = EntityStore(DRIVERS_COLLECTION, "mobileNumber", "driver")
vehicle_store = EntityStore(VEHICLES_COLLECTION, "id", "vehicle")
