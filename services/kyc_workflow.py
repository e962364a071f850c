"""
KYC submission workflow.

The three-step stepper (documents, operational details, review) is modelled as
an immutable KycState and a pure `reduce(state, action)` transition function.
Invalid transitions raise ValidationError and leave the caller holding the
previous state. KycSubmissionService performs the final submission: documents
are resolved (uploaded or taken as links) first, and the account's KYC record
is written in one commit only after all five resolve.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import urlparse
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from config import settings
from models.user import User, KycStatus
from services.object_storage import LocalObjectStorage, safe_filename
from utils.errors import AppError, AuthError, ValidationError, AggregateSubmissionError
import enum
import logging

logger = logging.getLogger(__name__)

class UploadMethod(str, enum.Enum):
    FILE = "file"
    LINK = "link"

class KycStep(enum.IntEnum):
    DOCUMENTS = 0
    OPERATIONAL_DETAILS = 1
    REVIEW = 2

@dataclass(frozen=True)
class DocumentSlot:
    key: str
    folder: str
    label: str

# Upload order is fixed; progress percentages follow it
DOCUMENT_SLOTS: Tuple[DocumentSlot, ...] = (
    DocumentSlot("gstCertificate", "gst", "GST Certificate"),
    DocumentSlot("panCard", "pan", "PAN Card"),
    DocumentSlot("incorporation", "incorporation", "Certificate of Incorporation"),
    DocumentSlot("signatoryId", "signatory", "Signatory ID Proof"),
    DocumentSlot("bankDetails", "bank", "Bank Details/Cancelled Cheque"),
)
SLOT_KEYS = tuple(slot.key for slot in DOCUMENT_SLOTS)

OPERATIONAL_FIELDS = (
    "services",
    "fleetDetails",
    "coverageZones",
    "pricingModel",
    "trackingCapability",
)

FILE_PROGRESS = (25, 40, 55, 70, 85)

EMPTY_FILES = (None,) * len(DOCUMENT_SLOTS)
EMPTY_LINKS = ("",) * len(DOCUMENT_SLOTS)

STATUS_SYNONYMS = {
    "approved": KycStatus.COMPLETED.value,
    "rejected": KycStatus.NOT_SUBMITTED.value,
}

MISSING_FILES_MESSAGE = "Please upload all required company documents."
MISSING_LINKS_MESSAGE = "Please provide all required document links."
INVALID_LINKS_MESSAGE = "Please provide valid URLs for all document links."
FILE_TOO_LARGE_MESSAGE = "File size must be under 5MB."
NOT_LOGGED_IN_MESSAGE = "No user is logged in. Please sign in again."

@dataclass(frozen=True)
class DocumentFile:
    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)

@dataclass(frozen=True)
class KycState:
    active_step: KycStep = KycStep.DOCUMENTS
    upload_method: UploadMethod = UploadMethod.FILE
    files: Tuple[Optional[DocumentFile], ...] = EMPTY_FILES
    links: Tuple[str, ...] = EMPTY_LINKS
    operational_info: Tuple[str, ...] = ("",) * len(OPERATIONAL_FIELDS)

    def operational_dict(self) -> Dict[str, str]:
        return dict(zip(OPERATIONAL_FIELDS, self.operational_info))

    def filled_slots(self) -> List[str]:
        values = self.files if self.upload_method == UploadMethod.FILE else self.links
        return [key for key, value in zip(SLOT_KEYS, values) if value]

# Actions

@dataclass(frozen=True)
class SelectMethod:
    method: UploadMethod

@dataclass(frozen=True)
class SetDocument:
    slot: str
    value: Union[DocumentFile, str, None]

@dataclass(frozen=True)
class ClearDocument:
    slot: str

@dataclass(frozen=True)
class SetOperationalField:
    name: str
    value: str

@dataclass(frozen=True)
class Next:
    pass

@dataclass(frozen=True)
class Back:
    pass

@dataclass(frozen=True)
class Reset:
    pass

KycAction = Union[SelectMethod, SetDocument, ClearDocument, SetOperationalField, Next, Back, Reset]

def is_absolute_url(value: str) -> bool:
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)

def normalize_kyc_status(raw: Optional[str]) -> str:
    """Map the stored status onto not-submitted / pending / completed"""
    status = (raw or KycStatus.NOT_SUBMITTED.value).strip().lower()
    status = STATUS_SYNONYMS.get(status, status)
    if status not in {item.value for item in KycStatus}:
        return KycStatus.NOT_SUBMITTED.value
    return status

def _slot_index(slot: str) -> int:
    try:
        return SLOT_KEYS.index(slot)
    except ValueError:
        raise ValidationError(f"Unknown document: {slot}")

def _replace_at(values: tuple, index: int, value) -> tuple:
    return values[:index] + (value,) + values[index + 1:]

def _validate_documents(state: KycState) -> None:
    if state.upload_method == UploadMethod.FILE:
        if any(document is None for document in state.files):
            raise ValidationError(MISSING_FILES_MESSAGE)
        return

    if any(not link.strip() for link in state.links):
        raise ValidationError(MISSING_LINKS_MESSAGE)
    if not all(is_absolute_url(link) for link in state.links):
        raise ValidationError(INVALID_LINKS_MESSAGE)

def reduce(state: KycState, action: KycAction, max_file_size: Optional[int] = None) -> KycState:
    """Apply one action and return the next state"""
    if max_file_size is None:
        max_file_size = settings.max_upload_size_bytes

    if isinstance(action, SelectMethod):
        # Switching methods always forces re-entry of every document
        return replace(
            state,
            upload_method=UploadMethod(action.method),
            files=EMPTY_FILES,
            links=EMPTY_LINKS,
        )

    if isinstance(action, SetDocument):
        index = _slot_index(action.slot)
        if state.upload_method == UploadMethod.FILE:
            if action.value is not None and not isinstance(action.value, DocumentFile):
                raise ValidationError("A file is required for this upload method")
            if action.value is not None and action.value.size > max_file_size:
                raise ValidationError(FILE_TOO_LARGE_MESSAGE)
            return replace(state, files=_replace_at(state.files, index, action.value))
        if action.value is not None and not isinstance(action.value, str):
            raise ValidationError("A link is required for this upload method")
        return replace(state, links=_replace_at(state.links, index, (action.value or "").strip()))

    if isinstance(action, ClearDocument):
        index = _slot_index(action.slot)
        return replace(
            state,
            files=_replace_at(state.files, index, None),
            links=_replace_at(state.links, index, ""),
        )

    if isinstance(action, SetOperationalField):
        if action.name not in OPERATIONAL_FIELDS:
            raise ValidationError(f"Unknown operational field: {action.name}")
        index = OPERATIONAL_FIELDS.index(action.name)
        return replace(state, operational_info=_replace_at(state.operational_info, index, action.value or ""))

    if isinstance(action, Next):
        if state.active_step == KycStep.DOCUMENTS:
            _validate_documents(state)
        elif state.active_step == KycStep.REVIEW:
            raise ValidationError("Already on the final step")
        return replace(state, active_step=KycStep(state.active_step + 1))

    if isinstance(action, Back):
        if state.active_step == KycStep.DOCUMENTS:
            raise ValidationError("Already on the first step")
        return replace(state, active_step=KycStep(state.active_step - 1))

    if isinstance(action, Reset):
        return KycState()

    raise ValueError(f"Unhandled action type: {type(action).__name__}")

def reduce_all(state: KycState, actions, max_file_size: Optional[int] = None) -> KycState:
    for action in actions:
        state = reduce(state, action, max_file_size=max_file_size)
    return state

@dataclass
class SubmissionResult:
    kyc_status: str
    upload_method: str
    documents: Dict[str, str]
    submitted_at: datetime
    progress: List[int] = field(default_factory=list)

class KycSubmissionService:
    """Resolves documents and writes the account's KYC record"""

    def __init__(self, storage: Optional[LocalObjectStorage] = None, clock: Callable[[], datetime] = datetime.utcnow):
        self.storage = storage or LocalObjectStorage()
        self.clock = clock

    def object_path(self, account_id: int, slot: DocumentSlot, filename: str) -> str:
        timestamp_ms = int(self.clock().replace(tzinfo=timezone.utc).timestamp() * 1000)
        return f"kyc-documents/{account_id}/{slot.folder}/{timestamp_ms}-{safe_filename(filename)}"

    def _upload_files(self, account_id: int, state: KycState, report: Callable[[int], None], written: List[str]) -> Dict[str, str]:
        urls = {}
        for slot, document, percent in zip(DOCUMENT_SLOTS, state.files, FILE_PROGRESS):
            path = self.object_path(account_id, slot, document.filename)
            urls[slot.key] = self.storage.upload(path, document.content)
            written.append(path)
            report(percent)
        return urls

    def submit(
        self,
        db: Session,
        account: Optional[User],
        state: KycState,
        on_progress: Optional[Callable[[int], None]] = None
    ) -> SubmissionResult:
        if account is None:
            raise AuthError(NOT_LOGGED_IN_MESSAGE)
        if state.active_step != KycStep.REVIEW:
            raise ValidationError("Complete all steps before submitting")
        _validate_documents(state)

        progress: List[int] = []

        def report(percent: int) -> None:
            progress.append(percent)
            if on_progress is not None:
                on_progress(percent)

        # Read before any rollback can expire the instance
        account_id = account.id
        written: List[str] = []
        report(10)
        try:
            if state.upload_method == UploadMethod.FILE:
                documents = self._upload_files(account_id, state, report, written)
            else:
                report(50)
                documents = dict(zip(SLOT_KEYS, state.links))
                report(85)

            submitted_at = self.clock()
            account.documents = documents
            account.document_upload_method = state.upload_method.value
            account.operational_info = state.operational_dict()
            account.kyc_status = KycStatus.PENDING.value
            account.kyc_submitted_at = submitted_at
            db.commit()
            db.refresh(account)
        except (AppError, SQLAlchemyError) as e:
            db.rollback()
            for path in written:
                self.storage.delete(path)
            reason = e.message if isinstance(e, AppError) else "could not save the KYC record"
            logger.error(f"KYC submission failed for user {account_id}: {e}")
            raise AggregateSubmissionError(f"Submission failed: {reason}")

        report(100)
        logger.info(f"KYC submitted for user {account_id} via {state.upload_method.value}")
        return SubmissionResult(
            kyc_status=KycStatus.PENDING.value,
            upload_method=state.upload_method.value,
            documents=documents,
            submitted_at=submitted_at,
            progress=progress,
        )

def review_kyc(db: Session, account: User, decision: str) -> str:
    """Record an admin decision; returns the status the operator will observe"""
    decision = (decision or "").strip().lower()
    if decision not in ("approved", "rejected", "pending"):
        raise ValidationError("Decision must be approved, rejected or pending")
    account.kyc_status = decision
    db.commit()
    db.refresh(account)
    return normalize_kyc_status(account.kyc_status)
