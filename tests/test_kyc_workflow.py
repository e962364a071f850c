import pytest
from datetime import datetime
from models.user import User, KycStatus
from services.kyc_workflow import (
    KycState, KycStep, KycSubmissionService, UploadMethod, DocumentFile,
    SelectMethod, SetDocument, ClearDocument, SetOperationalField, Next, Back, Reset,
    SLOT_KEYS, reduce, reduce_all, normalize_kyc_status, is_absolute_url, review_kyc,
    MISSING_FILES_MESSAGE, MISSING_LINKS_MESSAGE, INVALID_LINKS_MESSAGE, FILE_TOO_LARGE_MESSAGE,
)
from services.object_storage import LocalObjectStorage
from utils.errors import ValidationError, AuthError, AggregateSubmissionError, StoreError
from sqlalchemy.exc import OperationalError

def pdf(name="doc.pdf", size=10):
    return DocumentFile(name, b"x" * size, "application/pdf")

def all_files():
    return [SetDocument(slot, pdf(f"{slot}.pdf")) for slot in SLOT_KEYS]

def all_links():
    return [SetDocument(slot, f"https://drive.example.com/{slot}") for slot in SLOT_KEYS]

def to_review(method, documents):
    operational = [SetOperationalField("services", "FTL"), SetOperationalField("fleetDetails", "12 trucks")]
    return reduce_all(KycState(), [SelectMethod(method), *documents, Next(), *operational, Next()])

def make_account(db, email="kyc@example.com"):
    account = User(full_name="Kyc Operator", email=email, password_hash="x", kyc_status=KycStatus.NOT_SUBMITTED.value)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account

class FailingStorage(LocalObjectStorage):
    """Fails on the nth upload"""

    def __init__(self, root, fail_on):
        super().__init__(root=root, public_prefix="/uploads")
        self.fail_on = fail_on
        self.calls = 0

    def upload(self, object_path, content):
        self.calls += 1
        if self.calls == self.fail_on:
            raise StoreError("Failed to save file: disk full")
        return super().upload(object_path, content)

# Reducer

def test_initial_state():
    state = KycState()
    assert state.active_step == KycStep.DOCUMENTS
    assert state.upload_method == UploadMethod.FILE
    assert state.filled_slots() == []

def test_switching_method_clears_every_slot():
    state = reduce_all(KycState(), all_files())
    assert len(state.filled_slots()) == 5
    state = reduce(state, SelectMethod(UploadMethod.LINK))
    assert state.filled_slots() == []
    assert all(document is None for document in state.files)
    state = reduce_all(state, all_links())
    state = reduce(state, SelectMethod(UploadMethod.FILE))
    assert all(link == "" for link in state.links)

def test_reselecting_same_method_also_clears():
    state = reduce_all(KycState(), all_files())
    assert reduce(state, SelectMethod(UploadMethod.FILE)).filled_slots() == []

def test_oversized_file_is_rejected_and_state_unchanged():
    state = KycState()
    with pytest.raises(ValidationError) as exc:
        reduce(state, SetDocument("panCard", pdf(size=11)), max_file_size=10)
    assert exc.value.message == FILE_TOO_LARGE_MESSAGE
    assert state.files[1] is None
    assert reduce(state, SetDocument("panCard", pdf(size=10)), max_file_size=10).files[1] is not None

def test_unknown_slot():
    with pytest.raises(ValidationError):
        reduce(KycState(), SetDocument("passport", pdf()))

def test_clear_document():
    state = reduce_all(KycState(), all_files() + [ClearDocument("incorporation")])
    assert "incorporation" not in state.filled_slots()

def test_next_requires_all_files():
    state = reduce_all(KycState(), all_files()[:4])
    with pytest.raises(ValidationError) as exc:
        reduce(state, Next())
    assert exc.value.message == MISSING_FILES_MESSAGE

def test_next_requires_all_links_and_valid_urls():
    state = reduce_all(KycState(), [SelectMethod(UploadMethod.LINK)] + all_links()[:4])
    with pytest.raises(ValidationError) as exc:
        reduce(state, Next())
    assert exc.value.message == MISSING_LINKS_MESSAGE

    state = reduce(state, SetDocument("bankDetails", "bank-details.pdf"))
    with pytest.raises(ValidationError) as exc:
        reduce(state, Next())
    assert exc.value.message == INVALID_LINKS_MESSAGE

def test_step_navigation():
    state = to_review(UploadMethod.LINK, all_links())
    assert state.active_step == KycStep.REVIEW
    assert state.operational_dict()["fleetDetails"] == "12 trucks"
    with pytest.raises(ValidationError):
        reduce(state, Next())
    state = reduce(state, Back())
    assert state.active_step == KycStep.OPERATIONAL_DETAILS
    with pytest.raises(ValidationError):
        reduce(KycState(), Back())
    assert reduce(state, Reset()) == KycState()

def test_operational_details_are_optional():
    state = reduce_all(KycState(), all_files() + [Next(), Next()])
    assert state.active_step == KycStep.REVIEW
    assert set(state.operational_dict().values()) == {""}

def test_is_absolute_url():
    assert is_absolute_url("https://example.com/a.pdf")
    assert is_absolute_url("ftp://files.example.com/x")
    assert not is_absolute_url("example.com/a.pdf")
    assert not is_absolute_url("/relative/path")
    assert not is_absolute_url("")

@pytest.mark.parametrize("raw,expected", [
    ("approved", "completed"),
    ("rejected", "not-submitted"),
    ("pending", "pending"),
    ("completed", "completed"),
    ("Approved ", "completed"),
    (None, "not-submitted"),
    ("on-hold", "not-submitted"),
])
def test_normalize_kyc_status(raw, expected):
    assert normalize_kyc_status(raw) == expected

# Submission

def test_file_submission_uploads_in_order_and_writes_once(db, tmp_path):
    account = make_account(db)
    service = KycSubmissionService(LocalObjectStorage(root=str(tmp_path), public_prefix="/uploads"),
                                   clock=lambda: datetime(2024, 1, 1))
    seen = []
    result = service.submit(db, account, to_review(UploadMethod.FILE, all_files()), on_progress=seen.append)

    assert result.progress == [10, 25, 40, 55, 70, 85, 100]
    assert seen == result.progress
    assert result.kyc_status == "pending"
    assert list(result.documents) == list(SLOT_KEYS)
    assert result.documents["gstCertificate"] == f"/uploads/kyc-documents/{account.id}/gst/1704067200000-gstCertificate.pdf"
    assert (tmp_path / "kyc-documents" / str(account.id) / "bank" / "1704067200000-bankDetails.pdf").exists()

    db.refresh(account)
    assert account.kyc_status == "pending"
    assert account.document_upload_method == "file"
    assert account.documents == result.documents
    assert account.operational_info["services"] == "FTL"
    assert account.kyc_submitted_at == datetime(2024, 1, 1)

def test_link_submission_progress(db, tmp_path):
    account = make_account(db)
    service = KycSubmissionService(LocalObjectStorage(root=str(tmp_path)))
    result = service.submit(db, account, to_review(UploadMethod.LINK, all_links()))
    assert result.progress == [10, 50, 85, 100]
    assert result.documents["panCard"] == "https://drive.example.com/panCard"
    db.refresh(account)
    assert account.document_upload_method == "link"

def test_failed_upload_writes_no_record_and_removes_written_objects(db, tmp_path):
    account = make_account(db)
    storage = FailingStorage(str(tmp_path), fail_on=3)
    service = KycSubmissionService(storage)
    seen = []

    with pytest.raises(AggregateSubmissionError) as exc:
        service.submit(db, account, to_review(UploadMethod.FILE, all_files()), on_progress=seen.append)

    assert exc.value.message.startswith("Submission failed")
    assert "disk full" in exc.value.message
    assert seen == [10, 25, 40]
    assert not any(path.is_file() for path in tmp_path.rglob("*"))

    db.refresh(account)
    assert account.kyc_status == "not-submitted"
    assert account.documents is None

def test_submit_without_account(db, tmp_path):
    service = KycSubmissionService(LocalObjectStorage(root=str(tmp_path)))
    with pytest.raises(AuthError):
        service.submit(db, None, to_review(UploadMethod.LINK, all_links()))

def test_submit_before_review_step(db, tmp_path):
    account = make_account(db)
    service = KycSubmissionService(LocalObjectStorage(root=str(tmp_path)))
    state = reduce_all(KycState(), [SelectMethod(UploadMethod.LINK)] + all_links())
    with pytest.raises(ValidationError):
        service.submit(db, account, state)

def test_review_kyc(db):
    account = make_account(db)
    assert review_kyc(db, account, "approved") == "completed"
    assert account.kyc_status == "approved"
    assert review_kyc(db, account, "rejected") == "not-submitted"
    with pytest.raises(ValidationError):
        review_kyc(db, account, "maybe")

def test_store_outage_during_commit_reports_submission_failure(db, tmp_path, monkeypatch):
    account = make_account(db)
    service = KycSubmissionService(LocalObjectStorage(root=str(tmp_path)))
    state = to_review(UploadMethod.LINK, all_links())

    def connection_lost(*args, **kwargs):
        raise OperationalError("SELECT users.id FROM users", {}, Exception("connection lost"))

    # The commit fails and so would any reload of the expired account
    monkeypatch.setattr(db, "commit", connection_lost)
    monkeypatch.setattr(db, "execute", connection_lost)

    with pytest.raises(AggregateSubmissionError) as exc:
        service.submit(db, account, state)
    assert exc.value.message == "Submission failed: could not save the KYC record"
