from fastapi import APIRouter, Depends, HTTPException, File, Form, UploadFile, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime
from database import get_db
from config import settings
from models.user import User, KycStatus
from models.log import LogCategory
from services.kyc_workflow import (
    KycState, KycSubmissionService, UploadMethod, DocumentFile,
    SelectMethod, SetDocument, SetOperationalField, Next,
    reduce_all, normalize_kyc_status, review_kyc, OPERATIONAL_FIELDS,
)
from services.object_storage import LocalObjectStorage
from utils.auth_dependency import get_current_user, get_current_admin
from utils.logger import DatabaseLogger, log_info

router = APIRouter(prefix="/api/kyc", tags=["KYC"])

# Multipart field name -> document slot
FORM_SLOTS = {
    "gst_certificate": "gstCertificate",
    "pan_card": "panCard",
    "incorporation": "incorporation",
    "signatory_id": "signatoryId",
    "bank_details": "bankDetails",
}

DASHBOARD_SECTIONS = ["dashboard", "orders", "drivers", "vehicles", "payments", "tracking"]

class KycRecordResponse(BaseModel):
    kyc_status: str
    document_upload_method: Optional[str] = None
    documents: Dict[str, Optional[str]] = {}
    operational_info: Dict[str, str] = {}
    kyc_submitted_at: Optional[datetime] = None

class KycSubmitResponse(BaseModel):
    message: str
    kyc_status: str
    upload_method: str
    documents: Dict[str, str]
    progress: List[int]

class KycAccessResponse(BaseModel):
    kyc_status: str
    restricted: List[str]

class KycReviewRequest(BaseModel):
    decision: str

def get_submission_service() -> KycSubmissionService:
    return KycSubmissionService(LocalObjectStorage())

@router.get("/status", response_model=KycRecordResponse)
def get_kyc_status(current_user: User = Depends(get_current_user)):
    """Stored KYC record with the status normalized"""
    return KycRecordResponse(
        kyc_status=normalize_kyc_status(current_user.kyc_status),
        document_upload_method=current_user.document_upload_method,
        documents=current_user.documents or {},
        operational_info=current_user.operational_info or {},
        kyc_submitted_at=current_user.kyc_submitted_at
    )

@router.get("/access", response_model=KycAccessResponse)
def get_kyc_access(current_user: User = Depends(get_current_user)):
    """Everything but the dashboard home stays locked until KYC completes"""
    status = normalize_kyc_status(current_user.kyc_status)
    restricted = [] if status == KycStatus.COMPLETED.value else [s for s in DASHBOARD_SECTIONS if s != "dashboard"]
    return KycAccessResponse(kyc_status=status, restricted=restricted)

@router.post("/submit", response_model=KycSubmitResponse)
async def submit_kyc(
    request: Request,
    upload_method: UploadMethod = Form(UploadMethod.FILE),
    gst_certificate: Optional[UploadFile] = File(None),
    pan_card: Optional[UploadFile] = File(None),
    incorporation: Optional[UploadFile] = File(None),
    signatory_id: Optional[UploadFile] = File(None),
    bank_details: Optional[UploadFile] = File(None),
    gst_certificate_link: Optional[str] = Form(None),
    pan_card_link: Optional[str] = Form(None),
    incorporation_link: Optional[str] = Form(None),
    signatory_id_link: Optional[str] = Form(None),
    bank_details_link: Optional[str] = Form(None),
    services: str = Form(""),
    fleetDetails: str = Form(""),
    coverageZones: str = Form(""),
    pricingModel: str = Form(""),
    trackingCapability: str = Form(""),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    submission_service: KycSubmissionService = Depends(get_submission_service)
):
    """Run the documents -> operational details -> review steps and submit"""
    uploads = {
        "gst_certificate": gst_certificate,
        "pan_card": pan_card,
        "incorporation": incorporation,
        "signatory_id": signatory_id,
        "bank_details": bank_details,
    }
    links = {
        "gst_certificate": gst_certificate_link,
        "pan_card": pan_card_link,
        "incorporation": incorporation_link,
        "signatory_id": signatory_id_link,
        "bank_details": bank_details_link,
    }
    operational = dict(zip(OPERATIONAL_FIELDS, (services, fleetDetails, coverageZones, pricingModel, trackingCapability)))

    actions = [SelectMethod(upload_method)]
    for form_name, slot in FORM_SLOTS.items():
        if upload_method == UploadMethod.FILE:
            upload = uploads[form_name]
            if upload is None or not upload.filename:
                continue
            # One byte past the limit is enough to reject an oversized file
            content = await upload.read(settings.max_upload_size_bytes + 1)
            actions.append(SetDocument(slot, DocumentFile(upload.filename, content, upload.content_type)))
        elif links[form_name]:
            actions.append(SetDocument(slot, links[form_name]))
    actions.append(Next())
    actions.extend(SetOperationalField(name, value) for name, value in operational.items())
    actions.append(Next())

    state = reduce_all(KycState(), actions)

    # Raises AggregateSubmissionError; main.py records it in error_logs
    result = submission_service.submit(db, current_user, state)

    DatabaseLogger.log_user_activity(
        user_id=current_user.id,
        action="submit_kyc",
        description=f"KYC submitted via {result.upload_method}",
        entity_type="kyc",
        entity_id=str(current_user.id),
        ip_address=request.client.host if request.client else None,
        db=db
    )
    return KycSubmitResponse(
        message="KYC submitted successfully! Waiting for admin approval.",
        kyc_status=result.kyc_status,
        upload_method=result.upload_method,
        documents=result.documents,
        progress=result.progress
    )

@router.put("/{user_id}/review", response_model=KycRecordResponse)
def review_kyc_submission(
    user_id: int,
    payload: KycReviewRequest,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Admin decision on a submitted KYC record"""
    account = db.query(User).filter(User.id == user_id).first()
    if not account:
        raise HTTPException(status_code=404, detail="User not found")

    status = review_kyc(db, account, payload.decision)
    log_info(
        f"KYC for user {account.id} set to {payload.decision}",
        category=LogCategory.KYC,
        user_id=current_admin.id,
        db=db
    )
    return KycRecordResponse(
        kyc_status=status,
        document_upload_method=account.document_upload_method,
        documents=account.documents or {},
        operational_info=account.operational_info or {},
        kyc_submitted_at=account.kyc_submitted_at
    )
