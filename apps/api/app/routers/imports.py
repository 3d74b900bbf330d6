"""Payment import router."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.schemas.imports import PaymentBatchRequest, PaymentBatchResult
from app.services import payment_import_service

router = APIRouter()


@router.post("/payments", response_model=PaymentBatchResult)
def import_payments(data: PaymentBatchRequest, db: Session = Depends(get_db)):
    """
    Import pre-parsed payment records.

    Each record is its own transaction; failures are reported per row.
    """
    records = [record.to_record() for record in data.records]
    result = payment_import_service.import_batch(db, records)
    return PaymentBatchResult.model_validate(result)
