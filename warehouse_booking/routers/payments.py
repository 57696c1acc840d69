from fastapi import APIRouter, Depends, status

from ..schemas.payment import PaymentCreate, PaymentResponse, PaymentUpdate
from ..services.payment_service import PaymentService
from ..utils.dependencies import get_current_user_id, get_payment_service
from ..utils.http_errors import unwrap

router = APIRouter(prefix="/api/payments", tags=["Payments"])


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def record_payment(
    payment_data: PaymentCreate,
    user_id: str = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    """Record a payment against one of the caller's bookings"""
    payment = unwrap(service.record_payment(
        owner_id=user_id,
        booking_id=payment_data.booking_id,
        amount=payment_data.amount,
        method=payment_data.payment_method,
        transaction_id=payment_data.transaction_id,
        notes=payment_data.notes,
    ))
    return PaymentResponse.model_validate(payment)


@router.put("/{payment_id}", response_model=PaymentResponse)
def update_payment(
    payment_id: str,
    payment_data: PaymentUpdate,
    user_id: str = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    payment = unwrap(service.update_payment(
        owner_id=user_id,
        payment_id=payment_id,
        status=payment_data.status,
        transaction_id=payment_data.transaction_id,
        notes=payment_data.notes,
    ))
    return PaymentResponse.model_validate(payment)


@router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment(
    payment_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    payment = unwrap(service.get_payment(owner_id=user_id, payment_id=payment_id))
    return PaymentResponse.model_validate(payment)
