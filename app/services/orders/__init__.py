from .checkout import CheckoutService
from .reconciler import PaymentReconciler, ReconcileResult, confirmation_email_kwargs

__all__ = [
    "CheckoutService",
    "PaymentReconciler",
    "ReconcileResult",
    "confirmation_email_kwargs",
]
