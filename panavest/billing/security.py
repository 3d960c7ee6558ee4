import hashlib
import hmac

SIGNATURE_HEADER = "x-paystack-signature"


def compute_paystack_signature(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), payload, hashlib.sha512).hexdigest()


def verify_paystack_signature(payload: bytes, signature: str, secret: str) -> bool:
    """
    Paystack signs the raw request body with HMAC-SHA512 keyed by the
    account secret. `payload` must be the bytes exactly as received.
    """
    if not secret or not signature:
        return False
    computed = compute_paystack_signature(payload, secret)
    supplied = signature.strip().lower().encode("utf-8", "replace")
    return hmac.compare_digest(computed.encode(), supplied)
