from panavest.models.enrollment import Enrollment
from panavest.models.ebook_purchase import EbookPurchase
from panavest.models.payment import Payment

__all__ = ["Enrollment", "EbookPurchase", "Payment"]
