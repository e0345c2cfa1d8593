"""Advert slot booking service.

Sales reps submit adverts, admins approve them into shared daily time slots,
and a daily lifecycle sweep ages active adverts toward expiry.
"""

__all__: list[str] = []
