"""
Addresses handed to the UI for an event. The QR code shown to guests is
rendered elsewhere from the absolute link built here.
"""
from urllib.parse import quote


def selfie_upload_path(event_id):
    return f"/upload_selfie/{quote(str(event_id), safe='')}"


def gallery_path(event_id):
    return f"/view-event/{quote(str(event_id), safe='')}"


def absolute_link(origin, path):
    return f"{origin.rstrip('/')}/{path.lstrip('/')}"
