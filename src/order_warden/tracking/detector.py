"""Carrier detection based on tracking number format."""

from __future__ import annotations

import re

DEFAULT_CARRIER = "usps"

_UPS = re.compile(r"^1Z[0-9A-Z]{16}$")
_USPS_LONG = re.compile(r"^\d{20,22}$")
_USPS_PREFIXED = re.compile(r"^(?:94|92|93|95|42)\d{16,}$")
_FEDEX = re.compile(r"^\d{12,14}$")

_TRACKING_URLS = {
    "usps": "https://tools.usps.com/go/TrackConfirmAction?tLabels={number}",
    "ups": "https://www.ups.com/track?tracknum={number}",
    "fedex": "https://www.fedex.com/fedextrack/?trknbr={number}",
    "dhl": "https://www.dhl.com/us-en/home/tracking/tracking-express.html?submit=1&tracking-id={number}",
}


def normalize_tracking_number(tracking_number: str) -> str:
    """Remove spaces, dashes and dots, and uppercase."""
    return re.sub(r"[\s\-.]", "", tracking_number).upper()


def detect_carrier(tracking_number: str) -> str:
    """Guess the carrier slug from the shape of a tracking number.

    Rules are checked in order and the first match wins. A 22-digit number
    matches the USPS rule before FedEx is considered. Anything unrecognized
    resolves to USPS rather than "unknown".
    """
    value = normalize_tracking_number(tracking_number)

    if _UPS.match(value):
        return "ups"
    if _USPS_LONG.match(value) or _USPS_PREFIXED.match(value):
        return "usps"
    if _FEDEX.match(value):
        return "fedex"
    return DEFAULT_CARRIER


def tracking_url(carrier: str, tracking_number: str) -> str | None:
    """Public tracking page for a carrier, if one is known."""
    template = _TRACKING_URLS.get((carrier or "").lower())
    if template is None:
        return None
    return template.format(number=tracking_number.strip())
