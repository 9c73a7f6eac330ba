"""Normalisation applied to receipt payloads before they are sent."""

from __future__ import annotations

import re
from typing import Any, Mapping

NON_DIGITS = re.compile(r"[^0-9]")
TIN_PATTERN = re.compile(r"[0-9]{9}")
# CUSTIDTYPE value identifying a Taxpayer Identification Number.
CUSTID_TYPE_TIN = 1


def _is_tin_type(value: Any) -> bool:
    try:
        text = str(value).strip()
        return text.isascii() and float(text) == CUSTID_TYPE_TIN
    except (TypeError, ValueError):
        return False


def normalize_receipt_data(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with MOBILENUM and CUSTID cleaned up.

    MOBILENUM keeps digits only. A TIN-type CUSTID that is not exactly nine
    digits is blanked instead of rejected.
    """

    cleaned = dict(data)

    if cleaned.get("MOBILENUM") is not None:
        cleaned["MOBILENUM"] = NON_DIGITS.sub("", str(cleaned["MOBILENUM"]))

    custid = cleaned.get("CUSTID")
    if cleaned.get("CUSTIDTYPE") and _is_tin_type(cleaned["CUSTIDTYPE"]) and custid:
        if not TIN_PATTERN.fullmatch(str(custid)):
            cleaned["CUSTID"] = None

    return cleaned


__all__ = ["normalize_receipt_data"]
