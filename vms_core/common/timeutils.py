# vms_core/common/timeutils.py
from __future__ import annotations

from datetime import date
from typing import Optional

from django.utils.dateparse import parse_date


def parse_date_param(value: Optional[str], field_name: str) -> Optional[date]:
    if not value:
        return None
    d = parse_date(value.strip())
    if d is None:
        raise ValueError(f"{field_name} is invalid. Use YYYY-MM-DD.")
    return d
