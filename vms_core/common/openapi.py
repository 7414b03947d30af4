# vms_core/common/openapi.py
from __future__ import annotations

from drf_spectacular.openapi import AutoSchema
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter

DEVICE_HEADER = "X-Device-Id"


def device_id_from_request(request) -> str:
    """
    Device identity for alert de-duplication markers.
    Falls back to the session key, then to a per-user id, so callers always get a value.
    """
    raw = (request.headers.get(DEVICE_HEADER) or "").strip()
    if raw:
        return raw[:128]

    session = getattr(request, "session", None)
    session_key = getattr(session, "session_key", None) if session is not None else None
    if session_key:
        return f"session:{session_key}"

    return f"user:{getattr(request.user, 'pk', 'anonymous')}"


class VMSAutoSchema(AutoSchema):
    """
    Global OpenAPI additions:
    - optional X-Request-Id on every operation (echoed in error envelopes)
    - X-Device-Id on views that de-duplicate alerts per device
    """

    REQUEST_ID_HEADER = OpenApiParameter(
        name="X-Request-Id",
        type=OpenApiTypes.STR,
        location=OpenApiParameter.HEADER,
        required=False,
        description="Optional correlation id; returned as error.request_id on failures.",
    )

    DEVICE_ID_HEADER = OpenApiParameter(
        name=DEVICE_HEADER,
        type=OpenApiTypes.STR,
        location=OpenApiParameter.HEADER,
        required=False,
        description="Stable id of the browser/device; used to de-duplicate reminder expiry alerts.",
    )

    def _uses_device_header(self) -> bool:
        view = getattr(self, "view", None)
        if view is None:
            return False
        actions = getattr(view, "device_header_actions", ())
        return getattr(view, "action", None) in actions

    def get_override_parameters(self):
        params = list(super().get_override_parameters() or [])
        existing = {p.name.lower() for p in params if hasattr(p, "name")}

        if self.REQUEST_ID_HEADER.name.lower() not in existing:
            params.append(self.REQUEST_ID_HEADER)

        if self._uses_device_header() and DEVICE_HEADER.lower() not in existing:
            params.append(self.DEVICE_ID_HEADER)

        return params
