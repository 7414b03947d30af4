# vms_core/iam/api/me.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from vms_core.iam.claims import claims_for_user, display_name_for


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["IAM"])
    def get(self, request):
        """
        Signed-in user + the claims the API enforces (role, branch).
        """
        user = request.user
        claims = claims_for_user(user)

        return Response(
            {
                "user": {
                    "id": user.id,
                    "username": getattr(user, "username", None),
                    "email": getattr(user, "email", None),
                    "display_name": display_name_for(user),
                    "is_superuser": bool(getattr(user, "is_superuser", False)),
                },
                "claims": {
                    "role": claims.role if claims else None,
                    "branch_code": claims.branch_code if claims else None,
                },
            },
            status=status.HTTP_200_OK,
        )
