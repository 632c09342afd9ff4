"""
Document views.
"""

import structlog
from django.db import transaction
from rest_framework import mixins, status, viewsets
from rest_framework.generics import get_object_or_404
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from apps.accounts.permissions import HasCapability, get_actor
from apps.accounts.roles import Capability
from apps.core.exceptions import PermissionDeniedError
from apps.storage.pinning import get_pinning_client
from apps.storage.tasks import unpin_file

from .models import Document
from .serializers import DocumentSerializer, DocumentUploadSerializer

logger = structlog.get_logger(__name__)


class DocumentViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    list: The patient's own documents, newest first
    create: Upload a file to the pinning service and record it
    destroy: Delete an own document and unpin its file in the background
    """

    serializer_class = DocumentSerializer
    permission_classes = [HasCapability]
    parser_classes = [MultiPartParser, FormParser, JSONParser]
    capability_map = {
        "list": Capability.UPLOAD_DOCUMENTS,
        "retrieve": Capability.UPLOAD_DOCUMENTS,
        "create": Capability.UPLOAD_DOCUMENTS,
        "destroy": Capability.UPLOAD_DOCUMENTS,
    }

    def get_queryset(self):
        return Document.objects.filter(owner_id=get_actor(self.request).id).order_by("-created_at")

    def create(self, request, *args, **kwargs):
        actor = get_actor(request)
        serializer = DocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        upload = data["file"]
        # upload first: no record without a pinned file
        result = get_pinning_client().pin_file(
            upload.read(),
            upload.name,
            metadata={"type": data["type"], "userId": str(actor.id)},
        )

        document = Document.objects.create(
            owner_id=actor.id,
            name=data["name"],
            type=data["type"],
            ipfs_hash=result.ipfs_hash,
            test_date=data.get("test_date"),
        )

        logger.info("document_uploaded", document_id=str(document.id), owner_id=str(actor.id), size=result.size)
        return Response(DocumentSerializer(document).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):
        document = get_object_or_404(Document, pk=pk)
        actor = get_actor(request)
        if str(document.owner_id) != str(actor.id):
            raise PermissionDeniedError(detail=["Only the owner can delete this document"])

        ipfs_hash = document.ipfs_hash
        with transaction.atomic():
            document.delete()
            transaction.on_commit(lambda: unpin_file.delay(ipfs_hash))

        logger.info("document_deleted", document_id=str(pk), owner_id=str(actor.id))
        return Response(status=status.HTTP_204_NO_CONTENT)
