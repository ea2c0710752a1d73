# SPDX-License-Identifier: Apache-2.0

"""
Complaint confirmation endpoints.

Citizens read a complaint with its confirmation affordances, accept the
latest administrative change, or reject it by resubmitting fresh evidence.
Evidence objects are served publicly by key.
"""

from flask import Blueprint, Response, request, jsonify, current_app, g
from opentelemetry import trace
import logging

from domain.errors import NotFoundException, ValidationException
from middleware.auth import require_auth
from models.entities import Complaint, Coordinate, EvidenceCandidate
from models.enums import LocationPermission
from models.requests import RejectComplaintForm
from services.geo import ReportedLocationProvider
from services.lifecycle import LifecycleEngine

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

complaints_bp = Blueprint('complaints', __name__, url_prefix='/api/complaints')
evidence_bp = Blueprint('evidence', __name__, url_prefix='/api/evidence')


def _citizen_engine() -> LifecycleEngine:
    """Lifecycle engine for the authenticated citizen, built once per request."""
    if 'lifecycle_engine' not in g:
        g.lifecycle_engine = current_app.engine_factory()
    return g.lifecycle_engine


async def _load_owned_complaint(complaint_id: str) -> Complaint:
    """Refresh a complaint through the engine; other citizens' rows are not found."""
    complaint = await _citizen_engine().refresh(complaint_id)
    if complaint is None or complaint.owner_id != g.citizen.citizen_id:
        raise NotFoundException(f"Complaint {complaint_id} not found")
    return complaint


def _read_evidence() -> EvidenceCandidate:
    """Evidence candidate and location provider inputs from the multipart body."""
    image = request.files.get('image')
    if image is None:
        raise ValidationException(
            "An evidence image is required",
            [{"field": "image", "message": "Field required"}]
        )

    content = image.read()
    if not content:
        raise ValidationException(
            "The evidence image is empty",
            [{"field": "image", "message": "File is empty"}]
        )

    form = RejectComplaintForm.model_validate(request.form.to_dict())
    g.reject_form = form
    return EvidenceCandidate(
        content=content,
        content_type=image.mimetype or 'image/jpeg',
        filename=image.filename,
        metadata=form.metadata
    )


def _location_provider(form: RejectComplaintForm) -> ReportedLocationProvider:
    position = None
    if form.latitude is not None and form.longitude is not None:
        position = Coordinate(latitude=form.latitude, longitude=form.longitude)
    return ReportedLocationProvider(
        permission_granted=form.location_permission == LocationPermission.GRANTED,
        position=position
    )


@complaints_bp.get('/<complaint_id>')
@require_auth
async def get_complaint(complaint_id: str):
    """Complaint detail with accept/reject links while a confirmation is due."""
    with tracer.start_as_current_span(
        "complaint.get",
        attributes={"complaint.id": complaint_id, "citizen.id": g.citizen.citizen_id}
    ):
        complaint = await _load_owned_complaint(complaint_id)
        engine = _citizen_engine()
        return jsonify(current_app.hal_formatter.format_complaint(complaint, engine.clock()))


@complaints_bp.post('/<complaint_id>/accept')
@require_auth
async def accept_complaint(complaint_id: str):
    """
    Accept the latest status change.

    Only the acknowledgment stamp is written; the status stays as the
    administration set it.
    """
    with tracer.start_as_current_span(
        "complaint.accept",
        attributes={"complaint.id": complaint_id, "citizen.id": g.citizen.citizen_id}
    ):
        await _load_owned_complaint(complaint_id)
        engine = _citizen_engine()
        complaint = await engine.accept(complaint_id)

        logger.info(
            "Citizen accepted complaint status",
            extra={"complaint_id": complaint_id, "citizen_id": g.citizen.citizen_id, "status": complaint.status}
        )
        return jsonify(current_app.hal_formatter.format_complaint(complaint, engine.clock()))


@complaints_bp.post('/<complaint_id>/reject')
@require_auth
async def reject_complaint(complaint_id: str):
    """
    Reject the latest status change and resubmit evidence.

    Expects multipart form data with an ``image`` file and optional
    ``metadata``, ``locationPermission``, ``latitude`` and ``longitude``
    fields. On success the complaint is back to pending with the new photo
    and location.
    """
    with tracer.start_as_current_span(
        "complaint.reject",
        attributes={"complaint.id": complaint_id, "citizen.id": g.citizen.citizen_id}
    ) as span:
        evidence = _read_evidence()
        provider = _location_provider(g.reject_form)
        span.set_attributes({
            "evidence.size": len(evidence.content),
            "evidence.has_metadata": evidence.metadata is not None
        })

        await _load_owned_complaint(complaint_id)
        engine = _citizen_engine()
        resubmission = await engine.reject(complaint_id, evidence, provider)

        logger.info(
            "Citizen rejected complaint status and resubmitted evidence",
            extra={
                "complaint_id": complaint_id,
                "citizen_id": g.citizen.citizen_id,
                "evidence_key": resubmission.evidence_key
            }
        )
        return jsonify(current_app.hal_formatter.format_resubmission(resubmission, engine.clock()))


@evidence_bp.get('/<path:key>')
async def download_evidence(key: str):
    """Public evidence object."""
    with tracer.start_as_current_span("evidence.download", attributes={"storage.key": key}):
        data, content_type = await current_app.evidence_storage.download(key)
        return Response(
            data,
            mimetype=content_type,
            headers={"Cache-Control": "public, max-age=86400"}
        )
