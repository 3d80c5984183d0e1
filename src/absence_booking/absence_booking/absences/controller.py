from __future__ import annotations

from functools import wraps

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import parse_iso_date
from ..core.constants import DEFAULT_RETRY_AFTER_SECONDS
from ..core.enums import AbsenceStatus
from ..core.exceptions import DomainError, UnauthorizedError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.absence_service

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                raise UnauthorizedError("Please log in to continue")
            return view(*args, **kwargs)

        return wrapper

    def _current():
        return session.get("organization_id"), str(session["user_id"])

    def _json_body() -> dict:
        data = request.get_json(silent=True)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    def _parse_status(value):
        if not value:
            return None
        try:
            return AbsenceStatus(value.upper())
        except ValueError:
            raise ValidationError(f"Unknown status: {value}")

    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        response = jsonify({"error": exc.to_dict()})
        response.status_code = exc.http_status
        if exc.retryable:
            response.headers["Retry-After"] = str(DEFAULT_RETRY_AFTER_SECONDS)
        return response

    @app.route("/api/absences", methods=["POST"], endpoint="create_absence")
    @login_required
    def create_absence():
        org, user_id = _current()
        data = _json_body()
        record = service.create_absence(
            organization_id=org,
            user_id=user_id,
            start_date=parse_iso_date(data.get("start_date") or ""),
            end_date=parse_iso_date(data.get("end_date") or ""),
            reason=data.get("reason") or "",
        )
        return jsonify(record.to_dict()), 201

    @app.route("/api/absences/<absence_id>/approve", methods=["POST"], endpoint="approve_absence")
    @login_required
    def approve_absence(absence_id: str):
        org, user_id = _current()
        record = service.approve_absence(organization_id=org, absence_id=absence_id, approver_id=user_id)
        return jsonify(record.to_dict())

    @app.route("/api/absences/<absence_id>/reject", methods=["POST"], endpoint="reject_absence")
    @login_required
    def reject_absence(absence_id: str):
        org, user_id = _current()
        record = service.reject_absence(organization_id=org, absence_id=absence_id, rejector_id=user_id)
        return jsonify(record.to_dict())

    @app.route("/api/absences/bulk-approve", methods=["POST"], endpoint="bulk_approve_absences")
    @login_required
    def bulk_approve_absences():
        org, user_id = _current()
        ids = _json_body().get("absence_ids") or []
        if not isinstance(ids, list):
            raise ValidationError("absence_ids must be a list")
        count = service.bulk_approve(organization_id=org, absence_ids=[str(i) for i in ids], approver_id=user_id)
        return jsonify({"count": count, "message": f"Successfully approved {count} absence request(s)"})

    @app.route("/api/absences/<absence_id>", methods=["DELETE"], endpoint="delete_absence")
    @login_required
    def delete_absence(absence_id: str):
        org, user_id = _current()
        service.delete_absence(organization_id=org, absence_id=absence_id, requester_id=user_id)
        return "", 204

    @app.route("/api/absences/mine", methods=["GET"], endpoint="my_absences")
    @login_required
    def my_absences():
        org, user_id = _current()
        records = service.list_for_user(organization_id=org, actor_id=user_id, target_user_id=user_id)
        return jsonify([r.to_dict() for r in records])

    @app.route("/api/users/<target_user_id>/absences", methods=["GET"], endpoint="user_absences")
    @login_required
    def user_absences(target_user_id: str):
        org, user_id = _current()
        records = service.list_for_user(
            organization_id=org,
            actor_id=user_id,
            target_user_id=target_user_id,
            status=_parse_status(request.args.get("status")),
        )
        return jsonify([r.to_dict() for r in records])

    @app.route("/api/users/<target_user_id>/absences/statistics", methods=["GET"], endpoint="absence_statistics")
    @login_required
    def absence_statistics(target_user_id: str):
        org, user_id = _current()
        stats = service.get_statistics(organization_id=org, user_id=target_user_id, actor_id=user_id)
        return jsonify(stats.to_dict())

    @app.route("/api/absences", methods=["GET"], endpoint="all_absences")
    @login_required
    def all_absences():
        org, user_id = _current()
        records, total = service.list_all(
            organization_id=org,
            actor_id=user_id,
            status=_parse_status(request.args.get("status")),
            department=request.args.get("department") or None,
            skip=request.args.get("skip", 0, type=int),
            take=request.args.get("take", 50, type=int),
        )
        return jsonify({"absences": [r.to_dict() for r in records], "total": total})

    @app.route("/api/absences/upcoming", methods=["GET"], endpoint="upcoming_absences")
    @login_required
    def upcoming_absences():
        org, _ = _current()
        records = service.list_upcoming(organization_id=org, limit=request.args.get("limit", type=int))
        return jsonify([r.to_dict() for r in records])
