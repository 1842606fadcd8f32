from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import (
    admin_required,
    current_company_id,
    current_user_id,
    json_body,
    login_required,
    staff_required,
)
from ..core.enums import ApprovalDecision
from ..core.exceptions import RecordNotFound, ValidationError
from .model import AttendanceRecord
from .validator import parse_direction


def register(app: Flask, container) -> None:
    service = container.attendance_service

    def scoped_record(attendance_id: int) -> AttendanceRecord:
        record = service.get_record(attendance_id)
        if record.company_id != current_company_id():
            raise RecordNotFound("Attendance record not found")
        return record

    @app.route("/api/attendance/validate", methods=["POST"], endpoint="attendance_validate")
    @staff_required
    def validate_punch():
        data = json_body()
        direction = parse_direction(data.get("type"))
        result = service.validate_punch(current_user_id(), direction)
        return jsonify(result.to_dict()), 200 if result.ok else 400

    @app.route("/api/attendance/punch", methods=["POST"], endpoint="attendance_punch")
    @staff_required
    def commit_punch():
        data = json_body()
        direction = parse_direction(data.get("type"))
        record = service.commit_punch(
            current_user_id(),
            direction,
            data.get("photo"),
            data.get("validationToken"),
        )
        return jsonify({"success": True, "attendance": record.to_dict()}), 201

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def today():
        record = service.get_today_record(current_user_id())
        return jsonify({"attendance": record.to_dict() if record else None})

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def history():
        limit = request.args.get("limit", type=int) or 30
        return jsonify({"rows": service.get_history_ui(current_user_id(), limit=max(1, min(limit, 366)))})

    @app.route("/api/admin/attendance/<int:attendance_id>", methods=["GET"], endpoint="admin_attendance_get")
    @admin_required
    def get_record(attendance_id: int):
        return jsonify({"attendance": scoped_record(attendance_id).to_dict()})

    @app.route("/api/admin/attendance/<int:attendance_id>/approval", methods=["POST"], endpoint="admin_attendance_approval")
    @admin_required
    def set_approval(attendance_id: int):
        data = json_body()
        try:
            decision = ApprovalDecision(str(data.get("decision", "")).upper())
        except ValueError:
            raise ValidationError("decision must be APPROVE or REJECT")
        scoped_record(attendance_id)
        record = service.set_approval(attendance_id, decision, current_user_id(), reason=data.get("reason"))
        return jsonify({"success": True, "attendance": record.to_dict()})

    @app.route("/api/admin/attendance/<int:attendance_id>", methods=["PATCH"], endpoint="admin_attendance_override")
    @admin_required
    def override(attendance_id: int):
        data = json_body()
        fields = data.get("fields") or {}
        if not isinstance(fields, dict):
            raise ValidationError("fields must be an object")
        scoped_record(attendance_id)
        record = service.override_fields(attendance_id, fields, data.get("reason"), current_user_id())
        return jsonify({"success": True, "attendance": record.to_dict()})

    @app.route("/api/admin/attendance/leave", methods=["POST"], endpoint="admin_attendance_leave")
    @admin_required
    def mark_leave():
        data = json_body()
        try:
            user_id = int(data.get("userId"))
            day = parse_iso_date(str(data.get("date")))
        except (TypeError, ValueError):
            raise ValidationError("userId and date (YYYY-MM-DD) are required")
        staff = container.staff_repo.get_by_id(user_id)
        if not staff or staff.company_id != current_company_id():
            raise RecordNotFound("Staff member not found")
        record = service.mark_leave(user_id, day, current_user_id(), reason=data.get("reason"))
        return jsonify({"success": True, "attendance": record.to_dict()})

    @app.route("/api/admin/attendance/<int:attendance_id>/audit", methods=["GET"], endpoint="admin_attendance_audit")
    @admin_required
    def audit_trail(attendance_id: int):
        scoped_record(attendance_id)
        entries = service.get_audit_trail(attendance_id)
        return jsonify(
            {
                "entries": [
                    {
                        "action": e.action.value,
                        "actorId": e.actor_id,
                        "fromStatus": e.from_status.value if e.from_status else None,
                        "toStatus": e.to_status.value if e.to_status else None,
                        "meta": e.meta,
                        "createdAt": e.created_at.isoformat(),
                    }
                    for e in entries
                ]
            }
        )
