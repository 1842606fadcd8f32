from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import admin_required, company_today, current_company_id
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from .model import ReportFilters


def register(app: Flask, container) -> None:
    service = container.report_service

    @app.route("/api/admin/reports/attendance", methods=["GET"], endpoint="admin_report_attendance")
    @admin_required
    def attendance_report():
        today = company_today(container)
        try:
            start = parse_iso_date(request.args.get("start") or (today - timedelta(days=6)).isoformat())
            end = parse_iso_date(request.args.get("end") or today.isoformat())
        except ValueError:
            raise ValidationError("start and end must be YYYY-MM-DD")

        status = request.args.get("status")
        try:
            status_filter = AttendanceStatus(status.upper()) if status else None
        except ValueError:
            raise ValidationError("Unknown attendance status")

        filters = ReportFilters(
            user_id=request.args.get("user_id", type=int),
            status=status_filter,
            distinguish_no_record=request.args.get("distinguish_no_record", "").lower() in ("1", "true", "yes"),
        )
        report = service.get_attendance_report(current_company_id(), start, end, filters)
        return jsonify(report.to_dict())

    @app.route("/api/admin/reports/salary", methods=["GET"], endpoint="admin_report_salary")
    @admin_required
    def salary_report():
        today = company_today(container)
        year = request.args.get("year", type=int) or today.year
        month = request.args.get("month", type=int) or today.month
        report = service.build_salary_summary(current_company_id(), year, month)
        return jsonify(
            {
                "year": report.year,
                "month": report.month,
                "summary": report.totals,
                "rows": report.rows,
                "errors": [{"userId": uid, "message": msg} for uid, msg in sorted(report.errors.items())],
            }
        )
