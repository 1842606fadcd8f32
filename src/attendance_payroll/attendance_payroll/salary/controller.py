from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import parse_iso_date
from ..common.web import admin_required, company_today, current_company_id, json_body
from ..core.exceptions import RecordNotFound, ValidationError


def register(app: Flask, container) -> None:
    service = container.salary_service

    def ensure_same_company(user_id: int) -> None:
        member = container.staff_repo.get_by_id(user_id)
        if not member or member.company_id != current_company_id():
            raise RecordNotFound("Staff member not found")

    def optional_date(value, field_name: str):
        if value in (None, ""):
            return None
        try:
            return parse_iso_date(str(value))
        except ValueError:
            raise ValidationError(f"{field_name} must be YYYY-MM-DD")

    @app.route("/api/admin/salary/<int:user_id>", methods=["GET"], endpoint="admin_salary_get")
    @admin_required
    def get_salary(user_id: int):
        ensure_same_company(user_id)
        current = service.get_current(user_id)
        return jsonify(
            {
                "current": current.to_dict() if current else None,
                "history": [c.to_dict() for c in service.list_history(user_id)],
            }
        )

    @app.route("/api/admin/salary/<int:user_id>", methods=["PUT"], endpoint="admin_salary_save")
    @admin_required
    def save_salary(user_id: int):
        ensure_same_company(user_id)
        data = json_body()
        config = service.save_config(
            user_id=user_id,
            salary_type=data.get("salaryType"),
            working_days_target=data.get("workingDaysTarget"),
            base_salary=data.get("baseSalary"),
            hourly_rate=data.get("hourlyRate"),
            daily_rate=data.get("dailyRate"),
            overtime_rate=data.get("overtimeRate"),
            pf_esi_applicable=bool(data.get("pfEsiApplicable", False)),
            joining_date=optional_date(data.get("joiningDate"), "joiningDate"),
            effective_from=optional_date(data.get("effectiveFrom"), "effectiveFrom"),
            today=company_today(container),
        )
        return jsonify({"success": True, "salary": config.to_dict()})
