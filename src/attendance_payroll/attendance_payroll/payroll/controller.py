from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import (
    admin_required,
    company_today,
    current_company_id,
    current_user_id,
    json_body,
    login_required,
)
from ..core.enums import LedgerEntryType
from ..core.exceptions import RecordNotFound, ValidationError


def _period_args(container) -> tuple[int, int]:
    today = company_today(container)
    year = request.args.get("year", type=int) or today.year
    month = request.args.get("month", type=int) or today.month
    return year, month


def register(app: Flask, container) -> None:
    service = container.payroll_service

    def ensure_same_company(user_id: int) -> None:
        member = container.staff_repo.get_by_id(user_id)
        if not member or member.company_id != current_company_id():
            raise RecordNotFound("Staff member not found")

    @app.route("/api/payroll/me", methods=["GET"], endpoint="payroll_me")
    @login_required
    def my_payroll():
        year, month = _period_args(container)
        return jsonify({"payroll": service.compute_monthly_payroll(current_user_id(), year, month).to_dict()})

    @app.route("/api/admin/payroll/<int:user_id>", methods=["GET"], endpoint="admin_payroll_user")
    @admin_required
    def user_payroll(user_id: int):
        ensure_same_company(user_id)
        year, month = _period_args(container)
        return jsonify({"payroll": service.compute_monthly_payroll(user_id, year, month).to_dict()})

    @app.route("/api/admin/payroll/generate", methods=["POST"], endpoint="admin_payroll_generate")
    @admin_required
    def generate():
        data = json_body()
        try:
            year, month = int(data.get("year")), int(data.get("month"))
        except (TypeError, ValueError):
            raise ValidationError("year and month are required")
        batch = service.compute_company_month(current_company_id(), year, month)
        return jsonify(
            {
                "success": True,
                "results": [r.to_dict() for r in batch.results],
                "errors": [{"userId": uid, "message": msg} for uid, msg in sorted(batch.errors.items())],
            }
        )

    @app.route("/api/admin/payroll/<int:user_id>/ledger", methods=["POST"], endpoint="admin_payroll_ledger")
    @admin_required
    def add_ledger_entry(user_id: int):
        ensure_same_company(user_id)
        data = json_body()
        try:
            entry_type = LedgerEntryType(str(data.get("type", "")).upper())
        except ValueError:
            raise ValidationError("type must be PAYMENT, DEDUCTION or RECOVERY")
        try:
            year, month = int(data.get("year")), int(data.get("month"))
            entry_date = parse_iso_date(str(data["date"])) if data.get("date") else company_today(container)
        except (TypeError, ValueError):
            raise ValidationError("year, month and date (YYYY-MM-DD) must be valid")
        entry = service.record_ledger_entry(
            user_id=user_id,
            year=year,
            month=month,
            entry_type=entry_type,
            amount=data.get("amount"),
            entry_date=entry_date,
            description=data.get("description") or "",
            created_by=current_user_id(),
        )
        return jsonify({"success": True, "entry": entry.to_dict()}), 201
