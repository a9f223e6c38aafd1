from __future__ import annotations

import csv
import io
from datetime import timedelta

from flask import Flask, g, jsonify, request

from ..common.datetime_utils import parse_iso_date, today_utc
from ..common.web import role_required
from ..container import Container
from ..core.constants import DEFAULT_REPORT_DAYS
from ..core.enums import STAFF_ROLES, Role
from ..core.exceptions import ValidationError

CSV_FIELDS = [
    "student_id",
    "name",
    "enrollment_id",
    "present_days",
    "late_days",
    "absent_days",
    "total_days",
    "attendance_percentage",
]


def register(app: Flask, container: Container) -> None:
    login_required = role_required(container.role_gate)
    student_required = role_required(container.role_gate, Role.STUDENT)
    staff_required = role_required(container.role_gate, *STAFF_ROLES)

    def _int_arg(name: str, default: int) -> int:
        raw = request.args.get(name)
        if raw is None or raw == "":
            return default
        try:
            return int(raw)
        except ValueError:
            raise ValidationError(f"{name} must be a number")

    def _range_args():
        today = today_utc()
        start_s = request.args.get("from") or (today - timedelta(days=DEFAULT_REPORT_DAYS)).isoformat()
        end_s = request.args.get("to") or today.isoformat()
        return parse_iso_date(start_s), parse_iso_date(end_s)

    @app.route("/reports/me", methods=["GET"], endpoint="my_report")
    @student_required
    def my_report():
        today = today_utc()
        year = _int_arg("year", today.year)
        month = _int_arg("month", today.month)
        report = container.report_service.monthly_summary(g.actor, year=year, month=month)
        return jsonify({"success": True, "report": report.to_dict()})

    @app.route("/reports/students/<student_id>", methods=["GET"], endpoint="student_report")
    @login_required
    def student_report(student_id: str):
        start, end = _range_args()
        report = container.report_service.student_summary(g.actor, student_id=student_id, date_from=start, date_to=end)
        return jsonify({"success": True, "report": report.to_dict()})

    @app.route("/reports/class", methods=["GET"], endpoint="class_report")
    @staff_required
    def class_report():
        start, end = _range_args()
        data = container.report_service.class_report(g.actor, date_from=start, date_to=end)
        return jsonify({"success": True, "rows": data.rows, "summary": data.summary})

    @app.route("/reports/class.csv", methods=["GET"], endpoint="class_report_csv")
    @staff_required
    def class_report_csv():
        start, end = _range_args()
        data = container.report_service.class_report(g.actor, date_from=start, date_to=end)

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        filename = f"attendance_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return app.response_class(
            out.getvalue().encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
