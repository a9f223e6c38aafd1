from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..common.web import json_body, role_required
from ..container import Container
from ..core.enums import STAFF_ROLES


def register(app: Flask, container: Container) -> None:
    login_required = role_required(container.role_gate)
    staff_required = role_required(container.role_gate, *STAFF_ROLES)

    @app.route("/attendance/mark", methods=["POST"], endpoint="mark_attendance")
    @staff_required
    def mark_attendance():
        data = json_body()
        result = container.attendance_writer.mark_attendance(
            g.actor,
            student_id=data.get("student_id"),
            day=data.get("date"),
            status=data.get("status"),
        )
        return (
            jsonify(
                {
                    "success": True,
                    "created": result.created,
                    "record": {
                        "id": result.record_id,
                        "student_id": result.student_id,
                        "date": result.day.isoformat(),
                        "status": result.status.value,
                    },
                }
            ),
            201 if result.created else 200,
        )

    @app.route("/attendance/roll-call", methods=["POST"], endpoint="roll_call")
    @staff_required
    def roll_call():
        data = json_body()
        marks = data.get("marks")
        if not isinstance(marks, list) or not all(isinstance(m, dict) for m in marks):
            return jsonify({"success": False, "message": "marks must be a list of objects"}), 400

        results = container.attendance_writer.mark_many(g.actor, day=data.get("date"), marks=marks)
        return jsonify(
            {
                "success": True,
                "created": sum(1 for r in results if r.created),
                "updated": sum(1 for r in results if not r.created),
            }
        )

    @app.route("/attendance", methods=["GET"], endpoint="attendance_range")
    @login_required
    def attendance_range():
        records = container.attendance_reader.query_range(
            g.actor,
            date_from=request.args.get("from"),
            date_to=request.args.get("to"),
            student_id=request.args.get("student_id") or None,
        )
        return jsonify({"success": True, "records": [r.to_dict() for r in records]})

    @app.route("/attendance/day/<day>", methods=["GET"], endpoint="attendance_day")
    @staff_required
    def attendance_day(day: str):
        data = container.report_service.daily_counts(g.actor, day=day)
        return jsonify({"success": True, "rows": data.rows, "summary": data.summary})
