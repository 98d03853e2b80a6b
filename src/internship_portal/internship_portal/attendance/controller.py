from __future__ import annotations

from flask import Flask, g, request

from ..common.responses import error_response, ok, request_data
from ..container import Container
from ..users.guards import admin_required, student_required
from .service import entry_to_dict


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/punch-in", methods=["POST"], endpoint="punch_in")
    @student_required
    def punch_in():
        data = request_data()
        try:
            entry = container.attendance_service.punch_in(g.auth_session.actor(), data.get("internship_id", ""))
            return ok("Punched in", 201, entry=entry_to_dict(entry))
        except Exception as e:
            return error_response(e, "Failed to punch in")

    @app.route("/api/attendance/punch-out", methods=["POST"], endpoint="punch_out")
    @student_required
    def punch_out():
        data = request_data()
        try:
            entry = container.attendance_service.punch_out(
                g.auth_session.actor(), internship_id=data.get("internship_id") or None
            )
            return ok("Punched out", entry=entry_to_dict(entry))
        except Exception as e:
            return error_response(e, "Failed to punch out")

    @app.route("/api/attendance", methods=["GET"], endpoint="my_attendance")
    @student_required
    def my_attendance():
        try:
            actor = g.auth_session.actor()
            internship_id = request.args.get("internship_id") or None
            items = container.attendance_service.list_mine(actor, internship_id)
            active = container.attendance_service.get_active(actor, internship_id)
            return ok(
                entries=[entry_to_dict(e) for e in items],
                active=entry_to_dict(active) if active else None,
            )
        except Exception as e:
            return error_response(e, "Failed to load attendance")

    @app.route("/api/admin/attendance", methods=["GET"], endpoint="admin_attendance")
    @admin_required
    def admin_attendance():
        try:
            items = container.attendance_service.list_for_admin(
                g.auth_session.actor(),
                status=request.args.get("status"),
                search=request.args.get("search", ""),
            )
            return ok(entries=[entry_to_dict(e) for e in items])
        except Exception as e:
            return error_response(e, "Failed to load attendance")

    @app.route("/api/admin/attendance/<attendance_id>/approve", methods=["POST"], endpoint="approve_attendance")
    @admin_required
    def approve_attendance(attendance_id: str):
        try:
            entry = container.attendance_service.approve(g.auth_session.actor(), attendance_id)
            return ok("Attendance approved", entry=entry_to_dict(entry))
        except Exception as e:
            return error_response(e, "Failed to approve attendance")

    @app.route("/api/admin/attendance/<attendance_id>/reject", methods=["POST"], endpoint="reject_attendance")
    @admin_required
    def reject_attendance(attendance_id: str):
        data = request_data()
        try:
            entry = container.attendance_service.reject(
                g.auth_session.actor(), attendance_id, reason=data.get("reason", "")
            )
            return ok("Attendance rejected", entry=entry_to_dict(entry))
        except Exception as e:
            return error_response(e, "Failed to reject attendance")
