from __future__ import annotations

from flask import Flask, g, request

from ..common.responses import error_response, ok, request_data
from ..container import Container
from ..users.guards import admin_required, student_required
from .service import task_update_to_dict


def register(app: Flask, container: Container) -> None:
    @app.route("/api/task-updates", methods=["POST"], endpoint="submit_task_update")
    @student_required
    def submit_task_update():
        data = request_data()
        try:
            task_update = container.task_update_service.submit(
                g.auth_session.actor(),
                internship_id=data.get("internship_id", ""),
                title=data.get("title", ""),
                details=data.get("details", ""),
                links=data.get("links", ""),
                hours=data.get("hours"),
                work_date=data.get("work_date"),
                notes=data.get("notes", ""),
            )
            return ok("Task update submitted", 201, task_update=task_update_to_dict(task_update))
        except Exception as e:
            return error_response(e, "Failed to submit task update")

    @app.route("/api/task-updates", methods=["GET"], endpoint="my_task_updates")
    @student_required
    def my_task_updates():
        try:
            items = container.task_update_service.list_mine(g.auth_session.actor())
            return ok(task_updates=[task_update_to_dict(t) for t in items])
        except Exception as e:
            return error_response(e, "Failed to load task updates")

    @app.route("/api/admin/task-updates", methods=["GET"], endpoint="admin_task_updates")
    @admin_required
    def admin_task_updates():
        try:
            items = container.task_update_service.list_for_admin(
                g.auth_session.actor(),
                status=request.args.get("status"),
                search=request.args.get("search", ""),
            )
            return ok(task_updates=[task_update_to_dict(t) for t in items])
        except Exception as e:
            return error_response(e, "Failed to load task updates")

    @app.route("/api/admin/task-updates/<task_update_id>/view", methods=["POST"], endpoint="view_task_update")
    @admin_required
    def view_task_update(task_update_id: str):
        try:
            task_update = container.task_update_service.mark_viewed(g.auth_session.actor(), task_update_id)
            return ok("Task update marked as viewed", task_update=task_update_to_dict(task_update))
        except Exception as e:
            return error_response(e, "Failed to update task update")

    @app.route("/api/admin/task-updates/<task_update_id>/approve", methods=["POST"], endpoint="approve_task_update")
    @admin_required
    def approve_task_update(task_update_id: str):
        try:
            task_update = container.task_update_service.approve(g.auth_session.actor(), task_update_id)
            return ok("Task update approved", task_update=task_update_to_dict(task_update))
        except Exception as e:
            return error_response(e, "Failed to approve task update")

    @app.route("/api/admin/task-updates/<task_update_id>/reject", methods=["POST"], endpoint="reject_task_update")
    @admin_required
    def reject_task_update(task_update_id: str):
        data = request_data()
        try:
            task_update = container.task_update_service.reject(
                g.auth_session.actor(), task_update_id, reason=data.get("reason", "")
            )
            return ok("Task update rejected", task_update=task_update_to_dict(task_update))
        except Exception as e:
            return error_response(e, "Failed to reject task update")
