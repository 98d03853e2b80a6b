from __future__ import annotations

import io

from flask import Flask, g, request, send_file

from ..common.datetime_utils import now_local
from ..common.responses import error_response, fail, ok, request_data
from ..container import Container
from ..core.enums import LetterKind
from ..users.guards import admin_required, login_required, student_required
from .letters import build_letter
from .service import APPLICANT_FIELDS, application_to_dict


def register(app: Flask, container: Container) -> None:
    @app.route("/api/internships/<internship_id>/apply", methods=["POST"], endpoint="apply")
    @student_required
    def apply(internship_id: str):
        data = request_data()
        fields = {k: data.get(k, "") for k in APPLICANT_FIELDS if k in data}
        try:
            application = container.application_service.apply(g.auth_session.actor(), internship_id, fields)
            return ok("Application submitted successfully", 201, application=application_to_dict(application))
        except Exception as e:
            return error_response(e, "Failed to submit application")

    @app.route("/api/applications", methods=["GET"], endpoint="my_applications")
    @student_required
    def my_applications():
        try:
            actor = g.auth_session.actor()
            if request.args.get("approved"):
                items = container.application_service.list_approved(actor)
            else:
                items = container.application_service.list_mine(actor)
            return ok(applications=[application_to_dict(a) for a in items])
        except Exception as e:
            return error_response(e, "Failed to load applications")

    @app.route("/api/applications/<application_id>", methods=["GET"], endpoint="get_application")
    @login_required
    def get_application(application_id: str):
        try:
            application = container.application_service.get_for_actor(g.auth_session.actor(), application_id)
            return ok(application=application_to_dict(application))
        except Exception as e:
            return error_response(e, "Failed to load application")

    @app.route(
        "/api/applications/<application_id>/confirm-start-date",
        methods=["POST"],
        endpoint="confirm_start_date",
    )
    @student_required
    def confirm_start_date(application_id: str):
        data = request_data()
        try:
            application = container.application_service.confirm_start_date(
                g.auth_session.actor(), application_id, data.get("start_date") or ""
            )
            return ok("Start date confirmed", application=application_to_dict(application))
        except Exception as e:
            return error_response(e, "Failed to confirm start date")

    @app.route("/api/applications/<application_id>/letters/<kind>", methods=["GET"], endpoint="download_letter")
    @login_required
    def download_letter(application_id: str, kind: str):
        try:
            letter_kind = LetterKind(kind)
        except ValueError:
            return fail("Unknown letter type", 404)
        try:
            application = container.application_service.get_for_actor(g.auth_session.actor(), application_id)
            letter = build_letter(application, letter_kind, issued_on=now_local().date())
            return send_file(
                io.BytesIO(letter.as_text().encode("utf-8")),
                mimetype="text/plain",
                as_attachment=True,
                download_name=letter.filename,
            )
        except Exception as e:
            return error_response(e, "Failed to generate letter")

    @app.route("/api/admin/applications", methods=["GET"], endpoint="admin_applications")
    @admin_required
    def admin_applications():
        try:
            actor = g.auth_session.actor()
            items = container.application_service.list_for_admin(
                actor,
                status=request.args.get("status"),
                search=request.args.get("search", ""),
            )
            stats = container.application_service.stats_for_admin(actor)
            return ok(applications=[application_to_dict(a) for a in items], stats=stats)
        except Exception as e:
            return error_response(e, "Failed to load applications")

    @app.route("/api/admin/applications/<application_id>/view", methods=["POST"], endpoint="view_application")
    @admin_required
    def view_application(application_id: str):
        try:
            application = container.application_service.mark_viewed(g.auth_session.actor(), application_id)
            return ok("Application marked as viewed", application=application_to_dict(application))
        except Exception as e:
            return error_response(e, "Failed to update application")

    @app.route("/api/admin/applications/<application_id>/approve", methods=["POST"], endpoint="approve_application")
    @admin_required
    def approve_application(application_id: str):
        data = request_data()
        try:
            application = container.application_service.approve(
                g.auth_session.actor(), application_id, start_date=data.get("start_date")
            )
            return ok("Application approved", application=application_to_dict(application))
        except Exception as e:
            return error_response(e, "Failed to approve application")

    @app.route("/api/admin/applications/<application_id>/reject", methods=["POST"], endpoint="reject_application")
    @admin_required
    def reject_application(application_id: str):
        data = request_data()
        try:
            application = container.application_service.reject(
                g.auth_session.actor(), application_id, reason=data.get("reason", "")
            )
            return ok("Application rejected", application=application_to_dict(application))
        except Exception as e:
            return error_response(e, "Failed to reject application")
