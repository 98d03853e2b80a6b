from __future__ import annotations

from flask import Flask, g, request

from ..common.responses import error_response, ok, request_data
from ..container import Container
from ..users.guards import admin_required
from .service import internship_to_dict


def register(app: Flask, container: Container) -> None:
    @app.route("/api/internships", methods=["GET"], endpoint="browse_internships")
    def browse_internships():
        try:
            items = container.internship_service.browse(
                search=request.args.get("search", ""),
                location=request.args.get("location", ""),
                type=request.args.get("type", ""),
            )
            return ok(internships=[internship_to_dict(i) for i in items])
        except Exception as e:
            return error_response(e, "Failed to load internships")

    @app.route("/api/internships/<internship_id>", methods=["GET"], endpoint="get_internship")
    def get_internship(internship_id: str):
        try:
            return ok(internship=internship_to_dict(container.internship_service.get(internship_id)))
        except Exception as e:
            return error_response(e, "Failed to load internship")

    @app.route("/api/admin/internships", methods=["GET"], endpoint="admin_internships")
    @admin_required
    def admin_internships():
        try:
            items = container.internship_service.list_mine(g.auth_session.actor())
            return ok(internships=[internship_to_dict(i) for i in items])
        except Exception as e:
            return error_response(e, "Failed to load internships")

    @app.route("/api/admin/internships", methods=["POST"], endpoint="create_internship")
    @admin_required
    def create_internship():
        data = request_data()
        publish = str(data.pop("publish", "")).lower() in {"1", "true", "yes"}
        try:
            internship = container.internship_service.create(g.auth_session.actor(), data, publish=publish)
            message = "Internship published" if publish else "Draft saved"
            return ok(message, 201, internship=internship_to_dict(internship))
        except Exception as e:
            return error_response(e, "Failed to save internship")

    @app.route("/api/admin/internships/<internship_id>", methods=["PUT", "PATCH"], endpoint="update_internship")
    @admin_required
    def update_internship(internship_id: str):
        try:
            internship = container.internship_service.update(g.auth_session.actor(), internship_id, request_data())
            return ok("Internship updated", internship=internship_to_dict(internship))
        except Exception as e:
            return error_response(e, "Failed to update internship")

    @app.route("/api/admin/internships/<internship_id>/status", methods=["POST"], endpoint="set_internship_status")
    @admin_required
    def set_internship_status(internship_id: str):
        data = request_data()
        try:
            internship = container.internship_service.set_status(
                g.auth_session.actor(), internship_id, data.get("status", "")
            )
            return ok(f"Internship is now {internship.status.value}", internship=internship_to_dict(internship))
        except Exception as e:
            return error_response(e, "Failed to update internship status")

    @app.route("/api/admin/internships/<internship_id>", methods=["DELETE"], endpoint="delete_internship")
    @admin_required
    def delete_internship(internship_id: str):
        try:
            container.internship_service.delete(g.auth_session.actor(), internship_id)
            return ok("Internship deleted")
        except Exception as e:
            return error_response(e, "Failed to delete internship")
