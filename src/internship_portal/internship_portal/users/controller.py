from __future__ import annotations

import io

from flask import Flask, current_app, g, request, send_file, session

from ..common.responses import error_response, fail, ok, request_data
from ..container import Container
from .guards import login_required
from .service import profile_to_dict


def register(app: Flask, container: Container) -> None:
    def _sign_in_session(profile) -> None:
        session.clear()
        session.permanent = True
        session["uid"] = profile.uid
        g.auth_session.bind(profile.uid)

    @app.route("/api/auth/signup", methods=["POST"], endpoint="signup")
    def signup():
        data = request_data()
        try:
            profile = container.auth_service.sign_up(
                email=data.get("email", ""),
                password=data.get("password", ""),
                first_name=data.get("first_name", ""),
                last_name=data.get("last_name", ""),
                phone_number=data.get("phone_number", ""),
                university=data.get("university", ""),
                major=data.get("major", ""),
                graduation_year=str(data.get("graduation_year") or ""),
            )
            _sign_in_session(profile)
            return ok("Account created successfully", 201, profile=profile_to_dict(profile))
        except Exception as e:
            return error_response(e, "Failed to create account")

    @app.route("/api/auth/signin", methods=["POST"], endpoint="signin")
    def signin():
        data = request_data()
        try:
            profile = container.auth_service.sign_in(data.get("email", ""), data.get("password", ""))
            _sign_in_session(profile)
            return ok("Signed in successfully", profile=profile_to_dict(profile))
        except Exception as e:
            return error_response(e, "Failed to sign in")

    @app.route("/api/auth/federated", methods=["POST"], endpoint="signin_federated")
    def signin_federated():
        data = request_data()
        try:
            profile = container.auth_service.sign_in_federated(data.get("assertion", ""))
            _sign_in_session(profile)
            return ok("Signed in successfully", profile=profile_to_dict(profile))
        except Exception as e:
            return error_response(e, "Failed to sign in")

    @app.route("/api/auth/signout", methods=["POST"], endpoint="signout")
    def signout():
        uid = g.auth_session.uid
        session.clear()
        if uid:
            container.auth_service.sign_out(uid)
        return ok("Signed out")

    @app.route("/api/auth/me", endpoint="me")
    @login_required
    def me():
        return ok(profile=profile_to_dict(g.auth_session.profile))

    @app.route("/api/auth/password", methods=["POST"], endpoint="change_password")
    @login_required
    def change_password():
        data = request_data()
        try:
            container.auth_service.change_password(
                g.auth_session.uid,
                current_password=data.get("current_password", ""),
                new_password=data.get("new_password", ""),
            )
            return ok("Password changed successfully")
        except Exception as e:
            return error_response(e, "Failed to change password")

    @app.route("/api/auth/password/reset-request", methods=["POST"], endpoint="request_password_reset")
    def request_password_reset():
        data = request_data()
        try:
            token = container.auth_service.request_password_reset(data.get("email", ""))
            extra = {}
            # No mail delivery: the token is only echoed back outside production.
            if token and (current_app.config.get("DEBUG") or current_app.config.get("TESTING")):
                extra["reset_token"] = token
            return ok("If an account exists for this email, a reset link has been sent", **extra)
        except Exception as e:
            return error_response(e, "Failed to request a password reset")

    @app.route("/api/auth/password/reset", methods=["POST"], endpoint="reset_password")
    def reset_password():
        data = request_data()
        try:
            container.auth_service.reset_password(data.get("token", ""), data.get("new_password", ""))
            return ok("Password has been reset. You can sign in now")
        except Exception as e:
            return error_response(e, "Failed to reset password")

    @app.route("/api/account", methods=["DELETE"], endpoint="delete_account")
    @login_required
    def delete_account():
        data = request_data()
        try:
            container.auth_service.delete_account(g.auth_session.uid, password=data.get("password"))
            session.clear()
            return ok("Account deleted")
        except Exception as e:
            return error_response(e, "Failed to delete account")

    @app.route("/api/profile", methods=["GET"], endpoint="get_profile")
    @login_required
    def get_profile():
        return ok(profile=profile_to_dict(g.auth_session.profile))

    @app.route("/api/profile", methods=["PUT", "PATCH"], endpoint="update_profile")
    @login_required
    def update_profile():
        try:
            profile = container.profile_service.update_profile(g.auth_session.uid, request_data())
            return ok("Profile updated", profile=profile_to_dict(profile))
        except Exception as e:
            return error_response(e, "Failed to update profile")

    def _uploaded_file():
        file = request.files.get("file")
        if file is None or not file.filename:
            return None
        return file

    @app.route("/api/profile/photo", methods=["POST"], endpoint="upload_photo")
    @login_required
    def upload_photo():
        file = _uploaded_file()
        if file is None:
            return fail("Please choose a file to upload", 400)
        try:
            profile = container.profile_service.upload_photo(
                g.auth_session.uid,
                filename=file.filename,
                data=file.read(),
                content_type=file.mimetype or "",
            )
            return ok("Photo uploaded", profile=profile_to_dict(profile))
        except Exception as e:
            return error_response(e, "Failed to upload photo")

    @app.route("/api/profile/photo", methods=["DELETE"], endpoint="delete_photo")
    @login_required
    def delete_photo():
        try:
            profile = container.profile_service.delete_photo(g.auth_session.uid)
            return ok("Photo removed", profile=profile_to_dict(profile))
        except Exception as e:
            return error_response(e, "Failed to remove photo")

    @app.route("/api/profile/resume", methods=["POST"], endpoint="upload_resume")
    @login_required
    def upload_resume():
        file = _uploaded_file()
        if file is None:
            return fail("Please choose a file to upload", 400)
        try:
            profile = container.profile_service.upload_resume(
                g.auth_session.uid,
                filename=file.filename,
                data=file.read(),
                content_type=file.mimetype or "",
            )
            return ok("Resume uploaded", profile=profile_to_dict(profile))
        except Exception as e:
            return error_response(e, "Failed to upload resume")

    @app.route("/api/profile/resume", methods=["DELETE"], endpoint="delete_resume")
    @login_required
    def delete_resume():
        try:
            profile = container.profile_service.delete_resume(g.auth_session.uid)
            return ok("Resume removed", profile=profile_to_dict(profile))
        except Exception as e:
            return error_response(e, "Failed to remove resume")

    @app.route("/api/profile/resume", methods=["GET"], endpoint="download_resume")
    @login_required
    def download_resume():
        try:
            profile = g.auth_session.profile
            data = container.profile_service.download_resume(profile.uid)
            filename = profile.resume_path.rsplit("/", 1)[-1].split("-", 1)[-1]
            return send_file(io.BytesIO(data), as_attachment=True, download_name=filename)
        except Exception as e:
            return error_response(e, "Failed to download resume")
