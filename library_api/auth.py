"""
Authentication blueprint (Google OpenID Connect, cookie session):
- GET  /auth/google            -> redirect to Google
- GET  /auth/google/callback   -> upsert the user, start the session
- GET|POST /auth/logout
- GET  /auth/profile           (signed in)
- GET  /auth/status
- GET  /auth/login/failure
"""
from __future__ import annotations

import logging

from authlib.integrations.base_client import OAuthError
from authlib.integrations.flask_client import OAuth
from flask import Blueprint, current_app, g, redirect, session, url_for

from library_api.responses import error_response, success_response
from models.schemas.user import UserOutSchema
from services.users import get_active_user, upsert_google_user
from utils.decorators import login_required

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/auth")

user_out_schema = UserOutSchema()

OAUTH_EXTENSION = "authlib.integrations.flask_client"


def init_oauth(app):
    """Register the Google client on this app when credentials are configured."""
    oauth = OAuth(app)
    if not (app.config.get("GOOGLE_CLIENT_ID") and app.config.get("GOOGLE_CLIENT_SECRET")):
        logger.warning("Google OAuth credentials missing, /auth/google is disabled")
        return oauth
    oauth.register(
        "google",
        client_id=app.config["GOOGLE_CLIENT_ID"],
        client_secret=app.config["GOOGLE_CLIENT_SECRET"],
        server_metadata_url=app.config["GOOGLE_DISCOVERY_URL"],
        client_kwargs={"scope": "openid email profile"},
    )
    return oauth


def google_client():
    oauth = current_app.extensions.get(OAUTH_EXTENSION)
    return oauth.create_client("google") if oauth is not None else None


@bp.get("/google")
def google_login():
    """
    Start Google sign-in
    ---
    tags: [Auth]
    responses:
      302: { description: Redirect to Google }
      503: { description: Google sign-in not configured }
    """
    client = google_client()
    if client is None:
        return error_response("Google sign-in is not configured", 503)
    return client.authorize_redirect(url_for("auth.google_callback", _external=True))


@bp.get("/google/callback")
def google_callback():
    """
    Google OAuth callback
    ---
    tags: [Auth]
    responses:
      302: { description: Signed in, redirect to profile (or to the failure route) }
      401: { description: Google returned an unusable profile }
    """
    client = google_client()
    if client is None:
        return error_response("Google sign-in is not configured", 503)
    try:
        token = client.authorize_access_token()
    except OAuthError as err:
        logger.warning("Google callback failed: %s", err.description or err.error)
        return redirect(url_for("auth.login_failure"))

    profile = token.get("userinfo") or client.userinfo(token=token)
    user = upsert_google_user(dict(profile))
    session.clear()
    session["user_id"] = user.id
    session.permanent = True
    return redirect(url_for("auth.profile"))


@bp.route("/logout", methods=["GET", "POST"])
def logout():
    """
    End the session
    ---
    tags: [Auth]
    responses:
      200: { description: Logged out }
    """
    user_id = session.pop("user_id", None)
    session.clear()
    if user_id:
        logger.info("User %s logged out", user_id)
    return success_response("Logged out successfully")


@bp.get("/profile")
@login_required()
def profile():
    """
    Current user's profile
    ---
    tags: [Auth]
    responses:
      200: { description: Profile }
      401: { description: Not signed in }
    """
    return success_response("Profile retrieved successfully", user_out_schema.dump(g.current_user))


@bp.get("/status")
def status():
    """
    Whether the caller is signed in
    ---
    tags: [Auth]
    responses:
      200: { description: Authentication status }
    """
    user = get_active_user(session.get("user_id"))
    return success_response(
        "Authenticated" if user else "Not authenticated",
        {
            "authenticated": user is not None,
            "user": user_out_schema.dump(user) if user else None,
            "isAdmin": bool(user and user.is_admin),
        },
    )


@bp.get("/login/failure")
def login_failure():
    """
    Google sign-in failed
    ---
    tags: [Auth]
    responses:
      401: { description: Authentication failed }
    """
    return error_response("Google authentication failed", 401, loginUrl=url_for("auth.google_login"))
