from functools import wraps
from urllib.parse import urlencode

import bcrypt
import requests
from authlib.integrations.base_client import MismatchingStateError, OAuthError
from authlib.integrations.flask_client import OAuth
from flask import (Blueprint, render_template, request, redirect, url_for, abort,
                   jsonify, session, current_app)
from flask_login import (
    LoginManager, login_user, login_required, logout_user, current_user, UserMixin
)
from sqlalchemy import select

from giftbox.db import main_session
from giftbox.helpers import is_safe_url, is_valid_email
from giftbox.i18n import localize, best_locale
from giftbox.models import User
from giftbox.notify import log, notify

GOOGLE_METADATA_URL = "https://accounts.google.com/.well-known/openid-configuration"
OAUTH_EXTENSION = "giftbox.oauth"
MIN_PASSWORD_LEN = 6

login_manager = LoginManager()


class LoginUser(UserMixin):
    def __init__(self, u: User):
        self.id = str(u.id)
        self.email = u.email
        self.name = u.name
        self.role = u.role
        self.has_password = bool(u.password_hash)

    @property
    def is_admin(self):
        return self.role == "ADMIN"


@login_manager.user_loader
def load_user(user_id):
    # runs on every request, so role changes apply without signing out
    with main_session() as db:
        u = db.get(User, int(user_id))
        return LoginUser(u) if u else None


@login_manager.unauthorized_handler
def unauthorized():
    if request.path.startswith("/api"):
        return jsonify({"error": "Unauthorized"}), 401
    return redirect(f"/{best_locale()}/login?" + urlencode({"next": request.full_path.rstrip("?")}))


def current_user_id():
    if current_user.is_authenticated:
        return int(current_user.id)
    return None


def hash_password(password: str) -> str:
    rounds = current_app.config["BCRYPT_ROUNDS"]
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def check_password(password: str, password_hash) -> bool:
    if not password_hash:
        return False
    return bcrypt.checkpw(password.encode(), password_hash.encode())


def admin_required(f):
    """JSON guard for admin API routes."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.is_admin:
            return jsonify({"error": "Unauthorized"}), 401
        return f(*args, **kwargs)
    return decorated


def google_enabled():
    cfg = current_app.config
    return bool(cfg.get("GOOGLE_CLIENT_ID") and cfg.get("GOOGLE_CLIENT_SECRET"))


def _next_url(default):
    target = request.values.get("next")
    return target if is_safe_url(target) else default


# --------------------------- CREDENTIALS ---------------------------
auth_bp = localize(Blueprint("auth", __name__, url_prefix="/<locale>"))


@auth_bp.get("/login")
def login():
    return render_template("login.html", next=request.args.get("next", ""),
                           google=google_enabled())


@auth_bp.post("/login")
def login_post():
    email = request.form.get("email", "").strip().lower()
    password = request.form.get("password", "")
    with main_session() as db:
        u = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if not u or not check_password(password, u.password_hash):
            log.info(f"Failed login attempt for {email}")
            notify(f"Failed login attempt for {email}")
            return (render_template("login.html", error="Invalid credentials",
                                    next=request.form.get("next", ""),
                                    google=google_enabled()), 401)
        login_user(LoginUser(u))
    return redirect(_next_url(url_for("shop.index")))


@auth_bp.get("/register")
def register():
    return render_template("register.html")


@auth_bp.post("/register")
def register_post():
    email = request.form.get("email", "").strip().lower()
    password = request.form.get("password", "")
    name = request.form.get("name", "").strip() or None
    if not is_valid_email(email) or not password:
        return (render_template("register.html", error="Email and password required"), 400)
    if len(password) < MIN_PASSWORD_LEN:
        return (render_template("register.html",
                                error=f"Password must be at least {MIN_PASSWORD_LEN} characters"), 400)
    with main_session() as db:
        exists = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if exists:
            return (render_template("register.html", error="User already exists"), 409)
        u = User(email=email, name=name, password_hash=hash_password(password), role="USER")
        db.add(u)
        db.commit()
        login_user(LoginUser(u))
    log.info(f"New account {email}")
    return redirect(url_for("shop.index"))


@auth_bp.get("/logout")
@login_required
def logout():
    logout_user()
    return redirect(url_for("auth.login"))


# --------------------------- GOOGLE ---------------------------
oauth_bp = Blueprint("oauth", __name__, url_prefix="/auth")


def init_oauth(app):
    """Register the Google OpenID client; credentials come from GOOGLE_CLIENT_ID/SECRET."""
    oauth = OAuth(app)
    oauth.register(
        name="google",
        server_metadata_url=GOOGLE_METADATA_URL,
        client_kwargs={"scope": "openid email profile"},
    )
    app.extensions[OAUTH_EXTENSION] = oauth
    return oauth


def google_client():
    return current_app.extensions[OAUTH_EXTENSION].google


def _callback_url():
    return current_app.config["PUBLIC_BASE_URL"] + url_for("oauth.google_callback")


@oauth_bp.get("/google")
def google_login():
    if not google_enabled():
        abort(404)
    session["oauth_next"] = _next_url(f"/{best_locale()}/")
    try:
        return google_client().authorize_redirect(_callback_url())
    except requests.RequestException as e:
        log.warning(f"Google sign-in unavailable: {e}")
        return redirect(f"/{best_locale()}/login")


@oauth_bp.get("/google/callback")
def google_callback():
    if not google_enabled():
        abort(404)
    client = google_client()
    try:
        token = client.authorize_access_token()
        profile = token.get("userinfo") or client.userinfo()
    except MismatchingStateError:
        abort(400)
    except (OAuthError, requests.RequestException) as e:
        log.warning(f"Google sign-in failed: {e}")
        return redirect(f"/{best_locale()}/login")

    email = (profile.get("email") or "").strip().lower()
    if not email or not profile.get("email_verified", False):
        log.info(f"Google sign-in refused for unverified email {email or '-'}")
        return redirect(f"/{best_locale()}/login")
    with main_session() as db:
        u = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if not u:
            u = User(email=email, name=profile.get("name"), image=profile.get("picture"), role="USER")
            db.add(u)
            db.commit()
            log.info(f"New Google account {email}")
        login_user(LoginUser(u))
    return redirect(session.pop("oauth_next", None) or f"/{best_locale()}/")
