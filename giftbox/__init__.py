from flask import Flask, render_template, request, jsonify, send_from_directory, session

from giftbox.config import Config
from giftbox.db import init_db
from giftbox.helpers import format_money
from giftbox.i18n import init_i18n
from giftbox.notify import configure_logging
from giftbox.stores import CartStore, CustomBoxStore


def create_app(overrides=None):
    app = Flask(__name__, static_folder="static", template_folder="templates")
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)
    app.secret_key = app.config["SECRET_KEY"]

    configure_logging(app.config.get("LOG_FILE"))
    init_db(app)

    from giftbox.auth import login_manager, init_oauth, auth_bp, oauth_bp
    from giftbox.shop import shop_bp
    from giftbox.api import api_bp
    from giftbox.admin_api import admin_api_bp
    from giftbox.admin import admin_bp
    from giftbox.cli import register_cli

    login_manager.init_app(app)
    init_oauth(app)
    init_i18n(app)
    for bp in (shop_bp, auth_bp, oauth_bp, api_bp, admin_api_bp, admin_bp):
        app.register_blueprint(bp)
    register_cli(app)

    @app.context_processor
    def inject_globals():
        currency = app.config["CURRENCY"]
        return {
            "SITE_NAME": app.config["SITE_NAME"],
            "format_money": lambda cents: format_money(cents, currency),
            "cart_qty": CartStore(session).count(),
            "box_qty": CustomBoxStore(session).count(),
        }

    @app.get("/uploads/<path:filename>")
    def uploads(filename):
        return send_from_directory(app.config["UPLOAD_DIR"], filename, conditional=True)

    @app.errorhandler(404)
    def not_found(e):
        if request.path.startswith("/api"):
            return jsonify({"error": "Not found"}), 404
        return render_template("404.html"), 404

    return app
