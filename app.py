from __future__ import annotations

from typing import Dict, Optional

from flask import (
    Blueprint,
    Flask,
    current_app,
    g,
    jsonify,
    redirect,
    render_template,
    request,
    session,
    url_for,
)
from pymongo.database import Database
from pymongo.errors import PyMongoError

import auth
import config
from auth import is_authenticated, login_required
from store import (
    PostStore,
    RegistrationError,
    SessionStore,
    UserStore,
    connect,
    ensure_indexes,
)


REGISTER_FAILED = "Registration failed. The username may already be taken."
REGISTER_OK = "Registration succeeded! You can now log in."
LOGIN_FAILED = "Login failed. Wrong username or password."
POST_NOT_FOUND = "Post not found"

bp = Blueprint("blog", __name__)


def users() -> UserStore:
    return current_app.extensions["users"]


def posts() -> PostStore:
    return current_app.extensions["posts"]


def sessions() -> SessionStore:
    return current_app.extensions["sessions"]


@bp.before_app_request
def load_current_identity():
    g.identity = auth.load_identity(session, sessions(), users())


@bp.app_context_processor
def inject_globals():
    return {
        "site_title": current_app.config["SITE_TITLE"],
        "username": auth.current_identity().username,
        "is_authenticated": is_authenticated,
    }


@bp.app_errorhandler(PyMongoError)
def handle_store_error(error):
    current_app.logger.exception("Database operation failed: %s", error)
    return jsonify({"error": "Internal Server Error"}), 500


@bp.app_errorhandler(500)
def handle_server_error(error):
    current_app.logger.error("Unhandled error: %s", error)
    return jsonify({"error": "Internal Server Error"}), 500


@bp.route("/register", methods=["GET", "POST"])
def register():
    if request.method == "POST":
        username = request.form.get("username", "")
        password = request.form.get("password", "")
        try:
            users().register(username, password)
        except (RegistrationError, PyMongoError) as exc:
            current_app.logger.warning("Registration of %r failed: %r", username, exc)
            return render_template("register.html", message=REGISTER_FAILED)
        current_app.logger.info("Registered user %r", username)
        return render_template("login.html", message=REGISTER_OK)
    return render_template("register.html", message="")


@bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        username = request.form.get("username", "")
        password = request.form.get("password", "")
        user = users().find_by_username(username)
        if user and users().verify_password(user, password):
            auth.sign_in(session, sessions(), user)
            return redirect(url_for("blog.index"))
        return render_template("login.html", message=LOGIN_FAILED)
    return render_template("login.html", message="")


@bp.route("/logout")
def logout():
    auth.sign_out(session, sessions())
    return redirect(url_for("blog.index"))


@bp.route("/")
def index():
    return render_template("index.html", title="Blog", posts=posts().list_all())


@bp.route("/posts")
@bp.route("/kirjoitukset")
def post_list():
    return render_template(
        "posts.html", title="Posts", posts=posts().list_all()
    )


@bp.route("/posts", methods=["POST"])
@login_required
def create_post():
    posts().create(request.form)
    return redirect(url_for("blog.post_list"))


@bp.route("/post/<post_id>")
def post_detail(post_id: str):
    post = posts().find_by_id(post_id)
    if post is None:
        return POST_NOT_FOUND, 404, {"Content-Type": "text/plain; charset=utf-8"}
    return render_template("post.html", post=post)


@bp.route("/new")
def new_post():
    if not is_authenticated():
        return redirect(url_for("blog.register"))
    return render_template("new.html")


def create_app(overrides: Optional[Dict] = None, db: Optional[Database] = None) -> Flask:
    """Build the application around an explicit database handle.

    When ``db`` is omitted a client is opened from ``MONGODB_URI``.
    """
    app = Flask(__name__)
    app.config.from_object(config)
    if overrides:
        app.config.update(overrides)

    if db is None:
        db = connect(app.config["MONGODB_URI"])
    ensure_indexes(db, session_max_age=app.config["SESSION_MAX_AGE"])
    app.logger.info("Connected to database %s", db.name)

    app.extensions["users"] = UserStore(db, rounds=app.config["BCRYPT_ROUNDS"])
    app.extensions["posts"] = PostStore(db)
    app.extensions["sessions"] = SessionStore(db)
    app.register_blueprint(bp)
    return app


if __name__ == "__main__":
    application = create_app()
    application.logger.info("Serving on http://localhost:%s", config.PORT)
    application.run(port=config.PORT, debug=True)
