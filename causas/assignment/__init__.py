from flask import Blueprint

assignment_bp = Blueprint("assignment", __name__, url_prefix="/api")

from causas.assignment import routes  # noqa: E402,F401
