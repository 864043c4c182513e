from flask import Blueprint

lawyers_bp = Blueprint("lawyers", __name__, url_prefix="/api")

from causas.lawyers import routes  # noqa: E402,F401
