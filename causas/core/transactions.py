from __future__ import annotations

import logging
from typing import Callable, TypeVar

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from causas.core.errors import Internal, ServiceError
from causas.core.extensions import db

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Lock timeouts, deadlocks, serialization failures and concurrent inserts of
# the same row surface as one of these; the work is re-run from scratch.
RETRYABLE_ERRORS = (OperationalError, IntegrityError)


def run_in_transaction(work: Callable[[], T], attempts: int | None = None) -> T:
    """Run ``work`` and commit, all-or-nothing.

    ``work`` must do every read its decisions depend on, so a re-run after a
    conflict recomputes from fresh state. A ``ServiceError`` rolls back and
    propagates untouched.
    """
    max_attempts = attempts or current_app.config.get("TRANSACTION_MAX_ATTEMPTS", 5)
    for attempt in range(1, max_attempts + 1):
        try:
            result = work()
            db.session.commit()
            return result
        except ServiceError:
            db.session.rollback()
            raise
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            logger.warning(
                "transaction conflict on attempt %s/%s: %s",
                attempt,
                max_attempts,
                exc.__class__.__name__,
            )
            if attempt == max_attempts:
                raise Internal("No se pudo completar la operacion por concurrencia, reintentar.") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("transaction failed")
            raise Internal("Error interno de almacenamiento.") from exc
    raise Internal("Transaccion sin intentos disponibles.")
