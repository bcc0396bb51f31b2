import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from flask import Flask

logger = logging.getLogger(__name__)

# Only load from .env when DATABASE_URL is not already defined by the environment
if not os.getenv("DATABASE_URL"):
    load_dotenv()


def create_app(config_overrides: Optional[Dict[str, Any]] = None) -> Flask:
    """Build the Flask app serving the booking JSON API."""
    from clinic_booking.core import config
    from clinic_booking.core.limiter_config import init_limiter
    from clinic_booking.core.logging_config import setup_logging
    from clinic_booking.db.session import SessionLocal, create_tables, get_engine

    app = Flask(__name__)

    testing_env = os.getenv("TESTING", "").lower().strip()
    if testing_env in ("true", "1", "yes"):
        app.config["TESTING"] = True
    app.config["JSON_SORT_KEYS"] = False
    if config_overrides:
        app.config.update(config_overrides)

    setup_logging(
        app=app,  # Pass app to register request/response hooks
        log_level=config.LOG_LEVEL,
        log_to_file=config.LOG_TO_FILE and not app.config.get("TESTING", False),
        use_json_format=config.LOG_JSON,
    )
    config.log_config()

    init_limiter(app)

    # Idempotent on SQLite and PostgreSQL
    create_tables()
    engine = get_engine()
    logger.info(
        "Database ready",
        extra={
            "context": {
                "dialect": engine.dialect.name,
                "database": engine.url.database,
            }
        },
    )

    from clinic_booking.controllers.booking_controller import booking_bp

    app.register_blueprint(booking_bp)

    @app.route("/health")
    def health():
        db = SessionLocal()
        try:
            db.connection()
            return {"status": "ok"}, 200
        finally:
            db.close()

    return app


if __name__ == "__main__":
    create_app().run(
        host="0.0.0.0",
        port=int(os.getenv("PORT", "5000")),
        debug=os.getenv("FLASK_DEBUG", "").lower() in ("true", "1"),
    )
