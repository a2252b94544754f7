"""
Main entrypoint: FastAPI verification server.

Env: PASSPORT_SERVER_API_KEY (or PASSPORT_API_KEY), PASSPORT_SCORER_ID, API_HOST, API_PORT, LOG_LEVEL.

Equivalent: uvicorn backend_passport_gate.api_server.app:app --host 0.0.0.0 --port 8000
"""

# Configure structured JSON logging before other imports that may log
from backend_passport_gate.gate_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Run the verification API in the main thread."""
    from backend_passport_gate.config import get_settings

    settings = get_settings()
    if not settings.passport_server_api_key or not settings.passport_scorer_id:
        logger.warning(
            "main_config_incomplete",
            message="POST /verify-score will answer 503 until PASSPORT_SERVER_API_KEY and PASSPORT_SCORER_ID are set",
        )

    from backend_passport_gate.api_server.app import app
    import uvicorn

    logger.info("main_server_starting", host=settings.api_host, port=settings.api_port)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level)


if __name__ == "__main__":
    main()
