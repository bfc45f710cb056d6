"""Error handling blueprint: every error answers JSON."""

from flask import Blueprint, current_app, jsonify, request

from common.atomic_file import AtomicWriteError
from common.base.logging_config import get_logger

logger = get_logger(__name__)

errors_bp = Blueprint('errors', __name__)

def handle_error(error_code: str, error_title: str, error_message: str, details=None):
    """
    Unified error handler returning a JSON body.

    :param error_code: HTTP status code as string
    :param error_title: Title of the error, turned into the ``error`` slug
    :param error_message: User-friendly error description
    :param details: Optional technical details (shown only in debug mode)
    :return: JSON response with appropriate status code
    """
    status_code = int(error_code)

    response = {
        'error': error_title.lower().replace(' ', '_'),
        'message': error_message
    }
    if current_app.debug and details:
        response['details'] = details

    return jsonify(response), status_code

@errors_bp.app_errorhandler(400)
def bad_request(e):
    """Handle 400 Bad Request errors."""
    logger.warning(f"Bad request: {str(e)}")
    return handle_error(
        "400",
        "Bad Request",
        "The request could not be understood by the server due to malformed syntax.",
        str(e)
    )

@errors_bp.app_errorhandler(404)
def page_not_found(e):
    """Handle 404 Not Found errors."""
    logger.info(f"Page not found: {request.path}")
    return handle_error(
        "404",
        "Not Found",
        "The requested resource does not exist.",
        str(e)
    )

@errors_bp.app_errorhandler(405)
def method_not_allowed(e):
    """Handle 405 Method Not Allowed errors."""
    logger.warning(f"Method not allowed: {request.method} {request.path}")
    return handle_error(
        "405",
        "Method Not Allowed",
        f"The {request.method} method is not allowed for this endpoint.",
        str(e)
    )

@errors_bp.app_errorhandler(500)
def internal_server_error(e):
    """Handle 500 Internal Server errors."""
    logger.error(f"Internal server error: {str(e)}", exc_info=True)
    return handle_error(
        "500",
        "Internal Server Error",
        "An unexpected error occurred.",
        str(e)
    )

@errors_bp.app_errorhandler(AtomicWriteError)
def handle_storage_error(e):
    """Handle failed writes to the settings and saved-words store."""
    logger.error(f"Storage error: {str(e)}", exc_info=True)
    return handle_error(
        "500",
        "Storage Error",
        "Your change could not be saved.",
        str(e)
    )
