"""Error handlers for the application."""
from flask import jsonify
from werkzeug.exceptions import HTTPException

from agora_callables.core.errors import CallableError, Internal, InvalidArgument, NotFound


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(CallableError)
    def callable_error(error):
        """Render handler errors in the callable envelope."""
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(404)
    def not_found(error):
        """Handle unknown callable names."""
        return jsonify(NotFound("Not Found").to_dict()), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Callables only accept POST."""
        return jsonify(InvalidArgument("Bad Request").to_dict()), 400

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # Pass through HTTP errors
        if isinstance(error, HTTPException):
            return error

        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return jsonify(Internal("INTERNAL").to_dict()), 500
