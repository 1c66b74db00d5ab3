from flask import jsonify


def success_response(data=None, message="Success", code=200):
    return jsonify({
        "success": True,
        "status": "success",
        "message": message,
        "data": data,
    }), code


def error_response(message="An error occurred", code=400, data=None):
    return jsonify({
        "success": False,
        "status": "error",
        "message": message,
        "error": message,
        "data": data,
    }), code


def domain_error_response(error):
    """Envelope for a GroceryHubError raised by a service call."""
    return error_response(error.message, error.code)
