from __future__ import annotations

from typing import Any, Dict, Optional

from flask import Response, jsonify, request


class APIResponse:
    """Standardized API response handler"""

    @staticmethod
    def success(data: Any = None, message: str = "Success", status_code: int = 200) -> Response:
        """Standard success response"""
        response_data = {
            'success': True,
            'message': message,
            'data': data,
        }
        return jsonify(response_data), status_code

    @staticmethod
    def error(message: str, errors: Optional[Dict] = None, status_code: int = 400, data: Any = None) -> Response:
        """Standard error response"""
        response_data = {
            'success': False,
            'message': message,
            'errors': errors or {},
        }
        if data is not None:
            response_data['data'] = data
        return jsonify(response_data), status_code

    @staticmethod
    def from_ledger_error(exc) -> Response:
        """Render a LedgerError with its own status and machine code."""
        errors = {'code': exc.code}
        if exc.details:
            errors['details'] = exc.details
        return APIResponse.error(exc.message, errors=errors, status_code=exc.status_code)

    @staticmethod
    def not_found(resource: str = "Resource") -> Response:
        """404 error response"""
        return APIResponse.error(
            message=f"{resource} not found",
            status_code=404,
        )

    @staticmethod
    def handle_request_content() -> dict:
        """Smart request content handling"""
        if request.is_json:
            return request.get_json(silent=True) or {}
        if request.form:
            return request.form.to_dict()
        return {}


__all__ = ['APIResponse']
