from flask import request

from ...utils.api_responses import APIResponse
from ...utils.timezone_utils import TimezoneUtils
from . import api_bp


@api_bp.route('/', methods=['GET', 'HEAD'])
def health_check():
    """Health check endpoint for monitoring services"""
    if request.method == 'HEAD':
        return '', 200
    return APIResponse.success(
        {'status': 'ok', 'timestamp': TimezoneUtils.format_datetime_for_api(TimezoneUtils.utc_now())}
    )
