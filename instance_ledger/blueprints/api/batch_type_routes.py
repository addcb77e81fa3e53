from flask import Blueprint, request

from ...services import batch_type_catalog
from ...utils.api_responses import APIResponse
from ._params import query_flag, required_int

batch_type_api_bp = Blueprint('batch_type_api', __name__, url_prefix='/batch-types')


@batch_type_api_bp.route('', methods=['GET'])
def list_batch_types():
    """Active batch types; include_inactive=true lists all"""
    types = batch_type_catalog.list_batch_types(include_inactive=query_flag('include_inactive'))
    return APIResponse.success([batch_type.to_dict() for batch_type in types])


@batch_type_api_bp.route('/category/<int:category_id>', methods=['GET'])
def category_batch_types(category_id):
    types = batch_type_catalog.types_for_category(
        category_id,
        include_inactive=query_flag('include_inactive'),
    )
    return APIResponse.success([batch_type.to_dict() for batch_type in types])


@batch_type_api_bp.route('/default', methods=['GET'])
def default_batch_type():
    category_id = required_int(request.args.get('category_id'), 'category_id')
    batch_type = batch_type_catalog.default_batch_type_for_category(category_id)
    if batch_type is None:
        return APIResponse.not_found("Default batch type")
    return APIResponse.success(batch_type.to_dict())
