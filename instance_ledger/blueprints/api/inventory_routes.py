import logging

from flask import Blueprint, request

from ...services import inventory_ledger
from ...services.ledger_errors import ValidationError
from ...utils.api_responses import APIResponse
from ._params import current_actor, json_body, optional_int, query_int, required_int

logger = logging.getLogger(__name__)

inventory_api_bp = Blueprint('inventory_api', __name__, url_prefix='/inventory')


def _registration_fields(item):
    return {
        'product_id': required_int(item.get('product_id'), 'product_id'),
        'branch_id': required_int(item.get('branch_id'), 'branch_id'),
        'batch_type_id': optional_int(item.get('batch_type_id'), 'batch_type_id'),
        'instance_code': item.get('instance_code'),
        'initial_quantity': item.get('initial_quantity'),
        'grouped': item.get('grouped', True),
        'attributes': item.get('attributes', item.get('attribute_data')),
    }


def _items_payload(data):
    items = data.get('items')
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list", field='items')
    return items


@inventory_api_bp.route('/instances', methods=['GET'])
def list_instances():
    """List instances filtered by product, branch, status or batch type"""
    instances = inventory_ledger.list_instances(
        product_id=query_int('product_id'),
        branch_id=query_int('branch_id'),
        status=request.args.get('status') or None,
        batch_type_id=query_int('batch_type_id'),
    )
    return APIResponse.success([instance.to_dict() for instance in instances])


@inventory_api_bp.route('/instances', methods=['POST'])
def register_instances():
    """Register one instance, or several with {"items": [...]}"""
    data = json_body()
    actor = current_actor()

    if 'items' in data:
        items = _items_payload(data)
        report = inventory_ledger.register_instances(items, actor=actor)
        status_code = 201 if report.success else 207
        return APIResponse.success(report.to_dict(), message="Submission processed", status_code=status_code)

    instance = inventory_ledger.register_instance(actor=actor, **_registration_fields(data))
    return APIResponse.success(instance.to_dict(), message="Instance registered", status_code=201)


@inventory_api_bp.route('/instances/<instance_id>', methods=['GET'])
def get_instance(instance_id):
    instance = inventory_ledger.get_instance(instance_id)
    return APIResponse.success(instance.to_dict())


@inventory_api_bp.route('/instances/available/<int:product_id>', methods=['GET'])
def available_instances(product_id):
    """In-stock instances for the POS picker"""
    instances = inventory_ledger.available_instances(product_id, branch_id=query_int('branch_id'))
    return APIResponse.success([instance.to_dict() for instance in instances])


@inventory_api_bp.route('/instances/suggest-code', methods=['GET'])
def suggest_code():
    code, batch_type = inventory_ledger.suggest_code(
        required_int(request.args.get('product_id'), 'product_id'),
        required_int(request.args.get('branch_id'), 'branch_id'),
        batch_type_id=query_int('batch_type_id'),
    )
    return APIResponse.success({'instance_code': code, 'batch_type_id': batch_type.id})


@inventory_api_bp.route('/instances/<instance_id>/adjust', methods=['POST'])
def adjust_instance(instance_id):
    data = json_body()
    instance = inventory_ledger.adjust_instance(
        instance_id,
        data.get('new_quantity', data.get('quantity')),
        data.get('reason'),
        actor=current_actor(),
    )
    return APIResponse.success(instance.to_dict(), message="Instance adjusted")


@inventory_api_bp.route('/instances/<instance_id>/transfer', methods=['POST'])
def transfer_instance(instance_id):
    data = json_body()
    instance = inventory_ledger.transfer_instance(
        instance_id,
        required_int(data.get('to_branch_id'), 'to_branch_id'),
        notes=data.get('notes'),
        actor=current_actor(),
    )
    return APIResponse.success(instance.to_dict(), message="Instance transferred")


@inventory_api_bp.route('/instances/<instance_id>/convert', methods=['POST'])
def convert_instance(instance_id):
    data = json_body()
    result = inventory_ledger.convert_instance(
        instance_id,
        new_instance_code=data.get('new_instance_code', data.get('instance_code')),
        weight=data.get('weight'),
        attributes=data.get('attributes', data.get('attribute_data')),
        actor=current_actor(),
    )
    return APIResponse.success(result.to_dict(), message="Instance converted", status_code=201)


@inventory_api_bp.route('/convert', methods=['POST'])
def convert_instances():
    """Batch conversion: {"items": [{"source_instance_id", "new_instance_code", "weight"}]}"""
    items = _items_payload(json_body())
    report = inventory_ledger.convert_instances(items, actor=current_actor())
    status_code = 201 if report.success else 207
    return APIResponse.success(report.to_dict(), message="Submission processed", status_code=status_code)


@inventory_api_bp.route('/instances/<instance_id>/scrap', methods=['POST'])
def scrap_instance(instance_id):
    data = json_body()
    instance = inventory_ledger.scrap_instance(instance_id, data.get('reason'), actor=current_actor())
    return APIResponse.success(instance.to_dict(), message="Instance scrapped")


@inventory_api_bp.route('/instances/<instance_id>/history', methods=['GET'])
def instance_history(instance_id):
    entries = inventory_ledger.instance_history(instance_id)
    return APIResponse.success([entry.to_dict() for entry in entries])


def _history_response(event_type):
    entries = inventory_ledger.list_audit_entries(
        event_type=event_type,
        branch_id=query_int('branch_id'),
        instance_id=request.args.get('instance_id') or None,
    )
    return APIResponse.success([entry.to_dict() for entry in entries])


@inventory_api_bp.route('/transfers', methods=['GET'])
def list_transfers():
    """Transfers leaving or entering branch_id, optionally for one instance"""
    return _history_response('transfer')


@inventory_api_bp.route('/adjustments', methods=['GET'])
def list_adjustments():
    """Adjustments on instances held at branch_id, optionally for one instance"""
    return _history_response('adjust')


@inventory_api_bp.route('/history', methods=['GET'])
def list_history():
    """All ledger events, filtered by event_type, branch_id and instance_id"""
    return _history_response(request.args.get('event_type') or None)
