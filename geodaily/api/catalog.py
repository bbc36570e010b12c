from flask import Blueprint, jsonify, request

from geodaily.auth import admin_required
from geodaily.services import catalog as catalog_service


catalog = Blueprint('catalog', __name__)


# ---- Locations ----

@catalog.route('/locations', methods=['GET'])
@admin_required
def list_locations():
    return jsonify([loc.to_dict() for loc in catalog_service.list_locations()])


@catalog.route('/locations/<int:location_id>', methods=['GET'])
@admin_required
def get_location(location_id):
    return jsonify(catalog_service.get_location(location_id).to_dict())


@catalog.route('/locations', methods=['POST'])
@admin_required
def create_location():
    data = request.get_json(silent=True) or {}
    location = catalog_service.create_location(data)
    return jsonify(location.to_dict()), 201, {'Location': f'/api/locations/{location.id}'}


@catalog.route('/locations/<int:location_id>', methods=['PUT'])
@admin_required
def update_location(location_id):
    data = request.get_json(silent=True) or {}
    return jsonify(catalog_service.update_location(location_id, data).to_dict())


@catalog.route('/locations/<int:location_id>', methods=['DELETE'])
@admin_required
def delete_location(location_id):
    catalog_service.delete_location(location_id)
    return jsonify({'message': 'Location deleted'})


# ---- Riddles ----

@catalog.route('/riddles', methods=['GET'])
@admin_required
def list_riddles():
    return jsonify([r.to_dict() for r in catalog_service.list_riddles()])


@catalog.route('/riddles/<int:riddle_id>', methods=['GET'])
@admin_required
def get_riddle(riddle_id):
    return jsonify(catalog_service.get_riddle(riddle_id).to_dict())


@catalog.route('/riddles', methods=['POST'])
@admin_required
def create_riddle():
    data = request.get_json(silent=True) or {}
    riddle = catalog_service.create_riddle(data)
    return jsonify(riddle.to_dict()), 201, {'Location': f'/api/riddles/{riddle.id}'}


@catalog.route('/riddles/<int:riddle_id>', methods=['PUT'])
@admin_required
def update_riddle(riddle_id):
    data = request.get_json(silent=True) or {}
    return jsonify(catalog_service.update_riddle(riddle_id, data).to_dict())


@catalog.route('/riddles/<int:riddle_id>', methods=['DELETE'])
@admin_required
def delete_riddle(riddle_id):
    catalog_service.delete_riddle(riddle_id)
    return jsonify({'message': 'Riddle deleted'})
