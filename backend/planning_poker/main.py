from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


def _registry():
    return current_app.extensions['room_registry']


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Planning Poker server!'})


@main.route('/create_room', methods=['POST'])
def create_room():
    """Hand out a fresh room id; the caller then joins it over Socket.IO."""
    room_id = _registry().allocate_room_id()
    return jsonify({'roomId': room_id}), 201


@main.route('/rooms/<string:room_id>', methods=['GET'])
def get_room(room_id):
    # Same masking as the broadcasts: hidden votes show up as "?"
    snapshot = _registry().snapshot(room_id)
    if snapshot is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(snapshot)


@main.route('/estimates', methods=['GET'])
def get_estimates():
    return jsonify({'estimates': list(_registry().deck)})
