from flask import Blueprint, current_app, request, jsonify
from flask_login import login_required, current_user
from baller import db
from baller.auth import issue_token
from baller.models import User, Clan

main = Blueprint('main', __name__)

# Profile fields a player may overwrite via PATCH /api/me
_PROFILE_FIELDS = {
    'robots': 'robots',
    'programs': 'programs',
    'field': 'field',
    'teamName': 'team_name',
    'avatar': 'avatar',
    'color': 'color',
}


@main.route('/')
def index():
    stats = current_app.extensions['matchmaking'].stats()
    return jsonify({
        'status': 'ok',
        'game': 'BALLER.EXE',
        'storage': db.engine.dialect.name,
        'players': User.query.count(),
        'clans': Clan.query.count(),
        'queued': stats['queued'],
        'rooms': stats['rooms'],
    })


@main.route('/api/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    username = str(data.get('username') or '').strip().lower()
    password = data.get('password') or ''
    team_name = str(data.get('teamName') or '').strip()
    if not username or not password:
        return jsonify({'error': 'Username and password required'}), 400
    if len(username) < 3:
        return jsonify({'error': 'Username needs 3+ characters'}), 400
    if User.query.filter_by(username=username).first():
        return jsonify({'error': 'Username already taken'}), 409

    user = User(username=username, team_name=team_name or username)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    current_app.logger.info(f"[register] user={username}")

    return jsonify({'token': issue_token(username), 'user': user.to_dict()}), 201


@main.route('/api/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    username = str(data.get('username') or '').strip().lower()
    user = User.query.filter_by(username=username).first()
    if not user:
        return jsonify({'error': 'Account not found'}), 404
    if not user.check_password(data.get('password') or ''):
        return jsonify({'error': 'Wrong password'}), 401
    return jsonify({'token': issue_token(user.username), 'user': user.to_dict()})


@main.route('/api/me', methods=['GET'])
@login_required
def get_me():
    return jsonify(current_user.to_dict())


@main.route('/api/me', methods=['PATCH'])
@login_required
def update_me():
    data = request.get_json(silent=True) or {}
    for key, attr in _PROFILE_FIELDS.items():
        if key in data:
            setattr(current_user, attr, data[key])
    if data.get('password'):
        current_user.set_password(data['password'])
    db.session.commit()
    return jsonify({'ok': True, 'user': current_user.to_dict()})
