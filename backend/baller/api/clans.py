from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required, current_user
from baller import db
from baller.models import Clan, User

clans = Blueprint('clans', __name__)


@clans.route('', methods=['GET'])
def list_clans():
    return jsonify([c.to_dict(include_count=True) for c in Clan.query.order_by(Clan.created_at).all()]), 200


@clans.route('', methods=['POST'])
@login_required
def create_clan():
    """
    Creates a clan owned by the current player and makes them its first member.
    """
    user = current_user._get_current_object()
    if user.clan_id and db.session.get(Clan, user.clan_id):
        return jsonify({'error': 'You are already in a clan'}), 400

    data = request.get_json(silent=True) or {}
    name = str(data.get('name') or '').strip()
    tag = str(data.get('tag') or '').strip().upper()[:3]
    if not name or not tag:
        return jsonify({'error': 'Name and tag are required'}), 400
    if Clan.query.filter_by(tag=tag).first():
        return jsonify({'error': 'Tag already taken'}), 409

    clan = Clan(
        name=name,
        tag=tag,
        color=data.get('color') or '#00e57a',
        icon=data.get('icon') or '🛡️',
        owner=user.username,
    )
    try:
        db.session.add(clan)
        db.session.flush()
        user.clan_id = clan.id
        db.session.add(user)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"[clan-create] clan={clan.id} tag={tag} owner={user.username}")
    return jsonify(clan.to_dict()), 201


@clans.route('/leave', methods=['POST'])
@login_required
def leave_clan():
    user = current_user._get_current_object()
    user.clan_id = None
    db.session.add(user)
    db.session.commit()
    return jsonify({'ok': True}), 200


@clans.route('/<string:clan_id>/join', methods=['POST'])
@login_required
def join_clan(clan_id):
    user = current_user._get_current_object()
    if user.clan_id and db.session.get(Clan, user.clan_id):
        return jsonify({'error': 'Leave your current clan first'}), 400
    clan = db.session.get(Clan, clan_id)
    if not clan:
        return jsonify({'error': 'Clan not found'}), 404
    user.clan_id = clan.id
    db.session.add(user)
    db.session.commit()
    return jsonify(clan.to_dict()), 200


@clans.route('/<string:clan_id>/members', methods=['GET'])
def clan_members(clan_id):
    members = User.query.filter_by(clan_id=clan_id).order_by(User.rp.desc()).all()
    return jsonify([
        {'username': u.username, 'avatar': u.avatar, 'rp': u.rp or 0, 'record': u.record}
        for u in members
    ]), 200
