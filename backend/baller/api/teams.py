from flask import Blueprint, jsonify
from flask_login import login_required, current_user
from baller import db
from baller.models import TeamShare

teams = Blueprint('teams', __name__)


@teams.route('/share-team', methods=['POST'])
@login_required
def share_team():
    """
    Snapshots the current player's team under a fresh share code.
    The previous code, if any, stops resolving.
    """
    user = current_user._get_current_object()
    if user.share_code:
        previous = db.session.get(TeamShare, user.share_code)
        if previous:
            db.session.delete(previous)
            db.session.flush()

    share = TeamShare(
        name=user.team_name,
        robots=user.robots or [],
        programs=user.programs or {},
        field=user.field or {},
    )
    db.session.add(share)
    user.share_code = share.code
    db.session.add(user)
    db.session.commit()
    return jsonify({'code': share.code}), 200


@teams.route('/team/<string:code>', methods=['GET'])
def get_team(code):
    share = db.session.get(TeamShare, code.upper())
    if not share:
        return jsonify({'error': 'Team not found'}), 404
    return jsonify(share.to_dict()), 200
