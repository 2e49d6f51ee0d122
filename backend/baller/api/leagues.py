from flask import Blueprint, current_app, jsonify
from flask_login import login_required, current_user
from baller import db
from baller.models import League

leagues = Blueprint('leagues', __name__)


def _team_entry(user):
    return {
        'player': user.username,
        'name': user.team_name or user.username,
        'avatar': user.avatar,
        'w': 0, 'd': 0, 'l': 0, 'gf': 0, 'ga': 0, 'pts': 0,
    }


@leagues.route('', methods=['GET'])
def list_leagues():
    return jsonify([lg.to_dict() for lg in League.query.order_by(League.created_at).all()]), 200


@leagues.route('/join', methods=['POST'])
@login_required
def join_league():
    """
    Places the current player in the first league with a free slot,
    opening a new league when all existing ones are full.
    """
    user = current_user._get_current_object()
    if user.league_id and db.session.get(League, user.league_id):
        return jsonify({'error': 'Already in a league'}), 400

    all_leagues = League.query.order_by(League.created_at).all()
    league = next(
        (lg for lg in all_leagues if not lg.is_full() and not lg.has_player(user.username)),
        None,
    )
    if league is None:
        league = League(name=f'League {len(all_leagues) + 1}', teams=[])
        db.session.add(league)

    # Reassign the list so the JSON column is flagged as changed
    league.teams = list(league.teams or []) + [_team_entry(user)]
    try:
        db.session.flush()
        user.league_id = league.id
        db.session.add(user)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"[league-join] league={league.id} user={user.username} teams={len(league.teams)}")
    return jsonify(league.to_dict()), 200


@leagues.route('/leave', methods=['POST'])
@login_required
def leave_league():
    """
    Removes the current player's team; an emptied league is deleted.
    """
    user = current_user._get_current_object()
    league = db.session.get(League, user.league_id) if user.league_id else None
    user.league_id = None
    db.session.add(user)
    if league:
        remaining = [t for t in (league.teams or []) if t.get('player') != user.username]
        if remaining:
            league.teams = remaining
        else:
            db.session.delete(league)
            current_app.logger.info(f"[league-delete] league={league.id}")
    db.session.commit()
    return jsonify({'ok': True}), 200


@leagues.route('/<string:league_id>', methods=['GET'])
def get_league(league_id):
    league = db.session.get(League, league_id)
    if not league:
        return jsonify({'error': 'League not found'}), 404
    return jsonify(league.to_dict()), 200
