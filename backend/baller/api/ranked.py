from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required, current_user
from baller.services.ranking import apply_match_result, leaderboard

ranked = Blueprint('ranked', __name__)


@ranked.route('/match-result', methods=['POST'])
@login_required
def post_match_result():
    """
    Records a ranked match outcome (win/draw/loss) for the current player.
    """
    data = request.get_json(silent=True) or {}
    # Anything other than win/draw/loss is recorded as a no-op result
    result = data.get('result')

    user = current_user._get_current_object()
    delta = apply_match_result(user, result)
    current_app.logger.info(f"[match-result] user={user.username} result={result} rp={user.rp}")
    return jsonify({'rp': user.rp, 'record': user.record, 'rpChange': delta}), 200


@ranked.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    """
    Returns the top players ordered by ranking points.
    """
    limit = int(current_app.config.get('LEADERBOARD_SIZE', 50))
    return jsonify(leaderboard(limit)), 200
