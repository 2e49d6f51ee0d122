from baller import db
from baller.models import User

RP_DELTAS = {'win': 25, 'draw': 5, 'loss': -15}


def apply_match_result(user: User, result: str) -> int:
    """Record a ranked result for ``user`` and return the rp change.

    Ranking points never drop below zero.
    """
    delta = RP_DELTAS.get(result, 0) if isinstance(result, str) else 0
    user.rp = max(0, (user.rp if user.rp is not None else 250) + delta)
    if result == 'win':
        user.wins = (user.wins or 0) + 1
    elif result == 'draw':
        user.draws = (user.draws or 0) + 1
    elif result == 'loss':
        user.losses = (user.losses or 0) + 1
    db.session.add(user)
    db.session.commit()
    return delta


def leaderboard(limit: int = 50):
    users = User.query.order_by(User.rp.desc(), User.id.asc()).limit(limit).all()
    return [u.to_summary() for u in users]
