from baller import db, bcrypt
from flask_login import UserMixin
import random
import string
import time
import uuid

COLORS = ['#00e57a', '#ff3d5a', '#3d7eff', '#f5c400', '#9f6fff', '#ff7a2f', '#00d4a8', '#ff4fa3']
SHARE_CODE_CHARS = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    team_name = db.Column(db.String(64), nullable=True)
    avatar = db.Column(db.String(16), default='🤖')
    color = db.Column(db.String(16), nullable=True)
    # Loadout blobs are opaque to the server
    robots = db.Column(db.JSON, default=list)
    field = db.Column(db.JSON, default=dict)
    programs = db.Column(db.JSON, default=dict)
    wins = db.Column(db.Integer, default=0, nullable=False)
    draws = db.Column(db.Integer, default=0, nullable=False)
    losses = db.Column(db.Integer, default=0, nullable=False)
    rp = db.Column(db.Integer, default=250, nullable=False)
    clan_id = db.Column(db.String(36), db.ForeignKey('clan.id', ondelete='SET NULL'), nullable=True)
    league_id = db.Column(db.String(36), db.ForeignKey('league.id', ondelete='SET NULL'), nullable=True)
    share_code = db.Column(db.String(6), nullable=True)
    created_at = db.Column(db.Float, default=time.time)

    clan = db.relationship('Clan', back_populates='members')

    def __init__(self, **kwargs):
        super(User, self).__init__(**kwargs)
        if not self.color:
            self.color = random.choice(COLORS)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    @property
    def record(self):
        return {'w': self.wins or 0, 'd': self.draws or 0, 'l': self.losses or 0}

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'teamName': self.team_name,
            'avatar': self.avatar,
            'color': self.color,
            'robots': self.robots or [],
            'field': self.field or {},
            'programs': self.programs or {},
            'record': self.record,
            'rp': self.rp,
            'clan': self.clan_id,
            'leagueId': self.league_id,
            'shareCode': self.share_code,
            'createdAt': self.created_at,
        }

    def to_summary(self):
        return {
            'username': self.username,
            'teamName': self.team_name,
            'avatar': self.avatar,
            'rp': self.rp or 0,
            'record': self.record,
            'clan': self.clan_id,
        }


class Clan(db.Model):
    __tablename__ = 'clan'
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(64), nullable=False)
    tag = db.Column(db.String(3), unique=True, nullable=False, index=True)
    color = db.Column(db.String(16), default='#00e57a')
    icon = db.Column(db.String(16), default='🛡️')
    owner = db.Column(db.String(64), nullable=False)
    created_at = db.Column(db.Float, default=time.time)

    members = db.relationship('User', back_populates='clan')

    def to_dict(self, include_count=False):
        data = {
            'id': self.id,
            'name': self.name,
            'tag': self.tag,
            'color': self.color,
            'icon': self.icon,
            'owner': self.owner,
            'createdAt': self.created_at,
        }
        if include_count:
            data['memberCount'] = len(self.members)
        return data


LEAGUE_SIZE = 8


class League(db.Model):
    __tablename__ = 'league'
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(64), nullable=False)
    # One entry per player: {player, name, avatar, w, d, l, gf, ga, pts}
    teams = db.Column(db.JSON, default=list, nullable=False)
    created_at = db.Column(db.Float, default=time.time)

    def has_player(self, username):
        return any(t.get('player') == username for t in (self.teams or []))

    def is_full(self):
        return len(self.teams or []) >= LEAGUE_SIZE

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'teams': list(self.teams or []),
            'createdAt': self.created_at,
        }


def generate_share_code(length=6):
    """Generate a unique, short team share code."""
    while True:
        code = ''.join(random.choices(SHARE_CODE_CHARS, k=length))
        if not db.session.get(TeamShare, code):
            return code


class TeamShare(db.Model):
    __tablename__ = 'team_share'
    code = db.Column(db.String(6), primary_key=True)
    name = db.Column(db.String(64), nullable=True)
    robots = db.Column(db.JSON, default=list)
    programs = db.Column(db.JSON, default=dict)
    field = db.Column(db.JSON, default=dict)
    saved_at = db.Column(db.Float, default=time.time)

    def __init__(self, **kwargs):
        super(TeamShare, self).__init__(**kwargs)
        if not self.code:
            self.code = generate_share_code()

    def to_dict(self):
        return {
            'code': self.code,
            'name': self.name,
            'robots': self.robots or [],
            'programs': self.programs or {},
            'field': self.field or {},
            'savedAt': self.saved_at,
        }
