import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'ballerexe_change_in_prod'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///baller.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Bearer tokens (defaults to SECRET_KEY when unset)
    JWT_SECRET = os.environ.get('JWT_SECRET')
    TOKEN_TTL_DAYS = int(os.environ.get('TOKEN_TTL_DAYS', '30'))
    # Comma-separated list; '*' allows any origin
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    # Socket.IO namespace for matchmaking and match relay
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Chat messages relayed between opponents are cut to this many characters
    CHAT_MAX_LENGTH = int(os.environ.get('CHAT_MAX_LENGTH', '120'))
    # Length of the random part of Guest_XXXX identities
    GUEST_SUFFIX_LENGTH = int(os.environ.get('GUEST_SUFFIX_LENGTH', '4'))
    LEADERBOARD_SIZE = int(os.environ.get('LEADERBOARD_SIZE', '50'))
