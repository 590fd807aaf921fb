import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Round timers (seconds)
    ROUND_DURATION_SEC = int(os.environ.get('ROUND_DURATION_SEC', '45'))
    INTERMISSION_SEC = int(os.environ.get('INTERMISSION_SEC', '5'))
    # First player to reach this score after a round wins
    WIN_SCORE = int(os.environ.get('WIN_SCORE', '5'))
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    MAX_NAME_LENGTH = int(os.environ.get('MAX_NAME_LENGTH', '24'))
    # Optional: heartbeat interval for round clock logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
