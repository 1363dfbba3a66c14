from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent

# File sink (only used when LOG_TO_FILE is on)
LOG_DIR = BASE_DIR / 'logs'
LOG_FILE_PREFIX = 'booking_saga'
LOG_ROTATION = '1 hour'
LOG_RETENTION = '7 days'
