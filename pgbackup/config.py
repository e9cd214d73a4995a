import os


class Config:
    """Base configuration"""

    DEBUG = False

    # Settings file (KEY=VALUE). None means "pgbackup.cfg beside the launched script"
    CONFIG_FILE = os.environ.get('PGBACKUP_CONFIG')

    # Logging
    LOG_DIR = os.environ.get('PGBACKUP_LOG_DIR')

    # External tools
    PG_DUMP_BIN = os.environ.get('PG_DUMP') or 'pg_dump'
    PG_DUMPALL_BIN = os.environ.get('PG_DUMPALL') or 'pg_dumpall'
    SEVENZIP_BIN = os.environ.get('SEVENZIP') or '7z'
    ARCHIVE_TYPE = '7z'

    # Run history (disabled when unset)
    HISTORY_DATABASE_URL = os.environ.get('PGBACKUP_HISTORY_URL')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True

    # Use local data directory for development
    BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    DATA_DIR = os.path.join(BASE_DIR, 'data')
    LOG_DIR = os.environ.get('PGBACKUP_LOG_DIR') or os.path.join(DATA_DIR, 'logs')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'default': ProductionConfig
}
