from databases import Database

from matchlog.config import config

database = Database(config.pg_dsn)
