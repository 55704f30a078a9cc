# Database module
from .connection import engine, get_engine, get_session, init_db, close_db, get_setting_value, set_setting_value, db_lock, DB_PATH, DATABASE_URL
from .schema import init_raw_db
