from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from models.kv_entry import KeyValueEntry
