from models import db


class KeyValueEntry(db.Model):
    """One JSON document stored under a string key."""

    __tablename__ = "kv_entries"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(200), unique=True, nullable=False)
    # JSON: the "surveys" key holds [{"id": ..., "name": ..., "demographics": [...]}, ...]
    value = db.Column(db.JSON)
