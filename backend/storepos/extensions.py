# Overview: Flask extension instances for database, migrations, and session tokens.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .services.session_service import SessionCodec

db = SQLAlchemy()
migrate = Migrate()
session_codec = SessionCodec()
