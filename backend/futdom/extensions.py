from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS
from sqlalchemy.dialects.postgresql import JSONB
import os

# Flask extensions singletons

db = SQLAlchemy()
migrate = Migrate()

# Column types shared by the models. SQLite (tests) only auto-increments INTEGER primary keys.
BigIntPK = db.BigInteger().with_variant(db.Integer(), "sqlite")
JSONType = db.JSON().with_variant(JSONB(), "postgresql")

# Configure allowed origins from env (comma-separated). In production avoid wildcard.
_allowed = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
_origins = [o.strip() for o in _allowed.split(",") if o.strip()] if _allowed else []
if not _origins:
	# Fallback defaults for the Vite dev server
	env = os.getenv("FLASK_ENV", "development").lower()
	if env != "production":
		_origins = [
			"http://localhost:5173",
			"http://127.0.0.1:5173",
			"http://localhost:3000",
			"http://127.0.0.1:3000",
		]
cors = CORS(resources={r"*": {"origins": _origins}})
