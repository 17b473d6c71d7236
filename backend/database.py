# backend/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import settings

# 1. Database URL from settings (environment / .env), SQLite by default
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# 2. Hosted Postgres providers hand out postgres://, SQLAlchemy needs postgresql://
if SQLALCHEMY_DATABASE_URL and SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)

# 3. Connection arguments depend on the backend
if "sqlite" in SQLALCHEMY_DATABASE_URL:
    connect_args = {"check_same_thread": False} # SQLite only
else:
    connect_args = {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args=connect_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    # Register every model on Base.metadata before creating tables
    import models.users  # noqa: F401
    import models.product_type  # noqa: F401
    import models.product  # noqa: F401
    import models.audit_log  # noqa: F401
    Base.metadata.create_all(bind=engine)
