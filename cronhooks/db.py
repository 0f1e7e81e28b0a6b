from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from cronhooks.config import DATABASE_URL

# sqlite connections are shared across FastAPI's threadpool
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

class Base(DeclarativeBase):
    pass
