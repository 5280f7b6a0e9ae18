from sqlmodel import SQLModel, create_engine, Session
from ordercoupons.core.config import settings
from ordercoupons.core.logger import get_logger

logger = get_logger("db")

def build_engine(database_url: str = settings.DATABASE_URL):
    # SQLite connections are shared with the threadpool FastAPI runs sync routes on
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, echo=settings.DB_ECHO, connect_args=connect_args)

engine = build_engine()

def get_session():
    with Session(engine) as session:
        yield session

def create_db_and_tables(bind=None):
    bind = bind or engine
    SQLModel.metadata.create_all(bind)
    logger.info("Coupon tables ready on %s", bind.url.render_as_string(hide_password=True))
