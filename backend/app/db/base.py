from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


# Register every model on the metadata for create_all and Alembic autogenerate.
import app.models  # noqa: E402,F401
