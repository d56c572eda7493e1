# bookstore_service/app/db/init_db.py
from sqlalchemy.schema import CreateSchema

from db.database import Base, Database
from db.models import CartItem  # noqa: F401  регистрирует таблицу в metadata


async def init_db(database: Database):
    async with database.engine.begin() as conn:
        if database.name:
            await conn.execute(CreateSchema(database.name, if_not_exists=True))
        # Создание всех таблиц
        await conn.run_sync(Base.metadata.create_all)
