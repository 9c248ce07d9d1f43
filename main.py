import logging
import logging.config
import random

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from faker import Faker
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict
from pymongo import AsyncMongoClient

from datatables_query import (
    DataTables,
    DataTablesError,
    DataTablesRequest,
    DataTablesResponse,
    datatables_query,
)


# ----------------------
# Settings
# ----------------------
class Settings(BaseSettings):
    mongo_url: str = "mongodb://localhost:27017"
    mongo_database: str = "school"
    mongo_collection: str = "students"
    seed_count: int = 1000
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()


def configure_logging(level_name: str) -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                }
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "stream": "ext://sys.stdout",
                }
            },
            "root": {"level": level_name.upper(), "handlers": ["stdout"]},
        }
    )


configure_logging(settings.log_level)
logger = logging.getLogger("students")

# ----------------------
# Database setup
# ----------------------
client = AsyncMongoClient(settings.mongo_url, connect=False)
collection = client[settings.mongo_database][settings.mongo_collection]


def get_datatables() -> DataTables:
    return datatables_query(collection)


# ----------------------
# Models
# ----------------------
class StudentSchema(BaseModel):
    name: str
    age: int
    email: str


# ----------------------
# FastAPI app
# ----------------------
app = FastAPI()
faker = Faker()


@app.exception_handler(DataTablesError)
async def datatables_error_handler(request: Request, exc: DataTablesError):
    return JSONResponse(
        status_code=400,
        content={
            "draw": 0,
            "recordsTotal": 0,
            "recordsFiltered": 0,
            "data": [],
            "error": str(exc),
        },
    )


# ----------------------
# Insert random students
# ----------------------
@app.get("/insert_students")
async def insert_students():
    students = [
        {
            "name": faker.name(),
            "age": random.randint(18, 25),
            "email": faker.unique.email(),
        }
        for _ in range(settings.seed_count)
    ]
    await collection.insert_many(students)
    logger.info("Inserted %d students", len(students))
    return {"message": f"{len(students)} random students inserted successfully!"}


# ----------------------
# Search students
# ----------------------
@app.post("/students", response_model=DataTablesResponse[list[StudentSchema]])
async def get_students(
    datatable_request: DataTablesRequest, datatable: DataTables = Depends(get_datatables)
):
    return await datatable.run(datatable_request)
