# api/app.py
import json
from functools import lru_cache
from typing import Any, Dict, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from sqlsage.config.logging_config import setup_logging
from sqlsage.config.settings import settings
from sqlsage.domain.errors import ConfigurationError, StoreNotReadyError
from sqlsage.domain.models import (
    AskResult,
    GeneratedTrainingData,
    SQLGenerationOptions,
    SQLGenerationResponse,
    TrainingData,
    TrainingPlan,
    TrainingStatistics,
)
from sqlsage.reasoning.sql_generator import SQLGenerator

setup_logging(settings.LOG_LEVEL)

app = FastAPI(title="sqlsage")

class AskRequest(BaseModel):
    question: str
    auto_train: bool = True
    allow_llm_to_see_data: bool = False

class GenerateSQLRequest(BaseModel):
    question: str
    output_format: Literal["sql", "sqlalchemy"] = "sql"
    include_explanation: bool = False
    allow_llm_to_see_data: bool = False

class TrainRequest(BaseModel):
    question: Optional[str] = None
    sql: Optional[str] = None
    ddl: Optional[str] = None
    documentation: Optional[str] = None
    plan: Optional[TrainingPlan] = None

class IngestRequest(BaseModel):
    database_url: Optional[str] = None
    db_schema: Optional[str] = None
    table_descriptions: Optional[Dict[str, Dict[str, str]]] = None
    include_row_counts: bool = False

class GenerateTrainingDataRequest(BaseModel):
    num_questions: int = 10
    include_basic_queries: bool = True
    include_advanced_queries: bool = True
    include_analytics_queries: bool = True
    custom_prompt: Optional[str] = None

@lru_cache(maxsize=1)
def get_generator() -> SQLGenerator:
    return SQLGenerator.from_settings(settings)

@app.exception_handler(ConfigurationError)
def configuration_error_handler(request: Request, exc: ConfigurationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})

@app.exception_handler(StoreNotReadyError)
def store_not_ready_handler(request: Request, exc: StoreNotReadyError):
    return JSONResponse(status_code=503, content={"detail": str(exc)})

@app.post("/ingest")
def ingest_endpoint(req: IngestRequest, generator: SQLGenerator = Depends(get_generator)):
    ids = generator.train_from_database(
        req.database_url or settings.TARGET_DB_URL,
        schema=req.db_schema,
        table_descriptions=req.table_descriptions,
        include_row_counts=req.include_row_counts,
    )
    return {"status": "ok", "ids": ids}

@app.post("/ask", response_model=AskResult)
def ask_endpoint(req: AskRequest, generator: SQLGenerator = Depends(get_generator)):
    return generator.ask(req.question, auto_train=req.auto_train, allow_llm_to_see_data=req.allow_llm_to_see_data)

@app.post("/generate-sql", response_model=SQLGenerationResponse)
def generate_sql_endpoint(req: GenerateSQLRequest, generator: SQLGenerator = Depends(get_generator)):
    options = SQLGenerationOptions(
        output_format=req.output_format,
        include_explanation=req.include_explanation,
        allow_llm_to_see_data=req.allow_llm_to_see_data,
    )
    return generator.generate_sql(req.question, options)

@app.post("/train")
def train_endpoint(req: TrainRequest, generator: SQLGenerator = Depends(get_generator)):
    status = generator.train(
        question=req.question, sql=req.sql, ddl=req.ddl, documentation=req.documentation, plan=req.plan
    )
    return {"status": "ok", "result": status}

@app.get("/training-data", response_model=TrainingData)
def training_data_endpoint(generator: SQLGenerator = Depends(get_generator)):
    return generator.get_training_data()

@app.get("/training-data/stats", response_model=TrainingStatistics)
def training_stats_endpoint(generator: SQLGenerator = Depends(get_generator)):
    return generator.get_training_statistics()

@app.get("/training-data/export")
def export_endpoint(generator: SQLGenerator = Depends(get_generator)):
    return Response(content=generator.export_training_data(), media_type="application/json")

@app.post("/training-data/import")
def import_endpoint(payload: Dict[str, Any], generator: SQLGenerator = Depends(get_generator)):
    generator.import_training_data(json.dumps(payload))
    return {"status": "ok", "statistics": generator.get_training_statistics().model_dump()}

@app.delete("/training-data/{item_id}")
def remove_endpoint(item_id: str, generator: SQLGenerator = Depends(get_generator)):
    if not generator.remove_training_data(item_id):
        raise HTTPException(status_code=404, detail=f"No training data with id {item_id}")
    return {"status": "ok"}

@app.post("/training-data/generate", response_model=GeneratedTrainingData)
def generate_training_data_endpoint(
    req: GenerateTrainingDataRequest, generator: SQLGenerator = Depends(get_generator)
):
    return generator.generate_training_data_from_schema(**req.model_dump())
