# 환경변수 로딩 (.env)
# 레시피 저장소(SQL) / 북마크(Mongo) / 외부 API 키를 한 곳에서 관리
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # 레시피 저장소: SQLAlchemy async URL (sqlite+aiosqlite, postgresql+asyncpg 등)
    DATABASE_URL: str = "sqlite+aiosqlite:///./recipes.db"
    DB_POOL_SIZE: int = 5

    # 적재(ingest) 스크립트
    INGEST_CSV_PATH: str = "data/RAW_recipes.csv"
    INGEST_BATCH_SIZE: int = 500
    INGEST_PROGRESS_EVERY: int = 5000

    # 검색
    SEARCH_LIMIT: int = 3
    PROMPT_MIN_TOKEN_LEN: int = 3   # 3글자 이상만 키워드로 사용
    PROMPT_MAX_KEYWORDS: int = 5

    # 북마크(saved recipes) 저장용
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "fridge_recipes"

    # 사진 → 재료 (Roboflow workflow)
    ROBOFLOW_API_KEY: str | None = None
    ROBOFLOW_WORKFLOW_URL: str = "https://serverless.roboflow.com/infer/workflows/dataquest-ijnlj/custom-workflow"
    VISION_TIMEOUT: float = 45.0

    # 레시피 팁/변형 (Gemini), 키 없으면 생략
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-1.5-flash"
    GEMINI_TIMEOUT: float = 20.0

    class Config:
        env_file = ".env"

settings = Settings()
