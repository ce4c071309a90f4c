"""애플리케이션 환경 설정 모듈.

Application configuration module using pydantic-settings.
All settings can be overridden via environment variables or a .env file.
"""

from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings

# .env 파일 절대 경로 — CWD와 무관하게 항상 프로젝트 루트의 .env를 참조
# Absolute path to .env file — ensures correct loading regardless of CWD
_ENV_FILE: Path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    """애플리케이션 전역 설정 — 환경 변수 기반 구성.

    Global application settings loaded from environment variables.
    Uses pydantic-settings for automatic env var parsing and .env file support.

    Attributes:
        DATABASE_URL: SQLite 비동기 연결 문자열 (Async SQLite connection string)
        TIMEZONE: 영업일 계산 기준 시간대 (Time zone used for the business date)
        MIN_CLOSE_PERCENTAGE: 마감 허용 최소 미장플라스 비율 (Minimum mise en place % to close)
        LOW_STOCK_WARNING_PERCENTAGE: 판매 경고 재고 비율 (Stock % that attaches a sale warning)
        MISE_WARNING_PERCENTAGE: 미장플라스 경고 비율 (Mise en place warning alert %)
        MISE_CRITICAL_PERCENTAGE: 미장플라스 위험 비율 (Mise en place critical alert %)
        CHECKLIST_VERSION: 교대 체크리스트 버전 (Active shift checklist version)
        STREAK_MIN_COMPLETION: 연속 기록 유지 최소 완료율 (Completion rate that keeps a streak)
    """

    # 데이터베이스 — SQLite async 연결 URL (aiosqlite 드라이버 사용)
    DATABASE_URL: str = "sqlite+aiosqlite:///./misekitchen.db"

    # CORS 설정 — 주방 디스플레이/프론트엔드 개발 서버 허용 (Frontend dev server origins)
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # 앱 메타데이터 — Application metadata
    APP_NAME: str = "Mise en Place Kitchen API"
    DEBUG: bool = False  # True이면 SQLAlchemy SQL 로그 출력 (Enables SQL echo when True)

    # 로깅 설정 — Application logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True  # False이면 사람이 읽기 쉬운 포맷 (Human-readable format when False)

    # 영업일 시간대 — Business time zone (weekly achievements use the local date)
    TIMEZONE: str = "America/Santiago"

    # 재고/미장플라스 임계값 — Stock and mise en place thresholds (percent)
    MIN_CLOSE_PERCENTAGE: int = 80
    LOW_STOCK_WARNING_PERCENTAGE: int = 20
    MISE_WARNING_PERCENTAGE: int = 50
    MISE_CRITICAL_PERCENTAGE: int = 30

    # 체크리스트 — misekitchen/data/checklists/<version>.json
    CHECKLIST_VERSION: str = "v1"

    # 게이미피케이션 — Weekly reward settings
    REWARD_PERFECT_TITLE: str = "Free pizza on Saturday"
    REWARD_SECONDARY_TITLE: str = "Beer at the end of the shift"
    STREAK_MIN_COMPLETION: int = 70

    # Axiom 로깅 설정 — Axiom observability platform settings
    AXIOM_API_TOKEN: str = ""  # Axiom API 토큰 (API token from Axiom dashboard)
    AXIOM_DATASET: str = ""  # Axiom 데이터셋 이름 (Dataset name for API logs)

    model_config = {"env_file": _ENV_FILE, "env_file_encoding": "utf-8"}


# 전역 설정 싱글턴 인스턴스 — Global settings singleton instance
settings: Settings = Settings()
