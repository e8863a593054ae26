import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://127.0.0.1:8000/api/v1")
    API_TOKEN: str = os.getenv("API_TOKEN")
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "30"))
    STATE_FILE: str = os.path.expanduser(os.getenv("STATE_FILE", "~/.vms/state.yaml"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CONTRACTOR_ID_KEY: str = "contractorId"
    LAST_SCORE_KEY: str = "lastScore"


settings = Settings()
