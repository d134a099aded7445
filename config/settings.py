"""
config/settings.py
Loads all environment variables into a single typed config object.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BUNDLED_JOB_TEMPLATE = str(Path(__file__).resolve().parent / "job.xml")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # Screwdriver ecosystem
    SD_API_URI: str = os.getenv("SD_API_URI", "")
    SD_STORE_URI: str = os.getenv("SD_STORE_URI", "")

    # Jenkins
    JENKINS_HOST: str = os.getenv("JENKINS_HOST", "localhost")
    JENKINS_PORT: int = int(os.getenv("JENKINS_PORT", "8080"))
    JENKINS_USER: str = os.getenv("JENKINS_USER", "")
    JENKINS_TOKEN: str = os.getenv("JENKINS_TOKEN", "")
    JENKINS_TIMEOUT: float = float(os.getenv("JENKINS_TIMEOUT", "8"))
    JENKINS_JOB_TEMPLATE: str = os.getenv("JENKINS_JOB_TEMPLATE", BUNDLED_JOB_TEMPLATE)

    # Optional behaviors
    JENKINS_DESTROY_AFTER_STOP: bool = _flag("JENKINS_DESTROY_AFTER_STOP", "true")
    JENKINS_INCLUDE_CONTAINER: bool = _flag("JENKINS_INCLUDE_CONTAINER", "true")

    # Circuit breaker
    BREAKER_MAX_FAILURES: int = int(os.getenv("BREAKER_MAX_FAILURES", "5"))
    BREAKER_TIMEOUT: float = float(os.getenv("BREAKER_TIMEOUT", "10"))
    BREAKER_RESET_TIMEOUT: float = float(os.getenv("BREAKER_RESET_TIMEOUT", "50"))
    BREAKER_RETRIES: int = int(os.getenv("BREAKER_RETRIES", "5"))
    BREAKER_RETRY_FACTOR: float = float(os.getenv("BREAKER_RETRY_FACTOR", "2"))
    BREAKER_RETRY_MIN_TIMEOUT: float = float(os.getenv("BREAKER_RETRY_MIN_TIMEOUT", "1"))

    # Service
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    PORT: int = int(os.getenv("PORT", "3978"))

    @property
    def ecosystem(self) -> dict:
        return {"api": self.SD_API_URI, "store": self.SD_STORE_URI}

    @property
    def fusebox(self) -> dict:
        """Keyword options for executor.breaker.CircuitBreaker."""
        return {
            "max_failures": self.BREAKER_MAX_FAILURES,
            "timeout": self.BREAKER_TIMEOUT,
            "reset_timeout": self.BREAKER_RESET_TIMEOUT,
            "retries": self.BREAKER_RETRIES,
            "factor": self.BREAKER_RETRY_FACTOR,
            "min_timeout": self.BREAKER_RETRY_MIN_TIMEOUT,
        }


settings = Settings()
