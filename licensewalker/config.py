import os

from dotenv import load_dotenv

load_dotenv()

NPM_REGISTRY_URL: str = os.getenv("NPM_REGISTRY_URL", "https://registry.npmjs.org")

GITHUB_TOKEN: str | None = os.getenv("GITHUB_TOKEN")
GITHUB_API_BASE: str = os.getenv("GITHUB_BASE_URL", "https://api.github.com")
GITHUB_RAW_BASE: str = os.getenv("GITHUB_RAW_URL", "https://raw.githubusercontent.com")

# Network
REQUEST_TIMEOUT: float = float(os.getenv("LICENSEWALKER_TIMEOUT", "45.0"))
CONCURRENCY: int = int(os.getenv("LICENSEWALKER_CONCURRENCY", "50"))
